"""
crowdfund.runtime.abi — call environment, reverts and cross-contract calls.

Contracts use this module (via crowdfund.stdlib.abi) for everything that is
not storage, events or value custody:

    abi.require(amount > 0, b"ESCROW:ZERO_AMOUNT")
    who = abi.sender()
    now = abi.block_timestamp()
    shares = abi.call(token, "balance_of", who)

Reverts raise crowdfund.errors.Revert carrying the bytes reason code. The Host
turns an uncaught Revert into a rolled-back transaction with status REVERT.
"""

from __future__ import annotations

from typing import Any, NoReturn

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from ..errors import Revert
from .context import current_frame


def _reason(msg: Any) -> bytes:
    if isinstance(msg, (bytes, bytearray)):
        return bytes(msg)
    return str(msg).encode("utf-8")


def revert(reason: bytes = b"revert") -> NoReturn:
    """Abort the current call with a stable reason code."""
    raise Revert(reason=_reason(reason))


def require(condition: bool, reason: bytes = b"require failed") -> None:
    if not condition:
        revert(reason)


# --------------------------- call environment ------------------------------ #


def sender() -> bytes:
    """Immediate caller of the executing contract."""
    return current_frame().caller


def self_address() -> bytes:
    return current_frame().address


def value() -> int:
    """Native value attached to the current call (already credited)."""
    return current_frame().value


def block_timestamp() -> int:
    return current_frame().host.block.timestamp


def block_height() -> int:
    return current_frame().host.block.height


def chain_id() -> int:
    return current_frame().host.block.chain_id


# --------------------------- cross-contract calls -------------------------- #


def call(address: bytes, fn: str, *args: Any, value: int = 0) -> Any:
    """
    Call `fn` on the contract at `address` with this contract as the caller.

    The callee runs in its own checkpoint: if it reverts, its effects are
    undone and the Revert propagates (callers may catch it).
    """
    frame = current_frame()
    return frame.host.nested_call(
        caller=frame.address,
        address=bytes(address),
        fn=fn,
        args=args,
        value=value,
        static=frame.static,
        depth=frame.depth + 1,
    )


def static_call(address: bytes, fn: str, *args: Any) -> Any:
    """Read-only call: the callee cannot write storage, emit or move value."""
    frame = current_frame()
    return frame.host.nested_call(
        caller=frame.address,
        address=bytes(address),
        fn=fn,
        args=args,
        value=0,
        static=True,
        depth=frame.depth + 1,
    )


def deploy(code_ref: str, *args: Any, value: int = 0) -> bytes:
    """Deploy a child contract; the executing contract is its deployer."""
    frame = current_frame()
    return frame.host.nested_deploy(
        deployer=frame.address,
        code_ref=code_ref,
        args=args,
        value=value,
        depth=frame.depth + 1,
    )


# --------------------------- signatures ------------------------------------ #


def verify_signature(pubkey: bytes, message: bytes, signature: bytes) -> bool:
    """Ed25519 verification of `signature` over `message`."""
    try:
        Ed25519PublicKey.from_public_bytes(bytes(pubkey)).verify(
            bytes(signature), bytes(message)
        )
    except (InvalidSignature, ValueError):
        return False
    return True


__all__ = [
    "revert",
    "require",
    "sender",
    "self_address",
    "value",
    "block_timestamp",
    "block_height",
    "chain_id",
    "call",
    "static_call",
    "deploy",
    "verify_signature",
]
