"""
Permit-style off-chain approvals
================================

Holders sign a structured "permit" message off-chain; anyone can submit it to
set an allowance on the holder's behalf.

- **Ed25519**: the host verifies signatures (`abi.verify_signature`).
- **Typed domain**: SignBytes start with a domain separator bound to
  (DOMAIN_TAG, chain_id, token address).
- **Replays prevented**: a per-owner nonce is consumed on success.
- **Deadline**: epoch seconds; 0 disables the check.
- **Owner binding**: owner must equal `sha3_256(b"ed25519|" || pubkey)`.

SignBytes
---------
    domain_separator(chain_id, token) || owner || spender
      || u256(value) || u256(nonce) || u64(deadline)

The signature covers `sha3_256(SignBytes)`. `build_sign_bytes` and
`permit_digest` need no active frame, so wallets use them off-chain.
"""

from __future__ import annotations

from typing import Final

from crowdfund.stdlib import abi, storage
from crowdfund.stdlib import hash as _hash

from . import require_holder
from .fungible import set_allowance

DOMAIN_TAG: Final[bytes] = b"crowdfund.permit/v1"
ALG_TAG: Final[bytes] = b"ed25519|"
K_NONCE_PREFIX: Final[bytes] = b"tok:permit:nonce:"  # + owner

ERR_EXPIRED: Final[bytes] = b"PERMIT:EXPIRED"
ERR_OWNER_MISMATCH: Final[bytes] = b"PERMIT:OWNER_MISMATCH"
ERR_BAD_SIGNATURE: Final[bytes] = b"PERMIT:BAD_SIGNATURE"


# ------------------------------------------------------------------------------
# Encoding helpers (network byte order)
# ------------------------------------------------------------------------------


def _u64(n: int) -> bytes:
    if n < 0 or n > (1 << 64) - 1:
        abi.revert(b"PERMIT:U64_RANGE")
    return int(n).to_bytes(8, "big")


def _u256(n: int) -> bytes:
    if n < 0 or n > (1 << 256) - 1:
        abi.revert(b"PERMIT:U256_RANGE")
    return int(n).to_bytes(32, "big")


def address_from_pubkey(pubkey: bytes) -> bytes:
    if not isinstance(pubkey, (bytes, bytearray)) or len(pubkey) != 32:
        abi.revert(b"PERMIT:BAD_PUBKEY")
    return _hash.sha3_256(ALG_TAG + bytes(pubkey))


# ------------------------------------------------------------------------------
# Domain & SignBytes
# ------------------------------------------------------------------------------


def domain_separator(chain_id: int, token_addr: bytes) -> bytes:
    if not token_addr:
        abi.revert(b"PERMIT:ZERO_TOKEN_ADDR")
    return _hash.sha3_256(DOMAIN_TAG + _u64(chain_id) + bytes(token_addr))


def build_sign_bytes(
    chain_id: int,
    token_addr: bytes,
    owner: bytes,
    spender: bytes,
    value: int,
    nonce: int,
    deadline: int,
) -> bytes:
    if not owner or not spender:
        abi.revert(b"PERMIT:ZERO_ADDR")
    return (
        domain_separator(chain_id, token_addr)
        + bytes(owner)
        + bytes(spender)
        + _u256(value)
        + _u256(nonce)
        + _u64(deadline)
    )


def permit_digest(*args, **kwargs) -> bytes:
    """sha3_256 of build_sign_bytes(...); this is what gets signed."""
    return _hash.sha3_256(build_sign_bytes(*args, **kwargs))


# ------------------------------------------------------------------------------
# Nonces
# ------------------------------------------------------------------------------


def nonces(owner: bytes) -> int:
    require_holder(owner)
    return storage.get_int(K_NONCE_PREFIX + owner)


def _consume_nonce(owner: bytes) -> int:
    n = nonces(owner)
    storage.set_int(K_NONCE_PREFIX + owner, n + 1)
    return n


# ------------------------------------------------------------------------------
# Permit execution
# ------------------------------------------------------------------------------


def permit(
    owner: bytes,
    spender: bytes,
    value: int,
    deadline: int,
    pubkey: bytes,
    signature: bytes,
) -> bool:
    """
    Verify a signed permit for this token and set `allowance(owner, spender)`.

    The domain is this contract's address on the current chain, so a permit
    signed for another token or chain never verifies here.
    """
    require_holder(owner)
    require_holder(spender)
    if deadline != 0 and abi.block_timestamp() > deadline:
        abi.revert(ERR_EXPIRED)
    if address_from_pubkey(pubkey) != owner:
        abi.revert(ERR_OWNER_MISMATCH)

    nonce = _consume_nonce(owner)
    digest = permit_digest(
        abi.chain_id(), abi.self_address(), owner, spender, value, nonce, deadline
    )
    if not abi.verify_signature(pubkey, digest, signature):
        abi.revert(ERR_BAD_SIGNATURE)

    set_allowance(owner, spender, value)
    return True


__all__ = [
    "DOMAIN_TAG",
    "ALG_TAG",
    "ERR_EXPIRED",
    "ERR_OWNER_MISMATCH",
    "ERR_BAD_SIGNATURE",
    "address_from_pubkey",
    "domain_separator",
    "build_sign_bytes",
    "permit_digest",
    "nonces",
    "permit",
]
