"""
Contributor contract that tries to re-enter the escrow while being refunded.

`receive()` calls the escrow entrypoint named by `set_attack` (b"refund",
b"contribute" or b"" for none), records the revert reason it gets back and
then accepts the refund. With b"reject" it refuses every payment.
"""

from __future__ import annotations

from crowdfund.errors import Revert
from crowdfund.stdlib import abi, storage

K_ESCROW = b"attacker:escrow"
K_ATTACK = b"attacker:attack"
K_AMOUNT = b"attacker:amount"
K_RECEIVED = b"attacker:received"
K_REASON = b"attacker:reason"
K_ATTEMPTS = b"attacker:attempts"

PAYABLE = frozenset({"receive", "contribute"})


def init(escrow: bytes) -> None:
    storage.set(K_ESCROW, escrow)


def set_attack(fn: bytes, amount: int) -> None:
    storage.set(K_ATTACK, fn)
    storage.set_int(K_AMOUNT, amount)


def contribute() -> int:
    return abi.call(storage.get(K_ESCROW), "contribute", value=abi.value())


def refund(amount: int) -> None:
    abi.call(storage.get(K_ESCROW), "refund", amount)


def received() -> int:
    return storage.get_int(K_RECEIVED)


def attempts() -> int:
    return storage.get_int(K_ATTEMPTS)


def last_reason() -> bytes:
    return storage.get(K_REASON) or b""


def receive() -> None:
    attack = storage.get(K_ATTACK) or b""
    if attack == b"reject":
        abi.revert(b"ATTACKER:REJECT")
    storage.set_int(K_RECEIVED, received() + abi.value())
    if not attack:
        return
    storage.set_int(K_ATTEMPTS, attempts() + 1)
    amount = storage.get_int(K_AMOUNT)
    try:
        if attack == b"refund":
            abi.call(storage.get(K_ESCROW), "refund", amount)
        else:
            abi.call(storage.get(K_ESCROW), "contribute", value=amount)
    except Revert as exc:
        storage.set(K_REASON, exc.reason)


__all__ = [
    "set_attack",
    "contribute",
    "refund",
    "received",
    "attempts",
    "last_reason",
    "receive",
]
