"""
Scriptable contract wallet used as a campaign operator.

`receive()` behaviour is selected with `set_mode`:

- ACCEPT            : take the value
- REJECT            : revert (the escrow's transfer fails)
- REENTER_CATCH     : call back into escrow.withdraw, record the revert reason,
                      then accept the value
- REENTER_PROPAGATE : call back into escrow.withdraw and let the revert escape
"""

from __future__ import annotations

from crowdfund.errors import Revert
from crowdfund.stdlib import abi, storage

ACCEPT = 0
REJECT = 1
REENTER_CATCH = 2
REENTER_PROPAGATE = 3

K_MODE = b"wallet:mode"
K_ESCROW = b"wallet:escrow"
K_RECEIVED = b"wallet:received"
K_REASON = b"wallet:reason"

PAYABLE = frozenset({"receive"})


def set_mode(mode: int) -> None:
    storage.set_int(K_MODE, mode)


def set_escrow(addr: bytes) -> None:
    storage.set(K_ESCROW, addr)


def close() -> None:
    abi.call(storage.get(K_ESCROW), "close_funding")


def withdraw(amount: int) -> None:
    abi.call(storage.get(K_ESCROW), "withdraw", amount)


def sweep() -> int:
    return abi.call(storage.get(K_ESCROW), "sweep_all")


def received() -> int:
    return storage.get_int(K_RECEIVED)


def last_reason() -> bytes:
    return storage.get(K_REASON) or b""


def receive() -> None:
    mode = storage.get_int(K_MODE)
    if mode == REJECT:
        abi.revert(b"WALLET:REJECTED")
    if mode == REENTER_CATCH:
        try:
            abi.call(storage.get(K_ESCROW), "withdraw", 1)
        except Revert as exc:
            storage.set(K_REASON, exc.reason)
    elif mode == REENTER_PROPAGATE:
        abi.call(storage.get(K_ESCROW), "withdraw", 1)
    storage.set_int(K_RECEIVED, received() + abi.value())


__all__ = [
    "set_mode",
    "set_escrow",
    "close",
    "withdraw",
    "sweep",
    "received",
    "last_reason",
    "receive",
]
