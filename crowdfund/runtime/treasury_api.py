"""
crowdfund.runtime.treasury_api — native value held by contracts.

Contract-facing API (re-exported by crowdfund.stdlib.treasury):

- balance() -> int                  # this contract's balance
- balance_of(addr: bytes) -> int    # any address balance (read-only)
- transfer(to: bytes, amount: int)  # debit self, credit recipient
- try_transfer(to, amount) -> bool  # same, but a rejecting recipient returns False

Notes
-----
* A transfer to an address with deployed code invokes that contract's
  `receive()` entrypoint with the value attached. A contract without a payable
  `receive()` rejects the transfer (b"TREASURY:REJECTED"); a `receive()` that
  reverts fails the transfer with its own reason. Either way the value move is
  undone before the error reaches the sender.
* This call hands control to foreign code. Contracts must finish their own
  bookkeeping before calling it.
"""

from __future__ import annotations

import logging

from ..errors import ExecError, InvalidAccess, Revert
from .context import current_frame, to_hex

log = logging.getLogger(__name__)


def _check_amount(amount: int) -> int:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise Revert(reason=b"TREASURY:BAD_AMOUNT")
    if amount < 0:
        raise Revert(reason=b"TREASURY:BAD_AMOUNT")
    return amount


def balance() -> int:
    """Balance of the executing contract."""
    frame = current_frame()
    return frame.host.state.balance_of(frame.address)


def balance_of(addr: bytes) -> int:
    if not isinstance(addr, (bytes, bytearray)) or len(addr) == 0:
        raise Revert(reason=b"TREASURY:BAD_ADDR")
    return current_frame().host.state.balance_of(bytes(addr))


def _checked(to: bytes, amount: int):
    frame = current_frame()
    if frame.static:
        raise InvalidAccess("value transfer in static call", op="treasury")
    if not isinstance(to, (bytes, bytearray)) or len(to) == 0:
        raise Revert(reason=b"TREASURY:BAD_ADDR")
    amount = _check_amount(amount)
    if amount > frame.host.state.balance_of(frame.address):
        raise Revert(reason=b"TREASURY:INSUFFICIENT_BALANCE")
    return frame, amount


def transfer(to: bytes, amount: int) -> None:
    """
    Move `amount` from the executing contract to `to`.

    Atomic: on any failure no value has moved.
    """
    frame, amount = _checked(to, amount)
    frame.host.send_value(frame.address, bytes(to), amount, depth=frame.depth + 1)


def try_transfer(to: bytes, amount: int) -> bool:
    """
    Like transfer(), but a failure inside the recipient (rejecting or reverting
    `receive`) returns False instead of raising. Argument and balance errors
    still raise.
    """
    frame, amount = _checked(to, amount)
    try:
        frame.host.send_value(frame.address, bytes(to), amount, depth=frame.depth + 1)
    except ExecError as exc:
        log.debug("transfer of %d to %s failed: %s", amount, to_hex(to), exc)
        return False
    return True


__all__ = ["balance", "balance_of", "transfer", "try_transfer"]
