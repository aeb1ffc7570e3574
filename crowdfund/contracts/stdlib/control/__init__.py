"""
crowdfund.contracts.stdlib.control
==================================

Storage-backed control primitives for contracts.

Reentrancy guard
----------------
A non-reentrancy latch keyed by a *scope* tag:

    from crowdfund.contracts.stdlib.control import non_reentrant

    def withdraw(amount: int) -> None:
        with non_reentrant(b"escrow", reason=b"ESCROW:REENTRANT"):
            ...  # bookkeeping, then the outward transfer last

Entering a scope that is already held reverts with `reason`
(b"CONTROL:REENTRANT" by default).

Storage Layout
--------------
    key = b"control:reentrancy:" + scope   -> b"1" while held
"""

from __future__ import annotations

from .reentrancy import (
    ERR_REENTRANT,
    guard_enter,
    guard_exit,
    is_entered,
    non_reentrant,
    require_not_entered,
)

__all__ = [
    "ERR_REENTRANT",
    "guard_enter",
    "guard_exit",
    "is_entered",
    "non_reentrant",
    "require_not_entered",
]
