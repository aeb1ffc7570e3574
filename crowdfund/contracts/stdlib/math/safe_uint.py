"""
crowdfund.contracts.stdlib.math.safe_uint
=========================================

Checked unsigned-integer helpers for contracts.

- "checked" variants revert via `abi.revert(b"UINT:...")` on errors.
- All operations are integer-only and validate the U256 domain.
"""

from __future__ import annotations

from typing import Final

from crowdfund.stdlib import abi

from . import U256_MAX, require_u256

# Canonical error tags (short, stable)
ERR_OVER: Final[bytes] = b"UINT:OVERFLOW"
ERR_UNDER: Final[bytes] = b"UINT:UNDERFLOW"


# ---------------------------------------------------------------------------
# Checked (fail-fast on errors)
# ---------------------------------------------------------------------------


def u256_add(x: int, y: int) -> int:
    """Checked add: revert on overflow."""
    require_u256(x, y)
    s = x + y
    if s > U256_MAX:
        abi.revert(ERR_OVER)
    return s


def u256_sub(x: int, y: int) -> int:
    """Checked sub: revert on underflow (y > x)."""
    require_u256(x, y)
    if y > x:
        abi.revert(ERR_UNDER)
    return x - y


def u256_mul(x: int, y: int) -> int:
    """Checked multiply: revert on overflow."""
    require_u256(x, y)
    p = x * y
    if p > U256_MAX:
        abi.revert(ERR_OVER)
    return p


__all__ = [
    "ERR_OVER",
    "ERR_UNDER",
    "u256_add",
    "u256_sub",
    "u256_mul",
]
