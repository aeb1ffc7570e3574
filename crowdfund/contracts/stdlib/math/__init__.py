"""
crowdfund.contracts.stdlib.math
===============================

Deterministic, integer-only math helpers for contracts.

Conventions
-----------
- All functions are pure and deterministic (aside from calling `abi.revert`).
- No floats anywhere; rounding is always floor.
- U256 helpers mimic the common on-chain numeric envelope.

Examples
--------
    from crowdfund.contracts.stdlib.math import apply_pct

    # quorum = supply * pct / 100, floor
    q = apply_pct(supply, 4)
"""

from __future__ import annotations

from typing import Final

from crowdfund.stdlib import abi

U256_MAX: Final[int] = (1 << 256) - 1

PCT_DEN: Final[int] = 100


def _revert(msg: bytes) -> None:
    abi.revert(msg)


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------


def is_uint(n: object) -> bool:
    return isinstance(n, int) and not isinstance(n, bool) and 0 <= n <= U256_MAX


def require_u256(*xs: int) -> None:
    """Revert if any value is not an int in [0, U256_MAX]."""
    for n in xs:
        if not is_uint(n):
            _revert(b"UINT:OOB")


def require_divisor(d: int) -> None:
    if d == 0:
        _revert(b"UINT:DIV0")


# ---------------------------------------------------------------------------
# Ratios
# ---------------------------------------------------------------------------


def mul_div_down(x: int, y: int, d: int) -> int:
    """floor(x * y / d) with range and divisor checks."""
    require_u256(x, y)
    require_divisor(d)
    q = (x * y) // d
    if q > U256_MAX:
        _revert(b"UINT:OOB")
    return q


def apply_pct(amount: int, pct: int) -> int:
    """floor(amount * pct / 100); pct must be within 0..100."""
    if not (0 <= pct <= PCT_DEN):
        _revert(b"MATH:BAD_PCT")
    return mul_div_down(amount, pct, PCT_DEN)


__all__ = [
    "U256_MAX",
    "PCT_DEN",
    "is_uint",
    "require_u256",
    "require_divisor",
    "mul_div_down",
    "apply_pct",
]
