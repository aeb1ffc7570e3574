"""
crowdfund.contracts.stdlib.token
================================

Deterministic helpers and constants shared by the token libraries. This
package does not touch storage or emit events by itself; it only provides
key layout, event names and validation.

Conventions
-----------
Storage keys (prefixed bytes):
  - balances:   BAL_PREFIX || <addr>
  - allowances: ALLOW_PREFIX || <owner> || b"|" || <spender>

Addresses are raw 32-byte `bytes`. The all-zero address is reserved as the
mint/burn sentinel in Transfer events and can never hold a balance.

Events (names as bytes, str keys):
  - b"Transfer" { "from": bytes, "to": bytes, "value": int }
  - b"Approval" { "owner": bytes, "spender": bytes, "value": int }

Symbols/Names:
  - Symbols: 1..16 printable ASCII, stored as given (e.g. "MAMU-IIIENERGY").
  - Names:   1..64 printable ASCII, mixed case allowed.
"""

from __future__ import annotations

from typing import Final

from crowdfund.stdlib import abi

from ..math import U256_MAX

# -----------------------------------------------------------------------------
# Public constants: storage prefixes, event names, limits, errors
# -----------------------------------------------------------------------------

BAL_PREFIX: Final[bytes] = b"tok:bal:"
ALLOW_PREFIX: Final[bytes] = b"tok:allow:"

EVT_TRANSFER: Final[bytes] = b"Transfer"
EVT_APPROVAL: Final[bytes] = b"Approval"

ZERO_ADDR: Final[bytes] = b"\x00" * 32

DEFAULT_DECIMALS: Final[int] = 18
MAX_DECIMALS: Final[int] = 36
MAX_SYMBOL_LEN: Final[int] = 16
MAX_NAME_LEN: Final[int] = 64

# Stable error tags
ERR_BAD_ADDR: Final[bytes] = b"TOKEN:BAD_ADDR"
ERR_BAD_AMOUNT: Final[bytes] = b"TOKEN:BAD_AMOUNT"
ERR_BAD_SYMBOL: Final[bytes] = b"TOKEN:BAD_SYMBOL"
ERR_BAD_NAME: Final[bytes] = b"TOKEN:BAD_NAME"
ERR_INSUFFICIENT_BALANCE: Final[bytes] = b"TOKEN:INSUFFICIENT_BALANCE"
ERR_ALLOWANCE_LOW: Final[bytes] = b"TOKEN:ALLOWANCE_LOW"
ERR_NOT_MINTER: Final[bytes] = b"TOKEN:NOT_MINTER"


# -----------------------------------------------------------------------------
# Key derivation
# -----------------------------------------------------------------------------


def key_balance(addr: bytes) -> bytes:
    require_address(addr)
    return BAL_PREFIX + bytes(addr)


def key_allow(owner: bytes, spender: bytes) -> bytes:
    require_address(owner)
    require_address(spender)
    return ALLOW_PREFIX + bytes(owner) + b"|" + bytes(spender)


# -----------------------------------------------------------------------------
# Validation helpers
# -----------------------------------------------------------------------------


def require_address(addr: bytes) -> None:
    """Ensure `addr` is non-empty bytes."""
    if not isinstance(addr, (bytes, bytearray)) or len(addr) == 0:
        abi.revert(ERR_BAD_ADDR)


def require_holder(addr: bytes) -> None:
    """Like require_address, and additionally rejects the zero sentinel."""
    require_address(addr)
    if bytes(addr) == ZERO_ADDR:
        abi.revert(ERR_BAD_ADDR)


def require_amount(n: int) -> None:
    """Ensure `n` is an integer amount in [0, 2**256-1]."""
    if not isinstance(n, int) or isinstance(n, bool) or n < 0 or n > U256_MAX:
        abi.revert(ERR_BAD_AMOUNT)


def is_printable_ascii(s: bytes) -> bool:
    if not isinstance(s, (bytes, bytearray)) or len(s) == 0:
        return False
    return all(32 <= b <= 126 for b in s)


def require_symbol(sym: bytes) -> None:
    if not is_printable_ascii(sym) or not (1 <= len(sym) <= MAX_SYMBOL_LEN):
        abi.revert(ERR_BAD_SYMBOL)


def require_name(name: bytes) -> None:
    if not is_printable_ascii(name) or not (1 <= len(name) <= MAX_NAME_LEN):
        abi.revert(ERR_BAD_NAME)


# -----------------------------------------------------------------------------
# Clamps (do not revert)
# -----------------------------------------------------------------------------


def clamp_decimals(n: int) -> int:
    if n < 0:
        return 0
    if n > MAX_DECIMALS:
        return MAX_DECIMALS
    return n


__all__ = [
    "BAL_PREFIX",
    "ALLOW_PREFIX",
    "EVT_TRANSFER",
    "EVT_APPROVAL",
    "ZERO_ADDR",
    "DEFAULT_DECIMALS",
    "MAX_DECIMALS",
    "MAX_SYMBOL_LEN",
    "MAX_NAME_LEN",
    "ERR_BAD_ADDR",
    "ERR_BAD_AMOUNT",
    "ERR_BAD_SYMBOL",
    "ERR_BAD_NAME",
    "ERR_INSUFFICIENT_BALANCE",
    "ERR_ALLOWANCE_LOW",
    "ERR_NOT_MINTER",
    "key_balance",
    "key_allow",
    "require_address",
    "require_holder",
    "require_amount",
    "require_symbol",
    "require_name",
    "is_printable_ascii",
    "clamp_decimals",
]
