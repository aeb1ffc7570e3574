"""
Fungible ledger core
====================

Deterministic, float-free, storage-backed balances and allowances. This module
is a library: contract modules call it with an explicit `caller` so the same
code serves direct calls and relayed flows (permits).

Highlights
----------
- Storage layout from `crowdfund.contracts.stdlib.token` (prefixed keys).
- Events emitted via `crowdfund.stdlib.events`:
    - b"Transfer" {"from": bytes, "to": bytes, "value": int}
    - b"Approval" {"owner": bytes, "spender": bytes, "value": int}
- U256-checked math via `..math.safe_uint` (no silent wrap).
- `mint_to` / `burn_from_holder` change supply with no permission check;
  the contract that exposes them enforces who may call.

Library interface
-----------------
# metadata / views
name() -> bytes
symbol() -> bytes
decimals() -> int
total_supply() -> int
balance_of(addr) -> int
allowance(owner, spender) -> int

# mutations (explicit caller)
init(name, symbol, decimals) -> None
transfer(caller, to, amount) -> bool
approve(caller, spender, amount) -> bool
transfer_from(caller, owner, to, amount) -> bool
increase_allowance(caller, spender, added) -> bool
decrease_allowance(caller, spender, subtracted) -> bool
set_allowance(owner, spender, amount) -> None

# supply (unchecked permissions)
mint_to(to, amount) -> None
burn_from_holder(holder, amount) -> None
"""

from __future__ import annotations

from typing import Final

from crowdfund.stdlib import abi, events, storage

from ..math.safe_uint import u256_add, u256_sub
from . import (
    ERR_ALLOWANCE_LOW,
    ERR_INSUFFICIENT_BALANCE,
    EVT_APPROVAL,
    EVT_TRANSFER,
    ZERO_ADDR,
    clamp_decimals,
    key_allow,
    key_balance,
    require_address,
    require_amount,
    require_holder,
    require_name,
    require_symbol,
)

# ------------------------------------------------------------------------------
# Storage keys (metadata). Values are raw bytes unless noted.
# ------------------------------------------------------------------------------

K_NAME: Final[bytes] = b"tok:meta:name"  # bytes (ASCII)
K_SYMBOL: Final[bytes] = b"tok:meta:symbol"  # bytes (printable ASCII, as given)
K_DECIMALS: Final[bytes] = b"tok:meta:dec"  # u256
K_TOTAL: Final[bytes] = b"tok:meta:total"  # u256


def _set_u256(k: bytes, n: int) -> None:
    require_amount(n)
    storage.set_int(k, n)


# ------------------------------------------------------------------------------
# Metadata
# ------------------------------------------------------------------------------


def init(name: bytes, symbol: bytes, decimals: int) -> None:
    require_name(name)
    require_symbol(symbol)
    storage.set(K_NAME, bytes(name))
    storage.set(K_SYMBOL, bytes(symbol))
    storage.set_int(K_DECIMALS, clamp_decimals(int(decimals)))


def name() -> bytes:
    return storage.get(K_NAME) or b""


def symbol() -> bytes:
    return storage.get(K_SYMBOL) or b""


def decimals() -> int:
    return storage.get_int(K_DECIMALS)


def total_supply() -> int:
    return storage.get_int(K_TOTAL)


# ------------------------------------------------------------------------------
# Views
# ------------------------------------------------------------------------------


def balance_of(addr: bytes) -> int:
    return storage.get_int(key_balance(addr))


def allowance(owner: bytes, spender: bytes) -> int:
    return storage.get_int(key_allow(owner, spender))


# ------------------------------------------------------------------------------
# Mutations (explicit caller)
# ------------------------------------------------------------------------------


def _move(frm: bytes, to: bytes, amount: int) -> None:
    from_key = key_balance(frm)
    from_bal = storage.get_int(from_key)
    if from_bal < amount:
        abi.revert(ERR_INSUFFICIENT_BALANCE)
    _set_u256(from_key, u256_sub(from_bal, amount))
    to_key = key_balance(to)
    _set_u256(to_key, u256_add(storage.get_int(to_key), amount))


def transfer(caller: bytes, to: bytes, amount: int) -> bool:
    require_holder(caller)
    require_holder(to)
    require_amount(amount)

    if amount > 0:
        _move(caller, to, amount)
    events.emit(EVT_TRANSFER, {"from": caller, "to": to, "value": amount})
    return True


def set_allowance(owner: bytes, spender: bytes, amount: int) -> None:
    require_holder(owner)
    require_holder(spender)
    _set_u256(key_allow(owner, spender), amount)
    events.emit(EVT_APPROVAL, {"owner": owner, "spender": spender, "value": amount})


def approve(caller: bytes, spender: bytes, amount: int) -> bool:
    require_amount(amount)
    set_allowance(caller, spender, amount)
    return True


def transfer_from(caller: bytes, owner: bytes, to: bytes, amount: int) -> bool:
    """
    Spender (`caller`) moves `amount` from `owner` to `to` using allowance.
    """
    require_holder(caller)
    require_holder(owner)
    require_holder(to)
    require_amount(amount)

    if amount > 0:
        allow_key = key_allow(owner, caller)
        current = storage.get_int(allow_key)
        if current < amount:
            abi.revert(ERR_ALLOWANCE_LOW)
        _set_u256(allow_key, u256_sub(current, amount))
        _move(owner, to, amount)

    events.emit(EVT_TRANSFER, {"from": owner, "to": to, "value": amount})
    return True


def increase_allowance(caller: bytes, spender: bytes, added: int) -> bool:
    require_amount(added)
    set_allowance(caller, spender, u256_add(allowance(caller, spender), added))
    return True


def decrease_allowance(caller: bytes, spender: bytes, subtracted: int) -> bool:
    require_amount(subtracted)
    cur = allowance(caller, spender)
    if cur < subtracted:
        abi.revert(ERR_ALLOWANCE_LOW)
    set_allowance(caller, spender, u256_sub(cur, subtracted))
    return True


# ------------------------------------------------------------------------------
# Supply (permission checks belong to the calling contract)
# ------------------------------------------------------------------------------


def mint_to(to: bytes, amount: int) -> None:
    require_holder(to)
    require_amount(amount)
    _set_u256(K_TOTAL, u256_add(total_supply(), amount))
    to_key = key_balance(to)
    _set_u256(to_key, u256_add(storage.get_int(to_key), amount))
    events.emit(EVT_TRANSFER, {"from": ZERO_ADDR, "to": to, "value": amount})


def burn_from_holder(holder: bytes, amount: int) -> None:
    require_address(holder)
    require_amount(amount)
    bal_key = key_balance(holder)
    cur = storage.get_int(bal_key)
    if cur < amount:
        abi.revert(ERR_INSUFFICIENT_BALANCE)
    _set_u256(bal_key, u256_sub(cur, amount))
    _set_u256(K_TOTAL, u256_sub(total_supply(), amount))
    events.emit(EVT_TRANSFER, {"from": holder, "to": ZERO_ADDR, "value": amount})


__all__ = [
    "init",
    "name",
    "symbol",
    "decimals",
    "total_supply",
    "balance_of",
    "allowance",
    "transfer",
    "approve",
    "transfer_from",
    "increase_allowance",
    "decrease_allowance",
    "set_allowance",
    "mint_to",
    "burn_from_holder",
]
