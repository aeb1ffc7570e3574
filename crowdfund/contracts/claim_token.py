"""
Claim-Token Ledger
==================

Fungible claim on a campaign's pooled funds. The account that deploys the
ledger (the escrow) becomes its permanent minter; only the minter can mint or
burn, so supply tracks exactly what the escrow records.

Holders get the usual transfer/allowance surface, delegated voting power with
past-block lookups (for governance) and Ed25519 permits.

ABI
---
# views
name() -> bytes
symbol() -> bytes
decimals() -> int
total_supply() -> int
balance_of(addr) -> int
allowance(owner, spender) -> int
minter() -> bytes
nonces(owner) -> int
delegates(account) -> bytes
get_votes(account) -> int
get_past_votes(account, height) -> int
get_past_total_supply(height) -> int

# holders
transfer(to, amount) -> bool
approve(spender, amount) -> bool
transfer_from(owner, to, amount) -> bool
increase_allowance(spender, added) -> bool
decrease_allowance(spender, subtracted) -> bool
delegate(delegatee) -> None
permit(owner, spender, value, deadline, pubkey, signature) -> bool

# minter only
mint(to, amount) -> bool
burn(holder, amount) -> bool
"""

from __future__ import annotations

from typing import Final

from crowdfund.stdlib import abi, storage

from .stdlib.token import ERR_NOT_MINTER, ZERO_ADDR
from .stdlib.token import fungible, votes
from .stdlib.token import permit as _permit

K_MINTER: Final[bytes] = b"tok:meta:minter"


def init(name: bytes, symbol: bytes, decimals: int) -> None:
    fungible.init(name, symbol, decimals)
    storage.set(K_MINTER, abi.sender())


def _require_minter() -> None:
    if abi.sender() != minter():
        abi.revert(ERR_NOT_MINTER)


# ------------------------------------------------------------------------------
# Views
# ------------------------------------------------------------------------------


def name() -> bytes:
    return fungible.name()


def symbol() -> bytes:
    return fungible.symbol()


def decimals() -> int:
    return fungible.decimals()


def total_supply() -> int:
    return fungible.total_supply()


def balance_of(addr: bytes) -> int:
    return fungible.balance_of(addr)


def allowance(owner: bytes, spender: bytes) -> int:
    return fungible.allowance(owner, spender)


def minter() -> bytes:
    return storage.get(K_MINTER) or b""


def nonces(owner: bytes) -> int:
    return _permit.nonces(owner)


def delegates(account: bytes) -> bytes:
    return votes.delegates(account)


def get_votes(account: bytes) -> int:
    return votes.get_votes(account)


def get_past_votes(account: bytes, height: int) -> int:
    return votes.get_past_votes(account, height)


def get_past_total_supply(height: int) -> int:
    return votes.get_past_total_supply(height)


# ------------------------------------------------------------------------------
# Holder operations
# ------------------------------------------------------------------------------


def transfer(to: bytes, amount: int) -> bool:
    caller = abi.sender()
    fungible.transfer(caller, to, amount)
    votes.after_transfer(caller, to, amount)
    return True


def approve(spender: bytes, amount: int) -> bool:
    return fungible.approve(abi.sender(), spender, amount)


def transfer_from(owner: bytes, to: bytes, amount: int) -> bool:
    fungible.transfer_from(abi.sender(), owner, to, amount)
    votes.after_transfer(owner, to, amount)
    return True


def increase_allowance(spender: bytes, added: int) -> bool:
    return fungible.increase_allowance(abi.sender(), spender, added)


def decrease_allowance(spender: bytes, subtracted: int) -> bool:
    return fungible.decrease_allowance(abi.sender(), spender, subtracted)


def delegate(delegatee: bytes) -> None:
    caller = abi.sender()
    votes.delegate(caller, delegatee, fungible.balance_of(caller))


def permit(
    owner: bytes,
    spender: bytes,
    value: int,
    deadline: int,
    pubkey: bytes,
    signature: bytes,
) -> bool:
    return _permit.permit(owner, spender, value, deadline, pubkey, signature)


# ------------------------------------------------------------------------------
# Supply (minter only)
# ------------------------------------------------------------------------------


def mint(to: bytes, amount: int) -> bool:
    _require_minter()
    fungible.mint_to(to, amount)
    votes.after_transfer(ZERO_ADDR, to, amount)
    return True


def burn(holder: bytes, amount: int) -> bool:
    _require_minter()
    fungible.burn_from_holder(holder, amount)
    votes.after_transfer(holder, ZERO_ADDR, amount)
    return True


__all__ = [
    "name",
    "symbol",
    "decimals",
    "total_supply",
    "balance_of",
    "allowance",
    "minter",
    "nonces",
    "delegates",
    "get_votes",
    "get_past_votes",
    "get_past_total_supply",
    "transfer",
    "approve",
    "transfer_from",
    "increase_allowance",
    "decrease_allowance",
    "delegate",
    "permit",
    "mint",
    "burn",
]
