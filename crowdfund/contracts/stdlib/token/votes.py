"""
Delegated voting power with block-height checkpoints.

Every holder's voting units follow their token balance. Units are counted for
the holder's *delegate*, which is the holder itself until `delegate()` names
someone else. Each change of a delegate's votes (and of total supply) appends
a checkpoint `(height, value)`; writes in the same block overwrite the last
checkpoint, so the value recorded for a block is the value at its end.

Past lookups only answer for blocks that are already closed
(`height < block_height()`), which makes them immutable.

Storage layout
--------------
    b"votes:del:" + account               -> delegatee (absent = self)
    b"votes:n:"   + account               -> checkpoint count (u256)
    b"votes:ck:"  + account + idx(8 BE)   -> height(32) || value(32)
    Total supply uses the account key b"\\x00supply".

Events
------
- b"DelegateChanged"      {"delegator", "from_delegate", "to_delegate"}
- b"DelegateVotesChanged" {"delegate", "previous", "current"}
"""

from __future__ import annotations

from typing import Final, Optional, Tuple

from crowdfund.stdlib import abi, events, storage

from ..math.safe_uint import u256_add, u256_sub
from . import ZERO_ADDR, require_address, require_holder

EVT_DELEGATE_CHANGED: Final[bytes] = b"DelegateChanged"
EVT_DELEGATE_VOTES_CHANGED: Final[bytes] = b"DelegateVotesChanged"

ERR_FUTURE_LOOKUP: Final[bytes] = b"VOTES:FUTURE_LOOKUP"

_P_DELEGATE: Final[bytes] = b"votes:del:"
_P_COUNT: Final[bytes] = b"votes:n:"
_P_CHECKPOINT: Final[bytes] = b"votes:ck:"
_SUPPLY: Final[bytes] = b"\x00supply"


# ------------------------------------------------------------------------------
# Checkpoint storage
# ------------------------------------------------------------------------------


def _count(account: bytes) -> int:
    return storage.get_int(_P_COUNT + account)


def _ck_key(account: bytes, idx: int) -> bytes:
    return _P_CHECKPOINT + account + idx.to_bytes(8, "big")


def _read(account: bytes, idx: int) -> Tuple[int, int]:
    raw = storage.get(_ck_key(account, idx)) or b""
    if len(raw) != 64:
        abi.revert(b"VOTES:CHECKPOINT_CORRUPT")
    return int.from_bytes(raw[:32], "big"), int.from_bytes(raw[32:], "big")


def _write(account: bytes, value: int) -> int:
    """Record `value` for the current block; returns the previous value."""
    height = abi.block_height()
    n = _count(account)
    prev = _read(account, n - 1) if n else None
    packed = height.to_bytes(32, "big") + value.to_bytes(32, "big")
    if prev is not None and prev[0] == height:
        storage.set(_ck_key(account, n - 1), packed)
    else:
        storage.set(_ck_key(account, n), packed)
        storage.set_int(_P_COUNT + account, n + 1)
    return prev[1] if prev is not None else 0


def _latest(account: bytes) -> int:
    n = _count(account)
    return _read(account, n - 1)[1] if n else 0


def _lookup(account: bytes, height: int) -> int:
    """Value of the last checkpoint at or before `height` (binary search)."""
    if not isinstance(height, int) or height < 0 or height >= abi.block_height():
        abi.revert(ERR_FUTURE_LOOKUP)
    lo, hi = 0, _count(account)
    while lo < hi:
        mid = (lo + hi) // 2
        if _read(account, mid)[0] > height:
            hi = mid
        else:
            lo = mid + 1
    return _read(account, lo - 1)[1] if lo else 0


# ------------------------------------------------------------------------------
# Views
# ------------------------------------------------------------------------------


def delegates(account: bytes) -> bytes:
    require_address(account)
    stored: Optional[bytes] = storage.get(_P_DELEGATE + account)
    return stored if stored else bytes(account)


def get_votes(account: bytes) -> int:
    require_address(account)
    return _latest(account)


def get_past_votes(account: bytes, height: int) -> int:
    require_address(account)
    return _lookup(account, height)


def get_past_total_supply(height: int) -> int:
    return _lookup(_SUPPLY, height)


# ------------------------------------------------------------------------------
# Mutations
# ------------------------------------------------------------------------------


def move_voting_power(src: bytes, dst: bytes, amount: int) -> None:
    """Shift `amount` votes from delegate `src` to `dst` (ZERO_ADDR = none)."""
    if src == dst or amount == 0:
        return
    if src != ZERO_ADDR:
        prev = _latest(src)
        _write(src, u256_sub(prev, amount))
        events.emit(
            EVT_DELEGATE_VOTES_CHANGED,
            {"delegate": src, "previous": prev, "current": prev - amount},
        )
    if dst != ZERO_ADDR:
        prev = _latest(dst)
        cur = u256_add(prev, amount)
        _write(dst, cur)
        events.emit(
            EVT_DELEGATE_VOTES_CHANGED,
            {"delegate": dst, "previous": prev, "current": cur},
        )


def after_transfer(frm: bytes, to: bytes, amount: int) -> None:
    """
    Account for a balance change already applied by the ledger.

    `frm == ZERO_ADDR` is a mint, `to == ZERO_ADDR` a burn.
    """
    if amount == 0:
        return
    if frm == ZERO_ADDR:
        _write(_SUPPLY, u256_add(_latest(_SUPPLY), amount))
    if to == ZERO_ADDR:
        _write(_SUPPLY, u256_sub(_latest(_SUPPLY), amount))
    move_voting_power(
        delegates(frm) if frm != ZERO_ADDR else ZERO_ADDR,
        delegates(to) if to != ZERO_ADDR else ZERO_ADDR,
        amount,
    )


def delegate(delegator: bytes, delegatee: bytes, balance: int) -> None:
    """Point `delegator`'s voting units (its whole `balance`) at `delegatee`."""
    require_holder(delegator)
    require_holder(delegatee)
    old = delegates(delegator)
    if delegatee == delegator:
        storage.delete(_P_DELEGATE + delegator)
    else:
        storage.set(_P_DELEGATE + delegator, bytes(delegatee))
    events.emit(
        EVT_DELEGATE_CHANGED,
        {"delegator": delegator, "from_delegate": old, "to_delegate": delegatee},
    )
    move_voting_power(old, bytes(delegatee), balance)


__all__ = [
    "EVT_DELEGATE_CHANGED",
    "EVT_DELEGATE_VOTES_CHANGED",
    "ERR_FUTURE_LOOKUP",
    "delegates",
    "get_votes",
    "get_past_votes",
    "get_past_total_supply",
    "move_voting_power",
    "after_transfer",
    "delegate",
]
