"""
crowdfund.runtime.journal — world state with journaled checkpoints.

`WorldState` holds everything a transaction can touch: native balances,
per-contract storage, deployed code references, account nonces and the event
log. Every write records an undo entry on the top checkpoint layer.

Key properties
--------------
- Pure Python, no I/O; safe for unit tests and simulations.
- Nested checkpoints (begin/commit/revert) with O(changes) cost.
- `commit()` folds the top layer's undo entries into its parent, so an outer
  revert still undoes writes made by committed inner calls.
- `revert()` replays the top layer's undo entries in reverse order.

Intended usage
--------------
    ws = WorldState()
    cp = ws.begin()
    ws.storage_set(addr, b"k", b"v")
    ws.revert(cp)           # or ws.commit(cp)
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from ..errors import Revert

_U256_MAX = (1 << 256) - 1

_Undo = Tuple[Any, ...]


class WorldState:
    def __init__(self) -> None:
        self._balances: Dict[bytes, int] = {}
        self._storage: Dict[bytes, Dict[bytes, bytes]] = {}
        self._code: Dict[bytes, str] = {}
        self._nonces: Dict[bytes, int] = {}
        self._events: List[Any] = []
        self._layers: List[List[_Undo]] = []

    # ------------------------------------------------------------------ #
    # Checkpointing
    # ------------------------------------------------------------------ #

    def depth(self) -> int:
        """Number of open checkpoints."""
        return len(self._layers)

    def begin(self) -> int:
        """Open a checkpoint. Returns a marker for commit()/revert()."""
        self._layers.append([])
        return len(self._layers)

    def _pop(self, marker: int) -> List[_Undo]:
        if marker != len(self._layers) or marker == 0:
            raise RuntimeError(
                f"checkpoint {marker} is not the innermost (depth={len(self._layers)})"
            )
        return self._layers.pop()

    def commit(self, marker: int) -> None:
        top = self._pop(marker)
        if self._layers:
            self._layers[-1].extend(top)

    def revert(self, marker: int) -> None:
        top = self._pop(marker)
        for entry in reversed(top):
            self._undo(entry)

    def _record(self, entry: _Undo) -> None:
        if self._layers:
            self._layers[-1].append(entry)

    def _undo(self, entry: _Undo) -> None:
        kind = entry[0]
        if kind == "bal":
            _, addr, old = entry
            if old is None:
                self._balances.pop(addr, None)
            else:
                self._balances[addr] = old
        elif kind == "sto":
            _, addr, key, old = entry
            slots = self._storage.setdefault(addr, {})
            if old is None:
                slots.pop(key, None)
            else:
                slots[key] = old
        elif kind == "code":
            _, addr, old = entry
            if old is None:
                self._code.pop(addr, None)
            else:
                self._code[addr] = old
        elif kind == "nonce":
            _, addr, old = entry
            if old is None:
                self._nonces.pop(addr, None)
            else:
                self._nonces[addr] = old
        elif kind == "ev":
            del self._events[entry[1]:]
        else:  # pragma: no cover
            raise RuntimeError(f"unknown journal entry {kind!r}")

    # ------------------------------------------------------------------ #
    # Balances
    # ------------------------------------------------------------------ #

    def balance_of(self, addr: bytes) -> int:
        return self._balances.get(addr, 0)

    def set_balance(self, addr: bytes, amount: int) -> None:
        if amount < 0 or amount > _U256_MAX:
            raise ValueError("balance out of range")
        self._record(("bal", addr, self._balances.get(addr)))
        self._balances[addr] = amount

    def move_balance(self, frm: bytes, to: bytes, amount: int) -> None:
        """Debit `frm` and credit `to`; reverts on insufficient funds."""
        if amount < 0:
            raise Revert(reason=b"VM:NEGATIVE_VALUE")
        cur = self.balance_of(frm)
        if cur < amount:
            raise Revert(reason=b"VM:INSUFFICIENT_BALANCE")
        if amount == 0 or frm == to:
            return
        self.set_balance(frm, cur - amount)
        self.set_balance(to, self.balance_of(to) + amount)

    # ------------------------------------------------------------------ #
    # Storage
    # ------------------------------------------------------------------ #

    def storage_get(self, addr: bytes, key: bytes) -> Optional[bytes]:
        slots = self._storage.get(addr)
        return None if slots is None else slots.get(key)

    def storage_set(self, addr: bytes, key: bytes, value: Optional[bytes]) -> None:
        """Write `value` at (addr, key); None deletes the slot."""
        slots = self._storage.setdefault(addr, {})
        self._record(("sto", addr, key, slots.get(key)))
        if value is None:
            slots.pop(key, None)
        else:
            slots[key] = bytes(value)

    def storage_items(self, addr: bytes) -> Mapping[bytes, bytes]:
        return dict(self._storage.get(addr, {}))

    # ------------------------------------------------------------------ #
    # Code & nonces
    # ------------------------------------------------------------------ #

    def code_of(self, addr: bytes) -> Optional[str]:
        return self._code.get(addr)

    def set_code(self, addr: bytes, code_ref: str) -> None:
        self._record(("code", addr, self._code.get(addr)))
        self._code[addr] = code_ref

    def nonce_of(self, addr: bytes) -> int:
        return self._nonces.get(addr, 0)

    def bump_nonce(self, addr: bytes) -> int:
        """Increment and return the previous nonce of `addr`."""
        cur = self._nonces.get(addr)
        self._record(("nonce", addr, cur))
        self._nonces[addr] = (cur or 0) + 1
        return cur or 0

    # ------------------------------------------------------------------ #
    # Events
    # ------------------------------------------------------------------ #

    def append_event(self, event: Any) -> None:
        self._record(("ev", len(self._events)))
        self._events.append(event)

    def event_count(self) -> int:
        return len(self._events)

    def events_since(self, start: int) -> List[Any]:
        return list(self._events[start:])

    def iter_events(self) -> Iterator[Any]:
        return iter(tuple(self._events))

    def restore_events(self, events: List[Any]) -> None:
        """Replace the event log wholesale (loading persisted state)."""
        if self._layers:
            raise RuntimeError("cannot restore events with open checkpoints")
        self._events = list(events)

    # ------------------------------------------------------------------ #
    # Persistence (hex-friendly JSON)
    # ------------------------------------------------------------------ #

    def to_dict(self) -> Dict[str, Any]:
        if self._layers:
            raise RuntimeError("cannot serialize state with open checkpoints")
        return {
            "balances": {a.hex(): v for a, v in sorted(self._balances.items())},
            "storage": {
                a.hex(): {k.hex(): v.hex() for k, v in sorted(slots.items())}
                for a, slots in sorted(self._storage.items())
                if slots
            },
            "code": {a.hex(): ref for a, ref in sorted(self._code.items())},
            "nonces": {a.hex(): n for a, n in sorted(self._nonces.items())},
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "WorldState":
        ws = cls()
        ws._balances = {bytes.fromhex(a): int(v) for a, v in d.get("balances", {}).items()}
        ws._storage = {
            bytes.fromhex(a): {bytes.fromhex(k): bytes.fromhex(v) for k, v in slots.items()}
            for a, slots in d.get("storage", {}).items()
        }
        ws._code = {bytes.fromhex(a): str(ref) for a, ref in d.get("code", {}).items()}
        ws._nonces = {bytes.fromhex(a): int(n) for a, n in d.get("nonces", {}).items()}
        return ws


__all__ = ["WorldState"]
