"""
crowdfund.runtime.events_api — validated event emission.

Contracts call `emit(name, args)`; the event is stamped with the emitting
contract's address and appended to the world-state event log, so a reverted
transaction drops its events together with its state changes.

Arguments are restricted to bytes, bool and int values with identifier-like
string keys. `Event.to_dict()` produces the canonical receipt form:

    {"address": "0x..", "name": "Contributed",
     "args": [{"k": "amount", "t": "i", "v": 600}, ...]}

    t="b" => bytes encoded as 0x-prefixed hex
    t="i" => integer
    t="z" => boolean
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

from ..errors import InvalidAccess
from .context import current_frame

MAX_EVENT_NAME_BYTES = 64
MAX_KEY_LEN = 64
MAX_BYTES_LEN = 4096
MAX_INT_BITS = 256

# Keys must be identifier-like: letters/underscore, then letters/digits/underscore.
_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class Event:
    """An emitted event, stamped with the emitting contract address."""

    address: bytes
    name: bytes
    args: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        enc: List[Dict[str, Any]] = []
        for k, v in self.args.items():
            if isinstance(v, (bytes, bytearray)):
                enc.append({"k": k, "t": "b", "v": "0x" + bytes(v).hex()})
            elif isinstance(v, bool):
                enc.append({"k": k, "t": "z", "v": v})
            else:
                enc.append({"k": k, "t": "i", "v": int(v)})
        return {
            "address": "0x" + self.address.hex(),
            "name": self.name.decode("ascii", errors="replace"),
            "args": enc,
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Event":
        args: Dict[str, Any] = {}
        for item in d.get("args", []):
            t, v = item["t"], item["v"]
            if t == "b":
                args[item["k"]] = bytes.fromhex(v[2:] if v.startswith("0x") else v)
            elif t == "z":
                args[item["k"]] = bool(v)
            else:
                args[item["k"]] = int(v)
        addr = str(d["address"])
        return cls(
            address=bytes.fromhex(addr[2:] if addr.startswith("0x") else addr),
            name=str(d["name"]).encode("ascii"),
            args=args,
        )


# --- Validation helpers -------------------------------------------------------


def _check_name(name: Any) -> bytes:
    if not isinstance(name, (bytes, bytearray)):
        raise InvalidAccess("event name must be bytes", op="event")
    b = bytes(name)
    if len(b) == 0:
        raise InvalidAccess("event name must be non-empty", op="event")
    if len(b) > MAX_EVENT_NAME_BYTES:
        raise InvalidAccess("event name too long", op="event")
    return b


def _check_key(key: Any) -> str:
    if not isinstance(key, str) or not key:
        raise InvalidAccess("event key must be a non-empty str", op="event")
    if len(key) > MAX_KEY_LEN:
        raise InvalidAccess("event key too long", op="event")
    if not _KEY_RE.match(key):
        raise InvalidAccess(f"event key has invalid characters: {key!r}", op="event")
    return key


def _check_value(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        b = bytes(value)
        if len(b) > MAX_BYTES_LEN:
            raise InvalidAccess("event bytes arg too long", op="event")
        return b
    if isinstance(value, bool):
        # bool is a subclass of int, so check it before int.
        return value
    if isinstance(value, int):
        if value.bit_length() > MAX_INT_BITS:
            raise InvalidAccess("event int arg out of range", op="event")
        return int(value)
    raise InvalidAccess(
        f"unsupported event arg type {type(value).__name__}", op="event"
    )


# --- Public API -------------------------------------------------------------


def emit(name: bytes, args: Mapping[str, Any]) -> None:
    frame = current_frame()
    if frame.static:
        raise InvalidAccess("event emitted in static call", op="event")
    if not isinstance(args, Mapping):
        raise InvalidAccess("event args must be a mapping", op="event")
    checked = {_check_key(k): _check_value(v) for k, v in args.items()}
    frame.host.state.append_event(Event(frame.address, _check_name(name), checked))


__all__ = [
    "Event",
    "emit",
    "MAX_EVENT_NAME_BYTES",
    "MAX_KEY_LEN",
    "MAX_BYTES_LEN",
    "MAX_INT_BITS",
]
