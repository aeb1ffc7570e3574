"""
crowdfund.runtime.storage_api — contract-facing key/value storage.

Every call is bound to the executing contract: the active frame's address
selects the storage namespace, so the same contract module serves any number
of deployed instances.

Public API (re-exported by crowdfund.stdlib.storage)
---------------------------------------------------
- get(key: bytes) -> Optional[bytes]
- set(key: bytes, value: bytes) -> None
- delete(key: bytes) -> None
- exists(key: bytes) -> bool
- get_int(key: bytes) -> int                     # big-endian, unsigned; 0 if unset
- set_int(key: bytes, value: int) -> None        # big-endian, unsigned

Writes inside a static (read-only) frame raise InvalidAccess.
"""

from __future__ import annotations

from typing import Optional

from ..config import load_config
from ..errors import InvalidAccess
from .context import current_frame

_U256_MAX = (1 << 256) - 1


# --------------------------- Validation helpers --------------------------- #


def _check_key(key: bytes) -> bytes:
    if not isinstance(key, (bytes, bytearray)):
        raise InvalidAccess("storage key must be bytes", op="storage")
    if len(key) == 0:
        raise InvalidAccess("storage key must be non-empty", op="storage")
    cap = load_config().max_storage_key_bytes
    if len(key) > cap:
        raise InvalidAccess(f"storage key too long (>{cap} bytes)", op="storage")
    return bytes(key)


def _check_value(value: bytes) -> bytes:
    if not isinstance(value, (bytes, bytearray)):
        raise InvalidAccess("storage value must be bytes", op="storage")
    cap = load_config().max_storage_value_bytes
    if len(value) > cap:
        raise InvalidAccess(f"storage value too large (>{cap} bytes)", op="storage")
    return bytes(value)


def _writable_frame():
    frame = current_frame()
    if frame.static:
        raise InvalidAccess("storage write in static call", op="storage")
    return frame


# --------------------------- Contract-facing API --------------------------- #


def get(key: bytes) -> Optional[bytes]:
    """Return the value for `key`, or None if not set."""
    frame = current_frame()
    return frame.host.state.storage_get(frame.address, _check_key(key))


def set(key: bytes, value: bytes) -> None:
    """Set `key` to `value` (overwrites existing)."""
    frame = _writable_frame()
    frame.host.state.storage_set(frame.address, _check_key(key), _check_value(value))


def delete(key: bytes) -> None:
    """Delete `key` if present (no-op otherwise)."""
    frame = _writable_frame()
    frame.host.state.storage_set(frame.address, _check_key(key), None)


def exists(key: bytes) -> bool:
    return get(key) is not None


# ------------------------------ Typed helpers ----------------------------- #


def get_int(key: bytes) -> int:
    """Read a big-endian unsigned integer at `key`; unset reads as 0."""
    raw = get(key)
    if not raw:
        return 0
    return int.from_bytes(raw, byteorder="big", signed=False)


def set_int(key: bytes, value: int) -> None:
    """Store `value` as a 32-byte big-endian unsigned integer."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidAccess("set_int value must be int", op="storage")
    if value < 0 or value > _U256_MAX:
        raise InvalidAccess("set_int out of range (must fit in 256 bits)", op="storage")
    set(key, value.to_bytes(32, "big"))


__all__ = ["get", "set", "delete", "exists", "get_int", "set_int"]
