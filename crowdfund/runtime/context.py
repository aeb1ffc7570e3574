"""
crowdfund.runtime.context — BlockEnv and call frames seen by contracts.

These lightweight environments are injected by the Host so contracts can read
chain/call metadata in a *deterministic* way. They contain only pure data
(ints/bytes) and perform strict validation.

Design notes
------------
- Addresses are raw bytes. Hex strings (with or without "0x") are accepted by
  helpers and normalized to bytes.
- `timestamp` is the host-supplied block time. There is no wall clock: time
  only moves when the host advances the block.
- The frame stack is per-thread and only mutated by the Host while its lock is
  held; contract-facing APIs read the top frame via `current_frame()`.
"""

from __future__ import annotations

import threading
from dataclasses import asdict, dataclass, replace
from typing import TYPE_CHECKING, Any, Dict, List, Union

from ..errors import ContextError, InvalidAccess

if TYPE_CHECKING:  # pragma: no cover
    from .host import Host


# ----------------------------- helpers ----------------------------- #


def _strip_0x(s: str) -> str:
    return s[2:] if s.startswith(("0x", "0X")) else s


def to_bytes(value: Union[bytes, bytearray, memoryview, str]) -> bytes:
    """
    Coerce `value` to bytes.
    - If str, interpret as hex (with or without '0x'); odd-length hex is rejected.
    - If a bytes-like object, copy to immutable bytes.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        h = _strip_0x(value.strip())
        if len(h) % 2 != 0:
            raise ContextError(f"hex string must have even length, got {len(h)}")
        try:
            return bytes.fromhex(h)
        except ValueError as e:
            raise ContextError(f"invalid hex string: {value!r}") from e
    raise ContextError(f"cannot convert type {type(value).__name__} to bytes")


def to_hex(b: Union[bytes, bytearray, memoryview]) -> str:
    """Encode bytes as 0x-prefixed lowercase hex."""
    return "0x" + bytes(b).hex()


def _require_non_negative_int(name: str, v: Any) -> int:
    if not isinstance(v, int) or isinstance(v, bool):
        raise ContextError(f"{name} must be int, got {type(v).__name__}")
    if v < 0:
        raise ContextError(f"{name} must be non-negative, got {v}")
    return v


# ----------------------------- models ------------------------------ #


@dataclass(frozen=True)
class BlockEnv:
    """
    Deterministic per-block environment.

    Fields
    ------
    height:     Block height.
    timestamp:  Block timestamp (seconds since epoch).
    chain_id:   Integer chain identifier (domain separation for permits).
    """

    height: int
    timestamp: int
    chain_id: int

    def __post_init__(self) -> None:
        _require_non_negative_int("height", self.height)
        _require_non_negative_int("timestamp", self.timestamp)
        _require_non_negative_int("chain_id", self.chain_id)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BlockEnv":
        return cls(
            height=_require_non_negative_int("height", d.get("height")),
            timestamp=_require_non_negative_int("timestamp", d.get("timestamp")),
            chain_id=_require_non_negative_int("chain_id", d.get("chain_id")),
        )

    def advanced(self, *, seconds: int = 0, blocks: int = 1) -> "BlockEnv":
        """Return the env of a later block. Time never moves backwards."""
        _require_non_negative_int("seconds", seconds)
        _require_non_negative_int("blocks", blocks)
        return replace(
            self, height=self.height + blocks, timestamp=self.timestamp + seconds
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Frame:
    """
    One active contract invocation.

    Fields
    ------
    host:     Host executing the call.
    address:  Address of the executing contract.
    caller:   Immediate caller (account or contract address).
    value:    Native value transferred with the call.
    static:   True for read-only calls; storage writes and transfers fail.
    depth:    Nesting depth (0 for the transaction entrypoint).
    """

    host: "Host"
    address: bytes
    caller: bytes
    value: int
    static: bool
    depth: int


_LOCAL = threading.local()


def _frames() -> List[Frame]:
    frames = getattr(_LOCAL, "frames", None)
    if frames is None:
        frames = _LOCAL.frames = []
    return frames


def push_frame(frame: Frame) -> None:
    _frames().append(frame)


def pop_frame() -> Frame:
    return _frames().pop()


def current_frame() -> Frame:
    frames = _frames()
    if not frames:
        raise InvalidAccess("no active contract frame", op="context")
    return frames[-1]


def call_depth() -> int:
    return len(_frames())


__all__ = [
    "to_bytes",
    "to_hex",
    "BlockEnv",
    "Frame",
    "push_frame",
    "pop_frame",
    "current_frame",
    "call_depth",
]
