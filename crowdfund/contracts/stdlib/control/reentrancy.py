"""Scoped non-reentrancy latch stored in the executing contract's storage."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Final, Iterator

from crowdfund.stdlib import abi, storage

ERR_REENTRANT: Final[bytes] = b"CONTROL:REENTRANT"

_GUARD_PREFIX: Final[bytes] = b"control:reentrancy:"


def _guard_key(scope: bytes) -> bytes:
    if not isinstance(scope, (bytes, bytearray)) or not scope:
        abi.revert(b"CONTROL:BAD_SCOPE")
    return _GUARD_PREFIX + bytes(scope)


def is_entered(scope: bytes = b"default") -> bool:
    return storage.exists(_guard_key(scope))


def require_not_entered(scope: bytes = b"default", reason: bytes = ERR_REENTRANT) -> None:
    if is_entered(scope):
        abi.revert(reason)


def guard_enter(scope: bytes = b"default", reason: bytes = ERR_REENTRANT) -> None:
    """Enter the section for `scope`; reverts with `reason` if already held."""
    require_not_entered(scope, reason)
    storage.set(_guard_key(scope), b"1")


def guard_exit(scope: bytes = b"default") -> None:
    """Release `scope`. Idempotent."""
    storage.delete(_guard_key(scope))


@contextmanager
def non_reentrant(scope: bytes = b"default", reason: bytes = ERR_REENTRANT) -> Iterator[None]:
    """Hold the `scope` latch for the body; released on every exit path."""
    guard_enter(scope, reason)
    try:
        yield
    finally:
        guard_exit(scope)


__all__ = [
    "ERR_REENTRANT",
    "is_entered",
    "require_not_entered",
    "guard_enter",
    "guard_exit",
    "non_reentrant",
]
