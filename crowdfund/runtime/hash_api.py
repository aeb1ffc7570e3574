"""
crowdfund.runtime.hash_api — deterministic hashing wrappers for contracts.

Goals
-----
- Strictly bytes-in, bytes-out (no implicit text/encoding).
- Optional domain separation prefix for safer composition across subsystems.

Provided APIs
-------------
- sha3_256(data: bytes, *, domain: bytes = b"") -> bytes
- keccak256(data: bytes, *, domain: bytes = b"") -> bytes     # PyCryptodome
- hash_concat_sha3_256(*chunks: bytes, domain: bytes = b"") -> bytes

Domain Separation
-----------------
If a non-empty `domain` is provided, the hash input becomes:

    b"\\x19crowdfund:" || domain || b"\\x00" || data
"""

from __future__ import annotations

import hashlib

from Crypto.Hash import keccak as _keccak

from ..errors import InvalidAccess

_PREFIX = b"\x19crowdfund:"


def _ensure_bytes(buf: object, name: str) -> bytes:
    if isinstance(buf, (bytes, bytearray, memoryview)):
        return bytes(buf)
    raise InvalidAccess(f"{name} must be bytes-like (got {type(buf).__name__})", op="hash")


def _framed(data: bytes, domain: bytes) -> bytes:
    if not domain:
        return data
    return _PREFIX + _ensure_bytes(domain, "domain") + b"\x00" + data


def sha3_256(data: bytes, *, domain: bytes = b"") -> bytes:
    return hashlib.sha3_256(_framed(_ensure_bytes(data, "data"), domain)).digest()


def keccak256(data: bytes, *, domain: bytes = b"") -> bytes:
    h = _keccak.new(digest_bits=256)
    h.update(_framed(_ensure_bytes(data, "data"), domain))
    return h.digest()


def hash_concat_sha3_256(*chunks: bytes, domain: bytes = b"") -> bytes:
    """sha3_256 over length-prefixed chunks (no concatenation ambiguity)."""
    buf = bytearray()
    for i, c in enumerate(chunks):
        c = _ensure_bytes(c, f"chunk[{i}]")
        buf += len(c).to_bytes(4, "big") + c
    return sha3_256(bytes(buf), domain=domain)


__all__ = ["sha3_256", "keccak256", "hash_concat_sha3_256"]
