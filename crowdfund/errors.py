"""
crowdfund.errors — execution-layer exceptions for the contract runtime.

The runtime communicates failures via *typed exceptions* that are converted
into receipts (see crowdfund.runtime.result) at the Host boundary.

Hierarchy
---------
ExecError (base)
 ├─ Revert          : Contract-triggered revert carrying a stable reason code
 ├─ InvalidAccess   : Illegal runtime use (unknown contract/function, static
 │                    write, call depth exceeded, no active frame)
 └─ ContextError    : Invalid BlockEnv/TxEnv values

Notes
-----
* Raising `Revert` is a *semantic* failure of the transaction, not a bug; the
  Host rolls the transaction back and reports status REVERT.
* Reason codes are short ASCII bytes such as b"ESCROW:NOT_OPERATOR". They are
  part of the public interface and never change meaning.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class ExecError(Exception):
    """
    Base execution error.

    Attributes:
        message: Human-readable explanation.
        code:    Stable machine code string (e.g. 'REVERT', 'INVALID_ACCESS').
        data:    Optional structured details (kept JSON-serializable).
    """

    message: str = "execution error"
    code: str = "EXEC_ERROR"
    data: Optional[Dict[str, Any]] = field(default=None)

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.data:
            return f"{self.code}: {self.message} ({self.data})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict for receipts/logs."""
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out


class Revert(ExecError):
    """
    Contract-triggered revert.

    `reason` is the stable bytes reason code passed to `abi.revert`.

    Usage:
        raise Revert(reason=b"ESCROW:NOT_FUNDING")
    """

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        reason: bytes = b"",
        data: Optional[Dict[str, Any]] = None,
    ):
        reason = bytes(reason)
        d: Dict[str, Any] = dict(data or {})
        d.setdefault("reason", reason.decode("ascii", errors="replace"))
        super().__init__(
            message=message or d["reason"] or "reverted", code="REVERT", data=d
        )
        self.reason = reason


class InvalidAccess(ExecError):
    """
    Illegal access or forbidden operation under runtime rules.

    Examples:
      - Calling an address with no deployed code
      - Calling a function that is not part of the contract ABI
      - Writing storage inside a read-only (static) frame
      - Exceeding the maximum call depth
    """

    def __init__(
        self,
        message: str = "invalid access",
        *,
        op: Optional[str] = None,
        address: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        d: Dict[str, Any] = dict(data or {})
        if op is not None:
            d.setdefault("op", op)
        if address is not None:
            d.setdefault("address", address)
        super().__init__(message=message, code="INVALID_ACCESS", data=d or None)


class ContextError(ExecError):
    """Validation or coercion failure for BlockEnv/TxEnv."""

    def __init__(self, message: str = "invalid context"):
        super().__init__(message=message, code="CONTEXT_ERROR")


__all__ = [
    "ExecError",
    "Revert",
    "InvalidAccess",
    "ContextError",
]
