"""
crowdfund.runtime.result — transaction status and ApplyResult receipts.

TxStatus models the *logical* outcome of applying a transaction:
  - SUCCESS : Execution completed; all effects committed
  - REVERT  : Execution failed; every effect was rolled back

`ApplyResult` is what `Host.apply(...)` returns. It never raises for contract
failures; `unwrap()` converts a failed result back into the original error
for callers that prefer exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..errors import ExecError, Revert
from .events_api import Event


class TxStatus(str, Enum):
    SUCCESS = "success"
    REVERT = "revert"

    @property
    def code(self) -> str:
        """Uppercase code form, e.g. 'SUCCESS' / 'REVERT'."""
        return self.value.upper()

    @property
    def is_success(self) -> bool:
        return self is TxStatus.SUCCESS

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value


@dataclass(frozen=True)
class ApplyResult:
    status: TxStatus
    return_value: Any = None
    logs: Tuple[Event, ...] = ()
    error: Optional[ExecError] = field(default=None, compare=False)

    @property
    def is_success(self) -> bool:
        return self.status.is_success

    @property
    def reason(self) -> bytes:
        """Revert reason code, or b"" when the transaction succeeded."""
        return self.error.reason if isinstance(self.error, Revert) else b""

    def unwrap(self) -> Any:
        """Return the call's return value, or raise the error that failed it."""
        if self.error is not None:
            raise self.error
        return self.return_value

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "status": self.status.code,
            "logs": [ev.to_dict() for ev in self.logs],
        }
        if self.error is not None:
            out["error"] = self.error.to_dict()
        return out


__all__ = ["TxStatus", "ApplyResult"]
