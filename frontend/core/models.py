from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

TERMINAL_STATES = frozenset({"idle", "success", "failure"})


@dataclass(frozen=True)
class AnalysisError:
    """Failure reported by the backend for the latest analysis."""

    kind: str
    message: str

    @classmethod
    def from_dict(cls, payload: Optional[Dict[str, Any]]) -> Optional["AnalysisError"]:
        if not payload:
            return None
        return cls(
            kind=str(payload.get("kind", "")),
            message=str(payload.get("message", "") or "Failed to analyze chat"),
        )


@dataclass(frozen=True)
class AnalysisSnapshot:
    """Lifecycle state returned by the backend."""

    status: str
    request_id: int = 0
    updated_at: Optional[str] = None
    result: Dict[str, Any] = field(default_factory=dict)
    error: Optional[AnalysisError] = None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "AnalysisSnapshot":
        payload = payload or {}
        result = payload.get("result")
        return cls(
            status=str(payload.get("status") or "idle"),
            request_id=int(payload.get("request_id", 0) or 0),
            updated_at=payload.get("updated_at"),
            result=result if isinstance(result, dict) else {},
            error=AnalysisError.from_dict(payload.get("error")),
        )

    @property
    def is_loading(self) -> bool:
        return self.status == "loading"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def group(self, name: str) -> Dict[str, Any]:
        """Return a metric group mapping, empty when absent."""
        value = self.result.get(name)
        return value if isinstance(value, dict) else {}

    def items(self, name: str) -> List[Any]:
        """Return a metric list, empty when absent."""
        value = self.result.get(name)
        return value if isinstance(value, list) else []
