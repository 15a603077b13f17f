"""
Structured completion error exception type.

Constructed once at the failure site and propagated to the caller. Instances
are never retried or mutated; the UI renders the fields verbatim.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .completion_mode import CompletionMode
from .error_code import ErrorCode


@dataclass
class CompletionError(Exception):
    """Terminal failure of one streamed completion call.

    Attributes:
        message: Human-readable message (parsed provider message when available).
        mode: Failure domain of the call (direct or proxy).
        code: Normalized :class:`ErrorCode` classification.
        status: HTTP status for ``UPSTREAM_HTTP`` errors; ``None`` otherwise.
        detail: Raw response body (or status phrase) for HTTP errors.
        raw: Optional original exception for diagnostics.
    """

    message: str
    mode: CompletionMode
    code: ErrorCode = ErrorCode.UPSTREAM_HTTP
    status: Optional[int] = None
    detail: Optional[str] = None
    raw: Optional[BaseException] = None

    def __post_init__(self) -> None:
        self.mode = CompletionMode(self.mode)
        self.code = ErrorCode(self.code)
        super().__init__(self.message)

    def __str__(self) -> str:  # pragma: no cover - trivial
        status = f" {self.status}" if self.status is not None else ""
        return f"{self.mode.value}{status} {self.code.value}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable view for logging and error banners."""
        return {
            "message": self.message,
            "mode": self.mode.value,
            "code": self.code.value,
            "status": self.status,
            "detail": self.detail,
        }


__all__ = ["CompletionError"]
