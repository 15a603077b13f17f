"""
Error banner shown next to partially delivered output.

Built from a :class:`~quillchat.base.errors.CompletionError`; the fields are
carried verbatim so the UI can tell a bad credential (direct) from a failing
relay (proxy).
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from ..errors_parts.completion_error import CompletionError


@dataclass(frozen=True)
class ErrorBanner:
    """UI-facing description of a failed completion."""

    title: str
    message: str
    mode: str
    code: str
    status: Optional[int] = None
    detail: Optional[str] = None
    conversation_id: Optional[str] = None

    @classmethod
    def from_error(cls, error: CompletionError, conversation_id: Optional[str] = None) -> "ErrorBanner":
        if error.status is not None:
            title = f"Request failed ({error.status})"
        else:
            title = "Request failed"
        return cls(
            title=title,
            message=error.message,
            mode=error.mode.value,
            code=error.code.value,
            status=error.status,
            detail=error.detail,
            conversation_id=conversation_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = ["ErrorBanner"]
