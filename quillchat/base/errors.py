"""Completion error taxonomy public surface.

Re-exports the one-class-per-file implementations under
``quillchat.base.errors_parts`` to keep a stable import path.
"""

from .errors_parts.error_code import ErrorCode
from .errors_parts.completion_mode import CompletionMode
from .errors_parts.completion_error import CompletionError
from .errors_parts.malformed_frame import MalformedFrameError
from .errors_parts.classification import classify_exception

__all__ = [
    "ErrorCode",
    "CompletionMode",
    "CompletionError",
    "MalformedFrameError",
    "classify_exception",
]
