"""Errors parts package public surface.

Prefer importing from ``quillchat.base.errors`` for the stable surface.
"""

from .error_code import ErrorCode
from .completion_mode import CompletionMode
from .completion_error import CompletionError
from .malformed_frame import MalformedFrameError
from .classification import classify_exception

__all__ = [
    "ErrorCode",
    "CompletionMode",
    "CompletionError",
    "MalformedFrameError",
    "classify_exception",
]
