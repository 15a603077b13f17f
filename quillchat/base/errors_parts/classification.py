"""
Error classification helpers mapping exceptions to normalized ErrorCode values.

Used at the failure site to decide which code a ``CompletionError`` carries
when the underlying cause is an exception rather than an HTTP status.
"""
from __future__ import annotations

import asyncio

import httpx

from ..cancellation_parts.cancelled_error import CancelledError
from .completion_error import CompletionError
from .error_code import ErrorCode
from .malformed_frame import MalformedFrameError


def classify_exception(exc: BaseException) -> ErrorCode:
    """Classify an exception into a normalized :class:`ErrorCode`.

    Precedence:
        1. ``CompletionError`` passthrough.
        2. ``MalformedFrameError`` -> ``MALFORMED_FRAME``.
        3. Timeouts (builtin, asyncio, httpx) -> ``TIMEOUT``.
        4. Cooperative cancellation -> ``CANCELLED``.
        5. ``httpx.HTTPStatusError`` -> ``UPSTREAM_HTTP``.
        6. Anything else (``httpx.TransportError``, ``OSError``...) -> ``TRANSPORT``.
    """
    if isinstance(exc, CompletionError):
        return exc.code
    if isinstance(exc, MalformedFrameError):
        return ErrorCode.MALFORMED_FRAME
    if isinstance(exc, (TimeoutError, asyncio.TimeoutError, httpx.TimeoutException)):
        return ErrorCode.TIMEOUT
    if isinstance(exc, CancelledError):
        return ErrorCode.CANCELLED
    if isinstance(exc, httpx.HTTPStatusError):
        return ErrorCode.UPSTREAM_HTTP
    return ErrorCode.TRANSPORT


__all__ = ["classify_exception"]
