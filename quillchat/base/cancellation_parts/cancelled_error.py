"""Cancellation error type.

Defines the public ``CancelledError`` raised when a guarded await observes a
fired :class:`~quillchat.base.cancellation.CancellationToken`. It is distinct
from :class:`asyncio.CancelledError`, which signals task cancellation by the
event loop and must keep propagating untouched.
"""

from __future__ import annotations


class CancelledError(RuntimeError):
    """Raised when an operation is cancelled cooperatively.

    The message carries the reason supplied to ``CancellationToken.cancel``
    (for example ``"Upstream request timed out."``) so callers can surface it
    verbatim.
    """


__all__ = ["CancelledError"]
