"""Absolute wall-clock deadline bound to a cancellation token.

A ``Deadline`` schedules ``token.cancel(reason)`` on the running event loop
``seconds`` after :meth:`Deadline.start`. It covers everything guarded by the
token (header wait plus the whole streaming duration); there is no idle-byte
timeout. ``clear`` is idempotent and must be called on every terminal path so
no timer fires after the request has finished.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from .cancellation_token import CancellationToken


class Deadline:
    """Single-shot timer that cancels a token when the budget elapses.

    Parameters:
        token: Token to cancel when the deadline fires.
        seconds: Budget in seconds; ``None`` or non-positive values make the
            deadline inert (``start`` schedules nothing).
        reason: Reason passed to ``token.cancel``.
    """

    def __init__(
        self,
        token: CancellationToken,
        seconds: Optional[float],
        reason: str = "operation timed out",
    ) -> None:
        self._token = token
        self._seconds = seconds
        self._reason = reason
        self._handle: asyncio.TimerHandle | None = None
        self._fired = False

    @property
    def seconds(self) -> Optional[float]:
        return self._seconds

    @property
    def active(self) -> bool:
        """Whether a timer is currently scheduled."""
        return self._handle is not None

    @property
    def fired(self) -> bool:
        """Whether the deadline elapsed and cancelled the token."""
        return self._fired

    def start(self) -> "Deadline":
        """Schedule the timer on the running loop (no-op when inert or started)."""
        if self._handle is not None or self._fired:
            return self
        if self._seconds is None or self._seconds <= 0:
            return self
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._seconds, self._fire)
        return self

    def clear(self) -> None:
        """Cancel the pending timer; safe to call repeatedly."""
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.cancel()

    def _fire(self) -> None:
        self._handle = None
        self._fired = True
        self._token.cancel(self._reason)


__all__ = ["Deadline"]
