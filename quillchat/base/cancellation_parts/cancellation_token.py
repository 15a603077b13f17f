"""Cooperative cancellation token implementation.

Exposes the ``CancellationToken`` passed by value into the outbound request,
the streaming read loop, and the deadline timer. Firing it is idempotent and
wakes every await currently suspended in :meth:`CancellationToken.guard`.
"""

from __future__ import annotations

import asyncio
from threading import Lock
from typing import Awaitable, Callable, List, Optional, TypeVar

from .cancelled_error import CancelledError
from .state import State

T = TypeVar("T")

CancelCallback = Callable[[Optional[str]], None]


class CancellationToken:
    """A cooperative cancellation token with optional cascading semantics.

    Thread-safe for ``cancel`` + ``raise_if_cancelled`` usage. Child tokens
    inherit cancellation when the parent is cancelled. Callbacks registered
    via :meth:`add_callback` run exactly once, on the first ``cancel``.
    """

    def __init__(self, *, parent: "CancellationToken | None" = None) -> None:
        self._state = State()
        self._lock = Lock()
        self._children: List[CancellationToken] = []
        self._callbacks: List[CancelCallback] = []
        if parent is not None:
            parent.link_child(self)

    @property
    def cancelled(self) -> bool:  # noqa: D401 - short form
        """Whether cancellation has been requested."""
        return self._state.cancelled

    @property
    def reason(self) -> str | None:  # noqa: D401 - short form
        """Reason string supplied at cancel time (if any)."""
        return self._state.reason

    def cancel(self, reason: str | None = None) -> None:
        """Request cancellation, run callbacks, and cascade to children.

        A second call is a no-op and keeps the first reason.
        """
        with self._lock:
            if self._state.cancelled:
                return
            self._state.cancelled = True
            self._state.reason = reason
            children = list(self._children)
            callbacks = list(self._callbacks)
            self._callbacks.clear()
        for callback in callbacks:
            callback(reason)
        for child in children:
            child.cancel(reason)

    def add_callback(self, callback: CancelCallback) -> Callable[[], None]:
        """Register ``callback`` to run on cancellation; return a remover.

        When the token is already cancelled the callback runs immediately.
        """
        with self._lock:
            fire_now = self._state.cancelled
            if not fire_now:
                self._callbacks.append(callback)
        if fire_now:
            callback(self._state.reason)

        def _remove() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return _remove

    def link_child(self, token: "CancellationToken") -> "CancellationToken":
        """Link a child token so parent cancellation cascades (returns child)."""
        with self._lock:
            self._children.append(token)
            should_cancel = self._state.cancelled
            reason = self._state.reason
        if should_cancel:
            token.cancel(reason)
        return token

    def unlink_child(self, token: "CancellationToken") -> None:
        """Stop cascading to ``token``; unknown tokens are ignored."""
        with self._lock:
            if token in self._children:
                self._children.remove(token)

    @property
    def child_count(self) -> int:
        """Number of linked child tokens."""
        return len(self._children)

    def raise_if_cancelled(self) -> None:
        """Raise ``CancelledError`` if token is cancelled."""
        if self._state.cancelled:
            raise CancelledError(self._state.reason or "operation cancelled")

    def child(self) -> "CancellationToken":
        """Create and link a child token (shortcut)."""
        return CancellationToken(parent=self)

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token fires first.

        The awaitable runs as its own task and races a wake-up future resolved
        by :meth:`cancel`. If the token wins, the task is cancelled and
        :class:`CancelledError` is raised with the cancel reason. A result that
        is already available when both complete is returned rather than
        discarded.

        Raises:
            CancelledError: When the token is (or becomes) cancelled.
        """
        if self._state.cancelled:
            # Close coroutine objects that will never be scheduled.
            close = getattr(awaitable, "close", None)
            if callable(close):
                close()
            self.raise_if_cancelled()

        loop = asyncio.get_running_loop()
        task = asyncio.ensure_future(awaitable)
        woken: asyncio.Future[None] = loop.create_future()

        def _resolve() -> None:
            if not woken.done():
                woken.set_result(None)

        def _wake(_reason: str | None) -> None:
            loop.call_soon_threadsafe(_resolve)

        remove = self.add_callback(_wake)
        try:
            await asyncio.wait({task, woken}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            remove()
            if not woken.done():
                woken.cancel()

        if task.done():
            return task.result()
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise CancelledError(self._state.reason or "operation cancelled")

    def __repr__(self) -> str:  # pragma: no cover - introspection aid
        return (
            f"CancellationToken(cancelled={self._state.cancelled}, "
            f"reason={self._state.reason!r}, children={len(self._children)})"
        )


__all__ = ["CancellationToken"]
