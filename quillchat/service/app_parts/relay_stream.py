"""Pull-driven byte relay from the upstream response to the relay's output.

Purpose
-------
:class:`RelayStream` owns the upstream ``httpx.Response`` for the lifetime of
the relayed body. Starlette's ``StreamingResponse`` pulls from
:meth:`RelayStream.iter_chunks`, and each pull requests exactly one upstream
chunk, so the copy loop never reads ahead of the downstream consumer. Chunks
are forwarded verbatim: no decoding, no re-framing.

Termination
-----------
- Upstream end of stream: output closes, deadline cleared.
- Upstream read error: re-raised to the output consumer, deadline cleared.
- Consumer cancellation (client disconnect): token cancelled, pending
  upstream read aborted, deadline cleared.
- Deadline firing: token cancelled; a pending read is aborted immediately and
  an idle upstream connection is closed from the cancellation callback.

:meth:`RelayStream.aclose` runs once; later calls and later pulls are no-ops.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Optional

import anyio
import httpx

from ...base.cancellation import CancellationToken, CancelledError, Deadline
from ...base.logging import LogContext, log_event
from ...base.streaming import next_chunk

OUTCOME_COMPLETED = "completed"
OUTCOME_CANCELLED = "cancelled"
OUTCOME_TIMEOUT = "timeout"
OUTCOME_ERROR = "error"

OUTPUT_CLOSED_REASON = "Relay output closed by the consumer."


class RelayStream:
    """Owner of one upstream streaming response.

    Parameters:
        upstream: Upstream response opened with ``stream=True``.
        token: Cancellation token shared with the upstream request.
        deadline: Started deadline bound to ``token``.
        logger: Logger for ``relay.stream_*`` events.
        ctx: Log context of the inbound request.
    """

    def __init__(
        self,
        upstream: httpx.Response,
        token: CancellationToken,
        deadline: Deadline,
        *,
        logger: logging.Logger,
        ctx: Optional[LogContext] = None,
    ) -> None:
        self._upstream = upstream
        self._token = token
        self._deadline = deadline
        self._logger = logger
        self._ctx = ctx
        self._loop = asyncio.get_running_loop()
        self._closed = False
        self._close_task: Optional[asyncio.Task] = None
        self._chunks = 0
        self._bytes = 0
        self._remove_callback = token.add_callback(self._on_cancel)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def token(self) -> CancellationToken:
        return self._token

    @property
    def deadline(self) -> Deadline:
        return self._deadline

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        """Yield upstream chunks verbatim until the stream terminates."""
        if self._closed:
            return
        log_event(self._logger, "relay.stream_start", self._ctx, status=self._upstream.status_code)
        iterator = self._upstream.aiter_bytes()
        outcome = OUTCOME_CANCELLED
        try:
            while True:
                try:
                    chunk = await self._token.guard(next_chunk(iterator))
                except CancelledError:
                    outcome = OUTCOME_TIMEOUT if self._deadline.fired else OUTCOME_CANCELLED
                    raise
                except httpx.HTTPError:
                    outcome = OUTCOME_ERROR
                    raise
                if chunk is None:
                    outcome = OUTCOME_COMPLETED
                    return
                if chunk:
                    self._chunks += 1
                    self._bytes += len(chunk)
                    yield chunk
        finally:
            await self.aclose(outcome)

    async def aclose(self, outcome: str = OUTCOME_CANCELLED) -> None:
        """Release the upstream response and the deadline exactly once."""
        if self._closed:
            return
        self._closed = True
        self._remove_callback()
        self._deadline.clear()
        if outcome != OUTCOME_COMPLETED:
            self._token.cancel(self._token.reason or OUTPUT_CLOSED_REASON)
        with anyio.CancelScope(shield=True):
            if self._close_task is not None:
                await asyncio.gather(self._close_task, return_exceptions=True)
            else:
                await self._upstream.aclose()
        if outcome in (OUTCOME_CANCELLED, OUTCOME_TIMEOUT):
            log_event(self._logger, "relay.cancelled", self._ctx, level=logging.WARNING, reason=self._token.reason)
        log_event(
            self._logger,
            "relay.stream_end",
            self._ctx,
            level=logging.INFO if outcome == OUTCOME_COMPLETED else logging.WARNING,
            outcome=outcome,
            reason=self._token.reason if outcome != OUTCOME_COMPLETED else None,
            chunks=self._chunks,
            bytes=self._bytes,
        )

    def _on_cancel(self, _reason: Optional[str]) -> None:
        self._loop.call_soon_threadsafe(self._start_upstream_close)

    def _start_upstream_close(self) -> None:
        if self._closed or self._close_task is not None:
            return
        self._close_task = self._loop.create_task(self._upstream.aclose())


__all__ = [
    "RelayStream",
    "OUTCOME_COMPLETED",
    "OUTCOME_CANCELLED",
    "OUTCOME_TIMEOUT",
    "OUTCOME_ERROR",
]
