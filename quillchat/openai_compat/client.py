"""Streaming chat completion client for OpenAI-compatible providers.

Purpose:
- Issue one ``POST`` per call, either straight to the provider (direct mode)
  or to the same-origin relay (proxy mode), and turn the SSE response body
  into ordered text deltas delivered to a caller-supplied callback.

Behavior:
- Preconditions are checked before any I/O: an empty base URL fails fast
  with a ``VALIDATION`` error.
- ``request.stream`` is always transmitted as ``True``.
- The callback is awaited before the next body chunk is read, so a slow
  consumer bounds how far the client reads ahead.
- One attempt per call; every failure is a terminal :class:`CompletionError`
  tagged with the call's mode. Deltas already delivered are not retracted.

Timeout strategy:
- Connect/write/pool timeouts come from :func:`get_timeout_config` via the
  injected ``httpx.AsyncClient``; reads are unbounded.
- ``QC_TIMEOUT_CLIENT_SECONDS`` (``TimeoutConfig.client_timeout_seconds``)
  optionally bounds the whole call with a :class:`Deadline`; unset means the
  call is bounded only by the connect timeout and the provider.

State machine:
    Idle -> RequestSent -> StreamingDeltas -> Completed
    any state -> Failed
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import httpx

from ..base.cancellation import CancellationToken, CancelledError, Deadline
from ..base.dto import CompletionRequest, ProxyEnvelope
from ..base.errors import (
    CompletionError,
    CompletionMode,
    ErrorCode,
    MalformedFrameError,
    classify_exception,
)
from ..base.http import create_async_client
from ..base.interfaces import DeltaCallback
from ..base.logging import LogContext, get_logger, log_event
from ..base.streaming import SseDecoder, next_chunk
from ..base.timeouts import TimeoutConfig, get_timeout_config
from ..config import get_client_config
from .error_body import classify_error_body, error_body_detail, error_body_message
from .get_models import list_models as _list_models
from .helpers import bearer_headers, chat_completions_url, has_body, upstream_host

MISSING_BASE_URL_ERROR = "Base URL is required to send chat completions."
NO_STREAM_ERROR = "Chat completion response did not include a stream."
CLIENT_TIMEOUT_REASON = "Chat completion timed out."
CALLER_CANCEL_REASON = "Chat completion cancelled."

RequestLike = Union[CompletionRequest, Mapping[str, Any]]


async def _deliver(on_delta: DeltaCallback, delta: str) -> None:
    result = on_delta(delta)
    if inspect.isawaitable(result):
        await result


class ChatCompletionClient:
    """Completion client owning one outbound request per :meth:`stream` call.

    Parameters:
        http_client: Injected ``httpx.AsyncClient``. When omitted the client
            creates its own and closes it in :meth:`aclose`.
        relay_url: Relay endpoint used in proxy mode; defaults to the merged
            configuration (``QUILLCHAT_RELAY_URL``).
        timeouts: Timeout configuration; defaults to :func:`get_timeout_config`.
        logger: Optional logger; defaults to ``quillchat.client``.
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        *,
        relay_url: Optional[str] = None,
        timeouts: Optional[TimeoutConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._timeouts = timeouts or get_timeout_config()
        self._owns_client = http_client is None
        self._http = http_client or create_async_client(self._timeouts)
        self._relay_url = relay_url or get_client_config()["relay_url"]
        self._logger = logger or get_logger("quillchat.client")

    @property
    def relay_url(self) -> str:
        return self._relay_url

    async def aclose(self) -> None:
        """Close the HTTP client when this instance created it."""
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> "ChatCompletionClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def stream(
        self,
        base_url: str,
        request: RequestLike,
        on_delta: DeltaCallback,
        *,
        api_key: Optional[str] = None,
        use_proxy: bool = False,
        cancel_token: Optional[CancellationToken] = None,
    ) -> None:
        """Stream one completion, invoking ``on_delta`` once per text delta.

        Parameters:
            base_url: Provider base URL (without ``/v1/chat/completions``).
            request: :class:`CompletionRequest` or an equivalent mapping.
            on_delta: Sync or async callback; awaited before the next read.
            api_key: Optional bearer credential.
            use_proxy: Route the call through the relay.
            cancel_token: Optional caller token; cancelling it aborts the call
                with a ``CANCELLED`` error.

        Raises:
            CompletionError: On any failure (see :class:`ErrorCode`).
        """
        mode = CompletionMode.PROXY if use_proxy else CompletionMode.DIRECT
        if not base_url:
            raise CompletionError(MISSING_BASE_URL_ERROR, mode, code=ErrorCode.VALIDATION)
        request = self._coerce_request(request, mode)
        url, headers, body = self._build_call(base_url, api_key, request, use_proxy)
        ctx = LogContext(mode=mode.value, model=request.model, upstream=upstream_host(base_url))

        token = cancel_token.child() if cancel_token is not None else CancellationToken()
        deadline = Deadline(token, self._timeouts.client_timeout_seconds, CLIENT_TIMEOUT_REASON).start()
        log_event(self._logger, "stream.start", ctx, proxy=use_proxy, messages=len(request.messages))

        emitted = 0
        try:
            response = await self._send(url, headers, body, token, deadline, mode)
            try:
                await self._raise_for_status(response, token, deadline, mode, ctx)
                decoder = SseDecoder()
                iterator = response.aiter_bytes()
                while True:
                    chunk = await self._guarded(next_chunk(iterator), token, deadline, mode)
                    if chunk is None:
                        break
                    for delta in self._decoded(decoder.feed(chunk), mode):
                        await _deliver(on_delta, delta)
                        emitted += 1
                for delta in self._decoded(decoder.flush(), mode):
                    await _deliver(on_delta, delta)
                    emitted += 1
            finally:
                await response.aclose()
        except CompletionError as exc:
            log_event(
                self._logger,
                "stream.error",
                ctx,
                level=logging.WARNING,
                code=exc.code.value,
                status=exc.status,
                error=exc.message,
                emitted=emitted,
            )
            raise
        finally:
            deadline.clear()
            if cancel_token is not None:
                cancel_token.unlink_child(token)
        log_event(self._logger, "stream.finish", ctx, emitted=emitted)

    async def complete_text(
        self,
        base_url: str,
        request: RequestLike,
        *,
        api_key: Optional[str] = None,
        use_proxy: bool = False,
        cancel_token: Optional[CancellationToken] = None,
    ) -> str:
        """Stream a completion and return the concatenated text."""
        parts: List[str] = []
        await self.stream(
            base_url,
            request,
            parts.append,
            api_key=api_key,
            use_proxy=use_proxy,
            cancel_token=cancel_token,
        )
        return "".join(parts)

    async def list_models(self, base_url: str, api_key: Optional[str] = None) -> List[str]:
        """Return the model ids advertised by the provider (direct call)."""
        return await _list_models(self._http, base_url, api_key)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _coerce_request(request: RequestLike, mode: CompletionMode) -> CompletionRequest:
        if isinstance(request, CompletionRequest):
            return request
        try:
            return CompletionRequest.model_validate(dict(request))
        except ValueError as exc:
            raise CompletionError(
                f"Invalid chat completion request: {exc}",
                mode,
                code=ErrorCode.VALIDATION,
                raw=exc,
            ) from exc

    def _build_call(
        self,
        base_url: str,
        api_key: Optional[str],
        request: CompletionRequest,
        use_proxy: bool,
    ) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
        """Return ``(url, headers, json_body)`` for the call's mode."""
        headers = {"Content-Type": "application/json", "Accept": "text/event-stream"}
        if use_proxy:
            envelope = ProxyEnvelope(base_url=base_url, api_key=api_key or None, request=request)
            return self._relay_url, headers, envelope.to_payload()
        headers.update(bearer_headers(api_key))
        return chat_completions_url(base_url), headers, request.to_payload()

    async def _send(
        self,
        url: str,
        headers: Dict[str, str],
        body: Dict[str, Any],
        token: CancellationToken,
        deadline: Deadline,
        mode: CompletionMode,
    ) -> httpx.Response:
        try:
            outbound = self._http.build_request("POST", url, json=body, headers=headers)
        except (httpx.InvalidURL, UnicodeEncodeError) as exc:
            raise CompletionError(
                str(exc) or type(exc).__name__,
                mode,
                code=ErrorCode.VALIDATION,
                raw=exc,
            ) from exc
        return await self._guarded(self._http.send(outbound, stream=True), token, deadline, mode)

    async def _guarded(self, awaitable, token: CancellationToken, deadline: Deadline, mode: CompletionMode):
        """Await under ``token`` and map failures onto :class:`CompletionError`."""
        try:
            return await token.guard(awaitable)
        except CancelledError as exc:
            code = ErrorCode.TIMEOUT if deadline.fired else ErrorCode.CANCELLED
            raise CompletionError(str(exc), mode, code=code, raw=exc) from exc
        except httpx.HTTPError as exc:
            raise CompletionError(
                str(exc) or type(exc).__name__,
                mode,
                code=classify_exception(exc),
                raw=exc,
            ) from exc

    async def _raise_for_status(
        self,
        response: httpx.Response,
        token: CancellationToken,
        deadline: Deadline,
        mode: CompletionMode,
        ctx: LogContext,
    ) -> None:
        if response.is_success:
            if not has_body(response.status_code, response.headers):
                raise CompletionError(NO_STREAM_ERROR, mode, code=ErrorCode.NO_STREAM)
            return
        await self._guarded(response.aread(), token, deadline, mode)
        text = response.text
        shape = classify_error_body(text, response.reason_phrase)
        log_event(
            self._logger,
            "stream.http_error",
            ctx,
            level=logging.WARNING,
            status=response.status_code,
            shape=type(shape).__name__,
        )
        raise CompletionError(
            error_body_message(shape),
            mode,
            code=ErrorCode.UPSTREAM_HTTP,
            status=response.status_code,
            detail=error_body_detail(shape, text),
        )

    @staticmethod
    def _decoded(deltas, mode: CompletionMode):
        """Iterate decoder output, mapping ``MalformedFrameError`` to a completion error."""
        try:
            yield from deltas
        except MalformedFrameError as exc:
            raise CompletionError(str(exc), mode, code=ErrorCode.MALFORMED_FRAME, raw=exc) from exc


__all__ = [
    "ChatCompletionClient",
    "MISSING_BASE_URL_ERROR",
    "NO_STREAM_ERROR",
]
