"""Relay request handling: envelope validation and the upstream call.

Purpose:
- Validate the inbound envelope ``{baseUrl, apiKey?, request}`` with cheap
  checks first (declared length, streamed length, JSON, fields).
- Issue exactly one upstream ``POST {baseUrl}/v1/chat/completions`` under a
  cancellation token and an absolute deadline, then hand the open response
  to :class:`RelayStream`.

Failure mapping:
- Validation failures: ``413`` / ``400`` with ``{"error": {"message": ...}}``
  and no upstream request.
- Network failure, an unbuildable upstream request, or deadline before
  headers: ``502`` with the error message.
- Upstream non-2xx: the upstream status with ``"Upstream error: {status} {body}"``.
- Upstream success without a body: ``502``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx
from fastapi import Request
from fastapi.responses import JSONResponse, Response, StreamingResponse

from ...base.cancellation import CancellationToken, CancelledError, Deadline
from ...base.logging import LogContext, get_logger, log_event
from ...base.timeouts import TimeoutConfig, get_timeout_config
from ...config.defaults import RELAY_TIMEOUT_REASON
from ...openai_compat.helpers import bearer_headers, chat_completions_url, has_body, upstream_host
from .relay_stream import RelayStream

BODY_TOO_LARGE_ERROR = "Request body exceeds the allowed size limit."
INVALID_JSON_ERROR = "Invalid JSON payload."
MISSING_BASE_URL_ERROR = "A valid baseUrl is required for proxy requests."
MISSING_REQUEST_ERROR = "A valid chat completion request is required."
UPSTREAM_UNREACHABLE_ERROR = "Failed to reach upstream provider."
NO_UPSTREAM_STREAM_ERROR = "Upstream response did not include a stream."

SSE_HEADERS: Dict[str, str] = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def error_response(status_code: int, message: str) -> JSONResponse:
    """Return the relay's JSON error shape."""
    return JSONResponse({"error": {"message": message}}, status_code=status_code)


class RelayRejection(Exception):
    """Validation failure carrying the HTTP status and client-facing message."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


@dataclass
class RelayEnvelope:
    """Validated relay envelope."""

    base_url: str
    request: Dict[str, Any]
    api_key: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def upstream_body(self) -> Dict[str, Any]:
        """Return the forwarded request with ``stream`` forced to ``True``."""
        return {**self.request, "stream": True}

    def upstream_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        headers.update(bearer_headers(self.api_key))
        return headers


def declared_length_exceeds(request: Request, max_bytes: int) -> bool:
    """Whether ``Content-Length`` declares more than ``max_bytes``.

    Missing or unparsable values are left to the streamed-length check.
    """
    raw = request.headers.get("content-length")
    if raw is None:
        return False
    try:
        return int(raw) > max_bytes
    except ValueError:
        return False


async def read_limited_body(request: Request, max_bytes: int) -> bytes:
    """Read the request body, stopping as soon as it exceeds ``max_bytes``."""
    if declared_length_exceeds(request, max_bytes):
        raise RelayRejection(413, BODY_TOO_LARGE_ERROR)
    received = bytearray()
    async for chunk in request.stream():
        received.extend(chunk)
        if len(received) > max_bytes:
            raise RelayRejection(413, BODY_TOO_LARGE_ERROR)
    return bytes(received)


def parse_envelope(raw: bytes) -> RelayEnvelope:
    """Parse and validate the envelope JSON.

    Raises:
        RelayRejection: ``400`` for invalid JSON or missing fields.
    """
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise RelayRejection(400, INVALID_JSON_ERROR) from exc
    if not isinstance(payload, dict):
        raise RelayRejection(400, MISSING_BASE_URL_ERROR)
    base_url = payload.get("baseUrl")
    if not isinstance(base_url, str) or not base_url:
        raise RelayRejection(400, MISSING_BASE_URL_ERROR)
    request = payload.get("request")
    if not isinstance(request, dict):
        raise RelayRejection(400, MISSING_REQUEST_ERROR)
    api_key = payload.get("apiKey")
    extra = {k: v for k, v in payload.items() if k not in ("baseUrl", "apiKey", "request")}
    return RelayEnvelope(
        base_url=base_url,
        request=request,
        api_key=api_key if isinstance(api_key, str) and api_key else None,
        extra=extra,
    )


class ChatRelay:
    """Handler for ``POST /api/chat`` bound to one shared ``httpx.AsyncClient``.

    Parameters:
        http_client: Client used for upstream requests.
        max_body_bytes: Envelope cap in bytes.
        timeouts: Timeout configuration (``relay_timeout_seconds`` is the
            absolute per-request deadline).
        logger: Optional logger; defaults to ``quillchat.relay``.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        max_body_bytes: int,
        timeouts: Optional[TimeoutConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.http_client = http_client
        self.max_body_bytes = max_body_bytes
        self.timeouts = timeouts or get_timeout_config()
        self.logger = logger or get_logger("quillchat.relay")

    async def handle(self, request: Request) -> Response:
        try:
            envelope = parse_envelope(await read_limited_body(request, self.max_body_bytes))
        except RelayRejection as exc:
            log_event(self.logger, "relay.reject", level=logging.WARNING, status=exc.status_code, error=exc.message)
            return error_response(exc.status_code, exc.message)

        ctx = LogContext(
            mode="proxy",
            model=envelope.request.get("model") if isinstance(envelope.request.get("model"), str) else None,
            upstream=upstream_host(envelope.base_url),
        )
        token = CancellationToken()
        deadline = Deadline(token, self.timeouts.relay_timeout_seconds, RELAY_TIMEOUT_REASON).start()

        try:
            upstream = await self._open_upstream(envelope, token)
        except CancelledError as exc:
            deadline.clear()
            return self._upstream_failure(ctx, str(exc))
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as exc:
            deadline.clear()
            return self._upstream_failure(ctx, str(exc) or UPSTREAM_UNREACHABLE_ERROR)

        if not upstream.is_success:
            return await self._relay_http_error(upstream, token, deadline, ctx)

        if not has_body(upstream.status_code, upstream.headers):
            deadline.clear()
            await upstream.aclose()
            return self._upstream_failure(ctx, NO_UPSTREAM_STREAM_ERROR, status=upstream.status_code)

        stream = RelayStream(upstream, token, deadline, logger=self.logger, ctx=ctx)
        return StreamingResponse(
            stream.iter_chunks(),
            status_code=200,
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    async def _open_upstream(self, envelope: RelayEnvelope, token: CancellationToken) -> httpx.Response:
        # An unparsable baseUrl or a non-ASCII apiKey fails here, before any I/O.
        outbound = self.http_client.build_request(
            "POST",
            chat_completions_url(envelope.base_url),
            json=envelope.upstream_body(),
            headers=envelope.upstream_headers(),
        )
        return await token.guard(self.http_client.send(outbound, stream=True))

    async def _relay_http_error(
        self,
        upstream: httpx.Response,
        token: CancellationToken,
        deadline: Deadline,
        ctx: LogContext,
    ) -> Response:
        """Read the upstream error body and answer with the upstream's status."""
        try:
            await token.guard(upstream.aread())
        except (CancelledError, httpx.HTTPError) as exc:
            return self._upstream_failure(ctx, str(exc) or UPSTREAM_UNREACHABLE_ERROR, status=upstream.status_code)
        finally:
            deadline.clear()
            await upstream.aclose()
        detail = upstream.text or upstream.reason_phrase
        log_event(
            self.logger,
            "relay.upstream_error",
            ctx,
            level=logging.WARNING,
            status=upstream.status_code,
        )
        return error_response(upstream.status_code, f"Upstream error: {upstream.status_code} {detail}")

    def _upstream_failure(self, ctx: LogContext, message: str, *, status: Optional[int] = None) -> JSONResponse:
        log_event(
            self.logger,
            "relay.upstream_error",
            ctx,
            level=logging.WARNING,
            status=status,
            error=message,
        )
        return error_response(502, message)


__all__ = [
    "ChatRelay",
    "RelayEnvelope",
    "RelayRejection",
    "SSE_HEADERS",
    "error_response",
    "parse_envelope",
    "read_limited_body",
    "BODY_TOO_LARGE_ERROR",
    "INVALID_JSON_ERROR",
    "MISSING_BASE_URL_ERROR",
    "MISSING_REQUEST_ERROR",
    "NO_UPSTREAM_STREAM_ERROR",
]
