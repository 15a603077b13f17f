"""HTTP-level tests for the relay endpoint using FastAPI's TestClient.

The upstream provider is an ``httpx.MockTransport`` injected through
``create_app(http_client=...)``.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from quillchat.base.timeouts import TimeoutConfig
from quillchat.service.app import create_app
from quillchat.service.app_parts import relay_core
from quillchat.service.app_parts.relay_core import (
    BODY_TOO_LARGE_ERROR,
    INVALID_JSON_ERROR,
    MISSING_BASE_URL_ERROR,
    MISSING_REQUEST_ERROR,
    NO_UPSTREAM_STREAM_ERROR,
)
from quillchat.tests.helpers import RecordingTransport, event_names, sse_body, stream_response

BASE_URL = "https://provider.example.test"


def _envelope(**overrides):
    body = {
        "baseUrl": BASE_URL,
        "apiKey": "sk-relay",
        "request": {"model": "m", "messages": [{"role": "user", "content": "hi"}], "stream": False, "top_p": 1},
    }
    body.update(overrides)
    return body


def _client(handler, **app_kwargs) -> tuple[TestClient, RecordingTransport]:
    transport = RecordingTransport(handler)
    app = create_app(
        http_client=httpx.AsyncClient(transport=transport),
        timeouts=app_kwargs.pop("timeouts", TimeoutConfig()),
        cors_origins=["http://localhost:5173"],
        **app_kwargs,
    )
    return TestClient(app), transport


def _ok(request: httpx.Request) -> httpx.Response:
    return stream_response(sse_body("hi"))


def _error_message(response) -> str:
    return response.json()["error"]["message"]


def test_health():
    client, _ = _client(_ok)
    response = client.get("/api/health")
    assert response.status_code == 200 and response.json() == {"ok": True}  # nosec B101


def test_oversized_declared_body_is_rejected_without_upstream_call(log_records):
    client, transport = _client(_ok)
    oversized = b"{" + b" " * (64 * 1024 - 1) + b"}"
    assert len(oversized) == 64 * 1024 + 1  # nosec B101 - pytest assert in tests
    response = client.post("/api/chat", content=oversized, headers={"content-type": "application/json"})
    assert response.status_code == 413  # nosec B101 - pytest assert in tests
    assert _error_message(response) == BODY_TOO_LARGE_ERROR  # nosec B101 - pytest assert in tests
    assert transport.requests == []  # nosec B101 - pytest assert in tests
    assert "relay.reject" in event_names(log_records)  # nosec B101 - pytest assert in tests


def test_body_at_cap_is_accepted():
    client, transport = _client(_ok)
    raw = json.dumps(_envelope()).encode()
    padded = raw[:-1] + b" " * (64 * 1024 - len(raw)) + b"}"
    assert len(padded) == 64 * 1024  # nosec B101 - pytest assert in tests
    response = client.post("/api/chat", content=padded)
    assert response.status_code == 200 and len(transport.requests) == 1  # nosec B101


def test_streamed_body_over_cap_is_rejected():
    client, transport = _client(_ok, max_body_bytes=128)

    def chunks():
        yield b'{"baseUrl": "' + b"a" * 100
        yield b"b" * 100 + b'"}'

    response = client.post("/api/chat", content=chunks())
    assert response.status_code == 413 and transport.requests == []  # nosec B101


def test_invalid_json_is_rejected():
    client, transport = _client(_ok)
    response = client.post("/api/chat", content=b"{not json")
    assert response.status_code == 400 and _error_message(response) == INVALID_JSON_ERROR  # nosec B101
    assert transport.requests == []  # nosec B101 - pytest assert in tests


@pytest.mark.parametrize(
    "payload, message",
    [
        (_envelope(baseUrl=None), MISSING_BASE_URL_ERROR),
        (_envelope(baseUrl=""), MISSING_BASE_URL_ERROR),
        (_envelope(baseUrl=42), MISSING_BASE_URL_ERROR),
        ({"request": {}}, MISSING_BASE_URL_ERROR),
        ([1, 2, 3], MISSING_BASE_URL_ERROR),
        (_envelope(request="hello"), MISSING_REQUEST_ERROR),
        (_envelope(request=None), MISSING_REQUEST_ERROR),
        (_envelope(request=[1]), MISSING_REQUEST_ERROR),
    ],
)
def test_envelope_validation(payload, message):
    client, transport = _client(_ok)
    response = client.post("/api/chat", json=payload)
    assert response.status_code == 400 and _error_message(response) == message  # nosec B101
    assert transport.requests == []  # nosec B101 - pytest assert in tests


def test_stream_is_relayed_verbatim(log_records):
    upstream_bytes = b'data: {"choices":[{"delta":{"content":"A"}}]}\n\n: comment\n\ndata: not-json\n\n'
    client, transport = _client(lambda request: stream_response(upstream_bytes))
    response = client.post("/api/chat", json=_envelope())

    assert response.status_code == 200  # nosec B101 - pytest assert in tests
    assert response.content == upstream_bytes  # nosec B101 - pytest assert in tests
    assert response.headers["content-type"].startswith("text/event-stream")  # nosec B101
    assert response.headers["cache-control"] == "no-cache"  # nosec B101 - pytest assert in tests
    assert response.headers["x-accel-buffering"] == "no"  # nosec B101 - pytest assert in tests

    sent = transport.requests[0]
    assert str(sent.url) == f"{BASE_URL}/v1/chat/completions"  # nosec B101 - pytest assert in tests
    assert sent.headers["authorization"] == "Bearer sk-relay"  # nosec B101 - pytest assert in tests
    forwarded = transport.last_json()
    assert forwarded["stream"] is True and forwarded["top_p"] == 1  # nosec B101
    names = event_names(log_records)
    assert "relay.stream_start" in names and "relay.stream_end" in names  # nosec B101


def test_missing_api_key_sends_no_authorization():
    client, transport = _client(_ok)
    payload = _envelope()
    del payload["apiKey"]
    assert client.post("/api/chat", json=payload).status_code == 200  # nosec B101
    assert "authorization" not in transport.requests[0].headers  # nosec B101 - pytest assert in tests


RATE_LIMITED_BODY = '{"error":{"message":"rate limited"}}'


@pytest.mark.parametrize(
    "status, text, message",
    [
        (429, RATE_LIMITED_BODY, f"Upstream error: 429 {RATE_LIMITED_BODY}"),
        (503, "", "Upstream error: 503 Service Unavailable"),
    ],
)
def test_upstream_error_status_is_passed_through(status, text, message):
    client, _ = _client(lambda request: httpx.Response(status, text=text))
    response = client.post("/api/chat", json=_envelope())
    assert response.status_code == status and _error_message(response) == message  # nosec B101


def test_upstream_rate_limit_message_is_relayed():
    client, _ = _client(lambda request: httpx.Response(429, text=RATE_LIMITED_BODY))
    response = client.post("/api/chat", json=_envelope())
    assert response.status_code == 429  # nosec B101 - pytest assert in tests
    assert "rate limited" in _error_message(response)  # nosec B101 - pytest assert in tests


@pytest.mark.parametrize(
    "overrides",
    [
        {"baseUrl": "http://[::1"},
        {"baseUrl": BASE_URL, "apiKey": "sk-éè"},
    ],
    ids=["unparsable-base-url", "non-ascii-api-key"],
)
def test_unbuildable_upstream_request_is_502(monkeypatch, overrides):
    deadlines = []

    class RecordingDeadline(relay_core.Deadline):
        def start(self):
            deadlines.append(self)
            return super().start()

    monkeypatch.setattr(relay_core, "Deadline", RecordingDeadline)
    client, transport = _client(_ok)
    response = client.post("/api/chat", json=_envelope(**overrides))

    assert response.status_code == 502 and _error_message(response)  # nosec B101
    assert transport.requests == []  # nosec B101 - pytest assert in tests
    assert len(deadlines) == 1 and not deadlines[0].active  # nosec B101


def test_network_failure_is_502():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client, _ = _client(refuse)
    response = client.post("/api/chat", json=_envelope())
    assert response.status_code == 502 and "connection refused" in _error_message(response)  # nosec B101


def test_upstream_without_body_is_502():
    client, _ = _client(lambda request: httpx.Response(204))
    response = client.post("/api/chat", json=_envelope())
    assert response.status_code == 502  # nosec B101 - pytest assert in tests
    assert _error_message(response) == NO_UPSTREAM_STREAM_ERROR  # nosec B101 - pytest assert in tests


def test_deadline_during_header_wait_is_502():
    async def hang(request):
        await asyncio.sleep(10)
        return httpx.Response(200)  # pragma: no cover - never reached

    client, _ = _client(hang, timeouts=TimeoutConfig(relay_timeout_seconds=0.05))
    response = client.post("/api/chat", json=_envelope())
    assert response.status_code == 502  # nosec B101 - pytest assert in tests
    assert _error_message(response) == "Upstream request timed out."  # nosec B101


def test_cors_preflight_allows_configured_origin():
    client, _ = _client(_ok)
    response = client.options(
        "/api/chat",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "POST"},
    )
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"  # nosec B101
