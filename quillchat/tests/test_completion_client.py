"""Tests for the streaming completion client in direct and proxy modes.

The upstream is an ``httpx.MockTransport``; coroutines run under
``asyncio.run`` so no async pytest plugin is required.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Awaitable, Callable, List

import httpx
import pytest

from quillchat.base.cancellation import CancellationToken
from quillchat.base.dto import ChatMessage, CompletionRequest
from quillchat.base.errors import CompletionError, CompletionMode, ErrorCode
from quillchat.base.timeouts import TimeoutConfig
from quillchat.openai_compat.client import (
    MISSING_BASE_URL_ERROR,
    NO_STREAM_ERROR,
    ChatCompletionClient,
)
from quillchat.tests.helpers import (
    RecordingTransport,
    event_names,
    event_payloads,
    sse_body,
    sse_event,
    stream_response,
)

BASE_URL = "https://provider.example.test"
RELAY_URL = "http://relay.example.test/api/chat"


def _request() -> CompletionRequest:
    return CompletionRequest(model="m-1", messages=[ChatMessage(role="user", content="hi")], temperature=0.5)


def _run(
    transport: httpx.AsyncBaseTransport,
    body: Callable[[ChatCompletionClient], Awaitable[Any]],
    timeouts: TimeoutConfig | None = None,
) -> Any:
    async def scenario():
        async with httpx.AsyncClient(transport=transport) as http:
            client = ChatCompletionClient(http, relay_url=RELAY_URL, timeouts=timeouts or TimeoutConfig())
            return await body(client)

    return asyncio.run(scenario())


def _collect(use_proxy: bool = False, api_key: str | None = "sk-1", base_url: str = BASE_URL, **kw):
    deltas: List[str] = []

    async def body(client: ChatCompletionClient):
        try:
            await client.stream(base_url, _request(), deltas.append, api_key=api_key, use_proxy=use_proxy, **kw)
        except CompletionError as exc:
            return exc
        return None

    return deltas, body


def test_direct_stream_delivers_deltas_in_order(log_records):
    transport = RecordingTransport(lambda request: stream_response(sse_body("Hel", "lo")))
    deltas, body = _collect()
    assert _run(transport, body) is None  # nosec B101 - pytest assert in tests
    assert deltas == ["Hel", "lo"]  # nosec B101 - pytest assert in tests

    sent = transport.requests[0]
    assert str(sent.url) == f"{BASE_URL}/v1/chat/completions"  # nosec B101 - pytest assert in tests
    assert sent.headers["authorization"] == "Bearer sk-1"  # nosec B101 - pytest assert in tests
    payload = transport.last_json()
    assert payload["stream"] is True and payload["model"] == "m-1"  # nosec B101
    assert payload["temperature"] == 0.5  # nosec B101 - pytest assert in tests
    names = event_names(log_records)
    assert names[0] == "stream.start" and names[-1] == "stream.finish"  # nosec B101
    assert event_payloads(log_records, "stream.finish")[0]["emitted"] == 2  # nosec B101


def test_direct_without_api_key_sends_no_authorization():
    transport = RecordingTransport(lambda request: stream_response(sse_body("x")))
    _, body = _collect(api_key=None)
    _run(transport, body)
    assert "authorization" not in transport.requests[0].headers  # nosec B101 - pytest assert in tests


def test_direct_401_nested_error_message(log_records):
    error_text = json.dumps({"error": {"message": "bad key"}})
    transport = RecordingTransport(lambda request: httpx.Response(401, text=error_text))
    deltas, body = _collect()
    err = _run(transport, body)
    assert isinstance(err, CompletionError)  # nosec B101 - pytest assert in tests
    assert err.mode is CompletionMode.DIRECT and err.code is ErrorCode.UPSTREAM_HTTP  # nosec B101
    assert err.status == 401 and err.message == "bad key"  # nosec B101 - pytest assert in tests
    assert err.detail == error_text and deltas == []  # nosec B101 - pytest assert in tests
    assert "stream.http_error" in event_names(log_records)  # nosec B101 - pytest assert in tests
    assert "stream.error" in event_names(log_records)  # nosec B101 - pytest assert in tests


@pytest.mark.parametrize(
    "status, text, expected_message, expected_detail",
    [
        (400, '{"message": "flat"}', "flat", '{"message": "flat"}'),
        (500, "upstream exploded", "upstream exploded", "upstream exploded"),
        (429, "", "Too Many Requests", "Too Many Requests"),
        (502, '{"error": "not an object"}', '{"error": "not an object"}', '{"error": "not an object"}'),
    ],
)
def test_error_body_fallback_chain(status, text, expected_message, expected_detail):
    transport = RecordingTransport(lambda request: httpx.Response(status, text=text))
    _, body = _collect()
    err = _run(transport, body)
    assert err.status == status and err.message == expected_message  # nosec B101
    assert err.detail == expected_detail  # nosec B101 - pytest assert in tests


def test_proxy_mode_posts_envelope_to_relay():
    transport = RecordingTransport(lambda request: stream_response(sse_body("via relay")))
    deltas, body = _collect(use_proxy=True)
    assert _run(transport, body) is None  # nosec B101 - pytest assert in tests
    assert deltas == ["via relay"]  # nosec B101 - pytest assert in tests

    sent = transport.requests[0]
    assert str(sent.url) == RELAY_URL  # nosec B101 - pytest assert in tests
    assert "authorization" not in sent.headers  # nosec B101 - pytest assert in tests
    payload = transport.last_json()
    assert payload["baseUrl"] == BASE_URL and payload["apiKey"] == "sk-1"  # nosec B101
    assert payload["request"]["stream"] is True  # nosec B101 - pytest assert in tests


def test_proxy_mode_errors_are_tagged_proxy():
    relay_error = json.dumps({"error": {"message": "A valid baseUrl is required for proxy requests."}})
    transport = RecordingTransport(lambda request: httpx.Response(400, text=relay_error))
    _, body = _collect(use_proxy=True)
    err = _run(transport, body)
    assert err.mode is CompletionMode.PROXY and err.status == 400  # nosec B101
    assert err.message == "A valid baseUrl is required for proxy requests."  # nosec B101


def test_empty_base_url_fails_before_any_request():
    transport = RecordingTransport(lambda request: stream_response(sse_body("never")))
    _, body = _collect(base_url="")
    err = _run(transport, body)
    assert err.code is ErrorCode.VALIDATION and err.message == MISSING_BASE_URL_ERROR  # nosec B101
    assert transport.requests == []  # nosec B101 - pytest assert in tests


@pytest.mark.parametrize(
    "base_url, api_key",
    [("http://[::1", "sk-1"), (BASE_URL, "sk-é")],
    ids=["unparsable-base-url", "non-ascii-api-key"],
)
def test_unbuildable_request_is_a_validation_error(base_url, api_key, log_records):
    transport = RecordingTransport(lambda request: stream_response(sse_body("never")))
    deltas, body = _collect(base_url=base_url, api_key=api_key)
    err = _run(transport, body)
    assert isinstance(err, CompletionError)  # nosec B101 - pytest assert in tests
    assert err.code is ErrorCode.VALIDATION and err.mode is CompletionMode.DIRECT  # nosec B101
    assert transport.requests == [] and deltas == []  # nosec B101 - pytest assert in tests
    assert "stream.error" in event_names(log_records)  # nosec B101 - pytest assert in tests


def test_caller_token_does_not_accumulate_children():
    token = CancellationToken()
    transport = RecordingTransport(lambda request: stream_response(sse_body("a")))

    async def body(client: ChatCompletionClient):
        for _ in range(3):
            await client.stream(BASE_URL, _request(), lambda d: None, cancel_token=token)

    _run(transport, body)
    assert token.child_count == 0 and not token.cancelled  # nosec B101 - pytest assert in tests


def test_invalid_request_mapping_is_a_validation_error():
    async def body(client: ChatCompletionClient):
        with pytest.raises(CompletionError) as info:
            await client.stream(BASE_URL, {"model": "m", "messages": "nope"}, lambda d: None)
        return info.value

    err = _run(RecordingTransport(lambda request: stream_response(b"")), body)
    assert err.code is ErrorCode.VALIDATION  # nosec B101 - pytest assert in tests


@pytest.mark.parametrize("status, headers", [(204, {}), (200, {"content-length": "0"})])
def test_success_without_body_is_no_stream(status, headers):
    transport = RecordingTransport(lambda request: httpx.Response(status, headers=headers))
    _, body = _collect()
    err = _run(transport, body)
    assert err.code is ErrorCode.NO_STREAM and err.message == NO_STREAM_ERROR  # nosec B101


def test_transport_failure_is_classified():
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    _, body = _collect()
    err = _run(RecordingTransport(refuse), body)
    assert err.code is ErrorCode.TRANSPORT and err.status is None  # nosec B101
    assert "connection refused" in err.message  # nosec B101 - pytest assert in tests


def test_malformed_frame_keeps_earlier_deltas():
    content = sse_event("before").encode() + b"data: {oops\n\n" + sse_event("after").encode()
    transport = RecordingTransport(lambda request: stream_response(content))
    deltas, body = _collect()
    err = _run(transport, body)
    assert err.code is ErrorCode.MALFORMED_FRAME  # nosec B101 - pytest assert in tests
    assert deltas == ["before"]  # nosec B101 - pytest assert in tests


def test_async_callback_is_awaited_before_next_read():
    order: List[str] = []

    async def chunks():
        order.append("read:1")
        yield sse_event("A").encode()
        order.append("read:2")
        yield sse_event("B").encode()

    async def on_delta(delta: str) -> None:
        await asyncio.sleep(0.01)
        order.append(f"cb:{delta}")

    transport = RecordingTransport(lambda request: httpx.Response(200, content=chunks()))

    async def body(client: ChatCompletionClient):
        await client.stream(BASE_URL, _request(), on_delta)

    _run(transport, body)
    assert order == ["read:1", "cb:A", "read:2", "cb:B"]  # nosec B101 - pytest assert in tests


def _stalled_body():
    async def chunks():
        yield sse_event("A").encode()
        await asyncio.Event().wait()
        yield b""  # pragma: no cover - never reached

    return lambda request: httpx.Response(200, content=chunks())


def test_caller_cancellation_aborts_stream():
    token = CancellationToken()
    deltas: List[str] = []

    def on_delta(delta: str) -> None:
        deltas.append(delta)
        token.cancel("user pressed stop")

    async def body(client: ChatCompletionClient):
        with pytest.raises(CompletionError) as info:
            await client.stream(BASE_URL, _request(), on_delta, cancel_token=token)
        return info.value

    err = _run(RecordingTransport(_stalled_body()), body)
    assert err.code is ErrorCode.CANCELLED and err.message == "user pressed stop"  # nosec B101
    assert deltas == ["A"]  # nosec B101 - pytest assert in tests


def test_client_deadline_maps_to_timeout():
    deltas: List[str] = []

    async def body(client: ChatCompletionClient):
        with pytest.raises(CompletionError) as info:
            await client.stream(BASE_URL, _request(), deltas.append)
        return info.value

    err = _run(RecordingTransport(_stalled_body()), body, TimeoutConfig(client_timeout_seconds=0.05))
    assert err.code is ErrorCode.TIMEOUT and deltas == ["A"]  # nosec B101 - pytest assert in tests


def test_complete_text_concatenates():
    transport = RecordingTransport(lambda request: stream_response(sse_body("a", "b", "c")))

    async def body(client: ChatCompletionClient):
        return await client.complete_text(BASE_URL, _request())

    assert _run(transport, body) == "abc"  # nosec B101 - pytest assert in tests
