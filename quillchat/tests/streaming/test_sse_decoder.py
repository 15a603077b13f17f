"""Unit tests for the incremental SSE frame decoder.

Covers chunk-boundary independence (including split UTF-8 code points and
split terminators), sentinel and empty payload handling, tail flushing, and
the failed state after a malformed frame.
"""

from __future__ import annotations

import pytest

from quillchat.base.errors import MalformedFrameError
from quillchat.base.streaming import SseDecoder, decode_stream, extract_delta
from quillchat.tests.helpers import sse_body, sse_event


def _split_every(data: bytes, size: int):
    return [data[i : i + size] for i in range(0, len(data), size)]


def test_single_event_yields_delta():
    body = b'data: {"choices":[{"delta":{"content":"Hi"}}]}\n\n'
    assert decode_stream([body]) == ["Hi"]  # nosec B101 - pytest assert in tests


def test_done_sentinel_yields_nothing():
    assert decode_stream([b"data: [DONE]\n\n"]) == []  # nosec B101 - pytest assert in tests


@pytest.mark.parametrize("size", [1, 2, 3, 5, 7, 64])
def test_chunking_does_not_change_output(size):
    body = sse_body("Hello", ", ", "wörld ", "🙂", "!")
    expected = decode_stream([body])
    assert expected == ["Hello", ", ", "wörld ", "🙂", "!"]  # nosec B101 - pytest assert in tests
    assert decode_stream(_split_every(body, size)) == expected  # nosec B101 - pytest assert in tests


def test_code_point_split_across_chunks_is_reassembled():
    body = sse_body("€")
    cut = body.index("€".encode("utf-8")) + 1
    decoder = SseDecoder()
    first = list(decoder.feed(body[:cut]))
    rest = list(decoder.feed(body[cut:]))
    assert first == [] and rest == ["€"]  # nosec B101 - pytest assert in tests


def test_terminator_split_across_chunks():
    decoder = SseDecoder()
    event = sse_event("A").encode("utf-8")
    assert list(decoder.feed(event[:-1])) == []  # nosec B101 - pytest assert in tests
    assert list(decoder.feed(event[-1:])) == ["A"]  # nosec B101 - pytest assert in tests
    assert decoder.buffered == ""  # nosec B101 - pytest assert in tests


def test_tail_without_blank_line_is_flushed():
    decoder = SseDecoder()
    assert list(decoder.feed(b'data: {"choices":[{"delta":{"content":"end"}}]}')) == []  # nosec B101
    assert list(decoder.flush()) == ["end"]  # nosec B101 - pytest assert in tests
    assert list(decoder.flush()) == []  # nosec B101 - pytest assert in tests


def test_blank_tail_is_ignored():
    decoder = SseDecoder()
    list(decoder.feed(sse_body("x", done=False) + b"\n  "))
    assert list(decoder.flush()) == []  # nosec B101 - pytest assert in tests


def test_non_data_lines_and_empty_payloads_are_skipped():
    body = (
        b": keep-alive\n\n"
        b"event: message\nid: 7\ndata: {\"choices\":[{\"delta\":{\"content\":\"a\"}}]}\n\n"
        b"data:\n\n"
        b"data:    \n\n"
        b"data:{\"choices\":[{\"delta\":{\"content\":\"b\"}}]}\r\n\n"
    )
    assert decode_stream([body]) == ["a", "b"]  # nosec B101 - pytest assert in tests


def test_multiple_data_lines_are_independent_payloads():
    body = (
        b'data: {"choices":[{"delta":{"content":"one"}}]}\n'
        b'data: {"choices":[{"delta":{"content":"two"}}]}\n\n'
    )
    assert decode_stream([body]) == ["one", "two"]  # nosec B101 - pytest assert in tests


def test_frames_without_content_produce_no_delta():
    body = (
        b'data: {"choices":[{"delta":{"role":"assistant"}}]}\n\n'
        b'data: {"choices":[{"delta":{"content":""}}]}\n\n'
        b'data: {"choices":[]}\n\n'
        b'data: {"usage":{"total_tokens":3}}\n\n'
        b'data: {"choices":[{"delta":{"content":42}}]}\n\n'
    )
    assert decode_stream([body]) == []  # nosec B101 - pytest assert in tests


def test_malformed_frame_fails_decoder_and_stops_output():
    decoder = SseDecoder()
    body = sse_event("ok").encode() + b"data: {not json}\n\n" + sse_event("late").encode()
    produced = []
    with pytest.raises(MalformedFrameError) as info:
        for delta in decoder.feed(body):
            produced.append(delta)
    assert produced == ["ok"]  # nosec B101 - pytest assert in tests
    assert info.value.payload == "{not json}"  # nosec B101 - pytest assert in tests
    assert decoder.failed is True  # nosec B101 - pytest assert in tests
    with pytest.raises(MalformedFrameError):
        decoder.feed(sse_event("again"))
    with pytest.raises(MalformedFrameError):
        decoder.flush()


def test_str_chunks_are_accepted():
    assert decode_stream([sse_event("s")]) == ["s"]  # nosec B101 - pytest assert in tests


def test_extract_delta_shapes():
    assert extract_delta({"choices": [{"delta": {"content": "x"}}]}) == "x"  # nosec B101
    assert extract_delta([1, 2]) is None  # nosec B101 - pytest assert in tests
    assert extract_delta({"choices": ["bad"]}) is None  # nosec B101 - pytest assert in tests
    assert extract_delta({"choices": [{"delta": None}]}) is None  # nosec B101
