"""Incremental Server-Sent-Events decoder for chat completion streams.

Purpose:
    Turn the raw body of an OpenAI-compatible streaming response, delivered
    in arbitrary network chunks, into the ordered sequence of text deltas
    (``choices[0].delta.content``). The decoder performs no I/O.

Framing rules:
    - Events are terminated by ``"\\n\\n"``. Bytes after the last terminator
      are kept for the next :meth:`SseDecoder.feed`; :meth:`SseDecoder.flush`
      processes a non-blank tail as one final event (providers may omit the
      trailing blank line).
    - Within an event, lines are split on ``\\r?\\n``; only ``data:`` lines
      count. The prefix and at most one following space are stripped.
    - Every ``data:`` line is an independent JSON object; lines are never
      concatenated.
    - Empty payloads and the ``[DONE]`` sentinel are consumed silently.
    - Byte input is decoded as UTF-8 incrementally, so a code point split
      across chunks is reassembled before framing.

Failure modes:
    A payload that is not valid JSON raises :class:`MalformedFrameError`.
    The decoder is then failed: later ``feed``/``flush`` calls raise again
    and no further deltas are produced for the call.
"""

from __future__ import annotations

import codecs
import json
import re
from typing import Any, Iterable, Iterator, List, Optional, Union

from ..errors import MalformedFrameError

DONE_SENTINEL = "[DONE]"
EVENT_TERMINATOR = "\n\n"
DATA_PREFIX = "data:"

_LINE_SPLIT = re.compile(r"\r?\n")

Chunk = Union[bytes, bytearray, str]


def extract_delta(parsed: Any) -> Optional[str]:
    """Return ``choices[0].delta.content`` when it is a non-empty string."""
    if not isinstance(parsed, dict):
        return None
    choices = parsed.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) and content else None


class SseDecoder:
    """Stateful, per-call SSE decoder.

    The only state is the carry-over text buffer and the incremental UTF-8
    decoder; both are discarded with the instance when the call ends.
    ``feed`` and ``flush`` return lazy iterators: deltas are extracted as the
    caller consumes them, so a consumer that awaits a callback per delta never
    has more than one event parsed ahead. Callers must exhaust the iterator
    returned by one call before invoking the next.
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._failed: Optional[MalformedFrameError] = None
        self._flushed = False

    @property
    def buffered(self) -> str:
        """Text retained after the last complete event."""
        return self._buffer

    @property
    def failed(self) -> bool:
        return self._failed is not None

    def feed(self, chunk: Chunk) -> Iterator[str]:
        """Append ``chunk`` and iterate the deltas of every completed event."""
        self._check_usable()
        if isinstance(chunk, (bytes, bytearray)):
            self._buffer += self._utf8.decode(bytes(chunk))
        else:
            self._buffer += chunk
        return self._drain()

    def flush(self) -> Iterator[str]:
        """Finish decoding and iterate the deltas of the buffered tail.

        Safe to call once per call; a second call yields nothing.
        """
        self._check_usable()
        if self._flushed:
            return iter(())
        self._flushed = True
        self._buffer += self._utf8.decode(b"", final=True)
        return self._drain_tail()

    def _check_usable(self) -> None:
        if self._failed is not None:
            raise MalformedFrameError(str(self._failed), self._failed.payload)

    def _drain(self) -> Iterator[str]:
        while True:
            boundary = self._buffer.find(EVENT_TERMINATOR)
            if boundary == -1:
                return
            event = self._buffer[:boundary]
            self._buffer = self._buffer[boundary + len(EVENT_TERMINATOR):]
            yield from self._process_event(event)

    def _drain_tail(self) -> Iterator[str]:
        yield from self._drain()
        tail, self._buffer = self._buffer, ""
        if tail.strip():
            yield from self._process_event(tail)

    def _process_event(self, event: str) -> Iterator[str]:
        for line in _LINE_SPLIT.split(event):
            if not line.startswith(DATA_PREFIX):
                continue
            payload = line[len(DATA_PREFIX):]
            if payload.startswith(" "):
                payload = payload[1:]
            payload = payload.strip()
            if not payload or payload == DONE_SENTINEL:
                continue
            try:
                parsed = json.loads(payload)
            except ValueError as exc:
                self._failed = MalformedFrameError(
                    f"Malformed stream frame: {exc}", payload
                )
                self._buffer = ""
                raise self._failed from exc
            content = extract_delta(parsed)
            if content:
                yield content


def decode_stream(chunks: Iterable[Chunk]) -> List[str]:
    """Decode a whole sequence of chunks and return every delta in order."""
    decoder = SseDecoder()
    deltas: List[str] = []
    for chunk in chunks:
        deltas.extend(decoder.feed(chunk))
    deltas.extend(decoder.flush())
    return deltas


__all__ = [
    "DONE_SENTINEL",
    "SseDecoder",
    "decode_stream",
    "extract_delta",
]
