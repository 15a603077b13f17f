"""Shared builders for SSE bodies and mock upstream transports."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Optional

import httpx


def sse_event(content: str) -> str:
    """Return one ``data:`` event carrying ``content`` as a delta."""
    return "data: " + json.dumps({"choices": [{"delta": {"content": content}}]}) + "\n\n"


def sse_body(*deltas: str, done: bool = True) -> bytes:
    """Return a complete SSE body for ``deltas`` (optionally ``[DONE]``-terminated)."""
    text = "".join(sse_event(d) for d in deltas)
    if done:
        text += "data: [DONE]\n\n"
    return text.encode("utf-8")


class RecordingTransport(httpx.MockTransport):
    """``MockTransport`` that keeps every request it handled."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: List[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    def last_json(self) -> Dict[str, Any]:
        return json.loads(self.requests[-1].content)


def stream_response(body: bytes, status_code: int = 200, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
    """Return a ``text/event-stream`` response with ``body``."""
    merged = {"content-type": "text/event-stream"}
    merged.update(headers or {})
    return httpx.Response(status_code, content=body, headers=merged)


def event_names(records: List[logging.LogRecord]) -> List[str]:
    """Return the ``event`` field of every structured record."""
    names: List[str] = []
    for record in records:
        try:
            payload = json.loads(record.getMessage())
        except ValueError:
            continue
        if isinstance(payload, dict) and "event" in payload:
            names.append(payload["event"])
    return names


def event_payloads(records: List[logging.LogRecord], event: str) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for record in records:
        try:
            payload = json.loads(record.getMessage())
        except ValueError:
            continue
        if isinstance(payload, dict) and payload.get("event") == event:
            out.append(payload)
    return out
