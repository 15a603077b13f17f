"""Error-body shapes of non-2xx chat completion responses.

A failed response body is classified into exactly one shape, tried in this
fixed priority order (the order is part of the public contract):

1. :class:`NestedErrorBody`  JSON ``{"error": {"message": "..."}}``
2. :class:`FlatErrorBody`    JSON ``{"message": "..."}``
3. :class:`TextErrorBody`    any other non-empty body, used verbatim
4. :class:`EmptyErrorBody`   empty body; the HTTP reason phrase, then a
   generic message, stands in
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Union

GENERIC_FAILURE_MESSAGE = "Chat completion failed."


@dataclass(frozen=True)
class NestedErrorBody:
    message: str


@dataclass(frozen=True)
class FlatErrorBody:
    message: str


@dataclass(frozen=True)
class TextErrorBody:
    text: str


@dataclass(frozen=True)
class EmptyErrorBody:
    reason_phrase: str = ""


ErrorBody = Union[NestedErrorBody, FlatErrorBody, TextErrorBody, EmptyErrorBody]


def _as_nested(parsed: Any) -> Optional[ErrorBody]:
    if not isinstance(parsed, dict):
        return None
    error = parsed.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message:
            return NestedErrorBody(message)
    return None


def _as_flat(parsed: Any) -> Optional[ErrorBody]:
    if not isinstance(parsed, dict):
        return None
    message = parsed.get("message")
    if isinstance(message, str) and message:
        return FlatErrorBody(message)
    return None


_JSON_SHAPES: Tuple[Callable[[Any], Optional[ErrorBody]], ...] = (_as_nested, _as_flat)


def classify_error_body(text: str, reason_phrase: str = "") -> ErrorBody:
    """Return the first matching shape for ``text`` (see module docstring)."""
    if not text:
        return EmptyErrorBody(reason_phrase)
    try:
        parsed = json.loads(text)
    except ValueError:
        return TextErrorBody(text)
    for shape in _JSON_SHAPES:
        body = shape(parsed)
        if body is not None:
            return body
    return TextErrorBody(text)


def error_body_message(body: ErrorBody) -> str:
    """Return the user-facing message carried by ``body``."""
    if isinstance(body, (NestedErrorBody, FlatErrorBody)):
        return body.message
    if isinstance(body, TextErrorBody):
        return body.text
    return body.reason_phrase or GENERIC_FAILURE_MESSAGE


def error_body_detail(body: ErrorBody, text: str) -> Optional[str]:
    """Return the raw detail: the body text, or the reason phrase when empty."""
    if isinstance(body, EmptyErrorBody):
        return body.reason_phrase or None
    return text


__all__ = [
    "GENERIC_FAILURE_MESSAGE",
    "NestedErrorBody",
    "FlatErrorBody",
    "TextErrorBody",
    "EmptyErrorBody",
    "ErrorBody",
    "classify_error_body",
    "error_body_message",
    "error_body_detail",
]
