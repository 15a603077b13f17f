"""
Normalized completion error codes (taxonomy).

Values are lowercase snake_case and are considered a stable public contract
for logging and for UI error banners.
"""
from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Enumerated failure categories of a streamed completion.

    - ``VALIDATION``: local, pre-network rejection (empty base URL, bad envelope).
    - ``UPSTREAM_HTTP``: a non-2xx response from the provider or the relay.
    - ``TRANSPORT``: connection, TLS, DNS, or mid-stream read failure.
    - ``MALFORMED_FRAME``: a ``data:`` payload that is not valid JSON.
    - ``NO_STREAM``: a successful response that carried no body.
    - ``TIMEOUT``: a configured deadline elapsed.
    - ``CANCELLED``: the caller cancelled the call.
    """

    VALIDATION = "validation"
    UPSTREAM_HTTP = "upstream_http"
    TRANSPORT = "transport"
    MALFORMED_FRAME = "malformed_frame"
    NO_STREAM = "no_stream"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


__all__ = ["ErrorCode"]
