"""Async HTTP client construction for the completion client and the relay.

Purpose:
    Build ``httpx.AsyncClient`` instances whose timeouts derive exclusively
    from :func:`get_timeout_config`. Clients are constructed explicitly and
    injected into ``ChatCompletionClient`` and the relay application; there is
    no process-wide pool, so two concurrent calls never share mutable state
    beyond what httpx itself pools per client.

External dependencies:
    - ``httpx`` for the underlying async HTTP client.

Lifecycle:
    - The creator of a client owns it and closes it (``await client.aclose()``).
"""

from __future__ import annotations

from typing import Optional

import httpx

from ..timeouts import TimeoutConfig, build_httpx_timeout


def create_async_client(
    timeouts: Optional[TimeoutConfig] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Return a new ``httpx.AsyncClient`` configured for streaming.

    Parameters:
        timeouts: Timeout configuration; defaults to :func:`get_timeout_config`.
        transport: Optional transport override (``httpx.MockTransport`` in tests).
    """
    kwargs = {"timeout": build_httpx_timeout(timeouts)}
    if transport is not None:
        kwargs["transport"] = transport
    return httpx.AsyncClient(**kwargs)


__all__ = ["create_async_client"]
