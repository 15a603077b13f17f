"""FastAPI application exposing the same-origin completion relay.

Endpoints:
- ``GET /api/health``: liveness probe.
- ``POST /api/chat``: relay one streaming chat completion to the provider
  named in the envelope (see :mod:`quillchat.service.app_parts.relay_core`).

The application is built by :func:`create_app` so tests and the dev server
can inject the upstream ``httpx.AsyncClient``, the timeout configuration and
the body cap. :func:`get_app` returns a lazily created module-level instance
for ``uvicorn quillchat.service.app:get_app --factory``.
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from .. import __version__
from ..base.http import create_async_client
from ..base.logging import get_logger
from ..base.timeouts import TimeoutConfig, get_timeout_config
from ..config import get_max_body_bytes
from ..config.defaults import RELAY_PATH, SERVICE_CORS_DEFAULT_ORIGINS
from ..config.env import ENV_CORS_ORIGINS
from .app_parts.relay_core import ChatRelay

_APP: Optional[FastAPI] = None


def cors_origins_from_env() -> List[str]:
    """Return allowed CORS origins from ``QUILLCHAT_CORS_ORIGINS``."""
    raw = os.getenv(ENV_CORS_ORIGINS, SERVICE_CORS_DEFAULT_ORIGINS)
    return [o.strip() for o in raw.split(",") if o.strip()]


def create_app(
    *,
    http_client: Optional[httpx.AsyncClient] = None,
    timeouts: Optional[TimeoutConfig] = None,
    max_body_bytes: Optional[int] = None,
    cors_origins: Optional[List[str]] = None,
) -> FastAPI:
    """Build the relay application.

    Parameters:
        http_client: Upstream client; when omitted one is created from
            ``timeouts`` and closed on application shutdown.
        timeouts: Timeout configuration; defaults to :func:`get_timeout_config`.
        max_body_bytes: Envelope cap; defaults to :func:`get_max_body_bytes`.
        cors_origins: Allowed origins; defaults to the environment.
    """
    timeouts = timeouts or get_timeout_config()
    owns_client = http_client is None
    client = http_client or create_async_client(timeouts)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        try:
            yield
        finally:
            if owns_client:
                await client.aclose()

    app = FastAPI(title="QuillChat Relay", version=__version__, lifespan=lifespan)
    app.state.relay = ChatRelay(
        client,
        max_body_bytes=max_body_bytes or get_max_body_bytes(),
        timeouts=timeouts,
        logger=get_logger("quillchat.relay"),
    )

    # -----------------------------------------------------------------------
    # CORS configuration
    # -----------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins if cors_origins is not None else cors_origins_from_env(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/health")
    def health() -> Dict[str, Any]:
        """Check the health status of the service."""
        return {"ok": True}

    @app.post(RELAY_PATH)
    async def relay_chat(request: Request) -> Response:
        """Relay one streaming chat completion upstream."""
        return await request.app.state.relay.handle(request)

    return app


def get_app() -> FastAPI:
    """Return the process-wide relay application, creating it on first use."""
    global _APP
    if _APP is None:
        _APP = create_app()
    return _APP


__all__ = ["create_app", "get_app", "cors_origins_from_env"]
