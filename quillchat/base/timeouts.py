"""Unified timeout configuration for the completion client and the relay.

Centralizes every timeout value used by the package so no call site carries
an ad-hoc numeric literal.

Key Components
--------------
TimeoutConfig
    Frozen dataclass with the normalized values.

get_timeout_config()
    Returns a process-cached configuration, parsing environment overrides on
    first use and again whenever one of them changes. Supported variables
    (all optional, positive floats):
        QC_TIMEOUT_RELAY_SECONDS    absolute budget for one relayed request
        QC_TIMEOUT_CONNECT_SECONDS  TCP/TLS connect + pool acquisition
        QC_TIMEOUT_CLIENT_SECONDS   absolute budget for one client call
                                    (unset: no client-side deadline)

build_httpx_timeout()
    Translate the config into an ``httpx.Timeout`` suitable for streaming:
    bounded connect, unbounded read (the deadline, not the socket timeout,
    bounds the total duration).
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

import httpx

from ..config.defaults import (
    CONNECT_TIMEOUT_SECONDS,
    RELAY_REQUEST_TIMEOUT_SECONDS,
)

_ENV_NAMES = (
    "QC_TIMEOUT_RELAY_SECONDS",
    "QC_TIMEOUT_CONNECT_SECONDS",
    "QC_TIMEOUT_CLIENT_SECONDS",
)


@dataclass(frozen=True)
class TimeoutConfig:
    """Container for normalized timeout values (seconds).

    Attributes:
        relay_timeout_seconds: Absolute deadline for one relayed request,
            covering the upstream header wait and the entire stream.
        connect_timeout_seconds: Connection establishment bound applied to
            every outbound request.
        client_timeout_seconds: Optional absolute deadline for one completion
            client call. ``None`` leaves direct calls bounded only by the
            connect timeout.
    """

    relay_timeout_seconds: float = RELAY_REQUEST_TIMEOUT_SECONDS
    connect_timeout_seconds: float = CONNECT_TIMEOUT_SECONDS
    client_timeout_seconds: Optional[float] = None


_CACHED: TimeoutConfig | None = None
_ENV_GUARD: str | None = None


def _parse_env_float(name: str, default: float | None) -> float | None:
    """Read ``name`` as a positive float, returning ``default`` otherwise."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        val = float(raw)
    except ValueError:
        return default
    return val if val > 0 else default


def get_timeout_config() -> TimeoutConfig:
    """Return the process-cached :class:`TimeoutConfig`."""
    global _CACHED, _ENV_GUARD  # noqa: PLW0603 - documented module cache
    guard = "/".join(os.getenv(name, "") for name in _ENV_NAMES)
    if _CACHED is not None and _ENV_GUARD == guard:
        return _CACHED

    relay = _parse_env_float("QC_TIMEOUT_RELAY_SECONDS", RELAY_REQUEST_TIMEOUT_SECONDS)
    connect = _parse_env_float("QC_TIMEOUT_CONNECT_SECONDS", CONNECT_TIMEOUT_SECONDS)
    client = _parse_env_float("QC_TIMEOUT_CLIENT_SECONDS", None)

    _CACHED = TimeoutConfig(
        relay_timeout_seconds=float(relay),
        connect_timeout_seconds=float(connect),
        client_timeout_seconds=float(client) if client is not None else None,
    )
    _ENV_GUARD = guard
    return _CACHED


def build_httpx_timeout(cfg: TimeoutConfig | None = None) -> httpx.Timeout:
    """Return an ``httpx.Timeout`` with bounded connect and unbounded reads."""
    cfg = cfg or get_timeout_config()
    return httpx.Timeout(
        connect=cfg.connect_timeout_seconds,
        read=None,
        write=cfg.connect_timeout_seconds,
        pool=cfg.connect_timeout_seconds,
    )


__all__ = [
    "TimeoutConfig",
    "get_timeout_config",
    "build_httpx_timeout",
]
