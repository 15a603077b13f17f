"""Small request-building helpers shared by the client and the relay."""

from __future__ import annotations

from typing import Dict, Optional
from urllib.parse import urlsplit

from ..config.defaults import CHAT_COMPLETIONS_PATH


def join_url(base_url: str, path: str) -> str:
    """Join ``base_url`` (trailing slashes stripped) and ``path``."""
    return f"{base_url.rstrip('/')}{path}"


def chat_completions_url(base_url: str) -> str:
    """Return ``{base_url}/v1/chat/completions``."""
    return join_url(base_url, CHAT_COMPLETIONS_PATH)


def bearer_headers(api_key: Optional[str]) -> Dict[str, str]:
    """Return an ``Authorization`` header when ``api_key`` is non-empty."""
    return {"Authorization": f"Bearer {api_key}"} if api_key else {}


def upstream_host(base_url: str) -> Optional[str]:
    """Return the host part of ``base_url`` for logging (never the credential)."""
    try:
        return urlsplit(base_url).hostname or None
    except ValueError:
        return None


def has_body(status_code: int, headers) -> bool:
    """Whether a successful response can carry a body stream.

    ``204``/``205``/``304`` and an explicit ``Content-Length: 0`` mean the
    response did not include a stream.
    """
    if status_code in (204, 205, 304):
        return False
    return headers.get("content-length", "").strip() != "0"


__all__ = [
    "join_url",
    "chat_completions_url",
    "bearer_headers",
    "upstream_host",
    "has_body",
]
