"""quillchat.config.env
=====================

Environment variable names and small readers for the client and the relay.

Variables
---------
QUILLCHAT_BASE_URL      provider base URL (``https://api.openai.com``)
QUILLCHAT_API_KEY       bearer credential forwarded to the provider
QUILLCHAT_MODEL         default model id
QUILLCHAT_TEMPERATURE   default sampling temperature
QUILLCHAT_RELAY_URL     relay endpoint used in proxy mode
QUILLCHAT_MAX_BODY_BYTES  relay envelope cap override
QUILLCHAT_CORS_ORIGINS  comma-separated allowed origins for the relay

Failure Modes
-------------
Readers never raise on unset or unparsable values; they return the supplied
default so callers decide how to proceed.
"""

from __future__ import annotations

import os
from typing import Dict, Optional

ENV_BASE_URL = "QUILLCHAT_BASE_URL"
ENV_API_KEY = "QUILLCHAT_API_KEY"  # pragma: allowlist secret - env name, not a secret
ENV_MODEL = "QUILLCHAT_MODEL"
ENV_TEMPERATURE = "QUILLCHAT_TEMPERATURE"
ENV_RELAY_URL = "QUILLCHAT_RELAY_URL"
ENV_MAX_BODY_BYTES = "QUILLCHAT_MAX_BODY_BYTES"
ENV_CORS_ORIGINS = "QUILLCHAT_CORS_ORIGINS"

# Config field -> environment variable
ENV_FIELD_MAP: Dict[str, str] = {
    "base_url": ENV_BASE_URL,
    "api_key": ENV_API_KEY,
    "model": ENV_MODEL,
    "temperature": ENV_TEMPERATURE,
    "relay_url": ENV_RELAY_URL,
}


def is_placeholder(val: Optional[str]) -> bool:
    """Return True if the value looks like a placeholder/test credential.

    Heuristics: contains 'placeholder', 'changeme', 'example', or starts with
    'test_' (case-insensitive, surrounding spaces ignored).
    """
    if not val:
        return False
    s = val.strip().lower()
    return "placeholder" in s or "changeme" in s or "example" in s or s.startswith("test_")


def read_positive_int(name: str, default: int) -> int:
    """Read ``name`` as a positive int, returning ``default`` otherwise."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        val = int(raw)
    except ValueError:
        return default
    return val if val > 0 else default


def env_overrides() -> Dict[str, str]:
    """Return the config fields present in the environment."""
    out: Dict[str, str] = {}
    for field, name in ENV_FIELD_MAP.items():
        val = os.getenv(name)
        if val is not None and val.strip():
            out[field] = val.strip()
    return out


__all__ = [
    "ENV_BASE_URL",
    "ENV_API_KEY",
    "ENV_MODEL",
    "ENV_TEMPERATURE",
    "ENV_RELAY_URL",
    "ENV_MAX_BODY_BYTES",
    "ENV_CORS_ORIGINS",
    "ENV_FIELD_MAP",
    "is_placeholder",
    "read_positive_int",
    "env_overrides",
]
