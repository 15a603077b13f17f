"""Unified configuration layer.

Goals
-----
* Centralize defaults (model, temperature, relay URL, limits).
* Merge sources in a predictable order (later wins):
    1. Built-in defaults
    2. Optional JSON config file pointed to by ``QUILLCHAT_CONFIG_FILE``
    3. ``.env`` file (``DOTENV_FILE``, default ``.env``) loaded into the env
    4. Environment variables (``QUILLCHAT_*``)
    5. In-code overrides passed to the helper
* Provide a single call site: ``get_client_config()``.

External Config File (Optional)
-------------------------------
```
{"base_url": "https://api.openai.com", "model": "gpt-4o-mini", "temperature": 0.2}
```

Public API
----------
* get_client_config(overrides: dict | None = None) -> dict
* get_max_body_bytes() -> int
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .defaults import (
    CLIENT_DEFAULT_RELAY_URL,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    RELAY_MAX_BODY_BYTES,
)
from .env import ENV_MAX_BODY_BYTES, env_overrides, is_placeholder, read_positive_int

DEFAULTS: Dict[str, Any] = {
    "base_url": "",
    "api_key": None,
    "model": DEFAULT_MODEL,
    "temperature": DEFAULT_TEMPERATURE,
    "relay_url": CLIENT_DEFAULT_RELAY_URL,
}

_FILE_CACHE: Optional[Dict[str, Any]] = None
_DOTENV_LOADED = False


def _load_dotenv_once() -> None:
    """Lightweight .env loader.

    Parses KEY=VALUE lines, ignoring comments and blank lines. Existing
    variables are overridden only when their value looks like a placeholder.
    """
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    path = os.getenv("DOTENV_FILE", ".env")
    if not os.path.isfile(path):
        _DOTENV_LOADED = True
        return
    try:
        with open(path, "r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                k, v = line.split("=", 1)
                k = k.strip()
                v = v.strip().strip('"').strip("'")
                if k and (k not in os.environ or is_placeholder(os.environ.get(k))):
                    os.environ[k] = v
    finally:
        _DOTENV_LOADED = True


def _load_external_config() -> Dict[str, Any]:
    global _FILE_CACHE
    if _FILE_CACHE is not None:
        return _FILE_CACHE
    path = os.getenv("QUILLCHAT_CONFIG_FILE")
    data: Any = {}
    if path and Path(path).is_file():
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except ValueError:
            data = {}
    _FILE_CACHE = data if isinstance(data, dict) else {}
    return _FILE_CACHE


def _coerce(cfg: Dict[str, Any]) -> Dict[str, Any]:
    temperature = cfg.get("temperature")
    if isinstance(temperature, str):
        try:
            cfg["temperature"] = float(temperature)
        except ValueError:
            cfg["temperature"] = DEFAULT_TEMPERATURE
    return cfg


def get_client_config(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return the merged client configuration.

    Keys: ``base_url``, ``api_key``, ``model``, ``temperature``, ``relay_url``.
    """
    _load_dotenv_once()
    cfg: Dict[str, Any] = dict(DEFAULTS)
    cfg |= {k: v for k, v in _load_external_config().items() if k in DEFAULTS}
    cfg |= env_overrides()
    if overrides:
        cfg |= {k: v for k, v in overrides.items() if v is not None}
    return _coerce(cfg)


def get_max_body_bytes() -> int:
    """Return the relay envelope cap (``QUILLCHAT_MAX_BODY_BYTES`` or 64 KiB)."""
    return read_positive_int(ENV_MAX_BODY_BYTES, RELAY_MAX_BODY_BYTES)


__all__ = [
    "DEFAULTS",
    "get_client_config",
    "get_max_body_bytes",
]
