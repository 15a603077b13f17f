"""quillchat.config.defaults
==========================

Central place for small, stable default values used across the package and
the relay service. Environment variables and the optional config file can
override most of them; the rest are protocol constants.

This module intentionally avoids importing from other quillchat packages to
prevent circular dependencies. Only plain constants live here.
"""

from __future__ import annotations

# ---- Relay (proxy) limits ----

# Maximum accepted envelope size in bytes (64 KiB).
RELAY_MAX_BODY_BYTES = 64 * 1024
# Absolute budget for one relayed request: header wait + whole stream.
RELAY_REQUEST_TIMEOUT_SECONDS = 90.0
RELAY_TIMEOUT_REASON = "Upstream request timed out."
# Path of the relay endpoint on the service.
RELAY_PATH = "/api/chat"

# ---- Outbound HTTP ----

CONNECT_TIMEOUT_SECONDS = 30.0
CHAT_COMPLETIONS_PATH = "/v1/chat/completions"
MODELS_PATH = "/v1/models"

# ---- Service / dev server ----

# Comma-separated list of allowed origins for the relay service.
SERVICE_CORS_DEFAULT_ORIGINS = "http://localhost:5173,http://127.0.0.1:5173"
SERVICE_DEFAULT_HOST = "127.0.0.1"
SERVICE_DEFAULT_PORT = 8091
# Relay URL used by the client in proxy mode when nothing else is configured.
CLIENT_DEFAULT_RELAY_URL = f"http://{SERVICE_DEFAULT_HOST}:{SERVICE_DEFAULT_PORT}{RELAY_PATH}"

# ---- Provider settings defaults ----

DEFAULT_PROVIDER_ID = "default"
DEFAULT_PROVIDER_NAME = "Default Provider"
DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_TEMPERATURE = 0.7
