from __future__ import annotations

import os
import uvicorn

from ..config.defaults import SERVICE_DEFAULT_HOST, SERVICE_DEFAULT_PORT

APP_FACTORY = "quillchat.service.app:create_app"


def _parse_port(value: str | None, default: int) -> int:
    """Best-effort parse of a port from string, falling back to a sane default."""
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def serve(host: str, port: int, reload: bool = False) -> None:
    """Run the relay application under uvicorn (blocking)."""
    uvicorn.run(APP_FACTORY, factory=True, host=host, port=port, reload=reload)


def main() -> None:
    """Start the development server for the relay FastAPI app.

    Environment:

    - QUILLCHAT_SERVICE_HOST: interface to bind (default "127.0.0.1")
    - QUILLCHAT_SERVICE_PORT: port to bind (default 8091)
    - QUILLCHAT_SERVICE_RELOAD: "true"/"false" to toggle auto-reload
      (default True for direct usage).
    """
    host = os.getenv("QUILLCHAT_SERVICE_HOST", SERVICE_DEFAULT_HOST)
    port = _parse_port(os.getenv("QUILLCHAT_SERVICE_PORT"), SERVICE_DEFAULT_PORT)
    reload_env = os.getenv("QUILLCHAT_SERVICE_RELOAD")
    reload_enabled = True if reload_env is None else reload_env.lower() == "true"
    serve(host, port, reload=reload_enabled)


if __name__ == "__main__":
    main()
