"""CLI parser construction for quillchat-cli.

This module wires subparsers but contains no execution logic. Subcommand
handlers live in ``cli_actions`` to keep the presentation layer thin.
"""

from __future__ import annotations

import argparse

from ...config.defaults import SERVICE_DEFAULT_HOST, SERVICE_DEFAULT_PORT

COMMANDS = {"chat", "models", "serve"}


def add_provider_flags(parser: argparse.ArgumentParser) -> None:
    """Attach provider connection flags shared by ``chat`` and ``models``.

    Omitted flags stay ``None`` so the merged configuration
    (``QUILLCHAT_*`` environment, config file) supplies the value.
    """
    parser.add_argument("--base-url", default=None, help="Provider base URL (QUILLCHAT_BASE_URL)")
    parser.add_argument("--api-key", default=None, help="Bearer credential (QUILLCHAT_API_KEY)")
    parser.add_argument("--json", action="store_true", help="Emit machine-readable JSON")


def build_parser() -> argparse.ArgumentParser:
    """Construct the top-level CLI parser and subcommands.

    Returns
    -------
    argparse.ArgumentParser
        Configured parser with ``chat``, ``models`` and ``serve`` subcommands.
        No I/O or network calls occur here.
    """
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--log-level", default=None, help="Override QUILLCHAT_LOG_LEVEL")

    p = argparse.ArgumentParser(prog="quillchat-cli", description="Stream chat completions from the terminal")
    sub = p.add_subparsers(dest="cmd")

    # chat
    p_chat = sub.add_parser("chat", parents=[common], help="Stream one prompt to stdout (default)")
    p_chat.add_argument("prompt", nargs="?", default=None)
    add_provider_flags(p_chat)
    p_chat.add_argument("--model", default=None)
    p_chat.add_argument("--temperature", type=float, default=None)
    p_chat.add_argument("--system", default=None, help="Custom instructions sent as a system message")
    p_chat.add_argument("--proxy", action="store_true", help="Route the call through the relay")
    p_chat.add_argument("--relay-url", default=None, help="Relay endpoint (QUILLCHAT_RELAY_URL)")

    # models
    p_models = sub.add_parser("models", parents=[common], help="List models advertised by the provider")
    add_provider_flags(p_models)

    # serve
    p_serve = sub.add_parser("serve", parents=[common], help="Run the relay service under uvicorn")
    p_serve.add_argument("--host", default=SERVICE_DEFAULT_HOST)
    p_serve.add_argument("--port", type=int, default=SERVICE_DEFAULT_PORT)
    p_serve.add_argument("--reload", action="store_true")

    return p


__all__ = ["COMMANDS", "build_parser", "add_provider_flags"]
