"""CLI action handlers.

Purpose
-------
Subcommand handlers for ``quillchat-cli``. Each handler takes the parsed
namespace, performs the call, and returns a process exit code. Handlers have
no top-level side effects and accept an injected ``httpx.AsyncClient`` so
tests can substitute a mock transport.

Fallback & Error Semantics
--------------------------
- Streamed text goes to stdout as it arrives; a failure after partial output
  leaves that output in place.
- Errors are surfaced as one JSON object on stderr with a non-zero exit code.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Dict, Optional, TextIO

import httpx

from ...base.errors import CompletionError
from ...base.memory import InMemoryRecordStore, settings_from_env
from ...config import get_client_config
from ...openai_compat.client import ChatCompletionClient
from ..chat_session import ChatSession


def _emit_error(payload: Dict[str, Any], err: TextIO) -> None:
    print(json.dumps(payload), file=err)


def _provider_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    return {
        "base_url": getattr(args, "base_url", None),
        "api_key": getattr(args, "api_key", None),
        "model": getattr(args, "model", None),
        "temperature": getattr(args, "temperature", None),
        "relay_url": getattr(args, "relay_url", None),
    }


async def run_chat(
    args: argparse.Namespace,
    *,
    http_client: Optional[httpx.AsyncClient] = None,
    out: TextIO = sys.stdout,
    err: TextIO = sys.stderr,
) -> int:
    """Stream ``args.prompt`` through a :class:`ChatSession`.

    Returns
    -------
    int
        ``0`` on success, ``1`` when the turn failed (banner on stderr).
    """
    overrides = _provider_overrides(args)
    settings = settings_from_env(overrides)
    if args.system:
        settings.update_provider(settings.active_provider().id, {"custom_instructions": args.system})
    relay_url = get_client_config(overrides)["relay_url"]

    async with ChatCompletionClient(http_client, relay_url=relay_url) as client:
        session = ChatSession(client, settings, InMemoryRecordStore(), use_proxy=args.proxy)

        def write(delta: str) -> None:
            if not args.json:
                out.write(delta)
                out.flush()

        reply = await session.send(args.prompt, write)

    text = reply.content if reply is not None else ""
    if args.json:
        print(json.dumps({"content": text, "error": session.last_error.to_dict() if session.last_error else None}), file=out)
    elif text:
        out.write("\n")
    if session.last_error is not None:
        if not args.json:
            _emit_error({"error": session.last_error.to_dict()}, err)
        return 1
    return 0


async def run_models(
    args: argparse.Namespace,
    *,
    http_client: Optional[httpx.AsyncClient] = None,
    out: TextIO = sys.stdout,
    err: TextIO = sys.stderr,
) -> int:
    """Print the model ids advertised by the configured provider."""
    cfg = get_client_config(_provider_overrides(args))
    async with ChatCompletionClient(http_client, relay_url=cfg["relay_url"]) as client:
        try:
            models = await client.list_models(cfg["base_url"], cfg.get("api_key"))
        except CompletionError as exc:
            _emit_error({"error": exc.to_dict()}, err)
            return 1
    if args.json:
        print(json.dumps({"models": models}), file=out)
    else:
        for model in models:
            print(model, file=out)
    return 0


def handle_chat(args: argparse.Namespace) -> int:
    """Execute the ``chat`` subcommand."""
    if not args.prompt:
        _emit_error({"error": "a prompt is required"}, sys.stderr)
        return 2
    return asyncio.run(run_chat(args))


def handle_models(args: argparse.Namespace) -> int:
    """Execute the ``models`` subcommand."""
    return asyncio.run(run_models(args))


def handle_serve(args: argparse.Namespace) -> int:
    """Execute the ``serve`` subcommand (blocks until uvicorn exits)."""
    from ..dev_server import serve

    serve(args.host, args.port, reload=args.reload)
    return 0


__all__ = ["handle_chat", "handle_models", "handle_serve", "run_chat", "run_models"]
