"""quillchat package

Streaming chat completion layer for OpenAI-compatible providers.

Purpose:
    Provide the completion client (direct and proxy modes), the incremental
    SSE frame decoder, and the FastAPI relay that re-streams provider
    responses to same-origin callers.

Public API (re-exported):
    - Version: ``__version__``
    - Client: :class:`ChatCompletionClient`
    - Exceptions: :class:`CompletionError`, :class:`ErrorCode`
    - Decoder: :class:`SseDecoder`
    - Requests: :class:`CompletionRequest`, :class:`ChatMessage`

Notes:
    - The relay application lives in :mod:`quillchat.service.app` and is not
      imported here so that client-only users do not load FastAPI.
"""

__version__ = "0.1.0"

from .base.dto import ChatMessage, CompletionRequest  # noqa: E402
from .base.errors import CompletionError, CompletionMode, ErrorCode  # noqa: E402
from .base.streaming import SseDecoder  # noqa: E402
from .openai_compat.client import ChatCompletionClient  # noqa: E402

__all__ = [
    "__version__",
    "ChatCompletionClient",
    "ChatMessage",
    "CompletionError",
    "CompletionMode",
    "CompletionRequest",
    "ErrorCode",
    "SseDecoder",
]
