"""OpenAI-compatible provider access.

Public API:
    - :class:`ChatCompletionClient`: streaming completions (direct or proxied)
    - :func:`list_models`: model listing
    - error-body shape helpers used to build :class:`CompletionError` messages
"""

from .client import ChatCompletionClient
from .error_body import classify_error_body, error_body_message
from .get_models import list_models, parse_model_ids
from .helpers import chat_completions_url

__all__ = [
    "ChatCompletionClient",
    "classify_error_body",
    "error_body_message",
    "list_models",
    "parse_model_ids",
    "chat_completions_url",
]
