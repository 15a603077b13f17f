"""
quillchat base package.

Exports the provider-agnostic building blocks of the streaming completion
layer:
- Cancellation: tokens and deadlines observed at every suspension point
- Errors: the completion error taxonomy
- DTOs: request and envelope wire models
- Streaming: the incremental SSE frame decoder
- Collaborator interfaces and their in-memory implementations
"""

from .cancellation import CancellationToken, CancelledError, Deadline
from .dto import ChatMessage, CompletionRequest, ProxyEnvelope
from .errors import (
    CompletionError,
    CompletionMode,
    ErrorCode,
    MalformedFrameError,
    classify_exception,
)
from .interfaces import DeltaCallback, RecordStore, SettingsStore
from .models import ConversationRecord, ErrorBanner, MessageRecord, ProviderSettings, Settings
from .streaming import SseDecoder, decode_stream
from .timeouts import TimeoutConfig, get_timeout_config

__all__ = [
    # Cancellation
    "CancellationToken",
    "CancelledError",
    "Deadline",
    # DTOs
    "ChatMessage",
    "CompletionRequest",
    "ProxyEnvelope",
    # Errors
    "CompletionError",
    "CompletionMode",
    "ErrorCode",
    "MalformedFrameError",
    "classify_exception",
    # Interfaces
    "DeltaCallback",
    "RecordStore",
    "SettingsStore",
    # Models
    "ConversationRecord",
    "ErrorBanner",
    "MessageRecord",
    "ProviderSettings",
    "Settings",
    # Streaming
    "SseDecoder",
    "decode_stream",
    # Timeouts
    "TimeoutConfig",
    "get_timeout_config",
]
