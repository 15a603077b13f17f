"""
Collaborator-facing domain models public surface.

Re-exports the one-class-per-file dataclasses under
``quillchat.base.models_parts``: provider settings consumed by the completion
client, and the transcript records kept by record stores.
"""

from .models_parts.provider_settings import ProviderSettings, Settings
from .models_parts.records import ConversationRecord, MessageRecord
from .models_parts.error_banner import ErrorBanner

__all__ = [
    "ProviderSettings",
    "Settings",
    "ConversationRecord",
    "MessageRecord",
    "ErrorBanner",
]
