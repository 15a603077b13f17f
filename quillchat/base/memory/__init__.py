"""In-memory reference implementations of the collaborator stores."""

from .in_memory_store import InMemoryRecordStore
from .settings_store import InMemorySettingsStore, settings_from_env

__all__ = ["InMemoryRecordStore", "InMemorySettingsStore", "settings_from_env"]
