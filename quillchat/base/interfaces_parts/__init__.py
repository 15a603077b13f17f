"""Interfaces parts package (one Protocol per module)."""

from .delta_callback import DeltaCallback
from .record_store import RecordStore
from .settings_store import SettingsStore

__all__ = ["DeltaCallback", "RecordStore", "SettingsStore"]
