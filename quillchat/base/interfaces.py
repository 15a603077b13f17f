"""
Collaborator interfaces (Protocols) consumed at the completion layer boundary.

Re-exports the single-class modules under
``quillchat.base.interfaces_parts``.
"""

from __future__ import annotations

from .interfaces_parts import DeltaCallback, RecordStore, SettingsStore

__all__ = ["DeltaCallback", "RecordStore", "SettingsStore"]
