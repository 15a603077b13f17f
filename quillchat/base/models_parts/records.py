"""
Transcript records persisted by a record store.

The completion layer never defines a conversation model of its own; these
records only exist at the boundary with the storage collaborator.
"""
from __future__ import annotations

import time
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any, Dict


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class ConversationRecord:
    """A conversation header keyed by ``id``."""

    title: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: int = field(default_factory=_now_ms)
    updated_at: int = field(default_factory=_now_ms)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class MessageRecord:
    """One message of a conversation, indexed by ``conversation_id``."""

    conversation_id: str
    role: str
    content: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: int = field(default_factory=_now_ms)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = ["ConversationRecord", "MessageRecord"]
