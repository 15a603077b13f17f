"""RecordStore Protocol (single-class module).

Key-value record store used to persist transcripts outside the completion
core. Stores are named (``"conversations"``, ``"messages"``); records are
keyed by their ``id`` and may be looked up through a named index.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Protocol, runtime_checkable


@runtime_checkable
class RecordStore(Protocol):
    """Interface for transcript persistence."""

    def put(self, store: str, record: Any) -> None:  # pragma: no cover - interface
        """Insert or replace ``record`` (keyed by ``record.id``) in ``store``."""
        ...

    def put_many(self, store: str, records: Iterable[Any]) -> None:  # pragma: no cover - interface
        """Insert or replace several records."""
        ...

    def get_all(self, store: str) -> List[Any]:  # pragma: no cover - interface
        """Return every record in ``store`` in insertion order."""
        ...

    def get_by_index(self, store: str, index: str, value: Any) -> List[Any]:  # pragma: no cover - interface
        """Return records whose indexed attribute equals ``value``."""
        ...

    def delete(self, store: str, record_id: str) -> None:  # pragma: no cover - interface
        """Remove the record with ``record_id``; unknown ids are ignored."""
        ...


__all__ = ["RecordStore"]
