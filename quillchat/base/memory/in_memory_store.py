"""In-memory implementation of RecordStore.

Reference implementation backed by dictionaries. Suitable for the CLI,
development, and tests.

Thread safety: Not thread-safe. One store per event loop.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List


class InMemoryRecordStore:
    """Named stores of records keyed by ``id``.

    Index lookups compare the attribute (or mapping key) named by the index
    after stripping a ``by-``/``by_`` prefix and converting camelCase to
    snake_case, so both ``"by-conversationId"`` and ``"conversation_id"``
    select ``MessageRecord.conversation_id``.
    """

    def __init__(self) -> None:
        self._stores: Dict[str, Dict[str, Any]] = {}

    def put(self, store: str, record: Any) -> None:
        self._stores.setdefault(store, {})[_record_id(record)] = record

    def put_many(self, store: str, records: Iterable[Any]) -> None:
        for record in records:
            self.put(store, record)

    def get_all(self, store: str) -> List[Any]:
        return list(self._stores.get(store, {}).values())

    def get_by_index(self, store: str, index: str, value: Any) -> List[Any]:
        field = _index_field(index)
        return [r for r in self.get_all(store) if _field_value(r, field) == value]

    def delete(self, store: str, record_id: str) -> None:
        self._stores.get(store, {}).pop(record_id, None)


def _record_id(record: Any) -> str:
    value = _field_value(record, "id")
    if not value:
        raise ValueError("record has no id")
    return str(value)


def _field_value(record: Any, field: str) -> Any:
    if isinstance(record, dict):
        return record.get(field)
    return getattr(record, field, None)


def _index_field(index: str) -> str:
    name = index
    for prefix in ("by-", "by_"):
        if name.startswith(prefix):
            name = name[len(prefix):]
            break
    out: List[str] = []
    for ch in name.replace("-", "_"):
        if ch.isupper():
            out.append("_")
            out.append(ch.lower())
        else:
            out.append(ch)
    return "".join(out)


__all__ = ["InMemoryRecordStore"]
