"""In-memory document store for events, reminder subscriptions and profiles."""

from __future__ import annotations

import threading
from typing import Any

from pydantic import BaseModel

from eventura.domain.models import Event, ReminderSubscription, UserProfile

EVENTS = "events"
SUBSCRIPTIONS = "event_applications"
PROFILES = "user_profiles"

_TABLE_MODELS: dict[str, type[BaseModel]] = {
    EVENTS: Event,
    SUBSCRIPTIONS: ReminderSubscription,
    PROFILES: UserProfile,
}


class RecordNotFound(LookupError):
    """Raised when a patch or delete targets an id that is not in the table."""

    def __init__(self, table: str, record_id: str) -> None:
        super().__init__(f"{table} record {record_id} not found")
        self.table = table
        self.record_id = record_id


class DocumentStore:
    """Dict-backed tables of pydantic records, keyed by id.

    Each mutation replaces a single record under the store lock; there are no
    multi-record transactions. Queries work on a snapshot taken under the
    lock, so scheduler threads and request threads can share one store.
    Results come back in insertion order.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tables: dict[str, dict[str, BaseModel]] = {
            name: {} for name in _TABLE_MODELS
        }

    def _table(self, table: str) -> dict[str, BaseModel]:
        try:
            return self._tables[table]
        except KeyError:
            raise ValueError(f"Unknown table: {table}") from None

    def _snapshot(self, table: str) -> list[Any]:
        rows = self._table(table)
        with self._lock:
            return list(rows.values())

    def get(self, table: str, record_id: str) -> Any | None:
        rows = self._table(table)
        with self._lock:
            return rows.get(record_id)

    def list_all(self, table: str) -> list[Any]:
        return self._snapshot(table)

    def query_by_index(self, table: str, field: str, value: Any) -> list[Any]:
        return [r for r in self._snapshot(table) if getattr(r, field) == value]

    def first_by_index(self, table: str, **criteria: Any) -> Any | None:
        """Return the first record matching every ``field=value`` pair."""
        for record in self._snapshot(table):
            if all(getattr(record, f) == v for f, v in criteria.items()):
                return record
        return None

    def insert(self, table: str, fields: dict[str, Any]) -> str:
        rows = self._table(table)
        record = _TABLE_MODELS[table].model_validate(fields)
        with self._lock:
            rows[record.id] = record
        return record.id

    def patch(self, table: str, record_id: str, fields: dict[str, Any]) -> Any:
        rows = self._table(table)
        with self._lock:
            current = rows.get(record_id)
            if current is None:
                raise RecordNotFound(table, record_id)
            updated = type(current).model_validate({**current.model_dump(), **fields})
            rows[record_id] = updated
        return updated

    def delete(self, table: str, record_id: str) -> None:
        rows = self._table(table)
        with self._lock:
            if rows.pop(record_id, None) is None:
                raise RecordNotFound(table, record_id)

    def clear(self) -> None:
        with self._lock:
            for rows in self._tables.values():
                rows.clear()
