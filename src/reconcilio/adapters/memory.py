"""Process-local record store.

Every read and write copies the record, so callers never share mutable state
with the store; the lock makes each conditional write atomic across threads.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from reconcilio.domain.errors import KeyPromotionConflictError, StaleRecordError
from reconcilio.domain.ports import StoredRecord

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from reconcilio.domain.model import EntityRecord


class InMemoryRecordStore:
    def __init__(self) -> None:
        self._records: dict[str, StoredRecord] = {}
        # secondary or promoted-away key -> current key
        self._aliases: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> StoredRecord | None:
        with self._lock:
            stored = self._records.get(key)
            if stored is None and key in self._aliases:
                stored = self._records.get(self._aliases[key])
            if stored is None:
                return None
            return StoredRecord(record=stored.record.snapshot(), version=stored.version)

    def conditional_put(
        self,
        key: str,
        record: EntityRecord,
        expected_version: int | None,
        *,
        aliases: Iterable[str] = (),
    ) -> int:
        with self._lock:
            current = self._records.get(key)
            current_version = current.version if current is not None else None
            if current_version != expected_version:
                raise StaleRecordError(key, expected_version)
            version = (current_version or 0) + 1
            self._aliases.pop(key, None)
            self._store(key, record, version)
            for alias in aliases:
                if alias != key:
                    self._aliases[alias] = key
            return version

    def conditional_move(
        self,
        old_key: str,
        new_key: str,
        record: EntityRecord,
        expected_version: int,
    ) -> int:
        with self._lock:
            current = self._records.get(old_key)
            if current is None or current.version != expected_version:
                raise StaleRecordError(old_key, expected_version)
            if new_key in self._records:
                raise KeyPromotionConflictError(old_key, new_key)
            del self._records[old_key]
            version = current.version + 1
            self._store(new_key, record, version)
            self._aliases.pop(new_key, None)
            for alias, target in self._aliases.items():
                if target == old_key:
                    self._aliases[alias] = new_key
            self._aliases[old_key] = new_key
            return version

    def _store(self, key: str, record: EntityRecord, version: int) -> None:
        snapshot = record.snapshot()
        snapshot.key = key
        self._records[key] = StoredRecord(record=snapshot, version=version)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._records)

    def __iter__(self) -> Iterator[EntityRecord]:
        with self._lock:
            return iter([stored.record.snapshot() for stored in self._records.values()])

    def __len__(self) -> int:
        return len(self._records)
