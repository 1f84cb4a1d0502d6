"""Ports for persisting reconciled records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable

    from reconcilio.domain.model import EntityRecord


@dataclass(frozen=True, slots=True)
class StoredRecord:
    """A record as read from a store, with the version its next write must name."""

    record: EntityRecord
    version: int


@runtime_checkable
class RecordStore(Protocol):
    """Keyed record store with optimistic conditional writes."""

    def get(self, key: str) -> StoredRecord | None:
        """Return the record stored under ``key``, or under the key ``key`` aliases."""
        ...

    def conditional_put(
        self,
        key: str,
        record: EntityRecord,
        expected_version: int | None,
        *,
        aliases: Iterable[str] = (),
    ) -> int:
        """Write ``record`` under ``key`` and return the new version.

        ``expected_version=None`` means the key must not exist yet.
        Each of ``aliases`` becomes readable as an alias of ``key``.

        Raises:
            StaleRecordError: the stored version is not ``expected_version``.
        """
        ...

    def conditional_move(
        self,
        old_key: str,
        new_key: str,
        record: EntityRecord,
        expected_version: int,
    ) -> int:
        """Atomically rename ``old_key`` to ``new_key`` and write ``record``.

        ``old_key`` stays readable as an alias of ``new_key``.

        Raises:
            StaleRecordError: the record under ``old_key`` changed.
            KeyPromotionConflictError: ``new_key`` already names another record.
        """
        ...
