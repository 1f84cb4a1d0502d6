"""Domain port definitions for adapters."""

from __future__ import annotations

from .store import RecordStore, StoredRecord
from .unit_of_work import RecordRepositories, RecordUnitOfWork

__all__ = [
    "RecordRepositories",
    "RecordStore",
    "RecordUnitOfWork",
    "StoredRecord",
]
