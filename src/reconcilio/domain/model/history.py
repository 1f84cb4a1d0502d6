"""Audit trail entries recorded on a record's bounded history."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime


@dataclass(frozen=True, slots=True, kw_only=True)
class HistoryRecord:
    """One state transition: a lattice move or a key promotion."""

    field: str
    previous: str | None
    new: str | None
    by: str | None = None
    key: str | None = None
    comment: str | None = None
    updated: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
