"""Pydantic models describing the JSON record transport."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _ensure_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class TransportBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class HistoryPayload(TransportBaseModel):
    field: str
    previous: str | None = None
    new: str | None = None
    by: str | None = None
    key: str | None = None
    comment: str | None = None
    updated: datetime

    _normalize_updated = field_validator("updated")(_ensure_utc)


class RecordPayload(TransportBaseModel):
    """One observed (or reconciled) record.

    ``strong`` and ``weak`` carry the identifiers; ``strong_id`` and ``weak_id``
    are accepted as aliases.
    """

    kind: str
    scope: str
    subtype: str | None = None
    strong: str | None = Field(default=None, alias="strong_id")
    weak: str | None = Field(default=None, alias="weak_id")
    fields: dict[str, Any] = Field(default_factory=dict)
    source: str | None = None
    created: datetime | None = None
    visited: datetime | None = None
    ttl: int | None = None
    key: str | None = None
    history: list[HistoryPayload] = Field(default_factory=list)

    _normalize_identifiers = field_validator("strong", "weak", "subtype", "source", mode="before")(
        _blank_to_none
    )
    _normalize_timestamps = field_validator("created", "visited")(_ensure_utc)

    @field_validator("kind", mode="before")
    @classmethod
    def _normalize_kind(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value


type RecordPayloadInput = RecordPayload | dict[str, Any]
