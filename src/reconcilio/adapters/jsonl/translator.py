"""Translate JSON record payloads into drafts and records back into payloads."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from reconcilio.domain.model import HistoryRecord, Identifier, RecordDraft

from .schema import HistoryPayload, RecordPayload, RecordPayloadInput

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from reconcilio.domain.model import EntityRecord

log = getLogger(__name__)


def _ensure_payload(payload: RecordPayloadInput) -> RecordPayload:
    if isinstance(payload, RecordPayload):
        return payload
    return RecordPayload.model_validate(payload)


def parse_draft(payload: RecordPayloadInput) -> RecordDraft:
    model = _ensure_payload(payload)
    identifiers: list[Identifier] = []
    if model.strong is not None:
        identifiers.append(Identifier.strong(model.strong))
    if model.weak is not None:
        identifiers.append(Identifier.weak(model.weak))
    return RecordDraft(
        kind=model.kind,
        scope=model.scope,
        subtype=model.subtype,
        identifiers=identifiers,
        fields=dict(model.fields),
        source=model.source,
        created=model.created,
        visited=model.visited,
        ttl=model.ttl,
    )


def parse_history(payload: RecordPayloadInput) -> list[HistoryRecord]:
    model = _ensure_payload(payload)
    return [
        HistoryRecord(
            field=entry.field,
            previous=entry.previous,
            new=entry.new,
            by=entry.by,
            key=entry.key,
            comment=entry.comment,
            updated=entry.updated,
        )
        for entry in model.history
    ]


def record_payload(record: EntityRecord) -> RecordPayload:
    strong = record.strong_identifier
    weak = record.weak_identifier
    return RecordPayload(
        kind=record.kind.value,
        scope=record.namespace.scope,
        subtype=record.namespace.subtype,
        strong=strong.value if strong else None,
        weak=weak.value if weak else None,
        fields=dict(record.fields),
        source=record.source,
        created=record.created,
        visited=record.visited,
        ttl=record.ttl,
        key=record.key,
        history=[
            HistoryPayload(
                field=entry.field,
                previous=entry.previous,
                new=entry.new,
                by=entry.by,
                key=entry.key,
                comment=entry.comment,
                updated=entry.updated,
            )
            for entry in record.history
        ],
    )


def record_to_json(record: EntityRecord, *, indent: int | None = None) -> str:
    return record_payload(record).model_dump_json(indent=indent, exclude_none=True)


def iter_payloads(lines: Iterable[str]) -> Iterator[tuple[int, RecordPayload | None]]:
    """Yield ``(line_number, payload)`` per non-blank JSONL line.

    Lines that fail validation are logged and yielded as ``None`` so callers
    can count them without aborting the stream.
    """

    for number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            yield number, RecordPayload.model_validate_json(line)
        except ValidationError as exc:
            log.warning("Skipping invalid record on line %d: %s", number, exc)
            yield number, None
