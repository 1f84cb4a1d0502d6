"""Public interface for the JSON record transport."""

from __future__ import annotations

from .schema import HistoryPayload, RecordPayload, RecordPayloadInput
from .translator import (
    iter_payloads,
    parse_draft,
    parse_history,
    record_payload,
    record_to_json,
)

__all__ = [
    "HistoryPayload",
    "RecordPayload",
    "RecordPayloadInput",
    "iter_payloads",
    "parse_draft",
    "parse_history",
    "record_payload",
    "record_to_json",
]
