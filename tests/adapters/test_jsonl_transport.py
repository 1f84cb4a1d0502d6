from __future__ import annotations

import json
from datetime import UTC, datetime

from reconcilio.adapters.jsonl import (
    RecordPayload,
    iter_payloads,
    parse_draft,
    parse_history,
    record_payload,
    record_to_json,
)
from reconcilio.domain.model import HistoryRecord, Identifier
from tests.helpers.records import FIXED_NOW, USER_DN, USER_SID, make_record


def test_draft_from_payload_normalizes_transport_details() -> None:
    draft = parse_draft(
        {
            "kind": " ADObject ",
            "scope": "example.local",
            "subtype": "aduser",
            "strong_id": USER_SID,
            "weak": "  ",
            "fields": {"name": "UserTemplate"},
            "visited": "2024-05-01T12:00:00",
        }
    )

    assert draft.kind == "adobject"
    assert draft.identifiers == [Identifier.strong(USER_SID)]
    assert draft.fields == {"name": "UserTemplate"}
    assert draft.visited == FIXED_NOW


def test_unknown_payload_keys_are_ignored() -> None:
    payload = RecordPayload.model_validate(
        {"kind": "asset", "scope": "example.com", "weak": "web01", "extra": 1}
    )

    assert payload.weak == "web01"


def test_record_serializes_identifiers_and_history() -> None:
    record = make_record(strong=USER_SID, weak=USER_DN, fields={"name": "u"})
    record.key = "#aduser#example.local#" + USER_SID
    record.history = [
        HistoryRecord(field="key", previous="#a", new="#b", key="#b", updated=FIXED_NOW)
    ]

    loaded = json.loads(record_to_json(record))

    assert loaded["kind"] == "adobject"
    assert loaded["strong"] == USER_SID
    assert loaded["weak"] == USER_DN
    assert loaded["key"] == record.key
    assert loaded["history"][0]["new"] == "#b"
    assert "by" not in loaded["history"][0]


def test_history_survives_the_transport() -> None:
    record = make_record(weak=USER_DN)
    record.history = [
        HistoryRecord(field="status", previous="P", new="A", by="scanner", updated=FIXED_NOW)
    ]

    assert parse_history(record_payload(record)) == record.history


def test_jsonl_stream_skips_blank_lines_and_flags_invalid_ones() -> None:
    lines = [
        '{"kind": "asset", "scope": "example.com", "weak": "web01"}\n',
        "\n",
        '{"scope": "example.com"}\n',
        '{"kind": "asset", "scope": "example.com", "weak": "web02", '
        '"created": "2024-01-01T00:00:00Z"}\n',
    ]

    parsed = list(iter_payloads(lines))

    assert [number for number, _ in parsed] == [1, 3, 4]
    assert parsed[1][1] is None
    last = parsed[2][1]
    assert last is not None
    assert last.created == datetime(2024, 1, 1, tzinfo=UTC)
