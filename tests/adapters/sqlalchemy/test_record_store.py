from __future__ import annotations

from datetime import UTC, datetime

import pytest
from sqlalchemy.orm import Session  # noqa: TC002

from reconcilio.adapters.sqlalchemy import SqlAlchemyRecordStore
from reconcilio.domain.errors import KeyPromotionConflictError, StaleRecordError
from reconcilio.domain.model import HistoryRecord, Identifier
from reconcilio.domain.ports import RecordStore
from tests.helpers.records import FIXED_NOW, USER_DN, USER_SID, make_asset, make_record


def test_record_store_satisfies_the_port(sqlite_session: Session) -> None:
    assert isinstance(SqlAlchemyRecordStore(sqlite_session), RecordStore)


def test_round_trip_preserves_the_record(sqlite_session: Session) -> None:
    store = SqlAlchemyRecordStore(sqlite_session)
    record = make_record(
        strong=USER_SID,
        weak=USER_DN,
        fields={"name": "UserTemplate", "tags": ["a", "b"], "enabled": False},
        source="ldap",
        ttl=1_700_000_000,
    )
    record.history = [
        HistoryRecord(
            field="key", previous="#old", new="#new", by="ldap", key="#new", updated=FIXED_NOW
        )
    ]

    store.conditional_put("#aduser#example.local#sid", record, None)
    stored = store.get("#aduser#example.local#sid")

    assert stored is not None
    assert stored.version == 1
    loaded = stored.record
    assert loaded.key == "#aduser#example.local#sid"
    assert loaded.namespace == record.namespace
    assert loaded.identifiers == [Identifier.strong(USER_SID), Identifier.weak(USER_DN)]
    assert loaded.fields == {"name": "UserTemplate", "tags": ["a", "b"], "enabled": False}
    assert loaded.source == "ldap"
    assert loaded.ttl == 1_700_000_000
    assert loaded.created == FIXED_NOW
    assert loaded.history == record.history


def test_naive_timestamps_are_read_back_as_utc(sqlite_session: Session) -> None:
    store = SqlAlchemyRecordStore(sqlite_session)
    naive = datetime(2024, 1, 1, 8, 0)  # noqa: DTZ001
    store.conditional_put("k", make_asset("web01", visited=naive), None)

    stored = store.get("k")

    assert stored is not None
    assert stored.record.visited == datetime(2024, 1, 1, 8, 0, tzinfo=UTC)


def test_missing_key_reads_none(sqlite_session: Session) -> None:
    assert SqlAlchemyRecordStore(sqlite_session).get("nope") is None


def test_conditional_put_checks_versions(sqlite_session: Session) -> None:
    store = SqlAlchemyRecordStore(sqlite_session)
    store.conditional_put("k", make_asset("web01"), None)

    with pytest.raises(StaleRecordError):
        store.conditional_put("k", make_asset("web01"), None)
    assert store.conditional_put("k", make_asset("web01", fields={"tags": ["x"]}), 1) == 2
    with pytest.raises(StaleRecordError):
        store.conditional_put("k", make_asset("web01"), 1)

    stored = store.get("k")
    assert stored is not None
    assert stored.record.fields == {"tags": ["x"]}


def test_conditional_move_renames_the_row(sqlite_session: Session) -> None:
    store = SqlAlchemyRecordStore(sqlite_session)
    store.conditional_put("old", make_asset("web01"), None)

    assert store.conditional_move("old", "new", make_asset("web01"), 1) == 2

    assert store.keys() == ["new"]
    aliased = store.get("old")
    assert aliased is not None
    assert aliased.record.key == "new"
    assert aliased.version == 2


def test_aliases_follow_repeated_moves(sqlite_session: Session) -> None:
    store = SqlAlchemyRecordStore(sqlite_session)
    store.conditional_put("first", make_asset("web01"), None)
    store.conditional_move("first", "second", make_asset("web01"), 1)
    store.conditional_move("second", "third", make_asset("web01"), 2)

    for key in ("first", "second", "third"):
        stored = store.get(key)
        assert stored is not None
        assert stored.record.key == "third"


def test_creating_a_record_under_an_alias_replaces_it(sqlite_session: Session) -> None:
    store = SqlAlchemyRecordStore(sqlite_session)
    store.conditional_put("old", make_asset("web01"), None)
    store.conditional_move("old", "new", make_asset("web01"), 1)

    assert store.conditional_put("old", make_asset("web02"), None) == 1

    stored = store.get("old")
    assert stored is not None
    assert stored.record.key == "old"
    assert store.keys() == ["new", "old"]


def test_conditional_move_refuses_an_occupied_key(sqlite_session: Session) -> None:
    store = SqlAlchemyRecordStore(sqlite_session)
    store.conditional_put("old", make_asset("web01"), None)
    store.conditional_put("new", make_asset("web02"), None)

    with pytest.raises(KeyPromotionConflictError):
        store.conditional_move("old", "new", make_asset("web01"), 1)


def test_conditional_move_with_a_stale_version(sqlite_session: Session) -> None:
    store = SqlAlchemyRecordStore(sqlite_session)
    store.conditional_put("old", make_asset("web01"), None)

    with pytest.raises(StaleRecordError):
        store.conditional_move("old", "new", make_asset("web01"), 3)


def test_conditional_put_registers_aliases(sqlite_session: Session) -> None:
    store = SqlAlchemyRecordStore(sqlite_session)
    store.conditional_put("strong", make_asset("web01"), None, aliases=("weak", "weak"))

    stored = store.get("weak")
    assert stored is not None
    assert stored.record.key == "strong"
    assert store.keys() == ["strong"]
