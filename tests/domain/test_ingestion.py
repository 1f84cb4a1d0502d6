from __future__ import annotations

from reconcilio.adapters.memory import InMemoryRecordStore
from reconcilio.domain.ingestion import ingest_records
from reconcilio.domain.reconciliation import ReconciliationEngine
from tests.helpers.records import USER_DN, USER_SID, make_asset, make_record
from tests.helpers.stores import FakeUnitOfWork, FlakyRecordStore


def test_ingest_counts_each_outcome(engine: ReconciliationEngine) -> None:
    store = InMemoryRecordStore()
    uow = FakeUnitOfWork(store)
    impostor = make_record(strong="S-1-5-21-9-9-9-500", weak=USER_DN)
    impostor.key = engine.deriver.derive_for(make_record(strong=USER_SID))

    result = ingest_records(
        [
            make_record(weak=USER_DN),
            make_record(weak=USER_DN, fields={"name": "u"}),
            make_record(strong=USER_SID, weak=USER_DN),
            impostor,
            make_asset("web01"),
        ],
        engine=engine,
        unit_of_work_factory=lambda: uow,
    )

    assert (result.created, result.merged, result.promoted, result.rejected) == (2, 1, 1, 1)
    assert result.processed == 5
    assert uow.commits == 5
    assert len(store) == 2


def test_exhausted_retries_are_counted_and_skipped(engine: ReconciliationEngine) -> None:
    store = FlakyRecordStore(failures=3)
    uow = FakeUnitOfWork(store)

    result = ingest_records(
        [make_asset("web01"), make_asset("web02")],
        engine=engine,
        unit_of_work_factory=lambda: uow,
        max_attempts=3,
    )

    assert result.stale == 1
    assert result.created == 1
    assert uow.rollbacks == 1
    assert store.keys() == ["#asset#example.com#web02"]
