from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from reconcilio.adapters.sqlalchemy import unit_of_work
from reconcilio.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, StartupError
from reconcilio.domain.reconciliation import (
    ReconciliationEngine,
    StoreAction,
    reconcile_observation,
)
from tests.helpers.records import AD_DOMAIN, USER_DN, USER_SID, make_asset, make_record

if TYPE_CHECKING:
    from collections.abc import Callable


def test_unit_of_work_requires_startup() -> None:
    unit_of_work.shutdown()

    with pytest.raises(StartupError):
        SqlAlchemyUnitOfWork()


def test_startup_twice_requires_force(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    _ = sqlite_unit_of_work
    assert unit_of_work.is_started()

    with pytest.raises(StartupError, match="already initialised"):
        unit_of_work.startup()


def test_committed_records_are_visible_to_the_next_unit_of_work(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.records.conditional_put("k", make_asset("web01"), None)
        uow.commit()

    with sqlite_unit_of_work() as uow:
        assert uow.repositories.records.get("k") is not None


def test_uncommitted_records_are_rolled_back(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    with pytest.raises(RuntimeError), sqlite_unit_of_work() as uow:
        uow.repositories.records.conditional_put("k", make_asset("web01"), None)
        raise RuntimeError("boom")

    with sqlite_unit_of_work() as uow:
        assert uow.repositories.records.get("k") is None


def test_promotion_through_the_database(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
    engine: ReconciliationEngine,
) -> None:
    with sqlite_unit_of_work() as uow:
        reconcile_observation(uow.repositories.records, engine, make_record(weak=USER_DN))
        uow.commit()

    with sqlite_unit_of_work() as uow:
        result = reconcile_observation(
            uow.repositories.records,
            engine,
            make_record(strong=USER_SID, weak=USER_DN, fields={"name": "UserTemplate"}),
        )
        uow.commit()

    assert result.action is StoreAction.PROMOTED
    with sqlite_unit_of_work() as uow:
        store = uow.repositories.records
        assert store.keys() == [f"#aduser#{AD_DOMAIN}#{USER_SID}"]
        stored = store.get(f"#aduser#{AD_DOMAIN}#{USER_DN.casefold()}")
        assert stored is not None
        assert stored.version == 2
        assert stored.record.fields["name"] == "UserTemplate"
