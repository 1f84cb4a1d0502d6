from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from reconcilio.adapters.memory import InMemoryRecordStore
from reconcilio.adapters.sqlalchemy import create_all_tables
from reconcilio.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, shutdown, startup
from reconcilio.domain.catalog import KindRegistry, build_default_registry
from reconcilio.domain.reconciliation import KeyDeriver, ReconciliationEngine
from tests.helpers.records import FIXED_NOW

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture(scope="session")
def registry() -> KindRegistry:
    return build_default_registry()


@pytest.fixture
def engine(registry: KindRegistry) -> ReconciliationEngine:
    return ReconciliationEngine.build(registry, now=lambda: FIXED_NOW)


@pytest.fixture
def deriver(engine: ReconciliationEngine) -> KeyDeriver:
    return engine.deriver


@pytest.fixture
def memory_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()
