"""SQLAlchemy adapter package for Reconcilio."""

from __future__ import annotations

from .mappings import (
    create_all_tables,
    entity_key_alias_table,
    entity_record_table,
    mapper_registry,
)
from .repositories import SqlAlchemyRecordStore
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    get_unit_of_work,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyRecordStore",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "create_all_tables",
    "entity_key_alias_table",
    "entity_record_table",
    "get_unit_of_work",
    "is_started",
    "mapper_registry",
    "shutdown",
    "startup",
]
