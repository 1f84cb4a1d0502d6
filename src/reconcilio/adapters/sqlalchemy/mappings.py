"""SQLAlchemy table metadata for reconciled records."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    JSON,
    BigInteger,
    Column,
    DateTime,
    Dialect,
    Enum,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    Uuid,
    orm,
)

from reconcilio.domain.model import EntityKind, HistoryRecord, Identifier, IdentifierStrength

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _load_list(value: str | None) -> list[Any]:
    if value is None:
        return []
    loaded = json.loads(value)
    if not isinstance(loaded, list):
        return []
    return cast(list[Any], loaded)


class IdentifierListType(TypeDecorator[list[Identifier]]):
    """Ranked identifiers as a JSON array of ``[strength, value]`` pairs."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: list[Identifier] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps([[item.strength.value, item.value] for item in value])

    def process_result_value(self, value: str | None, dialect: Dialect) -> list[Identifier]:
        _ = dialect
        identifiers: list[Identifier] = []
        for item in _load_list(value):
            if isinstance(item, list) and len(cast(list[Any], item)) == 2:  # noqa: PLR2004
                strength, raw = cast(list[Any], item)
                identifiers.append(Identifier(value=str(raw), strength=IdentifierStrength(strength)))
        return identifiers


class HistoryListType(TypeDecorator[list[HistoryRecord]]):
    impl = Text
    cache_ok = True

    def process_bind_param(
        self, value: list[HistoryRecord] | None, dialect: Dialect
    ) -> str | None:
        _ = dialect
        if value is None:
            return None
        payload = [
            {
                "field": entry.field,
                "previous": entry.previous,
                "new": entry.new,
                "by": entry.by,
                "key": entry.key,
                "comment": entry.comment,
                "updated": entry.updated.astimezone(UTC).isoformat(),
            }
            for entry in value
        ]
        return json.dumps(payload)

    def process_result_value(self, value: str | None, dialect: Dialect) -> list[HistoryRecord]:
        _ = dialect
        history: list[HistoryRecord] = []
        for item in _load_list(value):
            if not isinstance(item, dict):
                continue
            entry = cast(dict[str, Any], item)
            history.append(
                HistoryRecord(
                    field=entry["field"],
                    previous=entry.get("previous"),
                    new=entry.get("new"),
                    by=entry.get("by"),
                    key=entry.get("key"),
                    comment=entry.get("comment"),
                    updated=datetime.fromisoformat(entry["updated"]),
                )
            )
        return history


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

entity_record_table = Table(
    "entity_record",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("key", String(2048), nullable=False, unique=True),
    Column("kind", Enum(EntityKind, native_enum=False), nullable=False),
    Column("subtype", String, nullable=True),
    Column("scope", String, nullable=False),
    Column("identifiers", IdentifierListType, nullable=False),
    Column("fields", JSON, nullable=False),
    Column("source", String, nullable=True),
    Column("created", UTCDateTime, nullable=True),
    Column("visited", UTCDateTime, nullable=True),
    Column("ttl", BigInteger, nullable=False, default=0),
    Column("history", HistoryListType, nullable=False),
    Column("version", Integer, nullable=False),
    Index("ix_entity_record_kind_scope", "kind", "scope"),
)

# keys a record was promoted away from, pointing at its current key
entity_key_alias_table = Table(
    "entity_key_alias",
    mapper_registry.metadata,
    Column("alias", String(2048), primary_key=True),
    Column("key", String(2048), nullable=False, index=True),
)


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the record metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
