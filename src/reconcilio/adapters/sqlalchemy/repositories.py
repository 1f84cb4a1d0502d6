"""Record store backed by a SQLAlchemy session.

Conditional writes compare the integer ``version`` column inside the UPDATE
statement itself, so a lost race shows up as zero affected rows.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import delete, exists, insert, select, update
from sqlalchemy.exc import IntegrityError

from reconcilio.adapters.sqlalchemy.mappings import entity_key_alias_table, entity_record_table
from reconcilio.domain.errors import KeyPromotionConflictError, StaleRecordError
from reconcilio.domain.model import EntityKind, EntityRecord, Namespace
from reconcilio.domain.ports import StoredRecord

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy import CursorResult, Row
    from sqlalchemy.orm import Session

log = logging.getLogger(__name__)

_table = entity_record_table
_aliases = entity_key_alias_table


def _row_to_record(row: Row[Any]) -> StoredRecord:
    record = EntityRecord(
        namespace=Namespace(kind=EntityKind(row.kind), scope=row.scope, subtype=row.subtype),
        identifiers=list(row.identifiers),
        fields=dict(row.fields or {}),
        key=row.key,
        source=row.source,
        created=row.created,
        visited=row.visited,
        ttl=row.ttl,
        history=list(row.history),
    )
    return StoredRecord(record=record, version=row.version)


def _record_values(key: str, record: EntityRecord) -> dict[str, object]:
    return {
        "key": key,
        "kind": record.kind,
        "subtype": record.namespace.subtype,
        "scope": record.namespace.scope,
        "identifiers": list(record.identifiers),
        "fields": record.fields,
        "source": record.source,
        "created": record.created,
        "visited": record.visited,
        "ttl": record.ttl,
        "history": list(record.history),
    }


class SqlAlchemyRecordStore:
    """``RecordStore`` over the ``entity_record`` table.

    A write that violates the unique key constraint rolls back the session's
    current transaction before raising.

    Keys left behind by a promotion are kept in ``entity_key_alias`` so that
    lookups under the old key still find the record.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, key: str) -> StoredRecord | None:
        row = self.session.execute(select(_table).where(_table.c.key == key)).one_or_none()
        if row is None:
            target = select(_aliases.c.key).where(_aliases.c.alias == key).scalar_subquery()
            row = self.session.execute(
                select(_table).where(_table.c.key == target)
            ).one_or_none()
        return None if row is None else _row_to_record(row)

    def conditional_put(
        self,
        key: str,
        record: EntityRecord,
        expected_version: int | None,
        *,
        aliases: Iterable[str] = (),
    ) -> int:
        values = _record_values(key, record)
        if expected_version is None:
            if self._exists(key):
                raise StaleRecordError(key, expected_version)
            try:
                self.session.execute(insert(_table).values(**values, version=1))
            except IntegrityError as exc:
                self.session.rollback()
                raise StaleRecordError(key, expected_version) from exc
            self.session.execute(delete(_aliases).where(_aliases.c.alias == key))
            self._point_aliases(aliases, key)
            return 1

        version = expected_version + 1
        stmt = (
            update(_table)
            .where(_table.c.key == key)
            .where(_table.c.version == expected_version)
            .values(**values, version=version)
        )
        result = cast("CursorResult[Any]", self.session.execute(stmt))
        if result.rowcount != 1:
            raise StaleRecordError(key, expected_version)
        self._point_aliases(aliases, key)
        return version

    def conditional_move(
        self,
        old_key: str,
        new_key: str,
        record: EntityRecord,
        expected_version: int,
    ) -> int:
        if self._exists(new_key):
            raise KeyPromotionConflictError(old_key, new_key)
        version = expected_version + 1
        stmt = (
            update(_table)
            .where(_table.c.key == old_key)
            .where(_table.c.version == expected_version)
            .values(**_record_values(new_key, record), version=version)
        )
        try:
            result = cast("CursorResult[Any]", self.session.execute(stmt))
        except IntegrityError as exc:
            self.session.rollback()
            raise KeyPromotionConflictError(old_key, new_key) from exc
        if result.rowcount != 1:
            raise StaleRecordError(old_key, expected_version)
        self.session.execute(delete(_aliases).where(_aliases.c.alias == new_key))
        self.session.execute(
            update(_aliases).where(_aliases.c.key == old_key).values(key=new_key)
        )
        self.session.execute(insert(_aliases).values(alias=old_key, key=new_key))
        log.debug("Moved %s -> %s (version %d)", old_key, new_key, version)
        return version

    def _point_aliases(self, aliases: Iterable[str], key: str) -> None:
        for alias in dict.fromkeys(aliases):
            if alias == key:
                continue
            self.session.execute(delete(_aliases).where(_aliases.c.alias == alias))
            self.session.execute(insert(_aliases).values(alias=alias, key=key))

    def keys(self) -> list[str]:
        stmt = select(_table.c.key).order_by(_table.c.key)
        return list(self.session.execute(stmt).scalars())

    def _exists(self, key: str) -> bool:
        return bool(self.session.execute(select(exists().where(_table.c.key == key))).scalar())
