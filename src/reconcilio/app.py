"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from reconcilio.adapters.jsonl import parse_draft, parse_history
from reconcilio.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, is_started, startup
from reconcilio.config import EngineConfig, get_engine_config
from reconcilio.domain.catalog import build_default_registry
from reconcilio.domain.errors import RecordValidationError
from reconcilio.domain.ingestion import IngestResult, ingest_records
from reconcilio.domain.ports import RecordUnitOfWork
from reconcilio.domain.reconciliation import ReconciliationEngine, construct_record

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from reconcilio.adapters.jsonl import RecordPayload, RecordPayloadInput
    from reconcilio.domain.catalog import KindRegistry
    from reconcilio.domain.model import EntityRecord
    from reconcilio.domain.reconciliation import VisitResult

UnitOfWorkFactory = Callable[[], RecordUnitOfWork]


log = getLogger(__name__)


def build_engine(
    config: EngineConfig | None = None,
    *,
    registry: KindRegistry | None = None,
) -> ReconciliationEngine:
    """Wire an engine from configuration and the built-in kind catalog."""

    effective = config or get_engine_config()
    return ReconciliationEngine.build(
        registry or build_default_registry(),
        max_key_length=effective.max_key_length,
        key_overflow=effective.key_overflow,
        history_cap=effective.history_cap,
        default_actor=effective.default_actor,
    )


def record_from_payload(payload: RecordPayloadInput, engine: ReconciliationEngine) -> EntityRecord:
    """Construct a keyed record; history carried by the payload is kept.

    Raises:
        RecordValidationError: the payload does not describe a valid record.
    """

    record = construct_record(
        parse_draft(payload),
        registry=engine.registry,
        deriver=engine.deriver,
        now=engine.now,
    )
    record.history = parse_history(payload)
    return record


def derive_payload_key(
    payload: RecordPayloadInput,
    *,
    engine: ReconciliationEngine | None = None,
) -> str:
    effective_engine = engine or build_engine()
    record = record_from_payload(payload, effective_engine)
    return record.key or effective_engine.deriver.derive_for(record)


def visit_payloads(
    existing: RecordPayloadInput,
    visiting: RecordPayloadInput,
    *,
    engine: ReconciliationEngine | None = None,
    actor: str | None = None,
) -> VisitResult:
    """Fold one payload into another without touching any store."""

    effective_engine = engine or build_engine()
    return effective_engine.visit(
        record_from_payload(existing, effective_engine),
        record_from_payload(visiting, effective_engine),
        actor=actor,
    )


def ingest_payloads(
    payloads: Iterable[RecordPayload | None],
    *,
    engine: ReconciliationEngine | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: EngineConfig | None = None,
    actor: str | None = None,
) -> IngestResult:
    """Reconcile a stream of payloads into the configured store."""

    effective_config = config or get_engine_config()
    effective_engine = engine or build_engine(effective_config)
    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemyUnitOfWork

    result = IngestResult()
    log.info(
        "Starting ingest: history_cap=%s, max_write_attempts=%s",
        effective_config.history_cap,
        effective_config.max_write_attempts,
    )

    def _records() -> Iterator[EntityRecord]:
        for payload in payloads:
            if payload is None:
                result.invalid += 1
                continue
            try:
                yield record_from_payload(payload, effective_engine)
            except RecordValidationError as exc:
                log.warning("Skipping invalid %s record: %s", payload.kind, exc)
                result.invalid += 1

    ingest_records(
        _records(),
        engine=effective_engine,
        unit_of_work_factory=unit_of_work_factory,
        actor=actor,
        max_attempts=effective_config.max_write_attempts,
        result=result,
    )

    log.info(
        f"Finished ingest: created={result.created}, merged={result.merged}, "
        f"promoted={result.promoted}, rejected={result.rejected}, invalid={result.invalid}, "
        f"conflicts={result.conflicts}, stale={result.stale}"
    )
    return result
