"""Application service for reconciling a stream of observed records."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from reconcilio.domain.errors import KeyPromotionConflictError, StaleRecordError
from reconcilio.domain.reconciliation import (
    DEFAULT_MAX_WRITE_ATTEMPTS,
    StoreAction,
    reconcile_observation,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from reconcilio.domain.model import EntityRecord
    from reconcilio.domain.ports import RecordUnitOfWork
    from reconcilio.domain.reconciliation import ObservationResult, ReconciliationEngine

log = logging.getLogger(__name__)


@dataclass(slots=True)
class IngestResult:
    """Outcome counts of one ingest run."""

    created: int = 0
    merged: int = 0
    promoted: int = 0
    rejected: int = 0
    invalid: int = 0
    conflicts: int = 0
    stale: int = 0
    keys: list[str] = field(default_factory=list["str"])

    @property
    def processed(self) -> int:
        return self.created + self.merged + self.promoted + self.rejected

    def count(self, outcome: ObservationResult) -> None:
        match outcome.action:
            case StoreAction.CREATED:
                self.created += 1
            case StoreAction.MERGED:
                self.merged += 1
            case StoreAction.PROMOTED:
                self.promoted += 1
            case StoreAction.REJECTED:
                self.rejected += 1
        if outcome.key not in self.keys:
            self.keys.append(outcome.key)


def ingest_records(
    records: Iterable[EntityRecord],
    *,
    engine: ReconciliationEngine,
    unit_of_work_factory: Callable[[], RecordUnitOfWork],
    actor: str | None = None,
    max_attempts: int = DEFAULT_MAX_WRITE_ATTEMPTS,
    result: IngestResult | None = None,
) -> IngestResult:
    """Reconcile ``records`` one at a time, committing after each observation.

    A promotion conflict or an exhausted retry budget is counted and logged;
    the remaining records are still processed.
    """

    summary = result or IngestResult()
    for record in records:
        with unit_of_work_factory() as uow:
            try:
                outcome = reconcile_observation(
                    uow.repositories.records,
                    engine,
                    record,
                    actor=actor,
                    max_attempts=max_attempts,
                )
            except KeyPromotionConflictError:
                uow.rollback()
                summary.conflicts += 1
                continue
            except StaleRecordError as exc:
                uow.rollback()
                log.error("Giving up on %s after %d attempts: %s", record.key, max_attempts, exc)  # noqa: TRY400
                summary.stale += 1
                continue
            uow.commit()
        summary.count(outcome)
    return summary
