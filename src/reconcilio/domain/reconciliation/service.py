"""Read-decide-write loop around the engine and a conditional-write store.

The engine decides; the store serializes. A write that loses against a
concurrent writer is retried from a fresh read, so two observations of the
same entity never overwrite each other's folds.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from reconcilio.domain.errors import KeyPromotionConflictError, StaleRecordError

from .contracts import ObservationResult, StoreAction, VisitOutcome

if TYPE_CHECKING:
    from reconcilio.domain.model import EntityRecord
    from reconcilio.domain.ports import RecordStore, StoredRecord

    from .contracts import VisitResult
    from .engine import ReconciliationEngine

log = logging.getLogger(__name__)

DEFAULT_MAX_WRITE_ATTEMPTS = 3


def reconcile_observation(
    store: RecordStore,
    engine: ReconciliationEngine,
    visiting: EntityRecord,
    *,
    actor: str | None = None,
    max_attempts: int = DEFAULT_MAX_WRITE_ATTEMPTS,
) -> ObservationResult:
    """Fold ``visiting`` into whatever the store holds for the same entity.

    Raises:
        StaleRecordError: every attempt lost against a concurrent writer.
        KeyPromotionConflictError: the promoted key already names another record.
    """

    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    target_key = visiting.key or engine.deriver.derive_for(visiting)
    attempt = 1
    while True:
        try:
            return _attempt(store, engine, visiting, target_key, actor=actor)
        except StaleRecordError as exc:
            if attempt >= max_attempts:
                raise
            log.warning(
                "Concurrent write on %s (attempt %d/%d): %s",
                exc.key,
                attempt,
                max_attempts,
                exc,
            )
        except KeyPromotionConflictError as exc:
            log.error("Promotion conflict for %s: %s", target_key, exc)  # noqa: TRY400
            raise
        attempt += 1


def _attempt(
    store: RecordStore,
    engine: ReconciliationEngine,
    visiting: EntityRecord,
    target_key: str,
    *,
    actor: str | None,
) -> ObservationResult:
    rejected: VisitResult | None = None
    target_taken = False
    for key in engine.deriver.candidate_keys(visiting):
        stored = store.get(key)
        if stored is None:
            continue
        # the key may be an alias left behind by an earlier promotion
        stored_key = stored.record.key or key
        target_taken = target_taken or stored_key == target_key
        result = engine.visit(stored.record.snapshot(), visiting, actor=actor)
        if result.outcome is VisitOutcome.REJECTED:
            rejected = result
            continue
        return _write_visit(store, stored_key, stored, result)

    if target_taken and rejected is not None:
        log.info("Observation %s rejected: %s", target_key, rejected.match.reason)
        return ObservationResult(action=StoreAction.REJECTED, key=target_key, visit=rejected)

    created = visiting.snapshot()
    created.key = target_key
    # weak-only observations of this entity must find it under its strong key
    aliases = tuple(key for key in engine.deriver.candidate_keys(created) if key != target_key)
    version = store.conditional_put(target_key, created, None, aliases=aliases)
    log.debug("Created %s", target_key)
    return ObservationResult(action=StoreAction.CREATED, key=target_key, version=version)


def _write_visit(
    store: RecordStore,
    key: str,
    stored: StoredRecord,
    result: VisitResult,
) -> ObservationResult:
    record = result.record
    new_key = record.key or key
    if new_key == key and not result.report.changed_anything and not result.history:
        return ObservationResult(
            action=StoreAction.MERGED, key=key, version=stored.version, visit=result
        )
    if new_key != key:
        version = store.conditional_move(key, new_key, record, stored.version)
        action = StoreAction.PROMOTED
    else:
        version = store.conditional_put(key, record, stored.version)
        action = StoreAction.MERGED
    return ObservationResult(action=action, key=new_key, version=version, visit=result)
