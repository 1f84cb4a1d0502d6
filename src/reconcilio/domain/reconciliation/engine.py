"""Visit protocol: match, fold, promote, record history.

A visit ends in exactly one of three states:

- ``rejected``: the identities do not match; ``existing`` is not touched
- ``merged``: fields folded, key unchanged
- ``merged-with-promotion``: fields folded and the key re-derived because the
  visiting record supplied a strong identifier ``existing`` lacked

History entries are appended after the key is final, so every entry written by
a visit references the post-promotion key.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final

from reconcilio.domain.model import HistoryRecord, Identifier, KeyOverflow, is_blank

from .contracts import MergeReport, VisitOutcome, VisitResult
from .keys import DEFAULT_MAX_KEY_LENGTH, KeyDeriver
from .match import IdentityMatcher
from .merge import FieldMerger, bounded_append, fold_bookkeeping

if TYPE_CHECKING:
    from reconcilio.domain.catalog import KindRegistry, KindSpec
    from reconcilio.domain.model import EntityRecord

log = logging.getLogger(__name__)

DEFAULT_HISTORY_CAP: Final[int] = 100
DEFAULT_ACTOR: Final[str] = "reconciler"
KEY_HISTORY_FIELD: Final[str] = "key"


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(slots=True)
class ReconciliationEngine:
    """Fold newly observed records into canonical ones."""

    registry: KindRegistry
    deriver: KeyDeriver
    matcher: IdentityMatcher
    merger: FieldMerger = field(default_factory=FieldMerger)
    history_cap: int = DEFAULT_HISTORY_CAP
    default_actor: str = DEFAULT_ACTOR
    now: Callable[[], datetime] = _utcnow

    @classmethod
    def build(
        cls,
        registry: KindRegistry,
        *,
        max_key_length: int = DEFAULT_MAX_KEY_LENGTH,
        key_overflow: KeyOverflow = KeyOverflow.TRUNCATE,
        history_cap: int = DEFAULT_HISTORY_CAP,
        default_actor: str = DEFAULT_ACTOR,
        now: Callable[[], datetime] = _utcnow,
    ) -> ReconciliationEngine:
        deriver = KeyDeriver(registry, max_length=max_key_length, overflow=key_overflow)
        return cls(
            registry=registry,
            deriver=deriver,
            matcher=IdentityMatcher(registry, deriver),
            history_cap=history_cap,
            default_actor=default_actor,
            now=now,
        )

    def visit(
        self,
        existing: EntityRecord,
        visiting: EntityRecord,
        *,
        actor: str | None = None,
    ) -> VisitResult:
        """Fold ``visiting`` into ``existing`` (in place) if they are the same entity."""

        decision = self.matcher.match(existing, visiting)
        if not decision.matched:
            log.debug(
                "Rejected visit of %s onto %s: %s",
                visiting.key or visiting.namespace,
                existing.key or existing.namespace,
                decision.reason,
            )
            return VisitResult(
                outcome=VisitOutcome.REJECTED,
                record=existing,
                match=decision,
                previous_key=existing.key,
            )

        spec = self.registry.get(existing.kind)
        previous_key = existing.key or self.deriver.derive_for(existing)
        promoting = existing.strong_identifier is None and visiting.strong_identifier is not None

        identifiers_changed = self._fold_identifiers(existing, visiting, spec)
        report = self.merger.merge(existing, visiting, spec)
        if identifiers_changed:
            report.changed.insert(0, "identifiers")
        report.changed.extend(fold_bookkeeping(existing, visiting))

        existing.key = self.deriver.derive_for(existing) if promoting else previous_key

        entries = self._history_entries(
            existing,
            report,
            previous_key=previous_key,
            by=actor or visiting.source or self.default_actor,
        )
        if entries:
            existing.history = bounded_append(
                existing.history, list(entries), cap=self.history_cap
            )

        if promoting:
            log.info("Promoted %s -> %s", previous_key, existing.key)
        for violation in report.violations:
            log.debug(
                "Kept %s=%r on %s: visiting %r is not comparable",
                violation.field,
                violation.existing,
                existing.key,
                violation.visiting,
            )

        return VisitResult(
            outcome=VisitOutcome.MERGED_WITH_PROMOTION if promoting else VisitOutcome.MERGED,
            record=existing,
            match=decision,
            previous_key=previous_key,
            report=report,
            history=entries,
        )

    def _fold_identifiers(
        self,
        existing: EntityRecord,
        visiting: EntityRecord,
        spec: KindSpec,
    ) -> bool:
        before = len(existing.identifiers)
        strong = visiting.strong_identifier
        if existing.strong_identifier is None and strong is not None:
            existing.add_identifier(Identifier.strong(spec.strong_normalizer(strong.value)))
        weak = visiting.weak_identifier
        if existing.weak_identifier is None and weak is not None:
            existing.add_identifier(weak)
        return len(existing.identifiers) != before

    def _history_entries(
        self,
        record: EntityRecord,
        report: MergeReport,
        *,
        previous_key: str,
        by: str,
    ) -> tuple[HistoryRecord, ...]:
        updated = self.now()
        entries = [
            HistoryRecord(
                field=transition.field,
                previous=None if is_blank(transition.previous) else str(transition.previous),
                new=str(transition.new),
                by=by,
                key=record.key,
                updated=updated,
            )
            for transition in report.transitions
        ]
        if record.key != previous_key:
            entries.append(
                HistoryRecord(
                    field=KEY_HISTORY_FIELD,
                    previous=previous_key,
                    new=record.key,
                    by=by,
                    key=record.key,
                    comment="promoted to strong identifier",
                    updated=updated,
                )
            )
        return tuple(entries)
