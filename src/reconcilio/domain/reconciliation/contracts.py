"""Shared reconciliation contract components.

This module intentionally holds only the result dataclasses/enums returned by
the matcher, the field merger and the engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reconcilio.domain.model import EntityRecord, HistoryRecord


class MatchReason(StrEnum):
    """Why two records were (or were not) judged to be the same entity."""

    STRONG_IDENTIFIER = "strong_identifier"
    WEAK_IDENTIFIER = "weak_identifier"
    CANONICAL_KEY = "canonical_key"
    KIND_MISMATCH = "kind_mismatch"
    NAMESPACE_MISMATCH = "namespace_mismatch"
    STRONG_IDENTIFIER_CONFLICT = "strong_identifier_conflict"
    NO_COMMON_IDENTIFIER = "no_common_identifier"
    INVALID_IDENTITY = "invalid_identity"


@dataclass(frozen=True, slots=True)
class MatchDecision:
    matched: bool
    reason: MatchReason

    def __bool__(self) -> bool:
        return self.matched


@dataclass(frozen=True, slots=True)
class LatticeTransition:
    field: str
    previous: object
    new: object


@dataclass(frozen=True, slots=True)
class PolicyViolation:
    """A visiting value that could not be ordered against the existing one."""

    field: str
    existing: object
    visiting: object
    reason: str = "incomparable"


@dataclass(slots=True)
class MergeReport:
    changed: list[str] = field(default_factory=list["str"])
    transitions: list[LatticeTransition] = field(default_factory=list["LatticeTransition"])
    violations: list[PolicyViolation] = field(default_factory=list["PolicyViolation"])

    @property
    def changed_anything(self) -> bool:
        return bool(self.changed)


class VisitOutcome(StrEnum):
    """Terminal states of one ``visit`` call."""

    REJECTED = "rejected"
    MERGED = "merged"
    MERGED_WITH_PROMOTION = "merged-with-promotion"


@dataclass(slots=True, kw_only=True)
class VisitResult:
    outcome: VisitOutcome
    record: EntityRecord
    match: MatchDecision
    previous_key: str | None = None
    report: MergeReport = field(default_factory=MergeReport)
    history: tuple[HistoryRecord, ...] = ()

    @property
    def promoted(self) -> bool:
        return self.outcome is VisitOutcome.MERGED_WITH_PROMOTION

    @property
    def key_changed(self) -> bool:
        return self.previous_key != self.record.key


class StoreAction(StrEnum):
    """What the caller-level service did with one observation."""

    CREATED = "created"
    MERGED = "merged"
    PROMOTED = "promoted"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True, kw_only=True)
class ObservationResult:
    action: StoreAction
    key: str
    version: int | None = None
    visit: VisitResult | None = None
