"""Reconciliation core: keys, matching, field merge and the visit protocol.

Layered flow for one observation:
1) construct a record from a draft (validate, default-fill, derive key)
2) look up earlier observations under the record's candidate keys
3) match identities inside the namespace
4) fold fields under per-kind policies, promoting the key if needed
5) write back through the store's conditional write
"""

from __future__ import annotations

from .contracts import (
    LatticeTransition,
    MatchDecision,
    MatchReason,
    MergeReport,
    ObservationResult,
    PolicyViolation,
    StoreAction,
    VisitOutcome,
    VisitResult,
)
from .engine import DEFAULT_ACTOR, DEFAULT_HISTORY_CAP, ReconciliationEngine
from .keys import DEFAULT_MAX_KEY_LENGTH, KeyDeriver, derive_key
from .match import IdentityMatcher
from .merge import FieldMerger, fold_bookkeeping
from .pipeline import construct_record, default_fill, validate, with_key
from .service import DEFAULT_MAX_WRITE_ATTEMPTS, reconcile_observation

__all__ = [
    "DEFAULT_ACTOR",
    "DEFAULT_HISTORY_CAP",
    "DEFAULT_MAX_KEY_LENGTH",
    "DEFAULT_MAX_WRITE_ATTEMPTS",
    "FieldMerger",
    "IdentityMatcher",
    "KeyDeriver",
    "LatticeTransition",
    "MatchDecision",
    "MatchReason",
    "MergeReport",
    "ObservationResult",
    "PolicyViolation",
    "ReconciliationEngine",
    "StoreAction",
    "VisitOutcome",
    "VisitResult",
    "construct_record",
    "default_fill",
    "derive_key",
    "fold_bookkeeping",
    "reconcile_observation",
    "validate",
    "with_key",
]
