"""Public domain model surface."""

from __future__ import annotations

from reconcilio.domain.model.enums import (
    AssetStatus,
    EntityKind,
    IdentifierStrength,
    JobStatus,
    KeyOverflow,
    MergePolicy,
    WebpageState,
)
from reconcilio.domain.model.history import HistoryRecord
from reconcilio.domain.model.identity import (
    Identifier,
    Namespace,
    best_identifier,
    first_of_strength,
    is_blank,
)
from reconcilio.domain.model.lattice import ASSET_STATUS, JOB_STATUS, WEBPAGE_STATE, Lattice
from reconcilio.domain.model.policies import FieldPolicy
from reconcilio.domain.model.record import EntityRecord, RecordDraft, ValidationProblem

__all__ = [  # noqa: RUF022
    # identity
    "Identifier",
    "Namespace",
    "best_identifier",
    "first_of_strength",
    "is_blank",
    # records
    "EntityRecord",
    "RecordDraft",
    "ValidationProblem",
    "HistoryRecord",
    # policies
    "FieldPolicy",
    "Lattice",
    "ASSET_STATUS",
    "JOB_STATUS",
    "WEBPAGE_STATE",
    # enums
    "AssetStatus",
    "EntityKind",
    "IdentifierStrength",
    "JobStatus",
    "KeyOverflow",
    "MergePolicy",
    "WebpageState",
]
