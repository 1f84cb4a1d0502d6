"""Domain exceptions.

Expected business outcomes (a non-match, an incomparable lattice value) are
reported as result values; only invalid input and store conflicts raise.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reconcilio.domain.model import ValidationProblem


class ReconciliationError(RuntimeError):
    """Base class for reconciliation failures."""


class InvalidIdentityError(ReconciliationError, ValueError):
    """Record identity cannot produce a canonical key."""


class MissingIdentifierError(InvalidIdentityError):
    """Neither a strong nor a weak identifier is present."""


class RecordValidationError(ValueError):
    """Record construction failed validation; nothing may be persisted."""

    def __init__(self, problems: tuple[ValidationProblem, ...]) -> None:
        self.problems = problems
        details = "; ".join(f"{problem.field}: {problem.message}" for problem in problems)
        super().__init__(f"Invalid record: {details}")


class RegistryCollisionError(ReconciliationError):
    """A kind or subtype label was registered twice."""


class UnknownKindError(ReconciliationError, LookupError):
    """No kind spec is registered for the requested kind or subtype."""


class StoreError(ReconciliationError):
    """Base class for store collaborator failures."""


class StaleRecordError(StoreError):
    """Conditional write lost against a concurrent writer."""

    def __init__(self, key: str, expected_version: int | None) -> None:
        self.key = key
        self.expected_version = expected_version
        super().__init__(f"Stale write for {key!r} (expected version {expected_version})")


class KeyPromotionConflictError(StoreError):
    """The promoted key already names a different stored record."""

    def __init__(self, old_key: str, new_key: str) -> None:
        self.old_key = old_key
        self.new_key = new_key
        super().__init__(f"Cannot promote {old_key!r}: {new_key!r} already exists")
