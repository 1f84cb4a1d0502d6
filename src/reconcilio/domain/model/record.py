"""Entity records and the drafts they are constructed from."""

# switch off type warnings because of default_factory=list or dict
# pyright: reportUnknownVariableType=false

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from reconcilio.domain.model.enums import EntityKind, IdentifierStrength
from reconcilio.domain.model.identity import Identifier, Namespace, first_of_strength

if TYPE_CHECKING:
    from datetime import datetime

    from reconcilio.domain.model.history import HistoryRecord


@dataclass(frozen=True, slots=True)
class ValidationProblem:
    field: str
    message: str


@dataclass(slots=True, kw_only=True)
class RecordDraft:
    """What a discovery source observed, before validation and key derivation."""

    kind: EntityKind | str
    scope: str
    subtype: str | None = None
    identifiers: list[Identifier] = field(default_factory=list)
    fields: dict[str, object] = field(default_factory=dict)
    source: str | None = None
    created: datetime | None = None
    visited: datetime | None = None
    ttl: int | None = None


@dataclass(kw_only=True)
class EntityRecord:
    """A reconcilable catalog record.

    ``ttl`` is an expiry timestamp in epoch seconds; ``0`` means permanent.
    """

    namespace: Namespace
    identifiers: list[Identifier] = field(default_factory=list)
    fields: dict[str, object] = field(default_factory=dict)
    key: str | None = None
    source: str | None = None
    created: datetime | None = None
    visited: datetime | None = None
    ttl: int = 0
    history: list[HistoryRecord] = field(default_factory=list)

    @property
    def kind(self) -> EntityKind:
        return self.namespace.kind

    @property
    def strong_identifier(self) -> Identifier | None:
        return first_of_strength(self.identifiers, IdentifierStrength.STRONG)

    @property
    def weak_identifier(self) -> Identifier | None:
        return first_of_strength(self.identifiers, IdentifierStrength.WEAK)

    def add_identifier(self, identifier: Identifier) -> None:
        """Attach ``identifier``; strong identifiers rank ahead of weak ones."""

        if identifier in self.identifiers:
            return
        if identifier.is_strong:
            self.identifiers.insert(0, identifier)
        else:
            self.identifiers.append(identifier)

    def snapshot(self) -> EntityRecord:
        return copy.deepcopy(self)
