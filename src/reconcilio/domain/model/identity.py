"""
Identity building blocks:
namespace, ranked identifiers, blank semantics.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from reconcilio.domain.model.enums import EntityKind, IdentifierStrength

if TYPE_CHECKING:
    from collections.abc import Iterable


def is_blank(value: object) -> bool:
    """Return whether ``value`` carries no information.

    ``0`` and ``False`` are values; only ``None``, blank strings and empty
    containers are blank.
    """

    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, list | tuple | dict | set | frozenset):
        return not value
    return False


@dataclass(frozen=True, slots=True)
class Namespace:
    """Entity kind plus tenant/domain scope under which keys are unique."""

    kind: EntityKind
    scope: str
    subtype: str | None = None

    @property
    def label(self) -> str:
        """Key label: the subtype when present, else the kind."""
        return (self.subtype or self.kind.value).lower()

    def same_as(self, other: Namespace, *, casefold_scope: bool) -> bool:
        if self.kind is not other.kind:
            return False
        if (self.subtype or "").lower() != (other.subtype or "").lower():
            return False
        if casefold_scope:
            return self.scope.casefold() == other.scope.casefold()
        return self.scope == other.scope

    def __str__(self) -> str:
        return f"{self.label}:{self.scope}"


@dataclass(frozen=True, slots=True)
class Identifier:
    value: str
    strength: IdentifierStrength

    @classmethod
    def strong(cls, value: str) -> Identifier:
        return cls(value=value, strength=IdentifierStrength.STRONG)

    @classmethod
    def weak(cls, value: str) -> Identifier:
        return cls(value=value, strength=IdentifierStrength.WEAK)

    @property
    def is_strong(self) -> bool:
        return self.strength is IdentifierStrength.STRONG


def first_of_strength(
    identifiers: Iterable[Identifier],
    strength: IdentifierStrength,
) -> Identifier | None:
    for identifier in identifiers:
        if identifier.strength is strength and not is_blank(identifier.value):
            return identifier
    return None


def best_identifier(identifiers: Iterable[Identifier]) -> Identifier | None:
    """Return the highest-ranked usable identifier: strong first, then weak."""

    ranked = tuple(identifiers)
    return first_of_strength(ranked, IdentifierStrength.STRONG) or first_of_strength(
        ranked, IdentifierStrength.WEAK
    )
