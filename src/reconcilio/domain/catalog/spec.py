"""Per-kind field/policy tables."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from reconcilio.domain.model import EntityKind, FieldPolicy

type Normalizer = Callable[[str], str]


def _identity(value: str) -> str:
    return value


def _casefold(value: str) -> str:
    return value.strip().casefold()


@dataclass(frozen=True, slots=True, kw_only=True)
class KindSpec:
    """Everything reconciliation needs to know about one entity kind."""

    kind: EntityKind
    subtypes: frozenset[str] = frozenset()
    scope_casefold: bool = True
    strong_normalizer: Normalizer = _identity
    weak_normalizer: Normalizer = _casefold
    field_policies: Mapping[str, FieldPolicy] = field(default_factory=dict)
    default_policy: FieldPolicy = field(default_factory=FieldPolicy.preserve_blank)
    defaults: Mapping[str, object] = field(default_factory=dict)
    ttl_hours: int | None = None
    max_key_length: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "subtypes", frozenset(s.lower() for s in self.subtypes))
        object.__setattr__(self, "field_policies", MappingProxyType(dict(self.field_policies)))
        object.__setattr__(self, "defaults", MappingProxyType(dict(self.defaults)))

    def policy_for(self, name: str) -> FieldPolicy:
        return self.field_policies.get(name, self.default_policy)

    def labels(self) -> frozenset[str]:
        """Key labels this kind claims: its own name plus its subtypes."""
        return self.subtypes | {self.kind.value}
