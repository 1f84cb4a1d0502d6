"""Kind registry built once at startup and passed by reference."""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING

from reconcilio.domain.errors import RegistryCollisionError, UnknownKindError
from reconcilio.domain.model import EntityKind

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from .spec import KindSpec


class KindRegistry:
    """Immutable lookup table from entity kind to its spec."""

    def __init__(self, specs: dict[EntityKind, KindSpec]) -> None:
        self._specs = MappingProxyType(dict(specs))

    @classmethod
    def from_specs(cls, specs: Iterable[KindSpec]) -> KindRegistry:
        """Build a registry; a kind or label registered twice is a startup error."""

        by_kind: dict[EntityKind, KindSpec] = {}
        owners: dict[str, EntityKind] = {}
        for spec in specs:
            if spec.kind in by_kind:
                raise RegistryCollisionError(f"kind {spec.kind.value!r} registered twice")
            for label in spec.labels():
                owner = owners.get(label)
                if owner is not None:
                    raise RegistryCollisionError(
                        f"label {label!r} claimed by {owner.value!r} and {spec.kind.value!r}"
                    )
                owners[label] = spec.kind
            by_kind[spec.kind] = spec
        return cls(by_kind)

    def get(self, kind: EntityKind | str) -> KindSpec:
        try:
            return self._specs[EntityKind(kind)]
        except (KeyError, ValueError) as exc:
            raise UnknownKindError(f"no kind registered for {kind!r}") from exc

    def __contains__(self, kind: object) -> bool:
        return kind in self._specs

    def __iter__(self) -> Iterator[KindSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)
