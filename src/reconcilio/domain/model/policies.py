"""Per-field merge policy declarations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from reconcilio.domain.model.enums import MergePolicy

if TYPE_CHECKING:
    from reconcilio.domain.model.lattice import Lattice


@dataclass(frozen=True, slots=True)
class FieldPolicy:
    policy: MergePolicy
    lattice: Lattice | None = None
    cap: int | None = None
    key_fields: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.policy is MergePolicy.LATTICE and self.lattice is None:
            raise ValueError("lattice policy requires a lattice")
        if self.policy is MergePolicy.BOUNDED_FIFO and (self.cap is None or self.cap < 1):
            raise ValueError("bounded-fifo policy requires a positive cap")

    @classmethod
    def preserve_blank(cls) -> FieldPolicy:
        return cls(MergePolicy.SCALAR_PRESERVE_BLANK)

    @classmethod
    def overwrite(cls) -> FieldPolicy:
        return cls(MergePolicy.SCALAR_OVERWRITE)

    @classmethod
    def union(cls) -> FieldPolicy:
        return cls(MergePolicy.LIST_UNION_DEDUP)

    @classmethod
    def ordered_by(cls, lattice: Lattice) -> FieldPolicy:
        return cls(MergePolicy.LATTICE, lattice=lattice)

    @classmethod
    def bounded(cls, cap: int, *key_fields: str) -> FieldPolicy:
        return cls(MergePolicy.BOUNDED_FIFO, cap=cap, key_fields=key_fields)
