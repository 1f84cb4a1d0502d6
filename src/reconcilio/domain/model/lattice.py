"""Partial orders for monotonic status fields.

A lattice field only ever moves "up": merging takes the maximum of the two
values. Values that are not comparable leave the field untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

from reconcilio.domain.model.enums import AssetStatus, JobStatus, WebpageState
from reconcilio.domain.model.identity import is_blank


@dataclass(frozen=True, slots=True)
class Lattice:
    """Named partial order built from covering pairs ``(lower, upper)``."""

    name: str
    covers: tuple[tuple[str, str], ...]
    _above: dict[str, frozenset[str]] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        above: dict[str, set[str]] = {}
        for lower, upper in self.covers:
            if lower == upper:
                raise ValueError(f"lattice {self.name}: {lower!r} cannot cover itself")
            above.setdefault(lower, set()).add(upper)
            above.setdefault(upper, set())
        closure = {value: _reachable(value, above) for value in above}
        for value, reachable in closure.items():
            if value in reachable:
                raise ValueError(f"lattice {self.name}: cycle through {value!r}")
        object.__setattr__(
            self, "_above", {value: frozenset(reachable) for value, reachable in closure.items()}
        )

    @classmethod
    def chain(cls, name: str, *values: str) -> Lattice:
        """Total order, lowest value first."""
        return cls(name=name, covers=tuple(zip(values, values[1:], strict=False)))

    @property
    def values(self) -> frozenset[str]:
        return frozenset(self._above)

    def __contains__(self, value: object) -> bool:
        return value in self._above

    def leq(self, lower: str, upper: str) -> bool:
        if lower not in self._above or upper not in self._above:
            return False
        return lower == upper or upper in self._above[lower]

    def comparable(self, a: str, b: str) -> bool:
        return self.leq(a, b) or self.leq(b, a)

    def join(self, existing: object, visiting: object) -> object | None:
        """Return the maximum of the two values, or ``None`` if incomparable.

        Blank is the bottom element, so a blank side yields the other side.
        """

        if is_blank(visiting):
            return existing
        if is_blank(existing):
            return visiting if visiting in self else None
        if not isinstance(existing, str) or not isinstance(visiting, str):
            return None
        if self.leq(existing, visiting):
            return visiting
        if self.leq(visiting, existing):
            return existing
        return None


def _reachable(start: str, above: dict[str, set[str]]) -> set[str]:
    seen: set[str] = set()
    pending: list[str] = list(above.get(start, ()))
    while pending:
        value = pending.pop()
        if value in seen:
            continue
        seen.add(value)
        pending.extend(above.get(value, ()))
    return seen


WEBPAGE_STATE: Final[Lattice] = Lattice.chain(
    "webpage_state",
    WebpageState.UNINTERESTING,
    WebpageState.UNANALYZED,
    WebpageState.INTERESTING,
)

# pass and fail are both terminal, neither outranks the other
JOB_STATUS: Final[Lattice] = Lattice(
    name="job_status",
    covers=(
        (JobStatus.QUEUED, JobStatus.RUNNING),
        (JobStatus.RUNNING, JobStatus.PASS),
        (JobStatus.RUNNING, JobStatus.FAIL),
    ),
)

# frozen and deleted are set by operators, never reached through a visit
ASSET_STATUS: Final[Lattice] = Lattice(
    name="asset_status",
    covers=((AssetStatus.PENDING, AssetStatus.ACTIVE),),
)
