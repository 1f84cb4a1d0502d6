"""Directional field merge: fold a visiting record into an existing one.

Every policy is safe to replay: applying the same visiting record twice
leaves the existing record as it was after the first application.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Hashable, Mapping
from typing import TYPE_CHECKING, cast

from reconcilio.domain.model import FieldPolicy, MergePolicy, is_blank

from .contracts import LatticeTransition, MergeReport, PolicyViolation

if TYPE_CHECKING:
    from reconcilio.domain.catalog import KindSpec
    from reconcilio.domain.model import EntityRecord

type FieldMergeFn = Callable[[object, object, FieldPolicy], object]


def merge_preserve_blank(current: object, incoming: object, _policy: FieldPolicy) -> object:
    return current if is_blank(incoming) else copy.deepcopy(incoming)


def merge_overwrite(_current: object, incoming: object, _policy: FieldPolicy) -> object:
    return copy.deepcopy(incoming)


def merge_union(current: object, incoming: object, _policy: FieldPolicy) -> object:
    merged = [copy.deepcopy(item) for item in _as_list(current)]
    for item in _as_list(incoming):
        if item not in merged:
            merged.append(copy.deepcopy(item))
    return merged


def merge_bounded(current: object, incoming: object, policy: FieldPolicy) -> object:
    """Keyed update-in-place, append the rest, then drop the oldest beyond the cap."""

    merged = [copy.deepcopy(item) for item in _as_list(current)]
    positions: dict[Hashable, int] = {}
    for index, item in enumerate(merged):
        positions.setdefault(element_key(item, policy.key_fields), index)
    for item in _as_list(incoming):
        key = element_key(item, policy.key_fields)
        index = positions.get(key)
        if index is None:
            positions[key] = len(merged)
            merged.append(copy.deepcopy(item))
        else:
            merged[index] = copy.deepcopy(item)
    cap = policy.cap or len(merged)
    overflow = len(merged) - cap
    if overflow > 0:
        merged = merged[overflow:]
    return merged


def bounded_append[T](
    current: list[T],
    incoming: list[T],
    *,
    cap: int,
    key_fields: tuple[str, ...] = (),
) -> list[T]:
    policy = FieldPolicy.bounded(cap, *key_fields)
    return cast("list[T]", merge_bounded(current, incoming, policy))


def element_key(item: object, key_fields: tuple[str, ...]) -> Hashable:
    if key_fields and isinstance(item, Mapping):
        return tuple(_freeze(item.get(name)) for name in key_fields)
    return _freeze(item)


def _freeze(value: object) -> Hashable:
    if isinstance(value, Mapping):
        return tuple(sorted((str(k), _freeze(v)) for k, v in value.items()))
    if isinstance(value, list | tuple):
        return tuple(_freeze(item) for item in value)
    if isinstance(value, set | frozenset):
        return frozenset(_freeze(item) for item in value)
    if isinstance(value, Hashable):
        return value
    return repr(value)


def _as_list(value: object) -> list[object]:
    if is_blank(value):
        return []
    if isinstance(value, list | tuple):
        return list(value)
    return [value]


class FieldMerger:
    """Per-policy dispatch over the content fields of two records."""

    def __init__(self, overrides: Mapping[MergePolicy, FieldMergeFn] | None = None) -> None:
        self._dispatch: dict[MergePolicy, FieldMergeFn] = {
            MergePolicy.SCALAR_PRESERVE_BLANK: merge_preserve_blank,
            MergePolicy.SCALAR_OVERWRITE: merge_overwrite,
            MergePolicy.LIST_UNION_DEDUP: merge_union,
            MergePolicy.BOUNDED_FIFO: merge_bounded,
        }
        if overrides:
            self._dispatch.update(overrides)

    def merge(self, existing: EntityRecord, visiting: EntityRecord, spec: KindSpec) -> MergeReport:
        """Fold ``visiting.fields`` into ``existing.fields`` in place.

        Fields the visiting record does not carry are left alone under every
        policy. A lattice value that cannot be ordered against the existing one
        is reported as a violation and the field keeps its value.
        """

        report = MergeReport()
        for name, incoming in visiting.fields.items():
            policy = spec.policy_for(name)
            present = name in existing.fields
            current = existing.fields.get(name)

            if policy.lattice is not None and policy.policy is MergePolicy.LATTICE:
                merged = policy.lattice.join(current, incoming)
                if merged is None:
                    report.violations.append(
                        PolicyViolation(field=name, existing=current, visiting=incoming)
                    )
                    continue
            else:
                merged = self._dispatch[policy.policy](current, incoming, policy)

            if present and merged == current:
                continue
            overwrites = policy.policy is MergePolicy.SCALAR_OVERWRITE
            if not present and is_blank(merged) and not overwrites:
                continue

            existing.fields[name] = merged
            report.changed.append(name)
            if policy.policy is MergePolicy.LATTICE:
                report.transitions.append(
                    LatticeTransition(field=name, previous=current, new=merged)
                )
        return report


def fold_bookkeeping(existing: EntityRecord, visiting: EntityRecord) -> list[str]:
    """Merge timestamps, TTL and source; returns the names that changed.

    TTL: once permanent (``0``) a record stays permanent; a permanent visitor
    makes the record permanent; otherwise the visitor refreshes the expiry.
    """

    changed: list[str] = []
    if visiting.visited is not None and visiting.visited != existing.visited:
        existing.visited = visiting.visited
        changed.append("visited")
    if visiting.created is not None and (
        existing.created is None or visiting.created < existing.created
    ):
        existing.created = visiting.created
        changed.append("created")
    if existing.ttl != 0 and existing.ttl != visiting.ttl:
        existing.ttl = visiting.ttl
        changed.append("ttl")
    if is_blank(existing.source) and not is_blank(visiting.source):
        existing.source = visiting.source
        changed.append("source")
    return changed
