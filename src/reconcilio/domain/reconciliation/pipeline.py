"""Explicit record construction: validate -> default-fill -> derive-key -> ready.

Each stage is a plain function of its input; nothing is registered or called
implicitly. A record that fails validation never reaches key derivation and
must not be written to a store.
"""

from __future__ import annotations

import copy
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from reconcilio.domain.errors import InvalidIdentityError, RecordValidationError, UnknownKindError
from reconcilio.domain.model import (
    EntityKind,
    EntityRecord,
    Identifier,
    Namespace,
    ValidationProblem,
    best_identifier,
    is_blank,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from reconcilio.domain.catalog import KindRegistry, KindSpec
    from reconcilio.domain.model import RecordDraft

    from .keys import KeyDeriver


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def validate(draft: RecordDraft, registry: KindRegistry) -> tuple[ValidationProblem, ...]:
    problems: list[ValidationProblem] = []
    try:
        spec = registry.get(draft.kind)
    except UnknownKindError:
        return (ValidationProblem("kind", f"unknown entity kind {draft.kind!r}"),)

    if draft.subtype is not None and draft.subtype.lower() not in spec.subtypes:
        problems.append(
            ValidationProblem("subtype", f"{draft.subtype!r} is not a {spec.kind.value} subtype")
        )
    if is_blank(draft.scope):
        problems.append(ValidationProblem("scope", "namespace scope is required"))
    if best_identifier(draft.identifiers) is None:
        problems.append(ValidationProblem("identifiers", "a strong or weak identifier is required"))
    if draft.ttl is not None and draft.ttl < 0:
        problems.append(ValidationProblem("ttl", "ttl must be 0 (permanent) or an epoch timestamp"))
    return tuple(problems)


def default_fill(draft: RecordDraft, spec: KindSpec, *, now: datetime) -> EntityRecord:
    """Normalize identity, apply kind defaults and bookkeeping timestamps."""

    scope = draft.scope.strip()
    if spec.scope_casefold:
        scope = scope.casefold()
    namespace = Namespace(
        kind=EntityKind(draft.kind),
        scope=scope,
        subtype=draft.subtype.lower() if draft.subtype else None,
    )

    identifiers: list[Identifier] = []
    for identifier in draft.identifiers:
        if is_blank(identifier.value):
            continue
        value = identifier.value.strip()
        if identifier.is_strong:
            value = spec.strong_normalizer(value)
        normalized = Identifier(value=value, strength=identifier.strength)
        if normalized not in identifiers:
            identifiers.append(normalized)
    identifiers.sort(key=lambda identifier: not identifier.is_strong)

    fields = copy.deepcopy(draft.fields)
    for name, default in spec.defaults.items():
        if is_blank(fields.get(name)):
            fields[name] = copy.deepcopy(default)

    return EntityRecord(
        namespace=namespace,
        identifiers=identifiers,
        fields=fields,
        source=draft.source,
        created=draft.created or now,
        visited=draft.visited or now,
        ttl=draft.ttl if draft.ttl is not None else default_ttl(spec, now=now),
    )


def default_ttl(spec: KindSpec, *, now: datetime) -> int:
    if spec.ttl_hours is None:
        return 0
    return int((now + timedelta(hours=spec.ttl_hours)).timestamp())


def with_key(record: EntityRecord, deriver: KeyDeriver) -> EntityRecord:
    record.key = deriver.derive_for(record)
    return record


def construct_record(
    draft: RecordDraft,
    *,
    registry: KindRegistry,
    deriver: KeyDeriver,
    now: Callable[[], datetime] = _utcnow,
) -> EntityRecord:
    """Run every construction stage and return a record ready for reconciliation.

    Raises:
        RecordValidationError: the draft failed validation or key derivation.
    """

    problems = validate(draft, registry)
    if problems:
        raise RecordValidationError(problems)
    record = default_fill(draft, registry.get(draft.kind), now=now())
    try:
        return with_key(record, deriver)
    except InvalidIdentityError as exc:
        raise RecordValidationError((ValidationProblem("key", str(exc)),)) from exc
