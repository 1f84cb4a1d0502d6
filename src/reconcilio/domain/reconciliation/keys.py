"""Canonical key derivation.

Keys have the layout ``#<label>#<scope>#<identifier>``. The ``#<label>#<scope>#``
prefix is never shortened; when a key would exceed its budget only the
identifier suffix is cut.
"""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING, Final

from reconcilio.domain.errors import InvalidIdentityError, MissingIdentifierError
from reconcilio.domain.model import (
    Identifier,
    IdentifierStrength,
    KeyOverflow,
    best_identifier,
    first_of_strength,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from reconcilio.domain.catalog import KindRegistry
    from reconcilio.domain.model import EntityRecord, Namespace

KEY_SEPARATOR: Final[str] = "#"
DEFAULT_MAX_KEY_LENGTH: Final[int] = 1024
HASH_TAIL_LENGTH: Final[int] = 16
HASH_TAIL_MARKER: Final[str] = "~"


def escape_segment(value: str) -> str:
    return value.replace("%", "%25").replace(KEY_SEPARATOR, "%23")


def key_prefix(namespace: Namespace, *, casefold_scope: bool = True) -> str:
    scope = namespace.scope.strip()
    if not scope:
        raise InvalidIdentityError(f"{namespace.label}: namespace scope is blank")
    if casefold_scope:
        scope = scope.casefold()
    sep = KEY_SEPARATOR
    return f"{sep}{namespace.label}{sep}{escape_segment(scope)}{sep}"


def shorten_identifier(value: str, budget: int, overflow: KeyOverflow) -> str:
    if len(value) <= budget:
        return value
    tail = len(HASH_TAIL_MARKER) + HASH_TAIL_LENGTH
    if overflow is KeyOverflow.HASH_TAIL and budget > tail:
        digest = hashlib.sha256(value.encode("utf-8")).hexdigest()[:HASH_TAIL_LENGTH]
        return f"{value[: budget - tail]}{HASH_TAIL_MARKER}{digest}"
    return value[:budget]


def derive_key(
    namespace: Namespace,
    identifiers: Iterable[Identifier],
    *,
    max_length: int = DEFAULT_MAX_KEY_LENGTH,
    overflow: KeyOverflow = KeyOverflow.TRUNCATE,
    casefold_scope: bool = True,
) -> str:
    """Return the canonical key for ``namespace`` and its best identifier.

    Raises:
        MissingIdentifierError: no usable strong or weak identifier.
        InvalidIdentityError: blank scope, or a prefix that alone fills the budget.
    """

    identifier = best_identifier(identifiers)
    if identifier is None:
        raise MissingIdentifierError(f"{namespace}: no strong or weak identifier present")
    prefix = key_prefix(namespace, casefold_scope=casefold_scope)
    budget = max_length - len(prefix)
    if budget < 1:
        raise InvalidIdentityError(
            f"{namespace}: key prefix ({len(prefix)} chars) exhausts the {max_length} char budget"
        )
    return prefix + shorten_identifier(identifier.value, budget, overflow)


class KeyDeriver:
    """Registry-aware key derivation: per-kind budgets and scope folding."""

    def __init__(
        self,
        registry: KindRegistry,
        *,
        max_length: int = DEFAULT_MAX_KEY_LENGTH,
        overflow: KeyOverflow = KeyOverflow.TRUNCATE,
    ) -> None:
        self.registry = registry
        self.max_length = max_length
        self.overflow = overflow

    def derive(self, namespace: Namespace, identifiers: Iterable[Identifier]) -> str:
        """Derive the key; a weak identifier enters it in its normalized form.

        Two weak identifiers the matcher considers equal therefore always map
        to the same key.
        """

        spec = self.registry.get(namespace.kind)
        identifier = best_identifier(identifiers)
        if identifier is not None and not identifier.is_strong:
            identifier = Identifier.weak(spec.weak_normalizer(identifier.value))
        return derive_key(
            namespace,
            () if identifier is None else (identifier,),
            max_length=spec.max_key_length or self.max_length,
            overflow=self.overflow,
            casefold_scope=spec.scope_casefold,
        )

    def derive_for(self, record: EntityRecord) -> str:
        return self.derive(record.namespace, record.identifiers)

    def candidate_keys(self, record: EntityRecord) -> tuple[str, ...]:
        """Keys under which an earlier observation of ``record`` may be stored.

        The record's own key comes first, then the key derived from its strong
        identifier, then the key its weak identifier alone would produce.
        """

        keys: list[str] = []
        if record.key:
            keys.append(record.key)
        for strength in (IdentifierStrength.STRONG, IdentifierStrength.WEAK):
            identifier = first_of_strength(record.identifiers, strength)
            if identifier is None:
                continue
            key = self.derive(record.namespace, (identifier,))
            if key not in keys:
                keys.append(key)
        return tuple(keys)
