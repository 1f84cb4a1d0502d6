"""Identity matching between two partially identified records.

Rules, evaluated inside a matching namespace:
- both strong identifiers present -> they must be equal
- both weak identifiers present -> equal after the kind's weak normalizer
  (case-insensitive for every built-in kind)
- one side strong-only, the other weak-only -> both derive the same canonical key
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from reconcilio.domain.errors import InvalidIdentityError

from .contracts import MatchDecision, MatchReason

if TYPE_CHECKING:
    from reconcilio.domain.catalog import KindRegistry, KindSpec
    from reconcilio.domain.model import EntityRecord

    from .keys import KeyDeriver

log = logging.getLogger(__name__)


class IdentityMatcher:
    def __init__(self, registry: KindRegistry, deriver: KeyDeriver) -> None:
        self.registry = registry
        self.deriver = deriver

    def can_reconcile(self, a: EntityRecord, b: EntityRecord) -> bool:
        return self.match(a, b).matched

    def match(self, a: EntityRecord, b: EntityRecord) -> MatchDecision:
        if a.kind is not b.kind:
            return MatchDecision(matched=False, reason=MatchReason.KIND_MISMATCH)
        if (a.namespace.subtype or "").lower() != (b.namespace.subtype or "").lower():
            return MatchDecision(matched=False, reason=MatchReason.KIND_MISMATCH)

        spec = self.registry.get(a.kind)
        if not a.namespace.same_as(b.namespace, casefold_scope=spec.scope_casefold):
            return MatchDecision(matched=False, reason=MatchReason.NAMESPACE_MISMATCH)

        return self._match_identifiers(a, b, spec)

    def _match_identifiers(
        self,
        a: EntityRecord,
        b: EntityRecord,
        spec: KindSpec,
    ) -> MatchDecision:
        strong_a, strong_b = a.strong_identifier, b.strong_identifier
        weak_a, weak_b = a.weak_identifier, b.weak_identifier

        if strong_a is not None and strong_b is not None:
            if spec.strong_normalizer(strong_a.value) == spec.strong_normalizer(strong_b.value):
                return MatchDecision(matched=True, reason=MatchReason.STRONG_IDENTIFIER)
            return MatchDecision(matched=False, reason=MatchReason.STRONG_IDENTIFIER_CONFLICT)

        if weak_a is not None and weak_b is not None:
            if spec.weak_normalizer(weak_a.value) == spec.weak_normalizer(weak_b.value):
                return MatchDecision(matched=True, reason=MatchReason.WEAK_IDENTIFIER)
            return MatchDecision(matched=False, reason=MatchReason.NO_COMMON_IDENTIFIER)

        strong_only = (strong_a is not None and weak_a is None) or (
            strong_b is not None and weak_b is None
        )
        weak_only = (weak_a is not None and strong_a is None) or (
            weak_b is not None and strong_b is None
        )
        if not (strong_only and weak_only):
            return MatchDecision(matched=False, reason=MatchReason.NO_COMMON_IDENTIFIER)

        try:
            key_a = a.key or self.deriver.derive_for(a)
            key_b = b.key or self.deriver.derive_for(b)
        except InvalidIdentityError:
            log.debug("Cannot derive keys to compare %s and %s", a.namespace, b.namespace)
            return MatchDecision(matched=False, reason=MatchReason.INVALID_IDENTITY)
        if key_a == key_b:
            return MatchDecision(matched=True, reason=MatchReason.CANONICAL_KEY)
        return MatchDecision(matched=False, reason=MatchReason.NO_COMMON_IDENTIFIER)
