"""Built-in entity kinds.

Each spec lists only the fields whose merge behaviour differs from the
default (incoming blank never overwrites a known value).
"""

from __future__ import annotations

from typing import Final

from reconcilio.domain.model import (
    ASSET_STATUS,
    JOB_STATUS,
    WEBPAGE_STATE,
    AssetStatus,
    EntityKind,
    FieldPolicy,
    JobStatus,
    WebpageState,
)

from .registry import KindRegistry
from .spec import KindSpec

MAX_REQUESTS_PER_WEBPAGE: Final[int] = 100
MAX_POSITIONS_PER_PERSON: Final[int] = 20
WEBPAGE_MAX_KEY_LENGTH: Final[int] = 2048

AD_SUBTYPES: Final[frozenset[str]] = frozenset(
    {
        "aduser",
        "adcomputer",
        "adgroup",
        "adgpo",
        "adou",
        "adcontainer",
        "addomain",
        "adlocalgroup",
        "adlocaluser",
        "adaiaca",
        "adrootca",
        "adenterpriseca",
        "adntauthstore",
        "adcerttemplate",
        "adissuancepolicy",
    }
)


def _upper(value: str) -> str:
    return value.strip().upper()


def _lower(value: str) -> str:
    return value.strip().lower()


ADOBJECT: Final[KindSpec] = KindSpec(
    kind=EntityKind.ADOBJECT,
    subtypes=AD_SUBTYPES,
    strong_normalizer=_upper,
    field_policies={
        "object_id": FieldPolicy.overwrite(),
        "service_principal_names": FieldPolicy.union(),
        "tags": FieldPolicy.union(),
    },
)

ASSET: Final[KindSpec] = KindSpec(
    kind=EntityKind.ASSET,
    field_policies={
        "status": FieldPolicy.ordered_by(ASSET_STATUS),
        "origin": FieldPolicy.overwrite(),
        "secret": FieldPolicy.overwrite(),
        "tags": FieldPolicy.union(),
        "origins": FieldPolicy.union(),
        "capabilities": FieldPolicy.union(),
    },
    defaults={"status": AssetStatus.ACTIVE.value},
    ttl_hours=7 * 24,
)

WEBPAGE: Final[KindSpec] = KindSpec(
    kind=EntityKind.WEBPAGE,
    field_policies={
        "state": FieldPolicy.ordered_by(WEBPAGE_STATE),
        "sources": FieldPolicy.union(),
        "requests": FieldPolicy.bounded(MAX_REQUESTS_PER_WEBPAGE, "url", "method", "body"),
    },
    defaults={"state": WebpageState.UNANALYZED.value},
    ttl_hours=30 * 24,
    max_key_length=WEBPAGE_MAX_KEY_LENGTH,
)

JOB: Final[KindSpec] = KindSpec(
    kind=EntityKind.JOB,
    scope_casefold=False,
    strong_normalizer=_lower,
    field_policies={
        "status": FieldPolicy.ordered_by(JOB_STATUS),
        "config": FieldPolicy.overwrite(),
    },
    defaults={"status": JobStatus.QUEUED.value},
    ttl_hours=7 * 24,
)

ATTRIBUTE: Final[KindSpec] = KindSpec(
    kind=EntityKind.ATTRIBUTE,
    scope_casefold=False,
    field_policies={
        "status": FieldPolicy.ordered_by(ASSET_STATUS),
        "capability": FieldPolicy.overwrite(),
    },
    defaults={"status": AssetStatus.ACTIVE.value},
    ttl_hours=14 * 24,
)

ORGANIZATION: Final[KindSpec] = KindSpec(
    kind=EntityKind.ORGANIZATION,
    strong_normalizer=_lower,
    field_policies={
        "aliases": FieldPolicy.union(),
        "domains": FieldPolicy.union(),
    },
)

PERSON: Final[KindSpec] = KindSpec(
    kind=EntityKind.PERSON,
    strong_normalizer=_lower,
    field_policies={
        "emails": FieldPolicy.union(),
        "phones": FieldPolicy.union(),
        "positions": FieldPolicy.bounded(MAX_POSITIONS_PER_PERSON, "organization", "title"),
    },
)

BUILTIN_SPECS: Final[tuple[KindSpec, ...]] = (
    ADOBJECT,
    ASSET,
    WEBPAGE,
    JOB,
    ATTRIBUTE,
    ORGANIZATION,
    PERSON,
)


def build_default_registry() -> KindRegistry:
    return KindRegistry.from_specs(BUILTIN_SPECS)
