"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityKind(StrEnum):
    """Closed set of reconcilable entity kinds."""

    ADOBJECT = "adobject"
    ASSET = "asset"
    WEBPAGE = "webpage"
    JOB = "job"
    ATTRIBUTE = "attribute"
    ORGANIZATION = "organization"
    PERSON = "person"


class IdentifierStrength(StrEnum):
    STRONG = "strong"
    WEAK = "weak"


class MergePolicy(StrEnum):
    SCALAR_PRESERVE_BLANK = "scalar-preserve-blank"
    SCALAR_OVERWRITE = "scalar-overwrite"
    LIST_UNION_DEDUP = "list-union-dedup"
    LATTICE = "lattice"
    BOUNDED_FIFO = "bounded-fifo"


class KeyOverflow(StrEnum):
    """How an identifier that overflows the key budget is shortened."""

    TRUNCATE = "truncate"
    HASH_TAIL = "hash-tail"


class AssetStatus(StrEnum):
    PENDING = "P"
    ACTIVE = "A"
    FROZEN = "F"
    DELETED = "D"


class WebpageState(StrEnum):
    UNINTERESTING = "uninteresting"
    UNANALYZED = "unanalyzed"
    INTERESTING = "interesting"


class JobStatus(StrEnum):
    QUEUED = "JQ"
    RUNNING = "JR"
    PASS = "JP"
    FAIL = "JF"
