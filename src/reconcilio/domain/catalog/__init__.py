"""Closed catalog of entity kinds and their merge policies."""

from __future__ import annotations

from .builtin import (
    ADOBJECT,
    ASSET,
    ATTRIBUTE,
    BUILTIN_SPECS,
    JOB,
    ORGANIZATION,
    PERSON,
    WEBPAGE,
    build_default_registry,
)
from .registry import KindRegistry
from .spec import KindSpec, Normalizer

__all__ = [
    "ADOBJECT",
    "ASSET",
    "ATTRIBUTE",
    "BUILTIN_SPECS",
    "JOB",
    "ORGANIZATION",
    "PERSON",
    "WEBPAGE",
    "KindRegistry",
    "KindSpec",
    "Normalizer",
    "build_default_registry",
]
