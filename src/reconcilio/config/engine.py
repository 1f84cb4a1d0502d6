"""Reconciliation engine defaults and environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

from reconcilio.domain.model import KeyOverflow

from .env import optional_env_int
from .errors import ConfigurationError

DEFAULT_MAX_KEY_LENGTH: Final[int] = 1024
DEFAULT_HISTORY_CAP: Final[int] = 100
DEFAULT_MAX_WRITE_ATTEMPTS: Final[int] = 3
DEFAULT_ACTOR: Final[str] = "reconciler"


@dataclass(frozen=True, slots=True)
class EngineConfig:
    max_key_length: int = DEFAULT_MAX_KEY_LENGTH
    key_overflow: KeyOverflow = KeyOverflow.TRUNCATE
    history_cap: int = DEFAULT_HISTORY_CAP
    max_write_attempts: int = DEFAULT_MAX_WRITE_ATTEMPTS
    default_actor: str = DEFAULT_ACTOR


def _key_overflow_from_env() -> KeyOverflow:
    raw = os.getenv("RECONCILIO_KEY_OVERFLOW")
    if raw is None or not raw.strip():
        return KeyOverflow.TRUNCATE
    try:
        return KeyOverflow(raw.strip().lower())
    except ValueError as exc:
        choices = ", ".join(member.value for member in KeyOverflow)
        raise ConfigurationError(
            f"RECONCILIO_KEY_OVERFLOW must be one of: {choices}; got {raw!r}"
        ) from exc


def get_engine_config() -> EngineConfig:
    actor = os.getenv("RECONCILIO_DEFAULT_ACTOR")
    return EngineConfig(
        max_key_length=optional_env_int(
            "RECONCILIO_MAX_KEY_LENGTH", DEFAULT_MAX_KEY_LENGTH, minimum=16
        ),
        key_overflow=_key_overflow_from_env(),
        history_cap=optional_env_int("RECONCILIO_HISTORY_CAP", DEFAULT_HISTORY_CAP),
        max_write_attempts=optional_env_int(
            "RECONCILIO_MAX_WRITE_ATTEMPTS", DEFAULT_MAX_WRITE_ATTEMPTS
        ),
        default_actor=actor.strip() if actor and actor.strip() else DEFAULT_ACTOR,
    )
