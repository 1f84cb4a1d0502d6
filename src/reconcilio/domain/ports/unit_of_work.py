"""Unit-of-work abstraction around the record store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from .store import RecordStore


@dataclass(slots=True)
class RecordRepositories:
    records: RecordStore


@runtime_checkable
class RecordUnitOfWork(Protocol):
    """Transaction boundary for one or more reconciled observations."""

    @property
    def repositories(self) -> RecordRepositories: ...

    def __enter__(self) -> RecordUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
