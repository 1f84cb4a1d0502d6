"""Store and unit-of-work fakes for service-level tests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from reconcilio.adapters.memory import InMemoryRecordStore
from reconcilio.domain.errors import StaleRecordError
from reconcilio.domain.ports import RecordRepositories

if TYPE_CHECKING:
    from collections.abc import Iterable
    from types import TracebackType

    from reconcilio.domain.model import EntityRecord


class FlakyRecordStore(InMemoryRecordStore):
    """Loses the first ``failures`` conditional writes against a phantom writer."""

    def __init__(self, failures: int) -> None:
        super().__init__()
        self.failures = failures
        self.write_attempts = 0

    def conditional_put(
        self,
        key: str,
        record: EntityRecord,
        expected_version: int | None,
        *,
        aliases: Iterable[str] = (),
    ) -> int:
        self.write_attempts += 1
        if self.failures > 0:
            self.failures -= 1
            raise StaleRecordError(key, expected_version)
        return super().conditional_put(key, record, expected_version, aliases=aliases)


class FakeUnitOfWork:
    def __init__(self, store: InMemoryRecordStore) -> None:
        self._repositories = RecordRepositories(records=store)
        self.commits = 0
        self.rollbacks = 0

    @property
    def repositories(self) -> RecordRepositories:
        return self._repositories

    def __enter__(self) -> FakeUnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        return False

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1
