from __future__ import annotations

from typing import TYPE_CHECKING

from reconcilio.config import get_database_config, get_storage_config

if TYPE_CHECKING:
    from pathlib import Path

    import pytest


def test_data_dir_honours_override(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("RECONCILIO_DATA_DIR", str(tmp_path / "data"))

    config = get_storage_config()

    assert config.data_dir == tmp_path / "data"
    assert not config.data_dir.exists()


def test_database_uri_defaults_to_sqlite_in_data_dir(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("RECONCILIO_DATA_DIR", str(tmp_path / "data"))

    uri = get_database_config().uri

    assert uri == f"sqlite+pysqlite:///{(tmp_path / 'data').resolve() / 'reconcilio.db'}"
    assert (tmp_path / "data").is_dir()


def test_database_uri_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite+pysqlite:///:memory:")

    assert get_database_config().uri == "sqlite+pysqlite:///:memory:"
