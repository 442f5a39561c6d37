from __future__ import annotations

from pathlib import Path  # noqa: TC003

import pytest  # noqa: TC002

from gamecat.config import (
    StorageConfig,
    get_database_config,
    get_matching_config,
    get_storage_config,
)
from gamecat.config.storage import DEFAULT_DB_FILENAME


def test_storage_prefers_explicit_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    custom = tmp_path / "custom-data"
    monkeypatch.setenv("GAMECAT_DATA_DIR", str(custom))

    storage = get_storage_config()

    assert storage.resolve_data_dir() == custom.resolve()
    assert storage.matching_log_dir() == custom.resolve() / "logs" / "matching"
    assert storage.perf_log_dir() == custom.resolve() / "logs" / "perf"


def test_database_uri_uses_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "postgresql+psycopg://catalog@localhost/games")

    assert get_database_config().uri == "postgresql+psycopg://catalog@localhost/games"


def test_database_uri_creates_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)

    config = get_database_config(storage=StorageConfig(data_dir=tmp_path / "data-dir"))

    expected_path = (tmp_path / "data-dir" / DEFAULT_DB_FILENAME).resolve()
    assert config.uri == f"sqlite+pysqlite:///{expected_path}"
    assert expected_path.parent.exists()


def test_matching_config_reads_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("MATCHING_LOG_DIR", str(tmp_path / "decisions"))
    monkeypatch.setenv("MATCHING_CANDIDATE_LIMIT", "20")
    monkeypatch.delenv("MATCHING_DATE_WINDOW_DAYS", raising=False)

    config = get_matching_config()

    assert config.log_dir == tmp_path / "decisions"
    assert config.candidate_limit == 20
    assert config.date_window_days == 1825
    assert config.thresholds.auto_match == 0.6
    assert config.thresholds.pending == 0.4
