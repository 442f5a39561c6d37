from __future__ import annotations

import pytest

from gamecat.config import PipelineSaveConfig, get_pipeline_save_config
from gamecat.config.pipeline import MIN_RETRY_BASE_MS

_ENV_NAMES = (
    "PIPELINE_SAVE_CONCURRENCY",
    "PIPELINE_SAVE_MAX_ATTEMPTS",
    "PIPELINE_SAVE_RETRY_BASE_MS",
    "PIPELINE_SAVE_RETRY_MAX_MS",
    "PIPELINE_SAVE_RETRY_JITTER_MS",
    "PIPELINE_SAVE_RATE_LIMIT_COOLDOWN_MS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    config = get_pipeline_save_config()

    assert config == PipelineSaveConfig()
    assert (config.concurrency, config.max_attempts) == (5, 3)
    assert (config.retry_base_ms, config.retry_max_ms, config.retry_jitter_ms) == (320, 1280, 96)
    assert config.rate_limit_cooldown_ms == 5000


def test_environment_overrides_and_floors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PIPELINE_SAVE_CONCURRENCY", "0")
    monkeypatch.setenv("PIPELINE_SAVE_MAX_ATTEMPTS", "6")
    monkeypatch.setenv("PIPELINE_SAVE_RETRY_BASE_MS", "10")
    monkeypatch.setenv("PIPELINE_SAVE_RATE_LIMIT_COOLDOWN_MS", "250")

    config = get_pipeline_save_config()

    assert config.concurrency == 1
    assert config.max_attempts == 6
    assert config.retry_base_ms == MIN_RETRY_BASE_MS
    assert config.rate_limit_cooldown_ms == 250


def test_backoff_doubles_up_to_the_cap() -> None:
    config = PipelineSaveConfig()

    delays = [config.backoff_ms(attempt, 0.0) for attempt in range(1, 5)]

    assert delays == [320, 640, 1280, 1280]
    assert config.backoff_ms(2, 0.5) == 640 + 48
