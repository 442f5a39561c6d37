"""Concurrency and retry settings for batch persistence."""

from __future__ import annotations

from dataclasses import dataclass

from .env import int_from_env

DEFAULT_SAVE_CONCURRENCY = 5
DEFAULT_SAVE_MAX_ATTEMPTS = 3
DEFAULT_RETRY_BASE_MS = 320
MIN_RETRY_BASE_MS = 100
DEFAULT_RETRY_MAX_MS = 1280
DEFAULT_RETRY_JITTER_MS = 96
DEFAULT_RATE_LIMIT_COOLDOWN_MS = 5000


@dataclass(frozen=True, slots=True)
class PipelineSaveConfig:
    concurrency: int = DEFAULT_SAVE_CONCURRENCY
    max_attempts: int = DEFAULT_SAVE_MAX_ATTEMPTS
    retry_base_ms: int = DEFAULT_RETRY_BASE_MS
    retry_max_ms: int = DEFAULT_RETRY_MAX_MS
    retry_jitter_ms: int = DEFAULT_RETRY_JITTER_MS
    rate_limit_cooldown_ms: int = DEFAULT_RATE_LIMIT_COOLDOWN_MS

    def backoff_ms(self, attempt: int, jitter: float) -> float:
        """Delay before retrying after ``attempt`` failed; ``jitter`` is in [0, 1)."""
        exponential = self.retry_base_ms * 2 ** max(attempt - 1, 0)
        return min(self.retry_max_ms, exponential) + jitter * self.retry_jitter_ms


def get_pipeline_save_config() -> PipelineSaveConfig:
    return PipelineSaveConfig(
        concurrency=int_from_env("PIPELINE_SAVE_CONCURRENCY", DEFAULT_SAVE_CONCURRENCY, minimum=1),
        max_attempts=int_from_env(
            "PIPELINE_SAVE_MAX_ATTEMPTS", DEFAULT_SAVE_MAX_ATTEMPTS, minimum=1
        ),
        retry_base_ms=int_from_env(
            "PIPELINE_SAVE_RETRY_BASE_MS", DEFAULT_RETRY_BASE_MS, minimum=MIN_RETRY_BASE_MS
        ),
        retry_max_ms=int_from_env("PIPELINE_SAVE_RETRY_MAX_MS", DEFAULT_RETRY_MAX_MS, minimum=0),
        retry_jitter_ms=int_from_env(
            "PIPELINE_SAVE_RETRY_JITTER_MS", DEFAULT_RETRY_JITTER_MS, minimum=0
        ),
        rate_limit_cooldown_ms=int_from_env(
            "PIPELINE_SAVE_RATE_LIMIT_COOLDOWN_MS", DEFAULT_RATE_LIMIT_COOLDOWN_MS, minimum=0
        ),
    )
