"""Scoring weights and decision thresholds for cross-source matching."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from .env import int_from_env
from .storage import get_storage_config

DEFAULT_CANDIDATE_LIMIT = 50
DEFAULT_DATE_WINDOW_DAYS = 1825


@dataclass(frozen=True, slots=True)
class MatchingWeights:
    name: float = 0.40
    slug: float = 0.10
    release_date: float = 0.30
    company: float = 0.15
    genre: float = 0.05


@dataclass(frozen=True, slots=True)
class MatchingThresholds:
    auto_match: float = 0.6
    pending: float = 0.4
    # continuous name similarity at or above this needs one strong signal, otherwise two
    name_gate: float = 0.35


@dataclass(frozen=True, slots=True)
class MatchingConfig:
    weights: MatchingWeights = field(default_factory=MatchingWeights)
    thresholds: MatchingThresholds = field(default_factory=MatchingThresholds)
    candidate_limit: int = DEFAULT_CANDIDATE_LIMIT
    date_window_days: int = DEFAULT_DATE_WINDOW_DAYS
    log_dir: Path | None = None


def get_matching_config() -> MatchingConfig:
    env_dir = os.getenv("MATCHING_LOG_DIR")
    log_dir = Path(env_dir) if env_dir else get_storage_config().matching_log_dir()
    return MatchingConfig(
        candidate_limit=int_from_env(
            "MATCHING_CANDIDATE_LIMIT", DEFAULT_CANDIDATE_LIMIT, minimum=1
        ),
        date_window_days=int_from_env(
            "MATCHING_DATE_WINDOW_DAYS", DEFAULT_DATE_WINDOW_DAYS, minimum=0
        ),
        log_dir=log_dir,
    )
