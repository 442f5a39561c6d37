"""Application configuration helpers."""

from __future__ import annotations

from gamecat.common.logging import configure_logging

from .env import int_from_env
from .errors import ConfigurationError, InvalidConfigurationError
from .matching import (
    MatchingConfig,
    MatchingThresholds,
    MatchingWeights,
    get_matching_config,
)
from .pipeline import PipelineSaveConfig, get_pipeline_save_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "InvalidConfigurationError",
    "MatchingConfig",
    "MatchingThresholds",
    "MatchingWeights",
    "PipelineSaveConfig",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_matching_config",
    "get_pipeline_save_config",
    "get_storage_config",
    "int_from_env",
]
