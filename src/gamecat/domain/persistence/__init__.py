"""Persistence services: upsert, batch orchestration and merge."""

from __future__ import annotations

from .companies import CompanyRegistry, company_slug
from .failures import FailureKind, classify_failure, extract_unique_value
from .merge import GameMerger, MergeReport, choose_keeper
from .metrics import MetricsCollector, SaveMetrics, percentile
from .orchestrator import PersistenceOrchestrator, SaveFailure, SaveResult
from .releases import ReleaseSync, ReleaseSyncStats, release_key
from .upsert import CONTENT_POPULARITY_THRESHOLD, GameUpsertService, UpsertResult, validate_record

__all__ = [
    "CONTENT_POPULARITY_THRESHOLD",
    "CompanyRegistry",
    "FailureKind",
    "GameMerger",
    "GameUpsertService",
    "MergeReport",
    "MetricsCollector",
    "PersistenceOrchestrator",
    "ReleaseSync",
    "ReleaseSyncStats",
    "SaveFailure",
    "SaveMetrics",
    "SaveResult",
    "UpsertResult",
    "choose_keeper",
    "classify_failure",
    "company_slug",
    "extract_unique_value",
    "percentile",
    "release_key",
    "validate_record",
]
