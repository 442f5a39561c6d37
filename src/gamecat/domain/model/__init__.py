"""Public domain model surface."""

from __future__ import annotations

from gamecat.domain.model.base import Entity, TimestampedEntity, utcnow
from gamecat.domain.model.enums import (
    CompanyRole,
    FailureReason,
    GameType,
    MatchedBy,
    MatchReason,
    MatchStatus,
    Platform,
    ReleaseStatus,
    RunItemStatus,
    RunStatus,
    SaveAction,
    SourceSystem,
    Store,
)
from gamecat.domain.model.game import (
    DEFAULT_REGION,
    MAX_SCREENSHOTS,
    RELEASE_FILLABLE_FIELDS,
    Company,
    Game,
    GameCompanyRole,
    GameDetail,
    GameRelease,
    ReleaseKey,
)
from gamecat.domain.model.records import (
    CompanyRecord,
    DetailRecord,
    GameRecord,
    MatchingContext,
    MatchingDecision,
    ReleaseRecord,
)
from gamecat.domain.model.run import PipelineItem, PipelineRun

__all__ = [  # noqa: RUF022
    # base
    "Entity",
    "TimestampedEntity",
    "utcnow",
    # enums
    "CompanyRole",
    "FailureReason",
    "GameType",
    "MatchedBy",
    "MatchReason",
    "MatchStatus",
    "Platform",
    "ReleaseStatus",
    "RunItemStatus",
    "RunStatus",
    "SaveAction",
    "SourceSystem",
    "Store",
    # catalog
    "DEFAULT_REGION",
    "MAX_SCREENSHOTS",
    "RELEASE_FILLABLE_FIELDS",
    "Company",
    "Game",
    "GameCompanyRole",
    "GameDetail",
    "GameRelease",
    "ReleaseKey",
    # incoming records
    "CompanyRecord",
    "DetailRecord",
    "GameRecord",
    "MatchingContext",
    "MatchingDecision",
    "ReleaseRecord",
    # audit
    "PipelineItem",
    "PipelineRun",
]
