"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class SourceSystem(StrEnum):
    """External catalogs feeding the store. Steam is the primary, authoritative source."""

    STEAM = "steam"
    RAWG = "rawg"


class GameType(StrEnum):
    GAME = "game"
    DLC = "dlc"
    DEMO = "demo"
    SOUNDTRACK = "soundtrack"


class ReleaseStatus(StrEnum):
    RELEASED = "released"
    COMING_SOON = "coming_soon"
    EARLY_ACCESS = "early_access"
    CANCELLED = "cancelled"
    TBA = "tba"


class Platform(StrEnum):
    PC = "pc"
    PLAYSTATION = "playstation"
    XBOX = "xbox"
    NINTENDO = "nintendo"


class Store(StrEnum):
    STEAM = "steam"
    EPIC = "epic"
    GOG = "gog"
    PSN = "psn"
    XBOX = "xbox"
    NINTENDO = "nintendo"
    XBOX_STORE = "xbox_store"
    ESHOP = "eshop"
    APP_STORE = "app_store"
    GOOGLE_PLAY = "google_play"


class CompanyRole(StrEnum):
    DEVELOPER = "developer"
    PUBLISHER = "publisher"


class SaveAction(StrEnum):
    CREATED = "created"
    UPDATED = "updated"


class MatchedBy(StrEnum):
    """How an incoming record was resolved to an existing game."""

    STEAM_ID = "steam_id"
    RAWG_ID = "rawg_id"
    SLUG = "slug"
    OG_SLUG = "og_slug"
    CANDIDATE_SLUG = "candidate_slug"
    MATCHING = "matching"
    RECOVERY = "recovery"


class MatchStatus(StrEnum):
    NO_CANDIDATE = "no_candidate"
    MATCHED = "matched"
    PENDING = "pending"
    REJECTED = "rejected"


class MatchReason(StrEnum):
    AUTO_MATCH = "AUTO_MATCH"
    SCORE_THRESHOLD_PENDING = "SCORE_THRESHOLD_PENDING"
    SCORE_REJECTED = "SCORE_REJECTED"
    IDENTIFIER_CONFLICT = "IDENTIFIER_CONFLICT"
    NO_CANDIDATE = "NO_CANDIDATE"
    INSUFFICIENT_SIGNALS = "INSUFFICIENT_SIGNALS"
    NOT_APPLICABLE = "NOT_APPLICABLE"


class FailureReason(StrEnum):
    DUPLICATE_CONSTRAINT = "DUPLICATE_CONSTRAINT"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    # Steam app lookup failed upstream
    SOURCE_A_NOT_FOUND = "SOURCE_A_NOT_FOUND"
    # RAWG game lookup failed upstream
    SOURCE_B_NOT_FOUND = "SOURCE_B_NOT_FOUND"
    RATE_LIMIT = "RATE_LIMIT"
    UNKNOWN = "UNKNOWN"


class RunStatus(StrEnum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class RunItemStatus(StrEnum):
    SUCCESS = "success"
    FAILED = "failed"
