"""Incoming processed records, as handed to the persistence layer by the collectors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .enums import CompanyRole, GameType, MatchReason, MatchStatus, SourceSystem

if TYPE_CHECKING:
    from datetime import date

    from .enums import Platform, ReleaseStatus, Store


@dataclass(slots=True, kw_only=True)
class ReleaseRecord:
    platform: Platform
    store: Store
    store_app_id: str | None = None
    store_url: str | None = None
    release_date: date | None = None
    release_date_raw: str | None = None
    release_status: ReleaseStatus | None = None
    coming_soon: bool = False
    current_price_cents: int | None = None
    is_free: bool = False
    followers: int | None = None
    reviews_total: int | None = None
    review_score_desc: str | None = None
    data_source: SourceSystem | None = None


@dataclass(slots=True, kw_only=True)
class CompanyRecord:
    name: str
    role: CompanyRole = CompanyRole.DEVELOPER
    slug: str | None = None


@dataclass(slots=True, kw_only=True)
class DetailRecord:
    screenshots: list[str] = field(default_factory=list)
    description: str | None = None
    genres: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    support_languages: list[str] = field(default_factory=list)
    metacritic_score: int | None = None
    opencritic_score: int | None = None
    sexual: bool = False
    search_text: str | None = None


@dataclass(slots=True, kw_only=True)
class MatchingContext:
    """Hints computed upstream; read only by the matching engine."""

    normalized_name: str | None = None
    tokens: tuple[str, ...] = ()
    candidate_slugs: tuple[str, ...] = ()
    candidate_steam_ids: tuple[int, ...] = ()
    genre_tokens: tuple[str, ...] = ()
    company_slugs: tuple[str, ...] = ()
    release_date: date | None = None


@dataclass(slots=True, kw_only=True)
class MatchingDecision:
    status: MatchStatus
    reason: MatchReason
    matched_game_id: int | None = None
    score: float | None = None
    log_path: str | None = None


@dataclass(slots=True, kw_only=True)
class GameRecord:
    name: str
    og_name: str | None = None
    slug: str | None = None
    og_slug: str | None = None
    steam_id: int | None = None
    rawg_id: int | None = None
    parent_steam_id: int | None = None
    parent_rawg_id: int | None = None
    game_type: GameType = GameType.GAME
    release_date: date | None = None
    release_date_raw: str | None = None
    release_status: ReleaseStatus | None = None
    coming_soon: bool = False
    popularity_score: int = 0
    followers_cache: int | None = None
    data_source: SourceSystem = SourceSystem.STEAM
    detail: DetailRecord | None = None
    releases: list[ReleaseRecord] = field(default_factory=list)
    companies: list[CompanyRecord] = field(default_factory=list)
    matching_context: MatchingContext | None = None
    matching_decision: MatchingDecision | None = None

    @property
    def is_dlc(self) -> bool:
        return self.game_type is GameType.DLC

    @property
    def is_rawg_only(self) -> bool:
        return self.steam_id is None and self.rawg_id is not None

    @property
    def identity(self) -> str:
        """Short human-readable handle for logs."""
        if self.steam_id is not None:
            return f"steam:{self.steam_id}"
        if self.rawg_id is not None:
            return f"rawg:{self.rawg_id}"
        return f"name:{self.name}"
