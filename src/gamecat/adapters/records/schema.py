"""Pydantic models describing processed game records as emitted by the collectors."""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gamecat.domain.model import (
    CompanyRole,
    GameType,
    Platform,
    ReleaseStatus,
    SourceSystem,
    Store,
)

_ISO_DAY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _date_only(value: object) -> object:
    """Accept ISO dates and ISO datetimes (collectors serialise JS ``Date`` objects)."""
    value = _blank_to_none(value)
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        day = value.split("T", 1)[0]
        # free text ("Q3 2025", "Coming soon") belongs in the raw field only
        return day if _ISO_DAY.match(day) else None
    return value


class RecordBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class CompanyPayload(RecordBaseModel):
    name: str
    role: CompanyRole = CompanyRole.DEVELOPER
    slug: str | None = None

    _normalize_slug = field_validator("slug", mode="before")(_blank_to_none)


class DetailPayload(RecordBaseModel):
    screenshots: list[str] = Field(default_factory=list)
    description: str | None = None
    genres: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    support_languages: list[str] = Field(default_factory=list, alias="supportLanguages")
    metacritic_score: int | None = Field(default=None, alias="metacriticScore")
    opencritic_score: int | None = Field(default=None, alias="opencriticScore")
    sexual: bool = False
    search_text: str | None = Field(default=None, alias="searchText")


class ReleasePayload(RecordBaseModel):
    platform: Platform
    store: Store
    store_app_id: str | None = Field(default=None, alias="storeAppId")
    store_url: str | None = Field(default=None, alias="storeUrl")
    release_date: date | None = Field(default=None, alias="releaseDateDate")
    release_date_raw: str | None = Field(default=None, alias="releaseDateRaw")
    release_status: ReleaseStatus | None = Field(default=None, alias="releaseStatus")
    coming_soon: bool = Field(default=False, alias="comingSoon")
    current_price_cents: int | None = Field(default=None, alias="currentPriceCents")
    is_free: bool = Field(default=False, alias="isFree")
    followers: int | None = None
    reviews_total: int | None = Field(default=None, alias="reviewsTotal")
    review_score_desc: str | None = Field(default=None, alias="reviewScoreDesc")
    data_source: SourceSystem | None = Field(default=None, alias="dataSource")

    @field_validator("store_app_id", mode="before")
    @classmethod
    def _stringify_app_id(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return _blank_to_none(value)

    _normalize_date = field_validator("release_date", mode="before")(_date_only)


class NormalizedNamePayload(RecordBaseModel):
    lowercase: str = ""
    tokens: list[str] = Field(default_factory=list)
    compact: str = ""
    loose_slug: str | None = Field(default=None, alias="looseSlug")


class MatchingContextPayload(RecordBaseModel):
    source: SourceSystem | None = None
    normalized_name: NormalizedNamePayload | None = Field(default=None, alias="normalizedName")
    release_date_iso: date | None = Field(default=None, alias="releaseDateIso")
    company_slugs: list[str] = Field(default_factory=list, alias="companySlugs")
    genre_tokens: list[str] = Field(default_factory=list, alias="genreTokens")
    candidate_slugs: list[str] = Field(default_factory=list, alias="candidateSlugs")
    candidate_steam_ids: list[int] = Field(default_factory=list, alias="candidateSteamIds")

    _normalize_date = field_validator("release_date_iso", mode="before")(_date_only)


class GameRecordPayload(RecordBaseModel):
    name: str
    og_name: str | None = Field(default=None, alias="ogName")
    slug: str | None = None
    og_slug: str | None = Field(default=None, alias="ogSlug")
    steam_id: int | None = Field(default=None, alias="steamId")
    rawg_id: int | None = Field(default=None, alias="rawgId")
    parent_steam_id: int | None = Field(default=None, alias="parentSteamId")
    parent_rawg_id: int | None = Field(default=None, alias="parentRawgId")
    game_type: GameType = Field(default=GameType.GAME, alias="gameType")
    release_date: date | None = Field(default=None, alias="releaseDate")
    release_date_raw: str | None = Field(default=None, alias="releaseDateRaw")
    release_status: ReleaseStatus | None = Field(default=None, alias="releaseStatus")
    coming_soon: bool = Field(default=False, alias="comingSoon")
    popularity_score: int = Field(default=0, alias="popularityScore")
    followers_cache: int | None = Field(default=None, alias="followersCache")
    data_source: SourceSystem | None = Field(default=None, alias="dataSource")
    details: DetailPayload | None = None
    releases: list[ReleasePayload] = Field(default_factory=list)
    companies: list[CompanyPayload] = Field(default_factory=list)
    matching_context: MatchingContextPayload | None = Field(default=None, alias="matchingContext")

    _normalize_slugs = field_validator("slug", "og_slug", "og_name", mode="before")(
        _blank_to_none
    )
    _normalize_date = field_validator("release_date", mode="before")(_date_only)

    @field_validator("popularity_score", mode="before")
    @classmethod
    def _round_popularity(cls, value: object) -> object:
        if isinstance(value, float):
            return round(value)
        return value


GameRecordInput = GameRecordPayload | Mapping[str, object]
