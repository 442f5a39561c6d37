"""Catalog entities: games and the child rows hanging off them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .base import Entity, TimestampedEntity
from .enums import CompanyRole, GameType, Platform, ReleaseStatus, SourceSystem, Store

if TYPE_CHECKING:
    from datetime import date

type ReleaseKey = tuple[Platform, Store, str]

DEFAULT_REGION = "US"
MAX_SCREENSHOTS = 5


@dataclass(eq=False, kw_only=True)
class Game(TimestampedEntity):
    """Canonical game row. At most one row holds a given ``steam_id`` or ``rawg_id``."""

    name: str
    slug: str
    og_name: str
    og_slug: str
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

    @property
    def is_dlc(self) -> bool:
        return self.game_type is GameType.DLC

    @property
    def is_steam_sourced(self) -> bool:
        return self.steam_id is not None

    def external_id(self, source: SourceSystem) -> int | None:
        if source is SourceSystem.STEAM:
            return self.steam_id
        return self.rawg_id

    def __repr__(self) -> str:
        return (
            f"Game(id={self.id!r}, slug={self.slug!r}, steam_id={self.steam_id!r}, "
            f"rawg_id={self.rawg_id!r})"
        )


@dataclass(eq=False, kw_only=True)
class GameDetail(TimestampedEntity):
    game_id: int
    screenshots: list[str] = field(default_factory=list)
    description: str | None = None
    genres: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    support_languages: list[str] = field(default_factory=list)
    metacritic_score: int | None = None
    opencritic_score: int | None = None
    sexual: bool = False
    search_text: str | None = None

    def __post_init__(self) -> None:
        self.screenshots = list(self.screenshots[:MAX_SCREENSHOTS])


@dataclass(eq=False, kw_only=True)
class GameRelease(TimestampedEntity):
    game_id: int
    platform: Platform
    store: Store
    store_app_id: str = ""
    store_url: str | None = None
    region: str = DEFAULT_REGION
    release_date: date | None = None
    release_date_raw: str | None = None
    release_status: ReleaseStatus | None = None
    coming_soon: bool = False
    current_price_cents: int | None = None
    is_free: bool = False
    followers: int | None = None
    reviews_total: int | None = None
    review_score_desc: str | None = None
    data_source: SourceSystem = SourceSystem.STEAM

    @property
    def natural_key(self) -> ReleaseKey:
        return (self.platform, self.store, self.store_app_id or "")


# columns a merge may fill on the surviving release row when it is empty there
RELEASE_FILLABLE_FIELDS: tuple[str, ...] = (
    "store_url",
    "release_date",
    "release_date_raw",
    "release_status",
    "current_price_cents",
    "followers",
    "reviews_total",
    "review_score_desc",
)


@dataclass(eq=False, kw_only=True)
class Company(Entity):
    name: str
    slug: str


@dataclass(eq=False, kw_only=True)
class GameCompanyRole:
    game_id: int
    company_id: int
    role: CompanyRole
