"""SQLAlchemy mapping metadata for the gamecat domain model."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    event,
    orm,
)
from sqlalchemy.orm import configure_mappers

from gamecat.domain.model import (
    DEFAULT_REGION,
    Company,
    CompanyRole,
    Game,
    GameCompanyRole,
    GameDetail,
    GameRelease,
    GameType,
    PipelineItem,
    PipelineRun,
    Platform,
    ReleaseStatus,
    RunItemStatus,
    RunStatus,
    SaveAction,
    SourceSystem,
    Store,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def _timestamps() -> tuple[Column[datetime], Column[datetime]]:
    return (
        Column("created_at", UTCDateTime(), nullable=False),
        Column("updated_at", UTCDateTime(), nullable=False),
    )


# Catalog tables ------------------------------------------------------------------------

# slugs are stored lowercased, so plain unique constraints are case-insensitive in effect
games_table = Table(
    "games",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("slug", String(120), nullable=False),
    Column("og_name", String(255), nullable=False),
    Column("og_slug", String(120), nullable=False),
    Column("steam_id", Integer, nullable=True),
    Column("rawg_id", Integer, nullable=True),
    Column("parent_steam_id", Integer, nullable=True),
    Column("parent_rawg_id", Integer, nullable=True),
    Column("game_type", Enum(GameType, native_enum=False), nullable=False),
    Column("release_date", Date, nullable=True),
    Column("release_date_raw", String(64), nullable=True),
    Column("release_status", Enum(ReleaseStatus, native_enum=False), nullable=True),
    Column("coming_soon", Boolean, nullable=False, default=False),
    Column("popularity_score", Integer, nullable=False, default=0),
    Column("followers_cache", Integer, nullable=True),
    *_timestamps(),
    UniqueConstraint("slug", name="games_slug_key"),
    UniqueConstraint("og_slug", name="games_og_slug_key"),
    UniqueConstraint("steam_id", name="games_steam_id_key"),
    UniqueConstraint("rawg_id", name="games_rawg_id_key"),
    CheckConstraint("popularity_score BETWEEN 0 AND 100", name="popularity_range"),
    Index("ix_games_popularity_score", "popularity_score"),
    Index("ix_games_release_date", "release_date"),
)

game_details_table = Table(
    "game_details",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "game_id",
        Integer,
        ForeignKey("games.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    ),
    Column("screenshots", JSON, nullable=False, default=list),
    Column("description", Text, nullable=True),
    Column("genres", JSON, nullable=False, default=list),
    Column("tags", JSON, nullable=False, default=list),
    Column("support_languages", JSON, nullable=False, default=list),
    Column("metacritic_score", Integer, nullable=True),
    Column("opencritic_score", Integer, nullable=True),
    Column("sexual", Boolean, nullable=False, default=False),
    Column("search_text", Text, nullable=True),
    *_timestamps(),
)

game_releases_table = Table(
    "game_releases",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("game_id", Integer, ForeignKey("games.id", ondelete="CASCADE"), nullable=False),
    Column("platform", Enum(Platform, native_enum=False), nullable=False),
    Column("store", Enum(Store, native_enum=False), nullable=False),
    Column("store_app_id", String(64), nullable=False, default=""),
    Column("store_url", String(512), nullable=True),
    Column("region", String(8), nullable=False, default=DEFAULT_REGION),
    Column("release_date", Date, nullable=True),
    Column("release_date_raw", String(64), nullable=True),
    Column("release_status", Enum(ReleaseStatus, native_enum=False), nullable=True),
    Column("coming_soon", Boolean, nullable=False, default=False),
    Column("current_price_cents", Integer, nullable=True),
    Column("is_free", Boolean, nullable=False, default=False),
    Column("followers", Integer, nullable=True),
    Column("reviews_total", Integer, nullable=True),
    Column("review_score_desc", String(64), nullable=True),
    Column("data_source", Enum(SourceSystem, native_enum=False), nullable=False),
    *_timestamps(),
    UniqueConstraint(
        "game_id",
        "platform",
        "store",
        "store_app_id",
        name="game_releases_natural_key",
    ),
    Index("ix_game_releases_game_id", "game_id"),
)

companies_table = Table(
    "companies",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("slug", String(120), nullable=False),
    UniqueConstraint("name", name="companies_name_key"),
    UniqueConstraint("slug", name="companies_slug_key"),
)

game_company_role_table = Table(
    "game_company_role",
    mapper_registry.metadata,
    Column("game_id", Integer, ForeignKey("games.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "company_id",
        Integer,
        ForeignKey("companies.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("role", Enum(CompanyRole, native_enum=False), primary_key=True),
)

# Run audit tables ----------------------------------------------------------------------

pipeline_runs_table = Table(
    "pipeline_runs",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("pipeline_type", String(64), nullable=False),
    Column("status", Enum(RunStatus, native_enum=False), nullable=False),
    Column("total_items", Integer, nullable=False, default=0),
    Column("completed_items", Integer, nullable=False, default=0),
    Column("failed_items", Integer, nullable=False, default=0),
    Column("summary_message", Text, nullable=True),
    Column("started_at", UTCDateTime(), nullable=False),
    Column("finished_at", UTCDateTime(), nullable=True),
)

pipeline_items_table = Table(
    "pipeline_items",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "run_id",
        Integer,
        ForeignKey("pipeline_runs.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("target_type", String(32), nullable=False),
    Column("target_id", Integer, nullable=False),
    Column("action", Enum(SaveAction, native_enum=False), nullable=False),
    Column("status", Enum(RunItemStatus, native_enum=False), nullable=False),
    Column("error_message", Text, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Index("ix_pipeline_items_run_id", "run_id"),
)


@cache
def start_mappers() -> orm.registry:
    """Map the domain dataclasses onto their tables (idempotent)."""

    mapper_registry.map_imperatively(Game, games_table)
    mapper_registry.map_imperatively(GameDetail, game_details_table)
    mapper_registry.map_imperatively(GameRelease, game_releases_table)
    mapper_registry.map_imperatively(Company, companies_table)
    mapper_registry.map_imperatively(GameCompanyRole, game_company_role_table)
    mapper_registry.map_imperatively(PipelineRun, pipeline_runs_table)
    mapper_registry.map_imperatively(PipelineItem, pipeline_items_table)

    configure_mappers()
    return mapper_registry


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """SQLite ignores ``ON DELETE CASCADE`` unless the pragma is set per connection."""

    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection: object, _record: object) -> None:
        cursor = dbapi_connection.cursor()  # type: ignore[attr-defined]
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
