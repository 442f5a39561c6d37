"""SQLAlchemy adapter package for gamecat."""

from __future__ import annotations

from .errors import translate, translate_errors
from .mappings import create_all_tables, enable_sqlite_foreign_keys, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyCompanyRepository,
    SqlAlchemyGameDetailRepository,
    SqlAlchemyGameReleaseRepository,
    SqlAlchemyGameRepository,
    SqlAlchemyRunRepository,
)
from .unit_of_work import (
    SqlAlchemyCatalogUnitOfWork,
    StartupError,
    build_engine,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyCatalogUnitOfWork",
    "SqlAlchemyCompanyRepository",
    "SqlAlchemyGameDetailRepository",
    "SqlAlchemyGameReleaseRepository",
    "SqlAlchemyGameRepository",
    "SqlAlchemyRunRepository",
    "StartupError",
    "build_engine",
    "configured_engine",
    "create_all_tables",
    "enable_sqlite_foreign_keys",
    "is_started",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
    "translate",
    "translate_errors",
]
