"""Domain ports (protocols implemented by adapters)."""

from __future__ import annotations

from .persistence import (
    CandidateQuery,
    CompanyRepository,
    GameDetailRepository,
    GameReleaseRepository,
    GameRepository,
    RunRepository,
    SlugField,
)
from .unit_of_work import CatalogRepositories, CatalogUnitOfWork, RepositoryCollection, UnitOfWork

__all__ = [
    "CandidateQuery",
    "CatalogRepositories",
    "CatalogUnitOfWork",
    "CompanyRepository",
    "GameDetailRepository",
    "GameReleaseRepository",
    "GameRepository",
    "RepositoryCollection",
    "RunRepository",
    "SlugField",
    "UnitOfWork",
]
