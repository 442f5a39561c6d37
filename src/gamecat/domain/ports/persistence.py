"""Ports for persisting catalog aggregates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import date

    from gamecat.domain.model import (
        Company,
        CompanyRole,
        Game,
        GameCompanyRole,
        GameDetail,
        GameRelease,
        PipelineItem,
        PipelineRun,
        ReleaseKey,
    )

type SlugField = Literal["slug", "og_slug"]


@dataclass(frozen=True, slots=True)
class CandidateQuery:
    """Bounded candidate retrieval for cross-source matching.

    A game qualifies when it carries a Steam id but no RAWG id, is not DLC, and either
    one of its slugs is in ``slugs`` or its name contains every one of
    ``required_tokens``. When ``release_date`` is given, games dated outside the window
    are skipped; undated games are kept.
    """

    slugs: tuple[str, ...] = ()
    required_tokens: tuple[str, ...] = ()
    release_date: date | None = None
    window_days: int = 1825
    steam_ids: tuple[int, ...] = ()
    limit: int = 50


@runtime_checkable
class GameRepository(Protocol):
    def add(self, game: Game) -> None: ...

    def get(self, game_id: int) -> Game | None: ...

    def lock(self, game_ids: Sequence[int]) -> list[Game]:
        """Load and row-lock the given games, always in ascending id order."""
        ...

    def find_by_steam_id(self, steam_id: int) -> Game | None: ...

    def find_by_rawg_id(self, rawg_id: int) -> Game | None: ...

    def find_by_slug(self, slug: str) -> Game | None: ...

    def find_by_og_slug(self, og_slug: str) -> Game | None: ...

    def slug_exists(self, field: SlugField, slug: str, *, exclude_id: int | None = None) -> bool:
        ...

    def find_match_candidates(self, query: CandidateQuery) -> list[Game]: ...

    def delete(self, game: Game) -> None: ...

    def flush(self) -> None: ...


@runtime_checkable
class GameDetailRepository(Protocol):
    def get_for_game(self, game_id: int) -> GameDetail | None: ...

    def add(self, detail: GameDetail) -> None: ...

    def delete_for_game(self, game_id: int) -> int: ...


@runtime_checkable
class GameReleaseRepository(Protocol):
    def list_for_game(self, game_id: int) -> list[GameRelease]: ...

    def find(self, game_id: int, key: ReleaseKey) -> GameRelease | None: ...

    def add(self, release: GameRelease) -> None: ...

    def delete_ids(self, release_ids: Sequence[int]) -> int: ...

    def reassign(
        self,
        release_ids: Sequence[int],
        *,
        from_game_id: int,
        to_game_id: int,
    ) -> int:
        """Move rows to another game; returns the number of rows actually moved."""
        ...


@runtime_checkable
class CompanyRepository(Protocol):
    def find_by_slug(self, slug: str) -> Company | None: ...

    def find_by_name(self, name: str) -> Company | None: ...

    def slug_exists(self, slug: str) -> bool: ...

    def add(self, company: Company) -> None: ...

    def roles_for_game(self, game_id: int) -> list[tuple[Company, CompanyRole]]: ...

    def has_role(self, game_id: int, company_id: int, role: CompanyRole) -> bool: ...

    def add_role(self, role: GameCompanyRole) -> None: ...

    def delete_roles_for_game(self, game_id: int) -> int: ...


@runtime_checkable
class RunRepository(Protocol):
    def add(self, run: PipelineRun) -> None: ...

    def get(self, run_id: int) -> PipelineRun | None: ...

    def add_item(self, item: PipelineItem) -> None: ...
