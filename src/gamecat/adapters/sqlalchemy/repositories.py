"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, cast

from sqlalchemy import and_, delete, func, or_, select, update

from gamecat.adapters.sqlalchemy.errors import translated
from gamecat.adapters.sqlalchemy.mappings import (
    companies_table,
    game_company_role_table,
    game_details_table,
    game_releases_table,
    games_table,
)
from gamecat.domain.model import (
    Company,
    CompanyRole,
    Game,
    GameCompanyRole,
    GameDetail,
    GameRelease,
    GameType,
    PipelineItem,
    PipelineRun,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy import ColumnElement
    from sqlalchemy.engine import CursorResult
    from sqlalchemy.orm import Session

    from gamecat.domain.model import ReleaseKey
    from gamecat.domain.ports import CandidateQuery, SlugField

_SYNC_FETCH = {"synchronize_session": "fetch"}


def _rowcount(result: object) -> int:
    return cast("CursorResult[object]", result).rowcount


class SqlAlchemyGameRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, game: Game) -> None:
        self.session.add(game)

    @translated
    def get(self, game_id: int) -> Game | None:
        return self.session.get(Game, game_id)

    @translated
    def lock(self, game_ids: Sequence[int]) -> list[Game]:
        stmt = (
            select(Game)
            .where(games_table.c.id.in_(sorted(set(game_ids))))
            .order_by(games_table.c.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return list(self.session.execute(stmt).scalars())

    @translated
    def find_by_steam_id(self, steam_id: int) -> Game | None:
        stmt = select(Game).where(games_table.c.steam_id == steam_id)
        return self.session.execute(stmt).scalar_one_or_none()

    @translated
    def find_by_rawg_id(self, rawg_id: int) -> Game | None:
        stmt = select(Game).where(games_table.c.rawg_id == rawg_id)
        return self.session.execute(stmt).scalar_one_or_none()

    def find_by_slug(self, slug: str) -> Game | None:
        return self._find_by("slug", slug)

    def find_by_og_slug(self, og_slug: str) -> Game | None:
        return self._find_by("og_slug", og_slug)

    @translated
    def _find_by(self, field: SlugField, value: str) -> Game | None:
        column = games_table.c[field]
        stmt = (
            select(Game)
            .where(func.lower(column) == value.strip().lower())
            .order_by(games_table.c.id)
            .limit(1)
        )
        return self.session.execute(stmt).scalars().first()

    @translated
    def slug_exists(self, field: SlugField, slug: str, *, exclude_id: int | None = None) -> bool:
        column = games_table.c[field]
        stmt = select(games_table.c.id).where(func.lower(column) == slug.lower())
        if exclude_id is not None:
            stmt = stmt.where(games_table.c.id != exclude_id)
        return self.session.execute(stmt.limit(1)).scalar_one_or_none() is not None

    @translated
    def find_match_candidates(self, query: CandidateQuery) -> list[Game]:
        matchers: list[ColumnElement[bool]] = []
        slugs = sorted({slug.lower() for slug in query.slugs if slug})
        if slugs:
            matchers.append(func.lower(games_table.c.slug).in_(slugs))
            matchers.append(func.lower(games_table.c.og_slug).in_(slugs))
        if query.required_tokens:
            name = func.lower(games_table.c.name)
            og_name = func.lower(games_table.c.og_name)
            matchers.append(
                and_(*(name.contains(token, autoescape=True) for token in query.required_tokens))
            )
            matchers.append(
                and_(
                    *(og_name.contains(token, autoescape=True) for token in query.required_tokens)
                )
            )
        if not matchers:
            return []

        stmt = select(Game).where(
            games_table.c.steam_id.is_not(None),
            games_table.c.rawg_id.is_(None),
            games_table.c.game_type != GameType.DLC,
            or_(*matchers),
        )
        # narrows slug/name matches, never widens them
        if query.steam_ids:
            stmt = stmt.where(games_table.c.steam_id.in_(query.steam_ids))
        if query.release_date is not None:
            window = timedelta(days=query.window_days)
            stmt = stmt.where(
                or_(
                    games_table.c.release_date.is_(None),
                    games_table.c.release_date.between(
                        query.release_date - window, query.release_date + window
                    ),
                )
            )
        stmt = stmt.order_by(
            games_table.c.popularity_score.desc(), games_table.c.id.asc()
        ).limit(query.limit)
        return list(self.session.execute(stmt).scalars())

    @translated
    def delete(self, game: Game) -> None:
        self.session.delete(game)

    @translated
    def flush(self) -> None:
        self.session.flush()


class SqlAlchemyGameDetailRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    @translated
    def get_for_game(self, game_id: int) -> GameDetail | None:
        stmt = select(GameDetail).where(game_details_table.c.game_id == game_id)
        return self.session.execute(stmt).scalar_one_or_none()

    def add(self, detail: GameDetail) -> None:
        self.session.add(detail)

    @translated
    def delete_for_game(self, game_id: int) -> int:
        stmt = (
            delete(GameDetail)
            .where(game_details_table.c.game_id == game_id)
            .execution_options(**_SYNC_FETCH)
        )
        return _rowcount(self.session.execute(stmt))


class SqlAlchemyGameReleaseRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    @translated
    def list_for_game(self, game_id: int) -> list[GameRelease]:
        stmt = (
            select(GameRelease)
            .where(game_releases_table.c.game_id == game_id)
            .order_by(game_releases_table.c.id)
        )
        return list(self.session.execute(stmt).scalars())

    @translated
    def find(self, game_id: int, key: ReleaseKey) -> GameRelease | None:
        platform, store, store_app_id = key
        stmt = select(GameRelease).where(
            game_releases_table.c.game_id == game_id,
            game_releases_table.c.platform == platform,
            game_releases_table.c.store == store,
            game_releases_table.c.store_app_id == store_app_id,
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def add(self, release: GameRelease) -> None:
        self.session.add(release)

    @translated
    def delete_ids(self, release_ids: Sequence[int]) -> int:
        if not release_ids:
            return 0
        stmt = (
            delete(GameRelease)
            .where(game_releases_table.c.id.in_(release_ids))
            .execution_options(**_SYNC_FETCH)
        )
        return _rowcount(self.session.execute(stmt))

    @translated
    def reassign(
        self,
        release_ids: Sequence[int],
        *,
        from_game_id: int,
        to_game_id: int,
    ) -> int:
        if not release_ids:
            return 0
        stmt = (
            update(GameRelease)
            .where(
                game_releases_table.c.id.in_(release_ids),
                game_releases_table.c.game_id == from_game_id,
            )
            .values(game_id=to_game_id)
            .execution_options(**_SYNC_FETCH)
        )
        return _rowcount(self.session.execute(stmt))


class SqlAlchemyCompanyRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    @translated
    def find_by_slug(self, slug: str) -> Company | None:
        stmt = select(Company).where(func.lower(companies_table.c.slug) == slug.strip().lower())
        return self.session.execute(stmt.limit(1)).scalars().first()

    @translated
    def find_by_name(self, name: str) -> Company | None:
        stmt = select(Company).where(func.lower(companies_table.c.name) == name.strip().lower())
        return self.session.execute(stmt.limit(1)).scalars().first()

    @translated
    def slug_exists(self, slug: str) -> bool:
        stmt = select(companies_table.c.id).where(
            func.lower(companies_table.c.slug) == slug.lower()
        )
        return self.session.execute(stmt.limit(1)).scalar_one_or_none() is not None

    @translated
    def add(self, company: Company) -> None:
        self.session.add(company)
        self.session.flush()

    @translated
    def roles_for_game(self, game_id: int) -> list[tuple[Company, CompanyRole]]:
        stmt = (
            select(Company, game_company_role_table.c.role)
            .join(
                game_company_role_table,
                game_company_role_table.c.company_id == companies_table.c.id,
            )
            .where(game_company_role_table.c.game_id == game_id)
            .order_by(companies_table.c.id, game_company_role_table.c.role)
        )
        return [(company, role) for company, role in self.session.execute(stmt).tuples()]

    @translated
    def has_role(self, game_id: int, company_id: int, role: CompanyRole) -> bool:
        stmt = select(game_company_role_table.c.game_id).where(
            game_company_role_table.c.game_id == game_id,
            game_company_role_table.c.company_id == company_id,
            game_company_role_table.c.role == role,
        )
        return self.session.execute(stmt.limit(1)).scalar_one_or_none() is not None

    def add_role(self, role: GameCompanyRole) -> None:
        self.session.add(role)

    @translated
    def delete_roles_for_game(self, game_id: int) -> int:
        stmt = (
            delete(GameCompanyRole)
            .where(game_company_role_table.c.game_id == game_id)
            .execution_options(**_SYNC_FETCH)
        )
        return _rowcount(self.session.execute(stmt))


class SqlAlchemyRunRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    @translated
    def add(self, run: PipelineRun) -> None:
        self.session.add(run)
        self.session.flush()

    @translated
    def get(self, run_id: int) -> PipelineRun | None:
        return self.session.get(PipelineRun, run_id)

    def add_item(self, item: PipelineItem) -> None:
        self.session.add(item)
