from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Table, delete, func, inspect, select

from gamecat.adapters.sqlalchemy import create_all_tables, start_mappers
from gamecat.adapters.sqlalchemy.mappings import (
    game_company_role_table,
    game_details_table,
    game_releases_table,
    games_table,
)
from gamecat.domain.model import (
    Company,
    CompanyRole,
    GameCompanyRole,
    GameDetail,
    GameType,
    PipelineRun,
    Platform,
    Store,
)
from tests.helpers.catalog import make_game, make_release

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine
    from sqlalchemy.orm import Session


def test_start_mappers_is_idempotent() -> None:
    # First invocation happens in the sqlite_engine fixture; calling again should be harmless.
    start_mappers()
    start_mappers()


def test_create_all_tables_registers_catalog_tables(sqlite_engine: Engine) -> None:
    create_all_tables(sqlite_engine)
    table_names = set(inspect(sqlite_engine).get_table_names())
    for required in ("games", "game_details", "game_releases", "companies", "pipeline_runs"):
        assert required in table_names


def test_deleting_a_game_cascades_to_children(sqlite_session: Session) -> None:
    def _row_count(table: Table) -> int:
        return sqlite_session.execute(select(func.count()).select_from(table)).scalar_one()

    game = make_game("Celeste", steam_id=504230)
    company = Company(name="Maddy Makes Games", slug="maddy-makes-games")
    sqlite_session.add_all([game, company])
    sqlite_session.flush()
    assert game.id is not None
    assert company.id is not None
    sqlite_session.add_all(
        [
            make_release(game.id, Platform.PC, Store.STEAM, "504230"),
            GameDetail(game_id=game.id, screenshots=["a.jpg"]),
            GameCompanyRole(game_id=game.id, company_id=company.id, role=CompanyRole.DEVELOPER),
        ]
    )
    sqlite_session.commit()

    sqlite_session.execute(delete(games_table).where(games_table.c.id == game.id))
    sqlite_session.commit()

    assert _row_count(game_releases_table) == 0
    assert _row_count(game_details_table) == 0
    assert _row_count(game_company_role_table) == 0


def test_enums_and_json_round_trip(sqlite_session: Session) -> None:
    game = make_game("Celeste Farewell", steam_id=1, game_type=GameType.DLC, parent_steam_id=2)
    sqlite_session.add(game)
    sqlite_session.flush()
    assert game.id is not None
    sqlite_session.add(GameDetail(game_id=game.id, genres=["Platformer"], tags=["Hard"]))
    sqlite_session.commit()
    sqlite_session.expunge_all()

    stored_type = sqlite_session.execute(
        select(games_table.c.game_type).where(games_table.c.id == game.id)
    ).scalar_one()
    detail = sqlite_session.execute(select(GameDetail)).scalar_one()

    assert stored_type is GameType.DLC
    assert detail.genres == ["Platformer"]
    assert detail.tags == ["Hard"]
    assert detail.screenshots == []


def test_timestamps_come_back_timezone_aware(sqlite_session: Session) -> None:
    naive = datetime(2025, 1, 2, 3, 4, 5)  # noqa: DTZ001
    run = PipelineRun(pipeline_type="game_save", started_at=naive)
    sqlite_session.add(run)
    sqlite_session.commit()
    sqlite_session.expunge_all()

    loaded = sqlite_session.get(PipelineRun, run.id)

    assert loaded is not None
    assert loaded.started_at == datetime(2025, 1, 2, 3, 4, 5, tzinfo=UTC)
