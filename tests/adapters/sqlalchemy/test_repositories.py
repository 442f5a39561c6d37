"""Tests for SQLAlchemy repositories."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session  # noqa: TC002

from gamecat.adapters.sqlalchemy.repositories import (
    SqlAlchemyCompanyRepository,
    SqlAlchemyGameDetailRepository,
    SqlAlchemyGameReleaseRepository,
    SqlAlchemyGameRepository,
    SqlAlchemyRunRepository,
)
from gamecat.domain.model import (
    Company,
    CompanyRole,
    GameCompanyRole,
    GameDetail,
    GameType,
    PipelineItem,
    PipelineRun,
    Platform,
    SaveAction,
    Store,
)
from gamecat.domain.ports import CandidateQuery
from tests.helpers.catalog import days, make_game, make_release

if TYPE_CHECKING:
    from gamecat.domain.model import Game


def _seed_knights(session: Session) -> dict[str, int]:
    repository = SqlAlchemyGameRepository(session)
    games = {
        "classic": make_game(
            "Hollow Knight", steam_id=1, popularity_score=80, release_date=days("2017-02-24")
        ),
        "sequel": make_game(
            "Hollow Knight: Silksong",
            steam_id=2,
            popularity_score=95,
            release_date=days("2025-09-04"),
        ),
        "dlc": make_game(
            "Hollow Knight Godmaster", steam_id=3, game_type=GameType.DLC, parent_steam_id=1
        ),
        "matched": make_game("Hollow Knight Remix", steam_id=4, rawg_id=99),
        "undated": make_game("Hollow Knight Zote", steam_id=5, popularity_score=10),
        "rawg_only": make_game("Hollow Knight Demo", rawg_id=100),
    }
    for game in games.values():
        repository.add(game)
    repository.flush()
    session.commit()
    return {key: game.id for key, game in games.items() if game.id is not None}


def _names(games: list[Game]) -> list[str]:
    return [game.name for game in games]


def test_candidates_by_slug_only_include_unmatched_steam_games(sqlite_session: Session) -> None:
    _seed_knights(sqlite_session)
    repository = SqlAlchemyGameRepository(sqlite_session)

    found = repository.find_match_candidates(
        CandidateQuery(slugs=("HOLLOW-KNIGHT", "hollow-knight-remix", "hollow-knight-demo"))
    )

    assert _names(found) == ["Hollow Knight"]


def test_candidates_by_tokens_are_ordered_by_popularity(sqlite_session: Session) -> None:
    _seed_knights(sqlite_session)
    repository = SqlAlchemyGameRepository(sqlite_session)

    found = repository.find_match_candidates(CandidateQuery(required_tokens=("hollow", "knight")))

    assert _names(found) == ["Hollow Knight: Silksong", "Hollow Knight", "Hollow Knight Zote"]


def test_candidate_date_window_keeps_undated_games(sqlite_session: Session) -> None:
    _seed_knights(sqlite_session)
    repository = SqlAlchemyGameRepository(sqlite_session)

    found = repository.find_match_candidates(
        CandidateQuery(
            required_tokens=("hollow", "knight"),
            release_date=days("2017-03-01"),
            window_days=365,
        )
    )

    assert _names(found) == ["Hollow Knight", "Hollow Knight Zote"]


def test_candidate_limit_and_empty_query(sqlite_session: Session) -> None:
    _seed_knights(sqlite_session)
    repository = SqlAlchemyGameRepository(sqlite_session)

    limited = repository.find_match_candidates(
        CandidateQuery(required_tokens=("knight",), limit=1)
    )

    assert _names(limited) == ["Hollow Knight: Silksong"]
    assert repository.find_match_candidates(CandidateQuery()) == []


def test_candidate_steam_ids_only_narrow_name_matches(sqlite_session: Session) -> None:
    _seed_knights(sqlite_session)
    repository = SqlAlchemyGameRepository(sqlite_session)

    narrowed = repository.find_match_candidates(
        CandidateQuery(required_tokens=("hollow", "knight"), steam_ids=(1, 5))
    )
    ids_alone = repository.find_match_candidates(CandidateQuery(steam_ids=(2, 3)))

    assert _names(narrowed) == ["Hollow Knight", "Hollow Knight Zote"]
    assert ids_alone == []


def test_slug_lookups_are_case_insensitive(sqlite_session: Session) -> None:
    ids = _seed_knights(sqlite_session)
    repository = SqlAlchemyGameRepository(sqlite_session)

    found = repository.find_by_slug("  Hollow-Knight ")

    assert found is not None
    assert found.id == ids["classic"]
    assert repository.slug_exists("og_slug", "HOLLOW-KNIGHT")
    assert not repository.slug_exists("slug", "hollow-knight", exclude_id=ids["classic"])
    assert not repository.slug_exists("slug", "hollow-knight-3")


def test_external_id_lookups(sqlite_session: Session) -> None:
    ids = _seed_knights(sqlite_session)
    repository = SqlAlchemyGameRepository(sqlite_session)

    by_steam = repository.find_by_steam_id(4)
    by_rawg = repository.find_by_rawg_id(99)

    assert by_steam is not None
    assert by_rawg is not None
    assert by_steam.id == by_rawg.id == ids["matched"]
    assert repository.find_by_rawg_id(12345) is None


def test_lock_returns_games_in_id_order(sqlite_session: Session) -> None:
    ids = _seed_knights(sqlite_session)
    repository = SqlAlchemyGameRepository(sqlite_session)

    locked = repository.lock([ids["sequel"], ids["classic"], ids["sequel"]])

    assert [game.id for game in locked] == sorted({ids["sequel"], ids["classic"]})


def test_release_bulk_operations_report_row_counts(sqlite_session: Session) -> None:
    ids = _seed_knights(sqlite_session)
    repository = SqlAlchemyGameReleaseRepository(sqlite_session)
    releases = [
        make_release(ids["classic"], Platform.PC, Store.STEAM, "1"),
        make_release(ids["classic"], Platform.PC, Store.GOG, "hk"),
        make_release(ids["classic"], Platform.NINTENDO, Store.ESHOP, "hk-switch"),
    ]
    for release in releases:
        repository.add(release)
    sqlite_session.flush()
    release_ids = [release.id for release in releases if release.id is not None]

    assert repository.delete_ids([]) == 0
    assert repository.delete_ids(release_ids[:1]) == 1
    wrong_source = repository.reassign(
        release_ids[1:], from_game_id=ids["sequel"], to_game_id=ids["undated"]
    )
    moved = repository.reassign(
        release_ids[1:], from_game_id=ids["classic"], to_game_id=ids["sequel"]
    )

    assert wrong_source == 0
    assert moved == 2
    assert repository.list_for_game(ids["classic"]) == []
    assert len(repository.list_for_game(ids["sequel"])) == 2
    assert repository.find(ids["sequel"], (Platform.PC, Store.GOG, "hk")) is not None


def test_detail_repository_get_and_delete(sqlite_session: Session) -> None:
    ids = _seed_knights(sqlite_session)
    repository = SqlAlchemyGameDetailRepository(sqlite_session)
    repository.add(GameDetail(game_id=ids["classic"], description="Bugs."))
    sqlite_session.flush()

    detail = repository.get_for_game(ids["classic"])

    assert detail is not None
    assert detail.description == "Bugs."
    assert repository.delete_for_game(ids["classic"]) == 1
    assert repository.delete_for_game(ids["classic"]) == 0


def test_company_repository_roles(sqlite_session: Session) -> None:
    ids = _seed_knights(sqlite_session)
    repository = SqlAlchemyCompanyRepository(sqlite_session)
    company = Company(name="Team Cherry", slug="team-cherry")
    repository.add(company)
    assert company.id is not None
    repository.add_role(
        GameCompanyRole(game_id=ids["classic"], company_id=company.id, role=CompanyRole.DEVELOPER)
    )
    sqlite_session.flush()

    found = repository.find_by_slug("TEAM-CHERRY")

    assert found is company
    assert repository.find_by_name("team cherry") is company
    assert repository.slug_exists("team-cherry")
    assert repository.has_role(ids["classic"], company.id, CompanyRole.DEVELOPER)
    assert not repository.has_role(ids["classic"], company.id, CompanyRole.PUBLISHER)
    assert repository.roles_for_game(ids["classic"]) == [(company, CompanyRole.DEVELOPER)]
    assert repository.delete_roles_for_game(ids["classic"]) == 1


def test_run_repository_records_items(sqlite_session: Session) -> None:
    ids = _seed_knights(sqlite_session)
    repository = SqlAlchemyRunRepository(sqlite_session)
    run = PipelineRun(pipeline_type="game_save", total_items=1)
    repository.add(run)
    assert run.id is not None
    repository.add_item(
        PipelineItem(run_id=run.id, target_id=ids["classic"], action=SaveAction.UPDATED)
    )
    sqlite_session.commit()

    assert repository.get(run.id) is run
    assert repository.get(run.id + 1) is None
