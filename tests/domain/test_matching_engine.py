from __future__ import annotations

import json
from typing import TYPE_CHECKING

from gamecat.domain.matching import MatchAuditLog, MatchingEngine
from gamecat.domain.model import CompanyRecord, GameType, MatchReason, MatchStatus
from tests.helpers.catalog import (
    days,
    fake_repositories,
    make_game,
    make_record,
    seed_company,
    seed_game,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from gamecat.adapters.sqlalchemy import SqlAlchemyCatalogUnitOfWork


def test_steam_records_are_not_evaluated() -> None:
    repositories = fake_repositories([make_game(id=1, steam_id=10)])
    record = make_record(steam_id=10, rawg_id=20)

    result = MatchingEngine().evaluate(record, repositories)

    assert result.status is MatchStatus.NO_CANDIDATE
    assert result.reason is MatchReason.NOT_APPLICABLE
    assert repositories.games.queries == []  # type: ignore[attr-defined]
    assert record.matching_decision is None


def test_slug_date_and_company_signals_auto_match(
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    game_id = seed_game(
        sqlite_unit_of_work,
        make_game("Hollow Knight", steam_id=367520, release_date=days("2017-02-24")),
    )
    seed_company(sqlite_unit_of_work, game_id, "Team Cherry")
    record = make_record(
        "Hollow Knight",
        rawg_id=9767,
        slug="hollow-knight",
        release_date=days("2017-03-06"),
        companies=[CompanyRecord(name="Team Cherry")],
    )

    with sqlite_unit_of_work() as uow:
        result = MatchingEngine().evaluate(record, uow.repositories)

    assert result.status is MatchStatus.MATCHED
    assert result.reason is MatchReason.AUTO_MATCH
    assert result.game is not None
    assert result.game.id == game_id
    assert result.score is not None
    assert result.score >= 0.6
    best = result.evaluations[0]
    assert best.score.signals.slug_match
    assert best.score.signals.release_date_diff_days == 10
    assert best.score.signals.company_overlap == ("team cherry",)
    assert record.matching_decision is not None
    assert record.matching_decision.matched_game_id == game_id


def test_no_candidate_is_rejected(
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    seed_game(
        sqlite_unit_of_work,
        make_game("Stardew Valley", steam_id=413150, release_date=days("2016-02-26")),
    )
    record = make_record(
        "Stardew Valley Fan Remix", rawg_id=1, release_date=days("2020-01-01")
    )

    with sqlite_unit_of_work() as uow:
        result = MatchingEngine().evaluate(record, uow.repositories)

    assert result.status is MatchStatus.REJECTED
    assert result.reason is MatchReason.NO_CANDIDATE
    assert result.game is None


def test_weak_candidate_is_rejected_for_insufficient_signals(
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    seed_game(
        sqlite_unit_of_work,
        make_game("Farm Valley Stories", steam_id=1, release_date=days("2015-01-01")),
    )
    record = make_record("Valley Farm", rawg_id=2, release_date=days("2018-06-01"))

    with sqlite_unit_of_work() as uow:
        result = MatchingEngine().evaluate(record, uow.repositories)

    assert result.status is MatchStatus.REJECTED
    assert result.reason is MatchReason.INSUFFICIENT_SIGNALS
    assert len(result.evaluations) == 1
    assert not result.evaluations[0].accepted


def test_candidates_are_limited_to_unlinked_steam_games(
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    seed_game(sqlite_unit_of_work, make_game("Celeste", steam_id=504230))
    seed_game(
        sqlite_unit_of_work,
        make_game(
            "Celeste Farewell", slug="celeste-dlc", steam_id=504231, game_type=GameType.DLC
        ),
    )
    seed_game(
        sqlite_unit_of_work,
        make_game("Celeste Classic", steam_id=504232, rawg_id=77),
    )
    record = make_record("Celeste", rawg_id=1000)

    with sqlite_unit_of_work() as uow:
        result = MatchingEngine().evaluate(record, uow.repositories)

    assert [evaluation.steam_id for evaluation in result.evaluations] == [504230]


def test_middling_score_is_held_for_review() -> None:
    repositories = fake_repositories([make_game("Celeste", id=3, steam_id=20)])
    record = make_record("Celeste", rawg_id=7)

    result = MatchingEngine().evaluate(record, repositories)

    assert result.status is MatchStatus.PENDING
    assert result.reason is MatchReason.SCORE_THRESHOLD_PENDING
    assert record.matching_decision is not None
    assert record.matching_decision.matched_game_id is None


def test_identifier_conflict_on_top_candidate_rejects() -> None:
    repositories = fake_repositories([make_game("Celeste", id=5, steam_id=10, rawg_id=999)])
    record = make_record("Celeste", rawg_id=1000, slug="celeste")

    result = MatchingEngine().evaluate(record, repositories)

    assert result.status is MatchStatus.REJECTED
    assert result.reason is MatchReason.IDENTIFIER_CONFLICT


def test_ties_break_on_lowest_game_id() -> None:
    repositories = fake_repositories(
        [
            make_game("Celeste", slug="celeste-b", og_slug="celeste-b", id=9, steam_id=2),
            make_game("Celeste", slug="celeste-a", og_slug="celeste-a", id=4, steam_id=1),
        ]
    )
    record = make_record("Celeste", rawg_id=7)

    result = MatchingEngine().evaluate(record, repositories)

    assert [evaluation.game_id for evaluation in result.evaluations] == [4, 9]
    assert result.game is not None
    assert result.game.id == 4


def test_year_tokens_are_not_required_for_candidates() -> None:
    repositories = fake_repositories([])
    MatchingEngine().evaluate(make_record("DOOM 2016", rawg_id=1), repositories)

    query = repositories.games.queries[0]  # type: ignore[attr-defined]
    assert query.required_tokens == ("doom",)
    assert "doom-2016" in query.slugs


def test_decisions_are_appended_to_the_audit_log(tmp_path: Path) -> None:
    audit_log = MatchAuditLog(tmp_path)
    engine = MatchingEngine(audit_log=audit_log)
    repositories = fake_repositories([make_game("Celeste", id=3, steam_id=20)])
    first = make_record("Celeste", rawg_id=7)
    second = make_record("Celeste", rawg_id=8)

    engine.evaluate(first, repositories)
    engine.evaluate(second, repositories)

    path = tmp_path / "pending.jsonl"
    entries = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert [entry["rawg_id"] for entry in entries] == [7, 8]
    assert entries[0]["candidates"][0]["game_id"] == 3
    assert "breakdown" in entries[0]["candidates"][0]
    assert first.matching_decision is not None
    assert first.matching_decision.log_path == str(path)

    summary_path = audit_log.write_summary("run-1")
    summary = json.loads(summary_path.read_text(encoding="utf-8"))
    assert summary["processed"] == 2
    assert summary["pending"] == 2
    assert summary["reasons"] == {"SCORE_THRESHOLD_PENDING": 2}
