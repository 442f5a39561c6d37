"""Translator checks for processed collector records."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any

import pytest
from pydantic import ValidationError

from gamecat.adapters.records import GameRecordPayload, parse_game_record, parse_release_date
from gamecat.domain.model import CompanyRole, GameType, Platform, SourceSystem, Store

FIXTURES = Path("tests/data/records")


@pytest.fixture
def payloads() -> list[dict[str, Any]]:
    path = FIXTURES / "processed.jsonl"
    return [json.loads(line) for line in path.read_text().splitlines() if line.strip()]


def test_steam_record_translation(payloads: list[dict[str, Any]]) -> None:
    record = parse_game_record(payloads[0])

    assert record.name == "Hollow Knight"
    assert record.steam_id == 367520
    assert record.game_type is GameType.GAME
    assert record.release_date == date(2017, 2, 24)
    assert record.popularity_score == 92
    assert record.data_source is SourceSystem.STEAM
    assert record.detail is not None
    assert record.detail.support_languages == ["English", "French"]
    assert record.detail.metacritic_score == 87
    [release] = record.releases
    assert (release.platform, release.store, release.store_app_id) == (
        Platform.PC,
        Store.STEAM,
        "367520",
    )
    assert release.release_date == date(2017, 2, 24)
    assert release.current_price_cents == 1499
    assert [(company.name, company.role) for company in record.companies] == [
        ("Team Cherry", CompanyRole.DEVELOPER),
        ("Team Cherry", CompanyRole.PUBLISHER),
    ]


def test_free_text_release_dates_stay_raw(payloads: list[dict[str, Any]]) -> None:
    record = parse_game_record(payloads[1])

    assert record.release_date is None
    assert record.release_date_raw == "Q3 2025"
    assert record.coming_soon
    assert record.companies[0].slug is None
    assert record.detail is None


def test_rawg_record_with_matching_context(payloads: list[dict[str, Any]]) -> None:
    record = parse_game_record(payloads[2])

    assert record.data_source is SourceSystem.RAWG
    assert record.slug is None
    assert record.steam_id is None
    assert record.rawg_id == 9767
    assert [release.release_date for release in record.releases] == [date(2018, 9, 25), None]
    context = record.matching_context
    assert context is not None
    assert context.normalized_name == "hollow knight"
    assert context.tokens == ("hollow", "knight")
    assert context.release_date == date(2017, 2, 24)
    assert context.candidate_slugs == ("hollow-knight",)
    assert context.candidate_steam_ids == (367520,)
    assert context.company_slugs == ("team-cherry",)


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        ({"name": "Celeste", "steamId": 1}, SourceSystem.STEAM),
        ({"name": "Celeste", "rawgId": 2}, SourceSystem.RAWG),
        ({"name": "Celeste", "steamId": 1, "rawgId": 2}, SourceSystem.STEAM),
        ({"name": "Celeste", "steamId": 1, "dataSource": "rawg"}, SourceSystem.RAWG),
        (
            {"name": "Celeste", "steamId": 1, "matchingContext": {"source": "rawg"}},
            SourceSystem.RAWG,
        ),
    ],
)
def test_source_resolution(payload: dict[str, Any], expected: SourceSystem) -> None:
    assert parse_game_record(payload).data_source is expected


def test_payload_model_accepts_field_names_and_instances() -> None:
    payload = GameRecordPayload.model_validate({"name": "Celeste", "steam_id": 504230})

    record = parse_game_record(payload)

    assert record.steam_id == 504230


def test_invalid_payload_raises_validation_error() -> None:
    with pytest.raises(ValidationError):
        parse_game_record({"name": "Celeste", "releases": [{"platform": "amiga", "store": "gog"}]})


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2025-08-28", date(2025, 8, 28)),
        ("28 Aug, 2025", date(2025, 8, 28)),
        ("28 August, 2025", date(2025, 8, 28)),
        ("Aug 28, 2025", date(2025, 8, 28)),
        ("28 Aug 2025", date(2025, 8, 28)),
        ("28 Aug ,2025", date(2025, 8, 28)),
        ("2025", date(2025, 1, 1)),
        ("Q3 2025", None),
        ("Coming soon", None),
        ("2025-02-30", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_release_date(raw: str | None, expected: date | None) -> None:
    assert parse_release_date(raw) == expected
