from __future__ import annotations

import sqlite3
from types import SimpleNamespace
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.exc import DataError, DBAPIError, IntegrityError, OperationalError

from gamecat.adapters.sqlalchemy import translate, translate_errors
from gamecat.domain.errors import (
    CheckViolationError,
    ConnectionLostError,
    DeadlockError,
    InvalidValueError,
    NotNullViolationError,
    SerializationFailureError,
    StorageError,
    StorageTimeoutError,
    UniqueViolationError,
)
from tests.helpers.catalog import make_game, seed_game

if TYPE_CHECKING:
    from collections.abc import Callable

    from gamecat.adapters.sqlalchemy import SqlAlchemyCatalogUnitOfWork


class FakePgError(Exception):
    """Shape of a psycopg error: SQLSTATE plus diagnostics."""

    def __init__(self, message: str, sqlstate: str, **diag: str | None) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate
        self.diag = SimpleNamespace(
            constraint_name=diag.get("constraint_name"),
            message_detail=diag.get("message_detail"),
            column_name=diag.get("column_name"),
        )


def _sqlite_integrity(message: str) -> IntegrityError:
    return IntegrityError("INSERT INTO games", None, sqlite3.IntegrityError(message))


def test_sqlite_unique_violation_carries_columns() -> None:
    error = translate(_sqlite_integrity("UNIQUE constraint failed: games.og_slug"))

    assert isinstance(error, UniqueViolationError)
    assert error.columns == ("og_slug",)
    assert error.involves("og_slug")


def test_sqlite_composite_unique_violation() -> None:
    error = translate(
        _sqlite_integrity(
            "UNIQUE constraint failed: game_releases.game_id, game_releases.platform, "
            "game_releases.store, game_releases.store_app_id"
        )
    )

    assert isinstance(error, UniqueViolationError)
    assert error.columns == ("game_id", "platform", "store", "store_app_id")


def test_sqlite_not_null_and_check_violations() -> None:
    not_null = translate(_sqlite_integrity("NOT NULL constraint failed: games.name"))
    check = translate(_sqlite_integrity("CHECK constraint failed: ck_games_popularity_range"))

    assert isinstance(not_null, NotNullViolationError)
    assert not_null.columns == ("name",)
    assert isinstance(check, CheckViolationError)
    assert check.constraint == "ck_games_popularity_range"


def test_postgres_unique_violation_reads_diagnostics() -> None:
    orig = FakePgError(
        'duplicate key value violates unique constraint "games_og_slug_key"',
        "23505",
        constraint_name="games_og_slug_key",
        message_detail="Key (og_slug)=(hades) already exists.",
    )

    error = translate(IntegrityError("INSERT INTO games", None, orig))

    assert isinstance(error, UniqueViolationError)
    assert error.constraint == "games_og_slug_key"
    assert error.columns == ("og_slug",)
    assert error.value == "hades"
    assert error.detail == "Key (og_slug)=(hades) already exists."


@pytest.mark.parametrize(
    ("sqlstate", "expected"),
    [
        ("40001", SerializationFailureError),
        ("40P01", DeadlockError),
        ("57014", StorageTimeoutError),
        ("55P03", StorageTimeoutError),
        ("08006", ConnectionLostError),
        ("22P02", InvalidValueError),
        ("23514", CheckViolationError),
    ],
)
def test_postgres_sqlstate_mapping(sqlstate: str, expected: type[StorageError]) -> None:
    error = translate(DBAPIError("UPDATE games", None, FakePgError("failed", sqlstate)))

    assert type(error) is expected


def test_postgres_not_null_violation_names_the_column() -> None:
    orig = FakePgError("null value", "23502", column_name="og_name")

    error = translate(IntegrityError("INSERT INTO games", None, orig))

    assert isinstance(error, NotNullViolationError)
    assert error.columns == ("og_name",)


def test_sqlite_busy_database_is_transient() -> None:
    error = translate(
        OperationalError("INSERT", None, sqlite3.OperationalError("database is locked"))
    )

    assert isinstance(error, StorageTimeoutError)


def test_unrecognised_errors_fall_back_to_storage_error() -> None:
    operational = translate(
        OperationalError("SELECT", None, sqlite3.OperationalError("no such table: games"))
    )
    data = translate(DataError("INSERT", None, sqlite3.DataError("string too long")))

    assert type(operational) is StorageError
    assert isinstance(data, InvalidValueError)


def test_translate_errors_chains_the_original() -> None:
    original = _sqlite_integrity("UNIQUE constraint failed: games.steam_id")

    with pytest.raises(UniqueViolationError) as excinfo, translate_errors():
        raise original

    assert excinfo.value.__cause__ is original


def test_duplicate_commit_raises_unique_violation(
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    seed_game(sqlite_unit_of_work, make_game("Hades", steam_id=1145360))

    with pytest.raises(UniqueViolationError) as excinfo, sqlite_unit_of_work() as uow:
        uow.repositories.games.add(
            make_game("Hades II", slug="hades-ii", og_slug="hades-ii", steam_id=1145360)
        )
        uow.commit()

    assert excinfo.value.involves("steam_id")
