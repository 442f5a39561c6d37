"""Translate SQLAlchemy/DBAPI failures into the typed storage errors."""

from __future__ import annotations

import functools
import re
from contextlib import contextmanager
from typing import TYPE_CHECKING

from sqlalchemy.exc import DataError, DBAPIError, IntegrityError, OperationalError

from gamecat.domain.errors import (
    CheckViolationError,
    ConnectionLostError,
    ConstraintViolationError,
    DeadlockError,
    InvalidValueError,
    NotNullViolationError,
    SerializationFailureError,
    StorageError,
    StorageTimeoutError,
    UniqueViolationError,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

# PostgreSQL SQLSTATE codes
_UNIQUE_VIOLATION = "23505"
_NOT_NULL_VIOLATION = "23502"
_CHECK_VIOLATION = "23514"
_INVALID_TEXT_REPRESENTATION = "22P02"
_SERIALIZATION_FAILURE = "40001"
_DEADLOCK_DETECTED = "40P01"
_TIMEOUT_CODES = frozenset({"57014", "55P03"})

_PG_KEY_DETAIL = re.compile(r"Key \((?P<columns>.+?)\)=\((?P<value>.*?)\)")
_SQLITE_CONSTRAINT = re.compile(
    r"(?P<kind>UNIQUE|NOT NULL|CHECK) constraint failed: (?P<target>.+)$", re.MULTILINE
)
_SQLITE_LOCKED = ("database is locked", "database table is locked")
_SQLITE_CONNECTION = ("unable to open database", "disk i/o error")


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return code if isinstance(code, str) else None


def _diag(exc: DBAPIError, name: str) -> str | None:
    diag = getattr(exc.orig, "diag", None)
    value = getattr(diag, name, None) if diag is not None else None
    return value if isinstance(value, str) else None


def _columns_from_detail(detail: str | None) -> tuple[tuple[str, ...], str | None]:
    if not detail:
        return (), None
    match = _PG_KEY_DETAIL.search(detail)
    if match is None:
        return (), None
    columns = tuple(column.strip() for column in match.group("columns").split(","))
    return columns, match.group("value")


def _postgres_error(exc: DBAPIError, code: str) -> StorageError | None:
    message = str(exc.orig)
    constraint = _diag(exc, "constraint_name")
    detail = _diag(exc, "message_detail")
    columns, value = _columns_from_detail(detail)
    if code == _UNIQUE_VIOLATION:
        return UniqueViolationError(
            message, constraint=constraint, columns=columns, detail=detail, value=value
        )
    if code == _NOT_NULL_VIOLATION:
        column = _diag(exc, "column_name")
        return NotNullViolationError(
            message, constraint=constraint, columns=(column,) if column else (), detail=detail
        )
    if code == _CHECK_VIOLATION:
        return CheckViolationError(message, constraint=constraint, detail=detail)
    if code == _INVALID_TEXT_REPRESENTATION:
        return InvalidValueError(message, detail=detail)
    if code == _SERIALIZATION_FAILURE:
        return SerializationFailureError(message)
    if code == _DEADLOCK_DETECTED:
        return DeadlockError(message)
    if code in _TIMEOUT_CODES:
        return StorageTimeoutError(message)
    if code.startswith("08"):
        return ConnectionLostError(message)
    if code.startswith("23"):
        return ConstraintViolationError(message, constraint=constraint, detail=detail)
    return None


def _sqlite_constraint_error(exc: IntegrityError) -> ConstraintViolationError:
    message = str(exc.orig)
    match = _SQLITE_CONSTRAINT.search(message)
    if match is None:
        return ConstraintViolationError(message)
    kind = match.group("kind")
    target = match.group("target").strip()
    if kind == "CHECK":
        return CheckViolationError(message, constraint=target)
    # "games.og_slug" or "game_releases.game_id, game_releases.platform, ..."
    columns = tuple(part.strip().rsplit(".", 1)[-1] for part in target.split(","))
    if kind == "UNIQUE":
        return UniqueViolationError(message, columns=columns)
    return NotNullViolationError(message, columns=columns)


def translate(exc: DBAPIError) -> StorageError:
    """Map a SQLAlchemy DBAPI error onto the storage error hierarchy."""
    code = _sqlstate(exc)
    if code is not None:
        translated = _postgres_error(exc, code)
        if translated is not None:
            return translated

    if isinstance(exc, IntegrityError):
        return _sqlite_constraint_error(exc)
    if isinstance(exc, DataError):
        return InvalidValueError(str(exc.orig))
    if isinstance(exc, OperationalError):
        message = str(exc.orig).lower()
        if any(marker in message for marker in _SQLITE_LOCKED):
            return StorageTimeoutError(str(exc.orig))
        if any(marker in message for marker in _SQLITE_CONNECTION) or exc.connection_invalidated:
            return ConnectionLostError(str(exc.orig))
    if exc.connection_invalidated:
        return ConnectionLostError(str(exc.orig))
    return StorageError(str(exc.orig))


@contextmanager
def translate_errors() -> Iterator[None]:
    try:
        yield
    except DBAPIError as exc:
        raise translate(exc) from exc


def translated[**P, R](func: Callable[P, R]) -> Callable[P, R]:
    """Decorator form of :func:`translate_errors` for repository methods."""

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        with translate_errors():
            return func(*args, **kwargs)

    return wrapper
