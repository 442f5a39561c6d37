"""Typed error hierarchy shared by the domain services and the storage adapter.

Storage adapters translate driver exceptions into the ``StorageError`` family once, at
their boundary; services raise the domain family directly. Classification into
permanent and transient failures happens in ``gamecat.domain.persistence.failures``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gamecat.domain.model import SourceSystem


class CatalogError(Exception):
    """Base class for all gamecat errors."""


# Storage -----------------------------------------------------------------------------


class StorageError(CatalogError):
    """Raised by storage adapters for failures reported by the database."""


class ConstraintViolationError(StorageError):
    """A write was rejected by a declarative constraint."""

    def __init__(
        self,
        message: str,
        *,
        constraint: str | None = None,
        columns: tuple[str, ...] = (),
        detail: str | None = None,
    ) -> None:
        super().__init__(message)
        self.constraint = constraint
        self.columns = columns
        self.detail = detail


class UniqueViolationError(ConstraintViolationError):
    def __init__(
        self,
        message: str,
        *,
        constraint: str | None = None,
        columns: tuple[str, ...] = (),
        detail: str | None = None,
        value: str | None = None,
    ) -> None:
        super().__init__(message, constraint=constraint, columns=columns, detail=detail)
        self.value = value

    def involves(self, column: str) -> bool:
        if column in self.columns:
            return True
        return self.constraint is not None and column in self.constraint


class NotNullViolationError(ConstraintViolationError):
    pass


class CheckViolationError(ConstraintViolationError):
    pass


class InvalidValueError(ConstraintViolationError):
    """The database could not coerce a bound value (invalid text representation)."""


class TransientStorageError(StorageError):
    """A failure that is expected to succeed when retried."""


class SerializationFailureError(TransientStorageError):
    pass


class DeadlockError(TransientStorageError):
    pass


class StorageTimeoutError(TransientStorageError):
    """Statement timeout, cancelled query or a lock wait that gave up."""


class ConnectionLostError(TransientStorageError):
    pass


# Domain ------------------------------------------------------------------------------


class RecordValidationError(CatalogError):
    """An incoming record is missing data required to persist it."""


class CreateNotAllowedError(CatalogError):
    """No existing game matched and the caller disallowed creation."""


class RateLimitedError(CatalogError):
    """A downstream source client signalled that it is being rate limited."""


class SourceNotFoundError(CatalogError):
    """The upstream source no longer knows the referenced entity."""

    def __init__(self, message: str, *, source: SourceSystem) -> None:
        super().__init__(message)
        self.source = source


class MergeError(CatalogError):
    pass


class GameNotFoundError(MergeError):
    pass


class ReassignmentMismatchError(MergeError):
    def __init__(self, message: str, *, expected: int, actual: int) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual
