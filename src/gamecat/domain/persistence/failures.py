"""Single place where persistence failures are classified for the retry loop."""

from __future__ import annotations

import re
from enum import StrEnum

from gamecat.domain.errors import (
    ConstraintViolationError,
    CreateNotAllowedError,
    MergeError,
    RateLimitedError,
    RecordValidationError,
    SourceNotFoundError,
    TransientStorageError,
    UniqueViolationError,
)
from gamecat.domain.model import FailureReason, SourceSystem


class FailureKind(StrEnum):
    PERMANENT = "permanent"
    TRANSIENT = "transient"
    RATE_LIMITED = "rate_limited"

    @property
    def retryable(self) -> bool:
        return self is not FailureKind.PERMANENT


def classify_failure(exc: BaseException) -> tuple[FailureKind, FailureReason]:
    if isinstance(exc, UniqueViolationError):
        return FailureKind.PERMANENT, FailureReason.DUPLICATE_CONSTRAINT
    if isinstance(exc, ConstraintViolationError | RecordValidationError | CreateNotAllowedError):
        return FailureKind.PERMANENT, FailureReason.VALIDATION_FAILED
    if isinstance(exc, SourceNotFoundError):
        if exc.source is SourceSystem.STEAM:
            return FailureKind.PERMANENT, FailureReason.SOURCE_A_NOT_FOUND
        return FailureKind.PERMANENT, FailureReason.SOURCE_B_NOT_FOUND
    if isinstance(exc, RateLimitedError):
        return FailureKind.RATE_LIMITED, FailureReason.RATE_LIMIT
    if isinstance(exc, MergeError):
        return FailureKind.PERMANENT, FailureReason.UNKNOWN
    if isinstance(exc, TransientStorageError):
        return FailureKind.TRANSIENT, FailureReason.UNKNOWN
    # unknown errors are retried until attempts run out
    return FailureKind.TRANSIENT, FailureReason.UNKNOWN


def extract_unique_value(detail: str | None, column: str = "og_slug") -> str | None:
    """Pull the colliding value out of a PostgreSQL ``Key (column)=(value)`` detail."""
    if not detail:
        return None
    match = re.search(rf"\({re.escape(column)}\)=\((.+?)\)", detail)
    return match.group(1) if match else None
