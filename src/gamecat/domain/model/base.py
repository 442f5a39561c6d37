"""Base building blocks shared by persisted catalog entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(eq=False, kw_only=True)
class Entity:
    """Surrogate integer identity assigned by the store on first flush."""

    id: int | None = None

    @property
    def is_persisted(self) -> bool:
        return self.id is not None


@dataclass(eq=False, kw_only=True)
class TimestampedEntity(Entity):
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def touch(self) -> None:
        self.updated_at = utcnow()
