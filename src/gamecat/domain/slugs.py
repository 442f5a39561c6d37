"""Slug policy: candidate selection and uniqueness under contention."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from gamecat.domain.normalization import normalize_slug

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from gamecat.domain.ports import GameRepository, SlugField

log = logging.getLogger(__name__)

MAX_SLUG_LENGTH: Final[int] = 120
DEFAULT_MAX_ATTEMPTS: Final[int] = 200
FALLBACK_SLUG: Final[str] = "game"


@dataclass(frozen=True, slots=True)
class ResolvedSlugs:
    slug: str
    og_slug: str


def _truncate(value: str, length: int) -> str:
    return value[:length].rstrip("-") if length > 0 else ""


def _with_suffix(base: str, suffix: str) -> str:
    return f"{_truncate(base, MAX_SLUG_LENGTH - len(suffix) - 1)}-{suffix}"


class SlugResolver:
    """Resolve unique ``slug``/``og_slug`` pairs for games.

    Uniqueness is checked case-insensitively through the game repository; the owner's
    own row is excluded so an update never collides with itself. Collisions append
    ``-2``, ``-3`` ... and, after ``max_attempts`` probes, a millisecond timestamp so
    resolution always terminates.
    """

    def __init__(
        self,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_attempts = max_attempts
        self._clock = clock

    def resolve(
        self,
        games: GameRepository,
        *,
        owner_id: int | None,
        name: str | None,
        og_name: str | None,
        preferred_slug: str | None = None,
        preferred_og_slug: str | None = None,
        fallback_ids: Sequence[int | None] = (),
    ) -> ResolvedSlugs:
        slug_base = self.build_candidate(preferred_slug or name, fallback_ids)
        og_base = self.build_candidate(preferred_og_slug or og_name or name, fallback_ids)
        return ResolvedSlugs(
            slug=self.ensure_unique(games, "slug", slug_base, owner_id=owner_id),
            og_slug=self.ensure_unique(games, "og_slug", og_base, owner_id=owner_id),
        )

    @staticmethod
    def build_candidate(value: str | None, fallback_ids: Sequence[int | None] = ()) -> str:
        candidate = normalize_slug(value, max_length=MAX_SLUG_LENGTH)
        if candidate:
            return candidate
        for external_id in fallback_ids:
            if external_id is not None:
                return f"game-{external_id}"
        return FALLBACK_SLUG

    def ensure_unique(
        self,
        games: GameRepository,
        field: SlugField,
        base: str,
        *,
        owner_id: int | None = None,
    ) -> str:
        base = _truncate(base.lower(), MAX_SLUG_LENGTH) or FALLBACK_SLUG
        if not games.slug_exists(field, base, exclude_id=owner_id):
            return base
        for counter in range(2, self.max_attempts + 2):
            candidate = _with_suffix(base, str(counter))
            if not games.slug_exists(field, candidate, exclude_id=owner_id):
                return candidate
        fallback = _with_suffix(base, str(int(self._clock() * 1000)))
        log.warning(
            "Slug suffixes exhausted for %s=%s after %d attempts; using %s",
            field,
            base,
            self.max_attempts,
            fallback,
        )
        return fallback
