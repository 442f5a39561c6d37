"""Release rows: keyed sync of a record's store releases onto a game."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gamecat.domain.model import GameRelease, Platform, SourceSystem, utcnow

if TYPE_CHECKING:
    from collections.abc import Sequence

    from gamecat.domain.model import Game, ReleaseKey, ReleaseRecord
    from gamecat.domain.ports import GameReleaseRepository

log = logging.getLogger(__name__)

_SYNCED_FIELDS: tuple[str, ...] = (
    "store_url",
    "release_date",
    "release_date_raw",
    "release_status",
    "coming_soon",
    "current_price_cents",
    "is_free",
    "followers",
    "reviews_total",
    "review_score_desc",
)


@dataclass(frozen=True, slots=True)
class ReleaseSyncStats:
    inserted: int = 0
    updated: int = 0
    skipped: int = 0


def release_key(record: ReleaseRecord) -> ReleaseKey:
    return (record.platform, record.store, record.store_app_id or "")


class ReleaseSync:
    """Upsert releases by ``(platform, store, store_app_id)``.

    RAWG-sourced PC releases are dropped: Steam is authoritative for PC.
    """

    def sync(
        self,
        game: Game,
        records: Sequence[ReleaseRecord],
        releases: GameReleaseRepository,
        *,
        data_source: SourceSystem,
    ) -> ReleaseSyncStats:
        if game.id is None:
            raise ValueError("Game must be flushed before its releases are synced")
        inserted = updated = skipped = 0
        seen: set[ReleaseKey] = set()
        for record in records:
            source = record.data_source or data_source
            key = release_key(record)
            if source is SourceSystem.RAWG and record.platform is Platform.PC:
                skipped += 1
                continue
            if key in seen:
                skipped += 1
                continue
            seen.add(key)

            existing = releases.find(game.id, key)
            if existing is None:
                releases.add(self._build(game.id, record, source))
                inserted += 1
                continue
            for name in _SYNCED_FIELDS:
                setattr(existing, name, getattr(record, name))
            existing.data_source = source
            existing.updated_at = utcnow()
            updated += 1

        if skipped:
            log.debug("Skipped %d release(s) for game %s", skipped, game.id)
        return ReleaseSyncStats(inserted=inserted, updated=updated, skipped=skipped)

    @staticmethod
    def _build(game_id: int, record: ReleaseRecord, source: SourceSystem) -> GameRelease:
        return GameRelease(
            game_id=game_id,
            platform=record.platform,
            store=record.store,
            store_app_id=record.store_app_id or "",
            store_url=record.store_url,
            release_date=record.release_date,
            release_date_raw=record.release_date_raw,
            release_status=record.release_status,
            coming_soon=record.coming_soon,
            current_price_cents=record.current_price_cents,
            is_free=record.is_free,
            followers=record.followers,
            reviews_total=record.reviews_total,
            review_score_desc=record.review_score_desc,
            data_source=source,
        )
