"""One-to-one detail blob sync."""

from __future__ import annotations

from typing import TYPE_CHECKING

from gamecat.domain.model import MAX_SCREENSHOTS, GameDetail, utcnow

if TYPE_CHECKING:
    from gamecat.domain.model import DetailRecord, Game
    from gamecat.domain.ports import GameDetailRepository

_DETAIL_FIELDS: tuple[str, ...] = (
    "description",
    "genres",
    "tags",
    "support_languages",
    "metacritic_score",
    "opencritic_score",
    "sexual",
    "search_text",
)


def sync_detail(game: Game, record: DetailRecord, details: GameDetailRepository) -> GameDetail:
    if game.id is None:
        raise ValueError("Game must be flushed before its detail is synced")
    detail = details.get_for_game(game.id)
    if detail is None:
        detail = GameDetail(game_id=game.id, screenshots=list(record.screenshots))
        for name in _DETAIL_FIELDS:
            setattr(detail, name, _copy(getattr(record, name)))
        details.add(detail)
        return detail

    detail.screenshots = list(record.screenshots[:MAX_SCREENSHOTS])
    for name in _DETAIL_FIELDS:
        setattr(detail, name, _copy(getattr(record, name)))
    detail.updated_at = utcnow()
    return detail


def _copy[T](value: T) -> T:
    if isinstance(value, list):
        return list(value)  # type: ignore[return-value]
    return value
