"""Translate validated record payloads into domain ``GameRecord`` objects."""

from __future__ import annotations

import re
from datetime import date, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from gamecat.domain.model import (
    CompanyRecord,
    DetailRecord,
    GameRecord,
    MatchingContext,
    ReleaseRecord,
    SourceSystem,
)

from .schema import GameRecordPayload

if TYPE_CHECKING:
    from .schema import GameRecordInput, MatchingContextPayload, ReleasePayload

log = getLogger(__name__)

_ISO_DAY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_YEAR_ONLY = re.compile(r"^\d{4}$")
_TEXT_FORMATS: tuple[str, ...] = (
    "%d %b, %Y",
    "%d %B, %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d %b %Y",
    "%d %B %Y",
)


def parse_release_date(raw: str | None) -> date | None:
    """Parse collector release-date text: ISO day, ``28 Aug, 2025`` style, or a bare year.

    Anything else (quarters, "Coming soon", "TBA") yields ``None``.
    """
    if not raw:
        return None
    text = raw.strip()
    if not text:
        return None
    if _ISO_DAY.match(text):
        try:
            return date.fromisoformat(text)
        except ValueError:
            return None
    if _YEAR_ONLY.match(text):
        return date(int(text), 1, 1)
    compact = re.sub(r"\s*,\s*", ", ", text)
    for pattern in _TEXT_FORMATS:
        try:
            return datetime.strptime(compact, pattern).date()  # noqa: DTZ007
        except ValueError:
            continue
    return None


def _ensure_payload(record: GameRecordInput) -> GameRecordPayload:
    if isinstance(record, GameRecordPayload):
        return record
    return GameRecordPayload.model_validate(record)


def _resolve_source(payload: GameRecordPayload) -> SourceSystem:
    if payload.data_source is not None:
        return payload.data_source
    context = payload.matching_context
    if context is not None and context.source is not None:
        return context.source
    if payload.steam_id is None and payload.rawg_id is not None:
        return SourceSystem.RAWG
    return SourceSystem.STEAM


def _release(payload: ReleasePayload) -> ReleaseRecord:
    return ReleaseRecord(
        platform=payload.platform,
        store=payload.store,
        store_app_id=payload.store_app_id,
        store_url=payload.store_url,
        release_date=payload.release_date or parse_release_date(payload.release_date_raw),
        release_date_raw=payload.release_date_raw,
        release_status=payload.release_status,
        coming_soon=payload.coming_soon,
        current_price_cents=payload.current_price_cents,
        is_free=payload.is_free,
        followers=payload.followers,
        reviews_total=payload.reviews_total,
        review_score_desc=payload.review_score_desc,
        data_source=payload.data_source,
    )


def _context(payload: MatchingContextPayload) -> MatchingContext:
    normalized = payload.normalized_name
    return MatchingContext(
        normalized_name=(normalized.lowercase or None) if normalized else None,
        tokens=tuple(normalized.tokens) if normalized else (),
        candidate_slugs=tuple(payload.candidate_slugs),
        candidate_steam_ids=tuple(payload.candidate_steam_ids),
        genre_tokens=tuple(payload.genre_tokens),
        company_slugs=tuple(payload.company_slugs),
        release_date=payload.release_date_iso,
    )


def parse_game_record(record: GameRecordInput) -> GameRecord:
    payload = _ensure_payload(record)
    detail = None
    if payload.details is not None:
        detail = DetailRecord(**payload.details.model_dump())
    release_date = payload.release_date or parse_release_date(payload.release_date_raw)
    if release_date is None and payload.release_date_raw:
        log.debug("Unparsed release date %r for %s", payload.release_date_raw, payload.name)

    return GameRecord(
        name=payload.name,
        og_name=payload.og_name,
        slug=payload.slug,
        og_slug=payload.og_slug,
        steam_id=payload.steam_id,
        rawg_id=payload.rawg_id,
        parent_steam_id=payload.parent_steam_id,
        parent_rawg_id=payload.parent_rawg_id,
        game_type=payload.game_type,
        release_date=release_date,
        release_date_raw=payload.release_date_raw,
        release_status=payload.release_status,
        coming_soon=payload.coming_soon,
        popularity_score=payload.popularity_score,
        followers_cache=payload.followers_cache,
        data_source=_resolve_source(payload),
        detail=detail,
        releases=[_release(release) for release in payload.releases],
        companies=[
            CompanyRecord(name=company.name, role=company.role, slug=company.slug)
            for company in payload.companies
        ],
        matching_context=(
            _context(payload.matching_context) if payload.matching_context is not None else None
        ),
    )
