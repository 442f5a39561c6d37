"""Resolve an incoming record to a game and write it, children included."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from gamecat.domain.errors import CreateNotAllowedError, RecordValidationError
from gamecat.domain.model import Game, MatchedBy, SaveAction, SourceSystem, utcnow
from gamecat.domain.persistence.companies import CompanyRegistry
from gamecat.domain.persistence.details import sync_detail
from gamecat.domain.persistence.releases import ReleaseSync
from gamecat.domain.slugs import SlugResolver

if TYPE_CHECKING:
    from collections.abc import Callable

    from gamecat.domain.matching import MatchingEngine
    from gamecat.domain.model import GameRecord
    from gamecat.domain.ports import CatalogRepositories

log = logging.getLogger(__name__)

# DLC child content and non-DLC detail rows are only kept for games at least this popular
CONTENT_POPULARITY_THRESHOLD: Final[int] = 40

# scalar fields copied from a record onto its game on a regular update; None never overwrites
_UPDATABLE_FIELDS: Final[tuple[str, ...]] = (
    "name",
    "og_name",
    "game_type",
    "release_date",
    "release_date_raw",
    "release_status",
    "coming_soon",
    "popularity_score",
    "followers_cache",
)

_EXTERNAL_ID_FIELDS: Final[tuple[str, ...]] = (
    "steam_id",
    "rawg_id",
    "parent_steam_id",
    "parent_rawg_id",
)

# the only fields a RAWG record may write onto a Steam-sourced game
_PROTECTED_WRITABLE: Final[tuple[str, ...]] = ("rawg_id", "parent_rawg_id", "parent_steam_id")


@dataclass(frozen=True, slots=True)
class UpsertResult:
    operation: SaveAction
    game_id: int
    matched_by: MatchedBy | None = None
    discarded_fields: tuple[str, ...] = ()


def validate_record(record: GameRecord) -> None:
    if not record.name or not record.name.strip():
        raise RecordValidationError(f"Record {record.identity} has no name")
    if not 0 <= record.popularity_score <= 100:
        raise RecordValidationError(
            f"Record {record.identity} has popularity_score={record.popularity_score}; "
            "expected 0..100"
        )
    for name in _EXTERNAL_ID_FIELDS:
        value = getattr(record, name)
        if value is not None and value <= 0:
            raise RecordValidationError(f"Record {record.identity} has {name}={value}")


def _compatible(game: Game, record: GameRecord) -> bool:
    """False when the game already belongs to another entity of either source."""
    if record.steam_id is not None and game.steam_id not in (None, record.steam_id):
        return False
    return record.rawg_id is None or game.rawg_id in (None, record.rawg_id)


class GameUpsertService:
    """Create-or-update of one record inside the caller's transaction.

    Lookup order: same-source id, other-source id, ``slug``, ``og_slug``, candidate
    slugs from the matching context and finally the matching engine. Steam-sourced
    games are protected from RAWG records: only the RAWG id and parent ids are written.
    """

    def __init__(
        self,
        *,
        matching_engine: MatchingEngine | None = None,
        slug_resolver: SlugResolver | None = None,
        release_sync: ReleaseSync | None = None,
        company_registry: CompanyRegistry | None = None,
    ) -> None:
        self.matching_engine = matching_engine
        self.slug_resolver = slug_resolver or SlugResolver()
        self.release_sync = release_sync or ReleaseSync()
        self.company_registry = company_registry or CompanyRegistry()

    def upsert(
        self,
        record: GameRecord,
        repositories: CatalogRepositories,
        *,
        allow_create: bool = True,
    ) -> UpsertResult:
        validate_record(record)
        existing, matched_by = self.find_existing(record, repositories)
        if existing is not None:
            return self._update(existing, record, repositories, matched_by)
        if not allow_create:
            raise CreateNotAllowedError(
                f"No existing game for {record.identity} ({record.name!r}) and creation "
                "is disabled"
            )
        return self._create(record, repositories)

    def upsert_with_existing(
        self,
        game: Game,
        record: GameRecord,
        repositories: CatalogRepositories,
    ) -> UpsertResult:
        """Apply ``record`` to a game located out of band (unique-collision recovery)."""
        validate_record(record)
        return self._update(game, record, repositories, MatchedBy.RECOVERY)

    # lookup --------------------------------------------------------------------------

    def find_existing(
        self,
        record: GameRecord,
        repositories: CatalogRepositories,
    ) -> tuple[Game | None, MatchedBy | None]:
        games = repositories.games
        for lookup, matched_by in self._id_lookups(record, repositories):
            game = lookup()
            if game is not None:
                return game, matched_by

        slug_lookups: list[tuple[str | None, Callable[[str], Game | None], MatchedBy]] = [
            (record.slug, games.find_by_slug, MatchedBy.SLUG),
            (record.og_slug, games.find_by_og_slug, MatchedBy.OG_SLUG),
        ]
        for value, lookup, matched_by in slug_lookups:
            if not value:
                continue
            game = lookup(value)
            if game is not None and _compatible(game, record):
                return game, matched_by

        context = record.matching_context
        if context is not None:
            for candidate in context.candidate_slugs:
                if not candidate:
                    continue
                game = games.find_by_slug(candidate) or games.find_by_og_slug(candidate)
                if game is not None and _compatible(game, record):
                    return game, MatchedBy.CANDIDATE_SLUG

        if self.matching_engine is not None and self.matching_engine.applies_to(record):
            result = self.matching_engine.evaluate(record, repositories)
            if result.matched and result.game is not None:
                return result.game, MatchedBy.MATCHING
        return None, None

    @staticmethod
    def _id_lookups(
        record: GameRecord,
        repositories: CatalogRepositories,
    ) -> list[tuple[Callable[[], Game | None], MatchedBy]]:
        games = repositories.games
        lookups: list[tuple[Callable[[], Game | None], MatchedBy]] = []
        steam_id = record.steam_id
        rawg_id = record.rawg_id
        if steam_id is not None:
            lookups.append((lambda: games.find_by_steam_id(steam_id), MatchedBy.STEAM_ID))
        if rawg_id is not None:
            lookups.append((lambda: games.find_by_rawg_id(rawg_id), MatchedBy.RAWG_ID))
        if record.data_source is SourceSystem.RAWG:
            lookups.reverse()
        return lookups

    # writes --------------------------------------------------------------------------

    def _create(self, record: GameRecord, repositories: CatalogRepositories) -> UpsertResult:
        games = repositories.games
        og_name = record.og_name or record.name
        slugs = self.slug_resolver.resolve(
            games,
            owner_id=None,
            name=record.name,
            og_name=og_name,
            preferred_slug=record.slug,
            preferred_og_slug=record.og_slug,
            fallback_ids=(record.steam_id, record.rawg_id),
        )
        game = Game(
            name=record.name.strip(),
            slug=slugs.slug,
            og_name=og_name.strip(),
            og_slug=slugs.og_slug,
            steam_id=record.steam_id,
            rawg_id=record.rawg_id,
            parent_steam_id=record.parent_steam_id,
            parent_rawg_id=record.parent_rawg_id,
            game_type=record.game_type,
            release_date=record.release_date,
            release_date_raw=record.release_date_raw,
            release_status=record.release_status,
            coming_soon=record.coming_soon,
            popularity_score=record.popularity_score,
            followers_cache=record.followers_cache,
        )
        games.add(game)
        games.flush()
        if game.id is None:
            raise RuntimeError(f"Game for {record.identity} was not assigned an id")

        self._sync_children(game, record, repositories)
        log.debug("Created game %s (%s) for %s", game.id, game.slug, record.identity)
        return UpsertResult(operation=SaveAction.CREATED, game_id=game.id, matched_by=None)

    def _update(
        self,
        game: Game,
        record: GameRecord,
        repositories: CatalogRepositories,
        matched_by: MatchedBy | None,
    ) -> UpsertResult:
        if game.id is None:
            raise ValueError("Only persisted games can be updated")

        if self.is_protected(game, record):
            discarded = self._apply_protected(game, record)
            if discarded:
                log.warning(
                    "Game %s is Steam-sourced; discarded RAWG fields for %s: %s",
                    game.id,
                    record.identity,
                    ", ".join(discarded),
                )
            game.updated_at = utcnow()
            repositories.games.flush()
            return UpsertResult(
                operation=SaveAction.UPDATED,
                game_id=game.id,
                matched_by=matched_by,
                discarded_fields=discarded,
            )

        for name in _UPDATABLE_FIELDS:
            value = getattr(record, name)
            if value is not None:
                setattr(game, name, value)
        for name in _EXTERNAL_ID_FIELDS:
            value = getattr(record, name)
            if value is not None and getattr(game, name) is None:
                setattr(game, name, value)
        game.updated_at = utcnow()
        repositories.games.flush()

        self._sync_children(game, record, repositories)
        return UpsertResult(operation=SaveAction.UPDATED, game_id=game.id, matched_by=matched_by)

    @staticmethod
    def is_protected(game: Game, record: GameRecord) -> bool:
        return game.is_steam_sourced and record.data_source is SourceSystem.RAWG

    @staticmethod
    def _apply_protected(game: Game, record: GameRecord) -> tuple[str, ...]:
        for name in _PROTECTED_WRITABLE:
            value = getattr(record, name)
            if value is not None and getattr(game, name) is None:
                setattr(game, name, value)

        discarded: list[str] = []
        for name in _UPDATABLE_FIELDS:
            value = getattr(record, name)
            if value is not None and value != getattr(game, name):
                discarded.append(name)
        if record.detail is not None:
            discarded.append("detail")
        if record.releases:
            discarded.append("releases")
        if record.companies:
            discarded.append("companies")
        return tuple(discarded)

    # children ------------------------------------------------------------------------

    def _sync_children(
        self,
        game: Game,
        record: GameRecord,
        repositories: CatalogRepositories,
    ) -> None:
        if game.is_dlc and not self._dlc_content_visible(game, repositories):
            log.debug("Suppressed child content of DLC %s (parent below threshold)", game.id)
            return

        if record.detail is not None and (
            game.is_dlc or game.popularity_score >= CONTENT_POPULARITY_THRESHOLD
        ):
            sync_detail(game, record.detail, repositories.details)
        if record.releases:
            self.release_sync.sync(
                game,
                record.releases,
                repositories.releases,
                data_source=record.data_source,
            )
        if record.companies:
            self.company_registry.link(game, record.companies, repositories.companies)

    @staticmethod
    def _dlc_content_visible(game: Game, repositories: CatalogRepositories) -> bool:
        games = repositories.games
        parent: Game | None = None
        if game.parent_steam_id is not None:
            parent = games.find_by_steam_id(game.parent_steam_id)
        if parent is None and game.parent_rawg_id is not None:
            parent = games.find_by_rawg_id(game.parent_rawg_id)
        return parent is not None and parent.popularity_score >= CONTENT_POPULARITY_THRESHOLD
