"""Fold a duplicate game into the one that survives."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from gamecat.domain.errors import GameNotFoundError, MergeError, ReassignmentMismatchError
from gamecat.domain.model import RELEASE_FILLABLE_FIELDS, GameCompanyRole, utcnow
from gamecat.domain.slugs import SlugResolver

if TYPE_CHECKING:
    from gamecat.domain.model import Game, GameRelease
    from gamecat.domain.ports import CatalogRepositories, GameRepository, SlugField

log = logging.getLogger(__name__)

_NUMERIC_SUFFIX = re.compile(r"-\d+$")


@dataclass(frozen=True, slots=True)
class MergeReport:
    keeper_id: int
    loser_id: int
    dry_run: bool = False
    already_merged: bool = False
    releases_moved: int = 0
    releases_deleted: int = 0
    releases_filled: int = 0
    roles_carried: int = 0
    detail_deleted: bool = False
    rawg_id_transferred: int | None = None
    steam_id_transferred: int | None = None
    slug_before: str | None = None
    slug_after: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "keeper_id": self.keeper_id,
            "loser_id": self.loser_id,
            "dry_run": self.dry_run,
            "already_merged": self.already_merged,
            "releases_moved": self.releases_moved,
            "releases_deleted": self.releases_deleted,
            "releases_filled": self.releases_filled,
            "roles_carried": self.roles_carried,
            "detail_deleted": self.detail_deleted,
            "rawg_id_transferred": self.rawg_id_transferred,
            "steam_id_transferred": self.steam_id_transferred,
            "slug_before": self.slug_before,
            "slug_after": self.slug_after,
        }


def choose_keeper(first: Game, second: Game) -> tuple[Game, Game]:
    """Return ``(keeper, loser)``: Steam id, then RAWG id, then followers, then newer row."""

    def rank(game: Game) -> tuple[bool, bool, int, int]:
        return (
            game.steam_id is not None,
            game.rawg_id is not None,
            game.followers_cache or 0,
            game.id or 0,
        )

    if rank(first) >= rank(second):
        return first, second
    return second, first


def _fill_empty(target: GameRelease, source: GameRelease) -> bool:
    filled = False
    for name in RELEASE_FILLABLE_FIELDS:
        if getattr(target, name) is None and getattr(source, name) is not None:
            setattr(target, name, getattr(source, name))
            filled = True
    if filled:
        target.updated_at = utcnow()
    return filled


class GameMerger:
    """Merge ``loser`` into ``keeper`` inside the caller's transaction.

    Both rows are locked in id order first. Loser releases whose natural key the keeper
    already has are deleted (after filling the keeper row's empty columns), the rest are
    moved. The loser's detail row is dropped, its company roles carried over, its
    external ids handed to the keeper null-first, and the loser is deleted. Any failure
    raises and leaves the rollback to the unit of work.
    """

    def __init__(self, slug_resolver: SlugResolver | None = None) -> None:
        self.slug_resolver = slug_resolver or SlugResolver()

    def merge(
        self,
        repositories: CatalogRepositories,
        *,
        keeper_id: int,
        loser_id: int,
        dry_run: bool = False,
        normalize_slug: bool = True,
    ) -> MergeReport:
        if keeper_id == loser_id:
            raise MergeError(f"Cannot merge game {keeper_id} into itself")
        games = repositories.games
        locked = {game.id: game for game in games.lock(sorted((keeper_id, loser_id)))}
        keeper = locked.get(keeper_id)
        loser = locked.get(loser_id)
        if keeper is None:
            raise GameNotFoundError(f"Keeper game {keeper_id} not found")
        if loser is None:
            raise GameNotFoundError(f"Loser game {loser_id} not found")

        keeper_releases = {
            release.natural_key: release
            for release in repositories.releases.list_for_game(keeper_id)
        }
        duplicates: list[tuple[GameRelease, GameRelease]] = []
        unique: list[GameRelease] = []
        for release in repositories.releases.list_for_game(loser_id):
            survivor = keeper_releases.get(release.natural_key)
            if survivor is None:
                unique.append(release)
            else:
                duplicates.append((survivor, release))

        if dry_run:
            report = MergeReport(
                keeper_id=keeper_id,
                loser_id=loser_id,
                dry_run=True,
                releases_moved=len(unique),
                releases_deleted=len(duplicates),
                rawg_id_transferred=loser.rawg_id if keeper.rawg_id is None else None,
                steam_id_transferred=loser.steam_id if keeper.steam_id is None else None,
                slug_before=keeper.slug,
                slug_after=keeper.slug,
            )
            log.info("Dry run merge %s <- %s: %s", keeper_id, loser_id, report.as_dict())
            return report

        filled = sum(_fill_empty(survivor, duplicate) for survivor, duplicate in duplicates)
        deleted = repositories.releases.delete_ids(
            [release.id for _, release in duplicates if release.id is not None]
        )
        expected = len(unique)
        moved = repositories.releases.reassign(
            [release.id for release in unique if release.id is not None],
            from_game_id=loser_id,
            to_game_id=keeper_id,
        )
        if moved != expected:
            for release in repositories.releases.list_for_game(loser_id):
                log.warning(
                    "Release %s %s was not moved from game %s to %s",
                    release.id,
                    release.natural_key,
                    loser_id,
                    keeper_id,
                )
            raise ReassignmentMismatchError(
                f"Moved {moved} of {expected} releases from game {loser_id} to {keeper_id}",
                expected=expected,
                actual=moved,
            )

        detail_deleted = repositories.details.delete_for_game(loser_id) > 0
        roles_carried = self._carry_roles(repositories, keeper_id=keeper_id, loser_id=loser_id)
        rawg_id, steam_id = self._transfer_external_ids(games, keeper, loser)
        for name in ("parent_steam_id", "parent_rawg_id"):
            if getattr(keeper, name) is None and getattr(loser, name) is not None:
                setattr(keeper, name, getattr(loser, name))
        keeper.updated_at = utcnow()

        games.delete(loser)
        games.flush()

        slug_before = keeper.slug
        if normalize_slug:
            self._normalize_slugs(games, keeper)
        games.flush()

        report = MergeReport(
            keeper_id=keeper_id,
            loser_id=loser_id,
            releases_moved=moved,
            releases_deleted=deleted,
            releases_filled=filled,
            roles_carried=roles_carried,
            detail_deleted=detail_deleted,
            rawg_id_transferred=rawg_id,
            steam_id_transferred=steam_id,
            slug_before=slug_before,
            slug_after=keeper.slug,
        )
        log.info(
            "Merged game %s into %s: moved=%d deleted=%d filled=%d roles=%d slug=%s",
            loser_id,
            keeper_id,
            moved,
            deleted,
            filled,
            roles_carried,
            keeper.slug,
        )
        return report

    def merge_by_external_ids(
        self,
        repositories: CatalogRepositories,
        *,
        steam_id: int,
        rawg_id: int,
        dry_run: bool = False,
    ) -> MergeReport:
        """Merge the RAWG-sourced duplicate into the Steam game; a no-op once merged."""
        keeper = repositories.games.find_by_steam_id(steam_id)
        loser = repositories.games.find_by_rawg_id(rawg_id)
        if keeper is None or keeper.id is None:
            raise GameNotFoundError(f"No game with steam_id={steam_id}")
        if loser is None or loser.id is None:
            raise GameNotFoundError(f"No game with rawg_id={rawg_id}")
        if keeper.id == loser.id:
            log.info(
                "steam_id=%s and rawg_id=%s already share game %s", steam_id, rawg_id, keeper.id
            )
            return MergeReport(
                keeper_id=keeper.id,
                loser_id=loser.id,
                dry_run=dry_run,
                already_merged=True,
                slug_before=keeper.slug,
                slug_after=keeper.slug,
            )
        return self.merge(repositories, keeper_id=keeper.id, loser_id=loser.id, dry_run=dry_run)

    def merge_auto(
        self,
        repositories: CatalogRepositories,
        first_id: int,
        second_id: int,
        *,
        dry_run: bool = False,
    ) -> MergeReport:
        """Pick the keeper of two games with :func:`choose_keeper`, then merge."""
        first = repositories.games.get(first_id)
        second = repositories.games.get(second_id)
        if first is None:
            raise GameNotFoundError(f"Game {first_id} not found")
        if second is None:
            raise GameNotFoundError(f"Game {second_id} not found")
        keeper, loser = choose_keeper(first, second)
        if keeper.id is None or loser.id is None:
            raise MergeError("Both games must be persisted to be merged")
        return self.merge(repositories, keeper_id=keeper.id, loser_id=loser.id, dry_run=dry_run)

    # steps ---------------------------------------------------------------------------

    @staticmethod
    def _carry_roles(repositories: CatalogRepositories, *, keeper_id: int, loser_id: int) -> int:
        companies = repositories.companies
        carried = 0
        for company, role in companies.roles_for_game(loser_id):
            if company.id is None or companies.has_role(keeper_id, company.id, role):
                continue
            companies.add_role(
                GameCompanyRole(game_id=keeper_id, company_id=company.id, role=role)
            )
            carried += 1
        companies.delete_roles_for_game(loser_id)
        return carried

    @staticmethod
    def _transfer_external_ids(
        games: GameRepository,
        keeper: Game,
        loser: Game,
    ) -> tuple[int | None, int | None]:
        """Hand over ids the keeper lacks: clear on the loser and flush, then set."""
        rawg_id = loser.rawg_id if keeper.rawg_id is None else None
        steam_id = loser.steam_id if keeper.steam_id is None else None
        if loser.rawg_id is not None and rawg_id is None:
            log.warning(
                "Dropping rawg_id=%s of game %s; keeper %s holds rawg_id=%s",
                loser.rawg_id,
                loser.id,
                keeper.id,
                keeper.rawg_id,
            )
        if rawg_id is None and steam_id is None:
            return None, None

        if rawg_id is not None:
            loser.rawg_id = None
        if steam_id is not None:
            loser.steam_id = None
        games.flush()
        if rawg_id is not None:
            keeper.rawg_id = rawg_id
        if steam_id is not None:
            keeper.steam_id = steam_id
        games.flush()
        return rawg_id, steam_id

    def _normalize_slugs(self, games: GameRepository, keeper: Game) -> None:
        fields: tuple[tuple[SlugField, str], ...] = (
            ("slug", keeper.name),
            ("og_slug", keeper.og_name),
        )
        for field, name in fields:
            current: str = getattr(keeper, field)
            if not _NUMERIC_SUFFIX.search(current):
                continue
            base = _NUMERIC_SUFFIX.sub("", current)
            # "fifa-23" is the name itself, not a collision suffix
            if base != self.slug_resolver.build_candidate(name):
                continue
            resolved = self.slug_resolver.ensure_unique(games, field, base, owner_id=keeper.id)
            if resolved != current:
                log.info("Normalized %s of game %s: %s -> %s", field, keeper.id, current, resolved)
                setattr(keeper, field, resolved)
