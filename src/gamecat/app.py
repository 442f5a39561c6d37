"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from gamecat.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyCatalogUnitOfWork,
    is_started,
    startup,
)
from gamecat.config import (
    get_matching_config,
    get_pipeline_save_config,
    get_storage_config,
)
from gamecat.domain.errors import MergeError
from gamecat.domain.matching import MatchAuditLog, MatchingEngine
from gamecat.domain.persistence import GameMerger, GameUpsertService, PersistenceOrchestrator
from gamecat.domain.ports import CatalogUnitOfWork
from gamecat.domain.slugs import SlugResolver

if TYPE_CHECKING:
    from collections.abc import Sequence

    from gamecat.config import MatchingConfig, PipelineSaveConfig, StorageConfig
    from gamecat.domain.model import GameRecord
    from gamecat.domain.persistence import MergeReport, SaveResult

UnitOfWorkFactory = Callable[[], CatalogUnitOfWork]


log = getLogger(__name__)


def init_db(*, database_uri: str | None = None) -> None:
    """Create the schema on the configured (or given) database."""

    startup(database_uri=database_uri, force=is_started())
    log.info("Database initialised")


def _ensure_started() -> None:
    if not is_started():
        startup()


def build_upsert_service(
    *,
    matching_config: MatchingConfig | None = None,
    audit_log: MatchAuditLog | None = None,
    slug_resolver: SlugResolver | None = None,
) -> GameUpsertService:
    engine = MatchingEngine(matching_config, audit_log=audit_log)
    return GameUpsertService(matching_engine=engine, slug_resolver=slug_resolver)


def persist_records(
    records: Sequence[GameRecord],
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    save_config: PipelineSaveConfig | None = None,
    matching_config: MatchingConfig | None = None,
    storage: StorageConfig | None = None,
    run_id: int | None = None,
    allow_create: bool = True,
) -> SaveResult:
    """Persist processed records through the concurrent orchestrator."""

    if unit_of_work_factory is None:
        _ensure_started()
    effective_uow = unit_of_work_factory or SqlAlchemyCatalogUnitOfWork
    effective_matching = matching_config or get_matching_config()
    effective_storage = storage or get_storage_config()
    audit_dir = effective_matching.log_dir or effective_storage.matching_log_dir()
    audit_log = MatchAuditLog(audit_dir)

    orchestrator = PersistenceOrchestrator(
        effective_uow,
        build_upsert_service(matching_config=effective_matching, audit_log=audit_log),
        config=save_config or get_pipeline_save_config(),
        metrics_dir=effective_storage.perf_log_dir(),
    )
    log.info(
        "Starting save: records=%d, concurrency=%d, allow_create=%s",
        len(records),
        orchestrator.config.concurrency,
        allow_create,
    )
    result = orchestrator.save(records, run_id=run_id, allow_create=allow_create)
    if audit_log.summary.processed:
        audit_log.write_summary(f"run-{result.run_id}")

    log.info(
        f"Finished save: created={result.created}, updated={result.updated}, "
        f"failed={result.failed}"
    )
    return result


def merge_games(
    *,
    keeper_id: int | None = None,
    loser_id: int | None = None,
    steam_id: int | None = None,
    rawg_id: int | None = None,
    game_ids: tuple[int, int] | None = None,
    dry_run: bool = False,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> MergeReport:
    """Merge two games by internal ids, by external id pair, or by auto-picked keeper."""

    if unit_of_work_factory is None:
        _ensure_started()
    effective_uow = unit_of_work_factory or SqlAlchemyCatalogUnitOfWork
    merger = GameMerger(SlugResolver())

    with effective_uow() as uow:
        repositories = uow.repositories
        if keeper_id is not None and loser_id is not None:
            report = merger.merge(
                repositories, keeper_id=keeper_id, loser_id=loser_id, dry_run=dry_run
            )
        elif steam_id is not None and rawg_id is not None:
            report = merger.merge_by_external_ids(
                repositories, steam_id=steam_id, rawg_id=rawg_id, dry_run=dry_run
            )
        elif game_ids is not None:
            report = merger.merge_auto(repositories, *game_ids, dry_run=dry_run)
        else:
            raise MergeError("Provide keeper/loser ids, a steam/rawg id pair, or two game ids")
        if not dry_run:
            uow.commit()
    return report
