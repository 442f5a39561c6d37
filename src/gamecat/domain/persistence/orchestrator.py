"""Concurrent batch persistence of processed game records."""

from __future__ import annotations

import json
import logging
import random
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from queue import Queue
from typing import TYPE_CHECKING

from gamecat.config.pipeline import PipelineSaveConfig
from gamecat.domain.errors import UniqueViolationError
from gamecat.domain.model import FailureReason, PipelineItem, PipelineRun, utcnow
from gamecat.domain.normalization import normalize_slug
from gamecat.domain.persistence.failures import (
    FailureKind,
    classify_failure,
    extract_unique_value,
)
from gamecat.domain.persistence.metrics import MetricsCollector, SaveMetrics

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

    from gamecat.domain.model import GameRecord
    from gamecat.domain.persistence.upsert import GameUpsertService, UpsertResult
    from gamecat.domain.ports import CatalogUnitOfWork

log = logging.getLogger(__name__)

PIPELINE_TYPE = "game_save"
RECOVERABLE_COLUMN = "og_slug"


@dataclass(frozen=True, slots=True)
class SaveFailure:
    record: GameRecord
    reason: FailureReason
    message: str


@dataclass(slots=True)
class SaveResult:
    run_id: int
    created: int
    updated: int
    failed: int
    failures: list[SaveFailure] = field(default_factory=list)
    metrics: SaveMetrics | None = None
    metrics_path: Path | None = None


@dataclass(slots=True)
class _WorkItem:
    index: int
    record: GameRecord
    attempt: int = 1


class PersistenceOrchestrator:
    """Persist a batch through a fixed pool of workers, one transaction per record.

    Failures are classified once here: permanent ones and exhausted retries end up in
    ``SaveResult.failures``; transient ones are re-queued after an exponential backoff.
    A unique collision on ``og_slug`` is first retried as an update of the game that
    owns the colliding value.
    """

    def __init__(
        self,
        uow_factory: Callable[[], CatalogUnitOfWork],
        upsert_service: GameUpsertService,
        *,
        config: PipelineSaveConfig | None = None,
        metrics_dir: Path | None = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.uow_factory = uow_factory
        self.upsert_service = upsert_service
        self.config = config or PipelineSaveConfig()
        self.metrics_dir = metrics_dir
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._clock = clock

    def save(
        self,
        records: Sequence[GameRecord],
        *,
        run_id: int | None = None,
        allow_create: bool = True,
    ) -> SaveResult:
        run_id = self._open_run(run_id, total=len(records))
        collector = MetricsCollector()
        failures: list[SaveFailure] = []
        total = len(records)
        log_every = max(10, total // 10)
        concurrency = max(1, min(self.config.concurrency, total or 1))

        work: Queue[_WorkItem | None] = Queue()
        for index, record in enumerate(records):
            work.put(_WorkItem(index=index, record=record))

        def report(processed: int) -> None:
            if processed == total or processed % log_every == 0:
                log.info(
                    "Saved %d/%d (created=%d updated=%d failed=%d)",
                    processed,
                    total,
                    collector.created,
                    collector.updated,
                    collector.failed,
                )

        def worker() -> None:
            while True:
                item = work.get()
                if item is None:
                    work.task_done()
                    break
                try:
                    self._process(item, run_id, allow_create, collector, failures, work, report)
                finally:
                    work.task_done()

        with ThreadPoolExecutor(max_workers=concurrency, thread_name_prefix="save") as executor:
            futures = [executor.submit(worker) for _ in range(concurrency)]
            work.join()
            for _ in futures:
                work.put(None)
            for future in futures:
                future.result()

        metrics = collector.build(
            total_items=total,
            concurrency=concurrency,
            max_attempts=self.config.max_attempts,
        )
        order = {id(record): index for index, record in enumerate(records)}
        failures.sort(key=lambda failure: order[id(failure.record)])
        metrics_path = self._persist_metrics(run_id, metrics)
        log.info(
            "Run %s finished: created=%d updated=%d failed=%d success_rate=%.4f",
            run_id,
            metrics.created,
            metrics.updated,
            metrics.failed,
            metrics.success_rate,
        )
        return SaveResult(
            run_id=run_id,
            created=metrics.created,
            updated=metrics.updated,
            failed=metrics.failed,
            failures=failures,
            metrics=metrics,
            metrics_path=metrics_path,
        )

    # per item ------------------------------------------------------------------------

    def _process(
        self,
        item: _WorkItem,
        run_id: int,
        allow_create: bool,
        collector: MetricsCollector,
        failures: list[SaveFailure],
        work: Queue[_WorkItem | None],
        report: Callable[[int], None],
    ) -> None:
        started = self._clock()
        try:
            result = self._attempt(item.record, run_id, allow_create)
        except Exception as exc:  # noqa: BLE001
            error: Exception = exc
            if isinstance(exc, UniqueViolationError) and exc.involves(RECOVERABLE_COLUMN):
                try:
                    result = self._recover(item.record, exc, run_id)
                except Exception as recovery_exc:  # noqa: BLE001
                    log.warning(
                        "Recovery of %s failed: %s", item.record.identity, recovery_exc
                    )
                    error = recovery_exc
                else:
                    self._succeed(item, result, started, collector, report)
                    return
            self._fail_or_retry(item, error, collector, failures, work, report)
            return
        self._succeed(item, result, started, collector, report)

    def _attempt(self, record: GameRecord, run_id: int, allow_create: bool) -> UpsertResult:
        with self.uow_factory() as uow:
            repositories = uow.repositories
            result = self.upsert_service.upsert(record, repositories, allow_create=allow_create)
            repositories.runs.add_item(
                PipelineItem(run_id=run_id, target_id=result.game_id, action=result.operation)
            )
            uow.commit()
        return result

    def _recover(
        self,
        record: GameRecord,
        exc: UniqueViolationError,
        run_id: int,
    ) -> UpsertResult:
        collided = (
            exc.value
            or extract_unique_value(exc.detail, RECOVERABLE_COLUMN)
            or record.og_slug
            or normalize_slug(record.og_name or record.name)
        )
        with self.uow_factory() as uow:
            repositories = uow.repositories
            existing = repositories.games.find_by_og_slug(collided) if collided else None
            if existing is None:
                raise exc
            log.info(
                "og_slug %r collided for %s; updating game %s instead",
                collided,
                record.identity,
                existing.id,
            )
            result = self.upsert_service.upsert_with_existing(existing, record, repositories)
            repositories.runs.add_item(
                PipelineItem(run_id=run_id, target_id=result.game_id, action=result.operation)
            )
            uow.commit()
        return result

    def _succeed(
        self,
        item: _WorkItem,
        result: UpsertResult,
        started: float,
        collector: MetricsCollector,
        report: Callable[[int], None],
    ) -> None:
        latency_ms = (self._clock() - started) * 1000
        processed = collector.record_success(
            result.operation, attempt=item.attempt, latency_ms=latency_ms
        )
        log.debug(
            "%s game %s for %s (by=%s, attempt %d, %.0fms)",
            result.operation.value.capitalize(),
            result.game_id,
            item.record.identity,
            result.matched_by.value if result.matched_by else "-",
            item.attempt,
            latency_ms,
        )
        report(processed)

    def _fail_or_retry(
        self,
        item: _WorkItem,
        error: Exception,
        collector: MetricsCollector,
        failures: list[SaveFailure],
        work: Queue[_WorkItem | None],
        report: Callable[[int], None],
    ) -> None:
        kind, reason = classify_failure(error)
        max_attempts = self.config.max_attempts
        if kind is FailureKind.PERMANENT or item.attempt >= max_attempts:
            log.error(
                "Failed to save %s (%d/%d, %s): %s",
                item.record.identity,
                item.attempt,
                max_attempts,
                reason.value,
                error,
            )
            processed = collector.record_failure(type(error).__name__)
            failures.append(SaveFailure(record=item.record, reason=reason, message=str(error)))
            report(processed)
            return

        item.attempt += 1
        if kind is FailureKind.RATE_LIMITED:
            delay_ms = float(self.config.rate_limit_cooldown_ms)
        else:
            delay_ms = self.config.backoff_ms(item.attempt, self._rng.random())
        log.warning(
            "Retrying %s (%d/%d) in %.0fms: %s",
            item.record.identity,
            item.attempt,
            max_attempts,
            delay_ms,
            error,
        )
        self._sleep(delay_ms / 1000)
        work.put(item)

    # run bookkeeping -----------------------------------------------------------------

    def _open_run(self, run_id: int | None, *, total: int) -> int:
        with self.uow_factory() as uow:
            runs = uow.repositories.runs
            if run_id is not None:
                run = runs.get(run_id)
                if run is None:
                    raise ValueError(f"Pipeline run {run_id} does not exist")
                run.total_items = total
            else:
                run = PipelineRun(pipeline_type=PIPELINE_TYPE, total_items=total)
                runs.add(run)
            uow.commit()
        if run.id is None:
            raise RuntimeError("Pipeline run was not assigned an id")
        return run.id

    def _persist_metrics(self, run_id: int, metrics: SaveMetrics) -> Path | None:
        summary = json.dumps({"save_metrics": metrics.as_dict()})
        with self.uow_factory() as uow:
            run = uow.repositories.runs.get(run_id)
            if run is None:
                raise ValueError(f"Pipeline run {run_id} disappeared during the save")
            run.finish(
                completed=metrics.created + metrics.updated,
                failed=metrics.failed,
                summary=summary,
            )
            uow.commit()

        if self.metrics_dir is None:
            return None
        self.metrics_dir.mkdir(parents=True, exist_ok=True)
        stamp = utcnow().strftime("%Y%m%dT%H%M%S%fZ")
        path = self.metrics_dir / f"pipeline-{run_id}-{stamp}.json"
        payload = {"run_id": run_id, "written_at": utcnow().isoformat(), **metrics.as_dict()}
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        log.info("Save metrics written to %s", path)
        return path
