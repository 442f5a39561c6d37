"""Audit records for batch persistence runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .base import Entity, utcnow
from .enums import RunItemStatus, RunStatus, SaveAction

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(eq=False, kw_only=True)
class PipelineRun(Entity):
    pipeline_type: str
    status: RunStatus = RunStatus.RUNNING
    total_items: int = 0
    completed_items: int = 0
    failed_items: int = 0
    summary_message: str | None = None
    started_at: datetime = field(default_factory=utcnow)
    finished_at: datetime | None = None

    def finish(self, *, completed: int, failed: int, summary: str | None) -> None:
        self.completed_items = completed
        self.failed_items = failed
        self.summary_message = summary
        self.finished_at = utcnow()
        self.status = RunStatus.FAILED if completed == 0 and failed > 0 else RunStatus.COMPLETED


@dataclass(eq=False, kw_only=True)
class PipelineItem(Entity):
    run_id: int
    target_id: int
    action: SaveAction
    target_type: str = "game"
    status: RunItemStatus = RunItemStatus.SUCCESS
    error_message: str | None = None
    created_at: datetime = field(default_factory=utcnow)
