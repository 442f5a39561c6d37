"""Append-only audit trail for matching decisions."""

from __future__ import annotations

import json
import logging
import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from gamecat.domain.model import MatchStatus, utcnow

if TYPE_CHECKING:
    from pathlib import Path

    from gamecat.domain.matching.engine import MatchResult
    from gamecat.domain.model import GameRecord

log = logging.getLogger(__name__)


@dataclass(slots=True)
class MatchingSummary:
    processed: int = 0
    by_status: Counter[str] = field(default_factory=Counter)
    reasons: Counter[str] = field(default_factory=Counter)
    scores: list[float] = field(default_factory=list)

    def record(self, result: MatchResult) -> None:
        self.processed += 1
        self.by_status[result.status.value] += 1
        self.reasons[result.reason.value] += 1
        if result.score is not None:
            self.scores.append(result.score)

    def as_dict(self) -> dict[str, Any]:
        scores = self.scores
        return {
            "processed": self.processed,
            "matched": self.by_status[MatchStatus.MATCHED.value],
            "pending": self.by_status[MatchStatus.PENDING.value],
            "rejected": self.by_status[MatchStatus.REJECTED.value],
            "average_score": round(sum(scores) / len(scores), 4) if scores else None,
            "max_score": max(scores) if scores else None,
            "min_score": min(scores) if scores else None,
            "reasons": dict(sorted(self.reasons.items())),
        }


def decision_entry(record: GameRecord, result: MatchResult) -> dict[str, Any]:
    """Serialisable log entry keyed by the record's source identifiers."""
    return {
        "logged_at": utcnow().isoformat(),
        "rawg_id": record.rawg_id,
        "steam_id": record.steam_id,
        "name": record.name,
        "og_name": record.og_name,
        "status": result.status.value,
        "reason": result.reason.value,
        "matched_game_id": result.game.id if result.game is not None else None,
        "score": result.score,
        "candidates": [evaluation.as_dict() for evaluation in result.evaluations],
    }


class MatchAuditLog:
    """JSONL files under ``directory``, one per decision status, appended never rewritten.

    Safe to share between worker threads.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = directory
        self.summary = MatchingSummary()
        self._lock = threading.Lock()

    def path_for(self, status: MatchStatus) -> Path:
        return self.directory / f"{status.value}.jsonl"

    def append(self, record: GameRecord, result: MatchResult) -> Path:
        path = self.path_for(result.status)
        line = json.dumps(decision_entry(record, result), ensure_ascii=False, default=str)
        with self._lock:
            self.directory.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")
            self.summary.record(result)
        return path

    def write_summary(self, label: str) -> Path:
        with self._lock:
            payload = {
                "label": label,
                "written_at": utcnow().isoformat(),
                **self.summary.as_dict(),
            }
            self.directory.mkdir(parents=True, exist_ok=True)
            path = self.directory / f"summary-{label}.json"
            path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        log.info(
            "Matching summary %s: processed=%s matched=%s pending=%s rejected=%s",
            label,
            payload["processed"],
            payload["matched"],
            payload["pending"],
            payload["rejected"],
        )
        return path
