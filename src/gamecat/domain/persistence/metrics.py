"""Run-level save metrics."""

from __future__ import annotations

import math
import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from gamecat.domain.model import SaveAction


def percentile(values: list[float], fraction: float) -> int:
    """Nearest-rank percentile, rounded to whole milliseconds; 0 for no values."""
    if not values:
        return 0
    ordered = sorted(values)
    rank = min(len(ordered) - 1, max(0, math.ceil(fraction * len(ordered)) - 1))
    return round(ordered[rank])


@dataclass(frozen=True, slots=True)
class SaveMetrics:
    total_items: int
    success_rate: float
    avg_latency_ms: int
    p95_latency_ms: int
    created: int
    updated: int
    failed: int
    retries: dict[int, int]
    failure_reasons: dict[str, int]
    concurrency: int
    max_attempts: int

    def as_dict(self) -> dict[str, Any]:
        return {
            "total_items": self.total_items,
            "success_rate": self.success_rate,
            "avg_latency_ms": self.avg_latency_ms,
            "p95_latency_ms": self.p95_latency_ms,
            "created": self.created,
            "updated": self.updated,
            "failed": self.failed,
            "retries": {str(attempt): count for attempt, count in sorted(self.retries.items())},
            "failure_reasons": [
                {"code": code, "count": count} for code, count in self.failure_reasons.items()
            ],
            "concurrency": self.concurrency,
            "max_attempts": self.max_attempts,
        }


@dataclass(slots=True)
class MetricsCollector:
    """Thread-safe accumulator shared by the save workers."""

    created: int = 0
    updated: int = 0
    failed: int = 0
    latencies_ms: list[float] = field(default_factory=list)
    retries: Counter[int] = field(default_factory=Counter)
    failure_reasons: Counter[str] = field(default_factory=Counter)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def processed(self) -> int:
        return self.created + self.updated + self.failed

    def record_success(self, action: SaveAction, *, attempt: int, latency_ms: float) -> int:
        with self._lock:
            if action is SaveAction.CREATED:
                self.created += 1
            else:
                self.updated += 1
            self.latencies_ms.append(latency_ms)
            self.retries[attempt] += 1
            return self.processed

    def record_failure(self, code: str) -> int:
        with self._lock:
            self.failed += 1
            self.failure_reasons[code] += 1
            return self.processed

    def build(self, *, total_items: int, concurrency: int, max_attempts: int) -> SaveMetrics:
        with self._lock:
            succeeded = self.created + self.updated
            latencies = list(self.latencies_ms)
            return SaveMetrics(
                total_items=total_items,
                success_rate=1.0 if total_items == 0 else round(succeeded / total_items, 4),
                avg_latency_ms=round(sum(latencies) / len(latencies)) if latencies else 0,
                p95_latency_ms=percentile(latencies, 0.95),
                created=self.created,
                updated=self.updated,
                failed=self.failed,
                retries=dict(self.retries),
                failure_reasons=dict(self.failure_reasons),
                concurrency=concurrency,
                max_attempts=max_attempts,
            )
