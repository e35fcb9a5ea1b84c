"""Shared progress counters and structured progress reporting.

Writer threads add to one ``ProgressCounters`` value owned by the run;
the tracker turns counter snapshots into periodic throughput events
and a final summary.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Mapping

from core.logging_config import get_logger
from core.types import ConversionIssue, ImportResult

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class ProgressSnapshot:
    """Counter totals observed immediately after one increment."""

    records: int
    batches: int


class ProgressCounters:
    """Thread-safe record and batch totals for one import run."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records = 0
        self._batches = 0

    def add(self, record_count: int) -> ProgressSnapshot:
        """Count one written batch of ``record_count`` records and return new totals."""
        with self._lock:
            self._records += record_count
            self._batches += 1
            return ProgressSnapshot(records=self._records, batches=self._batches)

    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            return ProgressSnapshot(records=self._records, batches=self._batches)


@dataclass
class ImportProgressTracker:
    """Emit import lifecycle and throughput events."""

    context: Mapping[str, object]
    interval_batches: int
    started_at: float = field(default_factory=time.monotonic)

    def log_import_started(self, concurrency: int, queue_capacity: int) -> None:
        self.started_at = time.monotonic()
        _LOGGER.info(
            "import_started",
            concurrency=concurrency,
            queue_capacity=queue_capacity,
            **self.context,
        )

    def log_batch_written(self, worker_index: int, snapshot: ProgressSnapshot) -> None:
        """Log progress when the cumulative batch count crosses the interval."""
        if snapshot.batches % self.interval_batches != 0:
            return
        _LOGGER.info(
            "import_progress",
            worker_index=worker_index,
            batches=snapshot.batches,
            records=snapshot.records,
            rps=records_per_second(snapshot.records, self.elapsed_seconds()),
            **self.context,
        )

    def log_conversion_issue(self, issue: ConversionIssue) -> None:
        _LOGGER.warning(
            "conversion_issue",
            row_number=issue.row_number,
            column=issue.column,
            kind=issue.kind.value,
            raw_value=issue.raw_value,
            reason=issue.reason,
            **self.context,
        )

    def log_import_finished(self, result: ImportResult) -> None:
        """Log the run summary, as a failure when any worker stopped early."""
        fields = dict(
            records=result.record_count,
            batches=result.batch_count,
            rps=result.records_per_second,
            duration_seconds=round(result.duration_seconds, 3),
            conversion_issues=result.conversion_issue_count,
            **self.context,
        )
        if result.succeeded:
            _LOGGER.info("import_completed", **fields)
            return
        _LOGGER.error(
            "import_failed",
            failed_workers=[outcome.worker_index for outcome in result.failed_workers],
            **fields,
        )

    def elapsed_seconds(self) -> float:
        return max(0.0, time.monotonic() - self.started_at)


def records_per_second(records: int, elapsed_seconds: float) -> int:
    """Compute whole-number throughput, zero before any time has elapsed."""
    if elapsed_seconds <= 0:
        return 0
    return int(records / elapsed_seconds)
