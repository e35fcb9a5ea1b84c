"""Unit tests for progress counters and reporting."""

from __future__ import annotations

import threading

import pytest

from core.types import ImportResult, WorkerOutcome
from ingest.import_progress import (
    ImportProgressTracker,
    ProgressCounters,
    ProgressSnapshot,
    records_per_second,
)
from tests.fakes import FakeLogger


def test_counters_are_consistent_under_concurrent_adds() -> None:
    """Concurrent increments should never be lost."""
    counters = ProgressCounters()

    def _add_many() -> None:
        for _ in range(1000):
            counters.add(25)

    threads = [threading.Thread(target=_add_many) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert counters.snapshot() == ProgressSnapshot(records=8 * 1000 * 25, batches=8 * 1000)


def test_tracker_logs_progress_on_interval(monkeypatch: pytest.MonkeyPatch) -> None:
    """Progress should be logged only when the batch total hits the interval."""
    fake_logger = FakeLogger()
    monkeypatch.setattr("ingest.import_progress._LOGGER", fake_logger)
    tracker = ImportProgressTracker(context={"table_name": "demo"}, interval_batches=100)

    for batches in (99, 100, 101, 200):
        tracker.log_batch_written(0, ProgressSnapshot(records=batches * 25, batches=batches))

    progress_events = [fields for _, event, fields in fake_logger.events if event == "import_progress"]
    assert [fields["batches"] for fields in progress_events] == [100, 200]
    assert progress_events[0]["table_name"] == "demo"


def test_tracker_reports_failed_runs_as_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    """A run with a failed worker should log import_failed."""
    fake_logger = FakeLogger()
    monkeypatch.setattr("ingest.import_progress._LOGGER", fake_logger)
    tracker = ImportProgressTracker(context={}, interval_batches=100)
    result = ImportResult(
        record_count=50,
        batch_count=2,
        duration_seconds=1.0,
        records_per_second=50,
        worker_outcomes=(
            WorkerOutcome(worker_index=0, batches_written=2, records_written=50),
            WorkerOutcome(worker_index=1, batches_written=0, records_written=0, error="boom"),
        ),
    )

    tracker.log_import_finished(result)

    assert fake_logger.names("error") == ["import_failed"]
    assert fake_logger.events[0][2]["failed_workers"] == [1]


def test_records_per_second_handles_zero_elapsed() -> None:
    """Throughput should be zero rather than dividing by zero."""
    assert records_per_second(100, 0.0) == 0
    assert records_per_second(100, 0.5) == 200
