"""Concurrent batch writers draining the batch queue.

Each worker thread takes batches from the shared queue and hands them to
the sink. A worker whose write fails stops taking batches and reports
the error in its outcome; the remaining workers keep draining.
"""

from __future__ import annotations

import threading

from core.logging_config import get_logger
from core.types import WorkerOutcome
from ingest.batch_queue import BatchQueue
from ingest.import_progress import ImportProgressTracker, ProgressCounters
from store.batch_writer import BatchWriter

_LOGGER = get_logger(__name__)


class WriterPool:
    """Fixed-size pool of writer threads with a completion barrier."""

    def __init__(
        self,
        writer: BatchWriter,
        queue: BatchQueue,
        counters: ProgressCounters,
        tracker: ImportProgressTracker,
        concurrency: int,
    ) -> None:
        if concurrency < 1:
            raise ValueError(f"Writer concurrency must be positive, got {concurrency}.")
        self._writer = writer
        self._queue = queue
        self._counters = counters
        self._tracker = tracker
        self._concurrency = concurrency
        self._lock = threading.Lock()
        self._live_workers = 0
        self._outcomes: dict[int, WorkerOutcome] = {}
        self._threads: list[threading.Thread] = []

    def start(self) -> None:
        """Start every worker; call before producing the first batch."""
        if self._threads:
            raise RuntimeError("Writer pool already started.")
        self._live_workers = self._concurrency
        for worker_index in range(self._concurrency):
            thread = threading.Thread(
                target=self._run_worker,
                args=(worker_index,),
                name=f"dynaload-writer-{worker_index}",
            )
            self._threads.append(thread)
            thread.start()

    def wait(self) -> tuple[WorkerOutcome, ...]:
        """Block until every worker finished and return their outcomes in index order."""
        for thread in self._threads:
            thread.join()
        with self._lock:
            return tuple(self._outcomes[index] for index in sorted(self._outcomes))

    def _run_worker(self, worker_index: int) -> None:
        batches_written = 0
        records_written = 0
        error: str | None = None
        try:
            while True:
                batch = self._queue.get()
                if batch is None:
                    break
                try:
                    self._writer.write(batch)
                except Exception as write_error:
                    error = str(write_error) or type(write_error).__name__
                    _LOGGER.error(
                        "batch_write_failed",
                        worker_index=worker_index,
                        batch_size=len(batch),
                        error=error,
                    )
                    break
                batches_written += 1
                records_written += len(batch)
                snapshot = self._counters.add(len(batch))
                self._tracker.log_batch_written(worker_index, snapshot)
        finally:
            self._finish_worker(
                WorkerOutcome(
                    worker_index=worker_index,
                    batches_written=batches_written,
                    records_written=records_written,
                    error=error,
                )
            )

    def _finish_worker(self, outcome: WorkerOutcome) -> None:
        with self._lock:
            self._outcomes[outcome.worker_index] = outcome
            self._live_workers -= 1
            no_workers_left = self._live_workers == 0
        if no_workers_left and not outcome.succeeded:
            # Nobody is left to drain the queue, so release the producer.
            self._queue.abort()
