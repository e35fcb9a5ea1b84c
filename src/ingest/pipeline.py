"""Local import orchestration.

This module wires the source reader, converter, bounded queue, and
writer pool into one run and reports a single run-level result.
"""

from __future__ import annotations

from core.config import DynaloadConfig
from core.errors import DynaloadError
from core.job_description import JobDescription
from core.logging_config import get_logger
from core.types import ConversionSchema, ImportResult
from ingest.batch_queue import BatchQueue
from ingest.import_progress import ImportProgressTracker, ProgressCounters, records_per_second
from ingest.record_converter import RecordConverter
from ingest.source_reader import SourceRowReader, open_source
from ingest.writer_pool import WriterPool
from store.batch_writer import BatchWriter, DynamoBatchWriter

_LOGGER = get_logger(__name__)


class LocalImportRunner:
    """Run one import on local threads against a batch-write sink."""

    def __init__(
        self,
        job: JobDescription,
        config: DynaloadConfig,
        writer: BatchWriter | None = None,
        schema: ConversionSchema | None = None,
    ) -> None:
        self._job = job.validate()
        self._config = config
        self._schema = schema or job.conversion_schema()
        self._writer = writer or DynamoBatchWriter.for_target(job.target, config)

    def run(self) -> ImportResult:
        """Execute the import and return its run-level result.

        Raises:
            DynaloadSourceError: If the source cannot be opened or a row is malformed.
        """
        context = self._job.log_context()
        counters = ProgressCounters()
        queue = BatchQueue(self._config.queue_capacity)
        tracker = ImportProgressTracker(
            context=context, interval_batches=self._config.progress_interval_batches
        )
        pool = WriterPool(
            writer=self._writer,
            queue=queue,
            counters=counters,
            tracker=tracker,
            concurrency=self._job.configuration.concurrency,
        )
        tracker.log_import_started(self._job.configuration.concurrency, queue.capacity)
        pool.start()
        try:
            issue_count = self._produce_batches(queue, tracker)
        except DynaloadError as error:
            queue.abort()
            pool.wait()
            _LOGGER.error(
                "import_aborted",
                error=str(error),
                records=counters.snapshot().records,
                **context,
            )
            raise
        except BaseException:
            queue.abort()
            pool.wait()
            raise
        queue.close()
        outcomes = pool.wait()
        elapsed_seconds = tracker.elapsed_seconds()
        totals = counters.snapshot()
        result = ImportResult(
            record_count=totals.records,
            batch_count=totals.batches,
            duration_seconds=elapsed_seconds,
            records_per_second=records_per_second(totals.records, elapsed_seconds),
            worker_outcomes=outcomes,
            conversion_issue_count=issue_count,
        )
        tracker.log_import_finished(result)
        return result

    def _produce_batches(self, queue: BatchQueue, tracker: ImportProgressTracker) -> int:
        """Convert the source into batches and enqueue them in row order.

        Returns:
            Number of fields stored with lenient defaults.
        """
        source = self._job.source
        with open_source(source, self._config) as stream:
            rows = SourceRowReader(stream, source.delimiter, source.display_name())
            converter = RecordConverter(
                rows, self._schema, on_issue=tracker.log_conversion_issue
            )
            while True:
                batch_read = converter.read_batch()
                if batch_read.items and not queue.put(batch_read.items):
                    # Every writer stopped; their outcomes carry the cause.
                    break
                if batch_read.finished:
                    break
        return converter.issue_count


def import_local(
    job: JobDescription,
    config: DynaloadConfig,
    writer: BatchWriter | None = None,
    schema: ConversionSchema | None = None,
) -> ImportResult:
    """Import a delimited source into DynamoDB using local writer threads.

    Args:
        job: Import job description.
        config: Runtime configuration.
        writer: Optional sink; a DynamoDB batch writer for the job target by default.
        schema: Optional conversion schema overriding the job's numeric and boolean lists.

    Returns:
        Run-level result with per-worker outcomes.

    Raises:
        DynaloadConfigError: If the job parameters are invalid.
        DynaloadSourceError: If the source cannot be read.
    """
    return LocalImportRunner(job, config, writer=writer, schema=schema).run()
