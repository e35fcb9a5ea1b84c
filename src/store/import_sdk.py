"""Python SDK for import operations.

This module exposes high-level APIs for local and remote imports
backed by the ingest pipeline and the Step Functions adapter.
"""

from __future__ import annotations

import threading

from core.config import DynaloadConfig
from core.job_description import JobDescription, load_job_description
from core.types import ConversionSchema, ImportResult, RemoteImportResult
from ingest.pipeline import import_local
from remote.step_function import import_remote
from store.batch_writer import BatchWriter


class DynaloadClient:
    """Primary SDK entry point for import workflows."""

    def __init__(self, config: DynaloadConfig | None = None) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration; read from the environment by default.
        """
        self._config = config or DynaloadConfig.from_env()

    @property
    def config(self) -> DynaloadConfig:
        return self._config

    def import_local(
        self,
        job: JobDescription,
        writer: BatchWriter | None = None,
        schema: ConversionSchema | None = None,
    ) -> ImportResult:
        """Import on local writer threads.

        Args:
            job: Import job description.
            writer: Optional sink replacing the DynamoDB batch writer.
            schema: Optional schema with map, binary, column, or key-column rules.

        Returns:
            Run-level import result.

        Raises:
            DynaloadConfigError: If job parameters are invalid.
            DynaloadSourceError: If the source cannot be read.
        """
        return import_local(job, self._config, writer=writer, schema=schema)

    def import_remote(
        self,
        job: JobDescription,
        region: str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> RemoteImportResult:
        """Import on the deployed state machine.

        Raises:
            DynaloadConfigError: If the job source is not an S3 object.
            DynaloadRemoteError: If the execution fails.
        """
        return import_remote(job, self._config, region=region, cancel_event=cancel_event)

    def run_job_file(
        self,
        job_file: str,
        remote: bool = False,
        region: str | None = None,
    ) -> ImportResult | RemoteImportResult:
        """Load a YAML or JSON job file and run it.

        Raises:
            DynaloadJobSpecError: If the job file is invalid.
        """
        job = load_job_description(job_file)
        if remote:
            return self.import_remote(job, region=region)
        return self.import_local(job)
