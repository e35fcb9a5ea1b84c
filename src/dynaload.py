"""Public SDK surface for Dynaload.

This module provides a stable import path for library users.
It re-exports the primary client and typed job models.
"""

from __future__ import annotations

from core.config import DynaloadConfig
from core.job_description import (
    JobConfiguration,
    JobDescription,
    JobSource,
    JobTarget,
    load_job_description,
)
from core.types import (
    ConversionIssue,
    ConversionSchema,
    FieldKind,
    ImportResult,
    RemoteImportResult,
    WorkerOutcome,
)
from ingest.record_converter import RecordConverter
from store.batch_writer import BatchWriter, DynamoBatchWriter
from store.import_sdk import DynaloadClient

__all__ = [
    "BatchWriter",
    "ConversionIssue",
    "ConversionSchema",
    "DynamoBatchWriter",
    "DynaloadClient",
    "DynaloadConfig",
    "FieldKind",
    "ImportResult",
    "JobConfiguration",
    "JobDescription",
    "JobSource",
    "JobTarget",
    "RecordConverter",
    "RemoteImportResult",
    "WorkerOutcome",
    "load_job_description",
]
