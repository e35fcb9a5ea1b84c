"""Job-file CLI command wiring.

This module registers the run-job subcommand, which loads a YAML or
JSON job description and runs it locally or on the state machine.
"""

from __future__ import annotations

import argparse
from typing import Any

from core.types import ImportResult, RemoteImportResult
from store.import_sdk import DynaloadClient


def add_run_job_command(subparsers: Any) -> argparse.ArgumentParser:
    """Register run-job subcommand."""
    parser = subparsers.add_parser(
        "run-job",
        help="Run an import described by a YAML or JSON job file",
    )
    parser.add_argument("job_file", help="Path to the job description file")
    parser.add_argument(
        "--remote",
        action="store_true",
        help="Run the job on the deployed import state machine",
    )
    parser.add_argument(
        "--step-fn-region",
        help="Region of the state machine; defaults to the table region",
    )
    return parser


def run_run_job_command(client: DynaloadClient, args: argparse.Namespace) -> int:
    """Handle run-job command invocation."""
    result = client.run_job_file(args.job_file, remote=args.remote, region=args.step_fn_region)
    return print_result(result)


def print_result(result: ImportResult | RemoteImportResult) -> int:
    """Print a run summary and return the process exit code."""
    if isinstance(result, RemoteImportResult):
        print(f"execution_arn={result.execution_arn}")
        print(f"records={result.processed_count}")
        return 0
    print(f"records={result.record_count}")
    print(f"batches={result.batch_count}")
    print(f"rps={result.records_per_second}")
    print(f"duration_seconds={result.duration_seconds:.3f}")
    print(f"conversion_issues={result.conversion_issue_count}")
    if result.succeeded:
        return 0
    failed = ",".join(str(outcome.worker_index) for outcome in result.failed_workers)
    print(f"failed_workers={failed}")
    return 1
