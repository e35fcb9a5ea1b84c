"""Dynaload CLI entry points.
This module exposes the import and run-job commands.
It maps argparse arguments onto job descriptions and SDK calls.
"""

from __future__ import annotations

import argparse
import sys
from typing import Any, Sequence

from cli.run_job_command import add_run_job_command, print_result, run_run_job_command
from core.config import DynaloadConfig
from core.constants import DEFAULT_CONCURRENCY
from core.errors import DynaloadConfigError, DynaloadError
from core.job_description import (
    JobConfiguration,
    JobDescription,
    JobSource,
    JobTarget,
    resolve_delimiter,
)
from core.logging_config import get_logger
from core.s3_uri import parse_s3_uri
from core.types import split_field_list
from store.import_sdk import DynaloadClient

_LOGGER = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="dynaload",
        description="Bulk-load CSV and TSV files into DynamoDB",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_import_command(subparsers)
    add_run_job_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Dynaload CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = DynaloadClient(DynaloadConfig.from_env())
        if args.command == "import":
            return _run_import_command(client, args)
        if args.command == "run-job":
            return run_run_job_command(client, args)
    except DynaloadConfigError as error:
        return _print_usage_and_fail(parser, str(error))
    except DynaloadError as error:
        _LOGGER.error(
            "fatal_error",
            command=args.command,
            error_type=type(error).__name__,
            error=str(error),
        )
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _run_import_command(client: DynaloadClient, args: argparse.Namespace) -> int:
    """Handle import command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    job = build_job_description(args)
    if args.remote:
        return print_result(client.import_remote(job, region=args.step_fn_region))
    return print_result(client.import_local(job))


def build_job_description(args: argparse.Namespace) -> JobDescription:
    """Build and validate a job description from import arguments.

    Raises:
        DynaloadConfigError: If required arguments are missing or contradictory.
    """
    bucket_name = args.bucket_name or ""
    bucket_key = args.bucket_key or ""
    if args.source_uri:
        if bucket_name or bucket_key:
            raise DynaloadConfigError(
                "Pass either --source-uri or --bucket-name and --bucket-key, not both."
            )
        location = parse_s3_uri(args.source_uri)
        bucket_name, bucket_key = location.bucket, location.key
    job = JobDescription(
        source=JobSource(
            region=args.bucket_region or "",
            bucket=bucket_name,
            key=bucket_key,
            input_file=args.input_file or "",
            numeric_fields=split_field_list(args.numeric_fields),
            boolean_fields=split_field_list(args.boolean_fields),
            delimiter=resolve_delimiter(args.delimiter),
        ),
        configuration=JobConfiguration(concurrency=args.concurrency),
        target=JobTarget(region=args.table_region or "", table_name=args.table_name or ""),
    )
    return job.validate(remote=args.remote)


def _print_usage_and_fail(parser: argparse.ArgumentParser, message: str) -> int:
    parser.print_usage(sys.stderr)
    print(message, file=sys.stderr)
    return 1


def _add_import_command(subparsers: Any) -> None:
    """Register import subcommand."""
    parser = subparsers.add_parser("import", help="Import a CSV or TSV file into a table")
    parser.add_argument("--table-region", help="AWS region of the DynamoDB table")
    parser.add_argument("--table-name", help="DynamoDB table to import into")
    parser.add_argument("--input-file", help="Local file to import")
    parser.add_argument("--bucket-region", help="AWS region of the source bucket")
    parser.add_argument("--bucket-name", help="S3 bucket containing the source file")
    parser.add_argument("--bucket-key", help="Object key of the source file")
    parser.add_argument("--source-uri", help="Source object as s3://bucket/key")
    parser.add_argument("--numeric-fields", help="Comma separated list of numeric columns")
    parser.add_argument("--boolean-fields", help="Comma separated list of boolean columns")
    parser.add_argument(
        "--delimiter",
        default="comma",
        help="Field delimiter: 'comma' or 'tab'",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=DEFAULT_CONCURRENCY,
        help="Number of parallel batch writers",
    )
    parser.add_argument(
        "--remote",
        action="store_true",
        help="Run the import on the deployed import state machine",
    )
    parser.add_argument(
        "--step-fn-region",
        help="Region of the state machine; defaults to the table region",
    )
