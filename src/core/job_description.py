"""Job description model and wire codec.

A job description captures one complete import task: where the rows come
from, how columns are typed, where items go, and how much concurrency to
use. The same value drives local logging context and is serialized as the
input document of a remote execution.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, cast

from core.constants import (
    DEFAULT_CONCURRENCY,
    DEFAULT_DELIMITER,
    DEFAULT_LAMBDA_DURATION_SECONDS,
    DELIMITER_NAMES,
)
from core.errors import DynaloadConfigError, DynaloadDependencyError, DynaloadJobSpecError
from core.s3_uri import S3Location
from core.types import ConversionSchema


def resolve_delimiter(name: str | None) -> str:
    """Map a delimiter name to its character; unknown names mean comma."""
    if name is None:
        return DEFAULT_DELIMITER
    return DELIMITER_NAMES.get(name, DEFAULT_DELIMITER)


@dataclass(frozen=True)
class JobSource:
    """Source rows and their column typing.

    Either ``input_file`` or the (``region``, ``bucket``, ``key``) triple is set.
    """

    region: str = ""
    bucket: str = ""
    key: str = ""
    input_file: str = ""
    numeric_fields: tuple[str, ...] = ()
    boolean_fields: tuple[str, ...] = ()
    delimiter: str = DEFAULT_DELIMITER

    @property
    def is_local(self) -> bool:
        return bool(self.input_file)

    @property
    def is_bucket(self) -> bool:
        return bool(self.region or self.bucket or self.key)

    def location(self) -> S3Location:
        return S3Location(bucket=self.bucket, key=self.key)

    def display_name(self) -> str:
        if self.is_local:
            return self.input_file
        return self.location().display_name(self.region)


@dataclass(frozen=True)
class JobConfiguration:
    """Concurrency and time budget for the import."""

    concurrency: int = DEFAULT_CONCURRENCY
    duration_seconds: int = DEFAULT_LAMBDA_DURATION_SECONDS


@dataclass(frozen=True)
class JobTarget:
    """Destination DynamoDB table."""

    region: str
    table_name: str


@dataclass(frozen=True)
class JobDescription:
    """Immutable description of a complete import task."""

    source: JobSource
    target: JobTarget
    configuration: JobConfiguration = field(default_factory=JobConfiguration)

    def validate(self, remote: bool = False) -> "JobDescription":
        """Check required and mutually exclusive parameters.

        Args:
            remote: Whether the job will run on the remote execution service.

        Returns:
            The same job description, for chaining.

        Raises:
            DynaloadConfigError: If parameters are missing or contradictory.
        """
        if not self.target.region or not self.target.table_name:
            raise DynaloadConfigError("Must include a table region and table name.")
        source = self.source
        if source.is_local and source.is_bucket:
            raise DynaloadConfigError(
                "Must pass an input file OR a bucket region, bucket name and bucket key."
            )
        if source.is_bucket and not (source.region and source.bucket and source.key):
            raise DynaloadConfigError(
                "Must pass values for all of the bucket region, bucket name and bucket key "
                "when no input file is given."
            )
        if not source.is_local and not source.is_bucket:
            raise DynaloadConfigError(
                "Must pass an input file or a bucket region, bucket name and bucket key."
            )
        if remote and not source.is_bucket:
            raise DynaloadConfigError(
                "Remote import requires the file to be located within an S3 bucket. "
                "Pass the bucket region, bucket name and bucket key."
            )
        if self.configuration.concurrency < 1:
            raise DynaloadConfigError(
                f"Concurrency must be at least 1, got {self.configuration.concurrency}."
            )
        return self

    def conversion_schema(self) -> ConversionSchema:
        """Build the converter schema declared by the source section."""
        return ConversionSchema.build(
            numeric_fields=self.source.numeric_fields,
            boolean_fields=self.source.boolean_fields,
        )

    def log_context(self) -> dict[str, object]:
        """Return structured logging fields describing this job."""
        context: dict[str, object] = {
            "input": self.source.display_name(),
            "delimiter": self.source.delimiter,
            "table_region": self.target.region,
            "table_name": self.target.table_name,
        }
        if self.source.is_bucket:
            context.update(
                source_region=self.source.region,
                source_bucket=self.source.bucket,
                source_key=self.source.key,
            )
        return context

    def to_payload(self) -> dict[str, Any]:
        """Render the wire document understood by the remote state machine."""
        source_payload: dict[str, Any] = {
            "region": self.source.region,
            "bucket": self.source.bucket,
            "key": self.source.key,
            "numericFields": list(self.source.numeric_fields),
            "booleanFields": list(self.source.boolean_fields),
            "delimiter": self.source.delimiter,
        }
        if self.source.input_file:
            source_payload["inputFile"] = self.source.input_file
        return {
            "source": source_payload,
            "configuration": {
                "lambdaConcurrency": self.configuration.concurrency,
                "lambdaDurationSeconds": self.configuration.duration_seconds,
            },
            "target": {
                "region": self.target.region,
                "tableName": self.target.table_name,
            },
        }

    def to_json(self) -> str:
        return json.dumps(self.to_payload())

    @classmethod
    def from_payload(cls, payload: object) -> "JobDescription":
        """Parse a wire document into a job description.

        Raises:
            DynaloadJobSpecError: If sections or fields have the wrong shape.
        """
        root = _expect_mapping(payload, "job description")
        source = _expect_mapping(root.get("source", {}), "source")
        configuration = _expect_mapping(root.get("configuration", {}), "configuration")
        target = _expect_mapping(root.get("target"), "target")
        return cls(
            source=JobSource(
                region=_expect_str(source, "region"),
                bucket=_expect_str(source, "bucket"),
                key=_expect_str(source, "key"),
                input_file=_expect_str(source, "inputFile"),
                numeric_fields=_expect_str_list(source, "numericFields"),
                boolean_fields=_expect_str_list(source, "booleanFields"),
                delimiter=resolve_delimiter(_expect_str(source, "delimiter") or None),
            ),
            configuration=JobConfiguration(
                concurrency=_expect_int(
                    configuration, "lambdaConcurrency", DEFAULT_CONCURRENCY
                ),
                duration_seconds=_expect_int(
                    configuration, "lambdaDurationSeconds", DEFAULT_LAMBDA_DURATION_SECONDS
                ),
            ),
            target=JobTarget(
                region=_expect_str(target, "region"),
                table_name=_expect_str(target, "tableName"),
            ),
        )

    @classmethod
    def from_json(cls, text: str) -> "JobDescription":
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as error:
            raise DynaloadJobSpecError(
                f"Failed to parse job description JSON: {error.msg}."
            ) from error
        return cls.from_payload(payload)


def load_job_description(job_path: str) -> JobDescription:
    """Load a job description from a YAML or JSON file.

    Args:
        job_path: File path to the job document.

    Returns:
        Parsed job description; callers validate it for their execution mode.

    Raises:
        DynaloadDependencyError: If PyYAML is unavailable.
        DynaloadJobSpecError: If the file is missing or malformed.
    """
    try:
        import yaml  # type: ignore[import-untyped]
    except ImportError as error:  # pragma: no cover - dependency failure
        raise DynaloadDependencyError(
            "Job files require PyYAML. Install with 'pip install pyyaml'."
        ) from error
    job_file = Path(job_path).expanduser().resolve()
    if not job_file.exists():
        raise DynaloadJobSpecError(
            f"Job file does not exist at {job_file}. Provide a valid YAML or JSON file path."
        )
    try:
        payload = cast(object, yaml.safe_load(job_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise DynaloadJobSpecError(
            f"Failed to read job file at {job_file}: {error}. Check file permissions and retry."
        ) from error
    except yaml.YAMLError as error:
        raise DynaloadJobSpecError(
            f"Failed to parse job file at {job_file}: {error}. Fix the syntax and retry."
        ) from error
    if payload is None:
        raise DynaloadJobSpecError(
            f"Job file at {job_file} is empty. Define 'source' and 'target' sections."
        )
    return JobDescription.from_payload(payload)


def _expect_mapping(value: object, context: str) -> Mapping[str, object]:
    if isinstance(value, Mapping):
        return cast(Mapping[str, object], value)
    raise DynaloadJobSpecError(
        f"Invalid {context} section: expected object mapping, got {type(value).__name__}."
    )


def _expect_str(section: Mapping[str, object], key: str) -> str:
    value = section.get(key, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DynaloadJobSpecError(
            f"Job field '{key}' must be a string, got {type(value).__name__}."
        )
    return value


def _expect_str_list(section: Mapping[str, object], key: str) -> tuple[str, ...]:
    value = section.get(key) or []
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise DynaloadJobSpecError(f"Job field '{key}' must be a list of column names.")
    return tuple(item.strip() for item in value if item.strip())


def _expect_int(section: Mapping[str, object], key: str, default: int) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise DynaloadJobSpecError(
            f"Job field '{key}' must be an integer, got {type(value).__name__}."
        )
    return value
