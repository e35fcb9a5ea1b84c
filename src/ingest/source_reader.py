"""Delimited source readers for imports.

This module opens local files or S3 objects as text streams and turns
them into ordered field lists with source row numbers for diagnostics.
"""

from __future__ import annotations

import csv
import io
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, TextIO

from botocore.exceptions import BotoCoreError, ClientError

from core.config import DynaloadConfig
from core.constants import SOURCE_ENCODING
from core.errors import DynaloadSourceError
from core.job_description import JobSource
from store.aws_clients import create_client


class SourceRowReader:
    """Read delimited rows one at a time.

    Blank lines are skipped. ``line_number`` is the physical line on which
    the most recently returned row ended.
    """

    def __init__(self, stream: TextIO, delimiter: str, source_name: str = "<stream>") -> None:
        self._rows = csv.reader(stream, delimiter=delimiter)
        self._source_name = source_name

    @property
    def line_number(self) -> int:
        return self._rows.line_num

    def read(self) -> list[str] | None:
        """Return the next row, or None at end of input.

        Raises:
            DynaloadSourceError: If the row is not valid delimited text.
        """
        try:
            for row in self._rows:
                if row:
                    return row
        except csv.Error as error:
            raise DynaloadSourceError(
                f"Failed to parse {self._source_name} at line {self._rows.line_num}: {error}. "
                "Check quoting and the delimiter setting."
            ) from error
        except UnicodeDecodeError as error:
            raise DynaloadSourceError(
                f"Failed to decode {self._source_name} near line {self._rows.line_num}: "
                f"{error.reason}. Source files must be {SOURCE_ENCODING} encoded."
            ) from error
        return None


@contextmanager
def open_source(source: JobSource, config: DynaloadConfig) -> Iterator[TextIO]:
    """Open a job source as a text stream.

    Args:
        source: Local file or S3 object source.
        config: Runtime config for AWS session defaults.

    Yields:
        Text stream suitable for ``csv.reader``.

    Raises:
        DynaloadSourceError: If the source cannot be opened.
    """
    if source.is_local:
        with _open_local_file(Path(source.input_file).expanduser()) as stream:
            yield stream
        return
    body = _get_s3_body(source, config)
    stream = io.TextIOWrapper(body, encoding=SOURCE_ENCODING, newline="")
    try:
        yield stream
    finally:
        stream.close()


@contextmanager
def _open_local_file(source_path: Path) -> Iterator[TextIO]:
    if not source_path.is_file():
        raise DynaloadSourceError(
            f"Failed to open input file {source_path}: file does not exist. "
            "Provide an existing CSV or TSV file."
        )
    try:
        stream = source_path.open("r", encoding=SOURCE_ENCODING, newline="")
    except OSError as error:
        raise DynaloadSourceError(
            f"Failed to open input file {source_path}: {error}. Check file permissions."
        ) from error
    with stream:
        yield stream


def _get_s3_body(source: JobSource, config: DynaloadConfig) -> Any:
    """Fetch the streaming body of the source object.

    Raises:
        DynaloadSourceError: If the object cannot be fetched.
    """
    s3_client = create_client("s3", source.region, config)
    try:
        response = s3_client.get_object(Bucket=source.bucket, Key=source.key)
    except (BotoCoreError, ClientError) as error:
        raise DynaloadSourceError(
            f"Failed to open {source.display_name()}: {error}. "
            "Check the bucket, key, region and AWS credentials."
        ) from error
    return response["Body"]
