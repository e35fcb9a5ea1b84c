"""S3 URI parsing helpers.

This module parses ``s3://bucket/key`` object locations passed on
the command line into the bucket and key pair used by job sources.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from core.errors import DynaloadConfigError


@dataclass(frozen=True)
class S3Location:
    """Parsed S3 object location."""

    bucket: str
    key: str

    def display_name(self, region: str | None = None) -> str:
        """Render a printable object name, with region when known."""
        name = f"s3://{quote(self.bucket, safe='')}/{quote(self.key, safe='')}"
        if region:
            return f"{name} ({region})"
        return name


def parse_s3_uri(uri: str) -> S3Location:
    """Parse and validate an S3 object URI.

    Args:
        uri: URI in format ``s3://bucket/key``.

    Returns:
        Parsed bucket and key pair.

    Raises:
        DynaloadConfigError: If URI is not a complete object location.
    """
    if not uri.startswith("s3://"):
        _raise_uri_error(uri)
    stripped_uri = uri.removeprefix("s3://")
    if "/" not in stripped_uri:
        _raise_uri_error(uri)
    bucket, key = stripped_uri.split("/", 1)
    if not bucket or not key:
        _raise_uri_error(uri)
    return S3Location(bucket=bucket, key=key)


def _raise_uri_error(uri: str) -> None:
    raise DynaloadConfigError(
        f"Invalid S3 URI '{uri}': expected s3://bucket/key. "
        "Provide both bucket and object key."
    )
