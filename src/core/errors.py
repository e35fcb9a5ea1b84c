"""Dynaload exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each pipeline stage raises a specific error type for debuggability.
"""

from __future__ import annotations


class DynaloadError(Exception):
    """Base exception for all Dynaload failures."""


class DynaloadConfigError(DynaloadError):
    """Raised for invalid runtime configuration or import parameters."""


class DynaloadSourceError(DynaloadError):
    """Raised when the tabular source cannot be opened or parsed."""


class FieldCountMismatchError(DynaloadSourceError):
    """Raised when a row's field count differs from the header arity."""

    def __init__(self, row_number: int, expected: int, actual: int) -> None:
        super().__init__(
            f"Wrong number of fields on row {row_number}: expected {expected}, got {actual}. "
            "Fix the source row or pass an explicit column list."
        )
        self.row_number = row_number
        self.expected = expected
        self.actual = actual


class DynaloadSinkError(DynaloadError):
    """Raised when a batch cannot be written to the target table."""


class DynaloadRemoteError(DynaloadError):
    """Raised for remote job-execution service failures."""


class DynaloadRemoteTimeoutError(DynaloadRemoteError):
    """Raised when a remote execution exceeds its polling budget."""


class DynaloadCancelledError(DynaloadError):
    """Raised when a running import is cancelled by the caller."""


class DynaloadDependencyError(DynaloadError):
    """Raised when an optional runtime dependency is missing."""


class DynaloadJobSpecError(DynaloadError):
    """Raised for invalid or unsupported job description payloads."""
