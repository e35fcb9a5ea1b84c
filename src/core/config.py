"""Runtime configuration model for Dynaload.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os

from core.constants import (
    DEFAULT_MAX_WRITE_ATTEMPTS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_PROGRESS_INTERVAL_BATCHES,
    DEFAULT_QUEUE_CAPACITY,
    DEFAULT_STATE_MACHINE_NAME,
)
from core.errors import DynaloadConfigError


@dataclass(frozen=True)
class DynaloadConfig:
    """Validated runtime configuration.

    Attributes:
        aws_profile: Optional AWS profile for boto3 session initialization.
        queue_capacity: Maximum number of batches buffered between reader and writers.
        progress_interval_batches: Cumulative batch interval between progress events.
        poll_interval_seconds: Delay between remote execution status checks.
        poll_timeout_seconds: Optional overall budget for remote polling.
        state_machine_name: Reserved name of the deployed import state machine.
        max_write_attempts: Attempts per batch before unprocessed items fail the write.
    """

    aws_profile: str | None = None
    queue_capacity: int = DEFAULT_QUEUE_CAPACITY
    progress_interval_batches: int = DEFAULT_PROGRESS_INTERVAL_BATCHES
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    poll_timeout_seconds: float | None = None
    state_machine_name: str = DEFAULT_STATE_MACHINE_NAME
    max_write_attempts: int = DEFAULT_MAX_WRITE_ATTEMPTS

    @classmethod
    def from_env(cls) -> "DynaloadConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            DynaloadConfigError: If environment values are invalid.
        """
        poll_timeout_value = os.getenv("DYNALOAD_POLL_TIMEOUT_SECONDS")
        return cls(
            aws_profile=os.getenv("DYNALOAD_AWS_PROFILE") or None,
            queue_capacity=_parse_positive_int(
                "DYNALOAD_QUEUE_CAPACITY", str(DEFAULT_QUEUE_CAPACITY)
            ),
            progress_interval_batches=_parse_positive_int(
                "DYNALOAD_PROGRESS_INTERVAL_BATCHES", str(DEFAULT_PROGRESS_INTERVAL_BATCHES)
            ),
            poll_interval_seconds=_parse_positive_float(
                "DYNALOAD_POLL_INTERVAL_SECONDS",
                os.getenv("DYNALOAD_POLL_INTERVAL_SECONDS", str(DEFAULT_POLL_INTERVAL_SECONDS)),
            ),
            poll_timeout_seconds=(
                _parse_positive_float("DYNALOAD_POLL_TIMEOUT_SECONDS", poll_timeout_value)
                if poll_timeout_value
                else None
            ),
            state_machine_name=os.getenv(
                "DYNALOAD_STATE_MACHINE_NAME", DEFAULT_STATE_MACHINE_NAME
            ),
            max_write_attempts=_parse_positive_int(
                "DYNALOAD_MAX_WRITE_ATTEMPTS", str(DEFAULT_MAX_WRITE_ATTEMPTS)
            ),
        )


def _parse_positive_int(env_name: str, default_value: str) -> int:
    """Parse a positive integer environment value.

    Args:
        env_name: Environment variable name.
        default_value: Value used when the variable is unset.

    Returns:
        Parsed integer.

    Raises:
        DynaloadConfigError: If value is not a positive integer.
    """
    raw_value = os.getenv(env_name, default_value)
    try:
        parsed_value = int(raw_value)
    except ValueError as error:
        raise DynaloadConfigError(
            f"Invalid {env_name} value: expected integer, got '{raw_value}'. "
            f"Set {env_name} to a positive whole number."
        ) from error
    if parsed_value < 1:
        raise DynaloadConfigError(
            f"Invalid {env_name} value: expected a positive integer, got {parsed_value}."
        )
    return parsed_value


def _parse_positive_float(env_name: str, raw_value: str) -> float:
    """Parse a positive number of seconds.

    Raises:
        DynaloadConfigError: If value is not a positive number.
    """
    try:
        parsed_value = float(raw_value)
    except ValueError as error:
        raise DynaloadConfigError(
            f"Invalid {env_name} value: expected number of seconds, got '{raw_value}'."
        ) from error
    if parsed_value <= 0:
        raise DynaloadConfigError(
            f"Invalid {env_name} value: expected a positive number, got {parsed_value}."
        )
    return parsed_value
