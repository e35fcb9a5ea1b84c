"""Core constants used across Dynaload modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

DYNAMODB_BATCH_SIZE = 25
DEFAULT_CONCURRENCY = 8
DEFAULT_QUEUE_CAPACITY = 128
DEFAULT_PROGRESS_INTERVAL_BATCHES = 100
DEFAULT_POLL_INTERVAL_SECONDS = 5.0
DEFAULT_STATE_MACHINE_NAME = "dynaload"
DEFAULT_LAMBDA_DURATION_SECONDS = 900
DEFAULT_MAX_WRITE_ATTEMPTS = 10
WRITE_BACKOFF_BASE_SECONDS = 0.1
WRITE_BACKOFF_CAP_SECONDS = 5.0
STATE_MACHINE_PAGE_SIZE = 1000
DELIMITER_NAMES = {"comma": ",", "tab": "\t", ",": ",", "\t": "\t"}
DEFAULT_DELIMITER = ","
SOURCE_ENCODING = "utf-8"
EXECUTION_STATUS_RUNNING = "RUNNING"
EXECUTION_STATUS_SUCCEEDED = "SUCCEEDED"
