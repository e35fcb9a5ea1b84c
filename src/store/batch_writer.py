"""DynamoDB batch-write sink.

A sink accepts one batch of converted items and either stores all of
them or raises ``DynaloadSinkError``. The DynamoDB implementation
resubmits unprocessed items with capped exponential backoff.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Protocol

from botocore.exceptions import BotoCoreError, ClientError

from core.config import DynaloadConfig
from core.constants import WRITE_BACKOFF_BASE_SECONDS, WRITE_BACKOFF_CAP_SECONDS
from core.errors import DynaloadSinkError
from core.job_description import JobTarget
from core.types import Batch
from store.aws_clients import create_client


class BatchWriter(Protocol):
    """Sink that persists one batch of items."""

    def write(self, items: Batch) -> None:
        """Store every item or raise ``DynaloadSinkError``."""


class DynamoBatchWriter:
    """Write batches to one table with ``BatchWriteItem``."""

    def __init__(
        self,
        client: Any,
        table_name: str,
        max_attempts: int,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._table_name = table_name
        self._max_attempts = max_attempts
        self._sleep = sleep

    @classmethod
    def for_target(cls, target: JobTarget, config: DynaloadConfig) -> "DynamoBatchWriter":
        """Build a writer for the job's target table."""
        client = create_client("dynamodb", target.region, config)
        return cls(client, target.table_name, config.max_write_attempts)

    def write(self, items: Batch) -> None:
        """Put every item, retrying items DynamoDB reports as unprocessed.

        Raises:
            DynaloadSinkError: If the request fails or items remain unprocessed.
        """
        if not items:
            return
        request_items = {
            self._table_name: [{"PutRequest": {"Item": item}} for item in items]
        }
        for attempt in range(1, self._max_attempts + 1):
            try:
                response = self._client.batch_write_item(RequestItems=request_items)
            except (BotoCoreError, ClientError) as error:
                raise DynaloadSinkError(
                    f"Failed to write {len(items)} items to table {self._table_name}: {error}. "
                    "Check the table name, region, and AWS credentials."
                ) from error
            unprocessed = response.get("UnprocessedItems") or {}
            if not unprocessed.get(self._table_name):
                return
            request_items = unprocessed
            if attempt < self._max_attempts:
                self._sleep(_backoff_seconds(attempt))
        remaining = len(request_items[self._table_name])
        raise DynaloadSinkError(
            f"{remaining} items remained unprocessed in table {self._table_name} after "
            f"{self._max_attempts} attempts. Increase table capacity or lower concurrency."
        )


def _backoff_seconds(attempt: int) -> float:
    return min(WRITE_BACKOFF_CAP_SECONDS, WRITE_BACKOFF_BASE_SECONDS * (2 ** (attempt - 1)))
