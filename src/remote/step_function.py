"""Step Functions adapter for remote imports.

The remote path hands the whole job description to the deployed import
state machine, polls the execution until it reaches a terminal status,
and sums the per-invocation counts the execution returns.
"""

from __future__ import annotations

import json
import threading
import time
import uuid
from typing import Any, Callable

from botocore.exceptions import BotoCoreError, ClientError

from core.config import DynaloadConfig
from core.constants import (
    EXECUTION_STATUS_RUNNING,
    EXECUTION_STATUS_SUCCEEDED,
    STATE_MACHINE_PAGE_SIZE,
)
from core.errors import (
    DynaloadCancelledError,
    DynaloadError,
    DynaloadRemoteError,
    DynaloadRemoteTimeoutError,
)
from core.job_description import JobDescription
from core.logging_config import get_logger
from core.types import InvocationResult, RemoteImportResult
from store.aws_clients import create_client

_LOGGER = get_logger(__name__)


class StepFunctionImportRunner:
    """Submit one import to the state machine and wait for its result."""

    def __init__(
        self,
        job: JobDescription,
        config: DynaloadConfig,
        region: str | None = None,
        client: Any | None = None,
        cancel_event: threading.Event | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Create a remote runner.

        Args:
            job: Import job; its source must be an S3 object.
            config: Runtime configuration with polling settings.
            region: Region of the state machine; defaults to the table region.
            client: Optional Step Functions client.
            cancel_event: Set by the caller to stop waiting and stop the execution.
            clock: Monotonic clock used for the polling deadline.

        Raises:
            DynaloadConfigError: If the job cannot run remotely.
        """
        self._job = job.validate(remote=True)
        self._config = config
        self._client = client or create_client(
            "stepfunctions", region or job.target.region, config
        )
        self._cancel_event = cancel_event or threading.Event()
        self._clock = clock
        self._context = job.log_context()

    def run(self) -> RemoteImportResult:
        """Run the import remotely.

        Returns:
            Execution ARN and per-invocation metrics.

        Raises:
            DynaloadRemoteError: If discovery, submission, or the execution fails.
            DynaloadRemoteTimeoutError: If polling exceeds the configured timeout.
            DynaloadCancelledError: If the cancel event is set while waiting.
        """
        _LOGGER.info("remote_import_started", **self._context)
        failure_context: dict[str, object] = {
            "state_machine_name": self._config.state_machine_name
        }
        try:
            state_machine_arn = find_state_machine_arn(
                self._client, self._config.state_machine_name
            )
            failure_context["state_machine_arn"] = state_machine_arn
            _LOGGER.info(
                "state_machine_found", state_machine_arn=state_machine_arn, **self._context
            )
            execution_arn = self._start_execution(state_machine_arn)
            failure_context["execution_arn"] = execution_arn
            output = self._wait_for_output(execution_arn)
            result = RemoteImportResult(
                execution_arn=execution_arn,
                invocations=parse_execution_output(output),
            )
        except DynaloadError as error:
            _LOGGER.error(
                "remote_import_failed",
                error_type=type(error).__name__,
                error=str(error),
                **failure_context,
                **self._context,
            )
            raise
        _LOGGER.info(
            "remote_import_completed",
            execution_arn=execution_arn,
            invocations=len(result.invocations),
            lines=result.processed_count,
            **self._context,
        )
        return result

    def _start_execution(self, state_machine_arn: str) -> str:
        execution_name = str(uuid.uuid4())
        try:
            response = self._client.start_execution(
                stateMachineArn=state_machine_arn,
                name=execution_name,
                input=self._job.to_json(),
            )
        except (BotoCoreError, ClientError) as error:
            raise DynaloadRemoteError(
                f"Failed to start execution of state machine {state_machine_arn}: {error}."
            ) from error
        execution_arn = response["executionArn"]
        _LOGGER.info("execution_started", execution_arn=execution_arn, **self._context)
        return execution_arn

    def _wait_for_output(self, execution_arn: str) -> str:
        """Poll the execution until it leaves the running state."""
        timeout_seconds = self._config.poll_timeout_seconds
        deadline = None if timeout_seconds is None else self._clock() + timeout_seconds
        while True:
            execution = self._describe_execution(execution_arn)
            status = execution["status"]
            if status == EXECUTION_STATUS_SUCCEEDED:
                _LOGGER.info("execution_succeeded", execution_arn=execution_arn, **self._context)
                return execution.get("output") or ""
            if status != EXECUTION_STATUS_RUNNING:
                raise DynaloadRemoteError(
                    f"Unexpected execution status {status} for {execution_arn}. "
                    "Inspect the execution history in the Step Functions console."
                )
            _LOGGER.info("execution_running", execution_arn=execution_arn, **self._context)
            wait_seconds = self._config.poll_interval_seconds
            if deadline is not None:
                remaining = deadline - self._clock()
                if remaining <= 0:
                    self._stop_execution(execution_arn, "polling timeout exceeded")
                    raise DynaloadRemoteTimeoutError(
                        f"Execution {execution_arn} still running after "
                        f"{timeout_seconds} seconds; it has been stopped."
                    )
                wait_seconds = min(wait_seconds, remaining)
            if self._cancel_event.wait(wait_seconds):
                self._stop_execution(execution_arn, "cancelled by caller")
                raise DynaloadCancelledError(f"Execution {execution_arn} was cancelled.")

    def _describe_execution(self, execution_arn: str) -> dict[str, Any]:
        try:
            return self._client.describe_execution(executionArn=execution_arn)
        except (BotoCoreError, ClientError) as error:
            raise DynaloadRemoteError(
                f"Failed to get execution status for {execution_arn}: {error}."
            ) from error

    def _stop_execution(self, execution_arn: str, cause: str) -> None:
        _LOGGER.warning(
            "execution_stopping", execution_arn=execution_arn, cause=cause, **self._context
        )
        try:
            self._client.stop_execution(executionArn=execution_arn, cause=cause)
        except (BotoCoreError, ClientError) as error:
            raise DynaloadRemoteError(
                f"Failed to stop execution {execution_arn} ({cause}): {error}."
            ) from error


def find_state_machine_arn(client: Any, name: str) -> str:
    """Find the ARN of the one state machine with the reserved name.

    Raises:
        DynaloadRemoteError: If listing fails or the name matches zero or several machines.
    """
    paginator = client.get_paginator("list_state_machines")
    try:
        matches = [
            state_machine["stateMachineArn"]
            for page in paginator.paginate(PaginationConfig={"PageSize": STATE_MACHINE_PAGE_SIZE})
            for state_machine in page.get("stateMachines", [])
            if state_machine["name"] == name
        ]
    except (BotoCoreError, ClientError) as error:
        raise DynaloadRemoteError(f"Failed to list state machines: {error}.") from error
    if not matches:
        raise DynaloadRemoteError(
            f"{name} state machine not found. Have you deployed the {name} Step Function?"
        )
    if len(matches) > 1:
        raise DynaloadRemoteError(
            f"Found {len(matches)} state machines named {name}: {', '.join(matches)}. "
            "Remove the duplicates or set DYNALOAD_STATE_MACHINE_NAME to a unique name."
        )
    return matches[0]


def parse_execution_output(output: str) -> tuple[InvocationResult, ...]:
    """Parse the execution output into per-invocation results.

    Raises:
        DynaloadRemoteError: If the output is not a list of result objects.
    """
    try:
        payload = json.loads(output)
    except json.JSONDecodeError as error:
        raise DynaloadRemoteError(
            f"Failed to parse execution output: {error.msg}. Output was: {output!r}"
        ) from error
    if not isinstance(payload, list):
        raise DynaloadRemoteError(
            f"Execution output must be a list of results, got {type(payload).__name__}."
        )
    return tuple(_parse_invocation(entry, index) for index, entry in enumerate(payload))


def _parse_invocation(entry: object, index: int) -> InvocationResult:
    if not isinstance(entry, dict):
        raise DynaloadRemoteError(f"Execution result {index} must be an object.")
    processed_count = entry.get("processedCount", 0)
    duration_ms = entry.get("durationMs", 0)
    for field_name, value in (("processedCount", processed_count), ("durationMs", duration_ms)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise DynaloadRemoteError(
                f"Execution result {index} field '{field_name}' must be an integer."
            )
    return InvocationResult(processed_count=processed_count, duration_ms=duration_ms)


def import_remote(
    job: JobDescription,
    config: DynaloadConfig,
    region: str | None = None,
    cancel_event: threading.Event | None = None,
) -> RemoteImportResult:
    """Run an import on the deployed state machine and wait for it to finish."""
    return StepFunctionImportRunner(job, config, region=region, cancel_event=cancel_event).run()
