"""Unit tests for the Step Functions import adapter."""

from __future__ import annotations

import json
import threading
import uuid
from typing import Any

import pytest

from core.config import DynaloadConfig
from core.errors import (
    DynaloadCancelledError,
    DynaloadConfigError,
    DynaloadRemoteError,
    DynaloadRemoteTimeoutError,
)
from core.job_description import JobDescription, JobSource, JobTarget
from remote.step_function import (
    StepFunctionImportRunner,
    find_state_machine_arn,
    parse_execution_output,
)
from tests.fakes import FakeLogger

_MACHINE_ARN = "arn:aws:states:eu-west-1:123456789012:stateMachine:dynaload"
_EXECUTION_ARN = "arn:aws:states:eu-west-1:123456789012:execution:dynaload:run"


class _FakePaginator:
    def __init__(self, pages: list[dict[str, Any]]) -> None:
        self._pages = pages

    def paginate(self, **kwargs: Any) -> list[dict[str, Any]]:
        return self._pages


class _FakeStepFunctionsClient:
    def __init__(
        self,
        statuses: list[str],
        output: str | None = None,
        machine_names: tuple[str, ...] = ("other", "dynaload"),
    ) -> None:
        self._statuses = list(statuses)
        self._output = output
        self._machine_names = machine_names
        self.started: list[dict[str, str]] = []
        self.stopped: list[dict[str, str]] = []
        self.describe_calls = 0

    def get_paginator(self, operation_name: str) -> _FakePaginator:
        assert operation_name == "list_state_machines"
        machines = [
            {"name": name, "stateMachineArn": _MACHINE_ARN.replace(":dynaload", f":{name}")}
            for name in self._machine_names
        ]
        return _FakePaginator([{"stateMachines": machines[:1]}, {"stateMachines": machines[1:]}])

    def start_execution(self, **kwargs: str) -> dict[str, str]:
        self.started.append(kwargs)
        return {"executionArn": _EXECUTION_ARN}

    def describe_execution(self, executionArn: str) -> dict[str, Any]:
        self.describe_calls += 1
        status = self._statuses.pop(0)
        response: dict[str, Any] = {"executionArn": executionArn, "status": status}
        if status != "RUNNING" and self._output is not None:
            response["output"] = self._output
        return response

    def stop_execution(self, **kwargs: str) -> dict[str, str]:
        self.stopped.append(kwargs)
        return {}


def _job() -> JobDescription:
    return JobDescription(
        source=JobSource(region="eu-west-2", bucket="staging", key="orders.csv"),
        target=JobTarget(region="eu-west-1", table_name="orders"),
    )


def test_run_submits_job_and_sums_processed_counts(fast_config: DynaloadConfig) -> None:
    """A successful execution should sum processed counts across invocations."""
    output = json.dumps(
        [{"processedCount": 10, "durationMs": 400}, {"processedCount": 15, "durationMs": 380}]
    )
    client = _FakeStepFunctionsClient(["RUNNING", "RUNNING", "SUCCEEDED"], output)

    result = StepFunctionImportRunner(_job(), fast_config, client=client).run()

    assert result.processed_count == 25
    assert result.execution_arn == _EXECUTION_ARN
    assert client.describe_calls == 3
    submitted = client.started[0]
    assert submitted["stateMachineArn"] == _MACHINE_ARN
    assert JobDescription.from_json(submitted["input"]) == _job()
    assert str(uuid.UUID(submitted["name"])) == submitted["name"]


def test_run_aborts_on_failed_status_without_parsing_output(fast_config: DynaloadConfig) -> None:
    """Terminal statuses other than SUCCEEDED should fail before parsing output."""
    client = _FakeStepFunctionsClient(["RUNNING", "FAILED"], output="not json")

    with pytest.raises(DynaloadRemoteError, match="FAILED") as error_info:
        StepFunctionImportRunner(_job(), fast_config, client=client).run()

    assert error_info.value.__cause__ is None
    assert client.describe_calls == 2


def test_run_logs_failure_with_job_and_execution_context(
    fast_config: DynaloadConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A failed execution should be logged with the table, source and execution ARN."""
    fake_logger = FakeLogger()
    monkeypatch.setattr("remote.step_function._LOGGER", fake_logger)
    client = _FakeStepFunctionsClient(["FAILED"])

    with pytest.raises(DynaloadRemoteError):
        StepFunctionImportRunner(_job(), fast_config, client=client).run()

    assert fake_logger.names("error") == ["remote_import_failed"]
    fields = fake_logger.events[-1][2]
    assert fields["execution_arn"] == _EXECUTION_ARN
    assert fields["state_machine_arn"] == _MACHINE_ARN
    assert (fields["table_name"], fields["source_bucket"], fields["source_key"]) == (
        "orders",
        "staging",
        "orders.csv",
    )
    assert fields["error_type"] == "DynaloadRemoteError"


def test_run_logs_discovery_failure_without_execution(
    fast_config: DynaloadConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A missing state machine should be logged before any execution exists."""
    fake_logger = FakeLogger()
    monkeypatch.setattr("remote.step_function._LOGGER", fake_logger)
    client = _FakeStepFunctionsClient([], machine_names=("other",))

    with pytest.raises(DynaloadRemoteError, match="not found"):
        StepFunctionImportRunner(_job(), fast_config, client=client).run()

    fields = fake_logger.events[-1][2]
    assert fake_logger.names("error") == ["remote_import_failed"]
    assert fields["state_machine_name"] == "dynaload"
    assert "execution_arn" not in fields
    assert client.started == []


def test_run_stops_execution_on_timeout() -> None:
    """Exceeding the polling budget should stop the execution and raise."""
    config = DynaloadConfig(poll_interval_seconds=0.001, poll_timeout_seconds=10)
    client = _FakeStepFunctionsClient(["RUNNING"])
    ticks = iter([0.0, 11.0])

    runner = StepFunctionImportRunner(_job(), config, client=client, clock=lambda: next(ticks))

    with pytest.raises(DynaloadRemoteTimeoutError):
        runner.run()

    assert client.stopped == [{"executionArn": _EXECUTION_ARN, "cause": "polling timeout exceeded"}]


def test_run_observes_cancellation(fast_config: DynaloadConfig) -> None:
    """Setting the cancel event should stop the execution and raise."""
    cancel_event = threading.Event()
    cancel_event.set()
    client = _FakeStepFunctionsClient(["RUNNING"])

    runner = StepFunctionImportRunner(_job(), fast_config, client=client, cancel_event=cancel_event)

    with pytest.raises(DynaloadCancelledError):
        runner.run()

    assert len(client.stopped) == 1


def test_runner_rejects_local_file_jobs(fast_config: DynaloadConfig) -> None:
    """Remote runs need an S3 source."""
    job = JobDescription(
        source=JobSource(input_file="orders.csv"),
        target=JobTarget(region="eu-west-1", table_name="orders"),
    )

    with pytest.raises(DynaloadConfigError):
        StepFunctionImportRunner(job, fast_config, client=_FakeStepFunctionsClient([]))


def test_find_state_machine_arn_requires_a_match() -> None:
    """A missing state machine should fail with deployment guidance."""
    client = _FakeStepFunctionsClient([], machine_names=("other",))

    with pytest.raises(DynaloadRemoteError, match="not found"):
        find_state_machine_arn(client, "dynaload")


def test_find_state_machine_arn_rejects_duplicate_names() -> None:
    """Several machines with the reserved name should fail instead of guessing."""
    client = _FakeStepFunctionsClient([], machine_names=("dynaload", "dynaload"))

    with pytest.raises(DynaloadRemoteError, match="Found 2"):
        find_state_machine_arn(client, "dynaload")


@pytest.mark.parametrize(
    "output",
    ["{}", "not json", '[{"processedCount": "ten"}]', "[1]"],
)
def test_parse_execution_output_rejects_malformed_output(output: str) -> None:
    """Output must be a list of result objects with integer counts."""
    with pytest.raises(DynaloadRemoteError):
        parse_execution_output(output)
