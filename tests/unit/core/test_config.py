"""Unit tests for core config parsing."""

from __future__ import annotations

import pytest

from core.config import DynaloadConfig
from core.errors import DynaloadConfigError


def test_from_env_uses_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fall back to documented defaults when env is unset."""
    for name in (
        "DYNALOAD_AWS_PROFILE",
        "DYNALOAD_QUEUE_CAPACITY",
        "DYNALOAD_POLL_INTERVAL_SECONDS",
        "DYNALOAD_POLL_TIMEOUT_SECONDS",
        "DYNALOAD_STATE_MACHINE_NAME",
    ):
        monkeypatch.delenv(name, raising=False)

    config = DynaloadConfig.from_env()

    assert (config.queue_capacity, config.poll_interval_seconds, config.poll_timeout_seconds) == (
        128,
        5.0,
        None,
    )
    assert config.state_machine_name == "dynaload"


def test_from_env_reads_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should read queue, polling and profile overrides."""
    monkeypatch.setenv("DYNALOAD_AWS_PROFILE", "loader")
    monkeypatch.setenv("DYNALOAD_QUEUE_CAPACITY", "16")
    monkeypatch.setenv("DYNALOAD_POLL_TIMEOUT_SECONDS", "600")

    config = DynaloadConfig.from_env()

    assert config.aws_profile == "loader"
    assert config.queue_capacity == 16
    assert config.poll_timeout_seconds == 600.0


@pytest.mark.parametrize(
    ("env_name", "raw_value"),
    [
        ("DYNALOAD_QUEUE_CAPACITY", "lots"),
        ("DYNALOAD_QUEUE_CAPACITY", "0"),
        ("DYNALOAD_POLL_INTERVAL_SECONDS", "-1"),
        ("DYNALOAD_MAX_WRITE_ATTEMPTS", "1.5"),
    ],
)
def test_from_env_raises_for_invalid_values(
    monkeypatch: pytest.MonkeyPatch, env_name: str, raw_value: str
) -> None:
    """Config should reject non-numeric and non-positive values."""
    monkeypatch.setenv(env_name, raw_value)

    with pytest.raises(DynaloadConfigError, match=env_name):
        DynaloadConfig.from_env()
