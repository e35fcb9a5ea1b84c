"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture
def fast_config():
    """Config with a small queue and near-instant polling."""
    from core.config import DynaloadConfig

    return DynaloadConfig(
        queue_capacity=2,
        progress_interval_batches=1,
        poll_interval_seconds=0.001,
        max_write_attempts=3,
    )
