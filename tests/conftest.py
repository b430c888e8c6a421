"""Shared test fixtures."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from logsieve.models import AppConfig
from logsieve.store import FilterStore

if TYPE_CHECKING:
    from pathlib import Path

SAMPLE_LINES = [
    "2024-01-15 10:30:00 INFO Server started on port 8080",
    "2024-01-15 10:30:01 DEBUG Loading configuration",
    "2024-01-15 10:30:02 ERROR Failed to connect to database",
    "2024-01-15 10:30:03 WARN Retrying connection (attempt 2)",
    "2024-01-15 10:30:04 ERROR Timeout while connecting",
    "2024-01-15 10:30:05 INFO Connection established",
    "2024-01-15 10:30:06 debug heartbeat ok",
    "2024-01-15 10:30:07 INFO Request GET /api/health 200",
]


@pytest.fixture
def sample_log_file(tmp_path: Path) -> Path:
    """Create a temporary log file with sample content."""
    log_file = tmp_path / "app.log"
    log_file.write_text("\n".join(SAMPLE_LINES) + "\n")
    return log_file


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    out = tmp_path / "out"
    out.mkdir()
    return out


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(count_debounce_seconds=0.05)


@pytest.fixture
def store() -> FilterStore:
    return FilterStore()
