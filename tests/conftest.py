"""Pytest configuration for test isolation.

The CLI reads connection settings from the environment and from a ``.env``
file in the current working directory, and configures the package logger once
per process. To keep tests hermetic we run every test from its own temporary
directory with the Firefly variables unset, and undo any logging configuration
afterwards so ``caplog`` keeps seeing package records.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from firefly_importer.logging_setup import reset_logging


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.chdir(tmp_path)
    for var in ("FIREFLY_URL", "FIREFLY_TOKEN", "FIREFLY_IMPORTER_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    yield
    reset_logging()


@pytest.fixture
def sample_statement() -> Path:
    """Path to a realistic Piraeus export covering every merge rule."""

    return Path(__file__).resolve().parent / "data" / "piraeus_march_2025.tsv"
