"""Shared pytest fixtures for backfill tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from rich.console import Console

from backfill.config.settings import RunnerConfig
from tests.fakes import FakeDispatcher, RecordingStore, make_config


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def console() -> Console:
    """Console that records output instead of writing to the terminal."""
    return Console(record=True, width=120, force_terminal=False)


@pytest.fixture
def runner_config(tmp_path: Path) -> RunnerConfig:
    return make_config(tmp_path)


@pytest.fixture
def store(tmp_path: Path) -> RecordingStore:
    return RecordingStore(tmp_path / "progress.json")


@pytest.fixture
def fake_dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


