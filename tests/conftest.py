# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskgrid.cli.bootstrap import create_initial_state
from taskgrid.core.state import AppState

from .fakes import FakeRemote


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    A SimpleNamespace instead of config.Settings: no env or .env reads in unit tests,
    and tests may tweak policy fields in place.
    """
    return SimpleNamespace(
        app_name="taskgrid-test",
        log_level="DEBUG",
        # Paths (tmp per test run)
        data_dir=tmp_path,
        tasks_path=tmp_path / "tasks.json",
        templates_path=tmp_path / "templates.json",
        prefs_path=tmp_path / "prefs.json",
        # Remote is injected per test as a fake
        remote_enabled=False,
        remote_base_url="http://remote.test/api",
        remote_timeout_seconds=None,
        # Policy (production defaults)
        default_workspace="personal",
        retention_days=365,
        defaults_min_month=11,
        defaults_min_day=1,
        defaults_max_days_ahead=30,
        watch_interval_seconds=0.01,
    )


@pytest.fixture()
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture()
def state(settings: SimpleNamespace, remote: FakeRemote) -> AppState:
    """
    AppState wired with an in-memory remote.

    NOTE: the local stores are real JSON files under tmp_path, because their
    persistence behavior is part of what we want to test.
    """
    return create_initial_state(settings=settings, remote=remote)
