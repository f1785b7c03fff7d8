# tests/test_workspace.py

from __future__ import annotations

from datetime import date, datetime, timedelta
from pathlib import Path

import pytest

from taskgrid.core.workspace import WorkspaceSelector, run_retention, sweep_old_tasks
from taskgrid.tasks.task_models import Task, Workspace
from taskgrid.tasks.task_store import Preferences

NOW = datetime(2026, 10, 17, 12, 0)


def _task(title: str, day: str) -> Task:
    return Task.create(title=title, date=day, workspace=Workspace.PERSONAL)


def _days_ago(n: int) -> str:
    return (NOW.date() - timedelta(days=n)).isoformat()


def test_retention_sweep_boundaries() -> None:
    tasks = [
        _task("old", _days_ago(366)),
        _task("recent", _days_ago(364)),
        _task("broken", "someday"),
        _task("future", "2027-01-01"),
    ]
    kept, removed = sweep_old_tasks(tasks, now=NOW, retention_days=365)
    assert removed == 1
    assert [t.title for t in kept] == ["recent", "broken", "future"]


def test_run_retention_persists_only_when_something_was_removed(state) -> None:
    state.store.save([_task("recent", _days_ago(10))])
    before = state.store.path.stat().st_mtime_ns

    assert run_retention(state, now=NOW) == 0
    assert state.store.path.stat().st_mtime_ns == before

    state.store.save([_task("old", _days_ago(400)), _task("recent", _days_ago(10))])
    assert run_retention(state, now=NOW) == 1
    assert [t.title for t in state.store.load()] == ["recent"]


def test_selector_persists_across_sessions(tmp_path: Path) -> None:
    prefs = Preferences(tmp_path / "prefs.json")
    sel = WorkspaceSelector(prefs)
    assert sel.current is Workspace.PERSONAL

    sel.switch("work")
    assert WorkspaceSelector(Preferences(tmp_path / "prefs.json")).current is Workspace.WORK


def test_selector_migrates_legacy_saved_tab(tmp_path: Path) -> None:
    prefs = Preferences(tmp_path / "prefs.json")
    prefs.set("workspace", "nishu")
    sel = WorkspaceSelector(prefs)
    assert sel.current is Workspace.WORK
    assert prefs.get("workspace") == "work"

    assert sel.switch("gaurav") is Workspace.PERSONAL
    with pytest.raises(ValueError):
        sel.switch("admin")


def test_select_date_validates_and_persists(state) -> None:
    assert state.select_date(date(2026, 11, 3)) == "2026-11-03"
    assert state.prefs.get("date") == "2026-11-03"
    with pytest.raises(ValueError):
        state.select_date("next tuesday")
