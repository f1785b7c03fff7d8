# tests/test_task_api.py

from __future__ import annotations

import pytest

from taskgrid.tasks import task_api
from taskgrid.tasks.task_models import Workspace

DAY = "2026-11-16"


def test_add_rejects_empty_title_without_writing(state) -> None:
    with pytest.raises(ValueError):
        task_api.add_task(state, "   ", date=DAY)
    assert not state.store.path.exists()


def test_add_rejects_bad_date(state) -> None:
    with pytest.raises(ValueError):
        task_api.add_task(state, "x", date="tomorrow")


def test_new_tasks_come_first(state) -> None:
    task_api.add_task(state, "older", date=DAY)
    task_api.add_task(state, "newer", date=DAY)
    assert [t.title for t in task_api.visible_tasks(state, date=DAY)] == ["newer", "older"]


def test_add_uses_selected_date_and_workspace(state) -> None:
    state.select_date(DAY)
    state.workspace_selector.switch(Workspace.WORK)
    t = task_api.add_task(state, "  Ship release  ")
    assert (t.title, t.date, t.workspace) == ("Ship release", DAY, Workspace.WORK)


def test_toggle_bumps_last_modified(state) -> None:
    t = task_api.add_task(state, "x", date=DAY)
    t.last_modified = "2000-01-01T00:00:00.000Z"
    state.store.save([t])

    toggled = task_api.toggle_completed(state, t.id)
    assert toggled is not None and toggled.completed is True
    assert toggled.last_modified != "2000-01-01T00:00:00.000Z"
    assert task_api.toggle_completed(state, "missing") is None


def test_edit_renames_and_empty_edit_deletes(state) -> None:
    t = task_api.add_task(state, "draft", date=DAY)

    renamed = task_api.edit_title(state, t.id, " final ")
    assert renamed is not None and renamed.title == "final"

    assert task_api.edit_title(state, t.id, "  ") is None
    assert state.store.load() == []
    assert task_api.edit_title(state, t.id, "again") is None


def test_delete(state) -> None:
    t = task_api.add_task(state, "x", date=DAY)
    assert task_api.delete_task(state, t.id) is True
    assert task_api.delete_task(state, t.id) is False


def test_filters(state) -> None:
    state.select_date(DAY)
    a = task_api.add_task(state, "a")
    task_api.add_task(state, "b")
    task_api.toggle_completed(state, a.id)

    assert [t.title for t in task_api.visible_tasks(state, filter="active")] == ["b"]
    assert [t.title for t in task_api.visible_tasks(state, filter="completed")] == ["a"]
    assert len(task_api.visible_tasks(state, filter="all")) == 2


def test_clear_completed_is_scoped_to_workspace_and_date(state) -> None:
    mine = task_api.add_task(state, "mine", date=DAY, workspace=Workspace.PERSONAL)
    other_day = task_api.add_task(state, "later", date="2026-11-17", workspace=Workspace.PERSONAL)
    work = task_api.add_task(state, "work", date=DAY, workspace=Workspace.WORK)
    for t in (mine, other_day, work):
        task_api.toggle_completed(state, t.id)

    assert task_api.clear_completed(state, date=DAY, workspace=Workspace.PERSONAL) == 1
    assert sorted(t.title for t in state.store.load()) == ["later", "work"]
    assert task_api.clear_completed(state, date=DAY, workspace=Workspace.PERSONAL) == 0
