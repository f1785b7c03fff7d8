# src/taskgrid/tasks/task_api.py

from __future__ import annotations

import logging

from ..core.state import AppState
from .task_models import Task, Workspace, parse_local_date
from .task_store import tasks_for

logger = logging.getLogger(__name__)

FILTERS = ("all", "active", "completed")


def visible_tasks(
    state: AppState,
    *,
    date: str | None = None,
    workspace: Workspace | None = None,
    filter: str | None = None,
) -> list[Task]:
    """
    Tasks shown in the list for the active (or given) workspace and date.

    Always re-reads the store: a sync or another process may have just changed it.
    """
    ws = workspace or state.workspace
    day = date or state.selected_date
    flt = filter or state.filter
    rows = tasks_for(state.store.load(), ws, day)
    if flt == "active":
        return [t for t in rows if not t.completed]
    if flt == "completed":
        return [t for t in rows if t.completed]
    return rows


def add_task(
    state: AppState,
    title: str,
    *,
    date: str | None = None,
    workspace: Workspace | None = None,
) -> Task:
    """
    Create a task on the selected date. Empty titles are rejected before any write.
    New tasks go first (most-recent-first order).
    """
    day = date or state.selected_date
    if parse_local_date(day) is None:
        raise ValueError(f"not a YYYY-MM-DD date: {day!r}")
    task = Task.create(title=title, date=day, workspace=workspace or state.workspace)

    tasks = state.store.load()
    tasks.insert(0, task)
    state.store.save(tasks)
    logger.debug("Task added id=%s ws=%s date=%s", task.id, task.workspace.value, task.date)
    return task


def toggle_completed(state: AppState, task_id: str) -> Task | None:
    tasks = state.store.load()
    for t in tasks:
        if t.id == task_id:
            t.completed = not t.completed
            t.touch()
            state.store.save(tasks)
            return t
    return None


def edit_title(state: AppState, task_id: str, title: str) -> Task | None:
    """
    Rename a task. An empty title deletes it instead.

    Returns the edited task, or None when it was deleted or does not exist.
    """
    tasks = state.store.load()
    target = next((t for t in tasks if t.id == task_id), None)
    if target is None:
        return None

    new_title = (title or "").strip()
    if not new_title:
        state.store.save([t for t in tasks if t.id != task_id])
        logger.debug("Task %s deleted by empty edit", task_id)
        return None

    target.title = new_title
    target.touch()
    state.store.save(tasks)
    return target


def delete_task(state: AppState, task_id: str) -> bool:
    tasks = state.store.load()
    kept = [t for t in tasks if t.id != task_id]
    if len(kept) == len(tasks):
        return False
    state.store.save(kept)
    return True


def clear_completed(
    state: AppState,
    *,
    date: str | None = None,
    workspace: Workspace | None = None,
) -> int:
    """Remove completed tasks of one workspace on one date. Returns how many were removed."""
    ws = workspace or state.workspace
    day = date or state.selected_date
    tasks = state.store.load()
    kept = [t for t in tasks if not (t.workspace == ws and t.date == day and t.completed)]
    removed = len(tasks) - len(kept)
    if removed:
        state.store.save(kept)
    return removed
