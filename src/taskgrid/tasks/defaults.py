# src/taskgrid/tasks/defaults.py

from __future__ import annotations

"""
Recurring default engine.

Weekly templates ("every Monday: Standup, in work") are materialized into
concrete dated tasks the first time a date becomes visible. Materialization is
bounded by a date window so scrolling a calendar across many months does not
backfill the past or fill the far future:

    lower = <min_month>/<min_day> of the current year   (default: November 1)
    upper = today + <max_days_ahead> days              (default: 30)

Both bounds are inclusive. Within the window it is idempotent: a template never
produces two tasks with the same (workspace, date, title), so it is safe to
call on every render of a date cell.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from typing import TYPE_CHECKING

from .task_models import DefaultTemplate, Task, Workspace, new_id, parse_local_date, sunday_weekday

if TYPE_CHECKING:
    from ..core.state import AppState

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class MaterializationWindow:
    min_month: int = 11
    min_day: int = 1
    max_days_ahead: int = 30

    @classmethod
    def from_settings(cls, settings: object) -> MaterializationWindow:
        return cls(
            min_month=int(getattr(settings, "defaults_min_month", 11)),
            min_day=int(getattr(settings, "defaults_min_day", 1)),
            max_days_ahead=int(getattr(settings, "defaults_max_days_ahead", 30)),
        )

    def bounds(self, today: date) -> tuple[date, date]:
        lower = date(today.year, self.min_month, self.min_day)
        upper = today + timedelta(days=self.max_days_ahead)
        return lower, upper

    def contains(self, d: date, today: date) -> bool:
        lower, upper = self.bounds(today)
        return lower <= d <= upper


def materialize(
    tasks: list[Task],
    templates: Iterable[DefaultTemplate],
    date_str: str,
    workspace: Workspace,
    *,
    window: MaterializationWindow,
    today: date,
) -> list[Task]:
    """
    Insert missing template instances for (date_str, workspace) into `tasks`.

    New tasks are prepended, as user-created ones are. Existing entries are never
    touched. Returns the created tasks (empty when nothing was due).
    """
    d = parse_local_date(date_str)
    if d is None:
        return []
    if not window.contains(d, today):
        return []

    wd = sunday_weekday(d)
    existing = {t.title for t in tasks if t.workspace == workspace and t.date == date_str}
    created: list[Task] = []

    for tpl in templates:
        if tpl.weekday != wd or tpl.workspace != workspace:
            continue
        if tpl.title in existing:
            continue
        task = Task.create(title=tpl.title, date=date_str, workspace=workspace)
        tasks.insert(0, task)
        existing.add(task.title)
        created.append(task)

    return created


def apply_defaults(
    state: AppState,
    date_str: str,
    workspace: Workspace | None = None,
    *,
    today: date | None = None,
) -> bool:
    """
    Materialize templates for one date. Persists (and thereby pushes) only when
    something was created. Returns whether any task was created.
    """
    ws = workspace or state.workspace
    tasks = state.store.load()
    created = materialize(
        tasks,
        state.templates.load(),
        date_str,
        ws,
        window=MaterializationWindow.from_settings(state.settings),
        today=today or date.today(),
    )
    if not created:
        return False
    state.store.save(tasks)
    logger.info("Materialized %d default task(s) for %s ws=%s", len(created), date_str, ws.value)
    return True


# ---- template management ----


def list_templates(state: AppState, workspace: Workspace | None = None) -> list[DefaultTemplate]:
    items = state.templates.load()
    if workspace is None:
        return items
    return [t for t in items if t.workspace == workspace]


def add_template(
    state: AppState,
    weekday: int,
    title: str,
    workspace: Workspace | None = None,
) -> DefaultTemplate:
    title = (title or "").strip()
    if not title:
        raise ValueError("title is required")
    if not 0 <= int(weekday) <= 6:
        raise ValueError("weekday must be 0 (Sunday) .. 6 (Saturday)")

    tpl = DefaultTemplate(
        id=new_id(),
        weekday=int(weekday),
        title=title,
        workspace=workspace or state.workspace,
    )
    items = state.templates.load()
    items.append(tpl)
    state.templates.save(items)
    logger.info("Template added id=%s weekday=%s ws=%s", tpl.id, tpl.weekday, tpl.workspace.value)
    return tpl


def remove_template(state: AppState, template_id: str) -> bool:
    """Removing a template never touches tasks it already produced."""
    items = state.templates.load()
    kept = [t for t in items if t.id != template_id]
    if len(kept) == len(items):
        return False
    state.templates.save(kept)
    return True
