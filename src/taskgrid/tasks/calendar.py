# src/taskgrid/tasks/calendar.py

from __future__ import annotations

"""
Calendar aggregator.

Read-only view over the task store: per-date counts and a 0..4 "heat level"
used to color a calendar cell or a week-strip tab. Every call re-reads the
store, because materialization and sync may have just rewritten it.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import TYPE_CHECKING

from .defaults import apply_defaults
from .task_models import Task, Workspace, local_iso, sunday_weekday
from .task_store import TaskStore, tasks_for

if TYPE_CHECKING:
    from ..core.state import AppState


def heat_for_counts(count: int, completed: int) -> int:
    """
    Map a completion ratio to a heat level.

    Thresholds are inclusive upper bounds checked in ascending order:
    0 tasks -> 0; ratio <= .25 -> 1; <= .5 -> 2; <= .75 -> 3; otherwise 4.
    """
    if count <= 0:
        return 0
    ratio = completed / count
    if ratio == 0:
        return 1
    if ratio <= 0.25:
        return 1
    if ratio <= 0.5:
        return 2
    if ratio <= 0.75:
        return 3
    return 4


def _day_rows(store: TaskStore, workspace: Workspace, day: str) -> list[Task]:
    return tasks_for(store.load(), workspace, day)


def count_for(store: TaskStore, workspace: Workspace, day: str) -> int:
    return len(_day_rows(store, workspace, day))


def completed_count_for(store: TaskStore, workspace: Workspace, day: str) -> int:
    return sum(1 for t in _day_rows(store, workspace, day) if t.completed)


def heat_level(store: TaskStore, workspace: Workspace, day: str) -> int:
    rows = _day_rows(store, workspace, day)
    return heat_for_counts(len(rows), sum(1 for t in rows if t.completed))


@dataclass(slots=True, frozen=True)
class DayCell:
    date: str
    day: int
    count: int
    completed: int
    heat: int
    is_today: bool
    is_selected: bool
    other_month: bool = False


def _cell(state: AppState, d: date, *, today: date, other_month: bool = False) -> DayCell:
    iso = local_iso(d)
    # Make sure the template instances for this date exist before counting.
    apply_defaults(state, iso, today=today)
    rows = _day_rows(state.store, state.workspace, iso)
    done = sum(1 for t in rows if t.completed)
    return DayCell(
        date=iso,
        day=d.day,
        count=len(rows),
        completed=done,
        heat=heat_for_counts(len(rows), done),
        is_today=d == today,
        is_selected=iso == state.selected_date,
        other_month=other_month,
    )


def month_grid(state: AppState, year: int, month: int, *, today: date | None = None) -> list[DayCell]:
    """
    Sunday-first grid for one month: from the Sunday on/before the 1st to the
    Saturday on/after the last day, so it always holds whole weeks.
    """
    today = today or date.today()
    first = date(year, month, 1)
    last = date(year + (month == 12), month % 12 + 1, 1) - timedelta(days=1)
    d = week_start(first)
    end = last + timedelta(days=6 - sunday_weekday(last))
    cells: list[DayCell] = []
    while d <= end:
        cells.append(_cell(state, d, today=today, other_month=d.month != month))
        d += timedelta(days=1)
    return cells


def week_strip(state: AppState, start: date, *, today: date | None = None) -> list[DayCell]:
    """Seven consecutive day tabs starting at `start`."""
    today = today or date.today()
    return [_cell(state, start + timedelta(days=i), today=today) for i in range(7)]


def week_start(d: date) -> date:
    """Sunday on or before `d`."""
    return d - timedelta(days=sunday_weekday(d))
