# src/taskgrid/core/workspace.py

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, time, timedelta
from typing import TYPE_CHECKING

from ..tasks.task_models import Task, Workspace, parse_local_date
from ..tasks.task_store import Preferences

if TYPE_CHECKING:
    from .state import AppState

logger = logging.getLogger(__name__)

PREF_WORKSPACE = "workspace"


class WorkspaceSelector:
    """Active workspace tag, persisted across sessions in Preferences."""

    def __init__(self, prefs: Preferences, default: Workspace = Workspace.PERSONAL) -> None:
        self._prefs = prefs
        self._default = default
        raw = prefs.get(PREF_WORKSPACE)
        self._current = Workspace.from_db(raw, default)
        if raw is not None and raw != self._current.value:
            # Legacy tab name saved by an older version.
            prefs.set(PREF_WORKSPACE, self._current.value)

    @property
    def current(self) -> Workspace:
        return self._current

    def switch(self, workspace: Workspace | str) -> Workspace:
        ws = workspace if isinstance(workspace, Workspace) else Workspace.parse(workspace)
        if ws != self._current:
            logger.info("Workspace %s -> %s", self._current.value, ws.value)
        self._current = ws
        self._prefs.set(PREF_WORKSPACE, ws.value)
        return ws


def sweep_old_tasks(
    tasks: Iterable[Task],
    *,
    now: datetime,
    retention_days: int = 365,
) -> tuple[list[Task], int]:
    """
    Drop tasks whose date (taken at local midnight) is older than now - retention_days.

    Tasks with an unparsable date are kept. Returns (kept, removed_count).
    """
    cutoff = now - timedelta(days=retention_days)
    kept: list[Task] = []
    removed = 0
    for t in tasks:
        d = parse_local_date(t.date)
        if d is None or datetime.combine(d, time.min) >= cutoff:
            kept.append(t)
        else:
            removed += 1
    return kept, removed


def run_retention(state: AppState, *, now: datetime | None = None) -> int:
    """Load, sweep and re-persist only when something was actually removed."""
    now = now or datetime.now()
    tasks = state.store.load()
    kept, removed = sweep_old_tasks(
        tasks,
        now=now,
        retention_days=int(getattr(state.settings, "retention_days", 365)),
    )
    if removed:
        state.store.save(kept)
        logger.info("Retention sweep removed %d task(s) older than %s days", removed, state.settings.retention_days)
    return removed
