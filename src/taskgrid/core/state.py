# src/taskgrid/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Any

from ..tasks.task_models import Workspace, local_iso, parse_local_date
from ..tasks.task_store import Preferences, TaskStore, TemplateStore
from .events import ChangeChannel
from .workspace import WorkspaceSelector

if TYPE_CHECKING:
    from ..sync.coordinator import SyncCoordinator
    from ..sync.remote import AuthClient

PREF_DATE = "date"
PREF_VIEW = "view"

VIEWS = ("tasks", "calendar")


@dataclass
class AppState:
    """
    Session context handed to every component.

    Holds the active workspace and date and owns the local stores; nothing in
    the app reads these from module globals.
    """

    settings: Any

    store: TaskStore
    templates: TemplateStore
    prefs: Preferences
    workspace_selector: WorkspaceSelector
    channel: ChangeChannel

    sync: SyncCoordinator | None = None
    auth: AuthClient | None = None

    selected_date: str = field(default_factory=lambda: local_iso(date.today()))
    view: str = "tasks"
    filter: str = "all"

    @property
    def workspace(self) -> Workspace:
        return self.workspace_selector.current

    def select_date(self, value: date | str) -> str:
        d = parse_local_date(value)
        if d is None:
            raise ValueError(f"not a YYYY-MM-DD date: {value!r}")
        self.selected_date = local_iso(d)
        self.prefs.set(PREF_DATE, self.selected_date)
        return self.selected_date

    def set_view(self, view: str) -> str:
        if view not in VIEWS:
            raise ValueError(f"unknown view: {view!r}")
        self.view = view
        self.prefs.set(PREF_VIEW, view)
        return view
