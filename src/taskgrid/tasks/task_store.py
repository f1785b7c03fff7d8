# src/taskgrid/tasks/task_store.py

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable
from datetime import date
from pathlib import Path
from typing import Any

from ..core.events import TOPIC_TASKS, TOPIC_TEMPLATES, ChangeChannel, ChangeEvent
from .task_models import DefaultTemplate, Task, Workspace, local_iso

logger = logging.getLogger(__name__)


class JsonDocument:
    """
    One JSON value persisted in one file.

    - read() never raises: missing or corrupt file -> the provided default
    - write() is atomic (tmp file + os.replace)
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def read(self, default: Any) -> Any:
        if not self.path.exists():
            return default
        try:
            return json.loads(self.path.read_text("utf-8"))
        except (OSError, ValueError):
            logger.warning("Unreadable JSON at %s; using empty value.", self.path)
            return default

    def write(self, value: Any) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(value, ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp, self.path)

    def mtime(self) -> float | None:
        try:
            return self.path.stat().st_mtime
        except OSError:
            return None


def normalize_tasks(
    tasks: Iterable[Task],
    *,
    default_workspace: Workspace,
    today: date | None = None,
) -> bool:
    """
    Normalize legacy rows in place. Returns True if anything changed.

    Workspace aliases are already mapped while decoding; here we backfill
    rows that predate per-date tasks (no date -> today) and missing timestamps.
    Running it twice is a no-op.
    """
    changed = False
    today_s = local_iso(today or date.today())
    for t in tasks:
        if not t.date:
            t.date = today_s
            changed = True
        if not t.last_modified and t.created_at:
            t.last_modified = t.created_at
            changed = True
        if not isinstance(t.workspace, Workspace):
            t.workspace = Workspace.from_db(t.workspace, default_workspace)
            changed = True
    return changed


def _raw_needs_rewrite(raw: Any) -> bool:
    """True when a persisted row uses a legacy or missing workspace tag."""
    if not isinstance(raw, dict):
        return True
    ws = raw.get("workspace", raw.get("tab"))
    return "workspace" not in raw or ws not in {w.value for w in Workspace}


class TaskStore:
    """
    Local task store: the full task collection in one JSON file.

    Every mutation in the app is read-modify-write-save against the full
    collection; there is no per-record update.
    """

    def __init__(
        self,
        path: str | Path = "tasks.json",
        *,
        channel: ChangeChannel | None = None,
        default_workspace: Workspace = Workspace.PERSONAL,
    ) -> None:
        self._doc = JsonDocument(path)
        self._doc.path.parent.mkdir(parents=True, exist_ok=True)
        self.channel = channel
        self.default_workspace = default_workspace

    @property
    def path(self) -> Path:
        return self._doc.path

    def _decode(self, data: Any) -> list[Task]:
        if not isinstance(data, list):
            if data:
                logger.warning("Task file %s does not hold a list; ignoring it.", self.path)
            return []
        out: list[Task] = []
        for row in data:
            if not isinstance(row, dict):
                continue
            out.append(Task.from_dict(row, default_workspace=self.default_workspace))
        return out

    # ---- public API ----

    def load(self) -> list[Task]:
        return self._decode(self._doc.read([]))

    def load_normalized(self, *, today: date | None = None) -> list[Task]:
        """Load, migrate legacy rows and re-persist only if migration changed something."""
        raw = self._doc.read([])
        tasks = self._decode(raw)
        changed = isinstance(raw, list) and any(_raw_needs_rewrite(r) for r in raw)
        changed = normalize_tasks(tasks, default_workspace=self.default_workspace, today=today) or changed
        if changed:
            logger.info("Migrated legacy task rows in %s", self.path)
            self.save(tasks)
        return tasks

    def save(self, tasks: Iterable[Task], *, notify: bool = True) -> None:
        items = list(tasks)
        self._doc.write([t.to_dict() for t in items])
        logger.debug("Saved %d tasks to %s", len(items), self.path)
        if notify and self.channel is not None:
            self.channel.publish(ChangeEvent(TOPIC_TASKS, items))

    def count_tasks(self) -> int:
        return len(self.load())


def tasks_for(tasks: Iterable[Task], workspace: Workspace, date: str | None = None) -> list[Task]:
    """Tasks of one workspace, optionally restricted to one date."""
    return [t for t in tasks if t.workspace == workspace and (date is None or t.date == date)]


class TemplateStore:
    """Recurring weekly templates, persisted separately from tasks."""

    def __init__(
        self,
        path: str | Path = "templates.json",
        *,
        channel: ChangeChannel | None = None,
        default_workspace: Workspace = Workspace.PERSONAL,
    ) -> None:
        self._doc = JsonDocument(path)
        self.channel = channel
        self.default_workspace = default_workspace
        # mtime after our own last write; the file watcher ignores it.
        self.last_written_mtime: float | None = None

    @property
    def path(self) -> Path:
        return self._doc.path

    def mtime(self) -> float | None:
        return self._doc.mtime()

    def load(self) -> list[DefaultTemplate]:
        data = self._doc.read([])
        if not isinstance(data, list):
            return []
        out: list[DefaultTemplate] = []
        for row in data:
            if not isinstance(row, dict):
                continue
            tpl = DefaultTemplate.from_dict(row, default_workspace=self.default_workspace)
            if tpl is not None:
                out.append(tpl)
        return out

    def save(self, templates: Iterable[DefaultTemplate]) -> None:
        items = list(templates)
        self._doc.write([t.to_dict() for t in items])
        self.last_written_mtime = self._doc.mtime()
        if self.channel is not None:
            self.channel.publish(ChangeEvent(TOPIC_TEMPLATES, items))


class Preferences:
    """Scalar preferences (active workspace, view, date, auth token)."""

    def __init__(self, path: str | Path = "prefs.json") -> None:
        self._doc = JsonDocument(path)

    def _all(self) -> dict[str, Any]:
        data = self._doc.read({})
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._all().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._all()
        data[key] = value
        self._doc.write(data)

    def delete(self, key: str) -> None:
        data = self._all()
        if key in data:
            del data[key]
            self._doc.write(data)
