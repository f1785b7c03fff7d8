# src/taskgrid/tasks/task_models.py

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import StrEnum
from typing import Any

_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

WEEKDAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


class Workspace(StrEnum):
    """
    Named partition of tasks.

    Notes:
    - "gaurav" / "nishu" are the historical tab names; they map onto the current tags.
    """

    PERSONAL = "personal"
    WORK = "work"

    @classmethod
    def from_db(cls, raw: Any, default: Workspace | None = None) -> Workspace:
        fallback = default or cls.PERSONAL
        if not raw or not isinstance(raw, str):
            return fallback
        key = raw.strip().lower()
        key = LEGACY_WORKSPACE_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            return fallback

    @classmethod
    def parse(cls, raw: str) -> Workspace:
        """Strict variant for user input: unknown names raise ValueError."""
        key = (raw or "").strip().lower()
        key = LEGACY_WORKSPACE_ALIASES.get(key, key)
        return cls(key)


LEGACY_WORKSPACE_ALIASES: dict[str, str] = {
    "gaurav": Workspace.PERSONAL.value,
    "nishu": Workspace.WORK.value,
}


def parse_local_date(raw: Any) -> date | None:
    """Parse YYYY-MM-DD as a local calendar date. Anything else -> None."""
    if isinstance(raw, date) and not isinstance(raw, datetime):
        return raw
    if not isinstance(raw, str):
        return None
    m = _ISO_DATE_RE.match(raw.strip())
    if not m:
        return None
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return None


def local_iso(d: date) -> str:
    return d.isoformat()


def sunday_weekday(d: date) -> int:
    """Day of week with 0=Sunday..6=Saturday."""
    return (d.weekday() + 1) % 7


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass(slots=True)
class Task:
    id: str
    title: str
    completed: bool
    date: str
    workspace: Workspace
    created_at: str
    last_modified: str

    @classmethod
    def create(cls, *, title: str, date: str, workspace: Workspace) -> Task:
        title = (title or "").strip()
        if not title:
            raise ValueError("title is required")
        ts = now_iso()
        return cls(
            id=new_id(),
            title=title,
            completed=False,
            date=date,
            workspace=workspace,
            created_at=ts,
            last_modified=ts,
        )

    @classmethod
    def from_dict(cls, raw: dict[str, Any], *, default_workspace: Workspace = Workspace.PERSONAL) -> Task:
        """
        Decode a persisted or remote row.

        Tolerant of the remote store's shape: completed may be 0/1,
        the workspace may be missing or stored under the legacy "tab" key.
        """
        ws_raw = raw.get("workspace", raw.get("tab"))
        created = str(raw.get("createdAt") or "")
        return cls(
            id=str(raw.get("id") or new_id()),
            title=str(raw.get("title") or ""),
            completed=bool(raw.get("completed")),
            date=str(raw.get("date") or ""),
            workspace=Workspace.from_db(ws_raw, default_workspace),
            created_at=created,
            last_modified=str(raw.get("lastModified") or created),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "completed": self.completed,
            "date": self.date,
            "workspace": self.workspace.value,
            "createdAt": self.created_at,
            "lastModified": self.last_modified,
        }

    def touch(self) -> None:
        self.last_modified = now_iso()


@dataclass(slots=True, frozen=True)
class DefaultTemplate:
    """Recurring weekly rule: on <weekday> create <title> in <workspace>."""

    id: str
    weekday: int
    title: str
    workspace: Workspace

    @classmethod
    def from_dict(
        cls,
        raw: dict[str, Any],
        *,
        default_workspace: Workspace = Workspace.PERSONAL,
    ) -> DefaultTemplate | None:
        try:
            weekday = int(raw.get("weekday"))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        title = str(raw.get("title") or "").strip()
        if not title or not 0 <= weekday <= 6:
            return None
        return cls(
            id=str(raw.get("id") or new_id()),
            weekday=weekday,
            title=title,
            workspace=Workspace.from_db(raw.get("workspace", raw.get("tab")), default_workspace),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "weekday": self.weekday,
            "title": self.title,
            "workspace": self.workspace.value,
        }
