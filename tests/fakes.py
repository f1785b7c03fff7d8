# tests/fakes.py

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import httpx


@dataclass(slots=True)
class FakeRemote:
    """
    In-memory RemoteTaskStore used by sync tests.

    - Captures every bulk replace for assertions
    - Can be switched offline or made to reject pushes
    """

    tasks: list[dict[str, Any]] = field(default_factory=list)
    online: bool = True
    fail_list: bool = False
    fail_sync: bool = False
    sync_calls: list[list[dict[str, Any]]] = field(default_factory=list)

    async def ping(self) -> bool:
        if not self.online:
            raise httpx.ConnectError("remote down")
        return True

    async def list_tasks(self, date: str | None = None) -> list[dict[str, Any]]:
        if self.fail_list:
            raise httpx.ReadTimeout("slow remote")
        rows = [dict(t) for t in self.tasks]
        if date:
            rows = [r for r in rows if r.get("date") == date]
        return rows

    async def upsert_task(self, task: dict[str, Any]) -> dict[str, Any]:
        self.tasks = [t for t in self.tasks if t.get("id") != task.get("id")] + [dict(task)]
        return dict(task)

    async def update_task(self, task_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        for t in self.tasks:
            if t.get("id") == task_id:
                t.update(fields)
                return dict(t)
        return {}

    async def delete_task(self, task_id: str) -> None:
        self.tasks = [t for t in self.tasks if t.get("id") != task_id]

    async def sync_all(self, tasks: Sequence[dict[str, Any]]) -> None:
        self.sync_calls.append([dict(t) for t in tasks])
        if self.fail_sync:
            raise httpx.HTTPStatusError(
                "401 unauthenticated",
                request=httpx.Request("POST", "http://remote/sync"),
                response=httpx.Response(401),
            )
        self.tasks = [dict(t) for t in tasks]


def remote_row(
    task_id: str,
    title: str,
    day: str,
    *,
    completed: int = 0,
    **extra: Any,
) -> dict[str, Any]:
    """A row shaped like the remote store returns it (no workspace column, 0/1 flags)."""
    row: dict[str, Any] = {
        "id": task_id,
        "title": title,
        "completed": completed,
        "date": day,
        "createdAt": "2026-11-01T08:00:00.000Z",
        "lastModified": "2026-11-01T08:00:00.000Z",
    }
    row.update(extra)
    return row
