# src/taskgrid/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The sync coordinator depends on Protocols instead of the concrete HTTP clients.
This keeps the remote swappable and makes testing easier.
"""

from collections.abc import Sequence
from typing import Any, Protocol

TaskPayload = dict[str, Any]
# Wire shape: {"id", "title", "completed", "date", "createdAt", "lastModified", "workspace"}.


class RemoteTaskStore(Protocol):
    """Authoritative remote task collection (CRUD + atomic bulk replace)."""

    async def ping(self) -> bool: ...

    async def list_tasks(self, date: str | None = None) -> list[TaskPayload]: ...

    async def upsert_task(self, task: TaskPayload) -> TaskPayload: ...

    async def update_task(self, task_id: str, fields: TaskPayload) -> TaskPayload: ...

    async def delete_task(self, task_id: str) -> None: ...

    async def sync_all(self, tasks: Sequence[TaskPayload]) -> None: ...


class TokenSource(Protocol):
    """Where the bearer token for protected remote calls comes from."""

    def get_token(self) -> str | None: ...
