# src/taskgrid/sync/coordinator.py

from __future__ import annotations

"""
Remote sync coordinator.

Best-effort bridge between the local task store and the remote task store:

Startup reconciliation (not a merge):
- remote unreachable        -> connected=False, local state stands
- snapshot fetch fails      -> connected=False as well (no push over an unread remote)
- remote has tasks          -> remote is authoritative, local is overwritten
- remote empty, local not   -> one-shot upload of the local collection
- both empty                -> nothing (never push an empty list over the remote)

Known limitation: "remote wins whenever non-empty" discards edits made locally
while offline if another device populated the remote in the meantime.

After startup every local save triggers a fire-and-forget full push. Errors are
observed in a done-callback, logged and discarded; there is no retry queue, the
next save resends the current state. Overlapping pushes are not ordered; the
remote replaces its whole collection on each one (last write wins).
"""

import asyncio
import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from ..core.events import TOPIC_TASKS, ChangeChannel, ChangeEvent
from ..core.ports import RemoteTaskStore
from ..tasks.task_models import Task
from ..tasks.task_store import TaskStore

if TYPE_CHECKING:
    from ..core.state import AppState

logger = logging.getLogger(__name__)

PushListener = Callable[[list[Task]], None]


class SyncCoordinator:
    def __init__(self, store: TaskStore, remote: RemoteTaskStore | None) -> None:
        self.store = store
        self.remote = remote
        # Advisory: gates whether pushes are attempted, never whether local writes succeed.
        self.connected = False

        self.push_attempts = 0
        self.push_failures = 0
        self.on_push_attempt: list[PushListener] = []
        self.pending: set[asyncio.Task[None]] = set()

    # ---- startup ----

    async def reconcile_on_startup(self) -> None:
        if self.remote is None:
            self.connected = False
            return

        try:
            await self.remote.ping()
        except Exception as e:
            self.connected = False
            logger.info("Remote unreachable (%s); running local-only.", e.__class__.__name__)
            return

        self.connected = True

        try:
            snapshot = await self.remote.list_tasks()
        except Exception:
            # Unreconciled remote: a later full push would overwrite it.
            self.connected = False
            logger.exception("Fetching remote snapshot failed; running local-only.")
            return

        local = self.store.load()

        if snapshot:
            tasks = [Task.from_dict(row, default_workspace=self.store.default_workspace) for row in snapshot]
            # Adopting the remote snapshot is not a local mutation: do not push it back.
            self.store.save(tasks, notify=False)
            logger.info("Adopted remote snapshot: %d tasks (local had %d).", len(tasks), len(local))
            return

        if local:
            try:
                await self.remote.sync_all([t.to_dict() for t in local])
                logger.info("Remote empty; uploaded %d local tasks.", len(local))
            except Exception:
                logger.exception("Initial upload of local tasks failed.")
            return

        logger.debug("Remote and local both empty; nothing to reconcile.")

    # ---- pushes ----

    def attach(self, channel: ChangeChannel) -> Callable[[], None]:
        """Push after every local task save published on the channel."""

        def _on_tasks_changed(event: ChangeEvent) -> None:
            payload = event.payload
            self.schedule_push(payload if isinstance(payload, list) else None)

        return channel.subscribe(TOPIC_TASKS, _on_tasks_changed)

    def schedule_push(self, tasks: Iterable[Task] | None = None) -> asyncio.Task[None] | None:
        """
        Launch a full-collection push without awaiting it.

        Returns the asyncio task (tests may await it), or None when no push
        was attempted (offline, no remote, or no running event loop).
        """
        if not self.connected or self.remote is None:
            return None

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; skipping push.")
            return None

        items = list(tasks) if tasks is not None else self.store.load()
        self.push_attempts += 1
        for listener in list(self.on_push_attempt):
            listener(items)

        payload = [t.to_dict() for t in items]
        task = loop.create_task(self.remote.sync_all(payload))
        self.pending.add(task)
        task.add_done_callback(self._push_done)
        return task

    def _push_done(self, task: asyncio.Task[None]) -> None:
        self.pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            # Observed and discarded: local state stays the source of truth.
            self.push_failures += 1
            logger.warning("Push to remote failed: %s", exc)

    async def push_now(self) -> bool:
        """Explicit, awaited full push (used by the /sync command)."""
        if self.remote is None:
            return False
        tasks = self.store.load()
        try:
            await self.remote.sync_all([t.to_dict() for t in tasks])
        except Exception as e:
            logger.warning("Manual push failed: %s", e)
            return False
        self.connected = True
        return True

    async def drain(self) -> None:
        """Wait for in-flight pushes (shutdown, tests)."""
        while self.pending:
            await asyncio.gather(*list(self.pending), return_exceptions=True)


def build_coordinator(state: AppState, remote: RemoteTaskStore | None) -> SyncCoordinator:
    coordinator = SyncCoordinator(state.store, remote)
    coordinator.attach(state.channel)
    state.sync = coordinator
    return coordinator
