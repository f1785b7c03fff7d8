# tests/test_sync_coordinator.py

from __future__ import annotations

import pytest

from taskgrid.sync.coordinator import SyncCoordinator
from taskgrid.tasks import task_api
from taskgrid.tasks.task_models import Task, Workspace

from .fakes import FakeRemote, remote_row

DAY = "2026-11-16"


def _local(state, *titles: str) -> list[Task]:
    tasks = [Task.create(title=t, date=DAY, workspace=Workspace.PERSONAL) for t in titles]
    state.store.save(tasks)
    return tasks


@pytest.mark.asyncio
async def test_unreachable_remote_keeps_local_state(state, remote: FakeRemote) -> None:
    remote.online = False
    remote.tasks = [remote_row("r1", "remote", DAY)]
    _local(state, "local")
    before = state.store.path.read_text("utf-8")

    await state.sync.reconcile_on_startup()

    assert state.sync.connected is False
    assert state.store.path.read_text("utf-8") == before
    assert remote.sync_calls == []


@pytest.mark.asyncio
async def test_both_empty_is_a_noop(state, remote: FakeRemote) -> None:
    await state.sync.reconcile_on_startup()

    assert state.sync.connected is True
    assert remote.sync_calls == []
    assert not state.store.path.exists()


@pytest.mark.asyncio
async def test_empty_remote_receives_local_collection(state, remote: FakeRemote) -> None:
    local = _local(state, "a", "b")
    before = state.store.path.read_text("utf-8")

    await state.sync.reconcile_on_startup()

    assert len(remote.sync_calls) == 1
    assert [r["id"] for r in remote.sync_calls[0]] == [t.id for t in local]
    assert state.store.path.read_text("utf-8") == before


@pytest.mark.asyncio
async def test_non_empty_remote_replaces_local(state, remote: FakeRemote) -> None:
    _local(state, "local only")
    remote.tasks = [
        remote_row("r1", "from server", DAY, completed=1),
        remote_row("r2", "legacy", DAY, tab="nishu"),
    ]

    await state.sync.reconcile_on_startup()

    tasks = state.store.load()
    assert [t.id for t in tasks] == ["r1", "r2"]
    assert tasks[0].completed is True
    assert tasks[0].workspace is Workspace.PERSONAL
    assert tasks[1].workspace is Workspace.WORK
    # Adopting the snapshot is not pushed back.
    assert remote.sync_calls == []
    assert state.sync.push_attempts == 0


@pytest.mark.asyncio
async def test_known_limitation_remote_wins_over_offline_edits(state, remote: FakeRemote) -> None:
    """
    Edits made while offline are lost when another device has populated the
    remote in the meantime. This pins the current policy; it is not a merge.
    """
    remote.online = False
    await state.sync.reconcile_on_startup()
    task_api.add_task(state, "written offline", date=DAY)

    remote.online = True
    remote.tasks = [remote_row("other-device", "from laptop", DAY)]
    await state.sync.reconcile_on_startup()

    assert [t.title for t in state.store.load()] == ["from laptop"]


@pytest.mark.asyncio
async def test_snapshot_fetch_failure_keeps_local_and_goes_offline(state, remote: FakeRemote) -> None:
    remote.tasks = [remote_row("r1", "from laptop", DAY), remote_row("r2", "also remote", DAY)]
    _local(state, "keep me")
    remote.fail_list = True

    await state.sync.reconcile_on_startup()

    assert state.sync.connected is False
    assert [t.title for t in state.store.load()] == ["keep me"]

    task_api.add_task(state, "local edit", date=DAY)
    await state.sync.drain()

    assert state.sync.push_attempts == 0
    assert remote.sync_calls == []
    assert [r["title"] for r in remote.tasks] == ["from laptop", "also remote"]


@pytest.mark.asyncio
async def test_every_mutation_pushes_full_collection(state, remote: FakeRemote) -> None:
    await state.sync.reconcile_on_startup()
    attempted: list[int] = []
    state.sync.on_push_attempt.append(lambda tasks: attempted.append(len(tasks)))

    a = task_api.add_task(state, "a", date=DAY)
    task_api.add_task(state, "b", date=DAY)
    task_api.toggle_completed(state, a.id)
    await state.sync.drain()

    assert state.sync.push_attempts == 3
    assert attempted == [1, 2, 2]
    assert len(remote.sync_calls) == 3
    last = {r["id"]: r for r in remote.sync_calls[-1]}
    assert last[a.id]["completed"] is True


@pytest.mark.asyncio
async def test_push_failures_are_swallowed(state, remote: FakeRemote) -> None:
    await state.sync.reconcile_on_startup()
    remote.fail_sync = True

    t = task_api.add_task(state, "still saved locally", date=DAY)
    await state.sync.drain()

    assert state.sync.push_attempts == 1
    assert state.sync.push_failures == 1
    assert state.sync.connected is True
    assert [x.id for x in state.store.load()] == [t.id]


@pytest.mark.asyncio
async def test_offline_mutations_do_not_push(state, remote: FakeRemote) -> None:
    remote.online = False
    await state.sync.reconcile_on_startup()

    task_api.add_task(state, "offline", date=DAY)
    await state.sync.drain()

    assert state.sync.push_attempts == 0
    assert remote.sync_calls == []


def test_push_without_event_loop_is_skipped(state) -> None:
    state.sync.connected = True
    assert state.sync.schedule_push() is None
    assert state.sync.push_attempts == 0


@pytest.mark.asyncio
async def test_no_remote_means_local_only(state) -> None:
    coordinator = SyncCoordinator(state.store, None)
    await coordinator.reconcile_on_startup()
    assert coordinator.connected is False
    assert coordinator.schedule_push() is None
    assert await coordinator.push_now() is False


@pytest.mark.asyncio
async def test_push_now_sends_current_state(state, remote: FakeRemote) -> None:
    _local(state, "x")
    assert await state.sync.push_now() is True
    assert [r["title"] for r in remote.sync_calls[-1]] == ["x"]

    remote.fail_sync = True
    assert await state.sync.push_now() is False
