# src/taskgrid/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires stores, change channel, remote clients and sync coordinator into AppState,
- runs the startup sequence (migrate, sweep, reconcile, materialize).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime

from ..config import get_settings
from ..core.events import TOPIC_TEMPLATES, ChangeChannel, ChangeEvent
from ..core.state import PREF_DATE, PREF_VIEW, VIEWS, AppState
from ..core.workspace import WorkspaceSelector, run_retention
from ..sync.coordinator import build_coordinator
from ..sync.remote import AuthClient, RemoteTaskClient, TokenStore
from ..tasks.defaults import apply_defaults
from ..tasks.task_models import Workspace, local_iso, parse_local_date
from ..tasks.task_store import Preferences, TaskStore, TemplateStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_path.parent.mkdir(parents=True, exist_ok=True)
    settings.templates_path.parent.mkdir(parents=True, exist_ok=True)
    settings.prefs_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, remote=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings(). `remote` overrides the HTTP client
    (tests pass an in-memory fake).
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    default_ws = Workspace.from_db(getattr(settings, "default_workspace", None))
    channel = ChangeChannel()
    prefs = Preferences(settings.prefs_path)

    state = AppState(
        settings=settings,
        store=TaskStore(settings.tasks_path, channel=channel, default_workspace=default_ws),
        templates=TemplateStore(settings.templates_path, channel=channel, default_workspace=default_ws),
        prefs=prefs,
        workspace_selector=WorkspaceSelector(prefs, default_ws),
        channel=channel,
    )

    saved_date = prefs.get(PREF_DATE)
    if parse_local_date(saved_date) is not None:
        state.selected_date = str(saved_date)
    saved_view = prefs.get(PREF_VIEW)
    if saved_view in VIEWS:
        state.view = str(saved_view)

    tokens = TokenStore(prefs)
    timeout = getattr(settings, "remote_timeout_seconds", None)
    if remote is None and getattr(settings, "remote_enabled", False):
        remote = RemoteTaskClient(settings.remote_base_url, tokens=tokens, timeout_seconds=timeout)
    if getattr(settings, "remote_enabled", False):
        state.auth = AuthClient(settings.remote_base_url, tokens=tokens, timeout_seconds=timeout)

    build_coordinator(state, remote)
    return state


def subscribe_template_reapply(
    state: AppState,
    on_render: Callable[[], None] | None = None,
) -> Callable[[], None]:
    """
    When templates change (here or in another process), re-apply them for the
    visible date and re-render.
    """

    def _handler(event: ChangeEvent) -> None:
        added = apply_defaults(state, state.selected_date)
        logger.debug(
            "Templates changed (external=%s); re-applied for %s added=%s",
            event.external,
            state.selected_date,
            added,
        )
        if on_render is not None:
            on_render()

    return state.channel.subscribe(TOPIC_TEMPLATES, _handler)


async def startup(
    state: AppState,
    *,
    now: datetime | None = None,
    today: date | None = None,
) -> None:
    """
    Load-time sequence:
    1. migrate legacy rows, sweep expired tasks (local-only view first)
    2. reconcile with the remote (may replace the whole local collection)
    3. migrate + sweep again: remote rows carry no workspace and may be old
    4. materialize templates for the selected date
    """
    today = today or date.today()
    now = now or datetime.now()

    state.store.load_normalized(today=today)
    run_retention(state, now=now)

    if state.sync is not None:
        await state.sync.reconcile_on_startup()

    state.store.load_normalized(today=today)
    run_retention(state, now=now)

    if parse_local_date(state.selected_date) is None:
        state.selected_date = local_iso(today)
    apply_defaults(state, state.selected_date, today=today)

    logger.info(
        "Ready: ws=%s date=%s tasks=%d connected=%s",
        state.workspace.value,
        state.selected_date,
        state.store.count_tasks(),
        bool(state.sync and state.sync.connected),
    )


async def shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    if state.sync is not None:
        try:
            await state.sync.drain()
        except Exception:
            logger.exception("Waiting for pending pushes failed.")
        remote = state.sync.remote
        close = getattr(remote, "aclose", None)
        if close is not None:
            try:
                await close()
            except Exception:
                logger.debug("Remote client close failed.", exc_info=True)
    if state.auth is not None:
        try:
            await state.auth.aclose()
        except Exception:
            logger.debug("Auth client close failed.", exc_info=True)
