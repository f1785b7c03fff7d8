# src/taskgrid/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import date, timedelta
from typing import cast

import httpx

from ..core.state import AppState
from ..sync.remote import RemoteError
from ..tasks import task_api
from ..tasks.calendar import DayCell, month_grid, week_start, week_strip
from ..tasks.defaults import add_template, apply_defaults, list_templates, remove_template
from ..tasks.task_models import WEEKDAY_NAMES, Task, parse_local_date

CommandEmitter = Callable[[str], None]
CommandResult = str | Awaitable[str]
CommandHandler2 = Callable[[AppState, list[str]], CommandResult]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], CommandResult]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        Handlers may be plain functions or coroutines.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            result = cast(CommandHandler3, handler)(state, args, emit)
        else:
            result = cast(CommandHandler2, handler)(state, args)

        if inspect.isawaitable(result):
            return await result
        return result

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting ----

HEAT_MARKS = (" ", ".", "o", "O", "#")


def format_task_line(i: int, t: Task) -> str:
    mark = "x" if t.completed else " "
    return f"{i:>2}. [{mark}] {t.title}"


def format_cells(cells: list[DayCell]) -> str:
    """Text calendar: day number, heat mark, task count (blank when 0)."""
    header = " ".join(f"{n:^7}" for n in WEEKDAY_NAMES)
    rows = [header]
    for start in range(0, len(cells), 7):
        parts = []
        for c in cells[start : start + 7]:
            if c.is_selected:
                lead = ">"
            elif c.is_today:
                lead = "*"
            elif c.other_month:
                lead = "~"
            else:
                lead = " "
            count = str(c.count) if c.count else ""
            parts.append(f"{lead}{c.day:>2}{HEAT_MARKS[c.heat]}{count:<3}")
        rows.append(" ".join(parts))
    return "\n".join(rows)


def _pick(state: AppState, args: list[str]) -> tuple[Task | None, str | None]:
    if not args:
        return None, "Give the task number from /list."
    try:
        n = int(args[0])
    except ValueError:
        return None, f"Not a task number: {args[0]}"
    rows = task_api.visible_tasks(state)
    if not 1 <= n <= len(rows):
        return None, f"No task #{n} in the current list."
    return rows[n - 1], None


def _parse_date_arg(state: AppState, raw: str) -> date | None:
    raw = raw.strip().lower()
    if raw == "today":
        return date.today()
    if raw[:1] in "+-" and raw[1:].isdigit():
        base = parse_local_date(state.selected_date) or date.today()
        return base + timedelta(days=int(raw))
    return parse_local_date(raw)


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    sync = state.sync
    remote = "connected" if sync is not None and sync.connected else "local-only"
    token = "yes" if state.auth is not None and state.auth.tokens.get_token() else "no"
    pushes = f"{sync.push_attempts} attempted, {sync.push_failures} failed" if sync is not None else "n/a"
    return (
        "Status:\n"
        f"  Workspace: {state.workspace.value}\n"
        f"  Date: {state.selected_date}\n"
        f"  View: {state.view}\n"
        f"  Remote: {remote} (logged in: {token})\n"
        f"  Pushes: {pushes}\n"
        f"  Tasks stored: {state.store.count_tasks()}"
    )


def cmd_list(state: AppState, args: list[str]) -> str:
    """
    /list                    -> current filter
    /list all|active|completed
    """
    if args:
        flt = args[0].lower()
        if flt not in task_api.FILTERS:
            return "Usage: /list [all|active|completed]"
        state.filter = flt
    rows = task_api.visible_tasks(state)
    title = f"{state.workspace.value} · {state.selected_date} · {state.filter}"
    if not rows:
        return f"{title}\n  (no tasks)"
    return "\n".join([title] + [format_task_line(i, t) for i, t in enumerate(rows, start=1)])


def cmd_add(state: AppState, args: list[str]) -> str:
    try:
        t = task_api.add_task(state, " ".join(args))
    except ValueError as e:
        return f"Not added: {e}."
    return f"Added: {t.title}"


def cmd_done(state: AppState, args: list[str]) -> str:
    t, err = _pick(state, args)
    if t is None:
        return err or "Nothing to toggle."
    updated = task_api.toggle_completed(state, t.id)
    if updated is None:
        return "Task vanished (changed elsewhere?)."
    return f"{'Done' if updated.completed else 'Reopened'}: {updated.title}"


def cmd_edit(state: AppState, args: list[str]) -> str:
    t, err = _pick(state, args)
    if t is None:
        return err or "Nothing to edit."
    updated = task_api.edit_title(state, t.id, " ".join(args[1:]))
    if updated is None:
        return f"Deleted: {t.title}"
    return f"Renamed: {updated.title}"


def cmd_rm(state: AppState, args: list[str]) -> str:
    t, err = _pick(state, args)
    if t is None:
        return err or "Nothing to delete."
    task_api.delete_task(state, t.id)
    return f"Deleted: {t.title}"


def cmd_clear(state: AppState, args: list[str]) -> str:
    n = task_api.clear_completed(state)
    return f"Cleared {n} completed task(s)."


def cmd_date(state: AppState, args: list[str]) -> str:
    """
    /date               -> show selected date
    /date YYYY-MM-DD    -> select date
    /date today|+N|-N
    """
    if not args:
        return f"Selected: {state.selected_date}"
    d = _parse_date_arg(state, args[0])
    if d is None:
        return "Usage: /date YYYY-MM-DD | today | +N | -N"
    state.select_date(d)
    apply_defaults(state, state.selected_date)
    return cmd_list(state, [])


def cmd_ws(state: AppState, args: list[str]) -> str:
    if not args:
        return f"Workspace: {state.workspace.value}"
    try:
        state.workspace_selector.switch(args[0])
    except ValueError:
        return "Usage: /ws personal | work"
    apply_defaults(state, state.selected_date)
    return cmd_list(state, [])


def cmd_cal(state: AppState, args: list[str]) -> str:
    base = parse_local_date(state.selected_date) or date.today()
    year, month = base.year, base.month
    if args:
        try:
            y, m = args[0].split("-", 1)
            year, month = int(y), int(m)
            if not 1 <= month <= 12:
                raise ValueError(month)
        except ValueError:
            return "Usage: /cal [YYYY-MM]"
    cells = month_grid(state, year, month)
    return f"{date(year, month, 1):%B %Y} · {state.workspace.value}\n{format_cells(cells)}"


def cmd_week(state: AppState, args: list[str]) -> str:
    shift = 0
    if args:
        try:
            shift = int(args[0])
        except ValueError:
            return "Usage: /week [+N|-N]"
    base = parse_local_date(state.selected_date) or date.today()
    start = week_start(base) + timedelta(days=7 * shift)
    cells = week_strip(state, start)
    return f"Week of {start.isoformat()} · {state.workspace.value}\n{format_cells(cells)}"


def cmd_view(state: AppState, args: list[str]) -> str:
    if not args:
        return f"View: {state.view}"
    try:
        state.set_view(args[0].lower())
    except ValueError:
        return "Usage: /view tasks | calendar"
    if state.view == "calendar":
        return cmd_cal(state, [])
    return cmd_list(state, [])


def cmd_tpl(state: AppState, args: list[str]) -> str:
    """
    /tpl list                 -> templates of the current workspace
    /tpl add <weekday> <title>  (weekday: 0-6 or Sun..Sat)
    /tpl rm <id>
    """
    sub = args[0].lower() if args else "list"

    if sub == "list":
        items = list_templates(state, state.workspace)
        if not items:
            return f"No templates in {state.workspace.value}."
        lines = [f"Templates ({state.workspace.value}):"]
        for t in items:
            lines.append(f"  {t.id[:8]}  {WEEKDAY_NAMES[t.weekday]}  {t.title}")
        return "\n".join(lines)

    if sub == "add":
        if len(args) < 3:
            return "Usage: /tpl add <weekday> <title>"
        raw_wd = args[1].strip().lower()
        names = [n.lower() for n in WEEKDAY_NAMES]
        if raw_wd[:3] in names:
            weekday = names.index(raw_wd[:3])
        else:
            try:
                weekday = int(raw_wd)
            except ValueError:
                return "Weekday must be 0-6 or Sun..Sat."
        try:
            tpl = add_template(state, weekday, " ".join(args[2:]))
        except ValueError as e:
            return f"Not added: {e}."
        return f"Template added: every {WEEKDAY_NAMES[tpl.weekday]} -> {tpl.title}"

    if sub in ("rm", "del"):
        if len(args) < 2:
            return "Usage: /tpl rm <id>"
        prefix = args[1]
        matches = [t for t in list_templates(state) if t.id.startswith(prefix)]
        if len(matches) != 1:
            return f"No unique template matches {prefix!r}."
        remove_template(state, matches[0].id)
        return f"Template removed: {matches[0].title}"

    return "Usage: /tpl list | /tpl add <weekday> <title> | /tpl rm <id>"


async def cmd_sync(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/sync -> reconcile with the remote again, then push the current state."""
    if state.sync is None or state.sync.remote is None:
        return "No remote configured."
    if emit:
        emit("[SYNC] Contacting remote...")
    await state.sync.reconcile_on_startup()
    if not state.sync.connected:
        return "Remote unreachable; still local-only."
    state.store.load_normalized()
    ok = await state.sync.push_now()
    return "Synced." if ok else "Reconciled, but the push failed (see log)."


async def _auth(state: AppState, args: list[str], action: str) -> str:
    if state.auth is None:
        return "No remote configured."
    if len(args) < 2:
        return f"Usage: /{action} <username> <password>"
    try:
        if action == "login":
            await state.auth.login(args[0], args[1])
        else:
            await state.auth.register(args[0], args[1])
    except (RemoteError, httpx.HTTPError) as e:
        logger.info("%s failed: %s", action, e)
        return f"{action.capitalize()} failed: {e}"
    return f"{action.capitalize()} ok as {args[0]}."


async def cmd_login(state: AppState, args: list[str]) -> str:
    return await _auth(state, args, "login")


async def cmd_register(state: AppState, args: list[str]) -> str:
    return await _auth(state, args, "register")


def cmd_logout(state: AppState, args: list[str]) -> str:
    if state.auth is None:
        return "No remote configured."
    state.auth.logout()
    return "Logged out."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show workspace, date and sync state.")
registry.register("list", cmd_list, help_text="List tasks: /list [all|active|completed].", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task on the selected date: /add <title>.")
registry.register("done", cmd_done, help_text="Toggle completion: /done <n>.", aliases=["x"])
registry.register("edit", cmd_edit, help_text="Rename: /edit <n> <title> (empty title deletes).")
registry.register("rm", cmd_rm, help_text="Delete: /rm <n>.")
registry.register("clear", cmd_clear, help_text="Remove completed tasks of the selected date.")
registry.register("date", cmd_date, help_text="Select date: /date YYYY-MM-DD | today | +N | -N.")
registry.register("ws", cmd_ws, help_text="Switch workspace: /ws personal | work.")
registry.register("cal", cmd_cal, help_text="Month heat calendar: /cal [YYYY-MM].")
registry.register("week", cmd_week, help_text="Week strip: /week [+N|-N].")
registry.register("view", cmd_view, help_text="Default view: /view tasks | calendar.")
registry.register("tpl", cmd_tpl, help_text="Weekly templates: /tpl list | add <weekday> <title> | rm <id>.")
registry.register("sync", cmd_sync, help_text="Reconcile with the remote and push.")
registry.register("login", cmd_login, help_text="Log in to the remote: /login <user> <password>.")
registry.register("register", cmd_register, help_text="Create a remote account: /register <user> <password>.")
registry.register("logout", cmd_logout, help_text="Forget the remote token.")
