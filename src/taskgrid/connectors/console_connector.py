# src/taskgrid/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import cmd_cal, cmd_list
from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..tasks import task_api

logger = logging.getLogger(__name__)

EXIT_COMMANDS = ("/exit", "/quit", "/q")


def _say(text: str) -> None:
    stamp = datetime.now().astimezone().strftime("%H:%M:%S")
    print(f"[{stamp}] {text}", flush=True)


def prompt_for(state: AppState) -> str:
    """Prompt shows where a plain-text line will land: workspace and date."""
    return f"[{state.workspace.value} {state.selected_date}] > "


def render_current_view(state: AppState) -> str:
    if state.view == "calendar":
        return cmd_cal(state, [])
    return cmd_list(state, [])


async def handle_line(state: AppState, line: str) -> str:
    """One REPL step: slash command, or a new task titled by the line."""
    reply = await command_registry.handle(state, line, emit=_say)
    if reply is not None:
        return reply
    task = task_api.add_task(state, line)
    return f"Added: {task.title}"


async def run_console_loop(state: AppState) -> None:
    """
    Interactive REPL. input() runs in a worker thread so the event loop keeps
    serving background pushes and the change watcher while we wait for a line.
    """
    logger.info("Console started ws=%s date=%s", state.workspace.value, state.selected_date)
    _say("Type a task to add it to the selected date. /help lists commands, /exit quits.")
    print(render_current_view(state))

    while True:
        try:
            line = (await asyncio.to_thread(input, prompt_for(state))).strip()
        except (EOFError, KeyboardInterrupt) as e:
            logger.info("Console closed (%s).", e.__class__.__name__)
            print()
            break

        if not line:
            continue
        if line.lower() in EXIT_COMMANDS:
            break

        try:
            reply = await handle_line(state, line)
        except ValueError as e:
            reply = f"Invalid input: {e}"
        except Exception:
            logger.exception("Console line failed: %r", line)
            reply = "Internal error (see log)."

        _say(reply)

    logger.info("Console finished.")
