# src/taskgrid/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, runs the startup sequence
(migrate, sweep, reconcile, materialize), then starts:
- the cross-process template watcher (background task),
- the console REPL.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from ..cli.bootstrap import create_initial_state, shutdown, startup, subscribe_template_reapply
from ..config import get_settings
from ..connectors.console_connector import render_current_view, run_console_loop
from ..core.watcher import watch_external_changes
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def amain() -> None:
    settings = get_settings()

    state = create_initial_state(settings=settings)
    await startup(state)

    def _rerender() -> None:
        print()
        print(render_current_view(state))

    subscribe_template_reapply(state, on_render=_rerender)

    watcher = asyncio.create_task(
        watch_external_changes(
            state.templates,
            state.channel,
            interval_seconds=settings.watch_interval_seconds,
        )
    )

    try:
        await run_console_loop(state)
    finally:
        watcher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await watcher
        await shutdown(state)


def main() -> None:
    settings = get_settings()

    log_file = setup_logging(settings)

    logger.info("Starting %s (log: %s)...", settings.app_name, log_file)

    try:
        asyncio.run(amain())
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    logger.info("Bye.")


if __name__ == "__main__":
    main()
