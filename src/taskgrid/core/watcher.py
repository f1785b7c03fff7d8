# src/taskgrid/core/watcher.py

from __future__ import annotations

"""
Cross-process change watcher.

Another process (a second console, an admin script) may rewrite the template
file. A small polling loop compares its mtime and republishes a "templates"
event on the change channel, so the same handlers run as for local edits.
It is advisory and eventual, not a lock.
"""

import asyncio
import logging

from ..tasks.task_store import TemplateStore
from .events import TOPIC_TEMPLATES, ChangeChannel, ChangeEvent

logger = logging.getLogger(__name__)


def check_templates_changed(
    templates: TemplateStore,
    channel: ChangeChannel,
    last_mtime: float | None,
) -> float | None:
    """
    One polling step. Returns the mtime to compare against next time.

    Our own saves already published their event; their mtime is skipped.
    """
    mtime = templates.mtime()
    if mtime is not None and mtime != last_mtime and mtime != templates.last_written_mtime:
        logger.debug("Template file changed externally: %s", templates.path)
        channel.publish(ChangeEvent(TOPIC_TEMPLATES, None, external=True))
    return mtime


async def watch_external_changes(
    templates: TemplateStore,
    channel: ChangeChannel,
    *,
    interval_seconds: float = 2.0,
) -> None:
    """
    Poll forever. To stop the watcher, cancel the coroutine/task.
    """
    sleep_s = max(0.1, float(interval_seconds))
    last = templates.mtime()

    while True:
        await asyncio.sleep(sleep_s)
        try:
            last = check_templates_changed(templates, channel, last)
        except Exception:
            logger.exception("Template change check failed")
