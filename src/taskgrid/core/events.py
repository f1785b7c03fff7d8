# src/taskgrid/core/events.py

from __future__ import annotations

"""
Change notification channel.

Stores publish "something under <topic> changed" events; interested components
(sync push, template re-application, re-render) subscribe. This is message
passing between components, not shared state: handlers receive the payload and
decide for themselves what to reload.

Topics used by the app:
- "tasks": payload is the full task list that was just persisted
- "templates": payload is the template list (or None when the change came from
  another process and must be re-read from disk)
"""

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

TOPIC_TASKS = "tasks"
TOPIC_TEMPLATES = "templates"


@dataclass(slots=True, frozen=True)
class ChangeEvent:
    topic: str
    payload: Any = None
    external: bool = False


Handler = Callable[[ChangeEvent], None]


class ChangeChannel:
    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, topic: str, handler: Handler) -> Callable[[], None]:
        """Register a handler; returns an unsubscribe callable."""
        self._handlers[topic].append(handler)

        def _unsubscribe() -> None:
            try:
                self._handlers[topic].remove(handler)
            except ValueError:
                pass

        return _unsubscribe

    def publish(self, event: ChangeEvent) -> None:
        # A failing subscriber must not break the write that triggered the event.
        for handler in list(self._handlers.get(event.topic, ())):
            try:
                handler(event)
            except Exception:
                logger.exception("Change handler failed topic=%s handler=%r", event.topic, handler)
