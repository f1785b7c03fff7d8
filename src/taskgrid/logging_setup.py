# src/taskgrid/logging_setup.py

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

APP_LOGGER_PREFIX = "taskgrid."
LOG_FILE_NAME = "taskgrid.log"

# Loggers that stay quiet in the file too (one line per HTTP request otherwise).
_QUIET_LIBRARIES = ("httpx", "httpcore")

# App subtrees that only reach the console at WARNING+.
_BACKGROUND_PREFIXES = ("taskgrid.sync.", "taskgrid.core.watcher")


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the REPL prompt readable:
    - app logs pass at the handler level
    - background sync and the file watcher only surface problems (WARNING+)
    - everything else (third-party, captured py.warnings) only at ERROR+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if not name.startswith(APP_LOGGER_PREFIX):
            return record.levelno >= logging.ERROR
        if name.startswith(_BACKGROUND_PREFIXES):
            # Pushes run after every mutation; their lines would interleave with the prompt.
            return record.levelno >= logging.WARNING
        return True


def _level(value: object, default: int) -> int:
    if isinstance(value, int):
        return value
    return getattr(logging, str(value or "").upper(), default)


def setup_logging(
    settings=None,
    *,
    log_dir: str | Path | None = None,
    console_level: int | str | None = None,
    file_level: int = logging.DEBUG,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
) -> Path:
    """
    Install the console + file handlers on the root logger.

    Log directory and console level default to settings.data_dir and
    settings.log_level. Returns the log file path. Call once, before the
    first log line; calling again replaces the handlers.
    """
    if log_dir is None:
        log_dir = getattr(settings, "data_dir", None) or ".local/taskgrid"
    if console_level is None:
        console_level = getattr(settings, "log_level", None)

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)-7s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(_level(console_level, logging.INFO))
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    # Rotates at max_bytes.
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_file
