# src/taskgrid/config.py

"""taskgrid settings: environment variables, with an optional .env file.

- Built once per process (get_settings) and passed down through AppState.
- Nothing here is secret; the remote auth token lives in prefs, not env.
- Every policy constant (retention, materialization window) is overridable,
  defaults keep the historical behavior.

Environment variables (all optional):
- TASKGRID_APP_NAME, TASKGRID_LOG_LEVEL
- TASKGRID_DATA_DIR (default: .local/taskgrid)
- TASKGRID_TASKS_PATH, TASKGRID_TEMPLATES_PATH, TASKGRID_PREFS_PATH
- TASKGRID_REMOTE_ENABLED, TASKGRID_REMOTE_BASE_URL, TASKGRID_REMOTE_TIMEOUT_SECONDS
- TASKGRID_DEFAULT_WORKSPACE, TASKGRID_RETENTION_DAYS
- TASKGRID_DEFAULTS_MIN_MONTH, TASKGRID_DEFAULTS_MIN_DAY, TASKGRID_DEFAULTS_MAX_DAYS_AHEAD
- TASKGRID_WATCH_INTERVAL_SECONDS
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKGRID"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float | None) -> float | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_path: Path
    templates_path: Path
    prefs_path: Path

    # ---- Remote task store ----
    remote_enabled: bool
    remote_base_url: str
    remote_timeout_seconds: float | None

    # ---- Policy ----
    default_workspace: str
    retention_days: int
    defaults_min_month: int
    defaults_min_day: int
    defaults_max_days_ahead: int

    # ---- Cross-process change watcher ----
    watch_interval_seconds: float

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskgrid") or "taskgrid"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskgrid"))
        tasks_path = _env_path(_k("TASKS_PATH"), data_dir / "tasks.json")
        templates_path = _env_path(_k("TEMPLATES_PATH"), data_dir / "templates.json")
        prefs_path = _env_path(_k("PREFS_PATH"), data_dir / "prefs.json")

        remote_enabled = _env_bool(_k("REMOTE_ENABLED"), True)
        remote_base_url = _env(_k("REMOTE_BASE_URL"), "http://localhost:3000/api").rstrip("/")
        # None means "use the transport's own default".
        remote_timeout_seconds = _env_float(_k("REMOTE_TIMEOUT_SECONDS"), None)

        default_workspace = _env(_k("DEFAULT_WORKSPACE"), "personal").strip().lower() or "personal"
        retention_days = max(1, _env_int(_k("RETENTION_DAYS"), 365))

        # Materialization window: lower bound is <min_month>/<min_day> of the current year,
        # upper bound is today + max_days_ahead.
        defaults_min_month = min(12, max(1, _env_int(_k("DEFAULTS_MIN_MONTH"), 11)))
        defaults_min_day = min(28, max(1, _env_int(_k("DEFAULTS_MIN_DAY"), 1)))
        defaults_max_days_ahead = max(0, _env_int(_k("DEFAULTS_MAX_DAYS_AHEAD"), 30))

        watch_interval_seconds = _env_float(_k("WATCH_INTERVAL_SECONDS"), 2.0) or 2.0

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            tasks_path=tasks_path,
            templates_path=templates_path,
            prefs_path=prefs_path,
            remote_enabled=remote_enabled,
            remote_base_url=remote_base_url,
            remote_timeout_seconds=remote_timeout_seconds,
            default_workspace=default_workspace,
            retention_days=retention_days,
            defaults_min_month=defaults_min_month,
            defaults_min_day=defaults_min_day,
            defaults_max_days_ahead=defaults_max_days_ahead,
            watch_interval_seconds=watch_interval_seconds,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
