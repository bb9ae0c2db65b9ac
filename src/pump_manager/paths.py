"""Filesystem locations used by PumpManager.

Everything lives under one per-user folder. ``PUMP_MANAGER_HOME`` replaces
that folder entirely, which is how tests and demo installs stay isolated.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional

from pump_manager.config import (
    APP_DATA_DIRNAME,
    APP_HOME_ENV,
    CONFIG_FILENAME,
    DB_FILENAME,
    LOGS_DIRNAME,
    REPORTS_DIRNAME,
)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_-]+")


def _ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_app_data_dir() -> Path:
    override = os.getenv(APP_HOME_ENV)
    if override:
        return _ensure_dir(Path(override))
    appdata = os.getenv("APPDATA")
    base_dir = Path(appdata) if appdata else Path.home() / ".pump_manager"
    return _ensure_dir(base_dir / APP_DATA_DIRNAME)


def get_db_path(override: Optional[Path] = None) -> Path:
    """Return the SQLite database file, honouring an explicit override."""
    if override is not None:
        _ensure_dir(override.parent)
        return override
    return get_app_data_dir() / DB_FILENAME


def get_config_path() -> Path:
    return get_app_data_dir() / CONFIG_FILENAME


def get_logs_dir() -> Path:
    return _ensure_dir(get_app_data_dir() / LOGS_DIRNAME)


def get_reports_dir() -> Path:
    return _ensure_dir(get_app_data_dir() / REPORTS_DIRNAME)


def get_report_path(prefix: str) -> Path:
    """Default PDF location for a pump, e.g. ``reports/bomba_PX-01.pdf``."""
    safe_prefix = _UNSAFE_FILENAME_CHARS.sub("_", prefix.strip()) or "sem_prefixo"
    return get_reports_dir() / f"bomba_{safe_prefix}.pdf"
