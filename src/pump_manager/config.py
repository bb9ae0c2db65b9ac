"""Application configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from pump_manager.utils.config_store import load_config_data
from pump_manager.version import __app_name__, __company__

APP_NAME = __app_name__
APP_DATA_DIRNAME = "PumpManager"
APP_HOME_ENV = "PUMP_MANAGER_HOME"
DB_FILENAME = "pump_manager.db"
LOGS_DIRNAME = "logs"
LOG_FILENAME = "app.log"
LOG_MAX_BYTES = 1_000_000
LOG_BACKUP_COUNT = 3
REPORTS_DIRNAME = "reports"
CONFIG_FILENAME = "config.json"

MAINTENANCE_INTERVAL_DAYS = 180
MAINTENANCE_DUE_WINDOW_DAYS = 7
FLEET_DUE_WINDOW_DAYS = 30
# Liters per 1000 km driven.
FUEL_ANOMALY_THRESHOLD = 50.0
RECENT_BOOKINGS_LIMIT = 5
RECENT_REPORTS_LIMIT = 5

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppConfig:
    """Static configuration values for PumpManager."""

    app_name: str = APP_NAME
    organization_name: str = __company__


@dataclass(frozen=True)
class CoreSettings:
    """Tunable thresholds for KPI and alert evaluation."""

    maintenance_interval_days: int = MAINTENANCE_INTERVAL_DAYS
    maintenance_due_window_days: int = MAINTENANCE_DUE_WINDOW_DAYS
    fleet_due_window_days: int = FLEET_DUE_WINDOW_DAYS
    fuel_anomaly_threshold: float = FUEL_ANOMALY_THRESHOLD
    fuel_per_volume_threshold: Optional[float] = None
    recent_bookings_limit: int = RECENT_BOOKINGS_LIMIT
    recent_reports_limit: int = RECENT_REPORTS_LIMIT


def _positive_int(data: dict[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        logger.warning("Invalid %s=%r in config, using %s", key, value, default)
        return default
    return value


def _positive_float(
    data: dict[str, Any], key: str, default: Optional[float]
) -> Optional[float]:
    value = data.get(key, default)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        logger.warning("Invalid %s=%r in config, using %s", key, value, default)
        return default
    return float(value)


def load_core_settings(config_path: Path) -> CoreSettings:
    """Load KPI/alert settings from the JSON config, falling back to defaults."""
    data = load_config_data(config_path)
    section = data.get("pump_core", {})
    if not isinstance(section, dict):
        section = {}
    return CoreSettings(
        maintenance_interval_days=_positive_int(
            section, "maintenance_interval_days", MAINTENANCE_INTERVAL_DAYS
        ),
        maintenance_due_window_days=_positive_int(
            section, "maintenance_due_window_days", MAINTENANCE_DUE_WINDOW_DAYS
        ),
        fleet_due_window_days=_positive_int(
            section, "fleet_due_window_days", FLEET_DUE_WINDOW_DAYS
        ),
        fuel_anomaly_threshold=_positive_float(
            section, "fuel_anomaly_threshold", FUEL_ANOMALY_THRESHOLD
        )
        or FUEL_ANOMALY_THRESHOLD,
        fuel_per_volume_threshold=_positive_float(
            section, "fuel_per_volume_threshold", None
        ),
        recent_bookings_limit=_positive_int(
            section, "recent_bookings_limit", RECENT_BOOKINGS_LIMIT
        ),
        recent_reports_limit=_positive_int(
            section, "recent_reports_limit", RECENT_REPORTS_LIMIT
        ),
    )
