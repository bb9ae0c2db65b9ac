"""Alert evaluation for pump KPI snapshots.

Alerts are derived, never stored: the same snapshot and the same ``today``
always produce the same list.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from pump_manager.config import CoreSettings
from pump_manager.domain.models import Alert, AlertSeverity, AlertType, PumpKPISnapshot

DEFAULT_SETTINGS = CoreSettings()


def _days_label(days: int) -> str:
    return "1 dia" if days == 1 else f"{days} dias"


def maintenance_alert(
    snapshot: PumpKPISnapshot,
    today: date,
    *,
    due_window_days: int = DEFAULT_SETTINGS.maintenance_due_window_days,
) -> Optional[Alert]:
    next_date = snapshot.predicted_next_maintenance_date
    if next_date is None:
        return None
    days_until = (next_date - today).days
    if days_until < 0:
        return Alert(
            pump_id=snapshot.pump_id,
            type=AlertType.MAINTENANCE_DUE,
            severity=AlertSeverity.ERROR,
            message=f"Manutenção atrasada há {_days_label(-days_until)}",
            action_required=True,
        )
    if days_until <= due_window_days:
        when = "hoje" if days_until == 0 else f"em {_days_label(days_until)}"
        return Alert(
            pump_id=snapshot.pump_id,
            type=AlertType.MAINTENANCE_DUE,
            severity=AlertSeverity.WARNING,
            message=f"Manutenção prevista para {when}",
            action_required=True,
        )
    return None


def fuel_alert(
    snapshot: PumpKPISnapshot,
    *,
    per_distance_threshold: float = DEFAULT_SETTINGS.fuel_anomaly_threshold,
    per_volume_threshold: Optional[float] = None,
) -> Optional[Alert]:
    if snapshot.total_fuel_liters <= 0:
        return None
    odometer = snapshot.current_odometer
    if odometer is not None and odometer > 0:
        liters_per_1000 = snapshot.total_fuel_liters / (odometer / 1000)
        if liters_per_1000 <= per_distance_threshold:
            return None
        message = (
            "Consumo de combustível acima da média "
            f"({liters_per_1000:.1f} L/1000 km)"
        )
    elif per_volume_threshold is not None:
        average = snapshot.average_fuel_per_volume_unit
        if average <= per_volume_threshold:
            return None
        message = f"Consumo de combustível acima da média ({average:.2f} L/m³)"
    else:
        return None
    return Alert(
        pump_id=snapshot.pump_id,
        type=AlertType.FUEL_ANOMALY,
        severity=AlertSeverity.WARNING,
        message=message,
        action_required=False,
    )


def evaluate_alerts(
    snapshot: PumpKPISnapshot,
    today: date,
    settings: CoreSettings = DEFAULT_SETTINGS,
) -> list[Alert]:
    """Return the alerts for ``snapshot`` as of ``today``."""
    alerts: list[Alert] = []
    maintenance = maintenance_alert(
        snapshot, today, due_window_days=settings.maintenance_due_window_days
    )
    if maintenance:
        alerts.append(maintenance)
    fuel = fuel_alert(
        snapshot,
        per_distance_threshold=settings.fuel_anomaly_threshold,
        per_volume_threshold=settings.fuel_per_volume_threshold,
    )
    if fuel:
        alerts.append(fuel)
    return alerts
