"""KPI derivation over a pump's ledger events."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Optional, Protocol

from pump_manager.config import MAINTENANCE_INTERVAL_DAYS
from pump_manager.domain.models import (
    FuelEvent,
    InvestmentEvent,
    LedgerEvent,
    MaintenanceEvent,
    MaintenanceStatus,
    PumpKPISnapshot,
)
from pump_manager.logging_config import get_logger
from pump_manager.services.errors import DegradedDataError


class LedgerSource(Protocol):
    def list_by_pump(self, pump_id: int) -> list[LedgerEvent]: ...


class VolumeSource(Protocol):
    def sum_volume_for_pump(self, pump_id: int) -> float: ...


def compute_from_events(
    pump_id: int,
    events: Iterable[LedgerEvent],
    total_volume_pumped: float,
    *,
    maintenance_interval_days: int = MAINTENANCE_INTERVAL_DAYS,
    volume_degraded: bool = False,
) -> PumpKPISnapshot:
    """Reduce ledger events into a snapshot.

    ``events`` must be in insertion order: when two maintenance events share
    the latest date, the one inserted last wins.
    """
    maintenance_cost = 0.0
    fuel_cost = 0.0
    fuel_liters = 0.0
    investment_cost = 0.0
    other_cost = 0.0
    last_maintenance: Optional[date] = None
    odometer: Optional[float] = None
    odometer_date: Optional[date] = None

    for event in events:
        if event.pump_id != pump_id:
            continue
        if isinstance(event, MaintenanceEvent):
            maintenance_cost += event.amount
            if event.lifecycle_status == MaintenanceStatus.CANCELLED:
                continue
            if last_maintenance is None or event.occurred_on >= last_maintenance:
                last_maintenance = event.occurred_on
        elif isinstance(event, FuelEvent):
            fuel_cost += event.amount
            fuel_liters += event.liters_filled
            if event.odometer is not None and (
                odometer_date is None or event.occurred_on >= odometer_date
            ):
                odometer = float(event.odometer)
                odometer_date = event.occurred_on
        elif isinstance(event, InvestmentEvent):
            investment_cost += event.amount
        else:
            other_cost += event.amount

    predicted_next = (
        last_maintenance + timedelta(days=maintenance_interval_days)
        if last_maintenance
        else None
    )
    average = fuel_liters / total_volume_pumped if total_volume_pumped > 0 else 0.0
    return PumpKPISnapshot(
        pump_id=pump_id,
        total_volume_pumped=total_volume_pumped,
        total_fuel_liters=fuel_liters,
        total_maintenance_cost=maintenance_cost,
        total_fuel_cost=fuel_cost,
        total_investment_cost=investment_cost,
        total_other_cost=other_cost,
        average_fuel_per_volume_unit=average,
        last_maintenance_date=last_maintenance,
        predicted_next_maintenance_date=predicted_next,
        current_odometer=odometer,
        maintenance_interval_days=maintenance_interval_days,
        volume_degraded=volume_degraded,
    )


class KpiAggregator:
    """Recomputes a pump's KPI snapshot from the full ledger on every call."""

    def __init__(
        self,
        ledger: LedgerSource,
        volume_source: VolumeSource,
        *,
        maintenance_interval_days: int = MAINTENANCE_INTERVAL_DAYS,
    ) -> None:
        self._ledger = ledger
        self._volume_source = volume_source
        self._interval_days = maintenance_interval_days
        self._logger = get_logger(self.__class__.__name__)

    def compute_kpis(self, pump_id: int) -> PumpKPISnapshot:
        events = self._ledger.list_by_pump(pump_id)
        volume, degraded = self._load_volume(pump_id)
        return compute_from_events(
            pump_id,
            events,
            volume,
            maintenance_interval_days=self._interval_days,
            volume_degraded=degraded,
        )

    def _load_volume(self, pump_id: int) -> tuple[float, bool]:
        """Return ``(volume, degraded)``; any failure of the source degrades to 0."""
        try:
            raw_volume = self._volume_source.sum_volume_for_pump(pump_id)
        except DegradedDataError as exc:
            self._logger.warning(
                "Pumped volume unavailable for pump_id=%s, using 0: %s", pump_id, exc
            )
            return 0.0, True
        except Exception:
            self._logger.warning(
                "Pumped volume source failed for pump_id=%s, using 0",
                pump_id,
                exc_info=True,
            )
            return 0.0, True
        if isinstance(raw_volume, bool) or not isinstance(raw_volume, (int, float)):
            self._logger.warning(
                "Invalid pumped volume %r for pump_id=%s, using 0", raw_volume, pump_id
            )
            return 0.0, True
        volume = float(raw_volume)
        if volume < 0:
            self._logger.warning(
                "Negative pumped volume %s for pump_id=%s, using 0", volume, pump_id
            )
            return 0.0, True
        return volume, False
