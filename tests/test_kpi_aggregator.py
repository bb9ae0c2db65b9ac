"""KPI aggregation tests."""

from datetime import date, timedelta

from pump_manager.domain.models import (
    FuelEvent,
    MaintenanceEvent,
    MaintenanceKind,
    MaintenanceStatus,
    OtherEvent,
)
from pump_manager.services.errors import DegradedDataError
from pump_manager.services.kpi_aggregator import KpiAggregator, compute_from_events


def _maintenance(day, amount=100.0, status=MaintenanceStatus.DONE, pump_id=1):
    return MaintenanceEvent(
        id=None,
        pump_id=pump_id,
        amount=amount,
        occurred_on=day,
        label="Troca de óleo",
        kind=MaintenanceKind.PREVENTIVE,
        lifecycle_status=status,
    )


def _fuel(day, liters, cost, odometer=None, pump_id=1):
    return FuelEvent(
        id=None,
        pump_id=pump_id,
        amount=liters * cost,
        occurred_on=day,
        liters_filled=liters,
        cost_per_liter=cost,
        odometer=odometer,
    )


class StaticLedger:
    def __init__(self, events):
        self.events = list(events)

    def list_by_pump(self, pump_id):
        return [event for event in self.events if event.pump_id == pump_id]


class StaticVolume:
    def __init__(self, volume):
        self.volume = volume

    def sum_volume_for_pump(self, pump_id):
        return self.volume


class BrokenVolume:
    def sum_volume_for_pump(self, pump_id):
        raise DegradedDataError("job service offline")


class OfflineVolume:
    def sum_volume_for_pump(self, pump_id):
        raise ConnectionError("job service offline")


class NoneVolume:
    def sum_volume_for_pump(self, pump_id):
        return None


class TestComputeFromEvents:
    def test_empty_ledger(self):
        snapshot = compute_from_events(1, [], 0.0)
        assert snapshot.total_volume_pumped == 0
        assert snapshot.total_cost == 0
        assert snapshot.average_fuel_per_volume_unit == 0
        assert snapshot.last_maintenance_date is None
        assert snapshot.predicted_next_maintenance_date is None

    def test_fuel_adds_liters_times_cost(self):
        before = compute_from_events(1, [_fuel(date(2026, 1, 5), 100, 6.0)], 0.0)
        events = [_fuel(date(2026, 1, 5), 100, 6.0), _fuel(date(2026, 1, 9), 80, 6.5)]
        after = compute_from_events(1, events, 0.0)
        assert after.total_fuel_cost - before.total_fuel_cost == 80 * 6.5
        assert after.total_fuel_liters - before.total_fuel_liters == 80

    def test_predicted_maintenance_is_last_plus_interval(self):
        events = [_maintenance(date(2026, 1, 10)), _maintenance(date(2025, 12, 1))]
        snapshot = compute_from_events(1, events, 0.0)
        assert snapshot.last_maintenance_date == date(2026, 1, 10)
        assert snapshot.predicted_next_maintenance_date == date(2026, 1, 10) + timedelta(
            days=180
        )

    def test_custom_interval(self):
        snapshot = compute_from_events(
            1, [_maintenance(date(2026, 1, 10))], 0.0, maintenance_interval_days=90
        )
        assert snapshot.predicted_next_maintenance_date == date(2026, 4, 10)

    def test_cancelled_maintenance_counts_cost_only(self):
        events = [
            _maintenance(date(2026, 1, 10)),
            _maintenance(date(2026, 2, 1), amount=50, status=MaintenanceStatus.CANCELLED),
        ]
        snapshot = compute_from_events(1, events, 0.0)
        assert snapshot.last_maintenance_date == date(2026, 1, 10)
        assert snapshot.total_maintenance_cost == 150

    def test_average_fuel_per_volume(self):
        snapshot = compute_from_events(1, [_fuel(date(2026, 1, 5), 120, 6.0)], 400.0)
        assert snapshot.average_fuel_per_volume_unit == 0.3

    def test_odometer_from_latest_fill(self):
        events = [
            _fuel(date(2026, 1, 9), 50, 6.0, odometer=12000),
            _fuel(date(2026, 1, 5), 50, 6.0, odometer=11000),
            _fuel(date(2026, 1, 12), 50, 6.0),
        ]
        assert compute_from_events(1, events, 0.0).current_odometer == 12000

    def test_other_pumps_are_ignored(self):
        events = [
            OtherEvent(None, 2, 99.0, date(2026, 1, 1), "Pedágio"),
            OtherEvent(None, 1, 10.0, date(2026, 1, 1), "Lavagem"),
        ]
        assert compute_from_events(1, events, 0.0).total_other_cost == 10.0


class TestKpiAggregator:
    def test_compute_is_idempotent(self):
        ledger = StaticLedger([_maintenance(date(2026, 1, 10)), _fuel(date(2026, 1, 5), 10, 6)])
        aggregator = KpiAggregator(ledger, StaticVolume(250.0))
        assert aggregator.compute_kpis(1) == aggregator.compute_kpis(1)

    def test_degraded_volume_is_zeroed(self):
        ledger = StaticLedger([_fuel(date(2026, 1, 5), 10, 6)])
        snapshot = KpiAggregator(ledger, BrokenVolume()).compute_kpis(1)
        assert snapshot.volume_degraded is True
        assert snapshot.total_volume_pumped == 0
        assert snapshot.average_fuel_per_volume_unit == 0
        assert snapshot.total_fuel_liters == 10

    def test_negative_volume_is_degraded(self):
        snapshot = KpiAggregator(StaticLedger([]), StaticVolume(-5)).compute_kpis(1)
        assert snapshot.volume_degraded is True
        assert snapshot.total_volume_pumped == 0

    def test_transport_failure_is_degraded(self):
        ledger = StaticLedger([_fuel(date(2026, 1, 5), 10, 6)])
        snapshot = KpiAggregator(ledger, OfflineVolume()).compute_kpis(1)
        assert snapshot.volume_degraded is True
        assert snapshot.total_volume_pumped == 0
        assert snapshot.total_fuel_cost == 60

    def test_missing_volume_is_degraded(self):
        snapshot = KpiAggregator(StaticLedger([]), NoneVolume()).compute_kpis(1)
        assert snapshot.volume_degraded is True
        assert snapshot.total_volume_pumped == 0
