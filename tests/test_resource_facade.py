"""Pump resource service tests."""

from datetime import timedelta

import pytest

from conftest import TODAY, FailingNotifier
from pump_manager.domain.models import (
    AlertSeverity,
    DiscountType,
    LedgerCategory,
    MaintenanceKind,
    PumpStatus,
)
from pump_manager.services.errors import NotFoundError, ValidationError
from pump_manager.services.resource_facade import PumpResourceService, fuel_total


class TestPumpOverview:
    def test_new_pump_then_first_maintenance(self, service, pump):
        overview = service.get_pump_overview(pump.id)
        assert overview.kpis.total_volume_pumped == 0
        assert overview.alerts == []
        assert overview.kpis.predicted_next_maintenance_date is None

        service.record_maintenance(
            pump.id, occurred_on=TODAY, label="Revisão geral", amount=1500.0
        )
        overview = service.get_pump_overview(pump.id)
        assert overview.kpis.last_maintenance_date == TODAY
        assert overview.kpis.predicted_next_maintenance_date == TODAY + timedelta(days=180)
        assert overview.alerts == []

    def test_overview_by_prefix(self, service, pump):
        assert service.get_pump_overview_by_prefix("PX-01").pump.id == pump.id

    def test_unknown_pump(self, service):
        with pytest.raises(NotFoundError):
            service.get_pump_overview(404)

    def test_overdue_maintenance_alert(self, service, pump):
        service.record_maintenance(
            pump.id,
            occurred_on=TODAY - timedelta(days=183),
            label="Troca de mangote",
            amount=300.0,
        )
        alerts = service.check_alerts(pump.id)
        assert [alert.severity for alert in alerts] == [AlertSeverity.ERROR]
        assert "3 dias" in alerts[0].message

    def test_volume_and_recent_reports(self, service, pump):
        service.record_job(pump.id, "R-001", 120.0, "2026-03-01", "Construtora Alfa")
        service.record_job(pump.id, "R-002", 80.0, "2026-03-05")
        service.record_fuel(
            pump.id, occurred_on=TODAY, liters_filled=100.0, cost_per_liter=6.0
        )
        overview = service.get_pump_overview(pump.id)
        assert overview.kpis.total_volume_pumped == 200.0
        assert overview.kpis.average_fuel_per_volume_unit == 0.5
        assert [report.report_number for report in overview.recent_reports] == [
            "R-002",
            "R-001",
        ]

    def test_unreachable_volume_source_degrades_overview(self, connection):
        class OfflineVolume:
            def sum_volume_for_pump(self, pump_id):
                raise ConnectionError("job service offline")

        service = PumpResourceService(
            connection, volume_source=OfflineVolume(), today_provider=lambda: TODAY
        )
        pump = service.register_pump("PX-03", owner_id=1)
        service.record_fuel(pump.id, occurred_on=TODAY, liters_filled=40, cost_per_liter=6)
        overview = service.get_pump_overview(pump.id)
        assert overview.kpis.volume_degraded is True
        assert overview.kpis.total_volume_pumped == 0
        assert overview.kpis.total_fuel_cost == 240

    def test_recent_bookings_included(self, service, planned_draft, pump):
        booking = service.scheduler.create(planned_draft())
        overview = service.get_pump_overview(pump.id)
        assert [item.id for item in overview.recent_bookings] == [booking.id]


class TestLedgerWrites:
    def test_fuel_amount_with_discounts(self):
        assert fuel_total(100, 6.0) == 600.0
        assert fuel_total(100, 6.0, DiscountType.FIXED, 50) == 550.0
        assert fuel_total(100, 6.0, DiscountType.PERCENTAGE, 10) == 540.0

    def test_record_fuel_derives_amount(self, service, pump):
        event = service.record_fuel(
            pump.id,
            occurred_on="2026-03-08",
            liters_filled=200.0,
            cost_per_liter=6.0,
            discount_type="fixed",
            discount_value=100.0,
            odometer=15000,
            payment_method="pix",
        )
        assert event.id is not None
        assert event.amount == 1100.0
        assert service.aggregator.compute_kpis(pump.id).total_fuel_cost == 1100.0

    def test_fuel_amount_keeps_full_precision(self, service, pump):
        before = service.aggregator.compute_kpis(pump.id)
        event = service.record_fuel(
            pump.id, occurred_on=TODAY, liters_filled=33.333, cost_per_liter=5.79
        )
        after = service.aggregator.compute_kpis(pump.id)
        assert event.amount == 33.333 * 5.79
        assert after.total_fuel_cost - before.total_fuel_cost == 33.333 * 5.79
        assert after.total_fuel_liters - before.total_fuel_liters == 33.333

    def test_discount_above_subtotal_is_rejected(self, service, pump):
        with pytest.raises(ValidationError) as excinfo:
            service.record_fuel(
                pump.id,
                occurred_on=TODAY,
                liters_filled=10.0,
                cost_per_liter=6.0,
                discount_type=DiscountType.FIXED,
                discount_value=100.0,
            )
        assert "discount_value" in excinfo.value.fields
        assert service.list_events(pump.id) == []

    def test_fuel_violations_are_collected(self, service, pump):
        with pytest.raises(ValidationError) as excinfo:
            service.record_fuel(
                pump.id,
                occurred_on="not a date",
                liters_filled=0,
                cost_per_liter=-1,
                payment_method="cash",
            )
        assert set(excinfo.value.fields) == {
            "occurred_on",
            "liters_filled",
            "cost_per_liter",
            "payment_method",
        }

    def test_record_for_unknown_pump(self, service):
        with pytest.raises(NotFoundError):
            service.record_other(404, occurred_on=TODAY, amount=10.0, description="Taxa")

    def test_investment_and_other(self, service, pump):
        service.record_investment(
            pump.id, occurred_on=TODAY, name="Lança nova", amount=9000.0, warranty_months=12
        )
        service.record_other(pump.id, occurred_on=TODAY, amount=40.0, description="Pedágio")
        kpis = service.aggregator.compute_kpis(pump.id)
        assert kpis.total_investment_cost == 9000.0
        assert kpis.total_other_cost == 40.0
        assert [event.category for event in service.list_events(pump.id)] == [
            LedgerCategory.INVESTMENT,
            LedgerCategory.OTHER,
        ]

    def test_correct_event(self, service, pump):
        event = service.record_fuel(
            pump.id, occurred_on=TODAY, liters_filled=100.0, cost_per_liter=6.0
        )
        corrected = service.correct_event(event.id, cost_per_liter=5.5)
        assert corrected.amount == 550.0
        assert corrected.corrected_at is not None
        assert service.aggregator.compute_kpis(pump.id).total_fuel_cost == 550.0

    def test_correct_rejects_foreign_fields(self, service, pump):
        event = service.record_other(
            pump.id, occurred_on=TODAY, amount=10.0, description="Taxa"
        )
        with pytest.raises(ValidationError):
            service.correct_event(event.id, liters_filled=5)
        with pytest.raises(ValidationError):
            service.correct_event(event.id, pump_id=2)


class TestNotices:
    def test_maintenance_sends_financial_and_calendar(self, service, pump, notifier):
        event = service.record_maintenance(
            pump.id,
            occurred_on=TODAY,
            label="Troca de pistão",
            amount=800.0,
            kind=MaintenanceKind.CORRECTIVE,
        )
        kinds = [kind for kind, _ in notifier.notices]
        assert kinds == ["financial_integration", "calendar_event"]
        calendar = notifier.notices[1][1]
        assert calendar["color"] == "red"
        assert calendar["reference_id"] == event.id

    def test_fuel_sends_financial_only(self, service, pump, notifier):
        service.record_fuel(pump.id, occurred_on=TODAY, liters_filled=10, cost_per_liter=6)
        assert [kind for kind, _ in notifier.notices] == ["financial_integration"]
        assert notifier.notices[0][1]["value"] == 60.0

    def test_notice_failure_keeps_event(self, connection):
        service = PumpResourceService(
            connection, notifier=FailingNotifier(), today_provider=lambda: TODAY
        )
        pump = service.register_pump("PX-02", owner_id=1)
        event = service.record_maintenance(
            pump.id, occurred_on=TODAY, label="Revisão", amount=100.0
        )
        assert [item.id for item in service.list_events(pump.id)] == [event.id]


class TestFleet:
    def test_register_duplicate_prefix(self, service, pump):
        with pytest.raises(ValidationError) as excinfo:
            service.register_pump(" PX-01 ", owner_id=2)
        assert excinfo.value.fields == ["prefix"]

    def test_set_status(self, service, pump):
        assert service.set_pump_status(pump.id, "in_maintenance").status == (
            PumpStatus.IN_MAINTENANCE
        )
        with pytest.raises(ValidationError):
            service.set_pump_status(pump.id, "broken")
        with pytest.raises(NotFoundError):
            service.set_pump_status(404, PumpStatus.AVAILABLE)

    def test_fleet_stats(self, service, pump):
        other = service.register_pump("PX-02", owner_id=1)
        service.set_pump_status(other.id, PumpStatus.IN_USE)
        service.record_maintenance(
            pump.id, occurred_on=TODAY - timedelta(days=160), label="Revisão", amount=200.0
        )
        service.record_fuel(other.id, occurred_on=TODAY, liters_filled=50, cost_per_liter=6)
        stats = service.get_fleet_stats()
        assert stats.total_pumps == 2
        assert stats.available_pumps == 1
        assert stats.in_use_pumps == 1
        assert stats.total_maintenance_cost == 200.0
        assert stats.total_fuel_liters == 50
        assert stats.maintenance_due_count == 1
