"""Migrations, configuration, notices, PDF report and CLI."""

import json

from pump_manager import app
from pump_manager.config import (
    FUEL_ANOMALY_THRESHOLD,
    MAINTENANCE_INTERVAL_DAYS,
    CoreSettings,
    load_core_settings,
)
from pump_manager.db.migrations import LATEST_VERSION, apply_migrations, get_schema_version
from pump_manager.domain.models import NoticeKind
from pump_manager.paths import get_db_path, get_report_path
from pump_manager.services.notifications import SignalNotifier
from pump_manager.utils.config_store import load_config_data, update_config_section
from pump_manager.utils.pdf_generator import generate_pump_report_pdf


class TestMigrations:
    def test_schema_is_current(self, connection):
        assert get_schema_version(connection) == LATEST_VERSION

    def test_reapplying_is_noop(self, connection):
        assert apply_migrations(connection) == LATEST_VERSION

    def test_slot_index_exists(self, connection):
        names = {
            row["name"]
            for row in connection.execute(
                "SELECT name FROM sqlite_master WHERE type = 'index'"
            )
        }
        assert "idx_bookings_pump_slot" in names


class TestPaths:
    def test_home_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PUMP_MANAGER_HOME", str(tmp_path))
        assert get_db_path() == tmp_path / "pump_manager.db"
        assert get_report_path("PX 01/a") == tmp_path / "reports" / "bomba_PX_01_a.pdf"


class TestCoreSettings:
    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_core_settings(tmp_path / "config.json") == CoreSettings()

    def test_values_are_read_from_section(self, tmp_path):
        path = tmp_path / "config.json"
        update_config_section(
            path,
            "pump_core",
            {"maintenance_interval_days": 90, "fuel_per_volume_threshold": 1.5},
        )
        settings = load_core_settings(path)
        assert settings.maintenance_interval_days == 90
        assert settings.fuel_per_volume_threshold == 1.5

    def test_invalid_values_fall_back(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(
            json.dumps(
                {
                    "pump_core": {
                        "maintenance_interval_days": -1,
                        "fuel_anomaly_threshold": "alto",
                    }
                }
            ),
            encoding="utf-8",
        )
        settings = load_core_settings(path)
        assert settings.maintenance_interval_days == MAINTENANCE_INTERVAL_DAYS
        assert settings.fuel_anomaly_threshold == FUEL_ANOMALY_THRESHOLD

    def test_malformed_file_is_ignored(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json", encoding="utf-8")
        assert load_config_data(path) == {}


class TestSignalNotifier:
    def test_notice_is_emitted(self):
        notifier = SignalNotifier()
        received = []
        notifier.bus.notice_emitted.connect(
            lambda kind, payload: received.append((kind, payload))
        )
        notifier.notify(NoticeKind.CALENDAR_EVENT, {"reference_id": 7})
        assert received == [("calendar_event", {"reference_id": 7})]


class TestPumpReport:
    def test_pdf_is_written(self, service, pump, planned_draft, tmp_path):
        service.scheduler.create(planned_draft())
        service.record_fuel(pump.id, occurred_on="2026-03-01", liters_filled=80, cost_per_liter=6)
        output = generate_pump_report_pdf(
            service.get_pump_overview(pump.id), tmp_path / "out" / "px01.pdf"
        )
        assert output.read_bytes().startswith(b"%PDF")


class TestCommandLine:
    def test_overview_and_fleet(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("PUMP_MANAGER_HOME", str(tmp_path))
        monkeypatch.setattr(app, "configure_logging", lambda: tmp_path / "app.log")
        db_path = tmp_path / "cli.db"
        assert app.main(["--db", str(db_path), "fleet"]) == 0
        assert "Bombas: 0" in capsys.readouterr().out

        assert app.main(["--db", str(db_path), "overview", "PX-99"]) == 1
        assert "PX-99" in capsys.readouterr().err
