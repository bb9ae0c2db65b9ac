"""Smoke test for core pump flows."""

from __future__ import annotations

import tempfile
from datetime import date, timedelta
from pathlib import Path
import sys

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR / "src"))

from pump_manager.db.connection import get_connection  # noqa: E402
from pump_manager.db.migrations import apply_migrations  # noqa: E402
from pump_manager.domain.models import (  # noqa: E402
    BookingDraft,
    BookingState,
    MaintenanceKind,
)
from pump_manager.services.errors import ConflictError  # noqa: E402
from pump_manager.services.resource_facade import PumpResourceService  # noqa: E402
from pump_manager.utils.pdf_generator import generate_pump_report_pdf  # noqa: E402


def main() -> None:
    today = date.today()
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        connection = get_connection(temp_path / "smoke_test.db")
        try:
            apply_migrations(connection)
            service = PumpResourceService(connection)

            pump = service.register_pump("PX-01", owner_id=1, model="36X")
            overview = service.get_pump_overview(pump.id)
            if overview.alerts or overview.kpis.predicted_next_maintenance_date:
                raise RuntimeError("Bomba nova não deveria ter alertas.")

            service.record_maintenance(
                pump.id,
                occurred_on=today,
                label="Revisão geral",
                amount=1200.0,
                kind=MaintenanceKind.PREVENTIVE,
            )
            service.record_fuel(
                pump.id,
                occurred_on=today,
                liters_filled=150.0,
                cost_per_liter=6.1,
                odometer=8000,
            )
            service.record_job(pump.id, "R-100", 90.0, today, "Cliente Smoke")

            draft = BookingDraft(
                state=BookingState.PLANNED,
                pump_id=pump.id,
                date=today + timedelta(days=1),
                time="07:30",
                client_id=1,
                responsible_person="Smoke",
                company_id=1,
                address="Rua Teste",
                address_number="10",
                crew_assistants=["Auxiliar"],
            )
            booking = service.scheduler.create(draft)
            try:
                service.scheduler.create(draft)
            except ConflictError as exc:
                if exc.blocking_booking_id != booking.id:
                    raise RuntimeError("Conflito não identificou a programação.") from exc
            else:
                raise RuntimeError("Conflito de horário não detectado.")

            overview = service.get_pump_overview(pump.id)
            expected = today + timedelta(days=180)
            if overview.kpis.predicted_next_maintenance_date != expected:
                raise RuntimeError("Previsão de manutenção incorreta.")
            if overview.kpis.total_volume_pumped != 90.0:
                raise RuntimeError("Volume bombeado incorreto.")

            pdf_path = generate_pump_report_pdf(overview, temp_path / "px01.pdf")
            if not pdf_path.exists():
                raise RuntimeError("Relatório PDF não foi gerado.")
        finally:
            connection.close()
    print("Smoke test OK")


if __name__ == "__main__":
    main()
