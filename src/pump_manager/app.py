"""Command-line entry point."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from pump_manager.config import AppConfig, load_core_settings
from pump_manager.db.connection import get_connection
from pump_manager.db.migrations import apply_migrations
from pump_manager.domain.models import AlertSeverity, FleetStats, PumpOverview
from pump_manager.logging_config import configure_logging, get_logger
from pump_manager.paths import get_config_path, get_db_path, get_report_path
from pump_manager.services.errors import ServiceError
from pump_manager.services.resource_facade import PumpResourceService
from pump_manager.utils.dates import format_br_date
from pump_manager.utils.pdf_generator import generate_pump_report_pdf
from pump_manager.version import __version__


def _build_parser() -> argparse.ArgumentParser:
    config = AppConfig()
    parser = argparse.ArgumentParser(
        prog="pump-manager",
        description=f"{config.app_name}: indicadores e alertas das bombas",
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Caminho do banco SQLite (padrão: pasta de dados do usuário).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    overview = subparsers.add_parser("overview", help="Resumo de uma bomba.")
    overview.add_argument("prefix", help="Prefixo da bomba, ex.: PX-01")

    report = subparsers.add_parser("report", help="Gera o relatório PDF da bomba.")
    report.add_argument("prefix", help="Prefixo da bomba, ex.: PX-01")
    report.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Arquivo PDF de saída (padrão: pasta de relatórios).",
    )

    subparsers.add_parser("fleet", help="Indicadores consolidados da frota.")
    return parser


def _print_overview(overview: PumpOverview) -> None:
    pump = overview.pump
    kpis = overview.kpis
    print(f"Bomba {pump.prefix} ({pump.status.value})")
    volume_note = " (indisponível)" if kpis.volume_degraded else ""
    print(f"  Volume bombeado: {kpis.total_volume_pumped:.2f} m³{volume_note}")
    print(f"  Diesel: {kpis.total_fuel_liters:.2f} L")
    print(f"  Média: {kpis.average_fuel_per_volume_unit:.2f} L/m³")
    print(f"  Custo total: R$ {kpis.total_cost:.2f}")
    print(f"  Última manutenção: {format_br_date(kpis.last_maintenance_date)}")
    print(
        "  Próxima manutenção: "
        f"{format_br_date(kpis.predicted_next_maintenance_date)}"
    )
    for alert in overview.alerts:
        marker = "!!" if alert.severity == AlertSeverity.ERROR else "!"
        print(f"  {marker} {alert.message}")
    for booking in overview.recent_bookings:
        print(
            f"  Programação #{booking.id}: "
            f"{format_br_date(booking.date)} {booking.time or ''}".rstrip()
        )


def _print_fleet(stats: FleetStats) -> None:
    print(f"Bombas: {stats.total_pumps}")
    print(
        f"  Disponíveis: {stats.available_pumps} | Em uso: {stats.in_use_pumps}"
        f" | Em manutenção: {stats.in_maintenance_pumps}"
    )
    print(f"  Volume bombeado: {stats.total_volume_pumped:.2f} m³")
    print(f"  Diesel: {stats.total_fuel_liters:.2f} L")
    print(f"  Manutenção: R$ {stats.total_maintenance_cost:.2f}")
    print(f"  Investimentos: R$ {stats.total_investment_cost:.2f}")
    print(f"  Manutenções próximas: {stats.maintenance_due_count}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the PumpManager command line."""
    args = _build_parser().parse_args(argv)
    configure_logging()
    logger = get_logger(__name__)

    connection = get_connection(get_db_path(args.db))
    try:
        apply_migrations(connection)
        service = PumpResourceService(
            connection, settings=load_core_settings(get_config_path())
        )
        if args.command == "overview":
            _print_overview(service.get_pump_overview_by_prefix(args.prefix))
        elif args.command == "report":
            overview = service.get_pump_overview_by_prefix(args.prefix)
            output = args.output or get_report_path(overview.pump.prefix)
            generate_pump_report_pdf(overview, output)
            logger.info("Pump report written to %s", output)
            print(f"Relatório gerado em {output}")
        else:
            _print_fleet(service.get_fleet_stats())
    except ServiceError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    finally:
        connection.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
