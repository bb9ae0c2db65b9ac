"""PDF generation for pump overview reports."""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from pump_manager.config import AppConfig
from pump_manager.domain.models import (
    AlertSeverity,
    BookingState,
    PumpOverview,
    PumpStatus,
)


def _format_currency(value: float) -> str:
    formatted = f"{value:,.2f}"
    return f"R$ {formatted.replace(',', 'X').replace('.', ',').replace('X', '.')}"


def _format_number(value: float, decimals: int = 2) -> str:
    formatted = f"{value:,.{decimals}f}"
    return formatted.replace(",", "X").replace(".", ",").replace("X", ".")


def _format_date(value: Optional[date]) -> str:
    if not value:
        return "-"
    return value.strftime("%d/%m/%Y")


def _status_label(status: PumpStatus) -> str:
    return {
        PumpStatus.AVAILABLE: "Disponível",
        PumpStatus.IN_USE: "Em uso",
        PumpStatus.IN_MAINTENANCE: "Em manutenção",
    }.get(status, status.value)


def _table(rows: list[list[str]], col_widths: list[float], header: bool) -> Table:
    table = Table(rows, colWidths=col_widths)
    style = [
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("FONTNAME", (0, 0), (-1, -1), "Helvetica"),
    ]
    if header:
        style.append(("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey))
    table.setStyle(TableStyle(style))
    return table


def _kpi_rows(overview: PumpOverview) -> list[list[str]]:
    kpis = overview.kpis
    volume = f"{_format_number(kpis.total_volume_pumped)} m³"
    if kpis.volume_degraded:
        volume += " (indisponível)"
    odometer = (
        f"{_format_number(kpis.current_odometer, 0)} km"
        if kpis.current_odometer is not None
        else "-"
    )
    return [
        ["Volume bombeado", volume],
        ["Diesel consumido", f"{_format_number(kpis.total_fuel_liters)} L"],
        ["Média de diesel", f"{_format_number(kpis.average_fuel_per_volume_unit)} L/m³"],
        ["Custo de manutenção", _format_currency(kpis.total_maintenance_cost)],
        ["Custo de diesel", _format_currency(kpis.total_fuel_cost)],
        ["Investimentos", _format_currency(kpis.total_investment_cost)],
        ["Outras despesas", _format_currency(kpis.total_other_cost)],
        ["Custo total", _format_currency(kpis.total_cost)],
        ["Última manutenção", _format_date(kpis.last_maintenance_date)],
        ["Próxima manutenção", _format_date(kpis.predicted_next_maintenance_date)],
        ["Quilometragem", odometer],
    ]


def generate_pump_report_pdf(
    overview: PumpOverview,
    output_path: Path,
    *,
    config: AppConfig = AppConfig(),
) -> Path:
    """Write the pump overview (KPIs, alerts, recent activity) to a PDF."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    pump = overview.pump
    title = f"Relatório da bomba {pump.prefix}"
    doc = SimpleDocTemplate(
        str(output_path),
        pagesize=A4,
        rightMargin=20 * mm,
        leftMargin=20 * mm,
        topMargin=18 * mm,
        bottomMargin=18 * mm,
        title=title,
        author=config.organization_name,
    )

    styles = getSampleStyleSheet()
    styles.add(
        ParagraphStyle(
            name="SectionTitle",
            parent=styles["Heading3"],
            spaceBefore=12,
            spaceAfter=6,
        )
    )
    styles.add(
        ParagraphStyle(
            name="SmallText",
            parent=styles["Normal"],
            fontSize=9,
            leading=12,
        )
    )

    elements: list[object] = [Paragraph(f"<b>{title}</b>", styles["Title"])]
    pump_lines = [
        f"<b>Status:</b> {_status_label(pump.status)}",
        f"<b>Modelo:</b> {pump.model or '-'}",
        f"<b>Marca:</b> {pump.brand or '-'}",
    ]
    elements.append(Paragraph("<br/>".join(pump_lines), styles["Normal"]))

    elements.append(Paragraph("Indicadores", styles["SectionTitle"]))
    elements.append(_table(_kpi_rows(overview), [60 * mm, 100 * mm], header=False))

    elements.append(Paragraph("Alertas", styles["SectionTitle"]))
    if overview.alerts:
        alert_rows = [["Gravidade", "Mensagem"]]
        for alert in overview.alerts:
            severity = "Erro" if alert.severity == AlertSeverity.ERROR else "Aviso"
            alert_rows.append([severity, alert.message])
        elements.append(_table(alert_rows, [30 * mm, 130 * mm], header=True))
    else:
        elements.append(Paragraph("Nenhum alerta.", styles["SmallText"]))

    elements.append(Paragraph("Próximas programações", styles["SectionTitle"]))
    if overview.recent_bookings:
        booking_rows = [["Data", "Horário", "Situação", "Endereço"]]
        for booking in overview.recent_bookings:
            address = ", ".join(
                part for part in (booking.address, booking.address_number) if part
            )
            booking_rows.append(
                [
                    _format_date(booking.date),
                    booking.time or "-",
                    "Reservada"
                    if booking.state == BookingState.RESERVED
                    else "Programada",
                    address or "-",
                ]
            )
        elements.append(
            _table(booking_rows, [28 * mm, 22 * mm, 28 * mm, 82 * mm], header=True)
        )
    else:
        elements.append(Paragraph("Nenhuma programação.", styles["SmallText"]))

    elements.append(Paragraph("Relatórios recentes", styles["SectionTitle"]))
    if overview.recent_reports:
        report_rows = [["Número", "Data", "Cliente", "Volume"]]
        for report in overview.recent_reports:
            report_rows.append(
                [
                    report.report_number,
                    _format_date(report.date),
                    report.client_name or "-",
                    f"{_format_number(report.realized_volume)} m³",
                ]
            )
        elements.append(
            _table(report_rows, [30 * mm, 28 * mm, 72 * mm, 30 * mm], header=True)
        )
    else:
        elements.append(Paragraph("Nenhum relatório.", styles["SmallText"]))

    footer = (
        f"{config.app_name} - gerado em "
        f"{datetime.now().strftime('%d/%m/%Y %H:%M')}"
    )
    elements.append(Spacer(1, 12))
    elements.append(Paragraph(footer, styles["SmallText"]))

    doc.build(elements)
    return output_path
