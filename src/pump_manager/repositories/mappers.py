"""SQLite row mappers for domain models."""

from __future__ import annotations

import sqlite3
from typing import Any, Dict, Iterable, Optional

from pump_manager.domain.models import (
    Booking,
    BookingState,
    DiscountType,
    FuelEvent,
    InvestmentCategory,
    InvestmentEvent,
    JobReport,
    LedgerCategory,
    LedgerEvent,
    MaintenanceEvent,
    MaintenanceKind,
    MaintenanceStatus,
    OtherEvent,
    PaymentMethod,
    Pump,
    PumpStatus,
)
from pump_manager.utils.dates import to_date, to_optional_date


def _row_value(row: sqlite3.Row, key: str) -> Any:
    return row[key] if key in row.keys() else None


def _enum_value(enum_cls: type, raw: Any, default: Any) -> Any:
    if raw is None:
        return default
    try:
        return enum_cls(raw)
    except ValueError:
        return default


def _enum_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value.value if hasattr(value, "value") else str(value)


def pump_from_row(row: sqlite3.Row) -> Pump:
    return Pump(
        id=_row_value(row, "id"),
        prefix=row["prefix"],
        status=_enum_value(PumpStatus, row["status"], PumpStatus.AVAILABLE),
        owner_id=_row_value(row, "owner_id"),
        model=_row_value(row, "model"),
        brand=_row_value(row, "brand"),
        created_at=_row_value(row, "created_at"),
        updated_at=_row_value(row, "updated_at"),
    )


def ledger_event_from_row(row: sqlite3.Row) -> LedgerEvent:
    """Build the ledger variant matching the row's category column."""
    category = LedgerCategory(row["category"])
    common = {
        "id": _row_value(row, "id"),
        "pump_id": row["pump_id"],
        "amount": float(row["amount"] or 0),
        "occurred_on": to_date(row["occurred_on"]),
        "description": _row_value(row, "description"),
        "created_at": _row_value(row, "created_at"),
        "corrected_at": _row_value(row, "corrected_at"),
    }
    if category == LedgerCategory.MAINTENANCE:
        return MaintenanceEvent(
            label=_row_value(row, "label") or "",
            kind=_enum_value(
                MaintenanceKind,
                _row_value(row, "maintenance_kind"),
                MaintenanceKind.PREVENTIVE,
            ),
            lifecycle_status=_enum_value(
                MaintenanceStatus,
                _row_value(row, "lifecycle_status"),
                MaintenanceStatus.SCHEDULED,
            ),
            **common,
        )
    if category == LedgerCategory.FUEL:
        return FuelEvent(
            liters_filled=float(_row_value(row, "liters_filled") or 0),
            cost_per_liter=float(_row_value(row, "cost_per_liter") or 0),
            payment_method=_enum_value(
                PaymentMethod, _row_value(row, "payment_method"), PaymentMethod.CARD
            ),
            odometer=_row_value(row, "odometer"),
            discount_type=_enum_value(
                DiscountType, _row_value(row, "discount_type"), None
            ),
            discount_value=float(_row_value(row, "discount_value") or 0),
            fuel_station=_row_value(row, "fuel_station"),
            **common,
        )
    if category == LedgerCategory.INVESTMENT:
        return InvestmentEvent(
            name=_row_value(row, "name") or "",
            supplier=_row_value(row, "supplier"),
            investment_category=_enum_value(
                InvestmentCategory,
                _row_value(row, "investment_category"),
                InvestmentCategory.EQUIPMENT,
            ),
            warranty_months=_row_value(row, "warranty_months"),
            **common,
        )
    return OtherEvent(**common)


def ledger_event_to_record(event: LedgerEvent) -> Dict[str, Any]:
    """Flatten a ledger variant into the single-table column layout."""
    record: Dict[str, Any] = {
        "pump_id": event.pump_id,
        "category": event.category.value,
        "amount": event.amount,
        "occurred_on": event.occurred_on.isoformat(),
        "description": event.description,
        "label": None,
        "maintenance_kind": None,
        "lifecycle_status": None,
        "liters_filled": None,
        "cost_per_liter": None,
        "odometer": None,
        "payment_method": None,
        "discount_type": None,
        "discount_value": None,
        "fuel_station": None,
        "name": None,
        "supplier": None,
        "investment_category": None,
        "warranty_months": None,
    }
    if isinstance(event, MaintenanceEvent):
        record.update(
            label=event.label,
            maintenance_kind=event.kind.value,
            lifecycle_status=event.lifecycle_status.value,
        )
    elif isinstance(event, FuelEvent):
        record.update(
            liters_filled=event.liters_filled,
            cost_per_liter=event.cost_per_liter,
            odometer=event.odometer,
            payment_method=event.payment_method.value,
            discount_type=_enum_or_none(event.discount_type),
            discount_value=event.discount_value,
            fuel_station=event.fuel_station,
        )
    elif isinstance(event, InvestmentEvent):
        record.update(
            name=event.name,
            supplier=event.supplier,
            investment_category=event.investment_category.value,
            warranty_months=event.warranty_months,
        )
    return record


def booking_from_row(
    row: sqlite3.Row, assistants: Optional[Iterable[str]] = None
) -> Booking:
    volume = _row_value(row, "concrete_volume")
    return Booking(
        id=_row_value(row, "id"),
        pump_id=row["pump_id"],
        date=to_optional_date(_row_value(row, "date")),
        time=_row_value(row, "time"),
        state=BookingState(row["state"]),
        client_id=row["client_id"],
        responsible_person=row["responsible_person"],
        company_id=row["company_id"],
        postal_code=_row_value(row, "postal_code"),
        address=_row_value(row, "address"),
        address_number=_row_value(row, "address_number"),
        district=_row_value(row, "district"),
        city=_row_value(row, "city"),
        concrete_volume=float(volume) if volume is not None else None,
        notes=_row_value(row, "notes"),
        crew_assistants=list(assistants or []),
        created_at=_row_value(row, "created_at"),
        updated_at=_row_value(row, "updated_at"),
    )


def booking_to_record(booking: Booking) -> Dict[str, Any]:
    return {
        "pump_id": booking.pump_id,
        "date": booking.date.isoformat() if booking.date else None,
        "time": booking.time,
        "state": booking.state.value,
        "client_id": booking.client_id,
        "responsible_person": booking.responsible_person,
        "company_id": booking.company_id,
        "postal_code": booking.postal_code,
        "address": booking.address,
        "address_number": booking.address_number,
        "district": booking.district,
        "city": booking.city,
        "concrete_volume": booking.concrete_volume,
        "notes": booking.notes,
    }


def job_report_from_row(row: sqlite3.Row) -> JobReport:
    return JobReport(
        id=_row_value(row, "id"),
        pump_id=row["pump_id"],
        report_number=row["report_number"],
        realized_volume=float(row["realized_volume"] or 0),
        date=to_date(row["date"]),
        client_name=_row_value(row, "client_name"),
    )
