"""Domain models for PumpManager."""

from pump_manager.domain.models import (
    Alert,
    AlertSeverity,
    AlertType,
    Booking,
    BookingDraft,
    BookingState,
    FuelEvent,
    InvestmentEvent,
    JobReport,
    LedgerCategory,
    LedgerEvent,
    MaintenanceEvent,
    OtherEvent,
    Pump,
    PumpKPISnapshot,
    PumpOverview,
    PumpStatus,
)

__all__ = [
    "Alert",
    "AlertSeverity",
    "AlertType",
    "Booking",
    "BookingDraft",
    "BookingState",
    "FuelEvent",
    "InvestmentEvent",
    "JobReport",
    "LedgerCategory",
    "LedgerEvent",
    "MaintenanceEvent",
    "OtherEvent",
    "Pump",
    "PumpKPISnapshot",
    "PumpOverview",
    "PumpStatus",
]
