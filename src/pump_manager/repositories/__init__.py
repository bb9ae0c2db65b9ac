"""Repositories for data access."""

from pump_manager.repositories.booking_repo import BookingRepo
from pump_manager.repositories.job_report_repo import JobReportRepo
from pump_manager.repositories.ledger_repo import LedgerRepo
from pump_manager.repositories.mappers import (
    booking_from_row,
    booking_to_record,
    job_report_from_row,
    ledger_event_from_row,
    ledger_event_to_record,
    pump_from_row,
)
from pump_manager.repositories.pump_repo import PumpRepo

__all__ = [
    "BookingRepo",
    "booking_from_row",
    "booking_to_record",
    "job_report_from_row",
    "JobReportRepo",
    "ledger_event_from_row",
    "ledger_event_to_record",
    "LedgerRepo",
    "pump_from_row",
    "PumpRepo",
]
