"""Domain dataclasses and enums."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional, Union


class PumpStatus(str, Enum):
    AVAILABLE = "available"
    IN_USE = "in_use"
    IN_MAINTENANCE = "in_maintenance"


class LedgerCategory(str, Enum):
    MAINTENANCE = "maintenance"
    FUEL = "fuel"
    INVESTMENT = "investment"
    OTHER = "other"


class MaintenanceKind(str, Enum):
    PREVENTIVE = "preventive"
    CORRECTIVE = "corrective"


class MaintenanceStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    CARD = "card"
    PIX = "pix"


class DiscountType(str, Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


class InvestmentCategory(str, Enum):
    EQUIPMENT = "equipment"
    IMPROVEMENT = "improvement"
    UPGRADE = "upgrade"
    OTHER = "other"


class BookingState(str, Enum):
    RESERVED = "reserved"
    PLANNED = "planned"


class AlertType(str, Enum):
    MAINTENANCE_DUE = "maintenance_due"
    FUEL_ANOMALY = "fuel_anomaly"


class AlertSeverity(str, Enum):
    WARNING = "warning"
    ERROR = "error"


class NoticeKind(str, Enum):
    FINANCIAL_INTEGRATION = "financial_integration"
    CALENDAR_EVENT = "calendar_event"


@dataclass(slots=True)
class Pump:
    id: Optional[int]
    prefix: str
    status: PumpStatus
    owner_id: Optional[int]
    model: Optional[str] = None
    brand: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(slots=True)
class MaintenanceEvent:
    id: Optional[int]
    pump_id: int
    amount: float
    occurred_on: date
    label: str
    kind: MaintenanceKind
    lifecycle_status: MaintenanceStatus = MaintenanceStatus.SCHEDULED
    description: Optional[str] = None
    created_at: Optional[str] = None
    corrected_at: Optional[str] = None

    @property
    def category(self) -> LedgerCategory:
        return LedgerCategory.MAINTENANCE


@dataclass(slots=True)
class FuelEvent:
    id: Optional[int]
    pump_id: int
    amount: float
    occurred_on: date
    liters_filled: float
    cost_per_liter: float
    payment_method: PaymentMethod = PaymentMethod.CARD
    odometer: Optional[float] = None
    discount_type: Optional[DiscountType] = None
    discount_value: float = 0.0
    fuel_station: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[str] = None
    corrected_at: Optional[str] = None

    @property
    def category(self) -> LedgerCategory:
        return LedgerCategory.FUEL


@dataclass(slots=True)
class InvestmentEvent:
    id: Optional[int]
    pump_id: int
    amount: float
    occurred_on: date
    name: str
    supplier: Optional[str] = None
    investment_category: InvestmentCategory = InvestmentCategory.EQUIPMENT
    warranty_months: Optional[int] = None
    description: Optional[str] = None
    created_at: Optional[str] = None
    corrected_at: Optional[str] = None

    @property
    def category(self) -> LedgerCategory:
        return LedgerCategory.INVESTMENT


@dataclass(slots=True)
class OtherEvent:
    id: Optional[int]
    pump_id: int
    amount: float
    occurred_on: date
    description: Optional[str] = None
    created_at: Optional[str] = None
    corrected_at: Optional[str] = None

    @property
    def category(self) -> LedgerCategory:
        return LedgerCategory.OTHER


LedgerEvent = Union[MaintenanceEvent, FuelEvent, InvestmentEvent, OtherEvent]


@dataclass(slots=True)
class JobReport:
    id: Optional[int]
    pump_id: int
    report_number: str
    realized_volume: float
    date: date
    client_name: Optional[str] = None


@dataclass(slots=True)
class Booking:
    id: Optional[int]
    pump_id: int
    date: Optional[date]
    time: Optional[str]
    state: BookingState
    client_id: int
    responsible_person: str
    company_id: int
    postal_code: Optional[str] = None
    address: Optional[str] = None
    address_number: Optional[str] = None
    district: Optional[str] = None
    city: Optional[str] = None
    concrete_volume: Optional[float] = None
    notes: Optional[str] = None
    crew_assistants: list[str] = field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def slot(self) -> Optional[tuple[int, date, str]]:
        if self.date is None or self.time is None:
            return None
        return self.pump_id, self.date, self.time


@dataclass(slots=True)
class BookingDraft:
    """Unvalidated booking input as submitted by the operator."""

    state: BookingState | str = BookingState.PLANNED
    pump_id: Optional[int] = None
    date: Optional[date | str] = None
    time: Optional[str] = None
    client_id: Optional[int] = None
    responsible_person: Optional[str] = None
    company_id: Optional[int] = None
    postal_code: Optional[str] = None
    address: Optional[str] = None
    address_number: Optional[str] = None
    district: Optional[str] = None
    city: Optional[str] = None
    concrete_volume: Optional[float] = None
    notes: Optional[str] = None
    crew_assistants: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PumpKPISnapshot:
    pump_id: int
    total_volume_pumped: float
    total_fuel_liters: float
    total_maintenance_cost: float
    total_fuel_cost: float
    total_investment_cost: float
    total_other_cost: float
    average_fuel_per_volume_unit: float
    last_maintenance_date: Optional[date]
    predicted_next_maintenance_date: Optional[date]
    current_odometer: Optional[float]
    maintenance_interval_days: int
    volume_degraded: bool = False

    @property
    def total_cost(self) -> float:
        return (
            self.total_maintenance_cost
            + self.total_fuel_cost
            + self.total_investment_cost
            + self.total_other_cost
        )


@dataclass(frozen=True)
class Alert:
    pump_id: int
    type: AlertType
    severity: AlertSeverity
    message: str
    action_required: bool


@dataclass(frozen=True)
class PumpOverview:
    pump: Pump
    kpis: PumpKPISnapshot
    alerts: list[Alert]
    recent_bookings: list[Booking]
    recent_reports: list[JobReport]


@dataclass(frozen=True)
class FleetStats:
    total_pumps: int
    available_pumps: int
    in_use_pumps: int
    in_maintenance_pumps: int
    total_volume_pumped: float
    total_fuel_liters: float
    total_maintenance_cost: float
    total_investment_cost: float
    maintenance_due_count: int
    average_fuel_per_volume_unit: float
