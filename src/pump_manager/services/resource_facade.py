"""Composed read/write surface for a single pump."""

from __future__ import annotations

import sqlite3
from dataclasses import replace
from datetime import date
from typing import Any, Callable, Optional

from pump_manager.config import CoreSettings
from pump_manager.db.connection import transaction
from pump_manager.domain.models import (
    Alert,
    DiscountType,
    FleetStats,
    FuelEvent,
    InvestmentCategory,
    InvestmentEvent,
    JobReport,
    LedgerCategory,
    LedgerEvent,
    MaintenanceEvent,
    MaintenanceKind,
    MaintenanceStatus,
    NoticeKind,
    OtherEvent,
    PaymentMethod,
    Pump,
    PumpOverview,
    PumpStatus,
)
from pump_manager.logging_config import get_logger
from pump_manager.repositories.job_report_repo import JobReportRepo
from pump_manager.repositories.ledger_repo import LedgerRepo
from pump_manager.repositories.pump_repo import PumpRepo
from pump_manager.services.alert_engine import evaluate_alerts
from pump_manager.services.booking_scheduler import BookingScheduler
from pump_manager.services.errors import (
    DegradedDataError,
    NotFoundError,
    ValidationError,
)
from pump_manager.services.kpi_aggregator import KpiAggregator, VolumeSource
from pump_manager.services.notifications import LoggingNotifier, Notifier
from pump_manager.utils.dates import to_date

CALENDAR_COLORS = {
    MaintenanceKind.PREVENTIVE: "yellow",
    MaintenanceKind.CORRECTIVE: "red",
}

NOTICE_LABELS = {
    LedgerCategory.MAINTENANCE: "Manutenção",
    LedgerCategory.FUEL: "Abastecimento de diesel",
    LedgerCategory.INVESTMENT: "Investimento",
    LedgerCategory.OTHER: "Despesa",
}


def fuel_total(
    liters_filled: float,
    cost_per_liter: float,
    discount_type: Optional[DiscountType] = None,
    discount_value: float = 0.0,
) -> float:
    """Amount charged for a fill: subtotal minus the fixed or percentage discount."""
    subtotal = liters_filled * cost_per_liter
    if discount_type is None or not discount_value:
        return subtotal
    if discount_type == DiscountType.PERCENTAGE:
        return subtotal - subtotal * discount_value / 100
    return subtotal - discount_value


def _coerce_enum(
    enum_cls: type,
    value: Any,
    field_name: str,
    violations: dict[str, str],
) -> Any:
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        violations[field_name] = f"Valor inválido: {value}"
        return None


def _validate_event(event: LedgerEvent) -> dict[str, str]:
    violations: dict[str, str] = {}
    if event.amount is None:
        violations["amount"] = "O valor é obrigatório."
    elif event.amount < 0:
        if isinstance(event, FuelEvent):
            violations["discount_value"] = "O desconto não pode exceder o valor abastecido."
        else:
            violations["amount"] = "O valor não pode ser negativo."
    if isinstance(event, MaintenanceEvent):
        if not event.label or not event.label.strip():
            violations["label"] = "Nome da ordem de serviço é obrigatório."
        if event.kind is None:
            violations["kind"] = "Tipo de manutenção é obrigatório."
        if event.lifecycle_status is None:
            violations["lifecycle_status"] = "Status da manutenção é obrigatório."
    elif isinstance(event, FuelEvent):
        if event.liters_filled is None or event.liters_filled <= 0:
            violations["liters_filled"] = "A quantidade de litros deve ser maior que zero."
        if event.cost_per_liter is None or event.cost_per_liter <= 0:
            violations["cost_per_liter"] = "O custo por litro deve ser maior que zero."
        if event.discount_value < 0:
            violations["discount_value"] = "O desconto não pode ser negativo."
        elif (
            event.discount_type == DiscountType.PERCENTAGE
            and event.discount_value > 100
        ):
            violations["discount_value"] = "O desconto percentual não pode passar de 100%."
        if event.odometer is not None and event.odometer < 0:
            violations["odometer"] = "A quilometragem não pode ser negativa."
        if event.payment_method is None:
            violations["payment_method"] = "Forma de pagamento é obrigatória."
    elif isinstance(event, InvestmentEvent):
        if not event.name or not event.name.strip():
            violations["name"] = "Nome do investimento é obrigatório."
        if event.investment_category is None:
            violations["investment_category"] = "Categoria é obrigatória."
        if event.warranty_months is not None and event.warranty_months < 0:
            violations["warranty_months"] = "Garantia não pode ser negativa."
    elif not event.description or not event.description.strip():
        violations["description"] = "Descrição é obrigatória."
    return violations


class PumpResourceService:
    """Single entry point for pump bookings, ledger events, KPIs and alerts."""

    def __init__(
        self,
        connection: sqlite3.Connection,
        *,
        settings: Optional[CoreSettings] = None,
        notifier: Optional[Notifier] = None,
        volume_source: Optional[VolumeSource] = None,
        today_provider: Callable[[], date] = date.today,
    ) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._settings = settings or CoreSettings()
        self._notifier = notifier or LoggingNotifier()
        self._today = today_provider
        self._pump_repo = PumpRepo(connection)
        self._ledger_repo = LedgerRepo(connection)
        self._job_reports = JobReportRepo(connection)
        self.scheduler = BookingScheduler(connection)
        self.aggregator = KpiAggregator(
            self._ledger_repo,
            volume_source or self._job_reports,
            maintenance_interval_days=self._settings.maintenance_interval_days,
        )
        self._logger = get_logger(self.__class__.__name__)

    @property
    def settings(self) -> CoreSettings:
        return self._settings

    # Pumps

    def register_pump(
        self,
        prefix: str,
        owner_id: Optional[int],
        model: Optional[str] = None,
        brand: Optional[str] = None,
    ) -> Pump:
        prefix = (prefix or "").strip()
        if not prefix:
            raise ValidationError(violations={"prefix": "Prefixo é obrigatório."})
        if self._pump_repo.get_by_prefix(prefix):
            raise ValidationError(
                violations={"prefix": f"Prefixo {prefix} já cadastrado."}
            )
        pump = self._pump_repo.create(prefix, owner_id, model=model, brand=brand)
        self._logger.info("Pump %s registered with id=%s", prefix, pump.id)
        return pump

    def get_pump(self, pump_id: int) -> Pump:
        pump = self._pump_repo.get_by_id(pump_id)
        if not pump:
            raise NotFoundError(f"Bomba {pump_id} não encontrada.")
        return pump

    def get_pump_by_prefix(self, prefix: str) -> Pump:
        pump = self._pump_repo.get_by_prefix(prefix)
        if not pump:
            raise NotFoundError(f"Bomba {prefix} não encontrada.")
        return pump

    def set_pump_status(self, pump_id: int, status: PumpStatus | str) -> Pump:
        violations: dict[str, str] = {}
        new_status = _coerce_enum(PumpStatus, status, "status", violations)
        if new_status is None and not violations:
            violations["status"] = "Status é obrigatório."
        if violations:
            raise ValidationError(violations=violations)
        if not self._pump_repo.set_status(pump_id, new_status):
            raise NotFoundError(f"Bomba {pump_id} não encontrada.")
        return self.get_pump(pump_id)

    def list_pumps(
        self,
        status: Optional[PumpStatus] = None,
        search: Optional[str] = None,
    ) -> list[Pump]:
        return self._pump_repo.list_all(status=status, search=search)

    # Reads

    def get_pump_overview(
        self, pump_id: int, today: Optional[date] = None
    ) -> PumpOverview:
        """Compose pump, KPIs, alerts and recent activity.

        Degraded sources yield zeroed or empty fields, never an error.
        """
        pump = self.get_pump(pump_id)
        kpis = self.aggregator.compute_kpis(pump_id)
        alerts = evaluate_alerts(kpis, today or self._today(), self._settings)
        recent_bookings = self.scheduler.list_for_pump(
            pump_id, self._settings.recent_bookings_limit
        )
        return PumpOverview(
            pump=pump,
            kpis=kpis,
            alerts=alerts,
            recent_bookings=recent_bookings,
            recent_reports=self._recent_reports(pump_id),
        )

    def get_pump_overview_by_prefix(
        self, prefix: str, today: Optional[date] = None
    ) -> PumpOverview:
        pump = self.get_pump_by_prefix(prefix)
        return self.get_pump_overview(pump.id, today)

    def check_alerts(
        self, pump_id: int, today: Optional[date] = None
    ) -> list[Alert]:
        self.get_pump(pump_id)
        kpis = self.aggregator.compute_kpis(pump_id)
        return evaluate_alerts(kpis, today or self._today(), self._settings)

    def list_events(
        self, pump_id: int, category: Optional[LedgerCategory] = None
    ) -> list[LedgerEvent]:
        self.get_pump(pump_id)
        return self._ledger_repo.list_by_pump(pump_id, category)

    def get_fleet_stats(self, today: Optional[date] = None) -> FleetStats:
        today = today or self._today()
        pumps = self._pump_repo.list_all()
        by_status = {status: 0 for status in PumpStatus}
        volume = liters = maintenance = investment = 0.0
        due_count = 0
        for pump in pumps:
            by_status[pump.status] += 1
            kpis = self.aggregator.compute_kpis(pump.id)
            volume += kpis.total_volume_pumped
            liters += kpis.total_fuel_liters
            maintenance += kpis.total_maintenance_cost
            investment += kpis.total_investment_cost
            next_date = kpis.predicted_next_maintenance_date
            if next_date is not None:
                days_until = (next_date - today).days
                if 0 <= days_until <= self._settings.fleet_due_window_days:
                    due_count += 1
        return FleetStats(
            total_pumps=len(pumps),
            available_pumps=by_status[PumpStatus.AVAILABLE],
            in_use_pumps=by_status[PumpStatus.IN_USE],
            in_maintenance_pumps=by_status[PumpStatus.IN_MAINTENANCE],
            total_volume_pumped=volume,
            total_fuel_liters=liters,
            total_maintenance_cost=maintenance,
            total_investment_cost=investment,
            maintenance_due_count=due_count,
            average_fuel_per_volume_unit=liters / volume if volume > 0 else 0.0,
        )

    # Ledger writes

    def record_maintenance(
        self,
        pump_id: int,
        *,
        occurred_on: date | str,
        label: str,
        amount: float,
        kind: MaintenanceKind | str = MaintenanceKind.PREVENTIVE,
        lifecycle_status: MaintenanceStatus | str = MaintenanceStatus.SCHEDULED,
        description: Optional[str] = None,
    ) -> MaintenanceEvent:
        violations: dict[str, str] = {}
        event = MaintenanceEvent(
            id=None,
            pump_id=pump_id,
            amount=amount,
            occurred_on=self._parse_date(occurred_on, violations),
            label=(label or "").strip(),
            kind=_coerce_enum(MaintenanceKind, kind, "kind", violations),
            lifecycle_status=_coerce_enum(
                MaintenanceStatus, lifecycle_status, "lifecycle_status", violations
            ),
            description=description,
        )
        self._append(event, violations)
        self._emit_calendar_notice(event)
        return event

    def record_fuel(
        self,
        pump_id: int,
        *,
        occurred_on: date | str,
        liters_filled: float,
        cost_per_liter: float,
        payment_method: PaymentMethod | str = PaymentMethod.CARD,
        odometer: Optional[float] = None,
        discount_type: Optional[DiscountType | str] = None,
        discount_value: float = 0.0,
        fuel_station: Optional[str] = None,
        description: Optional[str] = None,
    ) -> FuelEvent:
        violations: dict[str, str] = {}
        method = _coerce_enum(PaymentMethod, payment_method, "payment_method", violations)
        discount = _coerce_enum(DiscountType, discount_type, "discount_type", violations)
        event = FuelEvent(
            id=None,
            pump_id=pump_id,
            amount=0.0,
            occurred_on=self._parse_date(occurred_on, violations),
            liters_filled=liters_filled,
            cost_per_liter=cost_per_liter,
            payment_method=method or PaymentMethod.CARD,
            odometer=odometer,
            discount_type=discount,
            discount_value=discount_value or 0.0,
            fuel_station=fuel_station,
            description=description,
        )
        if not description and liters_filled:
            event.description = f"Abastecimento de diesel - {liters_filled:g}L"
        event.amount = self._fuel_amount(event)
        self._append(event, violations)
        return event

    def record_investment(
        self,
        pump_id: int,
        *,
        occurred_on: date | str,
        name: str,
        amount: float,
        supplier: Optional[str] = None,
        investment_category: InvestmentCategory | str = InvestmentCategory.EQUIPMENT,
        warranty_months: Optional[int] = None,
        description: Optional[str] = None,
    ) -> InvestmentEvent:
        violations: dict[str, str] = {}
        event = InvestmentEvent(
            id=None,
            pump_id=pump_id,
            amount=amount,
            occurred_on=self._parse_date(occurred_on, violations),
            name=(name or "").strip(),
            supplier=supplier,
            investment_category=_coerce_enum(
                InvestmentCategory,
                investment_category,
                "investment_category",
                violations,
            ),
            warranty_months=warranty_months,
            description=description,
        )
        self._append(event, violations)
        return event

    def record_other(
        self,
        pump_id: int,
        *,
        occurred_on: date | str,
        amount: float,
        description: str,
    ) -> OtherEvent:
        violations: dict[str, str] = {}
        event = OtherEvent(
            id=None,
            pump_id=pump_id,
            amount=amount,
            occurred_on=self._parse_date(occurred_on, violations),
            description=description,
        )
        self._append(event, violations)
        return event

    def correct_event(self, event_id: int, **changes: Any) -> LedgerEvent:
        """Apply an explicit correction to an existing ledger event."""
        existing = self._ledger_repo.get_by_id(event_id)
        if not existing:
            raise NotFoundError(f"Lançamento {event_id} não encontrado.")
        forbidden = {"id", "pump_id", "created_at", "corrected_at"} & set(changes)
        if forbidden:
            raise ValidationError(
                violations={name: "Campo não pode ser corrigido." for name in forbidden}
            )
        violations: dict[str, str] = {}
        if "occurred_on" in changes:
            changes["occurred_on"] = self._parse_date(changes["occurred_on"], violations)
        enum_fields = {
            "kind": MaintenanceKind,
            "lifecycle_status": MaintenanceStatus,
            "payment_method": PaymentMethod,
            "discount_type": DiscountType,
            "investment_category": InvestmentCategory,
        }
        for field_name, enum_cls in enum_fields.items():
            if field_name in changes:
                changes[field_name] = _coerce_enum(
                    enum_cls, changes[field_name], field_name, violations
                )
        if violations:
            raise ValidationError(violations=violations)
        try:
            corrected = replace(existing, **changes)
        except TypeError as exc:
            raise ValidationError(f"Campo inválido para este lançamento: {exc}") from exc
        if isinstance(corrected, FuelEvent):
            corrected.amount = self._fuel_amount(corrected)
        violations.update(_validate_event(corrected))
        if violations:
            raise ValidationError(violations=violations)
        with transaction(self._connection):
            self._ledger_repo.correct(event_id, corrected)
        self._logger.info(
            "Ledger event %s corrected (%s)", event_id, ", ".join(sorted(changes))
        )
        return corrected

    def record_job(
        self,
        pump_id: int,
        report_number: str,
        realized_volume: float,
        report_date: date | str,
        client_name: Optional[str] = None,
    ) -> JobReport:
        self.get_pump(pump_id)
        if realized_volume < 0:
            raise ValidationError(
                violations={"realized_volume": "Volume não pode ser negativo."}
            )
        return self._job_reports.record(
            pump_id, report_number, realized_volume, to_date(report_date), client_name
        )

    # Internals

    def _parse_date(self, value: date | str, violations: dict[str, str]) -> date:
        if value is None or (isinstance(value, str) and not value.strip()):
            violations["occurred_on"] = "Data é obrigatória."
            return self._today()
        try:
            return to_date(value)
        except (ValueError, OverflowError):
            violations["occurred_on"] = "Data inválida."
            return self._today()

    def _fuel_amount(self, event: FuelEvent) -> float:
        if not event.liters_filled or not event.cost_per_liter:
            return 0.0
        return fuel_total(
            event.liters_filled,
            event.cost_per_liter,
            event.discount_type,
            event.discount_value,
        )

    def _append(self, event: LedgerEvent, violations: dict[str, str]) -> None:
        for field_name, message in _validate_event(event).items():
            violations.setdefault(field_name, message)
        if violations:
            raise ValidationError(violations=violations)
        self.get_pump(event.pump_id)
        with transaction(self._connection):
            self._ledger_repo.append(event)
        self._logger.info(
            "Ledger %s event %s recorded for pump_id=%s amount=%.2f",
            event.category.value,
            event.id,
            event.pump_id,
            event.amount,
        )
        self._emit_financial_notice(event)

    def _emit_financial_notice(self, event: LedgerEvent) -> None:
        label = NOTICE_LABELS[event.category]
        detail = (
            getattr(event, "label", None)
            or getattr(event, "name", None)
            or event.description
            or ""
        )
        self._send_notice(
            NoticeKind.FINANCIAL_INTEGRATION,
            {
                "pump_id": event.pump_id,
                "type": event.category.value,
                "description": f"{label}: {detail}".rstrip(": "),
                "value": event.amount,
                "date": event.occurred_on.isoformat(),
                "reference_id": event.id,
            },
        )

    def _emit_calendar_notice(self, event: MaintenanceEvent) -> None:
        self._send_notice(
            NoticeKind.CALENDAR_EVENT,
            {
                "pump_id": event.pump_id,
                "title": event.label,
                "date": event.occurred_on.isoformat(),
                "type": LedgerCategory.MAINTENANCE.value,
                "status": event.lifecycle_status.value,
                "color": CALENDAR_COLORS[event.kind],
                "reference_id": event.id,
            },
        )

    def _send_notice(self, kind: NoticeKind, payload: dict[str, Any]) -> None:
        try:
            self._notifier.notify(kind, payload)
        except Exception:
            self._logger.warning(
                "Failed to deliver %s notice for reference_id=%s",
                kind.value,
                payload.get("reference_id"),
                exc_info=True,
            )

    def _recent_reports(self, pump_id: int) -> list[JobReport]:
        try:
            return self._job_reports.list_recent(
                pump_id, self._settings.recent_reports_limit
            )
        except DegradedDataError as exc:
            self._logger.warning("Recent reports unavailable: %s", exc)
            return []
