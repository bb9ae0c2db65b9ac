"""Booking rules: required fields by state and one booking per pump slot."""

from __future__ import annotations

import sqlite3
from datetime import date
from typing import Optional

from pump_manager.db.connection import immediate_transaction, transaction
from pump_manager.domain.models import Booking, BookingDraft, BookingState
from pump_manager.logging_config import get_logger
from pump_manager.repositories.booking_repo import BookingRepo, is_slot_violation
from pump_manager.repositories.pump_repo import PumpRepo
from pump_manager.services.errors import ConflictError, NotFoundError, ValidationError
from pump_manager.utils.dates import format_br_date, normalize_time, to_optional_date

RESERVED_REQUIRED = {
    "pump_id": "Bomba é obrigatória",
    "client_id": "Cliente é obrigatório",
    "responsible_person": "Responsável é obrigatório",
    "company_id": "Empresa é obrigatória",
}

PLANNED_REQUIRED = {
    "date": "Data é obrigatória",
    "time": "Horário é obrigatório",
    "address": "Endereço é obrigatório",
    "address_number": "Número é obrigatório",
}

ASSISTANTS_MESSAGE = "É necessário selecionar pelo menos 1 auxiliar"

ID_FIELDS = ("pump_id", "client_id", "company_id")


def _blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _to_id(value: object) -> int:
    if isinstance(value, bool):
        raise TypeError("boolean is not an id")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"non-integer id {value}")
    return int(str(value).strip()) if isinstance(value, str) else int(value)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _coerce_state(state: BookingState | str) -> BookingState:
    if isinstance(state, BookingState):
        return state
    return BookingState(str(state).strip().lower())


def conflict_message(booking: Booking) -> str:
    return (
        "A bomba já está programada para {day} às {time} (programação #{id}).".format(
            day=format_br_date(booking.date),
            time=booking.time,
            id=booking.id,
        )
    )


class BookingScheduler:
    """Service for pump bookings.

    Slot exclusivity is enforced by the unique ``(pump_id, date, time)``
    index inside an immediate transaction; the look-up before the write only
    serves to name the blocking booking.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._repo = BookingRepo(connection)
        self._pump_repo = PumpRepo(connection)
        self._logger = get_logger(self.__class__.__name__)

    def check_conflict(
        self,
        pump_id: int,
        slot_date: Optional[date | str],
        slot_time: Optional[str],
        exclude_booking_id: Optional[int] = None,
    ) -> bool:
        return (
            self.find_conflict(pump_id, slot_date, slot_time, exclude_booking_id)
            is not None
        )

    def find_conflict(
        self,
        pump_id: int,
        slot_date: Optional[date | str],
        slot_time: Optional[str],
        exclude_booking_id: Optional[int] = None,
    ) -> Optional[Booking]:
        parsed_date = to_optional_date(slot_date)
        parsed_time = normalize_time(slot_time)
        if parsed_date is None or parsed_time is None:
            return None
        return self._repo.find_by_slot(
            pump_id, parsed_date, parsed_time, exclude_booking_id
        )

    def validate(self, draft: BookingDraft) -> Booking:
        """Check a draft and build the booking it describes.

        Every violation is collected before raising so the form can flag all
        fields at once.
        """
        violations: dict[str, str] = {}
        try:
            state = _coerce_state(draft.state)
        except ValueError:
            violations["state"] = f"Status inválido: {draft.state}"
            state = BookingState.PLANNED

        for field_name, message in RESERVED_REQUIRED.items():
            if _blank(getattr(draft, field_name)):
                violations[field_name] = message
        ids: dict[str, int] = {}
        for field_name in ID_FIELDS:
            if field_name in violations:
                continue
            try:
                ids[field_name] = _to_id(getattr(draft, field_name))
            except (TypeError, ValueError):
                violations[field_name] = "Identificador inválido"

        slot_date: Optional[date] = None
        try:
            slot_date = to_optional_date(draft.date)
        except (ValueError, OverflowError):
            violations["date"] = "Data inválida"
        slot_time: Optional[str] = None
        try:
            slot_time = normalize_time(draft.time)
        except ValueError:
            violations["time"] = "Horário inválido"

        assistants = [
            str(assistant).strip()
            for assistant in draft.crew_assistants or []
            if assistant is not None and str(assistant).strip()
        ]
        if state == BookingState.PLANNED:
            normalized = {"date": slot_date, "time": slot_time}
            for field_name, message in PLANNED_REQUIRED.items():
                value = normalized.get(field_name, getattr(draft, field_name))
                if field_name not in violations and _blank(value):
                    violations[field_name] = message
            if not assistants:
                violations["crew_assistants"] = ASSISTANTS_MESSAGE

        if draft.concrete_volume is not None and draft.concrete_volume < 0:
            violations["concrete_volume"] = "Volume não pode ser negativo"

        if violations:
            raise ValidationError(violations=violations)

        return Booking(
            id=None,
            pump_id=ids["pump_id"],
            date=slot_date,
            time=slot_time,
            state=state,
            client_id=ids["client_id"],
            responsible_person=draft.responsible_person.strip(),
            company_id=ids["company_id"],
            postal_code=_clean(draft.postal_code),
            address=_clean(draft.address),
            address_number=_clean(draft.address_number),
            district=_clean(draft.district),
            city=_clean(draft.city),
            concrete_volume=draft.concrete_volume,
            notes=_clean(draft.notes),
            crew_assistants=assistants,
        )

    def create(self, draft: BookingDraft) -> Booking:
        booking = self.validate(draft)
        self._require_pump(booking.pump_id)
        try:
            with immediate_transaction(self._connection):
                self._raise_if_taken(booking)
                self._repo.insert(booking)
        except sqlite3.IntegrityError as exc:
            self._raise_slot_conflict(booking, exc)
        self._logger.info(
            "Booking %s created for pump_id=%s slot=%s %s",
            booking.id,
            booking.pump_id,
            booking.date,
            booking.time,
        )
        return booking

    def update(self, booking_id: int, draft: BookingDraft) -> Booking:
        """Edit a booking in place; it never conflicts with itself."""
        existing = self.get(booking_id)
        booking = self.validate(draft)
        if (
            existing.state == BookingState.PLANNED
            and booking.state == BookingState.RESERVED
        ):
            raise ValidationError(
                violations={
                    "state": "Uma programação confirmada não pode voltar a reservada"
                }
            )
        self._require_pump(booking.pump_id)
        booking.id = booking_id
        booking.created_at = existing.created_at
        try:
            with immediate_transaction(self._connection):
                self._raise_if_taken(booking)
                if not self._repo.update(booking):
                    raise NotFoundError(f"Programação {booking_id} não encontrada.")
        except sqlite3.IntegrityError as exc:
            self._raise_slot_conflict(booking, exc)
        return booking

    def move(
        self,
        booking_id: int,
        new_date: date | str,
        new_time: Optional[str] = None,
    ) -> Booking:
        """Move a booking to another date, keeping its time unless one is given."""
        booking = self.get(booking_id)
        violations: dict[str, str] = {}
        target_date: Optional[date] = None
        try:
            target_date = to_optional_date(new_date)
        except (ValueError, OverflowError):
            violations["date"] = "Data inválida"
        target_time = booking.time
        if new_time is not None:
            try:
                target_time = normalize_time(new_time)
            except ValueError:
                violations["time"] = "Horário inválido"
        if target_date is None and "date" not in violations:
            violations["date"] = "Data é obrigatória"
        if violations:
            raise ValidationError(violations=violations)

        booking.date = target_date
        booking.time = target_time
        try:
            with immediate_transaction(self._connection):
                self._raise_if_taken(booking)
                self._repo.update_slot(booking_id, target_date, target_time)
        except sqlite3.IntegrityError as exc:
            self._raise_slot_conflict(booking, exc)
        self._logger.info(
            "Booking %s moved to %s %s", booking_id, target_date, target_time
        )
        return self.get(booking_id)

    def delete(self, booking_id: int) -> None:
        with transaction(self._connection):
            deleted = self._repo.delete(booking_id)
        if deleted:
            self._logger.info("Booking %s deleted", booking_id)

    def get(self, booking_id: int) -> Booking:
        booking = self._repo.get_by_id(booking_id)
        if not booking:
            raise NotFoundError(f"Programação {booking_id} não encontrada.")
        return booking

    def list_for_pump(self, pump_id: int, limit: Optional[int] = None) -> list[Booking]:
        return self._repo.list_for_pump(pump_id, limit)

    def list_by_period(
        self,
        start_date: date | str,
        end_date: date | str,
        pump_id: Optional[int] = None,
    ) -> list[Booking]:
        start = to_optional_date(start_date)
        end = to_optional_date(end_date)
        if start is None or end is None:
            raise ValidationError("Informe o período completo.")
        if end < start:
            raise ValidationError("A data final deve ser posterior à data inicial.")
        return self._repo.list_by_period(start, end, pump_id)

    def group_by_date(
        self, start_date: date | str, end_date: date | str
    ) -> dict[date, list[Booking]]:
        grouped: dict[date, list[Booking]] = {}
        for booking in self.list_by_period(start_date, end_date):
            grouped.setdefault(booking.date, []).append(booking)
        return grouped

    def _require_pump(self, pump_id: int) -> None:
        if not self._pump_repo.get_by_id(pump_id):
            raise NotFoundError(f"Bomba {pump_id} não encontrada.")

    def _raise_if_taken(self, booking: Booking) -> None:
        if booking.slot is None:
            return
        blocking = self._repo.find_by_slot(
            booking.pump_id, booking.date, booking.time, booking.id
        )
        if blocking:
            raise ConflictError(conflict_message(blocking), blocking)

    def _raise_slot_conflict(
        self, booking: Booking, exc: sqlite3.IntegrityError
    ) -> None:
        if not is_slot_violation(exc) or booking.slot is None:
            raise exc
        blocking = self._repo.find_by_slot(
            booking.pump_id, booking.date, booking.time, booking.id
        )
        if blocking is None:
            raise ConflictError(
                "A bomba já está programada para {day} às {time}.".format(
                    day=format_br_date(booking.date), time=booking.time
                )
            ) from exc
        raise ConflictError(conflict_message(blocking), blocking) from exc
