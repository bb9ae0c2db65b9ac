"""Custom service layer errors."""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping, Optional

if TYPE_CHECKING:
    from pump_manager.domain.models import Booking


class ServiceError(Exception):
    """Base error for service-layer failures."""


class ValidationError(ServiceError):
    """Raised when a business rule validation fails.

    ``violations`` maps each offending field to its message so the caller can
    show every problem at once.
    """

    def __init__(
        self,
        message: Optional[str] = None,
        violations: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.violations: dict[str, str] = dict(violations or {})
        if message is None:
            message = "; ".join(self.violations.values()) or "Dados inválidos."
        super().__init__(message)

    @property
    def fields(self) -> list[str]:
        return list(self.violations)


class ConflictError(ServiceError):
    """Raised when a booking slot is already claimed by another booking."""

    def __init__(self, message: str, booking: Optional["Booking"] = None) -> None:
        super().__init__(message)
        self.booking = booking

    @property
    def blocking_booking_id(self) -> Optional[int]:
        return self.booking.id if self.booking else None


class NotFoundError(ServiceError):
    """Raised when an entity is not found."""


class DegradedDataError(ServiceError):
    """Raised by non-authoritative sources that are temporarily unavailable."""
