"""Date and time parsing helpers shared by repositories and services."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from dateutil import parser


def now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


def to_date(value: str | date | datetime) -> date:
    """Coerce an ISO string, date or datetime into a ``date``.

    Raises ``ValueError`` for text that is not an ISO-8601 date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parser.isoparse(value.strip()).date()


def to_optional_date(value: Optional[str | date | datetime]) -> Optional[date]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return to_date(value)


def normalize_time(value: Optional[str]) -> Optional[str]:
    """Return ``HH:MM`` for inputs such as ``8:00``, ``08:00`` or ``08:00:00``.

    Slot conflicts compare times by exact equality, so every stored time goes
    through this normalization first.
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    parts = text.split(":")
    if len(parts) not in (2, 3) or not all(part.isdigit() for part in parts):
        raise ValueError(f"Horário inválido: {value}")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Horário inválido: {value}")
    return f"{hour:02d}:{minute:02d}"


def format_br_date(value: Optional[date | str]) -> str:
    if not value:
        return "-"
    try:
        return to_date(value).strftime("%d/%m/%Y")
    except ValueError:
        return str(value)
