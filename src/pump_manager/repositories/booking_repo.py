"""Repository for pump bookings."""

from __future__ import annotations

import sqlite3
from datetime import date
from typing import Iterable, Optional

from pump_manager.domain.models import Booking
from pump_manager.logging_config import get_logger
from pump_manager.repositories.mappers import booking_from_row, booking_to_record
from pump_manager.utils.dates import now_iso

SLOT_INDEX_NAME = "idx_bookings_pump_slot"


def is_slot_violation(exc: sqlite3.IntegrityError) -> bool:
    """Tell whether an integrity error came from the unique slot index."""
    message = str(exc)
    return "bookings.pump_id, bookings.date, bookings.time" in message or (
        SLOT_INDEX_NAME in message
    )


class BookingRepo:
    """Data access for bookings and their crew assistants.

    The ``(pump_id, date, time)`` unique index is the authority on slot
    ownership; writes that collide raise ``sqlite3.IntegrityError``. Callers
    own the transaction.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def insert(self, booking: Booking) -> Booking:
        record = booking_to_record(booking)
        timestamp = now_iso()
        record["created_at"] = timestamp
        record["updated_at"] = timestamp
        columns = list(record)
        try:
            cursor = self._connection.execute(
                f"""
                INSERT INTO bookings ({", ".join(columns)})
                VALUES ({", ".join(["?"] * len(columns))})
                """,
                [record[column] for column in columns],
            )
        except sqlite3.IntegrityError:
            self._logger.warning(
                "Slot already taken pump_id=%s date=%s time=%s",
                booking.pump_id,
                record["date"],
                booking.time,
            )
            raise
        except Exception:
            self._logger.exception("Failed to insert booking pump_id=%s", booking.pump_id)
            raise
        booking.id = int(cursor.lastrowid)
        booking.created_at = timestamp
        booking.updated_at = timestamp
        self._replace_assistants(booking.id, booking.crew_assistants)
        return booking

    def update(self, booking: Booking) -> bool:
        if booking.id is None:
            raise ValueError("Booking without id cannot be updated.")
        record = booking_to_record(booking)
        record["updated_at"] = now_iso()
        assignments = ", ".join(f"{column} = ?" for column in record)
        try:
            cursor = self._connection.execute(
                f"UPDATE bookings SET {assignments} WHERE id = ?",
                [*record.values(), booking.id],
            )
        except sqlite3.IntegrityError:
            self._logger.warning("Slot already taken updating booking id=%s", booking.id)
            raise
        except Exception:
            self._logger.exception("Failed to update booking id=%s", booking.id)
            raise
        if cursor.rowcount == 0:
            return False
        booking.updated_at = record["updated_at"]
        self._replace_assistants(booking.id, booking.crew_assistants)
        return True

    def update_slot(
        self, booking_id: int, new_date: Optional[date], new_time: Optional[str]
    ) -> bool:
        try:
            cursor = self._connection.execute(
                """
                UPDATE bookings
                SET date = ?,
                    time = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    new_date.isoformat() if new_date else None,
                    new_time,
                    now_iso(),
                    booking_id,
                ),
            )
        except sqlite3.IntegrityError:
            self._logger.warning("Slot already taken moving booking id=%s", booking_id)
            raise
        except Exception:
            self._logger.exception("Failed to move booking id=%s", booking_id)
            raise
        return cursor.rowcount > 0

    def delete(self, booking_id: int) -> bool:
        try:
            self._connection.execute(
                "DELETE FROM booking_assistants WHERE booking_id = ?",
                (booking_id,),
            )
            cursor = self._connection.execute(
                "DELETE FROM bookings WHERE id = ?",
                (booking_id,),
            )
        except Exception:
            self._logger.exception("Failed to delete booking id=%s", booking_id)
            raise
        return cursor.rowcount > 0

    def get_by_id(self, booking_id: int) -> Optional[Booking]:
        try:
            row = self._connection.execute(
                "SELECT * FROM bookings WHERE id = ?",
                (booking_id,),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to fetch booking id=%s", booking_id)
            raise
        if not row:
            return None
        return self._hydrate([row])[0]

    def find_by_slot(
        self,
        pump_id: int,
        slot_date: date,
        slot_time: str,
        exclude_booking_id: Optional[int] = None,
    ) -> Optional[Booking]:
        params: list[object] = [pump_id, slot_date.isoformat(), slot_time]
        exclude_clause = ""
        if exclude_booking_id is not None:
            exclude_clause = "AND id <> ?"
            params.append(exclude_booking_id)
        try:
            row = self._connection.execute(
                f"""
                SELECT *
                FROM bookings
                WHERE pump_id = ?
                  AND date = ?
                  AND time = ?
                  {exclude_clause}
                LIMIT 1
                """,
                params,
            ).fetchone()
        except Exception:
            self._logger.exception(
                "Failed to look up slot pump_id=%s date=%s time=%s",
                pump_id,
                slot_date,
                slot_time,
            )
            raise
        if not row:
            return None
        return self._hydrate([row])[0]

    def list_for_pump(self, pump_id: int, limit: Optional[int] = None) -> list[Booking]:
        query = """
            SELECT *
            FROM bookings
            WHERE pump_id = ?
            ORDER BY date IS NULL, date DESC, time DESC, id DESC
        """
        params: list[object] = [pump_id]
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        try:
            rows = self._connection.execute(query, params).fetchall()
        except Exception:
            self._logger.exception("Failed to list bookings pump_id=%s", pump_id)
            raise
        return self._hydrate(rows)

    def list_by_period(
        self,
        start_date: date,
        end_date: date,
        pump_id: Optional[int] = None,
    ) -> list[Booking]:
        params: list[object] = [start_date.isoformat(), end_date.isoformat()]
        pump_clause = ""
        if pump_id is not None:
            pump_clause = "AND pump_id = ?"
            params.append(pump_id)
        try:
            rows = self._connection.execute(
                f"""
                SELECT *
                FROM bookings
                WHERE date >= ?
                  AND date <= ?
                  {pump_clause}
                ORDER BY date, time IS NULL, time, id
                """,
                params,
            ).fetchall()
        except Exception:
            self._logger.exception(
                "Failed to list bookings period=%s..%s", start_date, end_date
            )
            raise
        return self._hydrate(rows)

    def _replace_assistants(self, booking_id: int, assistants: Iterable[str]) -> None:
        self._connection.execute(
            "DELETE FROM booking_assistants WHERE booking_id = ?",
            (booking_id,),
        )
        self._connection.executemany(
            """
            INSERT INTO booking_assistants (booking_id, assistant, position)
            VALUES (?, ?, ?)
            """,
            [
                (booking_id, assistant, position)
                for position, assistant in enumerate(assistants)
            ],
        )

    def _hydrate(self, rows: list[sqlite3.Row]) -> list[Booking]:
        if not rows:
            return []
        ids = [int(row["id"]) for row in rows]
        placeholders = ", ".join(["?"] * len(ids))
        assistant_rows = self._connection.execute(
            f"""
            SELECT booking_id, assistant
            FROM booking_assistants
            WHERE booking_id IN ({placeholders})
            ORDER BY booking_id, position, id
            """,
            ids,
        ).fetchall()
        assistants: dict[int, list[str]] = {}
        for assistant_row in assistant_rows:
            assistants.setdefault(int(assistant_row["booking_id"]), []).append(
                assistant_row["assistant"]
            )
        return [booking_from_row(row, assistants.get(int(row["id"]))) for row in rows]
