"""Repository for the pump event ledger."""

from __future__ import annotations

import sqlite3
from typing import Optional

from pump_manager.domain.models import LedgerCategory, LedgerEvent
from pump_manager.logging_config import get_logger
from pump_manager.repositories.mappers import (
    ledger_event_from_row,
    ledger_event_to_record,
)
from pump_manager.utils.dates import now_iso

_PAYLOAD_COLUMNS = (
    "amount",
    "occurred_on",
    "description",
    "label",
    "maintenance_kind",
    "lifecycle_status",
    "liters_filled",
    "cost_per_liter",
    "odometer",
    "payment_method",
    "discount_type",
    "discount_value",
    "fuel_station",
    "name",
    "supplier",
    "investment_category",
    "warranty_months",
)


class LedgerRepo:
    """Append-oriented access to ledger events.

    Rows are never deleted; ``list_by_pump`` returns them in insertion order.
    Callers own the transaction.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def append(self, event: LedgerEvent) -> int:
        record = ledger_event_to_record(event)
        record["created_at"] = event.created_at or now_iso()
        columns = list(record)
        placeholders = ", ".join(["?"] * len(columns))
        try:
            cursor = self._connection.execute(
                f"""
                INSERT INTO ledger_events ({", ".join(columns)})
                VALUES ({placeholders})
                """,
                [record[column] for column in columns],
            )
        except Exception:
            self._logger.exception(
                "Failed to append %s event for pump_id=%s",
                event.category.value,
                event.pump_id,
            )
            raise
        event_id = int(cursor.lastrowid)
        event.id = event_id
        event.created_at = record["created_at"]
        return event_id

    def correct(self, event_id: int, event: LedgerEvent) -> bool:
        """Rewrite the payload of an existing event, keeping pump and category."""
        record = ledger_event_to_record(event)
        assignments = ", ".join(f"{column} = ?" for column in _PAYLOAD_COLUMNS)
        params = [record[column] for column in _PAYLOAD_COLUMNS]
        corrected_at = now_iso()
        params.extend([corrected_at, event_id, record["category"]])
        try:
            cursor = self._connection.execute(
                f"""
                UPDATE ledger_events
                SET {assignments},
                    corrected_at = ?
                WHERE id = ?
                  AND category = ?
                """,
                params,
            )
        except Exception:
            self._logger.exception("Failed to correct ledger event id=%s", event_id)
            raise
        if cursor.rowcount > 0:
            event.corrected_at = corrected_at
        return cursor.rowcount > 0

    def get_by_id(self, event_id: int) -> Optional[LedgerEvent]:
        try:
            row = self._connection.execute(
                "SELECT * FROM ledger_events WHERE id = ?",
                (event_id,),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to fetch ledger event id=%s", event_id)
            raise
        return ledger_event_from_row(row) if row else None

    def list_by_pump(
        self,
        pump_id: int,
        category: Optional[LedgerCategory] = None,
    ) -> list[LedgerEvent]:
        params: list[object] = [pump_id]
        category_clause = ""
        if category is not None:
            category_clause = "AND category = ?"
            params.append(category.value)
        try:
            rows = self._connection.execute(
                f"""
                SELECT *
                FROM ledger_events
                WHERE pump_id = ?
                  {category_clause}
                ORDER BY id
                """,
                params,
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list ledger events pump_id=%s", pump_id)
            raise
        return [ledger_event_from_row(row) for row in rows]
