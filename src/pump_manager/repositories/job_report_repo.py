"""Read access to completed-job reports, the source of pumped volume."""

from __future__ import annotations

import sqlite3
from datetime import date
from typing import Optional

from pump_manager.domain.models import JobReport
from pump_manager.logging_config import get_logger
from pump_manager.repositories.mappers import job_report_from_row
from pump_manager.services.errors import DegradedDataError


class JobReportRepo:
    """Completed-job records kept outside the ledger.

    Reads raise ``DegradedDataError`` instead of database errors: job volume
    is not authoritative and callers fall back to zero.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def sum_volume_for_pump(self, pump_id: int) -> float:
        try:
            row = self._connection.execute(
                """
                SELECT COALESCE(SUM(realized_volume), 0) AS total_volume
                FROM job_reports
                WHERE pump_id = ?
                """,
                (pump_id,),
            ).fetchone()
        except sqlite3.Error as exc:
            raise DegradedDataError(
                f"Volume bombeado indisponível para a bomba {pump_id}."
            ) from exc
        return float(row["total_volume"] or 0) if row else 0.0

    def list_recent(self, pump_id: int, limit: int = 5) -> list[JobReport]:
        try:
            rows = self._connection.execute(
                """
                SELECT *
                FROM job_reports
                WHERE pump_id = ?
                ORDER BY date DESC, id DESC
                LIMIT ?
                """,
                (pump_id, limit),
            ).fetchall()
        except sqlite3.Error as exc:
            raise DegradedDataError(
                f"Relatórios indisponíveis para a bomba {pump_id}."
            ) from exc
        return [job_report_from_row(row) for row in rows]

    def record(
        self,
        pump_id: int,
        report_number: str,
        realized_volume: float,
        report_date: date,
        client_name: Optional[str] = None,
    ) -> JobReport:
        try:
            with self._connection:
                cursor = self._connection.execute(
                    """
                    INSERT INTO job_reports (
                        pump_id,
                        report_number,
                        client_name,
                        realized_volume,
                        date
                    )
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        pump_id,
                        report_number,
                        client_name,
                        realized_volume,
                        report_date.isoformat(),
                    ),
                )
        except Exception:
            self._logger.exception("Failed to record job report pump_id=%s", pump_id)
            raise
        return JobReport(
            id=int(cursor.lastrowid),
            pump_id=pump_id,
            report_number=report_number,
            realized_volume=realized_volume,
            date=report_date,
            client_name=client_name,
        )
