"""Repository for pump persistence."""

from __future__ import annotations

import sqlite3
from typing import List, Optional

from pump_manager.db.connection import transaction
from pump_manager.domain.models import Pump, PumpStatus
from pump_manager.logging_config import get_logger
from pump_manager.repositories.mappers import pump_from_row
from pump_manager.utils.dates import now_iso


class PumpRepo:
    """Data access for pumps. Pumps are never deleted."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def create(
        self,
        prefix: str,
        owner_id: Optional[int],
        model: Optional[str] = None,
        brand: Optional[str] = None,
        status: PumpStatus = PumpStatus.AVAILABLE,
    ) -> Pump:
        created_at = now_iso()
        try:
            with transaction(self._connection):
                cursor = self._connection.execute(
                    """
                    INSERT INTO pumps (
                        prefix,
                        status,
                        owner_id,
                        model,
                        brand,
                        created_at,
                        updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        prefix,
                        status.value,
                        owner_id,
                        model,
                        brand,
                        created_at,
                        created_at,
                    ),
                )
        except Exception:
            self._logger.exception("Failed to create pump prefix=%s", prefix)
            raise
        return Pump(
            id=cursor.lastrowid,
            prefix=prefix,
            status=status,
            owner_id=owner_id,
            model=model,
            brand=brand,
            created_at=created_at,
            updated_at=created_at,
        )

    def set_status(self, pump_id: int, status: PumpStatus) -> bool:
        try:
            with transaction(self._connection):
                cursor = self._connection.execute(
                    """
                    UPDATE pumps
                    SET status = ?,
                        updated_at = ?
                    WHERE id = ?
                    """,
                    (status.value, now_iso(), pump_id),
                )
        except Exception:
            self._logger.exception("Failed to update pump status id=%s", pump_id)
            raise
        return cursor.rowcount > 0

    def get_by_id(self, pump_id: int) -> Optional[Pump]:
        try:
            row = self._connection.execute(
                "SELECT * FROM pumps WHERE id = ?",
                (pump_id,),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to fetch pump id=%s", pump_id)
            raise
        return pump_from_row(row) if row else None

    def get_by_prefix(self, prefix: str) -> Optional[Pump]:
        try:
            row = self._connection.execute(
                "SELECT * FROM pumps WHERE prefix = ?",
                (prefix.strip(),),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to fetch pump prefix=%s", prefix)
            raise
        return pump_from_row(row) if row else None

    def list_all(
        self,
        *,
        status: Optional[PumpStatus] = None,
        search: Optional[str] = None,
        owner_id: Optional[int] = None,
    ) -> List[Pump]:
        clauses: list[str] = []
        params: list[object] = []
        if status is not None:
            clauses.append("status = ?")
            params.append(status.value)
        if owner_id is not None:
            clauses.append("owner_id = ?")
            params.append(owner_id)
        if search and search.strip():
            clauses.append("(prefix LIKE ? OR model LIKE ?)")
            term = f"%{search.strip()}%"
            params.extend([term, term])
        where_clause = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        try:
            rows = self._connection.execute(
                f"SELECT * FROM pumps {where_clause} ORDER BY prefix",
                params,
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list pumps")
            raise
        return [pump_from_row(row) for row in rows]
