"""Database migrations for SQLite schema versioning."""

from __future__ import annotations

from dataclasses import dataclass
import sqlite3

from pump_manager.db.connection import transaction
from pump_manager.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Migration:
    version: int
    script: str


MIGRATIONS: list[Migration] = [
    Migration(
        version=1,
        script="""
        CREATE TABLE IF NOT EXISTS pumps (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            prefix TEXT NOT NULL UNIQUE,
            status TEXT NOT NULL DEFAULT 'available'
                CHECK (status IN ('available', 'in_use', 'in_maintenance')),
            owner_id INTEGER,
            model TEXT,
            brand TEXT,
            created_at TEXT,
            updated_at TEXT
        );

        CREATE TABLE IF NOT EXISTS ledger_events (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            pump_id INTEGER NOT NULL,
            category TEXT NOT NULL
                CHECK (category IN ('maintenance', 'fuel', 'investment', 'other')),
            amount REAL NOT NULL DEFAULT 0 CHECK (amount >= 0),
            occurred_on TEXT NOT NULL,
            description TEXT,
            label TEXT,
            maintenance_kind TEXT,
            lifecycle_status TEXT,
            liters_filled REAL CHECK (liters_filled IS NULL OR liters_filled >= 0),
            cost_per_liter REAL CHECK (cost_per_liter IS NULL OR cost_per_liter >= 0),
            odometer REAL,
            payment_method TEXT,
            discount_type TEXT,
            discount_value REAL,
            fuel_station TEXT,
            name TEXT,
            supplier TEXT,
            investment_category TEXT,
            warranty_months INTEGER,
            created_at TEXT,
            FOREIGN KEY (pump_id) REFERENCES pumps(id)
        );

        CREATE INDEX IF NOT EXISTS idx_ledger_events_pump_id
            ON ledger_events(pump_id);
        CREATE INDEX IF NOT EXISTS idx_ledger_events_pump_category
            ON ledger_events(pump_id, category);
        """,
    ),
    Migration(
        version=2,
        script="""
        CREATE TABLE IF NOT EXISTS bookings (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            pump_id INTEGER NOT NULL,
            date TEXT,
            time TEXT,
            state TEXT NOT NULL CHECK (state IN ('reserved', 'planned')),
            client_id INTEGER NOT NULL,
            responsible_person TEXT NOT NULL,
            company_id INTEGER NOT NULL,
            postal_code TEXT,
            address TEXT,
            address_number TEXT,
            district TEXT,
            city TEXT,
            concrete_volume REAL,
            notes TEXT,
            created_at TEXT,
            updated_at TEXT,
            FOREIGN KEY (pump_id) REFERENCES pumps(id)
        );

        CREATE TABLE IF NOT EXISTS booking_assistants (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            booking_id INTEGER NOT NULL,
            assistant TEXT NOT NULL,
            position INTEGER NOT NULL DEFAULT 0,
            FOREIGN KEY (booking_id) REFERENCES bookings(id) ON DELETE CASCADE
        );

        CREATE UNIQUE INDEX IF NOT EXISTS idx_bookings_pump_slot
            ON bookings(pump_id, date, time)
            WHERE date IS NOT NULL AND time IS NOT NULL;
        CREATE INDEX IF NOT EXISTS idx_bookings_date
            ON bookings(date);
        CREATE INDEX IF NOT EXISTS idx_booking_assistants_booking_id
            ON booking_assistants(booking_id);
        """,
    ),
    Migration(
        version=3,
        script="""
        CREATE TABLE IF NOT EXISTS job_reports (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            pump_id INTEGER NOT NULL,
            report_number TEXT NOT NULL,
            client_name TEXT,
            realized_volume REAL NOT NULL DEFAULT 0
                CHECK (realized_volume >= 0),
            date TEXT NOT NULL,
            FOREIGN KEY (pump_id) REFERENCES pumps(id)
        );

        CREATE INDEX IF NOT EXISTS idx_job_reports_pump_date
            ON job_reports(pump_id, date);

        ALTER TABLE ledger_events ADD COLUMN corrected_at TEXT;
        """,
    ),
]

LATEST_VERSION = MIGRATIONS[-1].version


def _fetch_schema_version(connection: sqlite3.Connection) -> int:
    connection.execute(
        """
        CREATE TABLE IF NOT EXISTS app_meta (
            schema_version INTEGER NOT NULL
        );
        """
    )
    row = connection.execute(
        "SELECT schema_version FROM app_meta LIMIT 1"
    ).fetchone()
    if row is None:
        connection.execute("INSERT INTO app_meta (schema_version) VALUES (0)")
        return 0
    return int(row[0])


def get_schema_version(connection: sqlite3.Connection) -> int:
    with transaction(connection):
        return _fetch_schema_version(connection)


def apply_migrations(connection: sqlite3.Connection) -> int:
    """Apply pending database migrations and return the resulting version."""
    current_version = get_schema_version(connection)

    for migration in MIGRATIONS:
        if migration.version <= current_version:
            continue

        with transaction(connection):
            connection.executescript(migration.script)
            connection.execute(
                "UPDATE app_meta SET schema_version = ?",
                (migration.version,),
            )
        logger.info("Applied schema migration v%s", migration.version)

        current_version = migration.version
    return current_version
