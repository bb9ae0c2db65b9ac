"""Shared fixtures: a migrated SQLite database per test."""

from __future__ import annotations

from datetime import date

import pytest

from pump_manager.db.connection import get_connection
from pump_manager.db.migrations import apply_migrations
from pump_manager.domain.models import BookingDraft, BookingState
from pump_manager.services.resource_facade import PumpResourceService

TODAY = date(2026, 3, 10)


class RecordingNotifier:
    def __init__(self) -> None:
        self.notices: list[tuple[str, dict]] = []

    def notify(self, kind, payload) -> None:
        self.notices.append((kind.value, payload))


class FailingNotifier:
    def notify(self, kind, payload) -> None:
        raise ConnectionError("notice endpoint unreachable")


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "test.db"


@pytest.fixture
def connection(db_path):
    conn = get_connection(db_path)
    apply_migrations(conn)
    yield conn
    conn.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def service(connection, notifier):
    return PumpResourceService(
        connection, notifier=notifier, today_provider=lambda: TODAY
    )


@pytest.fixture
def pump(service):
    return service.register_pump("PX-01", owner_id=1, model="36X", brand="Schwing")


@pytest.fixture
def planned_draft(pump):
    def build(**overrides) -> BookingDraft:
        values = dict(
            state=BookingState.PLANNED,
            pump_id=pump.id,
            date="2026-03-12",
            time="08:00",
            client_id=10,
            responsible_person="Marcos",
            company_id=3,
            address="Rua das Obras",
            address_number="120",
            city="Curitiba",
            concrete_volume=30.0,
            crew_assistants=["João"],
        )
        values.update(overrides)
        return BookingDraft(**values)

    return build
