"""Notice delivery to collaborators outside the pump core."""

from __future__ import annotations

from typing import Any, Optional, Protocol

from PySide6 import QtCore

from pump_manager.domain.models import NoticeKind
from pump_manager.logging_config import get_logger


class Notifier(Protocol):
    """Fire-and-forget notice sink; the core never waits for a reply."""

    def notify(self, kind: NoticeKind, payload: dict[str, Any]) -> None: ...


class LoggingNotifier:
    """Default sink: records notices in the application log."""

    def __init__(self) -> None:
        self._logger = get_logger(self.__class__.__name__)

    def notify(self, kind: NoticeKind, payload: dict[str, Any]) -> None:
        self._logger.info("Notice %s: %s", kind.value, payload)


class DataEventBus(QtCore.QObject):
    """Signal emitter for ledger and booking change notices."""

    data_changed = QtCore.Signal()
    notice_emitted = QtCore.Signal(str, object)


class SignalNotifier:
    """Forwards notices to a ``DataEventBus`` so a desktop shell can react."""

    def __init__(self, bus: Optional[DataEventBus] = None) -> None:
        self.bus = bus or DataEventBus()

    def notify(self, kind: NoticeKind, payload: dict[str, Any]) -> None:
        self.bus.notice_emitted.emit(kind.value, dict(payload))
        self.bus.data_changed.emit()
