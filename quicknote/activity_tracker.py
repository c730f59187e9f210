"""
Idle detection driven by in-application input events.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from PySide6.QtCore import QCoreApplication, QEvent, QObject, Signal

from quicknote import logger as app_logger
from quicknote.scheduler import ScheduledTask, Scheduler

_LOGGER = app_logger.get_logger()

POLL_INTERVAL_MS = 100

ACTIVITY_EVENT_TYPES = frozenset(
    {
        QEvent.Type.MouseMove,
        QEvent.Type.MouseButtonPress,
        QEvent.Type.KeyPress,
        QEvent.Type.Wheel,
        QEvent.Type.TouchBegin,
    }
)


@dataclass
class ActivityState:
    last_activity_at: float = 0.0
    timeout_ms: int = 5000
    running: bool = False


class ActivityTracker(QObject):
    """
    Polls the time since the last input event and fires once the configured
    threshold is crossed. Tracking halts after firing until restarted.
    """

    idleReached = Signal()

    def __init__(self, scheduler: Scheduler, event_source: Optional[QObject] = None) -> None:
        super().__init__()
        self._scheduler = scheduler
        self._event_source = event_source
        self._installed_on: Optional[QObject] = None
        self._poll_task: Optional[ScheduledTask] = None
        self._on_idle: Optional[Callable[[], None]] = None
        self.state = ActivityState(last_activity_at=scheduler.now_ms())

    @property
    def running(self) -> bool:
        return self.state.running

    def start(self, timeout_ms: int, on_idle: Optional[Callable[[], None]] = None) -> None:
        """Begin tracking; any previous run is discarded."""
        self.stop()
        self.state.timeout_ms = int(timeout_ms)
        self._on_idle = on_idle
        self.state.running = True
        self.record_activity()
        self._attach_listeners()
        self._poll_task = self._scheduler.call_every(POLL_INTERVAL_MS, self._check_idle)
        _LOGGER.debug("Idle tracking started with a {} ms threshold.", timeout_ms)

    def stop(self) -> None:
        """Stop tracking. Safe to call when not running."""
        self.state.running = False
        self._on_idle = None
        self._detach_listeners()
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None

    def update_delay(self, timeout_ms: int) -> None:
        # Resetting the clock keeps a shortened delay from firing on the next tick.
        self.state.timeout_ms = int(timeout_ms)
        self.record_activity()

    def record_activity(self) -> None:
        self.state.last_activity_at = self._scheduler.now_ms()

    def idle_ms(self) -> float:
        return self._scheduler.now_ms() - self.state.last_activity_at

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:  # noqa: N802
        if self.state.running and event.type() in ACTIVITY_EVENT_TYPES:
            self.record_activity()
        return False

    def _check_idle(self) -> None:
        # A tick can still arrive after stop() raced with it.
        if not self.state.running or self._on_idle is None:
            return
        if self.idle_ms() < self.state.timeout_ms:
            return
        callback = self._on_idle
        self.stop()
        self.idleReached.emit()
        callback()

    def _attach_listeners(self) -> None:
        source = self._event_source or QCoreApplication.instance()
        if source is None:
            _LOGGER.debug("No application instance; idle tracking relies on explicit activity only.")
            return
        source.installEventFilter(self)
        self._installed_on = source

    def _detach_listeners(self) -> None:
        if self._installed_on is None:
            return
        self._installed_on.removeEventFilter(self)
        self._installed_on = None
