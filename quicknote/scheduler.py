"""
Cancellable timer handles on top of the Qt event loop.

Every delayed or periodic piece of work in QuickNote (idle polling, fade
completion, debounced writes, the post-show grace period) goes through a
``Scheduler`` so that "supersede the previous one" is an explicit
``cancel()`` on a handle rather than something implied by timer identity.
"""

from __future__ import annotations

import time
from typing import Callable, Optional, Protocol

from PySide6.QtCore import QObject, QTimer

from quicknote import logger as app_logger

_LOGGER = app_logger.get_logger()


class ScheduledTask(Protocol):
    @property
    def active(self) -> bool: ...

    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ScheduledTask: ...

    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> ScheduledTask: ...

    def now_ms(self) -> float: ...


def run_guarded(callback: Callable[[], None]) -> None:
    """Invoke a timer callback, logging instead of propagating failures."""
    try:
        callback()
    except Exception:  # noqa: BLE001
        _LOGGER.exception("Scheduled callback {} failed.", getattr(callback, "__qualname__", callback))


class QtScheduledTask:
    """Handle wrapping a QTimer; cancelling stops and releases the timer."""

    def __init__(self, timer: QTimer, repeating: bool) -> None:
        self._timer: Optional[QTimer] = timer
        self._repeating = repeating

    @property
    def active(self) -> bool:
        return self._timer is not None and self._timer.isActive()

    def cancel(self) -> None:
        if self._timer is None:
            return
        self._timer.stop()
        self._timer.deleteLater()
        self._timer = None

    def _fire(self, callback: Callable[[], None]) -> None:
        if self._timer is None:
            return
        if not self._repeating:
            self.cancel()
        run_guarded(callback)


class QtScheduler(QObject):
    """Scheduler backed by QTimer instances parented to this object."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> QtScheduledTask:
        return self._start(max(0, int(delay_ms)), callback, repeating=False)

    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> QtScheduledTask:
        return self._start(max(1, int(interval_ms)), callback, repeating=True)

    def now_ms(self) -> float:
        return time.monotonic() * 1000.0

    def _start(self, interval_ms: int, callback: Callable[[], None], *, repeating: bool) -> QtScheduledTask:
        timer = QTimer(self)
        timer.setSingleShot(not repeating)
        timer.setInterval(interval_ms)
        task = QtScheduledTask(timer, repeating)
        timer.timeout.connect(lambda: task._fire(callback))  # type: ignore[arg-type]
        timer.start()
        return task
