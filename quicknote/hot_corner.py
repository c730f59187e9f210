"""
Hot-corner detection by polling the cursor position.
"""

from __future__ import annotations

from typing import Callable, Optional, Tuple

from PySide6.QtCore import QObject, QPoint, QRect, Signal
from PySide6.QtGui import QCursor, QGuiApplication

from quicknote import logger as app_logger
from quicknote.preferences import Corner
from quicknote.scheduler import ScheduledTask, Scheduler

_LOGGER = app_logger.get_logger()

POLL_INTERVAL_MS = 50
EMIT_INTERVAL_MS = 100

CursorSource = Callable[[], Optional[Tuple[QPoint, QRect]]]


def is_in_corner(pos: QPoint, corner: Corner, size: int, screen: QRect) -> bool:
    """Whether ``pos`` lies within ``size`` pixels of ``corner`` of ``screen``."""
    if not screen.contains(pos):
        return False
    left = pos.x() - screen.left() <= size
    right = screen.right() - pos.x() <= size
    top = pos.y() - screen.top() <= size
    bottom = screen.bottom() - pos.y() <= size
    if corner is Corner.TOP_LEFT:
        return left and top
    if corner is Corner.TOP_RIGHT:
        return right and top
    if corner is Corner.BOTTOM_LEFT:
        return left and bottom
    return right and bottom


def primary_screen_cursor() -> Optional[Tuple[QPoint, QRect]]:
    screen = QGuiApplication.primaryScreen()
    if screen is None:
        return None
    return QCursor.pos(), screen.geometry()


class HotCornerWatcher(QObject):
    """Emits ``triggered`` repeatedly, at most every 100 ms, while the cursor sits in the corner."""

    triggered = Signal()

    def __init__(
        self,
        scheduler: Scheduler,
        corner: Corner = Corner.TOP_RIGHT,
        size: int = 10,
        enabled: bool = True,
        cursor_source: CursorSource = primary_screen_cursor,
    ) -> None:
        super().__init__()
        self._scheduler = scheduler
        self._corner = corner
        self._size = size
        self._enabled = enabled
        self._cursor_source = cursor_source
        self._last_emit = float("-inf")
        self._poll_task: Optional[ScheduledTask] = None

    @property
    def running(self) -> bool:
        return self._poll_task is not None

    def start(self) -> None:
        self.stop()
        self._poll_task = self._scheduler.call_every(POLL_INTERVAL_MS, self._poll)

    def stop(self) -> None:
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None

    def update_config(self, corner: Corner, size: int, enabled: bool) -> None:
        self._corner = corner
        self._size = size
        self._enabled = enabled
        _LOGGER.debug("Hot corner set to {} ({} px, enabled={}).", corner.value, size, enabled)

    def _poll(self) -> None:
        if not self._enabled:
            return
        sample = self._cursor_source()
        if sample is None:
            return
        pos, screen = sample
        if not is_in_corner(pos, self._corner, self._size, screen):
            return
        now = self._scheduler.now_ms()
        if now - self._last_emit < EMIT_INTERVAL_MS:
            return
        self._last_emit = now
        self.triggered.emit()
