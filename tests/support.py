"""Deterministic stand-ins for the Qt event loop and the note window."""

from __future__ import annotations

import itertools
import os
from typing import Callable, List, Optional, Tuple


class FakeTask:
    def __init__(self, due: float, interval: Optional[float], callback: Callable[[], None], seq: int) -> None:
        self.due = due
        self.interval = interval
        self.callback = callback
        self.seq = seq
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        self._active = False


class FakeScheduler:
    """Virtual clock; timers only fire inside ``advance``."""

    def __init__(self, start_ms: float = 0.0) -> None:
        self.now = start_ms
        self._tasks: List[FakeTask] = []
        self._seq = itertools.count()

    def now_ms(self) -> float:
        return self.now

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> FakeTask:
        return self._add(FakeTask(self.now + max(0, delay_ms), None, callback, next(self._seq)))

    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> FakeTask:
        interval = max(1, interval_ms)
        return self._add(FakeTask(self.now + interval, interval, callback, next(self._seq)))

    def advance(self, ms: float) -> None:
        target = self.now + ms
        while True:
            due = [task for task in self._tasks if task.active and task.due <= target]
            if not due:
                break
            task = min(due, key=lambda t: (t.due, t.seq))
            self.now = task.due
            if task.interval is None:
                task.cancel()
            else:
                task.due += task.interval
            task.callback()
        self.now = target
        self._tasks = [task for task in self._tasks if task.active]

    def pending_count(self) -> int:
        return sum(1 for task in self._tasks if task.active)

    def _add(self, task: FakeTask) -> FakeTask:
        self._tasks.append(task)
        return task


class FakeSurface:
    """Records what the fade sequencer asks of the window."""

    def __init__(self) -> None:
        self.visible = True
        self.opacity = 1.0
        self.animations: List[Tuple[float, int]] = []
        self.animating = False
        self.hide_calls = 0
        self.opacity_restores = 0
        self.fail_next_hide = False
        self.on_hide: Optional[Callable[[], None]] = None

    def animate_opacity(self, target: float, duration_ms: int) -> None:
        self.animations.append((target, duration_ms))
        self.animating = True
        self.opacity = target

    def stop_animation(self) -> None:
        self.animating = False

    def set_opacity(self, value: float) -> None:
        self.opacity = value
        if value == 1.0:
            self.opacity_restores += 1

    def hide_window(self) -> None:
        self.hide_calls += 1
        if self.fail_next_hide:
            self.fail_next_hide = False
            raise RuntimeError("window manager refused to hide")
        was_visible = self.visible
        self.visible = False
        if was_visible and self.on_hide is not None:
            self.on_hide()

    def show(self) -> None:
        self.visible = True


def qt_application():
    """Shared QApplication on the offscreen platform so widget tests need no display."""
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    from PySide6.QtWidgets import QApplication

    return QApplication.instance() or QApplication([])
