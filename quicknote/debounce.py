"""
Coalesces bursts of writes into one delayed write per logical target.
"""

from __future__ import annotations

from typing import Callable, Dict, Hashable, Optional, Tuple

from quicknote import logger as app_logger
from quicknote.scheduler import ScheduledTask, Scheduler

_LOGGER = app_logger.get_logger()

NOTE_SAVE_DELAY_MS = 500
GEOMETRY_SAVE_DELAY_MS = 500

NOTE_TARGET = "note"
GEOMETRY_TARGET = "geometry"

WriteFn = Callable[[], None]


class DebouncedWriter:
    """
    Keeps at most one pending write per target. Scheduling a new write for a
    target replaces the pending one, so only the latest call within the
    debounce window runs.
    """

    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler
        self._pending: Dict[Hashable, Tuple[ScheduledTask, WriteFn]] = {}

    def schedule(self, target: Hashable, write_fn: WriteFn, delay_ms: int) -> None:
        self.cancel(target)
        task = self._scheduler.call_later(delay_ms, lambda: self._run(target))
        self._pending[target] = (task, write_fn)

    def pending(self, target: Hashable) -> bool:
        return target in self._pending

    def flush(self, target: Hashable) -> bool:
        """Run the pending write for ``target`` now. Returns False if none was pending."""
        if target not in self._pending:
            return False
        self._run(target)
        return True

    def flush_now(self, target: Hashable, write_fn: WriteFn) -> None:
        """Drop any pending write for ``target`` and run ``write_fn`` immediately."""
        self.cancel(target)
        self._execute(target, write_fn)

    def flush_all(self) -> None:
        for target in list(self._pending):
            self._run(target)

    def cancel(self, target: Hashable) -> None:
        entry = self._pending.pop(target, None)
        if entry is not None:
            entry[0].cancel()

    def cancel_all(self) -> None:
        for target in list(self._pending):
            self.cancel(target)

    def _run(self, target: Hashable) -> None:
        entry: Optional[Tuple[ScheduledTask, WriteFn]] = self._pending.pop(target, None)
        if entry is None:
            return
        task, write_fn = entry
        task.cancel()
        self._execute(target, write_fn)

    def _execute(self, target: Hashable, write_fn: WriteFn) -> None:
        try:
            write_fn()
        except Exception as exc:  # noqa: BLE001
            _LOGGER.error("Failed to persist {}: {}", target, exc)
