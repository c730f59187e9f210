"""
Entry point for the QuickNote application.
"""

from __future__ import annotations

import sys
import time
from typing import Iterable, Tuple

from PySide6.QtCore import QLockFile
from PySide6.QtWidgets import QApplication

from quicknote import logger as app_logger
from quicknote.app import APP_NAME, QuickNoteApp

_LOGGER = app_logger.get_logger()
_LOCK_FILENAME = "quicknote.lock"


class _InstanceGuard:
    """Lock file guard preventing concurrent instances."""

    def __init__(self, path: str) -> None:
        self._lock = QLockFile(path)
        self._lock.setStaleLockTime(0)

    def acquire(self) -> bool:
        return self._lock.tryLock(100)

    def release(self) -> None:
        if self._lock.isLocked():
            self._lock.unlock()


def _run_application_once(argv: Iterable[str]) -> Tuple[int, bool]:
    """Start the Qt application once and report whether shutdown was intentional."""
    app = QApplication.instance() or QApplication(list(argv))
    app.setApplicationName(APP_NAME)
    app.setQuitOnLastWindowClosed(False)
    note_app = QuickNoteApp()
    note_app.start()
    exit_code = app.exec()
    return exit_code, note_app.manual_shutdown_requested


def main() -> int:
    """Launch the application with single-instance + recovery safeguards."""
    data_dir = app_logger.data_dir()
    data_dir.mkdir(parents=True, exist_ok=True)
    guard = _InstanceGuard(str(data_dir / _LOCK_FILENAME))
    if not guard.acquire():
        _LOGGER.debug("{} instance already running; exiting silently.", APP_NAME)
        return 0

    backoff_seconds = 2
    max_backoff = 30

    try:
        while True:
            try:
                exit_code, manual = _run_application_once(sys.argv)
            except Exception:  # pragma: no cover
                _LOGGER.exception("{} crashed; attempting automatic recovery.", APP_NAME)
                exit_code = 1
                manual = False

            if manual:
                return exit_code

            _LOGGER.warning(
                "{} exited unexpectedly (code={}). Restarting in {} seconds.",
                APP_NAME,
                exit_code,
                backoff_seconds,
            )
            time.sleep(backoff_seconds)
            backoff_seconds = min(backoff_seconds * 2, max_backoff)
    finally:
        guard.release()


if __name__ == "__main__":
    raise SystemExit(main())
