"""
Logging setup for QuickNote.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger as _logger

_LOG_INITIALISED = False


def data_dir() -> Path:
    """Directory holding preferences, the note and logs."""
    override = os.environ.get("QUICKNOTE_HOME")
    if override:
        return Path(override)
    return Path.home() / ".quicknote"


def configure(log_path: Optional[Path] = None) -> None:
    """
    Configure loguru for the application.

    Runs only once; later calls are ignored so modules can ask for the
    logger at import time without clobbering sinks.
    """
    global _LOG_INITIALISED
    if _LOG_INITIALISED:
        return
    target = log_path or data_dir() / "logs" / "quicknote.log"
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        target = None

    _logger.remove()
    if sys.stderr is not None:
        _logger.add(sys.stderr, level="INFO", enqueue=True)
    if target is not None:
        _logger.add(
            target,
            level="DEBUG",
            rotation="10 MB",
            retention=5,
            encoding="utf-8",
            enqueue=True,
            backtrace=True,
            diagnose=False,
        )
    _LOG_INITIALISED = True


def get_logger():
    """Return the shared logger instance."""
    configure()
    return _logger
