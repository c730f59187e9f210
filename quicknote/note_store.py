"""
File persistence for the note's rich-text content.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from quicknote import logger as app_logger

_LOGGER = app_logger.get_logger()

NOTE_FILENAME = "note.html"

WELCOME_NOTE = (
    "<h1>Welcome to QuickNote!</h1>"
    "<p>A minimal, always-accessible sticky note.</p>"
    "<h2>Quick Start</h2>"
    "<ul>"
    "<li><b>Show:</b> move the pointer into the hot corner, press the keyboard shortcut,"
    " or pick <i>Toggle Note</i> from the tray.</li>"
    "<li><b>Hide:</b> press Escape, click the close button, or click elsewhere.</li>"
    "<li><b>Keep open:</b> click inside the note and it stays until you dismiss it.</li>"
    "</ul>"
    "<p><i>Delete this text and start writing your notes!</i></p>"
)


class NoteStore:
    def __init__(self, data_dir: Path) -> None:
        self.path = Path(data_dir) / NOTE_FILENAME

    def read(self) -> str:
        """Return the saved note, or the welcome text on first run."""
        if not self.path.exists():
            return WELCOME_NOTE
        raw = self.path.read_bytes()
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            _LOGGER.warning("Note file {} is not valid UTF-8 ({}); undecodable bytes replaced.", self.path, exc)
            return raw.decode("utf-8", errors="replace")

    def write(self, content: str) -> None:
        """Replace the note atomically so a crash never leaves a truncated file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".note-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
            os.replace(temp_name, self.path)
        except OSError:
            Path(temp_name).unlink(missing_ok=True)
            raise
