"""
System-wide keyboard shortcut that toggles the note.

The shortcut is written the way the preferences file stores it, for example
``Alt+CommandOrControl+N``, and translated into pynput's ``<alt>+<ctrl>+n``
hotkey syntax.
"""

from __future__ import annotations

import sys
from typing import Optional

from PySide6.QtCore import QObject, Signal

from quicknote import logger as app_logger

_LOGGER = app_logger.get_logger()

_MODIFIERS = {
    "alt": "<alt>",
    "option": "<alt>",
    "ctrl": "<ctrl>",
    "control": "<ctrl>",
    "shift": "<shift>",
    "cmd": "<cmd>",
    "command": "<cmd>",
    "super": "<cmd>",
    "meta": "<cmd>",
    "win": "<cmd>",
}

_NAMED_KEYS = {
    "space": "<space>",
    "tab": "<tab>",
    "enter": "<enter>",
    "return": "<enter>",
    "esc": "<esc>",
    "escape": "<esc>",
    "backspace": "<backspace>",
    "delete": "<delete>",
    "home": "<home>",
    "end": "<end>",
    "pageup": "<page_up>",
    "pagedown": "<page_down>",
    "up": "<up>",
    "down": "<down>",
    "left": "<left>",
    "right": "<right>",
}


def to_hotkey(shortcut: str, platform: str = sys.platform) -> str:
    """
    Convert ``Modifier+...+Key`` into a pynput hotkey string.

    ``CommandOrControl`` resolves to Command on macOS and Control elsewhere.
    Raises ``ValueError`` for an empty shortcut, a missing or repeated key, or
    an unknown token.
    """
    parts = [part.strip().lower() for part in shortcut.split("+")]
    if not shortcut.strip() or any(not part for part in parts):
        raise ValueError(f"Malformed keyboard shortcut: {shortcut!r}")

    modifiers = []
    key: Optional[str] = None
    for part in parts:
        if part in ("commandorcontrol", "cmdorctrl"):
            part = "cmd" if platform == "darwin" else "ctrl"
        if part in _MODIFIERS:
            token = _MODIFIERS[part]
            if token not in modifiers:
                modifiers.append(token)
            continue
        if key is not None:
            raise ValueError(f"Keyboard shortcut {shortcut!r} names more than one key")
        key = _key_token(part, shortcut)

    if key is None:
        raise ValueError(f"Keyboard shortcut {shortcut!r} has no key besides modifiers")
    return "+".join([*modifiers, key])


def _key_token(part: str, shortcut: str) -> str:
    if len(part) == 1 and part.isprintable():
        return part
    if part in _NAMED_KEYS:
        return _NAMED_KEYS[part]
    if part[0] == "f" and part[1:].isdigit() and 1 <= int(part[1:]) <= 24:
        return f"<{part}>"
    raise ValueError(f"Unknown key {part!r} in keyboard shortcut {shortcut!r}")


class GlobalShortcut(QObject):
    """
    Listens for one system-wide hotkey on a pynput listener thread.

    ``activated`` is emitted from that thread; Qt queues it onto the receiver's
    thread, so connected slots run on the GUI thread.
    """

    activated = Signal()

    def __init__(self) -> None:
        super().__init__()
        self._listener = None
        self._hotkey: Optional[str] = None

    @property
    def registered(self) -> bool:
        return self._listener is not None

    @property
    def hotkey(self) -> Optional[str]:
        return self._hotkey

    def register(self, shortcut: str) -> bool:
        """Replace any current hotkey with ``shortcut``. Returns False when it cannot be registered."""
        self.unregister()
        try:
            hotkey = to_hotkey(shortcut)
        except ValueError as exc:
            _LOGGER.error("Keyboard shortcut not registered: {}", exc)
            return False

        try:
            from pynput import keyboard
        except ImportError as exc:
            # pynput raises ImportError when no input backend (e.g. no display) is usable.
            _LOGGER.warning("Global keyboard shortcuts unavailable: {}", exc)
            return False

        try:
            listener = keyboard.GlobalHotKeys({hotkey: self.activated.emit})
            listener.daemon = True
            listener.start()
        except Exception as exc:  # noqa: BLE001
            _LOGGER.error("Failed to register keyboard shortcut {}: {}", shortcut, exc)
            return False

        self._listener = listener
        self._hotkey = hotkey
        _LOGGER.info("Registered keyboard shortcut {} ({}).", shortcut, hotkey)
        return True

    def unregister(self) -> None:
        if self._listener is None:
            return
        self._listener.stop()
        self._listener = None
        self._hotkey = None

    def apply(self, enabled: bool, shortcut: str) -> None:
        if enabled:
            if self._hotkey is None or self._hotkey != _safe_hotkey(shortcut):
                self.register(shortcut)
        else:
            self.unregister()


def _safe_hotkey(shortcut: str) -> Optional[str]:
    try:
        return to_hotkey(shortcut)
    except ValueError:
        return None
