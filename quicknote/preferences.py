"""
JSON-backed preferences for QuickNote.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from PySide6.QtCore import QObject, QTimer, Signal

from quicknote import logger as app_logger

_LOGGER = app_logger.get_logger()

PREFERENCES_FILENAME = "preferences.json"
PREFERENCES_REFRESH_INTERVAL_MS = 2000

_HOTCORNER_SIZE_BOUNDS = (1, 100)
_AUTO_HIDE_DELAY_BOUNDS = (250, 300000)
_FADE_DURATION_BOUNDS = (0, 2000)
_TEXT_SIZE_BOUNDS = (8, 32)

DEFAULT_KEYBOARD_SHORTCUT = "Alt+CommandOrControl+N"


class Corner(Enum):
    TOP_LEFT = "TopLeft"
    TOP_RIGHT = "TopRight"
    BOTTOM_LEFT = "BottomLeft"
    BOTTOM_RIGHT = "BottomRight"


@dataclass(frozen=True, eq=True)
class Preferences:
    show_on_launch: bool = False
    launch_on_startup: bool = False
    hotcorner_enabled: bool = True
    hotcorner_corner: Corner = Corner.TOP_RIGHT
    hotcorner_size: int = 10
    shortcut_enabled: bool = True
    keyboard_shortcut: str = DEFAULT_KEYBOARD_SHORTCUT
    auto_focus: bool = True
    auto_hide_enabled: bool = False
    auto_hide_delay_ms: int = 5000
    hide_on_blur: bool = True
    fade_duration_ms: int = 200
    text_size: int = 14
    window_x: Optional[int] = None
    window_y: Optional[int] = None
    window_width: Optional[int] = None
    window_height: Optional[int] = None

    @property
    def has_geometry(self) -> bool:
        return None not in (self.window_x, self.window_y, self.window_width, self.window_height)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["hotcorner_corner"] = self.hotcorner_corner.value
        return data


class PreferencesStore:
    """Loads preferences from disk, falling back to defaults and clamping bad data."""

    def __init__(self, config_dir: Path) -> None:
        self.path = Path(config_dir) / PREFERENCES_FILENAME

    def read(self) -> Preferences:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return Preferences()
        except (OSError, ValueError) as exc:
            _LOGGER.warning("Could not read preferences from {}: {}. Using defaults.", self.path, exc)
            return Preferences()
        if not isinstance(raw, dict):
            _LOGGER.warning("Preferences file {} does not hold an object. Using defaults.", self.path)
            return Preferences()
        return self._from_dict(raw)

    def write(self, preferences: Preferences) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(preferences.to_dict(), indent=2), encoding="utf-8")

    def update_geometry(self, x: int, y: int, width: int, height: int) -> Preferences:
        updated = replace(self.read(), window_x=x, window_y=y, window_width=width, window_height=height)
        self.write(updated)
        return updated

    def _from_dict(self, values: Dict[str, Any]) -> Preferences:
        defaults = Preferences()
        return Preferences(
            show_on_launch=self._read_bool(values, "show_on_launch", defaults.show_on_launch),
            launch_on_startup=self._read_bool(values, "launch_on_startup", defaults.launch_on_startup),
            hotcorner_enabled=self._read_bool(values, "hotcorner_enabled", defaults.hotcorner_enabled),
            hotcorner_corner=self._read_corner(values.get("hotcorner_corner")),
            hotcorner_size=self._read_int(values, "hotcorner_size", defaults.hotcorner_size, _HOTCORNER_SIZE_BOUNDS),
            shortcut_enabled=self._read_bool(values, "shortcut_enabled", defaults.shortcut_enabled),
            keyboard_shortcut=self._read_shortcut(values.get("keyboard_shortcut")),
            auto_focus=self._read_bool(values, "auto_focus", defaults.auto_focus),
            auto_hide_enabled=self._read_bool(values, "auto_hide_enabled", defaults.auto_hide_enabled),
            auto_hide_delay_ms=self._read_int(
                values, "auto_hide_delay_ms", defaults.auto_hide_delay_ms, _AUTO_HIDE_DELAY_BOUNDS
            ),
            hide_on_blur=self._read_bool(values, "hide_on_blur", defaults.hide_on_blur),
            fade_duration_ms=self._read_int(
                values, "fade_duration_ms", defaults.fade_duration_ms, _FADE_DURATION_BOUNDS
            ),
            text_size=self._read_int(values, "text_size", defaults.text_size, _TEXT_SIZE_BOUNDS),
            window_x=self._read_optional_int(values, "window_x"),
            window_y=self._read_optional_int(values, "window_y"),
            window_width=self._read_optional_int(values, "window_width"),
            window_height=self._read_optional_int(values, "window_height"),
        )

    def _read_bool(self, values: Dict[str, Any], name: str, default: bool) -> bool:
        raw = values.get(name)
        if raw is None:
            return default
        if not isinstance(raw, bool):
            _LOGGER.warning("Preference {} has non-boolean value {!r}.", name, raw)
            return default
        return raw

    def _read_int(self, values: Dict[str, Any], name: str, default: int, bounds: tuple[int, int]) -> int:
        raw = values.get(name)
        if raw is None:
            return default
        if isinstance(raw, bool) or not isinstance(raw, int):
            _LOGGER.warning("Preference {} has non-integer value {!r}.", name, raw)
            return default
        low, high = bounds
        if raw < low or raw > high:
            _LOGGER.warning("Preference {}={} is out of range. Clamping to [{}, {}].", name, raw, low, high)
        return max(low, min(high, raw))

    def _read_optional_int(self, values: Dict[str, Any], name: str) -> Optional[int]:
        raw = values.get(name)
        if isinstance(raw, bool) or not isinstance(raw, int):
            return None
        return raw

    def _read_shortcut(self, raw: Any) -> str:
        if isinstance(raw, str) and raw.strip():
            return raw.strip()
        if raw is not None:
            _LOGGER.warning("Keyboard shortcut {!r} is empty or not text; using the default.", raw)
        return DEFAULT_KEYBOARD_SHORTCUT

    def _read_corner(self, raw: Any) -> Corner:
        try:
            return Corner(raw)
        except ValueError:
            if raw is not None:
                _LOGGER.warning("Unknown hot corner {!r}; using the default.", raw)
            return Corner.TOP_RIGHT


class PreferencesWatcher(QObject):
    """Re-reads the store periodically and announces changed snapshots."""

    changed = Signal(object)

    def __init__(self, store: PreferencesStore, initial: Preferences,
                 interval_ms: int = PREFERENCES_REFRESH_INTERVAL_MS) -> None:
        super().__init__()
        self._store = store
        self._current = initial
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self.reload)  # type: ignore[arg-type]

    @property
    def current(self) -> Preferences:
        return self._current

    def start(self) -> None:
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()

    def reload(self) -> None:
        self.apply(self._store.read())

    def sync_geometry(self, x: int, y: int, width: int, height: int) -> Preferences:
        """
        Adopt window bounds this process just wrote, without announcing them.

        Only the geometry fields change, so an external edit that landed in the
        same file is still reported by the next reload.
        """
        self._current = replace(
            self._current, window_x=x, window_y=y, window_width=width, window_height=height
        )
        return self._current

    def apply(self, preferences: Preferences) -> None:
        if preferences == self._current:
            return
        _LOGGER.info("Detected preferences change. Applying updates.")
        self._current = preferences
        self.changed.emit(preferences)
