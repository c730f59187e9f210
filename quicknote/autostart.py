"""
Launch-at-login registration for the current user.

Windows uses the ``Run`` registry key, macOS a LaunchAgent property list and
other platforms an XDG autostart desktop entry.
"""

from __future__ import annotations

import os
import plistlib
import sys
from pathlib import Path
from typing import List, Optional

try:
    import winreg
except ImportError:  # pragma: no cover - not on Windows
    winreg = None

from quicknote import logger as app_logger

_LOGGER = app_logger.get_logger()

ENTRY_NAME = "QuickNote"
RUN_SUBKEY = r"Software\Microsoft\Windows\CurrentVersion\Run"
LAUNCH_AGENT_LABEL = "com.quicknote.app"
DESKTOP_FILENAME = "quicknote.desktop"


def launch_command() -> List[str]:
    return [sys.executable, "-m", "quicknote.main"]


class AutostartManager:
    """Enables or disables starting QuickNote when the user logs in."""

    def __init__(
        self,
        *,
        platform: str = sys.platform,
        home: Optional[Path] = None,
        config_home: Optional[Path] = None,
        winreg_module=winreg,
        command: Optional[List[str]] = None,
    ) -> None:
        self.platform = platform
        self.home = Path(home) if home is not None else Path.home()
        if config_home is None:
            xdg = os.environ.get("XDG_CONFIG_HOME")
            config_home = Path(xdg) if xdg else self.home / ".config"
        self.config_home = Path(config_home)
        self._winreg = winreg_module
        self.command = command or launch_command()

    @property
    def entry_path(self) -> Optional[Path]:
        """File backing the entry on macOS and XDG desktops; None on Windows."""
        if self.platform == "win32":
            return None
        if self.platform == "darwin":
            return self.home / "Library" / "LaunchAgents" / f"{LAUNCH_AGENT_LABEL}.plist"
        return self.config_home / "autostart" / DESKTOP_FILENAME

    def is_enabled(self) -> bool:
        if self.platform == "win32":
            try:
                key = self._winreg.OpenKey(self._winreg.HKEY_CURRENT_USER, RUN_SUBKEY, 0, self._winreg.KEY_READ)
            except OSError:
                return False
            try:
                self._winreg.QueryValueEx(key, ENTRY_NAME)
                return True
            except OSError:
                return False
            finally:
                self._winreg.CloseKey(key)
        return self.entry_path.exists()

    def enable(self) -> None:
        if self.platform == "win32":
            key = self._winreg.CreateKey(self._winreg.HKEY_CURRENT_USER, RUN_SUBKEY)
            try:
                self._winreg.SetValueEx(key, ENTRY_NAME, 0, self._winreg.REG_SZ, self._quoted_command())
            finally:
                self._winreg.CloseKey(key)
            return
        path = self.entry_path
        path.parent.mkdir(parents=True, exist_ok=True)
        if self.platform == "darwin":
            payload = {
                "Label": LAUNCH_AGENT_LABEL,
                "ProgramArguments": list(self.command),
                "RunAtLoad": True,
            }
            path.write_bytes(plistlib.dumps(payload))
        else:
            path.write_text(self._desktop_entry(), encoding="utf-8")

    def disable(self) -> None:
        if self.platform == "win32":
            try:
                key = self._winreg.OpenKey(
                    self._winreg.HKEY_CURRENT_USER, RUN_SUBKEY, 0, self._winreg.KEY_SET_VALUE
                )
            except OSError:
                return
            try:
                self._winreg.DeleteValue(key, ENTRY_NAME)
            except FileNotFoundError:
                pass
            finally:
                self._winreg.CloseKey(key)
            return
        self.entry_path.unlink(missing_ok=True)

    def apply(self, enabled: bool) -> bool:
        """Bring the login entry in line with ``enabled``. Returns False if that failed."""
        try:
            if enabled:
                self.enable()
            else:
                self.disable()
        except OSError as exc:
            _LOGGER.error("Failed to {} launch at login: {}", "enable" if enabled else "disable", exc)
            return False
        _LOGGER.info("Launch at login {}.", "enabled" if enabled else "disabled")
        return True

    def _quoted_command(self) -> str:
        return " ".join(f'"{part}"' if " " in part else part for part in self.command)

    def _desktop_entry(self) -> str:
        return (
            "[Desktop Entry]\n"
            "Type=Application\n"
            f"Name={ENTRY_NAME}\n"
            f"Exec={self._quoted_command()}\n"
            "X-GNOME-Autostart-enabled=true\n"
        )
