import plistlib
import tempfile
import unittest
from pathlib import Path

from quicknote.autostart import ENTRY_NAME, RUN_SUBKEY, AutostartManager

COMMAND = ["/opt/quick note/python", "-m", "quicknote.main"]


class FakeWinreg:
    """Records Run-key values the way the registry would hold them."""

    HKEY_CURRENT_USER = "HKCU"
    KEY_READ = 1
    KEY_SET_VALUE = 2
    REG_SZ = 1

    def __init__(self) -> None:
        self.values = {}

    def CreateKey(self, hive, subkey):  # noqa: N802
        return (hive, subkey)

    def OpenKey(self, hive, subkey, reserved, access):  # noqa: N802
        return (hive, subkey)

    def CloseKey(self, key):  # noqa: N802
        pass

    def SetValueEx(self, key, name, reserved, value_type, value):  # noqa: N802
        self.values[(key[1], name)] = value

    def QueryValueEx(self, key, name):  # noqa: N802
        try:
            return self.values[(key[1], name)], self.REG_SZ
        except KeyError:
            raise FileNotFoundError(name) from None

    def DeleteValue(self, key, name):  # noqa: N802
        try:
            del self.values[(key[1], name)]
        except KeyError:
            raise FileNotFoundError(name) from None


class AutostartManagerTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.home = Path(self._tmp.name)

    def test_linux_desktop_entry(self) -> None:
        manager = AutostartManager(platform="linux", home=self.home, config_home=self.home / "cfg", command=COMMAND)
        self.assertFalse(manager.is_enabled())
        self.assertTrue(manager.apply(True))
        entry = (self.home / "cfg" / "autostart" / "quicknote.desktop").read_text(encoding="utf-8")
        self.assertIn('Exec="/opt/quick note/python" -m quicknote.main', entry)
        self.assertTrue(manager.is_enabled())
        self.assertTrue(manager.apply(False))
        self.assertFalse(manager.is_enabled())

    def test_macos_launch_agent(self) -> None:
        manager = AutostartManager(platform="darwin", home=self.home, command=COMMAND)
        manager.enable()
        payload = plistlib.loads(manager.entry_path.read_bytes())
        self.assertEqual(payload["ProgramArguments"], COMMAND)
        self.assertTrue(payload["RunAtLoad"])
        manager.disable()
        manager.disable()
        self.assertFalse(manager.is_enabled())

    def test_windows_run_key(self) -> None:
        registry = FakeWinreg()
        manager = AutostartManager(platform="win32", winreg_module=registry, command=COMMAND)
        self.assertIsNone(manager.entry_path)
        manager.enable()
        self.assertEqual(
            registry.values[(RUN_SUBKEY, ENTRY_NAME)], '"/opt/quick note/python" -m quicknote.main'
        )
        self.assertTrue(manager.is_enabled())
        manager.disable()
        manager.disable()
        self.assertFalse(manager.is_enabled())

    def test_write_failure_is_reported(self) -> None:
        blocker = self.home / "cfg"
        blocker.write_text("not a directory", encoding="utf-8")
        manager = AutostartManager(platform="linux", home=self.home, config_home=blocker, command=COMMAND)
        self.assertFalse(manager.apply(True))


if __name__ == "__main__":
    unittest.main()
