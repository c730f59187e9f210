"""
Application bootstrap wiring the note window to the visibility engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from PySide6.QtCore import QObject
from PySide6.QtGui import QAction
from PySide6.QtWidgets import QApplication, QDialog, QMenu, QStyle, QSystemTrayIcon

from quicknote import logger as app_logger
from quicknote.activity_tracker import ActivityTracker
from quicknote.autostart import AutostartManager
from quicknote.coordinator import VisibilityCoordinator
from quicknote.debounce import (
    GEOMETRY_SAVE_DELAY_MS,
    GEOMETRY_TARGET,
    NOTE_SAVE_DELAY_MS,
    NOTE_TARGET,
    DebouncedWriter,
)
from quicknote.fade import FadeSequencer
from quicknote.global_shortcut import GlobalShortcut
from quicknote.hot_corner import HotCornerWatcher
from quicknote.note_panel import NotePanel
from quicknote.note_store import NoteStore
from quicknote.preferences import Preferences, PreferencesStore, PreferencesWatcher
from quicknote.preferences_dialog import PreferencesDialog
from quicknote.scheduler import QtScheduler

APP_NAME = "QuickNote"
APP_VERSION = "1.0.0"


@dataclass
class QuickNoteApp(QObject):
    data_dir: Path = field(default_factory=app_logger.data_dir)
    autostart: AutostartManager = field(default_factory=AutostartManager)

    def __post_init__(self) -> None:
        super().__init__()
        self._logger = app_logger.get_logger()
        self.data_dir = Path(self.data_dir)
        self._preferences_store = PreferencesStore(self.data_dir)
        self._note_store = NoteStore(self.data_dir)
        self._preferences: Preferences = self._preferences_store.read()
        self._manual_shutdown_requested = False
        self._preferences_dialog: Optional[PreferencesDialog] = None

        self._scheduler = QtScheduler(self)
        self._writer = DebouncedWriter(self._scheduler)
        self._panel = NotePanel()
        self._tracker = ActivityTracker(self._scheduler)
        self._fader = FadeSequencer(self._panel, self._scheduler)
        self._coordinator = VisibilityCoordinator(
            self._preferences,
            scheduler=self._scheduler,
            tracker=self._tracker,
            fader=self._fader,
            writer=self._writer,
            focus_editor=self._panel.focus_editor,
            save_geometry=self._save_geometry,
        )
        self._watcher = PreferencesWatcher(self._preferences_store, self._preferences)
        self._hot_corner = HotCornerWatcher(
            self._scheduler,
            self._preferences.hotcorner_corner,
            self._preferences.hotcorner_size,
            self._preferences.hotcorner_enabled,
        )
        self._shortcut = GlobalShortcut()

        self._panel.shown.connect(self._coordinator.on_window_shown)
        self._panel.hidden.connect(self._coordinator.on_window_hidden)
        self._panel.pointerEntered.connect(self._coordinator.on_pointer_entered)
        self._panel.pointerLeft.connect(self._coordinator.on_pointer_left)
        self._panel.contentPressed.connect(self._coordinator.on_content_pressed)
        self._panel.focusLost.connect(self._coordinator.on_focus_lost)
        self._panel.closeRequested.connect(self._coordinator.on_close_requested)
        self._panel.contentChanged.connect(self._on_content_changed)
        self._panel.geometryChanged.connect(self._on_geometry_changed)
        self._hot_corner.triggered.connect(self._on_hot_corner)
        self._shortcut.activated.connect(self.toggle_note_deliberately)
        self._watcher.changed.connect(self._on_preferences_changed)

        self._tray = QSystemTrayIcon(self)
        self._tray.setIcon(QApplication.style().standardIcon(QStyle.StandardPixmap.SP_FileDialogContentsView))
        self._tray.setToolTip(f"{APP_NAME} v{APP_VERSION}")

        menu = QMenu()
        toggle_action = QAction("Toggle Note", menu)
        preferences_action = QAction("Preferences...", menu)
        exit_action = QAction("Quit", menu)
        menu.addAction(toggle_action)
        menu.addAction(preferences_action)
        menu.addSeparator()
        menu.addAction(exit_action)
        self._tray.setContextMenu(menu)
        self._tray_menu = menu

        toggle_action.triggered.connect(self.toggle_note_deliberately)
        preferences_action.triggered.connect(self.open_preferences)
        exit_action.triggered.connect(self.shutdown)

    @property
    def coordinator(self) -> VisibilityCoordinator:
        return self._coordinator

    @property
    def preferences(self) -> Preferences:
        return self._preferences

    @property
    def manual_shutdown_requested(self) -> bool:
        return self._manual_shutdown_requested

    def start(self) -> None:
        self._logger.info("Starting {} with data in {}", APP_NAME, self.data_dir)
        try:
            self._panel.set_content(self._note_store.read())
        except OSError as exc:
            self._logger.error("Failed to load note: {}", exc)
        self._panel.apply_text_size(self._preferences.text_size)
        self._panel.apply_geometry(self._preferences)

        if QSystemTrayIcon.isSystemTrayAvailable():
            self._tray.show()
        else:
            self._logger.warning("System tray unavailable; use the hot corner or shortcut to open the note.")

        self._watcher.start()
        self._hot_corner.start()
        self._shortcut.apply(self._preferences.shortcut_enabled, self._preferences.keyboard_shortcut)
        if self._preferences.launch_on_startup and not self.autostart.is_enabled():
            self.autostart.apply(True)
        if self._preferences.show_on_launch:
            self.show_note()

    def shutdown(self) -> None:
        self._logger.info("Shutting down {} on user request.", APP_NAME)
        self._manual_shutdown_requested = True
        self._hot_corner.stop()
        self._watcher.stop()
        self._shortcut.unregister()
        if self._panel.isVisible():
            # The hide path flushes window geometry.
            self._coordinator.on_close_requested()
        self._coordinator.shutdown()
        self._writer.flush_all()
        self._tray.hide()
        QApplication.instance().quit()

    def show_note(self) -> None:
        if self._panel.isVisible():
            return
        self._panel.apply_geometry(self._preferences)
        self._panel.show()
        self._panel.raise_()

    def show_note_deliberately(self) -> None:
        """Open the note the way a keyboard shortcut does: locked and focused."""
        self.show_note()
        self._coordinator.on_shortcut()

    def toggle_note_deliberately(self) -> None:
        """Hide a visible note; otherwise open it locked and focused."""
        if self._panel.isVisible():
            self._coordinator.on_close_requested()
            return
        self.show_note_deliberately()

    def open_preferences(self) -> None:
        if self._preferences_dialog is not None:
            self._preferences_dialog.raise_()
            self._preferences_dialog.activateWindow()
            return
        self._preferences_dialog = PreferencesDialog(self._preferences)
        try:
            if self._preferences_dialog.exec() == QDialog.DialogCode.Accepted:
                self.save_preferences(self._preferences_dialog.preferences())
        finally:
            self._preferences_dialog.deleteLater()
            self._preferences_dialog = None

    def save_preferences(self, preferences: Preferences) -> bool:
        """Persist edited preferences and apply them right away."""
        try:
            self._preferences_store.write(preferences)
        except OSError as exc:
            self._logger.error("Failed to save preferences: {}", exc)
            return False
        self._watcher.apply(preferences)
        return True

    def _on_hot_corner(self) -> None:
        self.show_note()
        self._coordinator.on_hot_corner()

    def _on_content_changed(self, html: str) -> None:
        self._writer.schedule(NOTE_TARGET, lambda: self._note_store.write(html), NOTE_SAVE_DELAY_MS)

    def _on_geometry_changed(self) -> None:
        self._writer.schedule(GEOMETRY_TARGET, self._save_geometry, GEOMETRY_SAVE_DELAY_MS)

    def _save_geometry(self) -> None:
        x, y, width, height = self._panel.current_geometry()
        self._preferences_store.update_geometry(x, y, width, height)
        self._preferences = self._watcher.sync_geometry(x, y, width, height)

    def _on_preferences_changed(self, preferences: Preferences) -> None:
        previous, self._preferences = self._preferences, preferences
        self._panel.apply_text_size(preferences.text_size)
        self._hot_corner.update_config(
            preferences.hotcorner_corner,
            preferences.hotcorner_size,
            preferences.hotcorner_enabled,
        )
        self._shortcut.apply(preferences.shortcut_enabled, preferences.keyboard_shortcut)
        if previous.launch_on_startup != preferences.launch_on_startup:
            self.autostart.apply(preferences.launch_on_startup)
        self._coordinator.on_preferences_changed(preferences)
