"""
Dialog for editing QuickNote preferences.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QLabel,
    QLineEdit,
    QMessageBox,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)

from quicknote.global_shortcut import to_hotkey
from quicknote.preferences import Corner, Preferences

_CORNER_LABELS = {
    Corner.TOP_LEFT: "Top left",
    Corner.TOP_RIGHT: "Top right",
    Corner.BOTTOM_LEFT: "Bottom left",
    Corner.BOTTOM_RIGHT: "Bottom right",
}


class PreferencesDialog(QDialog):
    """Edits every preference except the saved window bounds, which are kept as they are."""

    def __init__(self, preferences: Preferences, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("QuickNote Preferences")
        self.setModal(True)
        self._base = preferences
        self._build_ui()
        self.load(preferences)

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setSpacing(10)

        form = QFormLayout()
        self._show_on_launch = QCheckBox("Show note when QuickNote starts")
        self._launch_on_startup = QCheckBox("Start QuickNote at login")
        form.addRow("General:", self._show_on_launch)
        form.addRow("", self._launch_on_startup)

        self._hotcorner_enabled = QCheckBox("Open from a screen corner")
        self._hotcorner_corner = QComboBox()
        for corner, label in _CORNER_LABELS.items():
            self._hotcorner_corner.addItem(label, corner.value)
        self._hotcorner_size = QSpinBox()
        self._hotcorner_size.setRange(1, 100)
        self._hotcorner_size.setSuffix(" px")
        form.addRow("Hot corner:", self._hotcorner_enabled)
        form.addRow("Corner:", self._hotcorner_corner)
        form.addRow("Corner size:", self._hotcorner_size)

        self._shortcut_enabled = QCheckBox("Toggle with a keyboard shortcut")
        self._keyboard_shortcut = QLineEdit()
        self._keyboard_shortcut.setPlaceholderText("Alt+CommandOrControl+N")
        form.addRow("Shortcut:", self._shortcut_enabled)
        form.addRow("Keys:", self._keyboard_shortcut)

        self._auto_focus = QCheckBox("Focus the editor when the note opens")
        self._hide_on_blur = QCheckBox("Hide when another window is activated")
        self._auto_hide_enabled = QCheckBox("Hide after a period without input")
        self._auto_hide_delay = QSpinBox()
        self._auto_hide_delay.setRange(250, 300000)
        self._auto_hide_delay.setSingleStep(250)
        self._auto_hide_delay.setSuffix(" ms")
        self._fade_duration = QSpinBox()
        self._fade_duration.setRange(0, 2000)
        self._fade_duration.setSingleStep(50)
        self._fade_duration.setSuffix(" ms")
        form.addRow("Behaviour:", self._auto_focus)
        form.addRow("", self._hide_on_blur)
        form.addRow("", self._auto_hide_enabled)
        form.addRow("Auto-hide delay:", self._auto_hide_delay)
        form.addRow("Fade duration:", self._fade_duration)

        self._text_size = QSpinBox()
        self._text_size.setRange(8, 32)
        self._text_size.setSuffix(" px")
        form.addRow("Text size:", self._text_size)
        layout.addLayout(form)

        note = QLabel("Auto-hide only applies when the editor is not focused on open.")
        note.setWordWrap(True)
        layout.addWidget(note)

        self._button_box = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Save | QDialogButtonBox.StandardButton.Cancel
        )
        self._button_box.accepted.connect(self._on_accept)
        self._button_box.rejected.connect(self.reject)
        layout.addWidget(self._button_box)

        self._hotcorner_enabled.toggled.connect(self._sync_enabled_state)
        self._shortcut_enabled.toggled.connect(self._sync_enabled_state)
        self._auto_hide_enabled.toggled.connect(self._sync_enabled_state)

    def load(self, preferences: Preferences) -> None:
        self._base = preferences
        self._show_on_launch.setChecked(preferences.show_on_launch)
        self._launch_on_startup.setChecked(preferences.launch_on_startup)
        self._hotcorner_enabled.setChecked(preferences.hotcorner_enabled)
        self._hotcorner_corner.setCurrentIndex(self._hotcorner_corner.findData(preferences.hotcorner_corner.value))
        self._hotcorner_size.setValue(preferences.hotcorner_size)
        self._shortcut_enabled.setChecked(preferences.shortcut_enabled)
        self._keyboard_shortcut.setText(preferences.keyboard_shortcut)
        self._auto_focus.setChecked(preferences.auto_focus)
        self._hide_on_blur.setChecked(preferences.hide_on_blur)
        self._auto_hide_enabled.setChecked(preferences.auto_hide_enabled)
        self._auto_hide_delay.setValue(preferences.auto_hide_delay_ms)
        self._fade_duration.setValue(preferences.fade_duration_ms)
        self._text_size.setValue(preferences.text_size)
        self._sync_enabled_state()

    def preferences(self) -> Preferences:
        """The edited values on top of the preferences the dialog was opened with."""
        return replace(
            self._base,
            show_on_launch=self._show_on_launch.isChecked(),
            launch_on_startup=self._launch_on_startup.isChecked(),
            hotcorner_enabled=self._hotcorner_enabled.isChecked(),
            hotcorner_corner=Corner(self._hotcorner_corner.currentData()),
            hotcorner_size=self._hotcorner_size.value(),
            shortcut_enabled=self._shortcut_enabled.isChecked(),
            keyboard_shortcut=self._keyboard_shortcut.text().strip() or self._base.keyboard_shortcut,
            auto_focus=self._auto_focus.isChecked(),
            hide_on_blur=self._hide_on_blur.isChecked(),
            auto_hide_enabled=self._auto_hide_enabled.isChecked(),
            auto_hide_delay_ms=self._auto_hide_delay.value(),
            fade_duration_ms=self._fade_duration.value(),
            text_size=self._text_size.value(),
        )

    def validation_error(self) -> Optional[str]:
        if not self._shortcut_enabled.isChecked():
            return None
        try:
            to_hotkey(self._keyboard_shortcut.text())
        except ValueError as exc:
            return str(exc)
        return None

    def _on_accept(self) -> None:
        error = self.validation_error()
        if error is not None:
            QMessageBox.warning(self, "Invalid Shortcut", error)
            return
        self.accept()

    def _sync_enabled_state(self) -> None:
        self._hotcorner_corner.setEnabled(self._hotcorner_enabled.isChecked())
        self._hotcorner_size.setEnabled(self._hotcorner_enabled.isChecked())
        self._keyboard_shortcut.setEnabled(self._shortcut_enabled.isChecked())
        self._auto_hide_delay.setEnabled(self._auto_hide_enabled.isChecked())
