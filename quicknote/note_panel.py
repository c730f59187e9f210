"""
Frameless always-on-top note window with a rich-text editor.
"""

from __future__ import annotations

from typing import Iterable, Tuple

from PySide6.QtCore import QEvent, QObject, QPoint, QPropertyAnimation, QRect, Qt, Signal
from PySide6.QtGui import QColor, QGuiApplication, QKeySequence, QShortcut
from PySide6.QtWidgets import (
    QApplication,
    QGraphicsDropShadowEffect,
    QHBoxLayout,
    QLabel,
    QSizeGrip,
    QStyle,
    QTextEdit,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from quicknote import logger as app_logger
from quicknote.fade import RESTING_OPACITY
from quicknote.preferences import Preferences

_LOGGER = app_logger.get_logger()

DEFAULT_SIZE = (320, 360)
SCREEN_MARGIN = 20


def origin_on_screen(origin: QPoint, screens: Iterable[QRect]) -> bool:
    """Whether a saved window origin still lies on one of the connected screens."""
    return any(screen.contains(origin) for screen in screens)


class NotePanel(QWidget):
    pointerEntered = Signal()
    pointerLeft = Signal()
    contentPressed = Signal(bool)
    focusLost = Signal()
    closeRequested = Signal()
    shown = Signal()
    hidden = Signal()
    contentChanged = Signal(str)
    geometryChanged = Signal()

    def __init__(self, parent: QWidget | None = None) -> None:
        flags = Qt.WindowType.Tool | Qt.WindowType.FramelessWindowHint | Qt.WindowType.WindowStaysOnTopHint
        super().__init__(parent)
        self.setWindowFlags(flags)
        self.setObjectName("NotePanel")
        self.setAttribute(Qt.WidgetAttribute.WA_TranslucentBackground, True)
        self.setWindowOpacity(RESTING_OPACITY)
        self.resize(*DEFAULT_SIZE)

        self._container = QWidget(self)
        self._container.setObjectName("NoteCard")
        shadow = QGraphicsDropShadowEffect(self._container)
        shadow.setBlurRadius(24)
        shadow.setColor(QColor(0, 0, 0, 140))
        shadow.setOffset(0, 10)
        self._container.setGraphicsEffect(shadow)

        self._drag_handle = QLabel("QuickNote")
        self._drag_handle.setObjectName("DragRegion")
        self._drag_handle.setCursor(Qt.CursorShape.OpenHandCursor)

        self._close_button = QToolButton()
        self._close_button.setObjectName("CloseButton")
        self._close_button.setToolTip("Hide note")
        self._close_button.setAutoRaise(True)
        self._close_button.setCursor(Qt.CursorShape.PointingHandCursor)
        self._close_button.setIcon(self.style().standardIcon(QStyle.StandardPixmap.SP_TitleBarCloseButton))

        header = QHBoxLayout()
        header.setContentsMargins(0, 0, 0, 0)
        header.addWidget(self._drag_handle, 1)
        header.addWidget(self._close_button)

        self._editor = QTextEdit()
        self._editor.setObjectName("NoteEditor")
        self._editor.setAcceptRichText(True)
        self._editor.setFrameShape(QTextEdit.Shape.NoFrame)

        grip_row = QHBoxLayout()
        grip_row.setContentsMargins(0, 0, 0, 0)
        grip_row.addStretch()
        grip_row.addWidget(QSizeGrip(self._container))

        layout = QVBoxLayout(self._container)
        layout.setContentsMargins(12, 8, 12, 4)
        layout.setSpacing(6)
        layout.addLayout(header)
        layout.addWidget(self._editor, 1)
        layout.addLayout(grip_row)

        base_layout = QHBoxLayout(self)
        base_layout.setContentsMargins(SCREEN_MARGIN // 2, SCREEN_MARGIN // 2, SCREEN_MARGIN // 2, SCREEN_MARGIN // 2)
        base_layout.addWidget(self._container)

        self.setStyleSheet(
            """
            QWidget#NoteCard {
                background-color: rgba(255, 244, 170, 0.97);
                border-radius: 12px;
                border: 1px solid rgba(0, 0, 0, 0.10);
            }
            QLabel#DragRegion {
                color: rgba(0, 0, 0, 0.55);
                font-weight: bold;
                padding: 2px 0;
            }
            QTextEdit#NoteEditor {
                background: transparent;
                color: #1f2937;
            }
            """
        )

        self._fade_animation = QPropertyAnimation(self, b"windowOpacity", self)

        self._escape_shortcut = QShortcut(QKeySequence(Qt.Key.Key_Escape), self)
        self._escape_shortcut.setContext(Qt.ShortcutContext.WindowShortcut)
        self._escape_shortcut.activated.connect(self.closeRequested)  # type: ignore[arg-type]
        self._close_button.clicked.connect(self.closeRequested)  # type: ignore[arg-type]
        self._editor.textChanged.connect(self._emit_content_changed)  # type: ignore[arg-type]

        for widget in [self, *self.findChildren(QWidget)]:
            widget.installEventFilter(self)
        self._editor.viewport().installEventFilter(self)

    # Content

    def set_content(self, html: str) -> None:
        """Load a note without announcing it as an edit."""
        self._editor.blockSignals(True)
        try:
            self._editor.setHtml(html)
        finally:
            self._editor.blockSignals(False)

    def content(self) -> str:
        return self._editor.toHtml()

    def apply_text_size(self, size: int) -> None:
        font = self._editor.font()
        font.setPixelSize(int(size))
        self._editor.setFont(font)

    def focus_editor(self) -> None:
        self.raise_()
        self.activateWindow()
        self._editor.setFocus(Qt.FocusReason.OtherFocusReason)

    # Geometry

    def apply_geometry(self, preferences: Preferences) -> None:
        if preferences.has_geometry:
            saved = QRect(
                int(preferences.window_x),
                int(preferences.window_y),
                int(preferences.window_width),
                int(preferences.window_height),
            )
            screens = [screen.geometry() for screen in QGuiApplication.screens()]
            if origin_on_screen(saved.topLeft(), screens):
                self.setGeometry(saved)
                return
            _LOGGER.info("Saved note position {},{} is off-screen; repositioning.", saved.x(), saved.y())
            self.resize(saved.size())
        self._position_top_right()

    def current_geometry(self) -> Tuple[int, int, int, int]:
        geometry = self.geometry()
        return geometry.x(), geometry.y(), geometry.width(), geometry.height()

    def _position_top_right(self) -> None:
        screen = QApplication.primaryScreen()
        if screen is None:
            return
        available = screen.availableGeometry()
        x = available.right() - self.width() - SCREEN_MARGIN
        y = available.top() + SCREEN_MARGIN
        self.move(QPoint(x, y))

    # Fade surface

    def animate_opacity(self, target: float, duration_ms: int) -> None:
        self._fade_animation.stop()
        self._fade_animation.setDuration(max(0, int(duration_ms)))
        self._fade_animation.setStartValue(self.windowOpacity())
        self._fade_animation.setEndValue(float(target))
        self._fade_animation.start()

    def stop_animation(self) -> None:
        self._fade_animation.stop()

    def set_opacity(self, value: float) -> None:
        self.setWindowOpacity(float(value))

    def hide_window(self) -> None:
        self.hide()

    # Qt events

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:  # noqa: N802
        if event.type() == QEvent.Type.MouseButtonPress:
            if watched is self._drag_handle:
                self.contentPressed.emit(True)
                self._start_drag()
                return True
            self.contentPressed.emit(False)
        return super().eventFilter(watched, event)

    def enterEvent(self, event) -> None:  # noqa: N802
        super().enterEvent(event)
        self.pointerEntered.emit()

    def leaveEvent(self, event: QEvent) -> None:  # noqa: N802
        super().leaveEvent(event)
        self.pointerLeft.emit()

    def changeEvent(self, event: QEvent) -> None:  # noqa: N802
        super().changeEvent(event)
        if event.type() == QEvent.Type.ActivationChange and self.isVisible() and not self.isActiveWindow():
            self.focusLost.emit()

    def showEvent(self, event) -> None:  # noqa: N802
        super().showEvent(event)
        if not event.spontaneous():
            self.shown.emit()

    def hideEvent(self, event) -> None:  # noqa: N802
        super().hideEvent(event)
        if not event.spontaneous():
            self.hidden.emit()

    def moveEvent(self, event) -> None:  # noqa: N802
        super().moveEvent(event)
        if self.isVisible():
            self.geometryChanged.emit()

    def resizeEvent(self, event) -> None:  # noqa: N802
        super().resizeEvent(event)
        if self.isVisible():
            self.geometryChanged.emit()

    def _start_drag(self) -> None:
        handle = self.windowHandle()
        if handle is not None:
            handle.startSystemMove()

    def _emit_content_changed(self) -> None:
        self.contentChanged.emit(self._editor.toHtml())
