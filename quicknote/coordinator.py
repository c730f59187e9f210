"""
Coordinator deciding when the note window is shown, fading, or hidden.
"""

from __future__ import annotations

from typing import Callable, Optional

from PySide6.QtCore import QObject, Signal

from quicknote import logger as app_logger
from quicknote.activity_tracker import ActivityTracker
from quicknote.debounce import GEOMETRY_TARGET, DebouncedWriter
from quicknote.fade import FadeSequencer
from quicknote.preferences import Preferences
from quicknote.scheduler import ScheduledTask, Scheduler
from quicknote.visibility import (
    Effect,
    VisibilityEvent,
    VisibilitySignals,
    VisibilityState,
    transition,
)

VISIBILITY_GRACE_MS = 50
SHORTCUT_FOCUS_DELAY_MS = 100


class VisibilityCoordinator(QObject):
    """
    Feeds window, pointer, trigger and timer events through the visibility
    state machine and carries out the resulting effects. All calls arrive on
    the Qt thread, in order; flags are only ever mutated here.
    """

    stateChanged = Signal(object)

    def __init__(
        self,
        preferences: Preferences,
        *,
        scheduler: Scheduler,
        tracker: ActivityTracker,
        fader: FadeSequencer,
        writer: DebouncedWriter,
        focus_editor: Optional[Callable[[], None]] = None,
        save_geometry: Optional[Callable[[], None]] = None,
    ) -> None:
        super().__init__()
        self._logger = app_logger.get_logger()
        self._preferences = preferences
        self._scheduler = scheduler
        self._tracker = tracker
        self._fader = fader
        self._writer = writer
        self._focus_editor = focus_editor
        self._save_geometry = save_geometry
        self._signals = VisibilitySignals()
        self._grace_task: Optional[ScheduledTask] = None
        self._focus_task: Optional[ScheduledTask] = None

    @property
    def signals(self) -> VisibilitySignals:
        return self._signals

    @property
    def state(self) -> VisibilityState:
        return self._signals.state

    @property
    def locked(self) -> bool:
        return self._signals.locked

    @property
    def pointer_over(self) -> bool:
        return self._signals.pointer_over

    @property
    def preferences(self) -> Preferences:
        return self._preferences

    def on_window_shown(self) -> None:
        self._dispatch(VisibilityEvent.SHOWN)

    def on_window_hidden(self) -> None:
        self._dispatch(VisibilityEvent.HIDDEN_EXTERNALLY)

    def on_content_pressed(self, in_drag_region: bool = False) -> None:
        # Pressing the drag handle moves the window; it is not an interaction with the note.
        if in_drag_region:
            return
        self._dispatch(VisibilityEvent.CONTENT_PRESSED)

    def on_shortcut(self) -> None:
        self._dispatch(VisibilityEvent.SHORTCUT)

    def on_hot_corner(self) -> None:
        self._dispatch(VisibilityEvent.HOT_CORNER)

    def on_pointer_entered(self) -> None:
        self._dispatch(VisibilityEvent.POINTER_ENTERED)

    def on_pointer_left(self) -> None:
        self._dispatch(VisibilityEvent.POINTER_LEFT)

    def on_focus_lost(self) -> None:
        self._dispatch(VisibilityEvent.FOCUS_LOST)

    def on_close_requested(self) -> None:
        self._dispatch(VisibilityEvent.CLOSE_REQUESTED)

    def on_preferences_changed(self, preferences: Preferences) -> None:
        self._preferences = preferences
        if self._tracker.running:
            self._tracker.update_delay(preferences.auto_hide_delay_ms)
        self._dispatch(VisibilityEvent.PREFERENCES_CHANGED)

    def shutdown(self) -> None:
        self._tracker.stop()
        self._cancel_task("_grace_task")
        self._cancel_task("_focus_task")

    def _on_idle(self) -> None:
        self._dispatch(VisibilityEvent.IDLE_TIMEOUT)

    def _on_fade_finished(self, hidden: bool) -> None:
        self._dispatch(VisibilityEvent.FADE_FINISHED if hidden else VisibilityEvent.HIDE_FAILED)

    def _on_grace_elapsed(self) -> None:
        self._grace_task = None
        self._dispatch(VisibilityEvent.GRACE_ELAPSED)

    def _dispatch(self, event: VisibilityEvent) -> None:
        previous = self._signals
        result = transition(previous, event, self._preferences)
        # Commit before running effects: hiding the window re-enters with its own events.
        self._signals = result.signals
        if result.signals != previous:
            self._logger.debug(
                "{}: {} -> {} (locked={}, pointer_over={})",
                event.name,
                previous.state.name,
                result.signals.state.name,
                result.signals.locked,
                result.signals.pointer_over,
            )
        for effect in result.effects:
            self._apply(effect)
        if self._signals.state is not previous.state:
            self.stateChanged.emit(self._signals.state)

    def _apply(self, effect: Effect) -> None:
        if effect is Effect.START_IDLE:
            self._tracker.start(self._preferences.auto_hide_delay_ms, self._on_idle)
        elif effect is Effect.STOP_IDLE:
            self._tracker.stop()
        elif effect is Effect.BEGIN_FADE:
            self._cancel_task("_grace_task")
            self._fader.fade_out_then_hide(self._preferences.fade_duration_ms, self._on_fade_finished)
        elif effect is Effect.HIDE_INSTANT:
            self._cancel_task("_grace_task")
            self._cancel_task("_focus_task")
            if not self._fader.hide_instant():
                self._dispatch(VisibilityEvent.HIDE_FAILED)
        elif effect is Effect.SCHEDULE_GRACE:
            self._cancel_task("_grace_task")
            self._grace_task = self._scheduler.call_later(VISIBILITY_GRACE_MS, self._on_grace_elapsed)
        elif effect is Effect.SCHEDULE_FOCUS:
            self._cancel_task("_focus_task")
            self._focus_task = self._scheduler.call_later(SHORTCUT_FOCUS_DELAY_MS, self._run_focus)
        elif effect is Effect.FOCUS_EDITOR:
            self._run_focus()
        elif effect is Effect.FLUSH_GEOMETRY:
            if self._save_geometry is not None:
                self._writer.flush_now(GEOMETRY_TARGET, self._save_geometry)

    def _run_focus(self) -> None:
        self._focus_task = None
        if self._focus_editor is None:
            return
        try:
            self._focus_editor()
        except RuntimeError as exc:
            self._logger.warning("Could not focus the editor: {}", exc)

    def _cancel_task(self, attribute: str) -> None:
        task = getattr(self, attribute)
        if task is not None:
            task.cancel()
            setattr(self, attribute, None)
