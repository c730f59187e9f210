"""
Visibility state machine for the note window.

``transition`` is a pure function from (signals, event, preferences) to the
next signals plus the side effects the coordinator has to carry out. Keeping
it free of Qt and timers lets every path be exercised directly.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import List, Tuple

from quicknote.preferences import Preferences


class VisibilityState(Enum):
    HIDDEN = auto()
    VISIBLE_IDLE_TRACKING = auto()
    # Visible with idle tracking suppressed: locked, pointer over the window,
    # auto-hide disabled, or still inside the post-show grace period.
    VISIBLE_LOCKED = auto()
    FADING = auto()


class VisibilityEvent(Enum):
    SHOWN = auto()
    GRACE_ELAPSED = auto()
    HIDDEN_EXTERNALLY = auto()
    CONTENT_PRESSED = auto()
    SHORTCUT = auto()
    HOT_CORNER = auto()
    POINTER_ENTERED = auto()
    POINTER_LEFT = auto()
    IDLE_TIMEOUT = auto()
    FOCUS_LOST = auto()
    CLOSE_REQUESTED = auto()
    FADE_FINISHED = auto()
    HIDE_FAILED = auto()
    PREFERENCES_CHANGED = auto()


class Effect(Enum):
    START_IDLE = auto()
    STOP_IDLE = auto()
    BEGIN_FADE = auto()
    HIDE_INSTANT = auto()
    SCHEDULE_GRACE = auto()
    SCHEDULE_FOCUS = auto()
    FOCUS_EDITOR = auto()
    FLUSH_GEOMETRY = auto()


VISIBLE_STATES = frozenset({VisibilityState.VISIBLE_IDLE_TRACKING, VisibilityState.VISIBLE_LOCKED})


@dataclass(frozen=True)
class VisibilitySignals:
    state: VisibilityState = VisibilityState.HIDDEN
    locked: bool = False
    pointer_over: bool = False

    @property
    def visible(self) -> bool:
        return self.state is not VisibilityState.HIDDEN


@dataclass(frozen=True)
class Transition:
    signals: VisibilitySignals
    effects: Tuple[Effect, ...] = ()


def idle_tracking_allowed(signals: VisibilitySignals, prefs: Preferences) -> bool:
    """Whether the idle timer may run for a visible, non-fading window."""
    return (
        prefs.auto_hide_enabled
        and not prefs.auto_focus
        and not signals.locked
        and not signals.pointer_over
    )


def _settle(signals: VisibilitySignals, prefs: Preferences, effects: List[Effect]) -> Transition:
    if idle_tracking_allowed(signals, prefs):
        effects.append(Effect.START_IDLE)
        return Transition(replace(signals, state=VisibilityState.VISIBLE_IDLE_TRACKING), tuple(effects))
    effects.append(Effect.STOP_IDLE)
    return Transition(replace(signals, state=VisibilityState.VISIBLE_LOCKED), tuple(effects))


def _hide_now(signals: VisibilitySignals) -> Transition:
    return Transition(
        replace(signals, state=VisibilityState.HIDDEN, locked=False),
        (Effect.STOP_IDLE, Effect.HIDE_INSTANT, Effect.FLUSH_GEOMETRY),
    )


def _lock(signals: VisibilitySignals, extra: Tuple[Effect, ...] = ()) -> Transition:
    state = signals.state
    if state in VISIBLE_STATES:
        state = VisibilityState.VISIBLE_LOCKED
    return Transition(replace(signals, state=state, locked=True), (Effect.STOP_IDLE,) + extra)


def transition(signals: VisibilitySignals, event: VisibilityEvent, prefs: Preferences) -> Transition:
    state = signals.state
    unchanged = Transition(signals)

    if event is VisibilityEvent.SHOWN:
        if state is not VisibilityState.HIDDEN:
            return unchanged
        focus: Tuple[Effect, ...] = (Effect.FOCUS_EDITOR,) if prefs.auto_focus else ()
        if signals.locked:
            return Transition(replace(signals, state=VisibilityState.VISIBLE_LOCKED), (Effect.STOP_IDLE,) + focus)
        # Hold off idle tracking briefly so a pointer-enter racing the show is seen first.
        return Transition(
            replace(signals, state=VisibilityState.VISIBLE_LOCKED, pointer_over=False),
            (Effect.STOP_IDLE, Effect.SCHEDULE_GRACE) + focus,
        )

    if event is VisibilityEvent.GRACE_ELAPSED:
        if state not in VISIBLE_STATES or signals.locked or signals.pointer_over:
            return unchanged
        return _settle(signals, prefs, [])

    if event is VisibilityEvent.HIDDEN_EXTERNALLY:
        # While fading, the fade's own hide call lands here; its completion settles the state.
        if state in (VisibilityState.HIDDEN, VisibilityState.FADING):
            return unchanged
        return Transition(
            replace(signals, state=VisibilityState.HIDDEN),
            (Effect.STOP_IDLE, Effect.FLUSH_GEOMETRY),
        )

    if event is VisibilityEvent.CONTENT_PRESSED:
        return _lock(signals)

    if event is VisibilityEvent.SHORTCUT:
        return _lock(signals, (Effect.SCHEDULE_FOCUS,))

    if event is VisibilityEvent.HOT_CORNER:
        if signals.locked or state not in VISIBLE_STATES:
            return unchanged
        return _settle(signals, prefs, [])

    if event is VisibilityEvent.POINTER_ENTERED:
        if state is VisibilityState.VISIBLE_IDLE_TRACKING:
            state = VisibilityState.VISIBLE_LOCKED
        effects = (Effect.STOP_IDLE,) if state is not VisibilityState.HIDDEN else ()
        return Transition(replace(signals, state=state, pointer_over=True), effects)

    if event is VisibilityEvent.POINTER_LEFT:
        left = replace(signals, pointer_over=False)
        if signals.locked or state not in VISIBLE_STATES:
            return Transition(left)
        return _settle(left, prefs, [])

    if event is VisibilityEvent.IDLE_TIMEOUT:
        if (
            state is not VisibilityState.VISIBLE_IDLE_TRACKING
            or signals.locked
            or signals.pointer_over
        ):
            return unchanged
        return Transition(
            replace(signals, state=VisibilityState.FADING),
            (Effect.STOP_IDLE, Effect.BEGIN_FADE),
        )

    if event is VisibilityEvent.FOCUS_LOST:
        if not prefs.hide_on_blur or state is VisibilityState.HIDDEN:
            return unchanged
        return _hide_now(signals)

    if event is VisibilityEvent.CLOSE_REQUESTED:
        if state is VisibilityState.HIDDEN:
            return Transition(replace(signals, locked=False))
        return _hide_now(signals)

    if event is VisibilityEvent.FADE_FINISHED:
        if state is not VisibilityState.FADING:
            return unchanged
        return Transition(replace(signals, state=VisibilityState.HIDDEN), (Effect.FLUSH_GEOMETRY,))

    if event is VisibilityEvent.HIDE_FAILED:
        # The window is still on screen; fall back to a visible state so later events retry.
        if state in VISIBLE_STATES:
            return unchanged
        return _settle(replace(signals, state=VisibilityState.VISIBLE_LOCKED), prefs, [])

    if event is VisibilityEvent.PREFERENCES_CHANGED:
        if state not in VISIBLE_STATES:
            return unchanged
        return _settle(signals, prefs, [])

    raise ValueError(f"Unhandled visibility event: {event!r}")
