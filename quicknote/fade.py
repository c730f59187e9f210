"""
Timed opacity transition that precedes hiding the note window.
"""

from __future__ import annotations

from typing import Callable, Optional, Protocol

from quicknote import logger as app_logger
from quicknote.scheduler import ScheduledTask, Scheduler

_LOGGER = app_logger.get_logger()

RESTING_OPACITY = 1.0


class FadeSurface(Protocol):
    def animate_opacity(self, target: float, duration_ms: int) -> None: ...

    def stop_animation(self) -> None: ...

    def set_opacity(self, value: float) -> None: ...

    def hide_window(self) -> None: ...


class FadeSequencer:
    """
    Fades the surface out and hides it, or hides it at once.

    Only one fade runs at a time. An instant hide preempts a running fade:
    the pending completion is cancelled so the window is hidden exactly once.
    """

    def __init__(self, surface: FadeSurface, scheduler: Scheduler) -> None:
        self._surface = surface
        self._scheduler = scheduler
        self._completion: Optional[ScheduledTask] = None
        self._on_finished: Optional[Callable[[bool], None]] = None
        self._fading = False
        self._hiding = False

    @property
    def fading(self) -> bool:
        return self._fading

    def fade_out_then_hide(self, duration_ms: int, on_finished: Optional[Callable[[bool], None]] = None) -> bool:
        """Start a fade. Returns False if one is already running."""
        if self._fading:
            return False
        self._fading = True
        self._on_finished = on_finished
        self._surface.animate_opacity(0.0, int(duration_ms))
        self._completion = self._scheduler.call_later(int(duration_ms), self._complete)
        return True

    def hide_instant(self) -> bool:
        """Hide without animating. Returns False if the hide call failed."""
        if self._hiding:
            # Re-entered from the window reacting to a hide already underway.
            return True
        if self._fading:
            _LOGGER.debug("Instant hide preempting an in-flight fade.")
            self._cancel_fade()
        self._surface.stop_animation()
        self._surface.set_opacity(RESTING_OPACITY)
        return self._hide()

    def _complete(self) -> None:
        if not self._fading:
            return
        self._completion = None
        hidden = self._hide()
        self._surface.stop_animation()
        self._surface.set_opacity(RESTING_OPACITY)
        self._fading = False
        callback, self._on_finished = self._on_finished, None
        if callback is not None:
            callback(hidden)

    def _cancel_fade(self) -> None:
        if self._completion is not None:
            self._completion.cancel()
            self._completion = None
        self._on_finished = None
        self._fading = False

    def _hide(self) -> bool:
        self._hiding = True
        try:
            self._surface.hide_window()
            return True
        except Exception as exc:  # noqa: BLE001
            _LOGGER.error("Failed to hide note window: {}", exc)
            return False
        finally:
            self._hiding = False
