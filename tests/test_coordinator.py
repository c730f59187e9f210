import random
import unittest

from quicknote.activity_tracker import ActivityTracker
from quicknote.coordinator import SHORTCUT_FOCUS_DELAY_MS, VISIBILITY_GRACE_MS, VisibilityCoordinator
from quicknote.debounce import DebouncedWriter
from quicknote.fade import RESTING_OPACITY, FadeSequencer
from quicknote.preferences import Preferences
from quicknote.visibility import VisibilityState
from tests.support import FakeScheduler, FakeSurface

AUTO_HIDE = Preferences(
    auto_hide_enabled=True,
    auto_hide_delay_ms=1000,
    auto_focus=False,
    hide_on_blur=True,
    fade_duration_ms=200,
)


class CoordinatorHarness:
    def __init__(self, preferences: Preferences = AUTO_HIDE) -> None:
        self.scheduler = FakeScheduler()
        self.surface = FakeSurface()
        self.surface.visible = False
        self.tracker = ActivityTracker(self.scheduler)
        self.fader = FadeSequencer(self.surface, self.scheduler)
        self.writer = DebouncedWriter(self.scheduler)
        self.focus_calls = []
        self.geometry_saves = []
        self.coordinator = VisibilityCoordinator(
            preferences,
            scheduler=self.scheduler,
            tracker=self.tracker,
            fader=self.fader,
            writer=self.writer,
            focus_editor=lambda: self.focus_calls.append(self.scheduler.now),
            save_geometry=lambda: self.geometry_saves.append(self.scheduler.now),
        )
        self.surface.on_hide = self.coordinator.on_window_hidden

    def show(self) -> None:
        self.surface.show()
        self.coordinator.on_window_shown()

    def show_and_settle(self) -> None:
        self.show()
        self.scheduler.advance(VISIBILITY_GRACE_MS)


class CoordinatorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.h = CoordinatorHarness()
        self.coordinator = self.h.coordinator

    def test_idle_window_fades_out_and_hides(self) -> None:
        self.h.show()
        self.assertFalse(self.h.tracker.running)
        self.h.scheduler.advance(VISIBILITY_GRACE_MS)
        self.assertEqual(self.coordinator.state, VisibilityState.VISIBLE_IDLE_TRACKING)
        self.assertTrue(self.h.tracker.running)

        self.h.scheduler.advance(1000)
        self.assertEqual(self.coordinator.state, VisibilityState.FADING)
        self.assertTrue(self.h.fader.fading)
        self.assertFalse(self.h.tracker.running)
        self.assertEqual(self.h.surface.hide_calls, 0)

        self.h.scheduler.advance(200)
        self.assertEqual(self.coordinator.state, VisibilityState.HIDDEN)
        self.assertEqual(self.h.surface.hide_calls, 1)
        self.assertEqual(self.h.surface.opacity, RESTING_OPACITY)
        self.assertEqual(len(self.h.geometry_saves), 1)

    def test_click_inside_locks_window_open(self) -> None:
        self.h.show_and_settle()
        self.coordinator.on_content_pressed()
        self.assertTrue(self.coordinator.locked)
        self.assertFalse(self.h.tracker.running)
        self.h.scheduler.advance(60_000)
        self.assertEqual(self.h.surface.hide_calls, 0)
        self.assertEqual(self.coordinator.state, VisibilityState.VISIBLE_LOCKED)

    def test_press_on_drag_handle_does_not_lock(self) -> None:
        self.h.show_and_settle()
        self.coordinator.on_content_pressed(in_drag_region=True)
        self.assertFalse(self.coordinator.locked)
        self.assertTrue(self.h.tracker.running)

    def test_hot_corner_resets_idle_clock_without_locking(self) -> None:
        self.h.show_and_settle()
        self.h.scheduler.advance(900)
        self.coordinator.on_hot_corner()
        self.assertFalse(self.coordinator.locked)
        self.h.scheduler.advance(900)
        self.assertEqual(self.coordinator.state, VisibilityState.VISIBLE_IDLE_TRACKING)
        self.assertEqual(self.h.surface.hide_calls, 0)
        self.h.scheduler.advance(100)
        self.assertEqual(self.coordinator.state, VisibilityState.FADING)

    def test_hot_corner_while_locked_changes_nothing(self) -> None:
        self.h.show_and_settle()
        self.coordinator.on_content_pressed()
        self.coordinator.on_hot_corner()
        self.assertTrue(self.coordinator.locked)
        self.assertFalse(self.h.tracker.running)

    def test_blur_hides_instantly_and_clears_lock(self) -> None:
        self.h.show_and_settle()
        self.coordinator.on_content_pressed()
        self.coordinator.on_focus_lost()
        self.assertEqual(self.coordinator.state, VisibilityState.HIDDEN)
        self.assertFalse(self.coordinator.locked)
        self.assertEqual(self.h.surface.hide_calls, 1)
        self.assertEqual(self.h.surface.animations, [])
        self.assertEqual(len(self.h.geometry_saves), 1)

    def test_blur_during_fade_hides_once(self) -> None:
        self.h.show_and_settle()
        self.h.scheduler.advance(1000)
        self.assertEqual(self.coordinator.state, VisibilityState.FADING)
        self.coordinator.on_focus_lost()
        self.assertEqual(self.coordinator.state, VisibilityState.HIDDEN)
        self.assertFalse(self.h.fader.fading)
        self.h.scheduler.advance(1000)
        self.assertEqual(self.h.surface.hide_calls, 1)
        self.assertEqual(self.h.surface.opacity, RESTING_OPACITY)

    def test_close_request_hides_locked_window(self) -> None:
        self.h.show_and_settle()
        self.coordinator.on_shortcut()
        self.coordinator.on_close_requested()
        self.assertEqual(self.coordinator.state, VisibilityState.HIDDEN)
        self.assertFalse(self.coordinator.locked)
        self.assertEqual(self.h.surface.hide_calls, 1)

    def test_shortcut_locks_and_focuses_editor_shortly_after(self) -> None:
        self.h.show()
        self.coordinator.on_shortcut()
        self.assertTrue(self.coordinator.locked)
        self.assertEqual(self.h.focus_calls, [])
        self.h.scheduler.advance(SHORTCUT_FOCUS_DELAY_MS)
        self.assertEqual(self.h.focus_calls, [SHORTCUT_FOCUS_DELAY_MS])
        self.h.scheduler.advance(60_000)
        self.assertEqual(self.h.surface.hide_calls, 0)

    def test_auto_focus_show_focuses_immediately_and_never_auto_hides(self) -> None:
        h = CoordinatorHarness(Preferences(auto_hide_enabled=True, auto_focus=True, auto_hide_delay_ms=1000))
        h.show()
        self.assertEqual(h.focus_calls, [0])
        h.scheduler.advance(60_000)
        self.assertFalse(h.tracker.running)
        self.assertEqual(h.surface.hide_calls, 0)

    def test_pointer_presence_suspends_idle_countdown(self) -> None:
        self.h.show_and_settle()
        self.coordinator.on_pointer_entered()
        self.assertFalse(self.h.tracker.running)
        self.h.scheduler.advance(10_000)
        self.assertEqual(self.coordinator.state, VisibilityState.VISIBLE_LOCKED)
        self.coordinator.on_pointer_left()
        self.assertEqual(self.coordinator.state, VisibilityState.VISIBLE_IDLE_TRACKING)
        self.h.scheduler.advance(1000)
        self.assertEqual(self.coordinator.state, VisibilityState.FADING)

    def test_pointer_arriving_during_grace_prevents_tracking(self) -> None:
        self.h.show()
        self.coordinator.on_pointer_entered()
        self.h.scheduler.advance(VISIBILITY_GRACE_MS)
        self.assertFalse(self.h.tracker.running)

    def test_failed_hide_keeps_window_visible_for_retry(self) -> None:
        self.h.show_and_settle()
        self.h.surface.fail_next_hide = True
        self.coordinator.on_close_requested()
        self.assertEqual(self.coordinator.state, VisibilityState.VISIBLE_IDLE_TRACKING)
        self.assertTrue(self.h.tracker.running)
        self.coordinator.on_close_requested()
        self.assertEqual(self.coordinator.state, VisibilityState.HIDDEN)
        self.assertEqual(self.h.surface.hide_calls, 2)

    def test_failed_fade_hide_rearms_idle(self) -> None:
        self.h.show_and_settle()
        self.h.surface.fail_next_hide = True
        self.h.scheduler.advance(1200)
        self.assertEqual(self.coordinator.state, VisibilityState.VISIBLE_IDLE_TRACKING)
        self.assertEqual(self.h.surface.opacity, RESTING_OPACITY)
        self.h.scheduler.advance(1200)
        self.assertEqual(self.coordinator.state, VisibilityState.HIDDEN)

    def test_preferences_change_reapplies_policy_without_unlocking(self) -> None:
        self.h.show_and_settle()
        self.coordinator.on_preferences_changed(Preferences(auto_hide_enabled=False, auto_focus=False))
        self.assertFalse(self.h.tracker.running)
        self.assertEqual(self.coordinator.state, VisibilityState.VISIBLE_LOCKED)

        self.coordinator.on_content_pressed()
        self.coordinator.on_preferences_changed(AUTO_HIDE)
        self.assertTrue(self.coordinator.locked)
        self.assertFalse(self.h.tracker.running)

    def test_new_delay_applies_to_running_countdown(self) -> None:
        self.h.show_and_settle()
        longer = Preferences(auto_hide_enabled=True, auto_focus=False, auto_hide_delay_ms=3000)
        self.coordinator.on_preferences_changed(longer)
        self.h.scheduler.advance(2900)
        self.assertEqual(self.coordinator.state, VisibilityState.VISIBLE_IDLE_TRACKING)
        self.h.scheduler.advance(100)
        self.assertEqual(self.coordinator.state, VisibilityState.FADING)

    def test_repeated_show_hide_cycles_start_opaque(self) -> None:
        for cycle in range(3):
            self.h.show_and_settle()
            self.assertEqual(self.h.surface.opacity, RESTING_OPACITY)
            self.h.scheduler.advance(1200)
            self.assertEqual(self.coordinator.state, VisibilityState.HIDDEN)
            self.assertEqual(self.h.surface.hide_calls, cycle + 1)

    def test_external_hide_stops_tracking(self) -> None:
        self.h.show_and_settle()
        self.coordinator.on_window_hidden()
        self.assertEqual(self.coordinator.state, VisibilityState.HIDDEN)
        self.assertFalse(self.h.tracker.running)
        self.assertEqual(len(self.h.geometry_saves), 1)

    def test_state_changes_are_announced(self) -> None:
        states = []
        self.coordinator.stateChanged.connect(states.append)
        self.h.show_and_settle()
        self.h.scheduler.advance(1200)
        self.assertEqual(
            states,
            [
                VisibilityState.VISIBLE_LOCKED,
                VisibilityState.VISIBLE_IDLE_TRACKING,
                VisibilityState.FADING,
                VisibilityState.HIDDEN,
            ],
        )

    def test_idle_tracking_and_fading_never_overlap(self) -> None:
        rng = random.Random(7)
        actions = [
            self.coordinator.on_content_pressed,
            self.coordinator.on_shortcut,
            self.coordinator.on_hot_corner,
            self.coordinator.on_pointer_entered,
            self.coordinator.on_pointer_left,
            self.coordinator.on_focus_lost,
            self.coordinator.on_close_requested,
            lambda: self.coordinator.on_preferences_changed(AUTO_HIDE),
            lambda: self.h.scheduler.advance(rng.choice([10, 50, 100, 250, 1000])),
            lambda: self.h.scheduler.advance(rng.choice([10, 50, 100, 250, 1000])),
            lambda: self.h.scheduler.advance(rng.choice([10, 50, 100, 250, 1000])),
        ]
        for _ in range(2000):
            if not self.h.surface.visible and rng.random() < 0.3:
                self.h.show()
            rng.choice(actions)()
            self.assertFalse(self.h.tracker.running and self.h.fader.fading)
            self.assertEqual(self.h.fader.fading, self.coordinator.state is VisibilityState.FADING)
            if self.h.tracker.running:
                self.assertEqual(self.coordinator.state, VisibilityState.VISIBLE_IDLE_TRACKING)
            if not self.h.fader.fading:
                self.assertEqual(self.h.surface.opacity, RESTING_OPACITY)

    def test_shutdown_cancels_timers(self) -> None:
        self.h.show()
        self.coordinator.on_shortcut()
        self.coordinator.shutdown()
        self.h.scheduler.advance(1000)
        self.assertEqual(self.h.focus_calls, [])
        self.assertFalse(self.h.tracker.running)


if __name__ == "__main__":
    unittest.main()
