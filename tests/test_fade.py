import unittest

from quicknote.fade import RESTING_OPACITY, FadeSequencer
from tests.support import FakeScheduler, FakeSurface


class FadeSequencerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.scheduler = FakeScheduler()
        self.surface = FakeSurface()
        self.fader = FadeSequencer(self.surface, self.scheduler)
        self.finished = []

    def test_fade_animates_then_hides_and_restores_opacity(self) -> None:
        self.assertTrue(self.fader.fade_out_then_hide(200, self.finished.append))
        self.assertTrue(self.fader.fading)
        self.assertEqual(self.surface.animations, [(0.0, 200)])
        self.scheduler.advance(199)
        self.assertEqual(self.surface.hide_calls, 0)
        self.scheduler.advance(1)
        self.assertEqual(self.surface.hide_calls, 1)
        self.assertEqual(self.surface.opacity, RESTING_OPACITY)
        self.assertFalse(self.fader.fading)
        self.assertEqual(self.finished, [True])

    def test_second_fade_while_fading_is_ignored(self) -> None:
        self.fader.fade_out_then_hide(200)
        self.assertFalse(self.fader.fade_out_then_hide(200))
        self.scheduler.advance(1000)
        self.assertEqual(self.surface.hide_calls, 1)
        self.assertEqual(self.surface.opacity_restores, 1)

    def test_instant_hide_preempts_running_fade(self) -> None:
        self.fader.fade_out_then_hide(300, self.finished.append)
        self.scheduler.advance(100)
        self.assertTrue(self.fader.hide_instant())
        self.assertFalse(self.fader.fading)
        self.assertFalse(self.surface.animating)
        self.assertEqual(self.surface.opacity, RESTING_OPACITY)
        self.scheduler.advance(1000)
        self.assertEqual(self.surface.hide_calls, 1)
        self.assertEqual(self.finished, [])

    def test_instant_hide_skips_animation(self) -> None:
        self.fader.hide_instant()
        self.assertEqual(self.surface.animations, [])
        self.assertEqual(self.surface.hide_calls, 1)
        self.assertEqual(self.surface.opacity, RESTING_OPACITY)

    def test_failed_hide_still_resets_for_next_show(self) -> None:
        self.surface.fail_next_hide = True
        self.fader.fade_out_then_hide(100, self.finished.append)
        self.scheduler.advance(100)
        self.assertEqual(self.finished, [False])
        self.assertFalse(self.fader.fading)
        self.assertEqual(self.surface.opacity, RESTING_OPACITY)
        self.surface.fail_next_hide = True
        self.assertFalse(self.fader.hide_instant())

    def test_consecutive_cycles_never_leave_window_transparent(self) -> None:
        for _ in range(3):
            self.surface.show()
            self.assertEqual(self.surface.opacity, RESTING_OPACITY)
            self.fader.fade_out_then_hide(150)
            self.scheduler.advance(150)
        self.assertEqual(self.surface.hide_calls, 3)
        self.assertEqual(self.surface.opacity, RESTING_OPACITY)

    def test_reentrant_instant_hide_during_fade_hide_is_skipped(self) -> None:
        self.surface.on_hide = self.fader.hide_instant
        self.fader.fade_out_then_hide(100, self.finished.append)
        self.scheduler.advance(100)
        self.assertEqual(self.surface.hide_calls, 1)
        self.assertEqual(self.finished, [True])


if __name__ == "__main__":
    unittest.main()
