import unittest

from core.domain.challenge import HoldPhase
from core.services import HoldTimer, MatchDetector, is_match

TICK = 0.1


class TestMatchDetector(unittest.TestCase):
    """Test cases for the thresholded, debounced match signal"""

    def test_raw_match_is_strictly_greater(self):
        self.assertTrue(is_match(0.81, 0.8))
        self.assertFalse(is_match(0.8, 0.8))
        self.assertFalse(is_match(0.2, 0.75))

    def test_single_frame_debounce_follows_raw_signal(self):
        detector = MatchDetector(threshold=0.8, debounce_frames=1)
        self.assertTrue(detector.update(0.9))
        self.assertFalse(detector.update(0.79))
        self.assertTrue(detector.update(0.95))

    def test_requires_consecutive_frames_to_raise(self):
        detector = MatchDetector(threshold=0.8, debounce_frames=3)

        self.assertFalse(detector.update(0.9))
        self.assertFalse(detector.update(0.9))
        self.assertTrue(detector.update(0.9))

    def test_flicker_does_not_clear_signal(self):
        detector = MatchDetector(threshold=0.8, debounce_frames=3)
        for _ in range(3):
            detector.update(0.9)

        # Oscillating around the threshold never accumulates 3 misses in a row
        for similarity in [0.79, 0.81, 0.78, 0.82, 0.79, 0.79, 0.85]:
            self.assertTrue(detector.update(similarity))

        for _ in range(2):
            self.assertTrue(detector.update(0.5))
        self.assertFalse(detector.update(0.5))

    def test_reset_clears_signal(self):
        detector = MatchDetector(threshold=0.8, debounce_frames=1)
        detector.update(0.99)

        detector.reset()

        self.assertFalse(detector.matched)
        self.assertIsNone(detector.last_similarity)

    def test_rejects_zero_debounce(self):
        with self.assertRaises(ValueError):
            MatchDetector(debounce_frames=0)


class TestHoldTimer(unittest.TestCase):
    """Test cases for the IDLE / HOLDING / COMPLETE state machine"""

    def setUp(self):
        self.state = HoldTimer.arm(target_time=5.0, pose_index=2)

    def _run(self, state, matches):
        completions = []
        for matched in matches:
            result = HoldTimer.tick(state, matched, TICK)
            if result.completed:
                completions.append((result.completed_pose_index, result.state.hold_time))
            state = result.state
        return state, completions

    def test_starts_idle(self):
        self.assertEqual(self.state.phase, HoldPhase.IDLE)
        self.assertEqual(self.state.hold_time, 0.0)
        self.assertFalse(self.state.timer_active)
        self.assertFalse(self.state.challenge_complete)

    def test_first_match_enters_holding(self):
        state, _ = self._run(self.state, [True])

        self.assertEqual(state.phase, HoldPhase.HOLDING)
        self.assertAlmostEqual(state.hold_time, 0.1)
        self.assertTrue(state.timer_active)

    def test_completes_exactly_once_after_fifty_ticks(self):
        state, completions = self._run(self.state, [True] * 49)
        self.assertEqual(state.phase, HoldPhase.HOLDING)
        self.assertEqual(completions, [])
        self.assertLess(state.hold_time, 5.0)

        state, completions = self._run(state, [True])
        self.assertEqual(state.phase, HoldPhase.COMPLETE)
        self.assertEqual(len(completions), 1)
        pose_index, hold_time = completions[0]
        self.assertEqual(pose_index, 2)
        self.assertGreaterEqual(hold_time, 5.0)

    def test_complete_ignores_further_ticks(self):
        state, _ = self._run(self.state, [True] * 50)

        state, completions = self._run(state, [True] * 10 + [False] * 10)

        self.assertEqual(completions, [])
        self.assertEqual(state.phase, HoldPhase.COMPLETE)
        self.assertEqual(state.hold_time, 5.0)

    def test_losing_match_resets_to_idle(self):
        state, _ = self._run(self.state, [True] * 20)
        self.assertEqual(state.hold_time, 2.0)

        state, _ = self._run(state, [False])

        self.assertEqual(state.phase, HoldPhase.IDLE)
        self.assertEqual(state.hold_time, 0.0)

    def test_hold_restarts_from_zero(self):
        state, _ = self._run(self.state, [True] * 30 + [False] + [True] * 5)

        self.assertEqual(state.phase, HoldPhase.HOLDING)
        self.assertAlmostEqual(state.hold_time, 0.5)

    def test_unmatched_idle_stays_idle(self):
        result = HoldTimer.tick(self.state, False, TICK)
        self.assertIs(result.state, self.state)
        self.assertFalse(result.completed)

    def test_reset_rearms_complete_state(self):
        state, _ = self._run(self.state, [True] * 50)

        state = HoldTimer.reset(state)

        self.assertEqual(state.phase, HoldPhase.IDLE)
        self.assertEqual(state.hold_time, 0.0)
        self.assertEqual(state.target_time, 5.0)
        self.assertEqual(state.pose_index, 2)

    def test_transitions_do_not_mutate_input(self):
        HoldTimer.tick(self.state, True, TICK)
        self.assertEqual(self.state.phase, HoldPhase.IDLE)
        self.assertEqual(self.state.hold_time, 0.0)


if __name__ == "__main__":
    unittest.main()
