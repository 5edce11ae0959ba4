import unittest

from core.config import ChallengeConfig
from core.domain.challenge import HoldPhase, NotificationKind, PoseSequenceEntry
from core.services import ChallengeSequencer, InvalidTargetTimeError
from core.services.challenge_sequencer import round_half_up


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


class TestChallengeSequencer(unittest.TestCase):
    """Test cases for scoring, leveling and navigation"""

    def setUp(self):
        self.clock = FakeClock()
        self.sequencer = ChallengeSequencer(clock=self.clock)

    def _hold(self, ticks):
        snapshot = None
        for _ in range(ticks):
            snapshot = self.sequencer.tick(is_match=True)
        return snapshot

    def test_initial_snapshot(self):
        snapshot = self.sequencer.snapshot()

        self.assertEqual(snapshot.level, 1)
        self.assertEqual(snapshot.score, 0)
        self.assertEqual(snapshot.current_pose_index, 0)
        self.assertEqual(snapshot.target_time, 5.0)
        self.assertEqual(snapshot.phase, HoldPhase.IDLE)
        self.assertEqual([e.name for e in snapshot.sequence],
                         ["Tree Pose", "Warrior Pose II", "Downward Dog", "Upward Dog"])
        self.assertIsNone(snapshot.notification)

    def test_five_second_hold_scores_base_points(self):
        snapshot = self._hold(50)

        self.assertTrue(snapshot.challenge_complete)
        self.assertEqual(snapshot.score, 100)
        self.assertTrue(snapshot.sequence[0].completed)
        self.assertEqual(snapshot.notification.kind, NotificationKind.POSE_COMPLETE)
        self.assertEqual(snapshot.notification.message, "Challenge Complete! +100 Points")
        self.assertEqual(snapshot.notification.points, 100)

    def test_longer_target_scores_proportionally(self):
        self.sequencer.set_target_time(10)
        self.assertIsNone(self._hold(99).notification)

        snapshot = self._hold(1)

        self.assertEqual(snapshot.score, 200)

    def test_multiplier_applies(self):
        self.sequencer.go_to(1)
        snapshot = self._hold(50)

        # 150 * 1.2
        self.assertEqual(snapshot.score, 180)

    def test_completion_is_scored_once(self):
        self._hold(50)
        snapshot = self._hold(30)

        self.assertEqual(snapshot.score, 100)

    def test_advance_moves_to_next_pose_and_rearms(self):
        self._hold(50)

        snapshot = self.sequencer.advance()

        self.assertEqual(snapshot.current_pose_index, 1)
        self.assertEqual(snapshot.phase, HoldPhase.IDLE)
        self.assertEqual(snapshot.hold_time, 0.0)
        self.assertEqual(snapshot.score, 100)
        self.assertEqual(self.sequencer.challenge.pose_index, 1)

    def test_advance_past_last_pose_levels_up(self):
        self.sequencer.go_to(3)
        self._hold(50)

        snapshot = self.sequencer.advance()

        self.assertEqual(snapshot.level, 2)
        self.assertEqual(snapshot.current_pose_index, 0)
        self.assertTrue(all(not e.completed for e in snapshot.sequence))
        for before, after in zip([1.0, 1.2, 1.5, 1.8], snapshot.sequence):
            self.assertAlmostEqual(after.difficulty_multiplier, before * 1.2)
        self.assertEqual(snapshot.notification.kind, NotificationKind.LEVEL_COMPLETE)
        self.assertEqual(snapshot.notification.message, "Level 1 Complete! All poses mastered!")
        self.assertEqual(snapshot.notification.level, 1)

    def test_go_to_out_of_range_is_ignored(self):
        before = self.sequencer.snapshot()

        for index in (99, 4, -1):
            self.assertEqual(self.sequencer.go_to(index), before)

    def test_go_to_discards_hold(self):
        self._hold(20)

        snapshot = self.sequencer.go_to(2)

        self.assertEqual(snapshot.current_pose_index, 2)
        self.assertEqual(snapshot.phase, HoldPhase.IDLE)
        self.assertEqual(snapshot.hold_time, 0.0)

    def test_reset_clears_score_and_completion(self):
        self._hold(50)
        self.sequencer.advance()
        self.sequencer.set_target_time(3)

        snapshot = self.sequencer.reset()

        self.assertEqual(snapshot.score, 0)
        self.assertEqual(snapshot.current_pose_index, 1)
        self.assertTrue(all(not e.completed for e in snapshot.sequence))
        self.assertEqual(snapshot.phase, HoldPhase.IDLE)
        self.assertEqual(snapshot.target_time, 3.0)

    def test_invalid_target_time_raises(self):
        for seconds in (7, 0, -5):
            with self.assertRaises(InvalidTargetTimeError):
                self.sequencer.set_target_time(seconds)
        self.assertEqual(self.sequencer.challenge.target_time, 5.0)

    def test_target_time_change_discards_hold(self):
        self._hold(20)

        snapshot = self.sequencer.set_target_time(15)

        self.assertEqual(snapshot.target_time, 15.0)
        self.assertEqual(snapshot.hold_time, 0.0)
        self.assertEqual(snapshot.phase, HoldPhase.IDLE)

    def test_notification_expires(self):
        self._hold(50)
        self.clock.now += 2.9
        self.assertIsNotNone(self.sequencer.notification)

        self.clock.now += 0.2

        self.assertIsNone(self.sequencer.notification)
        self.assertIsNone(self.sequencer.snapshot().notification)

    def test_on_completion_rejects_out_of_range_index(self):
        for index in (-1, 4):
            with self.assertRaises(IndexError):
                self.sequencer.on_completion(index)

        snapshot = self.sequencer.snapshot()
        self.assertEqual(snapshot.score, 0)
        self.assertTrue(all(not e.completed for e in snapshot.sequence))
        self.assertIsNone(snapshot.notification)

    def test_stop_keeps_progress(self):
        self._hold(50)

        snapshot = self.sequencer.stop()

        self.assertEqual(snapshot.phase, HoldPhase.IDLE)
        self.assertEqual(snapshot.score, 100)

    def test_custom_sequence_and_empty_sequence(self):
        sequencer = ChallengeSequencer(
            sequence=[PoseSequenceEntry(id=7, name="Chair", image_reference="chair.png", points=50)],
            config=ChallengeConfig(default_target_time=3),
        )
        for _ in range(30):
            snapshot = sequencer.tick(True)
        self.assertEqual(snapshot.score, 30)

        with self.assertRaises(ValueError):
            ChallengeSequencer(sequence=[])


class TestRoundHalfUp(unittest.TestCase):

    def test_halves_round_up(self):
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(0.5), 1)
        self.assertEqual(round_half_up(2.4999), 2)
        self.assertEqual(round_half_up(180.0), 180)


if __name__ == "__main__":
    unittest.main()
