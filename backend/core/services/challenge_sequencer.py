"""
Challenge Sequencer Service

Owns the challenge progress (score, level, pose sequence) and the hold
state of the active pose. Every mutation goes through one of the named
commands below; each replaces the immutable state wholesale and
returns a fresh snapshot.
"""

import logging
import math
import time
from dataclasses import replace
from typing import Callable, Optional, Sequence

from ..config import ChallengeConfig
from ..domain.challenge import (
    ChallengeSnapshot,
    ChallengeState,
    Notification,
    NotificationKind,
    PoseSequenceEntry,
    ProgressState,
    default_sequence,
)
from .hold_timer import HoldTimer

logger = logging.getLogger(__name__)


class InvalidTargetTimeError(ValueError):
    """Raised when a hold target outside the allowed set is requested."""


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (2.5 -> 3, not 2)."""
    return int(math.floor(value + 0.5))


class ChallengeSequencer:
    """
    Drives progression through the pose sequence.

    Usage:
        sequencer = ChallengeSequencer()

        # Per timer tick, with the latest match signal
        snapshot = sequencer.tick(is_match=True)

        # User commands
        sequencer.set_target_time(10)
        sequencer.advance()
        sequencer.go_to(2)
        sequencer.reset()
    """

    def __init__(
        self,
        sequence: Optional[Sequence[PoseSequenceEntry]] = None,
        config: Optional[ChallengeConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            sequence: Target poses; defaults to the built-in yoga sequence
            config: Tuning constants; defaults to ChallengeConfig()
            clock: Monotonic time source for notification expiry
        """
        self.config = config or ChallengeConfig()
        entries = tuple(sequence) if sequence is not None else default_sequence()
        if not entries:
            raise ValueError("Pose sequence must contain at least one entry")

        self._clock = clock
        self._progress = ProgressState(sequence=entries)
        self._challenge = HoldTimer.arm(self.config.default_target_time, pose_index=0)
        self._notification: Optional[Notification] = None

    # -------------------------------------------------------------------------
    # State access
    # -------------------------------------------------------------------------

    @property
    def progress(self) -> ProgressState:
        return self._progress

    @property
    def challenge(self) -> ChallengeState:
        return self._challenge

    @property
    def notification(self) -> Optional[Notification]:
        """Current banner, or None once it has expired."""
        if self._notification is not None and self._notification.is_expired(self._clock()):
            self._notification = None
        return self._notification

    def snapshot(
        self,
        is_pose_matched: bool = False,
        similarity: Optional[float] = None,
    ) -> ChallengeSnapshot:
        """Read-only view for the presentation layer."""
        progress = self._progress
        challenge = self._challenge
        return ChallengeSnapshot(
            level=progress.level,
            score=progress.score,
            current_pose_index=progress.current_pose_index,
            sequence=progress.sequence,
            hold_time=challenge.hold_time,
            target_time=challenge.target_time,
            phase=challenge.phase,
            is_pose_matched=is_pose_matched,
            similarity=similarity,
            notification=self.notification,
        )

    # -------------------------------------------------------------------------
    # Hold timer
    # -------------------------------------------------------------------------

    def tick(self, is_match: bool) -> ChallengeSnapshot:
        """Advance the hold timer by one tick interval."""
        result = HoldTimer.tick(self._challenge, is_match, self.config.tick_interval)
        self._challenge = result.state
        if result.completed:
            self.on_completion(result.completed_pose_index)
        return self.snapshot(is_pose_matched=is_match)

    def stop(self) -> ChallengeSnapshot:
        """Disarm any in-progress hold without touching progress."""
        if self._challenge.timer_active:
            logger.info(f"Stopping hold on pose {self._challenge.pose_index}")
        self._rearm()
        return self.snapshot()

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def on_completion(self, pose_index: int) -> ChallengeSnapshot:
        """
        Score a completed hold.

        Points = points * difficulty_multiplier * (target_time / baseline),
        so longer holds are worth proportionally more.

        Raises:
            IndexError: if pose_index is outside the sequence
        """
        sequence = list(self._progress.sequence)
        if not 0 <= pose_index < len(sequence):
            raise IndexError(f"No pose at index {pose_index}")
        entry = sequence[pose_index]
        points_earned = round_half_up(
            entry.points
            * entry.difficulty_multiplier
            * (self._challenge.target_time / self.config.baseline_hold_seconds)
        )

        sequence[pose_index] = replace(entry, completed=True)
        self._progress = replace(
            self._progress,
            sequence=tuple(sequence),
            score=self._progress.score + points_earned,
        )

        logger.info(f"Pose '{entry.name}' complete: +{points_earned} points "
                    f"(score {self._progress.score})")
        self._notify(
            NotificationKind.POSE_COMPLETE,
            f"Challenge Complete! +{points_earned} Points",
            points=points_earned,
        )
        return self.snapshot()

    def advance(self) -> ChallengeSnapshot:
        """
        Move to the next pose, or level up after the last one.

        Leveling up clears every completed flag, grows every difficulty
        multiplier and starts the sequence over.
        """
        progress = self._progress

        if not progress.is_last_pose:
            self._progress = replace(progress, current_pose_index=progress.current_pose_index + 1)
            self._rearm()
            return self.snapshot()

        growth = self.config.level_growth_factor
        self._progress = replace(
            progress,
            level=progress.level + 1,
            current_pose_index=0,
            sequence=tuple(
                replace(entry, completed=False,
                        difficulty_multiplier=entry.difficulty_multiplier * growth)
                for entry in progress.sequence
            ),
        )
        self._rearm()

        logger.info(f"Level {progress.level} complete, starting level {self._progress.level}")
        self._notify(
            NotificationKind.LEVEL_COMPLETE,
            f"Level {progress.level} Complete! All poses mastered!",
            level=progress.level,
        )
        return self.snapshot()

    def go_to(self, index: int) -> ChallengeSnapshot:
        """Jump to a pose. Out-of-range indices are ignored."""
        if not 0 <= index < len(self._progress.sequence):
            logger.debug(f"Ignoring go_to({index}): sequence has {len(self._progress.sequence)} poses")
            return self.snapshot()

        self._progress = replace(self._progress, current_pose_index=index)
        self._rearm()
        return self.snapshot()

    def reset(self) -> ChallengeSnapshot:
        """Full restart: score to zero, completed flags cleared, hold disarmed."""
        self._progress = replace(
            self._progress,
            score=0,
            sequence=tuple(replace(entry, completed=False) for entry in self._progress.sequence),
        )
        self._rearm()
        return self.snapshot()

    def set_target_time(self, seconds: float) -> ChallengeSnapshot:
        """
        Change the hold target. Any in-progress hold is discarded.

        Raises:
            InvalidTargetTimeError: if seconds is not an allowed target
        """
        if not self.config.is_allowed_target_time(seconds):
            raise InvalidTargetTimeError(
                f"Target time {seconds}s not in {self.config.allowed_target_times}"
            )

        self._challenge = HoldTimer.arm(float(seconds), self._progress.current_pose_index)
        return self.snapshot()

    # -------------------------------------------------------------------------
    # Private Helper Methods
    # -------------------------------------------------------------------------

    def _rearm(self) -> None:
        self._challenge = HoldTimer.arm(self._challenge.target_time, self._progress.current_pose_index)

    def _notify(
        self,
        kind: NotificationKind,
        message: str,
        points: Optional[int] = None,
        level: Optional[int] = None,
    ) -> None:
        self._notification = Notification(
            kind=kind,
            message=message,
            level=self._progress.level if level is None else level,
            expires_at=self._clock() + self.config.notification_duration,
            points=points,
        )
