"""
Challenge Session Service

Glues the pipeline together for one user:

    live landmarks -> JointAngleComparator (vs. reference) -> MatchDetector
    timer tick     -> ChallengeSequencer.tick(latest match signal)

Two independent drivers feed a session: the per-frame detection path
and the fixed-period timer tick. Both, plus user commands, go through a
single FIFO queue that is drained synchronously, so every tick sees the
most recent detection result and no state is touched concurrently.
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Awaitable, Callable, Deque, Optional, Sequence, Union

from ..config import ChallengeConfig
from ..domain.challenge import ChallengeSnapshot, PoseSequenceEntry
from ..domain.pose import Pose
from .challenge_sequencer import ChallengeSequencer
from .match_detector import MatchDetector
from .pose_comparator import JointAngleComparator

logger = logging.getLogger(__name__)


# =============================================================================
# Queued events
# =============================================================================

@dataclass(frozen=True)
class FrameEvent:
    landmarks: Optional[tuple]


@dataclass(frozen=True)
class TickEvent:
    pass


@dataclass(frozen=True)
class TargetTimeCommand:
    seconds: float


@dataclass(frozen=True)
class ResetCommand:
    pass


@dataclass(frozen=True)
class AdvanceCommand:
    pass


@dataclass(frozen=True)
class GoToCommand:
    index: int


SessionEvent = Union[FrameEvent, TickEvent, TargetTimeCommand, ResetCommand, AdvanceCommand, GoToCommand]


# =============================================================================
# Session
# =============================================================================

class ChallengeSession:
    """
    One user's challenge: reference poses, match signal and progress.

    Usage:
        session = ChallengeSession()
        session.set_reference_pose(0, tree_pose_landmarks)

        session.submit_frame(live_landmarks)   # detection driver
        session.tick()                         # timer driver
        snapshot = session.snapshot()

        session.stop()                         # quiesce both drivers
    """

    def __init__(
        self,
        config: Optional[ChallengeConfig] = None,
        sequence: Optional[Sequence[PoseSequenceEntry]] = None,
        sequencer: Optional[ChallengeSequencer] = None,
    ):
        self.config = config or ChallengeConfig()
        self.sequencer = sequencer or ChallengeSequencer(sequence=sequence, config=self.config)
        self.comparator = JointAngleComparator(
            joint_triplets=self.config.joint_triplets,
            angle_tolerance=self.config.angle_tolerance,
        )
        self.matcher = MatchDetector(
            threshold=self.config.match_threshold,
            debounce_frames=self.config.debounce_frames,
        )
        self._references: dict[int, tuple] = {}
        self._queue: Deque[SessionEvent] = deque()
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    @property
    def is_pose_matched(self) -> bool:
        return self.matcher.matched

    def snapshot(self) -> ChallengeSnapshot:
        return self.sequencer.snapshot(
            is_pose_matched=self.matcher.matched,
            similarity=self.matcher.last_similarity,
        )

    # -------------------------------------------------------------------------
    # Reference poses
    # -------------------------------------------------------------------------

    def set_reference_pose(self, index: int, landmarks: Pose) -> None:
        """
        Store the landmarks detected once on a reference image.

        Raises:
            IndexError: if index is outside the sequence
            ValueError: if landmarks is empty
        """
        if not 0 <= index < len(self.sequencer.progress.sequence):
            raise IndexError(f"No pose at index {index}")
        if not landmarks:
            raise ValueError("Reference pose has no landmarks")
        self._references[index] = tuple(landmarks)
        logger.info(f"Reference pose stored for index {index} ({len(landmarks)} landmarks)")

        # Signal and hold were measured against the old reference
        if index == self.sequencer.progress.current_pose_index:
            self.matcher.reset()
            if self.sequencer.challenge.timer_active:
                self.sequencer.stop()

    def reference_pose(self, index: int) -> Optional[tuple]:
        return self._references.get(index)

    # -------------------------------------------------------------------------
    # Drivers and commands (queued, then processed)
    # -------------------------------------------------------------------------

    def submit_frame(self, landmarks: Optional[Pose]) -> ChallengeSnapshot:
        """Detection driver: one live frame (None/empty when no body was found)."""
        return self._submit(FrameEvent(tuple(landmarks) if landmarks else None))

    def tick(self) -> ChallengeSnapshot:
        """Timer driver: one fixed-period tick."""
        return self._submit(TickEvent())

    def select_target_time(self, seconds: float) -> ChallengeSnapshot:
        return self._submit(TargetTimeCommand(seconds))

    def reset_challenge(self) -> ChallengeSnapshot:
        return self._submit(ResetCommand())

    def advance_pose(self) -> ChallengeSnapshot:
        return self._submit(AdvanceCommand())

    def go_to_pose(self, index: int) -> ChallengeSnapshot:
        return self._submit(GoToCommand(index))

    def enqueue(self, event: SessionEvent) -> None:
        """Queue an event without processing it."""
        self._queue.append(event)

    def process(self) -> ChallengeSnapshot:
        """
        Drain the queue in arrival order.

        Errors from a command (e.g. an invalid target time) propagate
        after the remaining queue has been left intact for the caller.
        """
        while self._queue:
            self._apply(self._queue.popleft())
        return self.snapshot()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        self._active = True

    def stop(self) -> ChallengeSnapshot:
        """
        Quiesce both drivers. Safe to call more than once.

        Pending events are dropped, the match signal is cleared and the
        hold timer is disarmed so nothing is left HOLDING against a
        stale target. Score and level are kept.
        """
        if self._active:
            logger.info("Stopping challenge session")
        self._active = False
        self._queue.clear()
        self.matcher.reset()
        return self.sequencer.stop()

    async def run_ticker(
        self,
        on_tick: Optional[Callable[[ChallengeSnapshot], Awaitable[None]]] = None,
    ) -> None:
        """
        Tick every ``config.tick_interval`` seconds until stopped.

        ``on_tick`` is awaited only when a tick changed the hold state.
        """
        interval = self.config.tick_interval
        while self._active:
            await asyncio.sleep(interval)
            if not self._active:
                break
            before = self.sequencer.challenge
            snapshot = self.tick()
            if on_tick is not None and self.sequencer.challenge != before:
                await on_tick(snapshot)

    # -------------------------------------------------------------------------
    # Private Helper Methods
    # -------------------------------------------------------------------------

    def _submit(self, event: SessionEvent) -> ChallengeSnapshot:
        self.enqueue(event)
        return self.process()

    def _apply(self, event: SessionEvent) -> None:
        if isinstance(event, FrameEvent):
            self._on_frame(event.landmarks)
        elif isinstance(event, TickEvent):
            if self._active:
                self.sequencer.tick(self.matcher.matched)
        elif isinstance(event, TargetTimeCommand):
            self.sequencer.set_target_time(event.seconds)
        elif isinstance(event, ResetCommand):
            self.sequencer.reset()
        elif isinstance(event, AdvanceCommand):
            self._change_pose(self.sequencer.advance)
        elif isinstance(event, GoToCommand):
            self._change_pose(lambda: self.sequencer.go_to(event.index))
        else:
            raise TypeError(f"Unknown session event: {event!r}")

    def _on_frame(self, landmarks: Optional[tuple]) -> None:
        if not self._active:
            return
        if not landmarks:
            # No body this frame: keep the previous match signal
            logger.debug("No pose detected, keeping previous match state")
            return

        index = self.sequencer.progress.current_pose_index
        reference = self._references.get(index)
        if reference is None:
            logger.debug(f"No reference pose for index {index}")
        similarity = self.comparator.compare_angles(landmarks, reference)
        self.matcher.update(similarity)

    def _change_pose(self, command: Callable[[], ChallengeSnapshot]) -> None:
        before = self.sequencer.progress.current_pose_index
        level = self.sequencer.progress.level
        command()
        progress = self.sequencer.progress
        if progress.current_pose_index != before or progress.level != level:
            self.matcher.reset()
