"""
Challenge Domain Models

Data structures for the "hold the pose" challenge: the pose sequence,
per-pose hold state, cross-pose progress and the read-only snapshot
handed to the presentation layer.

All state objects are frozen. Transitions build new values with
dataclasses.replace instead of mutating shared state.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class HoldPhase(Enum):
    """
    Hold timer states.

    - IDLE: Pose not matched, nothing accumulating
    - HOLDING: Pose matched, hold time accumulating
    - COMPLETE: Target reached, frozen until re-armed
    """
    IDLE = "idle"
    HOLDING = "holding"
    COMPLETE = "complete"


class NotificationKind(Enum):
    """Banners the presentation layer shows after a milestone."""
    POSE_COMPLETE = "pose_complete"
    LEVEL_COMPLETE = "level_complete"


@dataclass(frozen=True)
class PoseSequenceEntry:
    """
    One target pose in the challenge sequence.

    Attributes:
        id: Stable identifier
        name: Display name
        image_reference: Path or URL of the reference image
        completed: Whether the pose was held to target in this level
        points: Base points awarded on completion
        difficulty_multiplier: Scales points, grows every level
    """
    id: int
    name: str
    image_reference: str
    completed: bool = False
    points: int = 100
    difficulty_multiplier: float = 1.0


@dataclass(frozen=True)
class ChallengeState:
    """
    Transient per-pose hold state.

    ``pose_index`` is the pose this state was armed for. A completion
    always reports it, never whatever pose happens to be active later.
    """
    target_time: float
    pose_index: int = 0
    hold_time: float = 0.0
    phase: HoldPhase = HoldPhase.IDLE

    @property
    def timer_active(self) -> bool:
        return self.phase == HoldPhase.HOLDING

    @property
    def challenge_complete(self) -> bool:
        return self.phase == HoldPhase.COMPLETE


@dataclass(frozen=True)
class ProgressState:
    """Cross-pose, cross-level progress."""
    sequence: tuple[PoseSequenceEntry, ...]
    level: int = 1
    score: int = 0
    current_pose_index: int = 0

    @property
    def current_pose(self) -> PoseSequenceEntry:
        return self.sequence[self.current_pose_index]

    @property
    def is_last_pose(self) -> bool:
        return self.current_pose_index >= len(self.sequence) - 1


@dataclass(frozen=True)
class Notification:
    """A completion banner with an absolute expiry time (monotonic seconds)."""
    kind: NotificationKind
    message: str
    level: int
    expires_at: float
    points: Optional[int] = None

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class ChallengeSnapshot:
    """
    Read-only view of the whole challenge.

    This is the only object the presentation layer receives; it is
    built from immutable state so it is always fully transitioned.
    """
    level: int
    score: int
    current_pose_index: int
    sequence: tuple[PoseSequenceEntry, ...]
    hold_time: float
    target_time: float
    phase: HoldPhase
    is_pose_matched: bool = False
    similarity: Optional[float] = None
    notification: Optional[Notification] = None

    @property
    def challenge_complete(self) -> bool:
        return self.phase == HoldPhase.COMPLETE

    @property
    def timer_active(self) -> bool:
        return self.phase == HoldPhase.HOLDING

    @property
    def current_pose(self) -> PoseSequenceEntry:
        return self.sequence[self.current_pose_index]

    @property
    def progress(self) -> float:
        """Fraction of the target time held so far (0.0 to 1.0)."""
        if self.target_time <= 0:
            return 0.0
        return min(self.hold_time / self.target_time, 1.0)


def default_sequence() -> tuple[PoseSequenceEntry, ...]:
    """The four-pose yoga sequence used when none is configured."""
    return (
        PoseSequenceEntry(id=1, name="Tree Pose", image_reference="/tree-pose.jpg",
                          points=100, difficulty_multiplier=1.0),
        PoseSequenceEntry(id=2, name="Warrior Pose II", image_reference="/warrior-pose.jpg",
                          points=150, difficulty_multiplier=1.2),
        PoseSequenceEntry(id=3, name="Downward Dog", image_reference="/downward-dog.jpg",
                          points=200, difficulty_multiplier=1.5),
        PoseSequenceEntry(id=4, name="Upward Dog", image_reference="/upward-dog.jpg",
                          points=250, difficulty_multiplier=1.8),
    )
