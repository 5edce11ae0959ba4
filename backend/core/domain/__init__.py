"""
Domain Models

Pure data structures representing pose challenge concepts.
No external dependencies - just Python dataclasses and enums.
"""

from .pose import (
    BodyPart,
    PoseLandmark,
    NormalizedPose,
    JointTriplet,
    DEFAULT_JOINT_TRIPLETS,
    POSE_LANDMARK_COUNT,
    PoseError,
    MissingLandmarkError,
)
from .challenge import (
    HoldPhase,
    NotificationKind,
    PoseSequenceEntry,
    ChallengeState,
    ProgressState,
    Notification,
    ChallengeSnapshot,
    default_sequence,
)

__all__ = [
    "BodyPart",
    "PoseLandmark",
    "NormalizedPose",
    "JointTriplet",
    "DEFAULT_JOINT_TRIPLETS",
    "POSE_LANDMARK_COUNT",
    "PoseError",
    "MissingLandmarkError",
    "HoldPhase",
    "NotificationKind",
    "PoseSequenceEntry",
    "ChallengeState",
    "ProgressState",
    "Notification",
    "ChallengeSnapshot",
    "default_sequence",
]
