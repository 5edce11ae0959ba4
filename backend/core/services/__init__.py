"""
Services Layer

Business logic for the pose challenge: pose comparison, match
detection, the hold timer and challenge progression.
"""

from .pose_normalizer import PoseNormalizer
from .pose_comparator import JointAngleComparator, PoseComparison, JointComparison
from .match_detector import MatchDetector, is_match
from .hold_timer import HoldTimer, HoldTick
from .challenge_sequencer import ChallengeSequencer, InvalidTargetTimeError
from .challenge_session import ChallengeSession

__all__ = [
    "PoseNormalizer",
    "JointAngleComparator",
    "PoseComparison",
    "JointComparison",
    "MatchDetector",
    "is_match",
    "HoldTimer",
    "HoldTick",
    "ChallengeSequencer",
    "InvalidTargetTimeError",
    "ChallengeSession",
]
