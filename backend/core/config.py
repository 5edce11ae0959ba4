"""
Challenge Configuration
=======================

Tunable constants for matching, timing and scoring.

Every value has a fixed default and can be overridden either in code
(``ChallengeConfig(match_threshold=0.75)``) or from the environment
(``POSE_CHALLENGE_MATCH_THRESHOLD=0.75``) via ``ChallengeConfig.from_env()``.
"""

import logging
import os
from dataclasses import dataclass, fields
from typing import Mapping, Optional

from .domain.pose import DEFAULT_JOINT_TRIPLETS, JointTriplet

logger = logging.getLogger(__name__)

ENV_PREFIX = "POSE_CHALLENGE_"


@dataclass(frozen=True)
class ChallengeConfig:
    """
    Attributes:
        match_threshold: Similarity above which a frame counts as matched
        angle_tolerance: Average angle deviation (degrees) at which similarity hits 0
        tick_interval: Hold timer cadence in seconds
        level_growth_factor: Difficulty multiplier growth per completed level
        notification_duration: Seconds a completion banner stays visible
        baseline_hold_seconds: Hold duration worth exactly the base points
        default_target_time: Initial hold target in seconds
        allowed_target_times: Hold targets the user may select
        debounce_frames: Consecutive evaluations needed to flip the match signal
        joint_triplets: Joint angles compared between poses
    """
    match_threshold: float = 0.8
    angle_tolerance: float = 45.0
    tick_interval: float = 0.1
    level_growth_factor: float = 1.2
    notification_duration: float = 3.0
    baseline_hold_seconds: float = 5.0
    default_target_time: float = 5.0
    allowed_target_times: tuple[float, ...] = (3, 5, 10, 15, 30)
    debounce_frames: int = 3
    joint_triplets: tuple[JointTriplet, ...] = DEFAULT_JOINT_TRIPLETS

    def __post_init__(self):
        if not 0.0 <= self.match_threshold <= 1.0:
            raise ValueError(f"match_threshold must be in [0, 1], got {self.match_threshold}")
        if self.angle_tolerance <= 0:
            raise ValueError(f"angle_tolerance must be positive, got {self.angle_tolerance}")
        if self.tick_interval <= 0:
            raise ValueError(f"tick_interval must be positive, got {self.tick_interval}")
        if self.level_growth_factor <= 0:
            raise ValueError(f"level_growth_factor must be positive, got {self.level_growth_factor}")
        if self.notification_duration < 0:
            raise ValueError(f"notification_duration must be >= 0, got {self.notification_duration}")
        if self.baseline_hold_seconds <= 0:
            raise ValueError(f"baseline_hold_seconds must be positive, got {self.baseline_hold_seconds}")
        if self.debounce_frames < 1:
            raise ValueError(f"debounce_frames must be >= 1, got {self.debounce_frames}")
        if not self.joint_triplets:
            raise ValueError("joint_triplets must not be empty")
        if not self.is_allowed_target_time(self.default_target_time):
            raise ValueError(
                f"default_target_time {self.default_target_time} not in {self.allowed_target_times}"
            )

    def is_allowed_target_time(self, seconds: float) -> bool:
        if seconds <= 0:
            return False
        # An empty allowed set means any positive target is accepted
        if not self.allowed_target_times:
            return True
        return any(abs(seconds - allowed) < 1e-9 for allowed in self.allowed_target_times)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ChallengeConfig":
        """
        Build a config from POSE_CHALLENGE_* variables.

        Scalar fields only; the joint triplet set is code configuration.
        ``allowed_target_times`` is a comma-separated list.
        """
        environ = os.environ if environ is None else environ
        overrides = {}

        for f in fields(cls):
            if f.name == "joint_triplets":
                continue
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            if f.name == "allowed_target_times":
                overrides[f.name] = tuple(float(v) for v in raw.split(",") if v.strip())
            elif f.name == "debounce_frames":
                overrides[f.name] = int(raw)
            else:
                overrides[f.name] = float(raw)
            logger.info(f"Config override from environment: {f.name}={raw}")

        return cls(**overrides)
