"""
Joint Angle Comparator Service

Compares two poses by the angles at a fixed set of joints.
All angles are calculated in degrees (0-180), planar (x, y only).

This is pure mathematics - no external dependencies except numpy.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from ..domain.pose import (
    DEFAULT_JOINT_TRIPLETS,
    JointTriplet,
    NormalizedPose,
    Pose,
    PoseLandmark,
)
from .pose_normalizer import PoseNormalizer

DEFAULT_ANGLE_TOLERANCE = 45.0


@dataclass(frozen=True)
class JointComparison:
    """Angle at one joint in both poses."""
    triplet: JointTriplet
    angle_a: float
    angle_b: float

    @property
    def difference(self) -> float:
        return abs(self.angle_a - self.angle_b)


@dataclass(frozen=True)
class PoseComparison:
    """
    Result of comparing two poses.

    Attributes:
        similarity: 0.0 (no match) to 1.0 (angle-identical)
        average_difference: Mean absolute angle difference in degrees
        joints: Per-joint detail, in triplet order (empty if a pose was absent)
    """
    similarity: float
    average_difference: Optional[float]
    joints: tuple[JointComparison, ...] = ()


class JointAngleComparator:
    """
    Scores how closely two poses agree, joint angle by joint angle.

    Both poses are normalized first so position and body size do not
    matter. The triplet set and tolerance are configuration.

    Usage:
        comparator = JointAngleComparator()
        similarity = comparator.compare_angles(live_landmarks, reference_landmarks)
    """

    def __init__(
        self,
        joint_triplets: Sequence[JointTriplet] = DEFAULT_JOINT_TRIPLETS,
        angle_tolerance: float = DEFAULT_ANGLE_TOLERANCE,
    ):
        if not joint_triplets:
            raise ValueError("At least one joint triplet is required")
        if angle_tolerance <= 0:
            raise ValueError(f"angle_tolerance must be positive, got {angle_tolerance}")
        self.joint_triplets = tuple(joint_triplets)
        self.angle_tolerance = angle_tolerance

    # -------------------------------------------------------------------------
    # Core Angle Calculation
    # -------------------------------------------------------------------------

    @staticmethod
    def calculate_angle(
        p1: Optional[PoseLandmark],
        p2: Optional[PoseLandmark],  # Vertex point
        p3: Optional[PoseLandmark],
    ) -> float:
        """
        Calculate angle at p2 formed by p1-p2-p3.

        Returns:
            Angle in degrees (0-180). Degenerate geometry (a missing
            landmark or a zero-length ray) yields 0 so the aggregate
            stays well-defined.
        """
        if p1 is None or p2 is None or p3 is None:
            return 0.0

        # Vector from p2 to p1
        v1 = np.array([p1.x - p2.x, p1.y - p2.y])

        # Vector from p2 to p3
        v2 = np.array([p3.x - p2.x, p3.y - p2.y])

        norm_product = np.linalg.norm(v1) * np.linalg.norm(v2)
        if norm_product == 0:
            return 0.0

        # Clamp to valid range (handles floating point errors)
        cos_angle = np.clip(np.dot(v1, v2) / norm_product, -1.0, 1.0)

        return float(np.degrees(np.arccos(cos_angle)))

    def joint_angles(self, pose: NormalizedPose) -> list[float]:
        """Angles for every configured triplet, in order."""
        return [
            self.calculate_angle(
                self._landmark(pose, t.a),
                self._landmark(pose, t.b),
                self._landmark(pose, t.c),
            )
            for t in self.joint_triplets
        ]

    # -------------------------------------------------------------------------
    # Pose Comparison
    # -------------------------------------------------------------------------

    def compare(self, pose_a: Optional[Pose], pose_b: Optional[Pose]) -> PoseComparison:
        """
        Compare two raw poses with per-joint detail.

        Returns a similarity of 0 with no joint detail if either pose
        is absent or empty.
        """
        if not pose_a or not pose_b:
            return PoseComparison(similarity=0.0, average_difference=None)

        angles_a = self.joint_angles(PoseNormalizer.normalize(pose_a))
        angles_b = self.joint_angles(PoseNormalizer.normalize(pose_b))

        joints = tuple(
            JointComparison(triplet=t, angle_a=a, angle_b=b)
            for t, a, b in zip(self.joint_triplets, angles_a, angles_b)
        )
        avg_diff = float(np.mean([j.difference for j in joints]))
        similarity = max(0.0, 1.0 - avg_diff / self.angle_tolerance)

        return PoseComparison(
            similarity=similarity,
            average_difference=avg_diff,
            joints=joints,
        )

    def compare_angles(self, pose_a: Optional[Pose], pose_b: Optional[Pose]) -> float:
        """Similarity of two raw poses, 0.0 to 1.0."""
        return self.compare(pose_a, pose_b).similarity

    # -------------------------------------------------------------------------
    # Utility Methods
    # -------------------------------------------------------------------------

    @staticmethod
    def _landmark(pose: NormalizedPose, index: int) -> Optional[PoseLandmark]:
        if 0 <= index < len(pose):
            return pose[index]
        return None
