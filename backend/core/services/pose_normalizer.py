"""
Pose Normalizer Service

Maps a raw landmark set into a translation- and scale-invariant frame:
the hip midpoint moves to the origin and the torso (hip midpoint to
shoulder midpoint) becomes length 1.
"""

from typing import Optional

import numpy as np

from ..domain.pose import (
    BodyPart,
    MissingLandmarkError,
    NormalizedPose,
    Pose,
    PoseLandmark,
    get_landmark,
)


class PoseNormalizer:
    """
    Normalizes poses for position- and size-independent comparison.

    All methods are static - no state needed.

    Usage:
        normalized = PoseNormalizer.normalize(landmarks)
        normalized.scale   # torso length in the source frame
    """

    @staticmethod
    def normalize(pose: Optional[Pose]) -> NormalizedPose:
        """
        Re-express a pose relative to its hips, scaled by torso length.

        Args:
            pose: Landmarks in BodyPart order (None entries allowed)

        Returns:
            NormalizedPose with the same length and ordering

        Raises:
            MissingLandmarkError: if the pose is None or empty

        Partially missing poses still normalize: a single visible hip is
        the center, no hips means the origin is the center, and no
        shoulders (or a zero-length torso) means no scaling.
        """
        if not pose:
            raise MissingLandmarkError("Cannot normalize an empty pose")

        center = PoseNormalizer._midpoint(
            get_landmark(pose, BodyPart.LEFT_HIP),
            get_landmark(pose, BodyPart.RIGHT_HIP),
        )
        if center is None:
            center = np.zeros(2)

        shoulder_mid = PoseNormalizer._midpoint(
            get_landmark(pose, BodyPart.LEFT_SHOULDER),
            get_landmark(pose, BodyPart.RIGHT_SHOULDER),
        )
        scale = 1.0
        if shoulder_mid is not None:
            torso_length = float(np.linalg.norm(shoulder_mid - center))
            if torso_length > 0:
                scale = torso_length

        cx, cy = float(center[0]), float(center[1])
        landmarks = tuple(
            None if lm is None else PoseLandmark(
                x=(lm.x - cx) / scale,
                y=(lm.y - cy) / scale,
                z=(lm.z or 0.0) / scale,
                visibility=lm.visibility,
            )
            for lm in pose
        )

        return NormalizedPose(landmarks=landmarks, center=(cx, cy), scale=scale)

    @staticmethod
    def _midpoint(
        p1: Optional[PoseLandmark],
        p2: Optional[PoseLandmark],
    ) -> Optional[np.ndarray]:
        """Midpoint of the landmarks that exist, or None if neither does."""
        points = [np.array([p.x, p.y]) for p in (p1, p2) if p is not None]
        if not points:
            return None
        return np.mean(points, axis=0)
