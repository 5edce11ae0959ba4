"""
Pose Domain Models

Data structures for representing human body pose landmarks
produced by the upstream pose estimator.

Poses follow MediaPipe's 33-landmark numbering:
https://developers.google.com/mediapipe/solutions/vision/pose_landmarker
"""
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Sequence


POSE_LANDMARK_COUNT = 33


class PoseError(ValueError):
    """Base class for pose geometry errors."""


class MissingLandmarkError(PoseError):
    """Raised when a pose is absent or has no landmarks at all."""


class BodyPart(IntEnum):
    """
    MediaPipe Pose landmark indices.

    Index stability matters: reference and live poses are compared
    landmark-by-landmark using these numbers.
    """
    # Face
    NOSE = 0
    LEFT_EYE_INNER = 1
    LEFT_EYE = 2
    LEFT_EYE_OUTER = 3
    RIGHT_EYE_INNER = 4
    RIGHT_EYE = 5
    RIGHT_EYE_OUTER = 6
    LEFT_EAR = 7
    RIGHT_EAR = 8
    MOUTH_LEFT = 9
    MOUTH_RIGHT = 10

    # Upper body
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16

    # Hands
    LEFT_PINKY = 17
    RIGHT_PINKY = 18
    LEFT_INDEX = 19
    RIGHT_INDEX = 20
    LEFT_THUMB = 21
    RIGHT_THUMB = 22

    # Lower body
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28

    # Feet
    LEFT_HEEL = 29
    RIGHT_HEEL = 30
    LEFT_FOOT_INDEX = 31
    RIGHT_FOOT_INDEX = 32


@dataclass(frozen=True)
class PoseLandmark:
    """
    A single body landmark.

    Attributes:
        x: Horizontal position (0.0 = left edge, 1.0 = right edge)
        y: Vertical position (0.0 = top edge, 1.0 = bottom edge)
        z: Relative depth as reported by the estimator (0.0 if absent)
        visibility: Confidence score (0.0 to 1.0)
    """
    x: float
    y: float
    z: float = 0.0
    visibility: float = 1.0

    def is_visible(self, threshold: float = 0.5) -> bool:
        """Check if landmark is visible above confidence threshold."""
        return self.visibility >= threshold


# A raw pose: landmarks in BodyPart order, None where the estimator gave nothing.
Pose = Sequence[Optional[PoseLandmark]]


def get_landmark(pose: Pose, body_part: int) -> Optional[PoseLandmark]:
    """Get a landmark by index, or None if the pose is too short or it is missing."""
    index = int(body_part)
    if 0 <= index < len(pose):
        return pose[index]
    return None


@dataclass(frozen=True)
class NormalizedPose:
    """
    A pose re-expressed in a hip-centered, torso-scaled frame.

    Attributes:
        landmarks: Landmarks in the canonical frame (None where missing)
        center: Hip midpoint in the source frame, (x, y)
        scale: Divisor applied to every coordinate (1.0 when degenerate)
    """
    landmarks: tuple[Optional[PoseLandmark], ...]
    center: tuple[float, float]
    scale: float

    def __len__(self) -> int:
        return len(self.landmarks)

    def __getitem__(self, index: int) -> Optional[PoseLandmark]:
        return self.landmarks[index]


@dataclass(frozen=True)
class JointTriplet:
    """
    Three landmark indices naming the angle measured at ``b``
    between rays b->a and b->c.
    """
    a: int
    b: int
    c: int
    name: str = ""


# Shoulders, elbows, hips and knees on both sides.
DEFAULT_JOINT_TRIPLETS: tuple[JointTriplet, ...] = (
    JointTriplet(BodyPart.LEFT_SHOULDER, BodyPart.LEFT_ELBOW, BodyPart.LEFT_WRIST, "left_elbow"),
    JointTriplet(BodyPart.RIGHT_SHOULDER, BodyPart.RIGHT_ELBOW, BodyPart.RIGHT_WRIST, "right_elbow"),
    JointTriplet(BodyPart.LEFT_ELBOW, BodyPart.LEFT_SHOULDER, BodyPart.LEFT_HIP, "left_shoulder"),
    JointTriplet(BodyPart.RIGHT_ELBOW, BodyPart.RIGHT_SHOULDER, BodyPart.RIGHT_HIP, "right_shoulder"),
    JointTriplet(BodyPart.LEFT_HIP, BodyPart.LEFT_KNEE, BodyPart.LEFT_ANKLE, "left_knee"),
    JointTriplet(BodyPart.RIGHT_HIP, BodyPart.RIGHT_KNEE, BodyPart.RIGHT_ANKLE, "right_knee"),
    JointTriplet(BodyPart.LEFT_KNEE, BodyPart.LEFT_HIP, BodyPart.LEFT_SHOULDER, "left_hip"),
    JointTriplet(BodyPart.RIGHT_KNEE, BodyPart.RIGHT_HIP, BodyPart.RIGHT_SHOULDER, "right_hip"),
)
