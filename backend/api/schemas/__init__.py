"""
API Schemas

Pydantic models for request/response validation.
"""

from .pose import (
    LandmarkSchema,
    PoseSchema,
    PoseCompareRequest,
    PoseCompareResponse,
    JointComparisonSchema,
    WebSocketMessageType,
    WebSocketMessage,
    FrameMessage,
    ReferenceMessage,
)

from .challenge import (
    HoldPhaseEnum,
    NotificationKindEnum,
    PoseSequenceEntrySchema,
    NotificationSchema,
    ChallengeSnapshotResponse,
    TargetTimeRequest,
    GoToPoseRequest,
    HealthResponse,
)

__all__ = [
    # Pose schemas
    "LandmarkSchema",
    "PoseSchema",
    "PoseCompareRequest",
    "PoseCompareResponse",
    "JointComparisonSchema",
    "WebSocketMessageType",
    "WebSocketMessage",
    "FrameMessage",
    "ReferenceMessage",
    # Challenge schemas
    "HoldPhaseEnum",
    "NotificationKindEnum",
    "PoseSequenceEntrySchema",
    "NotificationSchema",
    "ChallengeSnapshotResponse",
    "TargetTimeRequest",
    "GoToPoseRequest",
    "HealthResponse",
]
