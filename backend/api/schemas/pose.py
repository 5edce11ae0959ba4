"""
Pose API Schemas

Pydantic models for pose-related API requests and responses.
These define the JSON structure for communication with the frontend,
which runs the pose estimator and sends landmarks (never images).
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from enum import Enum


class LandmarkSchema(BaseModel):
    """
    Single body landmark.

    Coordinates are normalized to the image frame (usually 0.0 to 1.0,
    slightly outside when a joint leaves the frame).
    """
    x: float = Field(..., description="Horizontal position (0=left, 1=right)")
    y: float = Field(..., description="Vertical position (0=top, 1=bottom)")
    z: float = Field(0.0, description="Relative depth (negative=closer to camera)")
    visibility: float = Field(1.0, ge=0.0, le=1.0, description="Detection confidence")

    class Config:
        json_schema_extra = {
            "example": {
                "x": 0.45,
                "y": 0.32,
                "z": -0.15,
                "visibility": 0.95
            }
        }


class PoseSchema(BaseModel):
    """
    One detected pose: up to 33 landmarks in MediaPipe order.

    Use null for a landmark the estimator did not return. An empty list
    means no body was detected in the frame.
    """
    landmarks: List[Optional[LandmarkSchema]] = Field(
        default_factory=list,
        max_length=33,
        description="Landmarks indexed by MediaPipe body part number"
    )


class PoseCompareRequest(BaseModel):
    """Compare a live pose against a reference pose."""
    live: PoseSchema = Field(..., description="Pose from the camera feed")
    reference: PoseSchema = Field(..., description="Pose from the reference image")
    threshold: Optional[float] = Field(
        None, ge=0.0, le=1.0, description="Match threshold (server default if omitted)"
    )


class JointComparisonSchema(BaseModel):
    """Angle at one joint in both poses."""
    joint: str = Field(..., description="Joint name (e.g., 'left_elbow')")
    indices: List[int] = Field(..., description="Landmark triplet (A, B, C), angle measured at B")
    live_angle: float = Field(..., description="Angle in the live pose (degrees)")
    reference_angle: float = Field(..., description="Angle in the reference pose (degrees)")
    difference: float = Field(..., ge=0.0, description="Absolute difference (degrees)")


class PoseCompareResponse(BaseModel):
    """Similarity between two poses."""
    similarity: float = Field(..., ge=0.0, le=1.0, description="0 (no match) to 1 (identical angles)")
    is_match: bool = Field(..., description="Whether similarity exceeds the threshold")
    threshold: float = Field(..., description="Threshold used")
    average_difference: Optional[float] = Field(None, description="Mean angle difference (degrees)")
    joints: List[JointComparisonSchema] = Field(default_factory=list, description="Per-joint detail")


# =============================================================================
# WebSocket Message Schemas
# =============================================================================

class WebSocketMessageType(str, Enum):
    """Types of WebSocket messages."""
    # Client -> Server
    FRAME = "frame"                    # Live landmarks for one video frame
    REFERENCE = "reference"            # Reference landmarks for a sequence pose
    COMMAND = "command"                # User command (reset, advance, ...)
    END_SESSION = "end_session"        # End challenge session

    # Server -> Client
    SNAPSHOT = "snapshot"              # State after handling a client message
    TICK = "tick"                      # State pushed by the hold timer
    ERROR = "error"                    # Error message
    SESSION_STARTED = "session_started"
    SESSION_ENDED = "session_ended"


class WebSocketMessage(BaseModel):
    """
    Base WebSocket message structure.

    All WebSocket communication uses this format.
    """
    type: WebSocketMessageType = Field(..., description="Message type")
    data: dict = Field(default_factory=dict, description="Message payload")
    timestamp: int = Field(0, description="Unix timestamp in milliseconds")

    class Config:
        json_schema_extra = {
            "example": {
                "type": "frame",
                "data": {"landmarks": [{"x": 0.5, "y": 0.2}]},
                "timestamp": 1704067200000
            }
        }


class FrameMessage(BaseModel):
    """Live landmarks sent from the frontend for one frame."""
    landmarks: List[Optional[LandmarkSchema]] = Field(default_factory=list, max_length=33)
    frame_number: int = Field(0, description="Frame sequence number")


class ReferenceMessage(BaseModel):
    """Reference landmarks for one pose of the sequence."""
    pose_index: int = Field(..., ge=0, description="Sequence position")
    landmarks: List[Optional[LandmarkSchema]] = Field(..., min_length=1, max_length=33)
