"""
Challenge API Schemas

Pydantic models for the challenge snapshot and user commands.
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from enum import Enum


class HoldPhaseEnum(str, Enum):
    """Hold timer states for API."""
    IDLE = "idle"
    HOLDING = "holding"
    COMPLETE = "complete"


class NotificationKindEnum(str, Enum):
    """Notification kinds for API."""
    POSE_COMPLETE = "pose_complete"
    LEVEL_COMPLETE = "level_complete"


class PoseSequenceEntrySchema(BaseModel):
    """One target pose in the sequence."""
    id: int = Field(..., description="Pose identifier")
    name: str = Field(..., description="Display name")
    image_reference: str = Field(..., description="Reference image path or URL")
    completed: bool = Field(..., description="Held to target in this level")
    points: int = Field(..., ge=0, description="Base points")
    difficulty_multiplier: float = Field(..., gt=0.0, description="Point multiplier, grows per level")
    has_reference_pose: bool = Field(False, description="Whether reference landmarks are loaded")


class NotificationSchema(BaseModel):
    """Completion banner; disappears once expires_in_ms reaches 0."""
    kind: NotificationKindEnum = Field(..., description="What was completed")
    message: str = Field(..., description="Banner text")
    level: int = Field(..., ge=1, description="Level the notification refers to")
    points: Optional[int] = Field(None, description="Points earned (pose completion only)")
    expires_in_ms: int = Field(..., ge=0, description="Time left on screen")


class ChallengeSnapshotResponse(BaseModel):
    """
    Read-only challenge state for rendering progress bars,
    pose indicators and completion banners.
    """
    level: int = Field(..., ge=1, description="Current level")
    score: int = Field(..., ge=0, description="Total score")
    current_pose_index: int = Field(..., ge=0, description="Active sequence position")
    sequence: List[PoseSequenceEntrySchema] = Field(..., description="Pose sequence")
    hold_time: float = Field(..., ge=0.0, description="Seconds held so far")
    target_time: float = Field(..., gt=0.0, description="Seconds to hold")
    phase: HoldPhaseEnum = Field(..., description="Hold timer state")
    timer_active: bool = Field(..., description="Hold time is accumulating")
    challenge_complete: bool = Field(..., description="Target reached for the active pose")
    is_pose_matched: bool = Field(..., description="Debounced match signal")
    similarity: Optional[float] = Field(None, description="Most recent similarity score")
    notification: Optional[NotificationSchema] = Field(None, description="Active banner")

    class Config:
        json_schema_extra = {
            "example": {
                "level": 1,
                "score": 100,
                "current_pose_index": 1,
                "hold_time": 2.3,
                "target_time": 5.0,
                "phase": "holding",
                "timer_active": True,
                "challenge_complete": False,
                "is_pose_matched": True,
                "similarity": 0.86
            }
        }


class TargetTimeRequest(BaseModel):
    """Select the hold duration."""
    seconds: float = Field(..., gt=0.0, description="Hold target (3, 5, 10, 15 or 30 by default)")


class GoToPoseRequest(BaseModel):
    """Jump to a pose; out-of-range indices are ignored."""
    index: int = Field(..., description="Sequence position")


class HealthResponse(BaseModel):
    """
    Health check response.
    """
    status: str = Field("healthy", description="Service status")
    version: str = Field(..., description="API version")
