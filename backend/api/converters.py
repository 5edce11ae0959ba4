"""
Schema Converters

Translate between API schemas and domain models. Shared by the REST
routes and the WebSocket handler.
"""

import time
from typing import List, Optional

from core.domain.challenge import ChallengeSnapshot
from core.domain.pose import PoseLandmark
from core.services import ChallengeSession, PoseComparison

from .schemas import (
    ChallengeSnapshotResponse,
    HoldPhaseEnum,
    JointComparisonSchema,
    LandmarkSchema,
    NotificationKindEnum,
    NotificationSchema,
    PoseSequenceEntrySchema,
)


def landmarks_to_domain(landmarks: List[Optional[LandmarkSchema]]) -> list[Optional[PoseLandmark]]:
    """Convert API landmarks to domain landmarks, keeping gaps as None."""
    return [
        None if lm is None else PoseLandmark(x=lm.x, y=lm.y, z=lm.z, visibility=lm.visibility)
        for lm in landmarks
    ]


def joints_to_schema(comparison: PoseComparison) -> List[JointComparisonSchema]:
    return [
        JointComparisonSchema(
            joint=j.triplet.name,
            indices=[int(j.triplet.a), int(j.triplet.b), int(j.triplet.c)],
            live_angle=j.angle_a,
            reference_angle=j.angle_b,
            difference=j.difference,
        )
        for j in comparison.joints
    ]


def snapshot_to_response(
    snapshot: ChallengeSnapshot,
    session: Optional[ChallengeSession] = None,
    now: Optional[float] = None,
) -> ChallengeSnapshotResponse:
    """
    Convert a domain snapshot to its API schema.

    Args:
        snapshot: Snapshot from the session or sequencer
        session: Used to report which poses have reference landmarks
        now: Monotonic time for notification countdown (defaults to now)
    """
    now = time.monotonic() if now is None else now

    sequence = [
        PoseSequenceEntrySchema(
            id=entry.id,
            name=entry.name,
            image_reference=entry.image_reference,
            completed=entry.completed,
            points=entry.points,
            difficulty_multiplier=entry.difficulty_multiplier,
            has_reference_pose=session is not None and session.reference_pose(index) is not None,
        )
        for index, entry in enumerate(snapshot.sequence)
    ]

    notification = None
    if snapshot.notification is not None:
        n = snapshot.notification
        notification = NotificationSchema(
            kind=NotificationKindEnum(n.kind.value),
            message=n.message,
            level=n.level,
            points=n.points,
            expires_in_ms=max(0, int((n.expires_at - now) * 1000)),
        )

    return ChallengeSnapshotResponse(
        level=snapshot.level,
        score=snapshot.score,
        current_pose_index=snapshot.current_pose_index,
        sequence=sequence,
        hold_time=snapshot.hold_time,
        target_time=snapshot.target_time,
        phase=HoldPhaseEnum(snapshot.phase.value),
        timer_active=snapshot.timer_active,
        challenge_complete=snapshot.challenge_complete,
        is_pose_matched=snapshot.is_pose_matched,
        similarity=snapshot.similarity,
        notification=notification,
    )
