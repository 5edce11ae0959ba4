"""
REST API Routes

FastAPI routes for the pose challenge.
Handles pose comparison, the challenge snapshot and user commands.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException

from .schemas import (
    PoseSchema,
    PoseCompareRequest,
    PoseCompareResponse,
    ChallengeSnapshotResponse,
    TargetTimeRequest,
    GoToPoseRequest,
    HealthResponse,
)
from .converters import joints_to_schema, landmarks_to_domain, snapshot_to_response
from core.config import ChallengeConfig
from core.services import ChallengeSession, InvalidTargetTimeError, is_match

# Configure logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter()

API_VERSION = "1.0.0"

# Shared session for the REST surface (WebSocket clients get their own)
_session: Optional[ChallengeSession] = None


def get_session() -> ChallengeSession:
    """Lazily create the shared challenge session."""
    global _session
    if _session is None:
        _session = ChallengeSession(config=ChallengeConfig.from_env())
        logger.info("Created shared challenge session")
    return _session


# =============================================================================
# Health Check
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="Health check endpoint"
)
async def health_check() -> HealthResponse:
    """
    Check if the API is running.
    """
    return HealthResponse(status="healthy", version=API_VERSION)


# =============================================================================
# Pose Comparison
# =============================================================================

@router.post(
    "/pose/compare",
    response_model=PoseCompareResponse,
    tags=["Pose Comparison"],
    summary="Compare a live pose with a reference pose"
)
async def compare_poses(
    request: PoseCompareRequest,
    session: ChallengeSession = Depends(get_session),
) -> PoseCompareResponse:
    """
    Score how closely two poses agree by joint angles.

    Stateless: does not touch the challenge. Useful for tuning the
    threshold against recorded poses.
    """
    threshold = request.threshold if request.threshold is not None else session.config.match_threshold

    comparison = session.comparator.compare(
        landmarks_to_domain(request.live.landmarks),
        landmarks_to_domain(request.reference.landmarks),
    )

    return PoseCompareResponse(
        similarity=comparison.similarity,
        is_match=is_match(comparison.similarity, threshold),
        threshold=threshold,
        average_difference=comparison.average_difference,
        joints=joints_to_schema(comparison),
    )


# =============================================================================
# Challenge
# =============================================================================

@router.get(
    "/challenge",
    response_model=ChallengeSnapshotResponse,
    tags=["Challenge"],
    summary="Current challenge state"
)
async def get_challenge(session: ChallengeSession = Depends(get_session)) -> ChallengeSnapshotResponse:
    return snapshot_to_response(session.snapshot(), session)


@router.put(
    "/challenge/reference/{pose_index}",
    response_model=ChallengeSnapshotResponse,
    tags=["Challenge"],
    summary="Store reference landmarks for a sequence pose"
)
async def set_reference_pose(
    pose_index: int,
    pose: PoseSchema,
    session: ChallengeSession = Depends(get_session),
) -> ChallengeSnapshotResponse:
    """
    Store the landmarks detected on a pose's reference image.

    The frontend runs the estimator once per reference image and
    uploads the result here before the challenge starts.
    """
    try:
        session.set_reference_pose(pose_index, landmarks_to_domain(pose.landmarks))
    except IndexError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return snapshot_to_response(session.snapshot(), session)


@router.post(
    "/challenge/frame",
    response_model=ChallengeSnapshotResponse,
    tags=["Challenge"],
    summary="Submit live landmarks for one frame"
)
async def submit_frame(
    pose: PoseSchema,
    session: ChallengeSession = Depends(get_session),
) -> ChallengeSnapshotResponse:
    """
    Feed one detection result. An empty landmark list means no body
    was detected; the previous match state is kept.
    """
    snapshot = session.submit_frame(landmarks_to_domain(pose.landmarks))
    return snapshot_to_response(snapshot, session)


@router.post(
    "/challenge/target-time",
    response_model=ChallengeSnapshotResponse,
    tags=["Challenge"],
    summary="Select the hold duration"
)
async def select_target_time(
    request: TargetTimeRequest,
    session: ChallengeSession = Depends(get_session),
) -> ChallengeSnapshotResponse:
    try:
        snapshot = session.select_target_time(request.seconds)
    except InvalidTargetTimeError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return snapshot_to_response(snapshot, session)


@router.post(
    "/challenge/reset",
    response_model=ChallengeSnapshotResponse,
    tags=["Challenge"],
    summary="Restart the challenge"
)
async def reset_challenge(session: ChallengeSession = Depends(get_session)) -> ChallengeSnapshotResponse:
    """Zero the score and clear completed poses. Level is kept."""
    return snapshot_to_response(session.reset_challenge(), session)


@router.post(
    "/challenge/advance",
    response_model=ChallengeSnapshotResponse,
    tags=["Challenge"],
    summary="Move to the next pose"
)
async def advance_pose(session: ChallengeSession = Depends(get_session)) -> ChallengeSnapshotResponse:
    """Next pose, or the next level after the last pose."""
    return snapshot_to_response(session.advance_pose(), session)


@router.post(
    "/challenge/goto",
    response_model=ChallengeSnapshotResponse,
    tags=["Challenge"],
    summary="Jump to a pose"
)
async def go_to_pose(
    request: GoToPoseRequest,
    session: ChallengeSession = Depends(get_session),
) -> ChallengeSnapshotResponse:
    """Out-of-range indices leave the state unchanged."""
    return snapshot_to_response(session.go_to_pose(request.index), session)
