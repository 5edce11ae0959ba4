"""
WebSocket Handler

Real-time pose challenge via WebSocket connection.
The frontend streams landmarks from its pose estimator; the server
runs the hold timer and pushes challenge state back.
"""

import asyncio
import json
import time
import logging
from typing import Optional
from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from .schemas import (
    WebSocketMessageType,
    FrameMessage,
    ReferenceMessage,
    TargetTimeRequest,
    GoToPoseRequest,
)
from .converters import landmarks_to_domain, snapshot_to_response
from core.config import ChallengeConfig
from core.domain.challenge import ChallengeSnapshot
from core.services import ChallengeSession, InvalidTargetTimeError

# Configure logging
logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Manages WebSocket connections.

    Each connection gets its own challenge session and hold timer task.
    """

    def __init__(self, config: Optional[ChallengeConfig] = None):
        self.config = config
        self.active_connections: list[WebSocket] = []
        self.sessions: dict[WebSocket, ChallengeSession] = {}
        self.tickers: dict[WebSocket, asyncio.Task] = {}

    async def connect(self, websocket: WebSocket) -> ChallengeSession:
        """Accept new WebSocket connection and start its hold timer."""
        await websocket.accept()
        self.active_connections.append(websocket)

        session = ChallengeSession(config=self.config or ChallengeConfig.from_env())
        self.sessions[websocket] = session

        async def push_tick(snapshot: ChallengeSnapshot) -> None:
            await self.send_message(websocket, WebSocketMessageType.TICK, _snapshot_data(snapshot, session))

        self.tickers[websocket] = asyncio.create_task(session.run_ticker(push_tick))

        logger.info(f"New WebSocket connection. Total: {len(self.active_connections)}")
        return session

    async def disconnect(self, websocket: WebSocket) -> None:
        """Handle WebSocket disconnection. Safe to call twice."""
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)

        # Quiesce both drivers before dropping the session
        session = self.sessions.pop(websocket, None)
        if session is not None:
            session.stop()

        ticker = self.tickers.pop(websocket, None)
        if ticker is not None:
            await cancel_ticker(ticker)

        logger.info(f"WebSocket disconnected. Remaining: {len(self.active_connections)}")

    def get_session(self, websocket: WebSocket) -> Optional[ChallengeSession]:
        """Get challenge session for a connection."""
        return self.sessions.get(websocket)

    async def send_message(self, websocket: WebSocket, msg_type: WebSocketMessageType, data: dict) -> None:
        """Send a typed message to a specific connection."""
        try:
            await websocket.send_json({
                "type": msg_type.value,
                "data": data,
                "timestamp": int(time.time() * 1000)
            })
        except Exception as e:
            logger.error(f"Failed to send WebSocket message: {e}")


async def cancel_ticker(task: asyncio.Task) -> None:
    """Cancel a hold timer task and collect its outcome."""
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    except Exception as e:
        logger.error(f"Hold timer task failed: {e}")


# Global connection manager
manager = ConnectionManager()


def _snapshot_data(snapshot: ChallengeSnapshot, session: ChallengeSession) -> dict:
    return snapshot_to_response(snapshot, session).model_dump(mode="json")


async def websocket_endpoint(websocket: WebSocket) -> None:
    """
    WebSocket endpoint for the real-time pose challenge.

    Protocol:
    1. Client connects, server replies session_started with a snapshot
    2. Client sends reference landmarks for each sequence pose
    3. Client streams live landmarks as frame messages
    4. Server answers every message with a snapshot and pushes tick
       messages while the hold timer is moving
    5. Client sends end_session or disconnects

    Message format (client -> server):
    {
        "type": "frame",
        "data": {"landmarks": [{"x": 0.5, "y": 0.2, "z": 0.0}, ...]},
        "timestamp": 1704067200000
    }
    {
        "type": "command",
        "data": {"command": "goto", "index": 2}
    }

    Commands: reset, advance, goto (index), target_time (seconds).
    """
    session = await manager.connect(websocket)

    try:
        await manager.send_message(websocket, WebSocketMessageType.SESSION_STARTED, {
            "message": "Connected to pose challenge",
            "snapshot": _snapshot_data(session.snapshot(), session),
        })

        # Main message loop
        while True:
            try:
                data = await websocket.receive_json()
            except json.JSONDecodeError:
                await manager.send_message(websocket, WebSocketMessageType.ERROR, {"error": "Invalid JSON"})
                continue

            if not isinstance(data, dict):
                await manager.send_message(websocket, WebSocketMessageType.ERROR, {"error": "Message must be a JSON object"})
                continue

            msg_type = data.get("type")

            if msg_type == WebSocketMessageType.END_SESSION.value:
                session.stop()
                await manager.send_message(websocket, WebSocketMessageType.SESSION_ENDED, {
                    "message": "Session ended",
                    "snapshot": _snapshot_data(session.snapshot(), session),
                })
                break

            payload = data.get("data") or {}
            if not isinstance(payload, dict):
                await manager.send_message(websocket, WebSocketMessageType.ERROR, {"error": "Message data must be a JSON object"})
                continue

            await handle_message(websocket, session, msg_type, payload)

    except WebSocketDisconnect:
        logger.info("Client disconnected")
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
    finally:
        await manager.disconnect(websocket)


async def handle_message(
    websocket: WebSocket,
    session: ChallengeSession,
    msg_type: Optional[str],
    payload: dict,
) -> None:
    """
    Apply one client message to the session and reply with a snapshot.
    """
    try:
        if msg_type == WebSocketMessageType.FRAME.value:
            frame = FrameMessage.model_validate(payload)
            snapshot = session.submit_frame(landmarks_to_domain(frame.landmarks))

        elif msg_type == WebSocketMessageType.REFERENCE.value:
            reference = ReferenceMessage.model_validate(payload)
            session.set_reference_pose(reference.pose_index, landmarks_to_domain(reference.landmarks))
            snapshot = session.snapshot()

        elif msg_type == WebSocketMessageType.COMMAND.value:
            snapshot = handle_command(session, payload)

        else:
            await manager.send_message(websocket, WebSocketMessageType.ERROR, {
                "error": f"Unknown message type: {msg_type}"
            })
            return

    except (ValidationError, InvalidTargetTimeError, IndexError, ValueError) as e:
        logger.warning(f"Rejected {msg_type} message: {e}")
        await manager.send_message(websocket, WebSocketMessageType.ERROR, {"error": str(e)})
        return
    except Exception as e:
        logger.error(f"Message processing error: {e}")
        await manager.send_message(websocket, WebSocketMessageType.ERROR, {"error": str(e)})
        return

    await manager.send_message(websocket, WebSocketMessageType.SNAPSHOT, _snapshot_data(snapshot, session))


def handle_command(session: ChallengeSession, payload: dict) -> ChallengeSnapshot:
    """
    Dispatch a user command.

    Raises:
        ValueError: for an unknown command name
    """
    command = payload.get("command")

    if command == "reset":
        return session.reset_challenge()
    if command == "advance":
        return session.advance_pose()
    if command == "goto":
        return session.go_to_pose(GoToPoseRequest.model_validate(payload).index)
    if command == "target_time":
        return session.select_target_time(TargetTimeRequest.model_validate(payload).seconds)

    raise ValueError(f"Unknown command: {command}")
