"""
Pose Challenge API Module

FastAPI routes and WebSocket handlers for the pose challenge.
"""

from .routes import router, get_session
from .websocket import websocket_endpoint, manager

__all__ = [
    "router",
    "get_session",
    "websocket_endpoint",
    "manager",
]
