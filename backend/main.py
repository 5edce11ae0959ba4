"""
Pose Challenge Backend API

FastAPI application for the "hold the pose" challenge. The frontend
runs pose estimation and renders video; this service compares poses,
runs the hold timer and keeps score.

Run with:
    uvicorn main:app --reload --host 0.0.0.0 --port 8000

API docs available at:
    http://localhost:8000/docs (Swagger UI)
    http://localhost:8000/redoc (ReDoc)
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router as api_router, get_session
from api.websocket import cancel_ticker, websocket_endpoint

# =============================================================================
# Logging Configuration
# =============================================================================

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan (startup/shutdown)
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Starts the hold timer for the shared REST session on startup and
    quiesces it on shutdown.
    """
    # Startup
    logger.info("Pose Challenge API starting up...")
    logger.info("API docs: http://localhost:8000/docs")
    logger.info("WebSocket: ws://localhost:8000/ws/challenge")

    session = get_session()
    session.start()
    ticker = asyncio.create_task(session.run_ticker())

    yield  # App runs here

    # Shutdown
    logger.info("Pose Challenge API shutting down...")
    session.stop()
    await cancel_ticker(ticker)


# =============================================================================
# FastAPI App
# =============================================================================

app = FastAPI(
    title="Pose Challenge API",
    description="""
    **Yoga Pose Hold Challenge**

    Compares live body poses against reference poses and runs a timed
    "hold the pose" challenge with scoring and levels.

    ## Endpoints

    - `GET /api/health` - Health check
    - `POST /api/pose/compare` - Similarity between two landmark sets
    - `GET /api/challenge` - Current challenge snapshot
    - `PUT /api/challenge/reference/{pose_index}` - Reference landmarks
    - `POST /api/challenge/frame` - Live landmarks for one frame
    - `POST /api/challenge/target-time|reset|advance|goto` - Commands
    - `WS /ws/challenge` - Real-time challenge stream

    ## WebSocket Protocol

    Connect to `/ws/challenge` and send landmarks as JSON:
```json
    {
        "type": "frame",
        "data": {"landmarks": [{"x": 0.5, "y": 0.2, "z": 0.0}]},
        "timestamp": 1704067200000
    }
```
    """,
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# =============================================================================
# CORS Middleware
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",      # React dev server
        "http://localhost:5173",      # Vite dev server
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Routes
# =============================================================================

# Include REST API routes
app.include_router(api_router, prefix="/api")

# WebSocket endpoint
app.websocket("/ws/challenge")(websocket_endpoint)


# =============================================================================
# Root endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - API information.
    """
    return {
        "name": "Pose Challenge API",
        "version": "1.0.0",
        "description": "Yoga Pose Hold Challenge",
        "docs": "/docs",
        "health": "/api/health",
        "websocket": "ws://localhost:8000/ws/challenge"
    }


# =============================================================================
# Run directly (for development)
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
