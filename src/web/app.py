"""
FastAPI application factory for Pothole Monitor.

Routes:
- /api/status -> loop, scheduler and counter status
- /api/config -> detector threshold / target class
- /api/reset -> clear counters
- /api/playback/{play,stop,restart,clear} -> playback controls
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import api
from .state import MonitorState


def create_app(state: MonitorState) -> FastAPI:
    """Create the FastAPI app bound to a running monitor."""
    app = FastAPI(
        title="Pothole Monitor",
        version="0.1.0",
        description="Pothole detection over recorded road video",
    )

    # CORS for development dashboards
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.monitor = state
    app.include_router(api.router, prefix="/api")
    return app
