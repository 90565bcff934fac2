from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class CountersResponse(BaseModel):
    current: int
    total: int
    recent: List[str]
    status: str
    last_timestamp_us: Optional[int] = None


class DetectorConfigBody(BaseModel):
    score_threshold: float = Field(0.5, ge=0.0, le=1.0, description="Minimum score to accept a box")
    target_class_id: int = Field(1, ge=0, description="Model class index reported as pothole")


class StatusResponse(BaseModel):
    """
    Compact status for dashboard polling.
    """
    running: bool = Field(..., description="True if the scheduling loop is running")
    state: str = Field(..., description="idle|busy")
    playing: bool
    position_us: Optional[int] = Field(None, description="Current playback position")
    detector_enabled: bool = Field(..., description="False if the model failed to load")
    model: Optional[Dict[str, Any]] = Field(None, description="Loaded model path and tensor shapes")
    config: DetectorConfigBody
    scheduler: Dict[str, int]
    counters: CountersResponse
    uptime_seconds: int


class ActionResponse(BaseModel):
    action: str
    ok: bool
