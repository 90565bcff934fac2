from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request

from ..api_models import ActionResponse, DetectorConfigBody, StatusResponse
from ..state import MonitorState

router = APIRouter()


def _state(request: Request) -> MonitorState:
    return request.app.state.monitor


@router.get("/status", response_model=StatusResponse)
def status(request: Request):
    """
    Aggregate status for the dashboard:
    - state: idle|busy (whether an inference is in flight)
    - scheduler: tick/submit/skip/complete counters
    - counters: current/total/recent detections and road status line
    """
    return _state(request).get_status()


@router.get("/config", response_model=DetectorConfigBody)
def get_config(request: Request):
    return _state(request).engine.scheduler.detector.config.to_dict()


@router.post("/config", response_model=DetectorConfigBody)
def update_config(body: DetectorConfigBody, request: Request):
    new_config = _state(request).configure(body.score_threshold, body.target_class_id)
    return new_config.to_dict()


@router.post("/reset", response_model=ActionResponse)
def reset(request: Request):
    _state(request).reset()
    return {"action": "reset", "ok": True}


@router.post("/playback/{action}", response_model=ActionResponse)
def playback(action: str, request: Request):
    controller = _state(request).playback
    if action not in controller.ACTIONS:
        raise HTTPException(status_code=404, detail=f"Unknown playback action: {action}")
    ok = controller.perform(action)
    if not ok:
        logging.info(f"Playback action '{action}' ignored: video not ready")
    return {"action": action, "ok": ok}
