"""
Pipeline module for the pothole monitor.

The pipeline orchestrates the detection flow:
- Periodic sampling of the video timeline
- Single-flight frame fetch, preprocessing, inference and parsing
- Delivery of detection batches to the presentation layer
"""

from .scheduler import DetectionScheduler, SchedulerState, SchedulerStats
from .engine import PipelineEngine, PipelineConfig

__all__ = [
    "DetectionScheduler",
    "SchedulerState",
    "SchedulerStats",
    "PipelineEngine",
    "PipelineConfig",
]
