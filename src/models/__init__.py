"""
Typed models for the pothole monitor application.
"""

from .frame import FrameData
from .detection import Detection, DetectionBatch, COORD_TOLERANCE
from .metadata import InputType, ModelMetadata, bytes_per_sample
from .config import (
    Config,
    DetectorConfig,
    ModelConfig,
    SchedulerConfig,
    VideoConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "Detection",
    "DetectionBatch",
    "COORD_TOLERANCE",
    # Model metadata
    "InputType",
    "ModelMetadata",
    "bytes_per_sample",
    # Config
    "Config",
    "DetectorConfig",
    "ModelConfig",
    "SchedulerConfig",
    "VideoConfig",
    "WebConfig",
]
