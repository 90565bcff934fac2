"""
Observation layer for time-indexed video sources.

This layer abstracts where frames come from (video file, recorded dashcam
footage) from the detection pipeline. Each source implements the
VideoSource interface and returns FrameData objects.
"""

from .base import VideoSource, VideoSourceConfig
from .clock import PlaybackClock
from .opencv_source import OpenCVVideoSource, OpenCVSourceConfig

__all__ = [
    "VideoSource",
    "VideoSourceConfig",
    "PlaybackClock",
    "OpenCVVideoSource",
    "OpenCVSourceConfig",
]
