"""
Presentation layer: detection counters and playback controls.
"""

from .counters import DetectionCounter
from .playback import PlaybackController

__all__ = ["DetectionCounter", "PlaybackController"]
