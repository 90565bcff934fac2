"""
FrameData model for sampled video frames.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np


@dataclass
class FrameData:
    """
    A decoded frame sampled from the video timeline.

    Attributes:
        frame: Pixel data as a uint8 numpy array, shape (H, W, 3), RGB order.
        width: Frame width in pixels.
        height: Frame height in pixels.
        timestamp_us: Playback position (microseconds) the frame was sampled at.
        source: Identifier for the video source.
    """
    frame: np.ndarray
    width: int
    height: int
    timestamp_us: int = 0
    source: Optional[str] = None

    @classmethod
    def from_rgb(
        cls,
        frame: np.ndarray,
        timestamp_us: int = 0,
        source: Optional[str] = None,
    ) -> "FrameData":
        """Create FrameData from an RGB numpy array."""
        h, w = frame.shape[:2]
        return cls(frame=frame, width=w, height=h, timestamp_us=timestamp_us, source=source)

    @classmethod
    def from_bgr(
        cls,
        frame: np.ndarray,
        timestamp_us: int = 0,
        source: Optional[str] = None,
    ) -> "FrameData":
        """Create FrameData from an OpenCV BGR array."""
        return cls.from_rgb(
            cv2.cvtColor(frame, cv2.COLOR_BGR2RGB),
            timestamp_us=timestamp_us,
            source=source,
        )

    def pixel(self, x: int, y: int) -> Tuple[int, int, int]:
        """Return the (r, g, b) triplet at column x, row y."""
        r, g, b = self.frame[y, x, :3]
        return int(r), int(g), int(b)

    @property
    def shape(self) -> Tuple[int, ...]:
        """Return (height, width, channels)."""
        return self.frame.shape

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)
