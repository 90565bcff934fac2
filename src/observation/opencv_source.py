"""
OpenCV-based video file source.

Wraps cv2.VideoCapture for random access by timestamp. Playback is
simulated with a wall-clock PlaybackClock; frames are only decoded when
frame_at() is called, so sampling costs nothing between detection ticks.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import cv2

from models.frame import FrameData
from .base import VideoSource, VideoSourceConfig
from .clock import PlaybackClock


@dataclass
class OpenCVSourceConfig(VideoSourceConfig):
    """
    Configuration for OpenCV-based video sources.

    Attributes:
        max_retries: Maximum attempts to open the capture.
        start_position_us: Initial playback position after open.
    """
    max_retries: int = 3
    start_position_us: int = 0

    @classmethod
    def from_video_config(cls, video_cfg: Dict[str, Any]) -> "OpenCVSourceConfig":
        """Adapter: Create OpenCVSourceConfig from the `video` config dict."""
        return cls(
            source_id=video_cfg.get("source_id", "demo"),
            path=video_cfg.get("path", ""),
            max_retries=video_cfg.get("max_retries", 3),
            start_position_us=video_cfg.get("start_position_us", 0),
        )


class OpenCVVideoSource(VideoSource):
    """
    Time-indexed video file source.

    The capture is shared between the scheduling loop (metadata) and the
    detection worker (decoding), so all capture access holds a lock.

    Example:
        config = OpenCVSourceConfig(path="data/demo.mp4")
        with OpenCVVideoSource(config) as source:
            source.play()
            frame = source.frame_at(source.current_position_micros())
    """

    def __init__(self, config: OpenCVSourceConfig, time_fn: Callable[[], float] = time.monotonic):
        super().__init__(config)
        self._opencv_config = config
        self._cap: Optional[cv2.VideoCapture] = None
        self._cap_lock = threading.Lock()
        self._clock = PlaybackClock(time_fn=time_fn)
        self._fps: float = 0.0
        self._frame_count: int = 0

    @property
    def path(self) -> str:
        return self._opencv_config.path

    def open(self) -> None:
        """Open the video file."""
        if self._is_open:
            return

        if not os.path.exists(self.path):
            raise RuntimeError(f"Video file not found: {self.path}")

        for attempt in range(self._opencv_config.max_retries):
            self._cap = cv2.VideoCapture(self.path)
            if self._cap.isOpened():
                break
            self._cap.release()
            self._cap = None
            logging.warning(
                f"Failed to open video {self.path} (attempt {attempt + 1}/"
                f"{self._opencv_config.max_retries})"
            )
        else:
            raise RuntimeError(
                f"Failed to open video {self.path} after {self._opencv_config.max_retries} attempts"
            )

        self._fps = float(self._cap.get(cv2.CAP_PROP_FPS) or 0.0)
        self._frame_count = int(self._cap.get(cv2.CAP_PROP_FRAME_COUNT) or 0)
        if self._fps > 0 and self._frame_count > 0:
            self._clock.duration_us = int(self._frame_count / self._fps * 1_000_000)
        self._clock.seek(self._opencv_config.start_position_us)
        self._is_open = True

        logging.info(
            f"OpenCVVideoSource opened: source_id={self.source_id}, path={self.path}, "
            f"fps={self._fps:.2f}, frames={self._frame_count}"
        )

    def close(self) -> None:
        """Close the video file and release resources."""
        self._clock.stop()
        with self._cap_lock:
            if self._cap is not None:
                self._cap.release()
                self._cap = None
        if self._is_open:
            logging.info(f"OpenCVVideoSource closed: source_id={self.source_id}")
        self._is_open = False

    def is_playing(self) -> bool:
        return self._is_open and self._clock.is_running and not self._clock.is_ended()

    def is_ended(self) -> bool:
        return self._clock.is_ended()

    def duration_micros(self) -> Optional[int]:
        return self._clock.duration_us

    def current_position_micros(self) -> int:
        return self._clock.position_us()

    def play(self) -> None:
        if self._clock.is_ended():
            self._clock.seek(0)
        self._clock.start()

    def pause(self) -> None:
        self._clock.stop()

    def seek(self, timestamp_us: int) -> None:
        self._clock.seek(timestamp_us)

    def frame_at(self, timestamp_us: int) -> Optional[FrameData]:
        """Decode the frame at timestamp_us (RGB)."""
        with self._cap_lock:
            if self._cap is None:
                return None
            self._cap.set(cv2.CAP_PROP_POS_MSEC, timestamp_us / 1000.0)
            ok, frame = self._cap.read()

        if not ok or frame is None:
            logging.debug(f"No frame decoded at {timestamp_us} us")
            return None
        return FrameData.from_bgr(frame, timestamp_us=timestamp_us, source=self.source_id)

    def get_video_info(self) -> Dict[str, Any]:
        """Get information about the opened file."""
        if not self._is_open:
            return {}
        return {
            "path": self.path,
            "fps": self._fps,
            "frame_count": self._frame_count,
            "duration_us": self._clock.duration_us,
        }
