"""
Playback controls (play / stop / restart / clear).
"""

from __future__ import annotations

import logging

from observation.base import VideoSource
from .counters import DetectionCounter


class PlaybackController:
    """Operator actions over a video source and its detection counters."""

    ACTIONS = ("play", "stop", "restart", "clear")

    def __init__(self, source: VideoSource, counter: DetectionCounter):
        self.source = source
        self.counter = counter

    def play(self) -> bool:
        if not self.source.is_ready():
            logging.info("Video is still loading...")
            return False
        self.source.play()
        self.counter.set_status("Detection started!")
        logging.info("Detection started")
        return True

    def stop(self) -> bool:
        if not self.source.is_ready():
            return False
        self.source.pause()
        self.counter.set_status("Detection stopped")
        logging.info("Detection stopped")
        return True

    def restart(self) -> bool:
        if not self.source.is_ready():
            logging.info("Video is still loading...")
            return False
        self.source.restart()
        self.counter.set_status("Detection restarted")
        logging.info("Detection restarted")
        return True

    def clear(self) -> bool:
        self.counter.reset()
        if self.source.is_ready():
            self.source.seek(0)
        return True

    def perform(self, action: str) -> bool:
        """
        Dispatch a named action.

        Raises:
            ValueError: If the action is unknown.
        """
        if action not in self.ACTIONS:
            raise ValueError(f"Unknown playback action: {action}")
        return getattr(self, action)()
