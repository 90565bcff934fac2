"""
State shared between the scheduling loop and the web server.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Dict, Optional

from models.config import DetectorConfig
from pipeline.engine import PipelineEngine
from presentation.counters import DetectionCounter
from presentation.playback import PlaybackController


class MonitorState:
    """
    Handles the web routes need: the engine (scheduler, detector, source),
    the counters and the playback controls.
    """

    def __init__(
        self,
        engine: PipelineEngine,
        counter: DetectionCounter,
        playback: Optional[PlaybackController] = None,
    ):
        self.engine = engine
        self.counter = counter
        self.playback = playback or PlaybackController(engine.source, counter)
        self.start_time = time.time()
        self._config_lock = threading.Lock()

    def configure(self, score_threshold: float, target_class_id: int) -> DetectorConfig:
        with self._config_lock:
            new_config = self.engine.scheduler.configure(score_threshold, target_class_id)
            self.counter.target_class_id = new_config.target_class_id
        return new_config

    def reset(self) -> None:
        self.engine.scheduler.reset()

    def get_status(self) -> Dict[str, Any]:
        status = self.engine.status()
        status["counters"] = self.counter.snapshot()
        status["uptime_seconds"] = int(time.time() - self.start_time)
        return status
