"""
Detection counters shown to the operator.

Receives every DetectionBatch from the scheduler and keeps the running
tallies the dashboard displays. Counters live only in memory.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Any, Deque, Dict, Optional

from models.detection import DetectionBatch

STATUS_DETECTED = "Pothole Detected!"
STATUS_CLEAR = "Road is clear..."
STATUS_IDLE = "Video feed ready - Press Play to start"


class DetectionCounter:
    """
    Presentation-side tally of pothole detections.

    A batch counts as one detection event if it contains at least one
    detection of the target class; `current` is the number of such boxes
    in the latest batch.
    """

    def __init__(self, target_class_id: int = 1, max_recent: int = 5):
        self.target_class_id = target_class_id
        self.max_recent = max_recent
        self._lock = threading.Lock()
        self._current = 0
        self._total = 0
        self._recent: Deque[str] = deque(maxlen=max_recent)
        self._status = STATUS_IDLE
        self._last_timestamp_us: Optional[int] = None

    def on_detection_result(self, batch: DetectionBatch) -> None:
        hits = batch.of_class(self.target_class_id)
        with self._lock:
            self._last_timestamp_us = batch.timestamp_us
            self._current = len(hits)
            if hits:
                self._total += 1
                label = f"Pothole #{self._total}"
                self._recent.appendleft(label)
                self._status = STATUS_DETECTED
            else:
                self._status = STATUS_CLEAR
            total = self._total

        if hits:
            best = max(hits, key=lambda d: d.score)
            logging.info(
                f"Pothole #{total} at {batch.timestamp_us / 1e6:.2f}s "
                f"(score={best.score:.2f}, boxes={len(hits)})"
            )

    def reset(self) -> None:
        with self._lock:
            self._current = 0
            self._total = 0
            self._recent.clear()
            self._status = STATUS_CLEAR
            self._last_timestamp_us = None
        logging.info("Detections cleared")

    @property
    def total(self) -> int:
        with self._lock:
            return self._total

    @property
    def current(self) -> int:
        with self._lock:
            return self._current

    @property
    def status(self) -> str:
        with self._lock:
            return self._status

    def set_status(self, status: str) -> None:
        with self._lock:
            self._status = status

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "current": self._current,
                "total": self._total,
                "recent": list(self._recent),
                "status": self._status,
                "last_timestamp_us": self._last_timestamp_us,
            }
