"""
Wall-clock playback position tracking.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional


class PlaybackClock:
    """
    Tracks a playback position that advances with wall-clock time while playing.

    Thread-safe: the position is read from the scheduling loop and the web
    thread while playback controls may be invoked from either.
    """

    def __init__(self, duration_us: Optional[int] = None, time_fn: Callable[[], float] = time.monotonic):
        self._time_fn = time_fn
        self._lock = threading.Lock()
        self._duration_us = duration_us
        self._base_us = 0
        self._started_at: Optional[float] = None

    @property
    def duration_us(self) -> Optional[int]:
        return self._duration_us

    @duration_us.setter
    def duration_us(self, value: Optional[int]) -> None:
        with self._lock:
            self._duration_us = value

    def _position_locked(self) -> int:
        pos = self._base_us
        if self._started_at is not None:
            pos += round((self._time_fn() - self._started_at) * 1_000_000)
        if self._duration_us is not None:
            pos = min(pos, self._duration_us)
        return max(0, pos)

    def position_us(self) -> int:
        with self._lock:
            return self._position_locked()

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._started_at is not None

    def is_ended(self) -> bool:
        with self._lock:
            return self._duration_us is not None and self._position_locked() >= self._duration_us

    def start(self) -> None:
        with self._lock:
            if self._started_at is None:
                self._started_at = self._time_fn()

    def stop(self) -> None:
        with self._lock:
            if self._started_at is not None:
                self._base_us = self._position_locked()
                self._started_at = None

    def seek(self, position_us: int) -> None:
        with self._lock:
            self._base_us = max(0, int(position_us))
            if self._started_at is not None:
                self._started_at = self._time_fn()
