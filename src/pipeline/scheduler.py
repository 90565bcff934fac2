"""
Single-flight detection scheduler.

Each tick samples the current playback position and, if no inference is in
flight, submits frame fetch -> preprocess -> infer -> postprocess to one
dedicated worker thread. Ticks that find a run in flight are skipped, which
throttles inference to whatever rate the model can sustain while keeping
calls into the interpreter strictly sequential.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from detection.pothole import PotholeDetector
from inference.errors import FrameExtractionError, PipelineError
from models.config import DetectorConfig
from models.detection import DetectionBatch
from models.frame import FrameData
from observation.base import VideoSource

ResultCallback = Callable[[DetectionBatch], None]
Dispatcher = Callable[[Callable[[], None]], None]


class SchedulerState(str, Enum):
    IDLE = "idle"
    BUSY = "busy"


@dataclass
class SchedulerStats:
    """Counters for the scheduling loop and worker."""
    ticks: int = 0
    submitted: int = 0
    skipped: int = 0
    completed: int = 0
    frame_failures: int = 0
    pipeline_errors: int = 0

    def to_dict(self):
        return {
            "ticks": self.ticks,
            "submitted": self.submitted,
            "skipped": self.skipped,
            "completed": self.completed,
            "frame_failures": self.frame_failures,
            "pipeline_errors": self.pipeline_errors,
        }


class DetectionScheduler:
    """
    Drives the detection pipeline from periodic ticks.

    Threading:
        - tick() runs on the scheduling loop thread and never blocks.
        - The pipeline runs on a single worker thread; the detector (and
          therefore the interpreter) is only ever called from there.
        - The single-flight token is a lock taken with a non-blocking
          acquire on the loop thread and released by the worker after the
          result has been handed to the dispatcher.

    Results are delivered through `dispatch`, which receives a zero-argument
    callable. The default runs it immediately on the worker; the pipeline
    engine supplies a dispatcher that queues it for its own loop thread.
    """

    def __init__(
        self,
        source: VideoSource,
        detector: PotholeDetector,
        on_result: ResultCallback,
        dispatch: Optional[Dispatcher] = None,
        on_reset: Optional[Callable[[], None]] = None,
    ):
        self._source = source
        self._detector = detector
        self._on_result = on_result
        self._dispatch = dispatch
        self._on_reset = on_reset
        self._token = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="detection-worker")
        self.stats = SchedulerStats()

    @property
    def state(self) -> SchedulerState:
        return SchedulerState.BUSY if self._token.locked() else SchedulerState.IDLE

    @property
    def detector(self) -> PotholeDetector:
        return self._detector

    def tick(self) -> bool:
        """
        Handle one periodic tick.

        Returns:
            True if a pipeline run was submitted.
        """
        self.stats.ticks += 1
        if not (self._source.is_ready() and self._source.is_playing()):
            return False

        if not self._token.acquire(blocking=False):
            self.stats.skipped += 1
            logging.debug("Inference in flight, skipping tick")
            return False

        timestamp_us = self._source.current_position_micros()
        try:
            self._executor.submit(self._run_pipeline, timestamp_us)
        except RuntimeError as e:
            # Executor already shut down.
            self._token.release()
            logging.warning(f"Detection worker unavailable: {e}")
            return False

        self.stats.submitted += 1
        return True

    def _run_pipeline(self, timestamp_us: int) -> None:
        batch = DetectionBatch.empty(timestamp_us)
        try:
            config = self._detector.config
            frame = self._fetch_frame(timestamp_us)
            batch = self._detect(frame, config, timestamp_us)
        except FrameExtractionError as e:
            self.stats.frame_failures += 1
            logging.warning(str(e))
        except PipelineError as e:
            self.stats.pipeline_errors += 1
            logging.error(f"Detection pipeline error: {e}")
        except Exception as e:
            self.stats.pipeline_errors += 1
            logging.exception(f"Unexpected detection pipeline error: {e}")
        finally:
            try:
                self._deliver(batch)
            finally:
                self.stats.completed += 1
                self._token.release()

    def _fetch_frame(self, timestamp_us: int) -> FrameData:
        try:
            frame = self._source.frame_at(timestamp_us)
        except Exception as e:
            raise FrameExtractionError(f"Frame extraction failed at {timestamp_us} us: {e}") from e
        if frame is None:
            raise FrameExtractionError(f"No frame available at {timestamp_us} us")
        return frame

    def _detect(self, frame: FrameData, config: DetectorConfig, timestamp_us: int) -> DetectionBatch:
        batch = self._detector.detect_with_boxes(frame, config)
        return batch.with_timestamp(timestamp_us)

    def _deliver(self, batch: DetectionBatch) -> None:
        def callback() -> None:
            try:
                self._on_result(batch)
            except Exception as e:
                logging.warning(f"Result callback error: {e}")

        if self._dispatch is not None:
            self._dispatch(callback)
        else:
            callback()

    def configure(self, score_threshold: float, target_class_id: int) -> DetectorConfig:
        """Swap the detector configuration; takes effect from the next run."""
        return self._detector.configure(score_threshold, target_class_id)

    def reset(self) -> None:
        """Reset presentation counters. The scheduler itself keeps no detection state."""
        if self._on_reset is not None:
            self._on_reset()

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no run is in flight. Returns False on timeout."""
        acquired = self._token.acquire(timeout=-1 if timeout is None else timeout)
        if acquired:
            self._token.release()
        return acquired

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting runs; with wait=True the in-flight run completes first."""
        self._executor.shutdown(wait=wait)
