"""
Pipeline engine for the pothole monitor.

Runs the cooperative scheduling loop: a fixed-interval tick drives the
DetectionScheduler, and detection results posted by the worker are run on
the loop thread in the order they were produced.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from detection.pothole import PotholeDetector
from inference.model import describe
from models.config import SchedulerConfig
from observation.base import VideoSource
from .scheduler import DetectionScheduler, ResultCallback


@dataclass
class PipelineConfig:
    """
    Configuration for the pipeline engine.

    Attributes:
        interval_ms: Tick period in milliseconds.
        stats_log_interval: Seconds between status log messages.
        stop_at_end: Stop the loop once the video has played to the end.
    """
    interval_ms: int = 500
    stats_log_interval: float = 60.0
    stop_at_end: bool = True

    @classmethod
    def from_scheduler_config(cls, cfg: SchedulerConfig, stop_at_end: bool = True) -> "PipelineConfig":
        return cls(
            interval_ms=cfg.interval_ms,
            stats_log_interval=cfg.stats_log_interval,
            stop_at_end=stop_at_end,
        )


@dataclass
class PipelineStats:
    """Runtime statistics for the loop."""
    loop_iterations: int = 0
    callbacks_run: int = 0
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)


class PipelineEngine:
    """
    Main loop owning the scheduler.

    Example:
        engine = PipelineEngine(source, detector, counter.on_detection_result, config)
        engine.run()
    """

    def __init__(
        self,
        source: VideoSource,
        detector: PotholeDetector,
        on_result: ResultCallback,
        config: Optional[PipelineConfig] = None,
        on_reset: Optional[Callable[[], None]] = None,
    ):
        self.source = source
        self.config = config or PipelineConfig()
        self.stats = PipelineStats()
        self._pending: "queue.Queue[Callable[[], None]]" = queue.Queue()
        self._stop_event = threading.Event()
        self._running = False
        self.scheduler = DetectionScheduler(
            source,
            detector,
            on_result,
            dispatch=self.post,
            on_reset=on_reset,
        )

    @property
    def is_running(self) -> bool:
        return self._running

    def post(self, fn: Callable[[], None]) -> None:
        """Queue fn to run on the loop thread. Safe to call from any thread."""
        self._pending.put(fn)

    def drain(self) -> int:
        """Run every queued callback in FIFO order. Returns how many ran."""
        count = 0
        while True:
            try:
                fn = self._pending.get_nowait()
            except queue.Empty:
                break
            try:
                fn()
            except Exception as e:
                logging.warning(f"Callback error: {e}")
            count += 1
        self.stats.callbacks_run += count
        return count

    def run_once(self) -> bool:
        """One loop iteration: tick the scheduler, then run posted results."""
        self.stats.loop_iterations += 1
        submitted = self.scheduler.tick()
        self.drain()
        return submitted

    def run(self) -> None:
        """
        Run the scheduling loop until stop() or end of video.

        Ticks are spaced interval_ms apart on the monotonic clock; a late
        iteration reschedules from now rather than bursting to catch up.
        """
        self._running = True
        self._stop_event.clear()
        self.stats = PipelineStats()
        interval = self.config.interval_ms / 1000.0
        logging.info(f"Pipeline started: source={self.source.source_id}, interval={self.config.interval_ms}ms")

        try:
            next_tick = time.monotonic()
            while self._running:
                self.run_once()

                if self.config.stop_at_end and self.source.is_ended():
                    self.scheduler.wait_idle()
                    self.drain()
                    logging.info("End of video reached")
                    break

                self._handle_periodic_tasks()

                next_tick += interval
                delay = next_tick - time.monotonic()
                if delay < 0:
                    next_tick = time.monotonic()
                    delay = 0
                if self._stop_event.wait(delay):
                    break
        except KeyboardInterrupt:
            logging.info("Pipeline interrupted by user")
        finally:
            self._cleanup()

    def stop(self) -> None:
        """Signal the loop to stop after the current iteration."""
        self._running = False
        self._stop_event.set()

    def status(self) -> Dict[str, Any]:
        detector = self.scheduler.detector
        return {
            "running": self._running,
            "state": self.scheduler.state.value,
            "scheduler": self.scheduler.stats.to_dict(),
            "detector_enabled": detector.enabled,
            "model": describe(detector.engine.model) if detector.engine is not None else None,
            "config": detector.config.to_dict(),
            "position_us": self.source.current_position_micros() if self.source.is_ready() else None,
            "playing": self.source.is_ready() and self.source.is_playing(),
            "uptime_seconds": int(time.time() - self.stats.start_time),
        }

    def _handle_periodic_tasks(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.config.stats_log_interval:
            s = self.scheduler.stats
            latency = None
            engine = self.scheduler.detector.engine
            if engine is not None:
                latency = engine.last_latency_ms
            logging.info(
                f"Pipeline stats: ticks={s.ticks}, submitted={s.submitted}, skipped={s.skipped}, "
                f"completed={s.completed}, frame_failures={s.frame_failures}, last_latency_ms={latency}"
            )
            self.stats.last_stats_log_time = now

    def _cleanup(self) -> None:
        self._running = False
        self.scheduler.shutdown(wait=True)
        self.drain()
        try:
            self.source.close()
        except Exception as e:
            logging.warning(f"Error closing source: {e}")
        logging.info("Pipeline stopped")
