"""
Tests for the single-flight detection scheduler.
"""

import time

import numpy as np
import pytest

from conftest import FakeInterpreter, make_factory
from detection.pothole import PotholeDetector
from fakes import FakeVideoSource
from models.config import DetectorConfig
from pipeline.scheduler import DetectionScheduler, SchedulerState


POTHOLE_OUTPUT = np.array([[[0.1, 0.1, 0.5, 0.5, 0.9, 1, 0]]], dtype=np.float32)


def _make(delay=0.0, output=POTHOLE_OUTPUT, dispatch=None, on_reset=None):
    interp = FakeInterpreter(output=output, delay=delay)
    detector = PotholeDetector("m.tflite", interpreter_factory=make_factory(interp))
    source = FakeVideoSource(position_us=1_000)
    source.open()
    source.play()
    results = []
    scheduler = DetectionScheduler(source, detector, results.append, dispatch=dispatch, on_reset=on_reset)
    return scheduler, source, interp, results


@pytest.fixture
def scheduler_parts():
    parts = _make()
    yield parts
    parts[0].shutdown(wait=True)


class TestTick:
    def test_submits_when_idle_and_playing(self, scheduler_parts):
        scheduler, source, interp, results = scheduler_parts
        assert scheduler.state is SchedulerState.IDLE

        assert scheduler.tick() is True
        assert scheduler.wait_idle(timeout=5)

        assert len(results) == 1
        assert results[0].contains_class(1)
        assert results[0].timestamp_us == 1_000
        assert interp.invocations == 1
        assert scheduler.stats.submitted == 1
        assert scheduler.stats.completed == 1

    def test_not_playing_is_noop(self, scheduler_parts):
        scheduler, source, interp, results = scheduler_parts
        source.pause()
        assert scheduler.tick() is False
        assert scheduler.stats.ticks == 1
        assert scheduler.stats.submitted == 0
        assert source.requested == []

    def test_not_ready_is_noop(self, scheduler_parts):
        scheduler, source, interp, results = scheduler_parts
        source.close()
        assert scheduler.tick() is False
        assert source.requested == []

    def test_timestamp_captured_at_submission(self):
        scheduler, source, interp, results = _make(delay=0.1)
        try:
            source.position_us = 2_500_000
            assert scheduler.tick() is True
            source.position_us = 9_000_000
            assert scheduler.wait_idle(timeout=5)
            assert source.requested == [2_500_000]
            assert results[0].timestamp_us == 2_500_000
        finally:
            scheduler.shutdown()


class TestSingleFlight:
    def test_slow_inference_never_overlaps(self):
        scheduler, source, interp, results = _make(delay=0.12)
        try:
            submitted = 0
            for i in range(30):
                source.position_us = i * 20_000
                if scheduler.tick():
                    submitted += 1
                time.sleep(0.02)
            assert scheduler.wait_idle(timeout=5)
        finally:
            scheduler.shutdown()

        assert interp.max_in_flight == 1
        assert submitted >= 2
        assert scheduler.stats.skipped > 0
        assert scheduler.stats.skipped + submitted == 30
        assert len(results) == submitted
        assert interp.invocations == submitted

    def test_busy_state_while_running(self):
        scheduler, source, interp, results = _make(delay=0.2)
        try:
            assert scheduler.tick() is True
            assert scheduler.state is SchedulerState.BUSY
            assert scheduler.tick() is False
            assert scheduler.wait_idle(timeout=5)
            assert scheduler.state is SchedulerState.IDLE
        finally:
            scheduler.shutdown()

    def test_results_in_submission_order(self):
        scheduler, source, interp, results = _make(delay=0.01)
        try:
            for ts in (100, 200, 300, 400):
                source.position_us = ts
                while not scheduler.tick():
                    time.sleep(0.005)
            assert scheduler.wait_idle(timeout=5)
        finally:
            scheduler.shutdown()
        assert [b.timestamp_us for b in results] == [100, 200, 300, 400]


class TestRecoverableErrors:
    def test_missing_frame_delivers_empty_batch(self, scheduler_parts):
        scheduler, source, interp, results = scheduler_parts
        source.missing_frames = True
        assert scheduler.tick() is True
        assert scheduler.wait_idle(timeout=5)
        assert len(results) == 1
        assert results[0].is_empty
        assert scheduler.stats.frame_failures == 1
        assert interp.invocations == 0

    def test_frame_exception_delivers_empty_batch(self, scheduler_parts):
        scheduler, source, interp, results = scheduler_parts
        source.raise_on_frame = OSError("decoder failed")
        assert scheduler.tick() is True
        assert scheduler.wait_idle(timeout=5)
        assert results[0].is_empty
        assert scheduler.stats.frame_failures == 1

    def test_retries_on_next_tick(self, scheduler_parts):
        scheduler, source, interp, results = scheduler_parts
        source.missing_frames = True
        scheduler.tick()
        scheduler.wait_idle(timeout=5)
        source.missing_frames = False
        scheduler.tick()
        scheduler.wait_idle(timeout=5)
        assert [b.is_empty for b in results] == [True, False]

    def test_inference_failure_delivers_empty_batch(self):
        scheduler, source, interp, results = _make()
        interp.fail_with = RuntimeError("interpreter crashed")
        try:
            scheduler.tick()
            assert scheduler.wait_idle(timeout=5)
        finally:
            scheduler.shutdown()
        assert results[0].is_empty

    def test_callback_error_releases_token(self):
        interp = FakeInterpreter(output=POTHOLE_OUTPUT)
        detector = PotholeDetector("m.tflite", interpreter_factory=make_factory(interp))
        source = FakeVideoSource()
        source.open()
        source.play()

        def on_result(batch):
            raise ValueError("ui exploded")

        scheduler = DetectionScheduler(source, detector, on_result)
        try:
            assert scheduler.tick() is True
            assert scheduler.wait_idle(timeout=5)
            assert scheduler.tick() is True
            assert scheduler.wait_idle(timeout=5)
        finally:
            scheduler.shutdown()
        assert interp.invocations == 2

    def test_disabled_detector_delivers_empty(self, tmp_path):
        detector = PotholeDetector(str(tmp_path / "missing.tflite"))
        source = FakeVideoSource()
        source.open()
        source.play()
        results = []
        scheduler = DetectionScheduler(source, detector, results.append)
        try:
            scheduler.tick()
            assert scheduler.wait_idle(timeout=5)
        finally:
            scheduler.shutdown()
        assert results[0].is_empty


class TestDispatchAndConfig:
    def test_custom_dispatch(self):
        posted = []
        scheduler, source, interp, results = _make(dispatch=posted.append)
        try:
            scheduler.tick()
            assert scheduler.wait_idle(timeout=5)
        finally:
            scheduler.shutdown()
        assert results == []
        assert len(posted) == 1
        posted[0]()
        assert len(results) == 1

    def test_configure_applies_to_next_run(self, scheduler_parts):
        scheduler, source, interp, results = scheduler_parts
        new_config = scheduler.configure(0.95, 1)
        assert new_config == DetectorConfig(score_threshold=0.95, target_class_id=1)
        scheduler.tick()
        scheduler.wait_idle(timeout=5)
        assert results[0].is_empty

    def test_in_flight_run_keeps_snapshot(self):
        scheduler, source, interp, results = _make(delay=0.2)
        try:
            scheduler.tick()
            time.sleep(0.05)
            scheduler.configure(0.95, 1)
            assert scheduler.wait_idle(timeout=5)
        finally:
            scheduler.shutdown()
        assert results[0].contains_class(1)

    def test_reset_calls_hook(self):
        calls = []
        scheduler, *_ = _make(on_reset=lambda: calls.append(1))
        try:
            scheduler.reset()
        finally:
            scheduler.shutdown()
        assert calls == [1]

    def test_tick_after_shutdown(self):
        scheduler, source, interp, results = _make()
        scheduler.shutdown()
        assert scheduler.tick() is False
        assert scheduler.state is SchedulerState.IDLE
