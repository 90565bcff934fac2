"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import threading
import time

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.config import DetectorConfig  # noqa: E402
from models.frame import FrameData  # noqa: E402
from models.metadata import InputType, ModelMetadata  # noqa: E402


class FakeInterpreter:
    """
    Stand-in for the TFLite interpreter.

    Returns a fixed output tensor and records how it was driven, including
    the peak number of overlapping invoke() calls.
    """

    def __init__(
        self,
        model_path=None,
        num_threads=1,
        input_shape=(1, 8, 8, 3),
        input_dtype=np.float32,
        output=None,
        delay=0.0,
        fail_with=None,
    ):
        self.model_path = model_path
        self.num_threads = num_threads
        self.input_shape = np.array(input_shape, dtype=np.int32)
        self.input_dtype = input_dtype
        self.output = (
            np.asarray(output, dtype=np.float32)
            if output is not None
            else np.zeros((1, 10, 7), dtype=np.float32)
        )
        self.delay = delay
        self.fail_with = fail_with
        self.allocated = False
        self.tensors = []
        self.invocations = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def allocate_tensors(self):
        self.allocated = True

    def get_input_details(self):
        return [{"index": 0, "shape": self.input_shape, "dtype": self.input_dtype}]

    def get_output_details(self):
        return [{"index": 1, "shape": np.array(self.output.shape, dtype=np.int32), "dtype": np.float32}]

    def set_tensor(self, tensor_index, value):
        if tuple(value.shape) != tuple(self.input_shape):
            raise ValueError(f"Cannot set tensor: got shape {value.shape}")
        self.tensors.append(np.array(value, copy=True))

    def invoke(self):
        with self._lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            if self.fail_with is not None:
                raise self.fail_with
            self.invocations += 1
        finally:
            with self._lock:
                self.in_flight -= 1

    def get_tensor(self, tensor_index):
        return self.output


def make_factory(interpreter):
    """Interpreter factory that always returns the given instance."""
    def factory(model_path=None, num_threads=1):
        interpreter.model_path = model_path
        interpreter.num_threads = num_threads
        return interpreter
    return factory


@pytest.fixture
def fake_interpreter():
    return FakeInterpreter()


@pytest.fixture
def float_meta():
    return ModelMetadata(
        height=8, width=8, channels=3,
        input_type=InputType.FLOAT32,
        output_shape=(1, 10, 7),
    )


@pytest.fixture
def uint8_meta():
    return ModelMetadata(
        height=8, width=8, channels=3,
        input_type=InputType.UINT8,
        output_shape=(1, 10, 7),
    )


@pytest.fixture
def rgb_frame():
    """A deterministic 48x64 RGB gradient frame."""
    h, w = 48, 64
    ys, xs = np.mgrid[0:h, 0:w]
    frame = np.stack(
        [(xs * 4) % 256, (ys * 5) % 256, ((xs + ys) * 3) % 256], axis=-1
    ).astype(np.uint8)
    return FrameData.from_rgb(frame, timestamp_us=1_000_000, source="test")


@pytest.fixture
def default_config():
    return DetectorConfig(score_threshold=0.5, target_class_id=1)


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "model": {
            "path": "models/pothole_model.tflite",
            "num_threads": 2,
        },
        "detector": {
            "score_threshold": 0.5,
            "target_class_id": 1,
        },
        "scheduler": {
            "interval_ms": 500,
        },
        "video": {
            "path": "data/demo.mp4",
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
model:
  path: "models/pothole_model.tflite"
  num_threads: 2

detector:
  score_threshold: 0.5
  target_class_id: 1

scheduler:
  interval_ms: 500

video:
  path: "data/demo.mp4"

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir
