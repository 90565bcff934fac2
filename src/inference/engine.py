"""
Inference engine: sole owner of the loaded interpreter.

The TFLite interpreter is not reentrant. The engine does no locking of its
own; callers confine run() to a single worker thread (see
pipeline.scheduler.DetectionScheduler).
"""

from __future__ import annotations

import logging
import time
from typing import Optional

import numpy as np

from models.metadata import ModelMetadata
from .errors import InferenceRuntimeError
from .model import LoadedModel


class InferenceEngine:
    """Executes a forward pass on a prepared input buffer."""

    def __init__(self, model: LoadedModel):
        self._model = model
        self.last_latency_ms: Optional[float] = None
        self.run_count = 0

    @property
    def model(self) -> LoadedModel:
        return self._model

    @property
    def metadata(self) -> ModelMetadata:
        return self._model.metadata

    def run(self, buffer: bytes) -> np.ndarray:
        """
        Run the model on a tensor buffer.

        Args:
            buffer: Bytes laid out as produced by detection.preprocess.prepare().

        Returns:
            The raw output tensor, shape [1, N, F].

        Raises:
            InferenceRuntimeError: On a buffer size mismatch or interpreter failure.
        """
        meta = self._model.metadata
        expected = meta.input_byte_count
        if len(buffer) != expected:
            raise InferenceRuntimeError(
                f"Input buffer size mismatch: got {len(buffer)} bytes, expected {expected} "
                f"(type={meta.input_type.value}, shape={list(meta.input_shape)})"
            )

        tensor = np.frombuffer(buffer, dtype=meta.input_type.numpy_dtype).reshape(meta.input_shape)
        interpreter = self._model.interpreter

        start = time.perf_counter()
        try:
            interpreter.set_tensor(self._model.input_index, tensor)
            interpreter.invoke()
            output = np.array(interpreter.get_tensor(self._model.output_index), copy=True)
        except (ValueError, RuntimeError) as e:
            raise InferenceRuntimeError(
                f"Run failed. input={len(buffer)} bytes expected={expected} "
                f"type={meta.input_type.value}: {e}"
            ) from e

        self.last_latency_ms = (time.perf_counter() - start) * 1000.0
        self.run_count += 1
        logging.debug(f"Inference took {self.last_latency_ms:.1f} ms, output shape={output.shape}")
        return output
