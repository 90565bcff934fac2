"""
Pothole detector built on a TFLite detection model.

Combines preprocessing, the inference engine and output parsing. If the
model cannot be loaded the detector stays usable but reports nothing:
every detect() is False and every parse() is empty.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

import numpy as np

from inference.engine import InferenceEngine
from inference.errors import InferenceRuntimeError, ModelLoadError
from inference.model import InterpreterFactory, LoadedModel, load_model
from models.config import DetectorConfig
from models.detection import DetectionBatch
from models.frame import FrameData
from models.metadata import ModelMetadata
from .postprocess import contains_target, parse
from .preprocess import prepare

Frame = Union[FrameData, np.ndarray]


class PotholeDetector:
    """
    Detector facade.

    Not thread-safe for concurrent detect calls: the underlying interpreter
    must only be driven from one thread at a time.

    Example:
        detector = PotholeDetector("models/pothole_model.tflite")
        detector.configure(score_threshold=0.6, target_class_id=1)
        if detector.detect(frame_data):
            ...
    """

    def __init__(
        self,
        model_path: Optional[str] = None,
        config: Optional[DetectorConfig] = None,
        num_threads: int = 2,
        interpreter_factory: Optional[InterpreterFactory] = None,
        strict: bool = False,
        model: Optional[LoadedModel] = None,
    ):
        """
        Args:
            model_path: Path to the .tflite model.
            config: Initial threshold/class configuration.
            num_threads: Interpreter threads.
            interpreter_factory: Optional interpreter constructor override.
            strict: Re-raise ModelLoadError instead of running disabled.
            model: An already loaded model (skips loading).
        """
        self._config = config or DetectorConfig()
        self._engine: Optional[InferenceEngine] = None
        self.load_error: Optional[ModelLoadError] = None

        if model is None:
            try:
                model = load_model(
                    model_path or "",
                    num_threads=num_threads,
                    interpreter_factory=interpreter_factory,
                )
            except ModelLoadError as e:
                logging.error(f"Failed to load detection model: {e}")
                if strict:
                    raise
                self.load_error = e
                logging.warning("Pothole detector disabled; all frames will report no detection")
                return

        self._engine = InferenceEngine(model)

    @property
    def enabled(self) -> bool:
        return self._engine is not None

    @property
    def metadata(self) -> Optional[ModelMetadata]:
        return self._engine.metadata if self._engine is not None else None

    @property
    def engine(self) -> Optional[InferenceEngine]:
        return self._engine

    @property
    def config(self) -> DetectorConfig:
        """The current configuration snapshot."""
        return self._config

    def configure(self, score_threshold: float, target_class_id: int) -> DetectorConfig:
        """Replace the configuration; calls already running keep their snapshot."""
        new_config = DetectorConfig(
            score_threshold=float(score_threshold),
            target_class_id=int(target_class_id),
        )
        self._config = new_config
        logging.info(
            f"Detector configured: score_threshold={new_config.score_threshold}, "
            f"target_class_id={new_config.target_class_id}"
        )
        return new_config

    def detect_with_boxes(self, frame: Optional[Frame], config: Optional[DetectorConfig] = None) -> DetectionBatch:
        """Full detection list for a frame (normalized boxes)."""
        timestamp_us = frame.timestamp_us if isinstance(frame, FrameData) else 0
        if self._engine is None or frame is None:
            return DetectionBatch.empty(timestamp_us)

        cfg = config or self._config
        buffer = prepare(frame, self._engine.metadata)
        try:
            raw = self._engine.run(buffer)
        except InferenceRuntimeError as e:
            logging.error(str(e))
            return DetectionBatch.empty(timestamp_us)

        return parse(raw, cfg, timestamp_us=timestamp_us)

    def detect(self, frame: Optional[Frame], config: Optional[DetectorConfig] = None) -> bool:
        """True iff a detection of the target class was accepted."""
        cfg = config or self._config
        return contains_target(self.detect_with_boxes(frame, cfg), cfg)

    def parse(self, raw: Any, config: Optional[DetectorConfig] = None) -> DetectionBatch:
        """Parse a raw output tensor with the current configuration."""
        if self._engine is None:
            return DetectionBatch.empty()
        return parse(raw, config or self._config)
