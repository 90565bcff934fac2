"""
Raw output parsing and thresholding.

Assumed output layout: [1, N, F] with F >= 6, each row
[y_min, x_min, y_max, x_max, score, class_id, ...]. Trailing fields are
ignored. No overlap suppression is applied, so overlapping boxes for the
same object can both be reported.
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np

from inference.errors import ShapeMismatchError
from models.config import DetectorConfig
from models.detection import COORD_TOLERANCE, Detection, DetectionBatch

MIN_FIELDS = 6


def check_output_shape(raw: Any) -> np.ndarray:
    """
    Return raw as a float64 array of shape [1, N, F>=6].

    Raises:
        ShapeMismatchError: If the tensor does not have that shape.
    """
    try:
        arr = np.asarray(raw, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise ShapeMismatchError(f"Output is not a numeric tensor: {e}") from e

    if arr.ndim != 3 or arr.shape[0] != 1 or arr.shape[2] < MIN_FIELDS:
        raise ShapeMismatchError(f"Unexpected output shape: {list(arr.shape)}")
    return arr


def accept_mask(rows: np.ndarray, score_threshold: float) -> np.ndarray:
    """Boolean mask of rows that pass the score and box sanity checks."""
    y_min, x_min, y_max, x_max, score, cls = (rows[:, i] for i in range(MIN_FIELDS))
    with np.errstate(invalid="ignore"):
        return (
            np.isfinite(score)
            & np.isfinite(cls)
            & (score >= score_threshold)
            & (y_min >= 0)
            & (x_min >= 0)
            & (y_max <= COORD_TOLERANCE)
            & (x_max <= COORD_TOLERANCE)
            & (y_max > y_min)
            & (x_max > x_min)
        )


def parse(raw: Any, config: DetectorConfig, timestamp_us: int = 0) -> DetectionBatch:
    """
    Parse a raw output tensor into accepted detections.

    Fails closed: a malformed tensor is logged and yields an empty batch.

    Args:
        raw: Output tensor from the inference engine.
        config: Detector config snapshot for this call.
        timestamp_us: Sample position to stamp on the batch.
    """
    try:
        arr = check_output_shape(raw)
    except ShapeMismatchError as e:
        logging.error(str(e))
        return DetectionBatch.empty(timestamp_us)

    rows = arr[0]
    if rows.shape[0] == 0:
        return DetectionBatch.empty(timestamp_us)

    mask = accept_mask(rows[:, :MIN_FIELDS], config.score_threshold)
    detections = [Detection.from_row(row) for row in rows[mask]]

    if detections:
        logging.debug(
            f"Detections: {min(3, len(detections))} shown of {len(detections)} e.g. "
            + ", ".join(str(d) for d in detections[:3])
        )
    return DetectionBatch.of(detections, timestamp_us=timestamp_us)


def contains_target(batch: DetectionBatch, config: DetectorConfig) -> bool:
    """True iff any accepted detection is of the configured target class."""
    return batch.contains_class(config.target_class_id)
