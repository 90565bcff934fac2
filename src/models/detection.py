"""
Detection models for pothole detection results.

Box coordinates are normalized to the frame ([0, 1]) in the model's native
[y_min, x_min, y_max, x_max] order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Sequence, Tuple

# Coordinates may overshoot 1.0 slightly from float rounding in the model.
COORD_TOLERANCE = 1.001


@dataclass(frozen=True)
class Detection:
    """
    A single candidate box from the detector.

    Attributes:
        y_min: Top edge (normalized).
        x_min: Left edge (normalized).
        y_max: Bottom edge (normalized).
        x_max: Right edge (normalized).
        score: Confidence score (0-1).
        class_id: Category index reported by the model.
    """
    y_min: float
    x_min: float
    y_max: float
    x_max: float
    score: float
    class_id: int

    @property
    def width(self) -> float:
        return self.x_max - self.x_min

    @property
    def height(self) -> float:
        return self.y_max - self.y_min

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> Tuple[float, float]:
        """Return (x, y) center in normalized coordinates."""
        return ((self.x_min + self.x_max) / 2, (self.y_min + self.y_max) / 2)

    def to_pixels(self, frame_w: int, frame_h: int) -> Tuple[int, int, int, int]:
        """Return (x1, y1, x2, y2) in pixel coordinates, clipped to the frame."""
        x1 = int(max(0.0, self.x_min) * frame_w)
        y1 = int(max(0.0, self.y_min) * frame_h)
        x2 = int(min(1.0, self.x_max) * frame_w)
        y2 = int(min(1.0, self.y_max) * frame_h)
        return (x1, y1, x2, y2)

    @classmethod
    def from_row(cls, row: Sequence[float]) -> "Detection":
        """
        Adapter: build from a raw output row [y_min, x_min, y_max, x_max, score, class, ...].
        """
        return cls(
            y_min=float(row[0]),
            x_min=float(row[1]),
            y_max=float(row[2]),
            x_max=float(row[3]),
            score=float(row[4]),
            class_id=int(row[5]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "box": [self.y_min, self.x_min, self.y_max, self.x_max],
            "score": self.score,
            "class_id": self.class_id,
        }

    def __str__(self) -> str:
        return (
            f"det{{cls={self.class_id}, score={self.score:.3f}, "
            f"box=[{self.y_min:.3f},{self.x_min:.3f},{self.y_max:.3f},{self.x_max:.3f}]}}"
        )


@dataclass(frozen=True)
class DetectionBatch:
    """
    Detections from one inference call.

    Order follows the model's candidate index; it is not sorted by score.

    Attributes:
        detections: Accepted detections.
        timestamp_us: Playback position the frame was sampled at.
    """
    detections: Tuple[Detection, ...] = field(default_factory=tuple)
    timestamp_us: int = 0

    @classmethod
    def empty(cls, timestamp_us: int = 0) -> "DetectionBatch":
        return cls(detections=(), timestamp_us=timestamp_us)

    @classmethod
    def of(cls, detections: Sequence[Detection], timestamp_us: int = 0) -> "DetectionBatch":
        return cls(detections=tuple(detections), timestamp_us=timestamp_us)

    def with_timestamp(self, timestamp_us: int) -> "DetectionBatch":
        return DetectionBatch(detections=self.detections, timestamp_us=timestamp_us)

    def contains_class(self, class_id: int) -> bool:
        return any(d.class_id == class_id for d in self.detections)

    def of_class(self, class_id: int) -> List[Detection]:
        return [d for d in self.detections if d.class_id == class_id]

    @property
    def is_empty(self) -> bool:
        return not self.detections

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp_us": self.timestamp_us,
            "detections": [d.to_dict() for d in self.detections],
        }

    def __len__(self) -> int:
        return len(self.detections)

    def __iter__(self) -> Iterator[Detection]:
        return iter(self.detections)

    def __getitem__(self, index: int) -> Detection:
        return self.detections[index]
