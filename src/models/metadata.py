"""
Model tensor metadata.

Describes what the loaded detection model expects as input and what it
produces as output. Read once at load time and never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple

import numpy as np


class InputType(str, Enum):
    """Numeric encoding of the model input tensor."""

    FLOAT32 = "float32"  # channel / 255.0
    UINT8 = "uint8"  # raw channel byte

    @property
    def bytes_per_sample(self) -> int:
        return 4 if self is InputType.FLOAT32 else 1

    @property
    def numpy_dtype(self) -> np.dtype:
        return np.dtype(np.float32) if self is InputType.FLOAT32 else np.dtype(np.uint8)

    @classmethod
    def from_dtype(cls, dtype: Any) -> "InputType":
        """
        Map an interpreter dtype (numpy type or name) to an InputType.

        Raises:
            ValueError: If the dtype is neither float32 nor uint8.
        """
        name = np.dtype(dtype).name
        for member in cls:
            if member.value == name:
                return member
        raise ValueError(f"Unsupported input dtype: {name}")


def bytes_per_sample(input_type: InputType) -> int:
    """Bytes used to encode one channel value for the given input type."""
    return input_type.bytes_per_sample


@dataclass(frozen=True)
class ModelMetadata:
    """
    Input/output tensor description of a detection model.

    Attributes:
        height: Input height in pixels.
        width: Input width in pixels.
        channels: Input channel count (3 for RGB).
        input_type: Numeric encoding of the input tensor.
        output_shape: Output tensor shape, expected [1, N, F] with F >= 6.
        output_dtype: Output tensor dtype name (informational).
    """

    height: int
    width: int
    channels: int
    input_type: InputType
    output_shape: Tuple[int, ...]
    output_dtype: str = "float32"

    @property
    def input_shape(self) -> Tuple[int, int, int, int]:
        """Return the NHWC input shape [1, H, W, C]."""
        return (1, self.height, self.width, self.channels)

    @property
    def input_byte_count(self) -> int:
        return bytes_per_sample(self.input_type) * self.width * self.height * self.channels

    @property
    def num_candidates(self) -> int:
        """Number of candidate boxes N, or 0 if the output shape is unusable."""
        return int(self.output_shape[1]) if len(self.output_shape) >= 2 else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input_shape": list(self.input_shape),
            "input_type": self.input_type.value,
            "output_shape": list(self.output_shape),
            "output_dtype": self.output_dtype,
        }
