"""
Frame preprocessing into a model input buffer.

The buffer layout is row-major pixels, each pixel an (R, G, B) triplet,
encoded either as native-order float32 in [0, 1] or raw uint8.
"""

from __future__ import annotations

from typing import Union

import cv2
import numpy as np

from models.frame import FrameData
from models.metadata import InputType, ModelMetadata, bytes_per_sample

__all__ = ["prepare", "resize_rgb", "bytes_per_sample"]


def resize_rgb(frame: Union[FrameData, np.ndarray], width: int, height: int) -> np.ndarray:
    """
    Resize an RGB frame to (width, height) with bilinear interpolation.

    Grayscale frames (HxW or HxWx1) are expanded to three channels and an
    alpha channel, if present, is dropped.
    """
    pixels = frame.frame if isinstance(frame, FrameData) else frame
    if pixels.dtype != np.uint8:
        pixels = np.clip(pixels, 0, 255).astype(np.uint8)
    if pixels.ndim == 3 and pixels.shape[2] == 1:
        pixels = pixels[..., 0]
    if pixels.ndim == 2:
        pixels = cv2.cvtColor(pixels, cv2.COLOR_GRAY2RGB)
    elif pixels.shape[2] == 4:
        pixels = pixels[..., :3]

    if pixels.shape[1] == width and pixels.shape[0] == height:
        return np.ascontiguousarray(pixels)
    return cv2.resize(pixels, (width, height), interpolation=cv2.INTER_LINEAR)


def prepare(frame: Union[FrameData, np.ndarray], meta: ModelMetadata) -> bytes:
    """
    Convert a frame into the byte buffer the model expects.

    Args:
        frame: RGB frame (FrameData or HxWx3 uint8 array).
        meta: Model metadata giving target size and numeric encoding.

    Returns:
        bytes of length bytes_per_sample(meta.input_type) * width * height * channels.
    """
    resized = resize_rgb(frame, meta.width, meta.height)

    if meta.input_type is InputType.FLOAT32:
        data = (resized.astype(np.float32) / np.float32(255.0)).astype(np.float32)
    else:
        data = resized.astype(np.uint8)

    buffer = np.ascontiguousarray(data).tobytes()
    expected = bytes_per_sample(meta.input_type) * meta.width * meta.height * meta.channels
    assert len(buffer) == expected, f"tensor buffer is {len(buffer)} bytes, expected {expected}"
    return buffer
