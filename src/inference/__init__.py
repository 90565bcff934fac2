"""
Inference layer: model loading, tensor metadata and the forward pass.
"""

from .errors import (
    PipelineError,
    ModelLoadError,
    FrameExtractionError,
    ShapeMismatchError,
    InferenceRuntimeError,
)
from .model import LoadedModel, describe, load_model, read_metadata
from .engine import InferenceEngine

__all__ = [
    "PipelineError",
    "ModelLoadError",
    "FrameExtractionError",
    "ShapeMismatchError",
    "InferenceRuntimeError",
    "LoadedModel",
    "load_model",
    "describe",
    "read_metadata",
    "InferenceEngine",
]
