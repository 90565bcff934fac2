"""
Error taxonomy for the detection pipeline.

Only ModelLoadError is ever visible outside the pipeline. The other errors
are absorbed by the detector/scheduler and surface as an empty DetectionBatch.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for detection pipeline errors."""


class ModelLoadError(PipelineError):
    """The model artifact is missing, unreadable, or malformed."""


class FrameExtractionError(PipelineError):
    """No frame could be decoded at the requested timestamp."""


class ShapeMismatchError(PipelineError):
    """The raw output tensor does not have the expected [1, N, F>=6] shape."""


class InferenceRuntimeError(PipelineError):
    """The forward pass failed or was given a buffer of the wrong size."""
