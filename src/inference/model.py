"""
TFLite model loading and tensor metadata.

Uses tflite-runtime if installed, otherwise the interpreter bundled with the
full TensorFlow package. Either way the model is loaded once and its
input/output description is captured as an immutable ModelMetadata.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import numpy as np

from models.metadata import InputType, ModelMetadata
from .backend import Interpreter
from .errors import ModelLoadError

InterpreterFactory = Callable[..., Interpreter]


@dataclass(frozen=True)
class LoadedModel:
    """An allocated interpreter together with its tensor metadata."""
    interpreter: Interpreter
    metadata: ModelMetadata
    input_index: int
    output_index: int
    path: Optional[str] = None


def _resolve_interpreter_class() -> InterpreterFactory:
    try:
        from tflite_runtime.interpreter import Interpreter as TFLiteInterpreter  # type: ignore
        return TFLiteInterpreter
    except ImportError:
        pass
    try:
        from tensorflow.lite.python.interpreter import Interpreter as TFLiteInterpreter  # type: ignore
        return TFLiteInterpreter
    except ImportError as e:
        raise ModelLoadError(
            "No TFLite interpreter available. Install with `pip install tflite-runtime` "
            "(or `pip install tensorflow`)."
        ) from e


def read_metadata(interpreter: Interpreter) -> ModelMetadata:
    """
    Build ModelMetadata from an allocated interpreter.

    Expects a single NHWC input [1, H, W, C] of float32 or uint8 and at
    least one output tensor.

    Raises:
        ModelLoadError: If the tensor description is malformed.
    """
    inputs = interpreter.get_input_details()
    outputs = interpreter.get_output_details()
    if not inputs:
        raise ModelLoadError("Model has no input tensors")
    if not outputs:
        raise ModelLoadError("Model has no output tensors")

    in_shape = [int(v) for v in np.asarray(inputs[0]["shape"]).ravel()]
    if len(in_shape) != 4 or in_shape[0] != 1:
        raise ModelLoadError(f"Expected input shape [1, H, W, C], got {in_shape}")
    _, height, width, channels = in_shape
    if height <= 0 or width <= 0 or channels != 3:
        raise ModelLoadError(f"Unsupported input dimensions: {in_shape}")

    try:
        input_type = InputType.from_dtype(inputs[0]["dtype"])
    except (TypeError, ValueError) as e:
        raise ModelLoadError(str(e)) from e

    out_shape = tuple(int(v) for v in np.asarray(outputs[0]["shape"]).ravel())
    out_dtype = np.dtype(outputs[0].get("dtype", np.float32)).name

    return ModelMetadata(
        height=height,
        width=width,
        channels=channels,
        input_type=input_type,
        output_shape=out_shape,
        output_dtype=out_dtype,
    )


def load_model(
    path: str,
    num_threads: int = 2,
    interpreter_factory: Optional[InterpreterFactory] = None,
) -> LoadedModel:
    """
    Load a TFLite model and capture its tensor metadata.

    Args:
        path: Path to the .tflite flat buffer.
        num_threads: Interpreter CPU threads.
        interpreter_factory: Callable accepting (model_path=, num_threads=)
            and returning an interpreter. Defaults to the TFLite Interpreter.

    Raises:
        ModelLoadError: If the artifact is missing, unreadable or malformed.
    """
    if interpreter_factory is None:
        if not os.path.isfile(path):
            raise ModelLoadError(f"Model file not found: {path}")
        interpreter_factory = _resolve_interpreter_class()

    try:
        interpreter = interpreter_factory(model_path=path, num_threads=num_threads)
        interpreter.allocate_tensors()
    except (ValueError, RuntimeError, OSError) as e:
        raise ModelLoadError(f"Failed to load model {path}: {e}") from e

    metadata = read_metadata(interpreter)
    input_index = int(interpreter.get_input_details()[0]["index"])
    output_index = int(interpreter.get_output_details()[0]["index"])

    logging.info(
        f"Model loaded: path={path}, input shape={list(metadata.input_shape)} "
        f"type={metadata.input_type.value}, output shape={list(metadata.output_shape)} "
        f"type={metadata.output_dtype}"
    )
    return LoadedModel(
        interpreter=interpreter,
        metadata=metadata,
        input_index=input_index,
        output_index=output_index,
        path=path,
    )


def describe(model: LoadedModel) -> Dict[str, Any]:
    """Summary of the loaded model for status endpoints."""
    d = model.metadata.to_dict()
    d["path"] = model.path
    return d
