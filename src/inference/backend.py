"""
Interpreter interface.

The engine only needs the subset of the TFLite interpreter API below, which
lets tests drive the pipeline with a stand-in object.
"""

from __future__ import annotations

from typing import Any, Dict, List, Protocol

import numpy as np


class Interpreter(Protocol):
    def allocate_tensors(self) -> None:
        ...

    def get_input_details(self) -> List[Dict[str, Any]]:
        ...

    def get_output_details(self) -> List[Dict[str, Any]]:
        ...

    def set_tensor(self, tensor_index: int, value: np.ndarray) -> None:
        ...

    def invoke(self) -> None:
        ...

    def get_tensor(self, tensor_index: int) -> np.ndarray:
        ...
