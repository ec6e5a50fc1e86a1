"""Core typing contracts for PaddleNet."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

import numpy as np

Array = np.ndarray


@dataclass
class ActivationState:
    """Intermediate activations captured during the forward pass."""

    layer_inputs: List[Array]
    layer_outputs: List[Array]


@dataclass(frozen=True)
class ModelDescription:
    """Description of the feed-forward network architecture."""

    layer_dims: List[int]
    learning_rate: float


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`paddlenet.training.pipelines.run_pipeline`."""

    status: str
    iterations: int
    examples: int
    metrics_path: str
    manifest_path: str
    summary_path: str = ""
    model_path: str = ""
