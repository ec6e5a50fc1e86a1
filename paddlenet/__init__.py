"""PaddleNet public API."""

from .core import activations, errors, types  # noqa: F401
from .core.errors import DimensionMismatch, InconsistentDuplicate, MalformedExample
from .core.network import FeedForwardNetwork
from .data import (
    AddOutcome,
    Frame,
    FrameGeometry,
    TrainingExample,
    TrainingExampleStore,
    deserialize_example,
    encode,
    occupancy_from_image,
    serialize_example,
)
from .training import (
    ConvergenceController,
    ConvergenceResult,
    ConvergenceStatus,
    TrainingSession,
    train_until_converged,
)
from .training.pipelines import load_preset, presets, run_pipeline

__all__ = [
    "AddOutcome",
    "ConvergenceController",
    "ConvergenceResult",
    "ConvergenceStatus",
    "DimensionMismatch",
    "FeedForwardNetwork",
    "Frame",
    "FrameGeometry",
    "InconsistentDuplicate",
    "MalformedExample",
    "TrainingExample",
    "TrainingExampleStore",
    "TrainingSession",
    "activations",
    "deserialize_example",
    "encode",
    "errors",
    "load_preset",
    "occupancy_from_image",
    "presets",
    "run_pipeline",
    "serialize_example",
    "train_until_converged",
    "types",
]
