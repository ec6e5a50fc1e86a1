"""Convergence control, online sessions and configured pipeline runs."""

from .controller import (
    DEFAULT_TOLERANCE,
    ConvergenceController,
    ConvergenceResult,
    ConvergenceStatus,
    train_until_converged,
)
from .session import TrainingSession

__all__ = [
    "DEFAULT_TOLERANCE",
    "ConvergenceController",
    "ConvergenceResult",
    "ConvergenceStatus",
    "TrainingSession",
    "train_until_converged",
]
