"""Train the network until every stored example is predicted within tolerance.

The controller is the only code that mutates the network. It is not
thread-safe: callers that share a network between threads must hold a lock
around each ``feed_forward``/``back_propagate`` pair.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..core.errors import DimensionMismatch
from ..core.network import FeedForwardNetwork
from ..core.types import Array
from ..data.codec import encode_example
from ..data.examples import FrameGeometry, TrainingExample
from ..data.store import TrainingExampleStore
from .metrics import DEFAULT_METRICS, compute_metrics

DEFAULT_TOLERANCE = 0.03


class ConvergenceStatus(str, Enum):
    CONVERGED = "converged"
    MAX_ITERATIONS_EXCEEDED = "max_iterations_exceeded"


@dataclass(frozen=True)
class ConvergenceResult:
    status: ConvergenceStatus
    iterations: int
    backpropagations: int
    failing: Tuple[int, ...]
    max_error: float

    @property
    def converged(self) -> bool:
        return self.status is ConvergenceStatus.CONVERGED


class ConvergenceController:
    """Drive full and failing-subset backpropagation passes over a store."""

    def __init__(
        self,
        network: FeedForwardNetwork,
        geometry: FrameGeometry,
        *,
        tolerance: float = DEFAULT_TOLERANCE,
        max_iterations: Optional[int] = None,
        target_scale: Optional[float] = None,
        callbacks: Sequence[object] | None = None,
    ) -> None:
        if network.input_width != geometry.vector_length:
            raise DimensionMismatch("network input layer", geometry.vector_length, network.input_width)
        if network.output_width != 1:
            raise DimensionMismatch("network output layer", 1, network.output_width)
        if tolerance <= 0:
            raise ValueError("tolerance must be positive")
        _check_budget(max_iterations)
        self.network = network
        self.geometry = geometry
        self.tolerance = float(tolerance)
        self.max_iterations = max_iterations
        self.target_scale = float(target_scale if target_scale is not None else geometry.height)
        self.callbacks = list(callbacks or [])
        self._failing: Tuple[int, ...] = ()

    @property
    def failing(self) -> Tuple[int, ...]:
        """Store indices that exceeded the tolerance on the latest evaluation."""

        return self._failing

    def target(self, example: TrainingExample) -> float:
        return example.far_line / self.target_scale

    def predict(self, example: TrainingExample | Array) -> float:
        if isinstance(example, TrainingExample):
            vector = encode_example(example, self.geometry)
        else:
            vector = example
        return float(self.network.feed_forward(vector)[0])

    def train_until_converged(
        self,
        store: TrainingExampleStore,
        max_iterations: Optional[int] = None,
    ) -> ConvergenceResult:
        budget = self.max_iterations if max_iterations is None else max_iterations
        _check_budget(budget)
        inputs = [encode_example(example, self.geometry) for example in store.all()]
        targets = [np.array([self.target(example)]) for example in store.all()]

        active: List[int] = []
        iterations = 0
        backpropagations = 0
        max_error = 0.0
        while True:
            if budget is not None and iterations >= budget:
                return ConvergenceResult(
                    status=ConvergenceStatus.MAX_ITERATIONS_EXCEEDED,
                    iterations=iterations,
                    backpropagations=backpropagations,
                    failing=self._failing,
                    max_error=max_error,
                )
            iterations += 1

            full_pass = not active
            batch = range(len(inputs)) if full_pass else active
            for idx in batch:
                self.network.back_propagate(inputs[idx], targets[idx])
            trained = len(batch)
            backpropagations += trained

            failing, metrics = self._evaluate(store, inputs)
            max_error = metrics["max_error"]
            metrics.update(
                {
                    "examples": float(len(inputs)),
                    "trained": float(trained),
                    "failing": float(len(failing)),
                    "full_pass": full_pass,
                }
            )
            self._emit(iterations, metrics)

            if full_pass and not failing:
                return ConvergenceResult(
                    status=ConvergenceStatus.CONVERGED,
                    iterations=iterations,
                    backpropagations=backpropagations,
                    failing=(),
                    max_error=max_error,
                )
            active = list(failing)

    def evaluate(self, store: TrainingExampleStore) -> Tuple[int, ...]:
        inputs = [encode_example(example, self.geometry) for example in store.all()]
        failing, _ = self._evaluate(store, inputs)
        return failing

    # ------------------------------------------------------------------
    # Internal helpers

    def _evaluate(
        self, store: TrainingExampleStore, inputs: Sequence[Array]
    ) -> tuple[Tuple[int, ...], dict]:
        predictions = np.zeros(len(inputs))
        expected = np.zeros(len(inputs))
        failing: List[int] = []
        for idx, (example, vector) in enumerate(zip(store.all(), inputs)):
            prediction = float(self.network.feed_forward(vector)[0])
            target = self.target(example)
            example.last_prediction = prediction
            example.last_expected = target
            predictions[idx] = prediction
            expected[idx] = target
            if abs(prediction - target) > self.tolerance:
                failing.append(idx)
        self._failing = tuple(failing)
        metrics = compute_metrics(DEFAULT_METRICS, predictions, expected, tolerance=self.tolerance)
        return self._failing, metrics

    def _emit(self, iteration: int, metrics: Mapping[str, float | bool]) -> None:
        for callback in self.callbacks:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(iteration, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(iteration, metrics)


def _check_budget(max_iterations: Optional[int]) -> None:
    if max_iterations is not None and max_iterations < 1:
        raise ValueError(f"max_iterations must be at least 1 or None, got {max_iterations}")


def train_until_converged(
    store: TrainingExampleStore,
    network: FeedForwardNetwork,
    tolerance: float = DEFAULT_TOLERANCE,
    *,
    geometry: FrameGeometry,
    max_iterations: Optional[int] = None,
    target_scale: Optional[float] = None,
    callbacks: Sequence[object] | None = None,
) -> ConvergenceResult:
    controller = ConvergenceController(
        network,
        geometry,
        tolerance=tolerance,
        max_iterations=max_iterations,
        target_scale=target_scale,
        callbacks=callbacks,
    )
    return controller.train_until_converged(store)


__all__ = [
    "DEFAULT_TOLERANCE",
    "ConvergenceController",
    "ConvergenceResult",
    "ConvergenceStatus",
    "train_until_converged",
]
