"""Online training loop: collect observed returns, retrain in blocks."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from ..core.network import FeedForwardNetwork
from ..data.codec import encode
from ..data.examples import Frame, FrameGeometry, TrainingExample
from ..data.store import AddOutcome, TrainingExampleStore
from .controller import DEFAULT_TOLERANCE, ConvergenceController, ConvergenceResult

DEFAULT_TRAIN_EVERY = 50


class TrainingSession:
    """Pair a store with a controller for an embedding game loop.

    Every ``train_every`` newly inserted examples trigger a convergence run.
    Duplicates and merges never trigger training on their own.
    """

    def __init__(
        self,
        network: FeedForwardNetwork,
        geometry: FrameGeometry,
        *,
        tolerance: float = DEFAULT_TOLERANCE,
        train_every: int = DEFAULT_TRAIN_EVERY,
        max_iterations: Optional[int] = None,
        callbacks: Sequence[object] | None = None,
        store: Optional[TrainingExampleStore] = None,
    ) -> None:
        if train_every < 1:
            raise ValueError("train_every must be at least 1")
        self.network = network
        self.geometry = geometry
        self.train_every = int(train_every)
        self.store = store if store is not None else TrainingExampleStore(geometry)
        self.controller = ConvergenceController(
            network,
            geometry,
            tolerance=tolerance,
            max_iterations=max_iterations,
            callbacks=callbacks,
        )
        self.last_result: Optional[ConvergenceResult] = None

    @property
    def count(self) -> int:
        return len(self.store)

    @property
    def failing(self) -> tuple[int, ...]:
        return self.controller.failing

    def observe(self, example: TrainingExample) -> AddOutcome:
        outcome = self.store.add(example)
        if outcome is AddOutcome.INSERTED and len(self.store) % self.train_every == 0:
            self.train()
        return outcome

    def train(self) -> ConvergenceResult:
        self.last_result = self.controller.train_until_converged(self.store)
        return self.last_result

    def predict(self, frames: Sequence[Optional[Frame]]) -> float:
        """Predicted far-line arrival as a fraction of the court height."""

        return self.controller.predict(encode(frames, self.geometry))

    def predict_position(self, frames: Sequence[Optional[Frame]]) -> float:
        return self.predict(frames) * self.controller.target_scale

    def next_epoch(self) -> int:
        return self.store.next_epoch()

    def load(self, data_path: str | Path, model_path: str | Path) -> tuple[bool, bool]:
        """Load stored examples and weights; each flag is ``False`` when its file is absent."""

        model_loaded = self.network.load(model_path)
        data_loaded = self.store.load(data_path)
        return data_loaded, model_loaded

    def save(self, data_path: str | Path, model_path: str | Path) -> None:
        self.network.save(model_path)
        self.store.save(data_path)


__all__ = ["DEFAULT_TRAIN_EVERY", "TrainingSession"]
