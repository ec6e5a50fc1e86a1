"""Fixed-shape tanh feed-forward network trained one example at a time."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, MutableSequence, Sequence

import numpy as np

from .activations import tanh, tanh_deriv_from_output
from .errors import DimensionMismatch
from .types import ActivationState, Array, ModelDescription


def _as_vector(values: Sequence[float] | Array, expected: int, what: str) -> Array:
    vector = np.asarray(values, dtype=np.float64)
    if vector.ndim == 2 and vector.shape[0] == 1:
        vector = vector[0]
    if vector.ndim != 1:
        raise DimensionMismatch(f"{what} of shape {vector.shape}", expected, int(vector.size))
    if vector.shape[0] != expected:
        raise DimensionMismatch(what, expected, int(vector.shape[0]))
    return vector


@dataclass
class FeedForwardNetwork:
    """Multi-layer perceptron with a tanh activation on every layer.

    ``layer_dims[0]`` is the input width and ``layer_dims[-1]`` the output
    width. Weights are stored as ``(in_dim, out_dim)`` matrices so a single
    input row multiplies from the left.
    """

    layer_dims: Sequence[int]
    learning_rate: float = 0.01
    seed: int = 0
    weights: MutableSequence[Array] = field(init=False, repr=False)
    biases: MutableSequence[Array] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.layer_dims = [int(dim) for dim in self.layer_dims]
        if len(self.layer_dims) < 2:
            raise ValueError("A network needs at least an input and an output layer")
        if any(dim < 1 for dim in self.layer_dims):
            raise ValueError(f"Layer sizes must be positive: {self.layer_dims}")
        self.reset(self.seed)

    @property
    def input_width(self) -> int:
        return self.layer_dims[0]

    @property
    def output_width(self) -> int:
        return self.layer_dims[-1]

    def describe(self) -> ModelDescription:
        return ModelDescription(
            layer_dims=list(self.layer_dims), learning_rate=float(self.learning_rate)
        )

    def reset(self, seed: int) -> None:
        rng = np.random.default_rng(seed)
        weights: list[Array] = []
        biases: list[Array] = []
        for in_dim, out_dim in zip(self.layer_dims[:-1], self.layer_dims[1:]):
            scale = 1.0 / np.sqrt(in_dim)
            weights.append(rng.standard_normal((in_dim, out_dim)) * scale)
            biases.append(rng.standard_normal(out_dim) * 0.05)
        self.weights = weights
        self.biases = biases

    def forward(self, inputs: Array) -> tuple[Array, ActivationState]:
        layer_inputs: list[Array] = []
        layer_outputs: list[Array] = []
        x = inputs
        for W, b in zip(self.weights, self.biases):
            layer_inputs.append(x)
            x = tanh(x @ W + b)
            layer_outputs.append(x)
        return x, ActivationState(layer_inputs=layer_inputs, layer_outputs=layer_outputs)

    def feed_forward(self, inputs: Sequence[float] | Array) -> Array:
        """Return the output vector for ``inputs`` without touching the weights."""

        vector = _as_vector(inputs, self.input_width, "network input")
        output, _ = self.forward(vector)
        return output

    def back_propagate(
        self, inputs: Sequence[float] | Array, targets: Sequence[float] | Array
    ) -> None:
        """Apply one gradient-descent step on ``0.5 * ||output - targets||^2``."""

        vector = _as_vector(inputs, self.input_width, "network input")
        target = _as_vector(targets, self.output_width, "network target")
        output, activations = self.forward(vector)

        delta = (output - target) * tanh_deriv_from_output(output)
        grads_w: list[Array] = [np.empty(0)] * len(self.weights)
        grads_b: list[Array] = [np.empty(0)] * len(self.weights)
        for idx in reversed(range(len(self.weights))):
            grads_w[idx] = np.outer(activations.layer_inputs[idx], delta)
            grads_b[idx] = delta
            if idx > 0:
                previous = activations.layer_outputs[idx - 1]
                delta = (self.weights[idx] @ delta) * tanh_deriv_from_output(previous)

        for idx in range(len(self.weights)):
            self.weights[idx] = self.weights[idx] - self.learning_rate * grads_w[idx]
            self.biases[idx] = self.biases[idx] - self.learning_rate * grads_b[idx]

    def state_dict(self) -> Mapping[str, Array]:
        state: dict[str, Array] = {
            "layer_dims": np.asarray(self.layer_dims, dtype=np.int64),
            "learning_rate": np.asarray(self.learning_rate, dtype=np.float64),
        }
        for idx, (W, b) in enumerate(zip(self.weights, self.biases)):
            state[f"W{idx}"] = W.copy()
            state[f"b{idx}"] = b.copy()
        return state

    def load_state_dict(self, state: Mapping[str, Array]) -> None:
        """Restore weights and biases. The stored learning rate is informational only."""

        if "layer_dims" in state:
            dims = [int(dim) for dim in np.asarray(state["layer_dims"]).reshape(-1)]
            if dims != list(self.layer_dims):
                raise DimensionMismatch(
                    f"stored layer sizes {dims} vs {list(self.layer_dims)}",
                    len(self.layer_dims),
                    len(dims),
                )
        weights: list[Array] = []
        biases: list[Array] = []
        for idx, (W, b) in enumerate(zip(self.weights, self.biases)):
            for key in (f"W{idx}", f"b{idx}"):
                if key not in state:
                    raise KeyError(f"Missing parameter {key} in state dict")
            new_w = np.asarray(state[f"W{idx}"], dtype=np.float64)
            new_b = np.asarray(state[f"b{idx}"], dtype=np.float64)
            if new_w.shape != W.shape:
                raise DimensionMismatch(f"weights W{idx}", W.size, new_w.size)
            if new_b.shape != b.shape:
                raise DimensionMismatch(f"bias b{idx}", b.size, new_b.size)
            weights.append(new_w.copy())
            biases.append(new_b.copy())
        self.weights = weights
        self.biases = biases

    def parameter_count(self) -> int:
        return int(sum(W.size + b.size for W, b in zip(self.weights, self.biases)))

    def save(self, path: str | Path) -> str:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("wb") as handle:
            np.savez(handle, **self.state_dict())
        return str(path)

    def load(self, path: str | Path) -> bool:
        """Restore weights from ``path``; ``False`` when no model was saved yet."""

        path = Path(path)
        if not path.exists():
            return False
        with np.load(path, allow_pickle=False) as archive:
            self.load_state_dict({name: archive[name] for name in archive.files})
        return True


__all__ = ["FeedForwardNetwork"]
