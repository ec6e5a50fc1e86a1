"""Activation utilities for PaddleNet."""

from __future__ import annotations

import numpy as np

from .types import Array


def tanh(x: Array) -> Array:
    return np.tanh(x)


def tanh_deriv_from_output(y: Array) -> Array:
    """Derivative of tanh expressed through its output ``y = tanh(x)``."""

    return 1.0 - y * y
