"""Core numerical primitives for PaddleNet."""

from . import activations, errors, network, types

__all__ = ["activations", "errors", "network", "types"]
