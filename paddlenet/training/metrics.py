"""Error metrics reported after each convergence pass."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping

import numpy as np

from ..core.types import Array

DEFAULT_METRICS = ("mae", "rmse", "max_error", "within_tolerance")


@dataclass(frozen=True)
class MetricResult:
    name: str
    value: float


def compute_metric(
    name: str,
    predictions: Array,
    targets: Array,
    *,
    tolerance: float,
) -> MetricResult:
    key = name.lower()
    errors = np.abs(np.asarray(predictions, dtype=np.float64) - np.asarray(targets, dtype=np.float64))
    if errors.size == 0:
        value = 1.0 if key == "within_tolerance" else 0.0
    elif key == "mae":
        value = float(np.mean(errors))
    elif key == "rmse":
        value = float(np.sqrt(np.mean(errors**2)))
    elif key == "max_error":
        value = float(np.max(errors))
    elif key == "within_tolerance":
        value = float(np.mean(errors <= tolerance))
    else:
        raise ValueError(f"Unknown metric: {name}")
    return MetricResult(name=key, value=value)


def compute_metrics(
    names: Iterable[str],
    predictions: Array,
    targets: Array,
    *,
    tolerance: float,
) -> Dict[str, float]:
    results: List[MetricResult] = [
        compute_metric(name, predictions, targets, tolerance=tolerance) for name in names
    ]
    return {result.name: result.value for result in results}


def format_metrics(metrics: Mapping[str, float]) -> str:
    return ", ".join(f"{name}={value:.4f}" for name, value in sorted(metrics.items()))


__all__ = ["DEFAULT_METRICS", "MetricResult", "compute_metric", "compute_metrics", "format_metrics"]
