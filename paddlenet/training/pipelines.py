"""Configuration-driven convergence runs over a persisted training set."""

from __future__ import annotations

import json
import os
import time
from copy import deepcopy
from pathlib import Path
from typing import Dict, List, Mapping

from ..core.network import FeedForwardNetwork
from ..core.types import RunResult
from ..data.examples import FrameGeometry
from ..data.store import TrainingExampleStore
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from ..reporting.summary import write_summary
from .controller import DEFAULT_TOLERANCE, ConvergenceController
from .metrics import format_metrics


def default_home() -> Path:
    return Path(os.environ.get("PADDLENET_HOME") or Path.home() / ".cache" / "paddlenet")


_PRESETS: Dict[str, Mapping[str, object]] = {
    "paddle-default": {
        "geometry": {"width": 75, "height": 131},
        "model": {"hidden": [131], "lr": 0.01, "seed": 0},
        "train": {
            "tolerance": 0.03,
            "max_iterations": 5000,
            "data_path": "training-set.txt",
            "model_path": "model.npz",
            "run_dir": "runs/paddle-default",
            "enable_plots": False,
        },
    },
    "paddle-tiny": {
        "geometry": {"width": 1, "height": 1},
        "model": {"hidden": [4], "lr": 0.1, "seed": 0},
        "train": {
            "tolerance": 0.05,
            "max_iterations": 2000,
            "data_path": "tiny-training-set.txt",
            "model_path": "tiny-model.npz",
            "run_dir": "runs/paddle-tiny",
            "enable_plots": False,
        },
    },
}

REQUIRED_SECTIONS = ("geometry", "model", "train")


def presets() -> Mapping[str, Mapping[str, object]]:
    return {name: deepcopy(cfg) for name, cfg in _PRESETS.items()}


def load_preset(name: str) -> Dict[str, object]:
    try:
        return deepcopy(dict(_PRESETS[name]))
    except KeyError as exc:
        raise KeyError(f"Unknown preset: {name}") from exc


def read_config_file(path: str | Path) -> Mapping[str, object]:
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in {".yaml", ".yml", ".json"}:
        raise ValueError(f"Unsupported config file type: {path.suffix}")
    text = path.read_text()
    if suffix in {".yaml", ".yml"}:
        try:
            import yaml  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("PyYAML is required to load YAML configs") from exc
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text or "{}")
    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return data


def merge_config(base: dict, override: Mapping[str, object]) -> dict:
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            base[key] = merge_config(dict(base[key]), value)
        else:
            base[key] = value
    return base


def resolve_path(value: str | Path) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else default_home() / path


def build_dims(geometry: FrameGeometry, model_cfg: Mapping[str, object]) -> List[int]:
    dims = [geometry.vector_length]
    dims.extend(int(h) for h in model_cfg.get("hidden", []))  # type: ignore[union-attr]
    dims.append(1)
    return dims


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    missing = [section for section in REQUIRED_SECTIONS if section not in config]
    if missing:
        raise KeyError(f"Config is missing required sections: {', '.join(missing)}")
    geometry_cfg = dict(config["geometry"])  # type: ignore[arg-type]
    model_cfg = dict(config["model"])  # type: ignore[arg-type]
    train_cfg = dict(config["train"])  # type: ignore[arg-type]

    geometry = FrameGeometry(width=int(geometry_cfg["width"]), height=int(geometry_cfg["height"]))
    dims = build_dims(geometry, model_cfg)
    seed = int(model_cfg.get("seed", 0))
    tolerance = float(train_cfg.get("tolerance", DEFAULT_TOLERANCE))
    max_iterations = train_cfg.get("max_iterations")
    max_iterations = int(max_iterations) if max_iterations is not None else None
    data_path = resolve_path(str(train_cfg.get("data_path", "training-set.txt")))
    model_path = resolve_path(str(train_cfg.get("model_path", "model.npz")))
    run_dir = _resolve_run_dir(train_cfg)
    run_dir.mkdir(parents=True, exist_ok=True)

    store = TrainingExampleStore(geometry)
    data_found = store.load(data_path)
    network = FeedForwardNetwork(layer_dims=dims, learning_rate=float(model_cfg.get("lr", 0.01)), seed=seed)
    model_found = network.load(model_path)

    _print_startup_summary(
        dims=dims,
        examples=len(store),
        skipped=store.skipped_lines,
        tolerance=tolerance,
        max_iterations=max_iterations,
        model_found=model_found,
        param_count=network.parameter_count(),
        learning_rate=network.learning_rate,
    )

    jsonl = JsonlSink(run_dir / "metrics.jsonl", phase="train", seed=seed, tolerance=tolerance)
    csv_sink = CsvSink(run_dir / "metrics.csv", phase="train")
    plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))
    controller = ConvergenceController(
        network,
        geometry,
        tolerance=tolerance,
        max_iterations=max_iterations,
        callbacks=[jsonl, csv_sink, plots],
    )
    result = controller.train_until_converged(store)
    plots.close()
    network.save(model_path)

    print(
        f"{result.status.value} after {result.iterations} iteration(s), "
        f"{result.backpropagations} back propagation(s); "
        + format_metrics({"max_error": result.max_error, "failing": float(len(result.failing))})
    )

    manifest = write_manifest(
        run_dir / "manifest.json",
        config=json.loads(json.dumps(config)),
        store_provenance={
            "path": str(data_path),
            "found": data_found,
            "examples": len(store),
            "skipped_lines": store.skipped_lines,
            "model_path": str(model_path),
            "model_found": model_found,
        },
        result={
            "status": result.status.value,
            "iterations": result.iterations,
            "backpropagations": result.backpropagations,
            "failing": list(result.failing),
            "max_error": result.max_error,
        },
    )
    summary_tail = int(train_cfg.get("summary_tail", 32))
    summary_path = write_summary(jsonl.path, run_dir / "summary.json", tail=summary_tail)
    (run_dir / "config.json").write_text(json.dumps(config, indent=2))

    return RunResult(
        status=result.status.value,
        iterations=result.iterations,
        examples=len(store),
        metrics_path=str(jsonl.path),
        manifest_path=manifest,
        summary_path=summary_path,
        model_path=str(model_path),
    )


def _resolve_run_dir(train_cfg: Mapping[str, object]) -> Path:
    if "run_dir" in train_cfg:
        return Path(str(train_cfg["run_dir"]))
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp


def _print_startup_summary(
    *,
    dims: List[int],
    examples: int,
    skipped: int,
    tolerance: float,
    max_iterations: int | None,
    model_found: bool,
    param_count: int,
    learning_rate: float,
) -> None:
    print("=== PaddleNet run ===")
    print(f"Dimensions    : {dims}")
    print(f"Examples      : {examples} ({skipped} skipped)")
    print(f"Tolerance     : {tolerance}")
    print(f"Max iterations: {max_iterations if max_iterations is not None else 'unbounded'}")
    print(f"Model         : {'resumed' if model_found else 'fresh'}")
    print(f"Parameters    : {param_count}")
    print(f"Learning rate : {learning_rate}")
    print("=====================")


__all__ = ["load_preset", "merge_config", "presets", "read_config_file", "run_pipeline"]
