"""Command line entry point: converge a PaddleNet model over a stored training set."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Iterable

from paddlenet.training import pipelines
from paddlenet.training.controller import ConvergenceStatus


def _format_result(result) -> str:
    payload = {
        "status": result.status,
        "iterations": result.iterations,
        "examples": result.examples,
        "metrics": result.metrics_path,
        "manifest": result.manifest_path,
        "model": result.model_path,
    }
    if getattr(result, "summary_path", ""):
        payload["summary"] = result.summary_path
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(pipelines.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=preset_names,
        default="paddle-default",
        help="Preset configuration to execute",
    )
    parser.add_argument("--config", type=Path, help="Optional JSON/YAML config override")
    parser.add_argument("--data", help="Training-set file (relative paths resolve under PADDLENET_HOME)")
    parser.add_argument("--model", help="Model file (relative paths resolve under PADDLENET_HOME)")
    parser.add_argument("--run-dir", help="Directory receiving metrics and manifest")
    parser.add_argument("--tolerance", type=float, help="Maximum accepted |prediction - target|")
    parser.add_argument(
        "--max-iterations",
        type=int,
        help="Stop and report non-convergence after this many passes (0 = unbounded)",
    )
    parser.add_argument("--seed", type=int, help="Seed for fresh network weights")
    parser.add_argument("--enable-plots", action="store_true", help="Write convergence.png")
    parser.add_argument("--list-presets", action="store_true", help="List available presets and exit")
    parser.add_argument("--dump-config", type=Path, help="Dump the resolved config to a JSON file")
    return parser.parse_args(argv)


def resolve_config(args: argparse.Namespace) -> dict:
    config = json.loads(json.dumps(pipelines.load_preset(args.preset)))

    if args.config:
        override = pipelines.read_config_file(args.config)
        if set(pipelines.REQUIRED_SECTIONS) <= set(override.keys()):
            config = json.loads(json.dumps(override))
        else:
            config = pipelines.merge_config(config, override)

    train_cfg = config.setdefault("train", {})
    if args.data:
        train_cfg["data_path"] = args.data
    if args.model:
        train_cfg["model_path"] = args.model
    if args.run_dir:
        train_cfg["run_dir"] = args.run_dir
    if args.tolerance is not None:
        train_cfg["tolerance"] = float(args.tolerance)
    if args.max_iterations is not None:
        train_cfg["max_iterations"] = int(args.max_iterations) or None
    if args.enable_plots:
        train_cfg["enable_plots"] = True
    if args.seed is not None:
        config.setdefault("model", {})["seed"] = int(args.seed)
    return config


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)

    if args.list_presets:
        for name in sorted(pipelines.presets().keys()):
            print(name)
        raise SystemExit(0)

    config = resolve_config(args)

    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config, indent=2))

    result = pipelines.run_pipeline(config)
    print(_format_result(result))
    if result.status != ConvergenceStatus.CONVERGED.value:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
