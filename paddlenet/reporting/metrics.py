"""Metric sinks fed once per convergence iteration.

Each record carries the iteration number, the run's tolerance and the
numeric metrics of that pass. Flags such as ``full_pass`` stay booleans so a
reader can tell full passes from failing-subset passes without guessing at
float encodings.
"""

from __future__ import annotations

import csv
import json
import subprocess
from pathlib import Path
from typing import Dict, Mapping


def git_sha() -> str:
    try:
        out = subprocess.check_output(["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL)
        return out.decode().strip()
    except Exception:  # pragma: no cover - git may be unavailable in tests
        return "unknown"


def iteration_values(metrics: Mapping[str, object]) -> Dict[str, float | bool]:
    """Keep booleans as flags and coerce other numbers to float; drop the rest."""

    values: Dict[str, float | bool] = {}
    for key, value in metrics.items():
        if isinstance(value, bool):
            values[key] = value
        elif isinstance(value, (int, float)):
            values[key] = float(value)
    return values


class JsonlSink:
    """One JSON object per iteration; truncates ``path`` on construction."""

    def __init__(
        self,
        path: str | Path,
        *,
        phase: str = "train",
        seed: int | None = None,
        sha: str | None = None,
        tolerance: float | None = None,
    ) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.phase = phase
        self.seed = seed
        self.sha = sha or git_sha()
        self.tolerance = tolerance

    def on_epoch(self, iteration: int, metrics: Mapping[str, object]) -> None:
        record: Dict[str, object] = {
            "iteration": int(iteration),
            "phase": self.phase,
            "seed": self.seed,
            "sha": self.sha,
        }
        if self.tolerance is not None:
            record["tolerance"] = float(self.tolerance)
        record.update(iteration_values(metrics))
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")

    __call__ = on_epoch


class CsvSink:
    """Spreadsheet view of the same records with a sorted column order."""

    def __init__(self, path: str | Path, *, phase: str = "train") -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.phase = phase

    def on_epoch(self, iteration: int, metrics: Mapping[str, object]) -> None:
        row: Dict[str, object] = {"iteration": int(iteration), "phase": self.phase}
        for key, value in iteration_values(metrics).items():
            row[key] = int(value) if isinstance(value, bool) else value
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=sorted(row.keys()))
            if handle.tell() == 0:
                writer.writeheader()
            writer.writerow(row)

    __call__ = on_epoch
