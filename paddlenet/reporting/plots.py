"""Headless-safe convergence plot."""

from __future__ import annotations

from pathlib import Path
from typing import List, Tuple


class PlotAdapter:
    """Collect failing counts per iteration and optionally draw them."""

    def __init__(self, run_dir: str | Path, enable_plots: bool = False):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self._history: List[Tuple[int, float, float]] = []
        if self.enable_plots:
            self.run_dir.mkdir(parents=True, exist_ok=True)

    def on_epoch(self, iteration: int, metrics) -> None:
        if not self.enable_plots:
            return
        self._history.append(
            (iteration, float(metrics.get("failing", 0.0)), float(metrics.get("max_error", 0.0)))
        )

    def close(self) -> str | None:
        if not self.enable_plots or not self._history:
            return None
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # imported lazily for headless safety

        iterations, failing, max_error = zip(*self._history)
        fig, (ax_fail, ax_err) = plt.subplots(2, 1, sharex=True)
        ax_fail.step(iterations, failing, where="post")
        ax_fail.set_ylabel("Failing examples")
        ax_err.plot(iterations, max_error)
        ax_err.set_ylabel("Max |error|")
        ax_err.set_xlabel("Iteration")
        fig.suptitle("Convergence")
        plot_path = self.run_dir / "convergence.png"
        fig.savefig(plot_path)
        plt.close(fig)
        return str(plot_path)

    __call__ = on_epoch
