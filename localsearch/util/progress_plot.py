from pathlib import Path
from typing import Sequence

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np


def trace_arrays(trace: Sequence) -> dict[str, np.ndarray]:
    """Columns of a search trace as numpy arrays."""
    return {
        "iteration": np.array([entry.iteration for entry in trace], dtype=int),
        "current_hard": np.array([entry.current_cost.hard for entry in trace], dtype=int),
        "current_soft": np.array([entry.current_cost.soft for entry in trace], dtype=int),
        "best_hard": np.array([entry.best_cost.hard for entry in trace], dtype=int),
        "best_soft": np.array([entry.best_cost.soft for entry in trace], dtype=int),
        "accepted": np.array([entry.accepted for entry in trace], dtype=bool),
    }


def plot_progress(trace: Sequence, output_path, title: str = "Local search progress") -> Path:
    """
    Plot hard and soft cost per iteration, current and best, and save the figure.

    Args:
        trace: TraceEntry list from a SearchResult
        output_path: where to write the image, the format follows the file extension

    Returns:
        The path the figure was written to
    """
    if not trace:
        raise ValueError("Cannot plot an empty trace")
    columns = trace_arrays(trace)
    iterations = columns["iteration"]

    fig, (ax_hard, ax_soft) = plt.subplots(2, 1, figsize=(12, 8), sharex=True)

    ax_hard.plot(iterations, columns["current_hard"], color='red', alpha=0.4, linewidth=1, label='Current')
    ax_hard.plot(iterations, columns["best_hard"], color='red', linewidth=2.5, label='Best')
    ax_hard.set_ylabel('Hard violations', fontsize=12)
    ax_hard.grid(True, alpha=0.3)
    ax_hard.legend(fontsize=10)

    ax_soft.plot(iterations, columns["current_soft"], color='blue', alpha=0.4, linewidth=1, label='Current')
    ax_soft.plot(iterations, columns["best_soft"], color='blue', linewidth=2.5, label='Best')
    ax_soft.set_xlabel('Iteration', fontsize=12)
    ax_soft.set_ylabel('Soft penalty', fontsize=12)
    ax_soft.grid(True, alpha=0.3)
    ax_soft.legend(fontsize=10)

    acceptance_rate = columns["accepted"].mean() * 100
    fig.suptitle(f"{title} (acceptance rate {acceptance_rate:.1f}%)", fontsize=14, fontweight='bold')
    fig.tight_layout()

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    return output_path
