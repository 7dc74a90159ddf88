"""Shared plotting utilities and styles for swerve telemetry plots.

This module provides:
- Color scheme and colormap
- CSV loading into numpy arrays
- Common axis styling

All visualization modules import from here so the plots look alike.
"""

import csv
from pathlib import Path
from typing import Dict, List

import numpy as np
from matplotlib.axes import Axes
from matplotlib.colors import LinearSegmentedColormap
from matplotlib.figure import Figure

from .config import PLOT_BLUE, PLOT_CREAM, PLOT_DARK_BLUE, PLOT_ORANGE

__all__ = [
    "PLOT_ORANGE",
    "PLOT_BLUE",
    "PLOT_CREAM",
    "PLOT_DARK_BLUE",
    "TIME_CMAP",
    "MODULE_COLORS",
    "load_csv_to_dict",
    "style_axis",
    "add_legend",
    "save_figure",
]

TIME_CMAP = LinearSegmentedColormap.from_list("swerve_time", [PLOT_ORANGE, PLOT_BLUE])
"""Colormap used to shade trajectories by time, orange to blue."""

MODULE_COLORS = [PLOT_ORANGE, PLOT_BLUE, "#f7b723", "#23f7a8"]
"""One color per module, in FL, FR, BL, BR order."""


def load_csv_to_dict(csv_path: Path) -> Dict[str, np.ndarray]:
    """Read a telemetry CSV into one float array per column.

    Blank and non-numeric cells load as NaN, so the empty setpoint columns of
    disabled cycles plot as gaps.

    Raises:
        FileNotFoundError: If csv_path is missing.

    Example:
        >>> data = load_csv_to_dict(Path("odometry.csv"))
        >>> data["x"].shape
        (500,)
    """
    if not csv_path.exists():
        raise FileNotFoundError(f"Missing telemetry file: {csv_path}")

    with open(csv_path, newline="") as f:
        reader = csv.DictReader(f)
        data: Dict[str, List[float]] = {key: [] for key in reader.fieldnames or []}
        for row in reader:
            for key, value in row.items():
                try:
                    data[key].append(float(value))
                except (ValueError, TypeError):
                    data[key].append(np.nan)

    return {key: np.array(values) for key, values in data.items()}


def style_axis(ax: Axes, title: str = "", xlabel: str = "", ylabel: str = "") -> None:
    """Apply the dark theme to a matplotlib axis.

    Args:
        ax: Matplotlib axis to style.
        title: Plot title (optional).
        xlabel: X-axis label (optional).
        ylabel: Y-axis label (optional).
    """
    if title:
        ax.set_title(title, fontweight="bold", color=PLOT_CREAM)
    if xlabel:
        ax.set_xlabel(xlabel, color=PLOT_CREAM)
    if ylabel:
        ax.set_ylabel(ylabel, color=PLOT_CREAM)

    ax.grid(True, alpha=0.3, linestyle="--", linewidth=0.5)
    ax.set_facecolor(PLOT_DARK_BLUE)
    ax.tick_params(colors=PLOT_CREAM)
    for spine in ax.spines.values():
        spine.set_edgecolor(PLOT_CREAM)


def add_legend(ax: Axes, loc: str = "best", **kwargs) -> None:
    """Add a legend matching the dark theme."""
    legend_kwargs = {
        "loc": loc,
        "framealpha": 0.9,
        "facecolor": PLOT_DARK_BLUE,
        "labelcolor": PLOT_CREAM,
        "edgecolor": PLOT_CREAM,
    }
    legend_kwargs.update(kwargs)
    ax.legend(**legend_kwargs)


def save_figure(fig: Figure, filepath: Path, dpi: int = 150) -> None:
    fig.savefig(filepath, dpi=dpi, bbox_inches="tight", facecolor=fig.get_facecolor())
    print(f"Wrote {filepath}")
