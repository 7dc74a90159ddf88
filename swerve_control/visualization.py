"""
Visualization utilities for swerve drive telemetry.

This module loads the CSV files written by DataCollector and plots the
odometry trajectory (with the autonomous reference path), the per-module
measured and commanded wheel speeds, and the field-relative velocity.
"""

from pathlib import Path
from typing import Dict, Optional

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure

from .module import MODULE_NAMES
from .follower import Trajectory
from .paths import figure_eight
from .plot_styles import (
    MODULE_COLORS,
    PLOT_BLUE,
    PLOT_CREAM,
    PLOT_DARK_BLUE,
    PLOT_ORANGE,
    TIME_CMAP,
    add_legend,
    load_csv_to_dict,
    save_figure,
    style_axis,
)


def plot_odometry_trajectory(
    odometry: Dict[str, np.ndarray],
    title: str = "Odometry Trajectory",
    save_path: Optional[Path] = None,
    reference: Optional[Trajectory] = None,
) -> Figure:
    """Plot the estimated x-y path, shaded by time.

    Args:
        odometry: Dictionary with 'timestamp', 'x', 'y' and 'heading' arrays.
        title: Plot title.
        save_path: Optional path to save the figure.
        reference: Optional trajectory to overlay.

    Returns:
        Matplotlib figure object.
    """
    fig, ax = plt.subplots(figsize=(10, 8), facecolor=PLOT_DARK_BLUE)

    x = odometry["x"]
    y = odometry["y"]
    timestamps = odometry["timestamp"]

    valid_mask = ~(np.isnan(x) | np.isnan(y))
    x = x[valid_mask]
    y = y[valid_mask]
    timestamps = timestamps[valid_mask]

    if len(timestamps) > 0:
        ax.plot(x, y, "-", color=PLOT_ORANGE, linewidth=1.5, alpha=0.6, label="Odometry", zorder=1)
        scatter = ax.scatter(
            x, y, c=timestamps, cmap=TIME_CMAP, s=12, alpha=0.8, linewidths=0, zorder=3
        )
        fig.colorbar(scatter, ax=ax, label="Time (s)")

        ax.plot(x[0], y[0], "o", color=PLOT_BLUE, markersize=8, label="Start", zorder=5,
                markeredgecolor="black")
        ax.plot(x[-1], y[-1], "o", color=PLOT_ORANGE, markersize=8, label="End", zorder=5,
                markeredgecolor="black")

    if reference is not None:
        ref_x = [s.pose.x for s in reference.samples]
        ref_y = [s.pose.y for s in reference.samples]
        ax.plot(ref_x, ref_y, "--", color=PLOT_CREAM, linewidth=1.5, alpha=0.7,
                label="Reference", zorder=2)

    style_axis(ax, title=title, xlabel="X (m)", ylabel="Y (m)")
    ax.set_aspect("equal", adjustable="datalim")
    add_legend(ax)
    fig.tight_layout()

    if save_path:
        save_figure(fig, save_path)

    return fig


def plot_module_speeds(
    modules: Dict[str, np.ndarray],
    title: str = "Module Speeds",
    save_path: Optional[Path] = None,
) -> Figure:
    """Plot measured and optimized setpoint speed for each module.

    Cycles where the drive was disabled have blank setpoints, which load as
    NaN and show as gaps in the dashed lines.

    Args:
        modules: Dictionary loaded from module_states.csv.
        title: Plot title.
        save_path: Optional path to save the figure.

    Returns:
        Matplotlib figure object.
    """
    fig, axes = plt.subplots(2, 2, figsize=(12, 8), sharex=True, facecolor=PLOT_DARK_BLUE)
    fig.suptitle(title, fontsize=14, fontweight="bold", color=PLOT_CREAM)

    for index, ax in enumerate(axes.flat):
        mask = modules["module"] == index
        t = modules["timestamp"][mask]
        color = MODULE_COLORS[index % len(MODULE_COLORS)]

        ax.plot(t, modules["measured_speed"][mask], "-", color=color, label="Measured")
        ax.plot(t, modules["optimized_speed"][mask], "--", color=PLOT_CREAM, alpha=0.8,
                label="Setpoint")

        name = MODULE_NAMES[index] if index < len(MODULE_NAMES) else str(index)
        style_axis(ax, title=name, xlabel="Time (s)", ylabel="Speed (m/s)")
        add_legend(ax, loc="upper right", fontsize=8)

    fig.tight_layout()

    if save_path:
        save_figure(fig, save_path)

    return fig


def plot_field_velocity(
    velocity: Dict[str, np.ndarray],
    title: str = "Field Velocity",
    save_path: Optional[Path] = None,
) -> Figure:
    fig, (ax_lin, ax_ang) = plt.subplots(2, 1, figsize=(10, 7), sharex=True,
                                         facecolor=PLOT_DARK_BLUE)

    t = velocity["timestamp"]
    ax_lin.plot(t, velocity["vx"], color=PLOT_ORANGE, label="vx")
    ax_lin.plot(t, velocity["vy"], color=PLOT_BLUE, label="vy")
    style_axis(ax_lin, title=title, ylabel="Velocity (m/s)")
    add_legend(ax_lin)

    ax_ang.plot(t, velocity["omega"], color=PLOT_CREAM, label="omega")
    style_axis(ax_ang, xlabel="Time (s)", ylabel="Angular velocity (rad/s)")
    add_legend(ax_ang)

    fig.tight_layout()

    if save_path:
        save_figure(fig, save_path)

    return fig


def plot_run_summary(run_dir: Path, save_plots: bool = False, show_plots: bool = True) -> None:
    """Generate all plots for a run directory.

    Args:
        run_dir: Directory containing odometry.csv, module_states.csv and
            field_velocity.csv.
        save_plots: If True, save PNG files next to the CSVs.
        show_plots: If True, display the plots interactively.

    Raises:
        FileNotFoundError: If a CSV file is missing.
    """
    odometry = load_csv_to_dict(run_dir / "odometry.csv")
    modules = load_csv_to_dict(run_dir / "module_states.csv")
    velocity = load_csv_to_dict(run_dir / "field_velocity.csv")

    def target(name: str) -> Optional[Path]:
        return run_dir / name if save_plots else None

    plot_odometry_trajectory(odometry, save_path=target("odometry.png"), reference=figure_eight())
    plot_module_speeds(modules, save_path=target("module_speeds.png"))
    plot_field_velocity(velocity, save_path=target("field_velocity.png"))

    if show_plots:
        plt.show()
    else:
        plt.close("all")
