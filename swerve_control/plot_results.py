#!/usr/bin/env python3
"""
Plot swerve telemetry from recorded runs.

Picks a run directory under results/ (the newest one unless --run names
another) and renders the trajectory, module speed and field velocity plots
from its CSVs.

Examples:
  python -m swerve_control.plot_results
  python -m swerve_control.plot_results --run run_20260101_120000 --save --no-show
  python -m swerve_control.plot_results --list
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import TERM_BLUE, TERM_RESET
from .visualization import plot_run_summary


def _run_dirs(results_dir: Path) -> List[Path]:
    """Run directories in results_dir, oldest first (names sort by timestamp)."""
    if not results_dir.exists():
        raise FileNotFoundError(f"No results directory at {results_dir}")
    return sorted(d for d in results_dir.iterdir() if d.is_dir() and d.name.startswith("run_"))


def find_latest_run(results_dir: Path) -> Path:
    """Newest run directory in results_dir.

    Raises:
        FileNotFoundError: If results_dir is missing or holds no runs.
    """
    run_dirs = _run_dirs(results_dir)
    if not run_dirs:
        raise FileNotFoundError(f"{results_dir} holds no runs yet")
    return run_dirs[-1]


def resolve_run(results_dir: Path, run: Optional[str]) -> Path:
    """Directory of the named run, or the latest run when run is None.

    Raises:
        FileNotFoundError: If the run does not exist.
    """
    if run is None:
        return find_latest_run(results_dir)

    run_dir = results_dir / run
    if not run_dir.is_dir():
        raise FileNotFoundError(f"Run directory not found: {run_dir}")
    return run_dir


def list_available_runs(results_dir: Path) -> None:
    try:
        run_dirs = _run_dirs(results_dir)
    except FileNotFoundError as e:
        logging.error(str(e))
        return

    if not run_dirs:
        logging.info(f"No runs recorded in {results_dir}")
        return

    logging.info(f"Runs in {results_dir}:")
    for i, run_dir in enumerate(run_dirs, 1):
        logging.info(f"  {i}. {run_dir.name}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Plot swerve telemetry from recorded runs",
        epilog="Run directories are named run_YYYYMMDD_HHMMSS.",
    )
    parser.add_argument("--run", default=None, help="Run directory name (default: newest run)")
    parser.add_argument(
        "--results-dir", default="results", help="Directory holding the runs (default: results)"
    )
    parser.add_argument("--save", action="store_true", help="Write PNGs into the run directory")
    parser.add_argument("--no-show", action="store_true", help="Do not open plot windows")
    parser.add_argument("--list", action="store_true", help="List recorded runs and exit")
    return parser


def main(argv=None) -> None:
    """Entry point for the plotting CLI."""
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    args = build_parser().parse_args(argv)
    results_dir = Path(args.results_dir)

    if args.list:
        list_available_runs(results_dir)
        return

    try:
        run_dir = resolve_run(results_dir, args.run)
        logging.info(f"{TERM_BLUE}Plotting {run_dir.name}{TERM_RESET}")
        plot_run_summary(run_dir=run_dir, save_plots=args.save, show_plots=not args.no_show)
    except FileNotFoundError as e:
        logging.error(str(e))
        sys.exit(1)

    if args.save:
        logging.info(f"{TERM_BLUE}✓ Saved plots to {run_dir}/{TERM_RESET}")


if __name__ == "__main__":
    main()
