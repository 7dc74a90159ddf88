"""Data collection and CSV logging for drive telemetry.

One CSV per stream, all written once per control cycle:
- odometry.csv: pose, gyro connection and enabled state
- module_states.csv: measured, setpoint and optimized setpoint per module
- field_velocity.csv: measured field-frame velocity and yaw rate
- mechanisms.csv: arm and intake state

Setpoint cells are left empty on disabled cycles so that "no command issued"
can be told apart from "zero command issued" when reading a log back.
"""

import csv
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, TextIO

from .config import TERM_BLUE, TERM_RESET
from .drive import DriveRecord

ODOMETRY_HEADERS = ["timestamp", "cycle", "enabled", "x", "y", "heading", "gyro_connected"]

MODULE_HEADERS = [
    "timestamp",
    "cycle",
    "module",
    "measured_speed",
    "measured_angle",
    "setpoint_speed",
    "setpoint_angle",
    "optimized_speed",
    "optimized_angle",
]

FIELD_VELOCITY_HEADERS = ["timestamp", "vx", "vy", "omega"]

MECHANISM_HEADERS = [
    "timestamp",
    "arm_state",
    "arm_angle",
    "arm_setpoint",
    "arm_volts",
    "piston_state",
    "intake_state",
    "has_note",
]


class DataCollector:
    """Writes the per-cycle telemetry CSVs of one run.

    Use as a context manager so the files are opened with headers on entry
    and flushed and closed on exit.

    Attributes:
        run_dir: Directory holding this run's CSVs.
    """

    def __init__(self, output_dir: str = ".", run_dir: Optional[str] = None) -> None:
        """
        Args:
            output_dir: Parent of results/; runs land in results/run_<timestamp>.
            run_dir: Explicit run directory. Falls back to the RUN_DIR
                environment variable, then to a fresh timestamped directory.

        Raises:
            ValueError: If output_dir exists and is a file.
        """
        output_path = Path(output_dir)
        if output_path.exists() and not output_path.is_dir():
            raise ValueError(f"Output path exists but is not a directory: {output_dir}")

        self.odometry_csv_file: Optional[TextIO] = None
        self.odometry_csv_writer: Any = None
        self.module_csv_file: Optional[TextIO] = None
        self.module_csv_writer: Any = None
        self.velocity_csv_file: Optional[TextIO] = None
        self.velocity_csv_writer: Any = None
        self.mechanism_csv_file: Optional[TextIO] = None
        self.mechanism_csv_writer: Any = None

        if run_dir:
            self.run_dir: Path = Path(run_dir)
        elif env_run_dir := os.environ.get("RUN_DIR"):
            self.run_dir = Path(env_run_dir)
        else:
            # results/run_YYYYMMDD_HHMMSS/
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self.run_dir = output_path / "results" / f"run_{timestamp}"

        self.run_dir.mkdir(parents=True, exist_ok=True)

        self.odometry_output_path: Path = self.run_dir / "odometry.csv"
        self.module_output_path: Path = self.run_dir / "module_states.csv"
        self.velocity_output_path: Path = self.run_dir / "field_velocity.csv"
        self.mechanism_output_path: Path = self.run_dir / "mechanisms.csv"

    def setup(self) -> None:
        """Create and open all CSV files with their column headers.

        Must be called before writing data.
        """
        self.odometry_csv_file = open(self.odometry_output_path, "w", newline="")
        self.odometry_csv_writer = csv.writer(self.odometry_csv_file)
        self.odometry_csv_writer.writerow(ODOMETRY_HEADERS)

        self.module_csv_file = open(self.module_output_path, "w", newline="")
        self.module_csv_writer = csv.writer(self.module_csv_file)
        self.module_csv_writer.writerow(MODULE_HEADERS)

        self.velocity_csv_file = open(self.velocity_output_path, "w", newline="")
        self.velocity_csv_writer = csv.writer(self.velocity_csv_file)
        self.velocity_csv_writer.writerow(FIELD_VELOCITY_HEADERS)

        self.mechanism_csv_file = open(self.mechanism_output_path, "w", newline="")
        self.mechanism_csv_writer = csv.writer(self.mechanism_csv_file)
        self.mechanism_csv_writer.writerow(MECHANISM_HEADERS)

        self._flush()
        print(
            f"{TERM_BLUE}✓ Initialized data collection to {self.run_dir}/{TERM_RESET}"
        )

    def log_drive(self, timestamp: float, record: DriveRecord) -> None:
        """Log one drive cycle to the odometry, module and velocity CSVs.

        Args:
            timestamp: Cycle time (seconds).
            record: Telemetry returned by Drive.periodic().
        """
        pose = record.pose
        self.odometry_csv_writer.writerow(
            [
                timestamp,
                record.cycle,
                int(record.enabled),
                pose.x,
                pose.y,
                pose.heading,
                int(record.gyro_connected),
            ]
        )

        for i, measured in enumerate(record.measured_states):
            row = [timestamp, record.cycle, i, measured.speed, measured.angle]
            if record.setpoints:
                row += [record.setpoints[i].speed, record.setpoints[i].angle]
            else:
                row += ["", ""]
            if record.optimized_setpoints:
                row += [record.optimized_setpoints[i].speed, record.optimized_setpoints[i].angle]
            else:
                row += ["", ""]
            self.module_csv_writer.writerow(row)

        velocity = record.field_velocity
        self.velocity_csv_writer.writerow([timestamp, velocity.vx, velocity.vy, velocity.omega])

        self._flush()

    def log_mechanisms(self, timestamp: float, diagnostics: Dict[str, Any]) -> None:
        """Log arm and intake state to CSV.

        Args:
            timestamp: Cycle time (seconds).
            diagnostics: Dictionary with keys matching MECHANISM_HEADERS
                (excluding 'timestamp').
        """
        self.mechanism_csv_writer.writerow(
            [timestamp] + [diagnostics[key] for key in MECHANISM_HEADERS[1:]]
        )
        if self.mechanism_csv_file:
            self.mechanism_csv_file.flush()

    def _flush(self) -> None:
        for f in (self.odometry_csv_file, self.module_csv_file, self.velocity_csv_file):
            if f:
                f.flush()

    def cleanup(self) -> None:
        """Close all CSV files and log final output location."""
        for f in (
            self.odometry_csv_file,
            self.module_csv_file,
            self.velocity_csv_file,
            self.mechanism_csv_file,
        ):
            if f:
                f.close()

        print(f"{TERM_BLUE}✓ Saved telemetry to {self.run_dir}/{TERM_RESET}")

    def __enter__(self) -> "DataCollector":
        self.setup()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.cleanup()
