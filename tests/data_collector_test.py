import csv
import os
import tempfile
import unittest
from unittest import mock
from pathlib import Path

from swerve_control.data_collector import MECHANISM_HEADERS, MODULE_HEADERS, DataCollector
from swerve_control.drive import DriveRecord
from swerve_control.geometry import ChassisSpeeds, Pose
from swerve_control.kinematics import ModuleState


def read_rows(path):
    with open(path, newline="") as f:
        return list(csv.reader(f))


class TestDataCollector(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.run_dir = Path(self.tmp.name) / "run_test"

    def tearDown(self):
        self.tmp.cleanup()

    def test_disabled_cycle_leaves_setpoints_empty(self):
        record = DriveRecord(
            cycle=0,
            enabled=False,
            pose=Pose(1.0, 2.0, 0.5),
            measured_states=[ModuleState(0.0, 0.1)] * 4,
        )
        with DataCollector(run_dir=str(self.run_dir)) as collector:
            collector.log_drive(0.0, record)

        rows = read_rows(self.run_dir / "module_states.csv")
        self.assertEqual(rows[0], MODULE_HEADERS)
        self.assertEqual(len(rows), 5)
        for row in rows[1:]:
            self.assertEqual(row[5:], ["", "", "", ""])

        odometry = read_rows(self.run_dir / "odometry.csv")
        self.assertEqual(odometry[1][2:5], ["0", "1.0", "2.0"])
        self.assertAlmostEqual(float(odometry[1][5]), 0.5)

    def test_enabled_cycle_logs_setpoints(self):
        states = [ModuleState(1.0, 0.0)] * 4
        record = DriveRecord(
            cycle=3,
            enabled=True,
            pose=Pose(),
            measured_states=states,
            setpoints=states,
            optimized_setpoints=states,
            field_velocity=ChassisSpeeds(1.0, 0.0, 0.0),
        )
        with DataCollector(run_dir=str(self.run_dir)) as collector:
            collector.log_drive(0.06, record)

        rows = read_rows(self.run_dir / "module_states.csv")
        self.assertEqual(rows[1][5:], ["1.0", "0.0", "1.0", "0.0"])
        velocity = read_rows(self.run_dir / "field_velocity.csv")
        self.assertEqual(velocity[1], ["0.06", "1.0", "0.0", "0.0"])

    def test_mechanisms(self):
        diagnostics = {key: 0 for key in MECHANISM_HEADERS[1:]}
        diagnostics["arm_state"] = "manual"
        with DataCollector(run_dir=str(self.run_dir)) as collector:
            collector.log_mechanisms(0.0, diagnostics)

        rows = read_rows(self.run_dir / "mechanisms.csv")
        self.assertEqual(rows[0], MECHANISM_HEADERS)
        self.assertEqual(rows[1][1], "manual")

    def test_timestamped_run_dir(self):
        with mock.patch.dict(os.environ):
            os.environ.pop("RUN_DIR", None)
            collector = DataCollector(output_dir=self.tmp.name)
        self.assertTrue(collector.run_dir.name.startswith("run_"))
        self.assertEqual(collector.run_dir.parent.name, "results")


if __name__ == '__main__':
    unittest.main()
