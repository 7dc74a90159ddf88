import math
import unittest

from numpy.testing import assert_allclose

from swerve_control import config
from swerve_control.drive import Drive
from swerve_control.drive_io import GyroInputs, GyroIOReplay, ModuleInputs, ModuleIOReplay, \
    module_records
from swerve_control.errors import ConfigurationError
from swerve_control.geometry import ChassisSpeeds, Pose

HALF = config.TRACK_WIDTH_X / 2.0
ROTATION_ANGLES = [0.75 * math.pi, 0.25 * math.pi, -0.75 * math.pi, -0.25 * math.pi]
X_ANGLES = [0.25 * math.pi, -0.25 * math.pi, 0.75 * math.pi, -0.75 * math.pi]


def make_drive(records=None, gyro_records=None, **kwargs):
    """Drive over replayed module and gyro inputs."""
    if records is None:
        records = [[ModuleInputs()] for _ in range(4)]
    ios = [ModuleIOReplay(r) for r in records]
    gyro = GyroIOReplay(list(gyro_records or []))
    return Drive(gyro, ios, **kwargs), gyro, ios


def spin_records(distances):
    return [module_records(distances, [a] * len(distances), config.WHEEL_RADIUS)
            for a in ROTATION_ANGLES]


class TestOdometry(unittest.TestCase):

    def test_straight_line(self):
        records = [module_records([0.0, 0.1, 0.2], [0.0] * 3, config.WHEEL_RADIUS)] * 4
        drive, _, _ = make_drive(records)
        for _ in range(3):
            drive.periodic(False)

        pose = drive.get_pose()
        assert_allclose((pose.x, pose.y, pose.heading), (0.2, 0.0, 0.0), atol=1e-9)

    def test_heading_from_kinematics_without_gyro(self):
        drive, _, _ = make_drive(spin_records([0.0, 0.01, 0.02]))
        for _ in range(3):
            record = drive.periodic(False)

        expected = 0.02 / (HALF * math.sqrt(2.0))
        self.assertFalse(record.gyro_connected)
        self.assertAlmostEqual(drive.get_rotation(), expected)
        self.assertAlmostEqual(drive.last_gyro_rotation, expected)
        assert_allclose((drive.get_pose().x, drive.get_pose().y), (0.0, 0.0), atol=1e-9)

    def test_gyro_overrides_kinematics(self):
        gyro = [GyroInputs(connected=True, yaw_position=0.0)] * 3
        drive, _, _ = make_drive(spin_records([0.0, 0.01, 0.02]), gyro)
        for _ in range(3):
            record = drive.periodic(False)

        self.assertTrue(record.gyro_connected)
        self.assertAlmostEqual(drive.get_rotation(), 0.0)

    def test_first_gyro_reading_is_baseline(self):
        gyro = [GyroInputs(True, 0.5), GyroInputs(True, 0.6), GyroInputs(True, 0.8)]
        drive, _, _ = make_drive(gyro_records=gyro)

        drive.periodic(False)
        self.assertAlmostEqual(drive.get_rotation(), 0.0)
        drive.periodic(False)
        drive.periodic(False)
        self.assertAlmostEqual(drive.get_rotation(), 0.3)

    def test_gyro_dropout_and_reconnect(self):
        step = 0.01 / (HALF * math.sqrt(2.0))
        gyro = [
            GyroInputs(False),
            GyroInputs(False),
            GyroInputs(True, 0.0),
            GyroInputs(True, 0.1),
            GyroInputs(False),
        ]
        drive, _, _ = make_drive(spin_records([0.0, 0.01, 0.02, 0.03, 0.04]), gyro)

        connected = []
        headings = []
        for _ in range(5):
            record = drive.periodic(False)
            connected.append(record.gyro_connected)
            headings.append(record.pose.heading)

        self.assertEqual(connected, [False, False, True, True, False])
        # Kinematics, then gyro (pulling the spin back to its reading), then kinematics again
        assert_allclose(headings, [0.0, step, 0.0, 0.1, 0.1 + step], atol=1e-9)

    def test_yaw_accessors(self):
        gyro = [GyroInputs(True, 0.0, 0.7), GyroInputs(True, 0.4, 0.7), GyroInputs(False, 0.4, 0.7)]
        drive, _, _ = make_drive(gyro_records=gyro)

        drive.periodic(False)
        drive.periodic(False)
        self.assertAlmostEqual(drive.get_yaw(), 0.4)
        self.assertAlmostEqual(drive.get_yaw_velocity(), 0.7)

        drive.periodic(False)
        self.assertAlmostEqual(drive.get_yaw(), drive.get_rotation())
        self.assertEqual(drive.get_yaw_velocity(), 0.0)

    def test_field_velocity(self):
        moving = ModuleInputs(drive_velocity_rad_per_sec=1.0 / config.WHEEL_RADIUS)
        drive, _, _ = make_drive([[moving] for _ in range(4)])
        drive.set_pose(Pose(0.0, 0.0, math.pi / 2.0))
        drive.periodic(False)

        velocity = drive.get_field_velocity()
        assert_allclose((velocity.vx, velocity.vy, velocity.omega), (0.0, 1.0, 0.0), atol=1e-9)
        chassis = drive.get_chassis_velocity()
        assert_allclose((chassis.vx, chassis.vy), (1.0, 0.0), atol=1e-9)


class TestSetpoints(unittest.TestCase):

    def test_disabled_records_no_setpoints(self):
        drive, _, ios = make_drive()
        drive.run_velocity(ChassisSpeeds(1.0, 0.0, 0.0))
        record = drive.periodic(False)

        self.assertEqual(record.setpoints, [])
        self.assertEqual(record.optimized_setpoints, [])
        for io in ios:
            self.assertEqual(io.last_voltages, (0.0, 0.0))

    def test_enabled_sends_setpoints(self):
        drive, _, _ = make_drive()
        drive.run_velocity(ChassisSpeeds(1.0, 0.0, 0.0))
        record = drive.periodic(True)

        self.assertTrue(record.enabled)
        assert_allclose([s.speed for s in record.setpoints], [1.0] * 4)
        assert_allclose([s.angle for s in record.optimized_setpoints], [0.0] * 4, atol=1e-9)
        self.assertEqual(record.cycle, 0)
        self.assertEqual(drive.periodic(True).cycle, 1)

    def test_desaturation(self):
        drive, _, _ = make_drive()
        drive.run_velocity(ChassisSpeeds(10.0, 0.0, 0.0))
        record = drive.periodic(True)
        assert_allclose([s.speed for s in record.setpoints], [config.MAX_LINEAR_SPEED] * 4)

        drive, _, _ = make_drive(desaturate=False)
        drive.run_velocity(ChassisSpeeds(10.0, 0.0, 0.0))
        record = drive.periodic(True)
        assert_allclose([s.speed for s in record.setpoints], [10.0] * 4)

    def test_stop_with_x_then_drive(self):
        drive, _, _ = make_drive()
        drive.stop_with_x()
        record = drive.periodic(True)

        assert_allclose([s.speed for s in record.setpoints], [0.0] * 4)
        assert_allclose([s.angle for s in record.setpoints], X_ANGLES)

        drive.run_velocity(ChassisSpeeds(1.0, 0.0, 0.0))
        record = drive.periodic(True)
        assert_allclose([s.angle for s in record.setpoints], [0.0] * 4, atol=1e-9)

    def test_stop_keeps_headings(self):
        drive, _, _ = make_drive()
        drive.run_velocity(ChassisSpeeds(0.0, 1.0, 0.0))
        drive.periodic(True)
        drive.stop()
        record = drive.periodic(True)

        assert_allclose([s.speed for s in record.setpoints], [0.0] * 4)
        assert_allclose([s.angle for s in record.setpoints], [math.pi / 2.0] * 4)


class TestTuningModes(unittest.TestCase):

    def test_characterization(self):
        records = [[ModuleInputs(drive_velocity_rad_per_sec=v)] for v in (1.0, 2.0, 3.0, 4.0)]
        drive, _, ios = make_drive(records)
        drive.periodic(False)
        drive.run_characterization_volts(2.0)

        for io in ios:
            self.assertEqual(io.last_voltages[0], 2.0)
        self.assertAlmostEqual(drive.get_characterization_velocity(), 2.5)

    def test_drive_ramp_targets_one_module(self):
        drive, _, ios = make_drive()
        drive.set_module_test_index(2)
        drive.run_drive_command_ramp_volts(3.0)

        self.assertEqual(ios[2].last_voltages, (3.0, 0.0))
        for i in (0, 1, 3):
            self.assertEqual(ios[i].last_voltages, (0.0, 0.0))

    def test_turn_ramp_targets_one_module(self):
        drive, _, ios = make_drive()
        drive.run_turn_command_ramp_volts(-1.5)

        self.assertEqual(ios[0].last_voltages, (0.0, -1.5))
        self.assertEqual(ios[3].last_voltages, (0.0, 0.0))

    def test_test_index_bounds(self):
        drive, _, _ = make_drive()
        with self.assertRaises(ValueError):
            drive.set_module_test_index(4)
        with self.assertRaises(ValueError):
            drive.set_module_test_index(-1)


class TestDriveConfiguration(unittest.TestCase):

    def test_wrong_module_count(self):
        with self.assertRaises(ConfigurationError):
            Drive(GyroIOReplay(), [ModuleIOReplay([]) for _ in range(3)])

    def test_speed_limits(self):
        drive, _, _ = make_drive()
        self.assertEqual(drive.get_max_linear_speed(), config.MAX_LINEAR_SPEED)
        self.assertAlmostEqual(
            drive.get_max_angular_speed(), config.MAX_LINEAR_SPEED / (HALF * math.sqrt(2.0))
        )

    def test_reset_field_heading(self):
        drive, gyro, _ = make_drive()
        drive.reset_field_heading()
        self.assertEqual(gyro.resets, 1)

    def test_brake_mode(self):
        drive, _, ios = make_drive()
        drive.set_brake_mode(False)
        for io in ios:
            self.assertEqual(io.brake_modes[-1], False)


if __name__ == '__main__':
    unittest.main()
