import math
import unittest

from swerve_control import config
from swerve_control.drive_io import ModuleInputs, ModuleIOReplay, module_records
from swerve_control.kinematics import ModuleState
from swerve_control.module import SwerveModule


class TestSwerveModule(unittest.TestCase):

    def make_module(self, records=None):
        io = ModuleIOReplay(records if records is not None else [ModuleInputs()])
        module = SwerveModule(io, 0)
        module.update_inputs()
        return module, io

    def test_position_delta(self):
        """The first snapshot is the baseline; later deltas pair distance with the new angle."""
        records = module_records([0.0, 0.1, 0.25], [0.0, 0.2, 0.2], config.WHEEL_RADIUS)
        module, _ = self.make_module(records)
        self.assertEqual(module.get_position_delta().distance, 0.0)

        module.update_inputs()
        self.assertAlmostEqual(module.get_position_delta().distance, 0.1)
        self.assertAlmostEqual(module.get_position_delta().angle, 0.2)

        module.update_inputs()
        self.assertAlmostEqual(module.get_position_delta().distance, 0.15)
        self.assertAlmostEqual(module.get_position().distance, 0.25)

    def test_run_setpoint_optimizes(self):
        module, io = self.make_module()
        optimized = module.run_setpoint(ModuleState(1.0, math.pi))

        self.assertAlmostEqual(optimized.speed, -1.0)
        self.assertAlmostEqual(optimized.angle, 0.0)
        drive_volts, turn_volts = io.last_voltages
        self.assertLess(drive_volts, 0.0)
        self.assertAlmostEqual(turn_volts, 0.0)

    def test_drive_speed_scaled_by_turn_error(self):
        module, io = self.make_module()
        module.run_setpoint(ModuleState(1.0, math.pi / 3.0))

        velocity = 0.5 / config.WHEEL_RADIUS
        expected = config.DRIVE_KS + config.DRIVE_KV * velocity + config.DRIVE_KP * velocity
        self.assertAlmostEqual(io.last_voltages[0], expected, places=6)

    def test_stop(self):
        module, io = self.make_module()
        module.run_setpoint(ModuleState(2.0, 0.5))
        module.stop()

        self.assertEqual(io.last_voltages, (0.0, 0.0))
        self.assertIsNone(module.angle_setpoint)
        self.assertIsNone(module.speed_setpoint)

    def test_open_loop_motors(self):
        module, io = self.make_module()

        module.run_drive_motor(20.0)
        self.assertEqual(io.last_voltages, (config.MAX_VOLTAGE, 0.0))

        module.run_turn_motor(-3.0)
        self.assertEqual(io.last_voltages, (0.0, -3.0))

    def test_characterization(self):
        module, io = self.make_module()
        module.run_characterization(2.0)

        self.assertEqual(io.last_voltages[0], 2.0)
        self.assertEqual(module.angle_setpoint, 0.0)
        self.assertIsNone(module.speed_setpoint)

    def test_measured_state(self):
        module, _ = self.make_module([ModuleInputs(drive_velocity_rad_per_sec=10.0,
                                                   turn_position=0.3)])
        state = module.get_state()
        self.assertAlmostEqual(state.speed, 10.0 * config.WHEEL_RADIUS)
        self.assertAlmostEqual(state.angle, 0.3)
        self.assertEqual(module.get_characterization_velocity(), 10.0)

    def test_brake_mode(self):
        module, io = self.make_module()
        module.set_brake_mode(False)
        self.assertEqual(io.brake_modes, [True, False])


if __name__ == '__main__':
    unittest.main()
