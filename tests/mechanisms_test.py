import math
import unittest

from swerve_control import config
from swerve_control.arm import Arm, ArmInputs, ArmIOSim, ArmPosition, ArmState, PistonState, \
    arm_to_position
from swerve_control.intake import IntakeState, NoteIntake, NoteIntakeIOSim


class TestArm(unittest.TestCase):

    def setUp(self):
        self.io = ArmIOSim()
        self.arm = Arm(self.io)

    def test_starts_manual_and_retracted(self):
        self.assertIs(self.arm.arm_state, ArmState.MANUAL)
        self.assertIs(self.arm.piston_state, PistonState.RETRACTED)

    def test_manual_holds_against_gravity(self):
        self.arm.periodic(True, 0.0)
        self.assertAlmostEqual(self.io.volts, config.ARM_FF_KG)

    def test_manual_input_is_clamped(self):
        self.arm.set_manual(3.0)
        self.assertEqual(self.arm.manual_input, 1.0)

    def test_go_to_preset(self):
        target = arm_to_position(self.arm, ArmPosition.AMP)
        self.assertEqual(target, config.ARM_AMP_POSITION)
        self.assertIs(self.arm.arm_state, ArmState.GO_TO_POSITION)
        self.assertFalse(self.arm.has_reached_target())

        for i in range(150):
            self.arm.periodic(True, i * 0.02)

        self.assertTrue(self.arm.has_reached_target())
        self.assertAlmostEqual(self.arm.setpoint.position, config.ARM_AMP_POSITION)

    def test_profile_starts_on_first_profiled_cycle(self):
        self.arm.periodic(True, 1.0)
        start = self.arm.inputs.angle_rads
        arm_to_position(self.arm, ArmPosition.AMP)

        self.arm.periodic(True, 1.02)
        self.assertAlmostEqual(self.arm.profile_start_time, 1.02)
        self.assertAlmostEqual(self.arm.setpoint.position, start)

    def test_hold_current_angle(self):
        self.arm.periodic(True, 0.0)
        self.arm.set_target_to_current()
        self.arm.set_go_to_position()

        self.assertEqual(self.arm.goal.position, self.arm.inputs.angle_rads)
        self.assertEqual(self.arm.goal.velocity, 0.0)
        self.arm.periodic(True, 0.02)
        self.assertIs(self.arm.arm_state, ArmState.GO_TO_POSITION)

    def test_disable_returns_to_manual(self):
        arm_to_position(self.arm, ArmPosition.TRAP)
        self.arm.periodic(False, 0.0)
        self.assertIs(self.arm.arm_state, ArmState.MANUAL)

    def test_piston(self):
        self.arm.set_extended()
        self.arm.periodic(True, 0.0)
        self.assertTrue(self.io.extended)

        self.arm.set_retracted()
        self.arm.periodic(True, 0.02)
        self.assertFalse(self.io.extended)

    def test_unhandled_state_raises(self):
        self.arm.arm_state = "bogus"
        with self.assertRaises(ValueError):
            self.arm.periodic(True, 0.0)

    def test_inputs_in_degrees(self):
        self.assertAlmostEqual(ArmInputs(angle_rads=math.pi / 2.0).angle_degs, 90.0)


class TestNoteIntake(unittest.TestCase):

    def setUp(self):
        self.io = NoteIntakeIOSim(cycles_to_note=3)
        self.intake = NoteIntake(self.io)

    def test_intake_until_note(self):
        self.intake.start_intake()
        self.intake.periodic(True)
        self.assertIs(self.intake.state, IntakeState.INTAKING)
        self.assertEqual(self.io.volts, config.INTAKE_VOLTAGE)

        for _ in range(5):
            self.intake.periodic(True)

        self.assertTrue(self.intake.has_note())
        self.assertIs(self.intake.state, IntakeState.IDLE)
        self.assertEqual(self.io.volts, 0.0)

    def test_no_intake_with_note(self):
        self.io.has_note = True
        self.intake.periodic(True)
        self.intake.start_intake()
        self.assertIs(self.intake.state, IntakeState.IDLE)

    def test_eject(self):
        self.io.has_note = True
        self.intake.eject()
        self.intake.periodic(True)
        self.assertEqual(self.io.volts, config.EJECT_VOLTAGE)

        self.intake.periodic(True)
        self.assertFalse(self.intake.has_note())

    def test_disable_stops(self):
        self.intake.start_intake()
        self.intake.periodic(False)
        self.assertIs(self.intake.state, IntakeState.IDLE)
        self.assertEqual(self.io.volts, 0.0)

    def test_unhandled_state_raises(self):
        self.intake.state = "bogus"
        with self.assertRaises(ValueError):
            self.intake.periodic(True)


if __name__ == '__main__':
    unittest.main()
