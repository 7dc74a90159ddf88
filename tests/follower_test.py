import math
import unittest

from numpy.testing import assert_allclose

from swerve_control import config
from swerve_control.drive import Drive
from swerve_control.drive_io import GyroIOReplay, ModuleInputs, ModuleIOReplay
from swerve_control.follower import HolonomicDriveController, HolonomicFollowerAdapter, \
    Trajectory, TrajectorySample, flip_pose
from swerve_control.geometry import ChassisSpeeds, Pose
from swerve_control.paths import figure_eight, straight_line


def make_drive():
    return Drive(GyroIOReplay(), [ModuleIOReplay([ModuleInputs()]) for _ in range(4)])


class TestFlipPose(unittest.TestCase):

    def test_mirror(self):
        flipped = flip_pose(Pose(1.0, 2.0, 0.0), config.FIELD_LENGTH)
        self.assertAlmostEqual(flipped.x, config.FIELD_LENGTH - 1.0)
        self.assertAlmostEqual(flipped.y, 2.0)
        self.assertAlmostEqual(abs(flipped.heading), math.pi)

    def test_flip_twice_is_identity(self):
        pose = Pose(3.0, 4.0, 0.4)
        twice = flip_pose(flip_pose(pose, 10.0), 10.0)
        assert_allclose((twice.x, twice.y, twice.heading), (3.0, 4.0, 0.4), atol=1e-12)


class TestHolonomicFollowerAdapter(unittest.TestCase):

    def test_bridges_to_drive(self):
        drive = make_drive()
        adapter = HolonomicFollowerAdapter(drive)

        adapter.set_pose(Pose(1.0, 2.0, 0.5))
        self.assertEqual(drive.get_pose(), Pose(1.0, 2.0, 0.5))
        self.assertEqual(adapter.get_pose(), drive.get_pose())

        adapter.run_velocity(ChassisSpeeds(0.5, 0.0, 0.1))
        self.assertEqual(drive.setpoint, ChassisSpeeds(0.5, 0.0, 0.1))

        self.assertEqual(adapter.max_module_speed, config.MAX_LINEAR_SPEED)

    def test_to_alliance(self):
        alliance = {"red": False}
        adapter = HolonomicFollowerAdapter(make_drive(), should_flip=lambda: alliance["red"])
        pose = Pose(1.0, 1.0, 0.0)
        self.assertEqual(adapter.to_alliance(pose), pose)

        alliance["red"] = True
        self.assertAlmostEqual(adapter.to_alliance(pose).x, config.FIELD_LENGTH - 1.0)


class TestTrajectory(unittest.TestCase):

    def setUp(self):
        self.trajectory = Trajectory([
            TrajectorySample(0.0, Pose(0.0, 0.0, 0.0)),
            TrajectorySample(1.0, Pose(1.0, 2.0, 0.5)),
        ])

    def test_requires_two_increasing_samples(self):
        with self.assertRaises(ValueError):
            Trajectory([TrajectorySample(0.0, Pose())])
        with self.assertRaises(ValueError):
            Trajectory([TrajectorySample(1.0, Pose()), TrajectorySample(1.0, Pose())])

    def test_sample_interpolates_and_clamps(self):
        mid = self.trajectory.sample(0.5)
        assert_allclose((mid.x, mid.y, mid.heading), (0.5, 1.0, 0.25))
        self.assertEqual(self.trajectory.sample(-1.0), Pose(0.0, 0.0, 0.0))
        self.assertEqual(self.trajectory.sample(5.0), Pose(1.0, 2.0, 0.5))

    def test_velocity(self):
        velocity = self.trajectory.velocity(0.5)
        assert_allclose((velocity.vx, velocity.vy, velocity.omega), (1.0, 2.0, 0.5))
        self.assertTrue(self.trajectory.velocity(1.0).is_zero())

    def test_figure_eight_closes(self):
        trajectory = figure_eight(duration=20.0)
        start = trajectory.sample(0.0)
        end = trajectory.sample(trajectory.duration)
        self.assertAlmostEqual(trajectory.duration, 20.0)
        assert_allclose((start.x, start.y), (2.0, 2.0), atol=1e-9)
        assert_allclose((end.x, end.y), (2.0, 2.0), atol=1e-9)


class TestHolonomicDriveController(unittest.TestCase):

    def setUp(self):
        self.trajectory = straight_line(Pose(0.0, 0.0, 0.0), Pose(2.0, 0.0, 0.0), 2.0)

    def test_feedforward_on_path(self):
        drive = make_drive()
        controller = HolonomicDriveController(HolonomicFollowerAdapter(drive))
        controller.start(self.trajectory, 10.0)

        self.assertEqual(drive.get_pose(), Pose(0.0, 0.0, 0.0))
        speeds = controller.compute_control(10.0)
        assert_allclose((speeds.vx, speeds.vy, speeds.omega), (1.0, 0.0, 0.0), atol=1e-9)
        self.assertEqual(drive.setpoint, speeds)
        self.assertFalse(controller.is_finished(11.0))
        self.assertTrue(controller.is_finished(12.5))

    def test_corrects_position_error(self):
        drive = make_drive()
        controller = HolonomicDriveController(HolonomicFollowerAdapter(drive), translation_kp=2.0)
        controller.start(self.trajectory, 0.0, reset_pose=False)
        drive.set_pose(Pose(0.0, -0.5, 0.0))

        speeds = controller.compute_control(0.0)
        self.assertAlmostEqual(speeds.vy, 1.0)

    def test_red_alliance_mirrors_path(self):
        drive = make_drive()
        adapter = HolonomicFollowerAdapter(drive, should_flip=lambda: True)
        controller = HolonomicDriveController(adapter)
        controller.start(self.trajectory, 0.0)

        pose = drive.get_pose()
        self.assertAlmostEqual(pose.x, config.FIELD_LENGTH)
        self.assertAlmostEqual(abs(pose.heading), math.pi)

        # Facing the other way and driving toward it is still forward in the robot frame
        speeds = controller.compute_control(0.0)
        assert_allclose((speeds.vx, speeds.vy, speeds.omega), (1.0, 0.0, 0.0), atol=1e-9)

    def test_idle_without_trajectory(self):
        controller = HolonomicDriveController(HolonomicFollowerAdapter(make_drive()))
        self.assertTrue(controller.is_finished(0.0))
        self.assertTrue(controller.compute_control(0.0).is_zero())


if __name__ == '__main__':
    unittest.main()
