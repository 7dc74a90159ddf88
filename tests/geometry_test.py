import math
import unittest

from numpy.testing import assert_allclose

from swerve_control.geometry import ChassisSpeeds, Pose, Translation, Twist, wrap_angle


def as_tuple(pose):
    return (pose.x, pose.y, pose.heading)


class TestPose(unittest.TestCase):

    def test_heading_is_wrapped(self):
        self.assertAlmostEqual(Pose(0.0, 0.0, 1.5 * math.pi).heading, -0.5 * math.pi)
        self.assertAlmostEqual(wrap_angle(2.5 * math.pi), 0.5 * math.pi)

    def test_exp_straight(self):
        """A twist without rotation is a straight line in the robot frame."""
        pose = Pose(1.0, 2.0, math.pi / 2.0).exp(Twist(1.0, 0.0, 0.0))
        assert_allclose(as_tuple(pose), (1.0, 3.0, math.pi / 2.0), atol=1e-9)

    def test_exp_quarter_arc(self):
        """Driving a quarter circle of radius 1 ends up at (1, 1) facing left."""
        pose = Pose().exp(Twist(math.pi / 2.0, 0.0, math.pi / 2.0))
        assert_allclose(as_tuple(pose), (1.0, 1.0, math.pi / 2.0), atol=1e-9)

    def test_exp_tiny_rotation_uses_series(self):
        pose = Pose().exp(Twist(1.0, 0.0, 1e-12))
        assert_allclose(as_tuple(pose), (1.0, 0.0, 1e-12), atol=1e-9)

    def test_log_inverts_exp(self):
        start = Pose(1.0, 2.0, 0.3)
        end = Pose(2.5, 3.0, 1.1)
        twist = start.log(end)
        assert_allclose(as_tuple(start.exp(twist)), as_tuple(end), atol=1e-9)

    def test_log_of_same_pose_is_zero(self):
        twist = Pose(3.0, -1.0, 2.0).log(Pose(3.0, -1.0, 2.0))
        assert_allclose((twist.dx, twist.dy, twist.dtheta), (0.0, 0.0, 0.0), atol=1e-12)


class TestTranslation(unittest.TestCase):

    def test_rotate_by(self):
        rotated = Translation(1.0, 0.0).rotate_by(math.pi / 2.0)
        assert_allclose((rotated.x, rotated.y), (0.0, 1.0), atol=1e-12)

    def test_norm_and_angle(self):
        t = Translation(-1.0, 1.0)
        self.assertAlmostEqual(t.norm, math.sqrt(2.0))
        self.assertAlmostEqual(t.angle, 0.75 * math.pi)


class TestChassisSpeeds(unittest.TestCase):

    def test_discretize_without_rotation_is_identity(self):
        speeds = ChassisSpeeds.discretize(ChassisSpeeds(1.0, 0.5, 0.0), 0.02)
        assert_allclose((speeds.vx, speeds.vy, speeds.omega), (1.0, 0.5, 0.0), atol=1e-12)

    def test_discretize_reaches_intended_pose(self):
        """Holding the discretized command for dt lands where the raw command points."""
        dt = 0.02
        raw = ChassisSpeeds(3.0, -1.0, 4.0)
        discrete = ChassisSpeeds.discretize(raw, dt)

        pose = Pose().exp(Twist(discrete.vx * dt, discrete.vy * dt, discrete.omega * dt))
        assert_allclose(as_tuple(pose), (raw.vx * dt, raw.vy * dt, raw.omega * dt), atol=1e-9)
        self.assertAlmostEqual(discrete.omega, raw.omega)

    def test_discretize_zero_stays_zero(self):
        self.assertTrue(ChassisSpeeds.discretize(ChassisSpeeds(), 0.02).is_zero())

    def test_from_field_relative(self):
        speeds = ChassisSpeeds.from_field_relative(1.0, 0.0, 0.5, math.pi / 2.0)
        assert_allclose((speeds.vx, speeds.vy, speeds.omega), (0.0, -1.0, 0.5), atol=1e-12)


if __name__ == '__main__':
    unittest.main()
