"""2D field geometry for odometry and chassis commands.

Provides the value types shared by the kinematics, the drive coordinator and
the path-follower adapter:
- Translation: a 2D vector (module offsets, field velocities)
- Pose: robot position and heading in the field frame
- Twist: body-frame motion since the last cycle
- ChassisSpeeds: body-frame velocity command

All angles are in radians, counter-clockwise positive.
"""

import math
from dataclasses import dataclass

# Below this the series expansions of sin(x)/x and (1-cos(x))/x are used
_EPSILON = 1e-9


def wrap_angle(angle: float) -> float:
    """Normalize an angle to [-pi, pi].

    Args:
        angle: Angle in radians

    Returns:
        Equivalent angle in [-pi, pi]
    """
    return math.atan2(math.sin(angle), math.cos(angle))


@dataclass(frozen=True)
class Translation:
    """2D vector in meters (or m/s when used as a velocity)."""

    x: float = 0.0
    y: float = 0.0

    @property
    def norm(self) -> float:
        return math.hypot(self.x, self.y)

    @property
    def angle(self) -> float:
        """Direction of the vector from +x (radians)."""
        return math.atan2(self.y, self.x)

    def rotate_by(self, angle: float) -> "Translation":
        """Rotate counter-clockwise by angle (radians)."""
        cos_a = math.cos(angle)
        sin_a = math.sin(angle)
        return Translation(self.x * cos_a - self.y * sin_a, self.x * sin_a + self.y * cos_a)


@dataclass(frozen=True)
class Twist:
    """Change in pose expressed in the robot's own frame at the start of the motion.

    Attributes:
        dx: Forward displacement (m)
        dy: Leftward displacement (m)
        dtheta: Heading change (rad)
    """

    dx: float = 0.0
    dy: float = 0.0
    dtheta: float = 0.0


@dataclass(frozen=True)
class Pose:
    """Robot pose in the field frame.

    Attributes:
        x: Field x position (m)
        y: Field y position (m)
        heading: Field heading (rad), kept in [-pi, pi]
    """

    x: float = 0.0
    y: float = 0.0
    heading: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "heading", wrap_angle(self.heading))

    @property
    def translation(self) -> Translation:
        return Translation(self.x, self.y)

    def exp(self, twist: Twist) -> "Pose":
        """Apply a body-frame twist using the SE(2) exponential map.

        The twist is integrated as a constant-curvature arc starting from this
        pose, so a robot that drives forward while turning ends up on the arc,
        not at pose + (dx, dy) in field coordinates.

        Args:
            twist: Motion since the last cycle in this pose's frame

        Returns:
            New pose at the end of the arc
        """
        dx, dy, dtheta = twist.dx, twist.dy, twist.dtheta

        sin_theta = math.sin(dtheta)
        cos_theta = math.cos(dtheta)

        if abs(dtheta) < _EPSILON:
            s = 1.0 - dtheta * dtheta / 6.0
            c = 0.5 * dtheta
        else:
            s = sin_theta / dtheta
            c = (1.0 - cos_theta) / dtheta

        # Arc endpoint in the robot frame, then rotated into the field frame
        local = Translation(dx * s - dy * c, dx * c + dy * s)
        delta = local.rotate_by(self.heading)

        return Pose(self.x + delta.x, self.y + delta.y, self.heading + dtheta)

    def log(self, end: "Pose") -> Twist:
        """Twist that carries this pose to ``end`` (inverse of exp).

        Args:
            end: Target pose

        Returns:
            Twist in this pose's frame such that self.exp(twist) == end
        """
        # Relative transform expressed in this pose's frame
        relative = Translation(end.x - self.x, end.y - self.y).rotate_by(-self.heading)
        dtheta = wrap_angle(end.heading - self.heading)

        half_dtheta = dtheta / 2.0
        cos_minus_one = math.cos(dtheta) - 1.0

        if abs(cos_minus_one) < _EPSILON:
            half_theta_by_tan_of_half_dtheta = 1.0 - dtheta * dtheta / 12.0
        else:
            half_theta_by_tan_of_half_dtheta = -(half_dtheta * math.sin(dtheta)) / cos_minus_one

        # Rotate by -half_dtheta and rescale in a single step
        a = half_theta_by_tan_of_half_dtheta
        b = -half_dtheta
        return Twist(
            relative.x * a - relative.y * b,
            relative.x * b + relative.y * a,
            dtheta,
        )


@dataclass(frozen=True)
class ChassisSpeeds:
    """Body-frame velocity command.

    Attributes:
        vx: Forward velocity (m/s)
        vy: Leftward velocity (m/s)
        omega: Counter-clockwise angular velocity (rad/s)
    """

    vx: float = 0.0
    vy: float = 0.0
    omega: float = 0.0

    def is_zero(self) -> bool:
        return self.vx == 0.0 and self.vy == 0.0 and self.omega == 0.0

    @staticmethod
    def discretize(speeds: "ChassisSpeeds", dt: float) -> "ChassisSpeeds":
        """Compensate a continuous command for being held constant over dt.

        Holding (vx, vy, omega) fixed for one period moves the robot along an
        arc, so translating while rotating drifts sideways. This finds the
        speeds whose arc ends at the pose the straight-line command intended.

        Args:
            speeds: Continuous-time chassis command
            dt: Control period (seconds)

        Returns:
            Discretized chassis speeds
        """
        desired = Pose(speeds.vx * dt, speeds.vy * dt, speeds.omega * dt)
        twist = Pose().log(desired)
        return ChassisSpeeds(twist.dx / dt, twist.dy / dt, twist.dtheta / dt)

    @staticmethod
    def from_field_relative(
        vx: float, vy: float, omega: float, robot_heading: float
    ) -> "ChassisSpeeds":
        """Convert field-frame velocities into a body-frame command.

        Args:
            vx: Field x velocity (m/s)
            vy: Field y velocity (m/s)
            omega: Angular velocity (rad/s)
            robot_heading: Current robot heading in the field frame (rad)
        """
        body = Translation(vx, vy).rotate_by(-robot_heading)
        return ChassisSpeeds(body.x, body.y, omega)
