"""
Swerve drive kinematics.

This module converts between a body-frame chassis velocity and the four
module states (wheel speed and steering angle), and integrates module
distance deltas into a body-frame twist for odometry.

For a module mounted at (x_i, y_i) relative to the robot centre, the velocity
of the wheel contact point is:
    v_xi = vx - omega * y_i
    v_yi = vy + omega * x_i

Stacking these rows for every module gives the inverse kinematics matrix A
(2N x 3). Forward kinematics solves the over-determined system in the
least-squares sense with the pseudo-inverse of A.
"""

import math
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from .errors import ConfigurationError
from .geometry import ChassisSpeeds, Translation, Twist, wrap_angle


@dataclass(frozen=True)
class ModuleState:
    """Wheel speed (m/s) and steering angle (rad) of one module."""

    speed: float = 0.0
    angle: float = 0.0

    @staticmethod
    def optimize(desired: "ModuleState", current_angle: float) -> "ModuleState":
        """Pick the equivalent target that needs at most 90 degrees of rotation.

        A wheel pointed at angle + pi driving backwards moves the robot the
        same way as the original target, so whenever the error exceeds pi/2
        the target is flipped and the speed negated.

        Args:
            desired: Target state from the kinematics
            current_angle: Measured module angle (rad)

        Returns:
            Equivalent state whose angle is within pi/2 of current_angle
        """
        delta = wrap_angle(desired.angle - current_angle)
        if abs(delta) > math.pi / 2.0:
            return ModuleState(-desired.speed, wrap_angle(desired.angle + math.pi))
        return ModuleState(desired.speed, wrap_angle(desired.angle))


@dataclass(frozen=True)
class ModulePosition:
    """Cumulative wheel distance (m) and steering angle (rad) of one module."""

    distance: float = 0.0
    angle: float = 0.0


class SwerveKinematics:
    """Inverse and forward kinematics for a swerve drive with fixed module geometry.

    Besides the geometry, the only state kept is the reference heading of each
    module. A zero chassis command returns zero-speed states at these headings
    so the wheels hold their orientation instead of snapping to 0 rad, and
    reset_headings() can point them anywhere (e.g. an X pattern) without
    moving the robot.

    Attributes:
        translations: Module positions relative to the robot centre (m)
        num_modules: Number of modules
    """

    def __init__(self, translations: Sequence[Translation]):
        """Build the kinematics matrices.

        Args:
            translations: Module positions relative to the robot centre, in the
                same order the module states are produced and consumed.

        Raises:
            ConfigurationError: If fewer than two modules are given or two
                modules share a position (the forward solve is then singular).
        """
        if len(translations) < 2:
            raise ConfigurationError(
                f"Swerve drive requires at least 2 modules, got {len(translations)}"
            )
        if len({(t.x, t.y) for t in translations}) != len(translations):
            raise ConfigurationError(f"Duplicate module translations: {list(translations)}")

        self.translations: List[Translation] = list(translations)
        self.num_modules: int = len(translations)

        # Inverse kinematics: [v_x0, v_y0, v_x1, v_y1, ...] = A @ [vx, vy, omega]
        self.inverse_matrix = np.zeros((self.num_modules * 2, 3))
        for i, t in enumerate(self.translations):
            self.inverse_matrix[i * 2, :] = [1.0, 0.0, -t.y]
            self.inverse_matrix[i * 2 + 1, :] = [0.0, 1.0, t.x]

        # Least-squares forward kinematics
        self.forward_matrix = np.linalg.pinv(self.inverse_matrix)

        self.module_headings: List[float] = [0.0] * self.num_modules

    def to_wheel_states(self, chassis_speeds: ChassisSpeeds) -> List[ModuleState]:
        """Compute the module states that realize a chassis velocity.

        Args:
            chassis_speeds: Body-frame velocity command

        Returns:
            One ModuleState per module. Speeds are not desaturated.
        """
        if chassis_speeds.is_zero():
            return [ModuleState(0.0, heading) for heading in self.module_headings]

        chassis = np.array([chassis_speeds.vx, chassis_speeds.vy, chassis_speeds.omega])
        module_vectors = self.inverse_matrix @ chassis

        states = []
        for i in range(self.num_modules):
            vx = module_vectors[i * 2]
            vy = module_vectors[i * 2 + 1]
            speed = math.hypot(vx, vy)
            # A wheel with no speed keeps its last heading
            angle = math.atan2(vy, vx) if speed > 1e-6 else self.module_headings[i]
            states.append(ModuleState(float(speed), float(angle)))
            self.module_headings[i] = float(angle)

        return states

    def to_chassis_velocity(self, states: Sequence[ModuleState]) -> ChassisSpeeds:
        """Estimate the chassis velocity from measured module states.

        Args:
            states: Measured state of every module

        Returns:
            Least-squares body-frame chassis velocity
        """
        self._check_count(len(states))

        module_vectors = np.zeros(self.num_modules * 2)
        for i, state in enumerate(states):
            module_vectors[i * 2] = state.speed * math.cos(state.angle)
            module_vectors[i * 2 + 1] = state.speed * math.sin(state.angle)

        vx, vy, omega = self.forward_matrix @ module_vectors
        return ChassisSpeeds(float(vx), float(vy), float(omega))

    def to_twist(self, deltas: Sequence[ModulePosition]) -> Twist:
        """Estimate body-frame motion from per-module distance deltas.

        Args:
            deltas: Distance travelled by each wheel since the last cycle,
                paired with the wheel angle measured this cycle

        Returns:
            Least-squares twist (dx, dy, dtheta)
        """
        self._check_count(len(deltas))

        module_vectors = np.zeros(self.num_modules * 2)
        for i, delta in enumerate(deltas):
            module_vectors[i * 2] = delta.distance * math.cos(delta.angle)
            module_vectors[i * 2 + 1] = delta.distance * math.sin(delta.angle)

        dx, dy, dtheta = self.forward_matrix @ module_vectors
        return Twist(float(dx), float(dy), float(dtheta))

    def reset_headings(self, headings: Sequence[float]) -> None:
        """Overwrite the reference headings used for zero-speed commands.

        Args:
            headings: One heading (rad) per module
        """
        self._check_count(len(headings))
        self.module_headings = [float(h) for h in headings]

    @staticmethod
    def desaturate(states: Sequence[ModuleState], max_speed: float) -> List[ModuleState]:
        """Scale all wheel speeds down together so none exceeds max_speed.

        Every speed is multiplied by the same factor max_speed / fastest, which
        keeps the ratios between wheels (and so the commanded direction of
        travel and rotation) intact. States are returned unchanged when no
        wheel is over the limit.

        Args:
            states: Module states from to_wheel_states()
            max_speed: Maximum attainable wheel speed (m/s)

        Returns:
            Desaturated module states
        """
        fastest = max((abs(state.speed) for state in states), default=0.0)
        if fastest <= max_speed:
            return list(states)

        scale = max_speed / fastest
        return [ModuleState(state.speed * scale, state.angle) for state in states]

    def _check_count(self, count: int) -> None:
        if count != self.num_modules:
            raise ValueError(f"Expected {self.num_modules} module values, got {count}")
