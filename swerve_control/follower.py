"""Path-following interface for the swerve drive.

This module provides:
- HolonomicFollowerAdapter: the pose/velocity bridge a trajectory-following
  library drives each cycle (get/set pose, measured velocity, velocity sink)
- Trajectory: time-parameterized poses with linear interpolation
- HolonomicDriveController: tracks a Trajectory through the adapter using
  field-relative feedforward plus PID correction on x, y and heading

Trajectory generation is out of scope; trajectories arrive pre-computed.
"""

import bisect
import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import numpy as np

from .controllers import PIDController
from .geometry import ChassisSpeeds, Pose, wrap_angle


def flip_pose(pose: Pose, field_length: float) -> Pose:
    """Mirror a blue-alliance pose onto the red side of the field.

    The field is mirrored across its centre line x = field_length / 2, so x is
    reflected and the heading turns to face the opposite end.

    Args:
        pose: Pose on the blue side
        field_length: Field length along x (m)

    Returns:
        Mirrored pose
    """
    return Pose(field_length - pose.x, pose.y, math.pi - pose.heading)


class HolonomicFollowerAdapter:
    """Bridges a holonomic path follower to the drive.

    Holds no state of its own: every call reads from or writes to the drive.
    Whether paths are mirrored for the red alliance is caller configuration
    supplied through should_flip.
    """

    def __init__(self, drive, should_flip: Optional[Callable[[], bool]] = None, config=None):
        """Initialize the adapter.

        Args:
            drive: Drive coordinator to bridge
            should_flip: Returns True when paths must be mirrored (red alliance).
                Defaults to never flipping.
            config: Configuration module. If None, uses swerve_control.config.
        """
        if config is None:
            from swerve_control import config as cfg
        else:
            cfg = config

        self.drive = drive
        self.should_flip = should_flip if should_flip is not None else (lambda: False)
        self.field_length = cfg.FIELD_LENGTH
        self.max_module_speed = drive.get_max_linear_speed()
        self.drive_base_radius = drive.drive_base_radius

    def get_pose(self) -> Pose:
        return self.drive.get_pose()

    def set_pose(self, pose: Pose) -> None:
        """Hard override of the odometry pose, no blending."""
        self.drive.set_pose(pose)

    def get_chassis_velocity(self) -> ChassisSpeeds:
        """Body-frame velocity derived from the measured module states."""
        return self.drive.get_chassis_velocity()

    def run_velocity(self, speeds: ChassisSpeeds) -> None:
        """Write the chassis command consumed by the drive's next cycle."""
        self.drive.run_velocity(speeds)

    def to_alliance(self, pose: Pose) -> Pose:
        """Mirror a blue-alliance path pose when should_flip() says so."""
        if self.should_flip():
            return flip_pose(pose, self.field_length)
        return pose


@dataclass(frozen=True)
class TrajectorySample:
    """Pose the robot should be at, at time t."""

    t: float
    pose: Pose


class Trajectory:
    """Time-parameterized sequence of poses.

    Samples are linearly interpolated in position and along the shortest arc
    in heading. Sampling outside the time range clamps to the endpoints.
    """

    def __init__(self, samples: Sequence[TrajectorySample]):
        if len(samples) < 2:
            raise ValueError(f"Trajectory needs at least 2 samples, got {len(samples)}")
        times = [s.t for s in samples]
        if any(b <= a for a, b in zip(times, times[1:])):
            raise ValueError("Trajectory sample times must be strictly increasing")

        self.samples: List[TrajectorySample] = list(samples)
        self.times: List[float] = times

    @classmethod
    def from_arrays(
        cls, t: np.ndarray, x: np.ndarray, y: np.ndarray, heading: np.ndarray
    ) -> "Trajectory":
        """Build a trajectory from equal-length arrays of time, x, y and heading."""
        return cls(
            [
                TrajectorySample(float(ti), Pose(float(xi), float(yi), float(hi)))
                for ti, xi, yi, hi in zip(t, x, y, heading)
            ]
        )

    @property
    def duration(self) -> float:
        return self.times[-1] - self.times[0]

    def sample(self, t: float) -> Pose:
        """Interpolated pose at time t."""
        if t <= self.times[0]:
            return self.samples[0].pose
        if t >= self.times[-1]:
            return self.samples[-1].pose

        idx = bisect.bisect_right(self.times, t)
        before = self.samples[idx - 1]
        after = self.samples[idx]
        frac = (t - before.t) / (after.t - before.t)

        dheading = wrap_angle(after.pose.heading - before.pose.heading)
        return Pose(
            before.pose.x + frac * (after.pose.x - before.pose.x),
            before.pose.y + frac * (after.pose.y - before.pose.y),
            before.pose.heading + frac * dheading,
        )

    def velocity(self, t: float) -> ChassisSpeeds:
        """Field-frame reference velocity at time t from finite differences.

        Zero outside the time range, so a finished trajectory commands a stop.
        """
        if t < self.times[0] or t >= self.times[-1]:
            return ChassisSpeeds()

        idx = max(1, bisect.bisect_right(self.times, t))
        before = self.samples[idx - 1]
        after = self.samples[idx]
        dt = after.t - before.t

        return ChassisSpeeds(
            (after.pose.x - before.pose.x) / dt,
            (after.pose.y - before.pose.y) / dt,
            wrap_angle(after.pose.heading - before.pose.heading) / dt,
        )


class HolonomicDriveController:
    """Trajectory tracker for a holonomic drive.

    Uses the reference velocity of the trajectory as feedforward and adds PID
    corrections on the field-frame position and heading errors. The result is
    converted to a body-frame command and handed to the adapter.

    Control law (field frame):
        vx = vx_ref + K_xy * (x_ref - x)
        vy = vy_ref + K_xy * (y_ref - y)
        omega = omega_ref + K_theta * wrap(theta_ref - theta)
    """

    def __init__(
        self,
        adapter: HolonomicFollowerAdapter,
        translation_kp: float = 5.0,
        translation_ki: float = 0.0,
        rotation_kp: float = 5.0,
        period: float = 0.02,
    ):
        self.adapter = adapter
        self.x_controller = PIDController(translation_kp, translation_ki, 0.0, period)
        self.y_controller = PIDController(translation_kp, translation_ki, 0.0, period)
        self.theta_controller = PIDController(rotation_kp, 0.0, 0.0, period)
        self.theta_controller.enable_continuous_input(-math.pi, math.pi)

        self.trajectory: Optional[Trajectory] = None
        self.start_time: Optional[float] = None

    def start(self, trajectory: Trajectory, current_time: float, reset_pose: bool = True) -> None:
        """Begin following a trajectory.

        Args:
            trajectory: Trajectory in blue-alliance coordinates
            current_time: Timestamp of the first control cycle (seconds)
            reset_pose: Set the odometry pose to the trajectory start
        """
        self.trajectory = trajectory
        self.start_time = current_time
        self.x_controller.reset()
        self.y_controller.reset()
        self.theta_controller.reset()
        if reset_pose:
            self.adapter.set_pose(self.adapter.to_alliance(trajectory.sample(trajectory.times[0])))

    def is_finished(self, current_time: float) -> bool:
        if self.trajectory is None or self.start_time is None:
            return True
        return current_time - self.start_time >= self.trajectory.duration

    def compute_control(self, current_time: float) -> ChassisSpeeds:
        """Compute and send the body-frame command for this cycle.

        Args:
            current_time: Current timestamp (seconds)

        Returns:
            Body-frame chassis command written to the adapter
        """
        if self.trajectory is None or self.start_time is None:
            return ChassisSpeeds()

        elapsed = current_time - self.start_time
        t = self.trajectory.times[0] + elapsed

        reference = self.trajectory.sample(t)
        feedforward = self.trajectory.velocity(t)

        if self.adapter.should_flip():
            reference = self.adapter.to_alliance(reference)
            feedforward = ChassisSpeeds(-feedforward.vx, feedforward.vy, -feedforward.omega)

        pose = self.adapter.get_pose()

        vx = feedforward.vx + self.x_controller.calculate(pose.x, reference.x)
        vy = feedforward.vy + self.y_controller.calculate(pose.y, reference.y)
        omega = feedforward.omega + self.theta_controller.calculate(pose.heading, reference.heading)

        speeds = ChassisSpeeds.from_field_relative(vx, vy, omega, pose.heading)
        self.adapter.run_velocity(speeds)
        return speeds
