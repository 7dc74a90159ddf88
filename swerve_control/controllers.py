"""Feedback and feedforward controllers for the swerve modules and mechanisms.

This module provides:
- PIDController: PID feedback with anti-windup and optional continuous input
- SimpleMotorFeedforward: static + velocity + acceleration feedforward
- ArmFeedforward: adds a gravity term for a pivoting arm
- TrapezoidProfile: time-parameterized motion profile between two states
"""

import math
from dataclasses import dataclass
from typing import Dict, Optional


class PIDController:
    """PID feedback controller with integral anti-windup.

    Control law:
        output = K_p * e + K_i * integral(e) + K_d * d(e)/dt

    With continuous input enabled, the error is wrapped into the input range
    so that, for an angle loop on [-pi, pi], the controller always takes the
    short way around.

    Attributes:
        kp: Proportional gain
        ki: Integral gain
        kd: Derivative gain
        period: Time between calculate() calls (seconds)
        position_error: Error from the most recent calculate() call
    """

    def __init__(
        self,
        kp: float,
        ki: float = 0.0,
        kd: float = 0.0,
        period: float = 0.02,
        integral_limit: float = 0.5,
    ):
        """Initialize the controller.

        Args:
            kp: Proportional gain.
            ki: Integral gain. Default: 0.0 (no integral action)
            kd: Derivative gain. Default: 0.0 (no derivative action)
            period: Loop period (seconds). Default: 0.02
            integral_limit: Anti-windup clamp on the accumulated error. Default: 0.5
        """
        if period <= 0:
            raise ValueError(f"Controller period must be positive, got {period}")

        self.kp = kp
        self.ki = ki
        self.kd = kd
        self.period = period
        self.integral_limit = integral_limit

        self.continuous: bool = False
        self.minimum_input: float = 0.0
        self.maximum_input: float = 0.0

        self.integral: float = 0.0
        self.prev_error: float = 0.0
        self.position_error: float = 0.0
        self.setpoint: float = 0.0
        self._has_measurement: bool = False

    def enable_continuous_input(self, minimum_input: float, maximum_input: float) -> None:
        """Treat the input range as circular (e.g. -pi..pi for angles)."""
        self.continuous = True
        self.minimum_input = minimum_input
        self.maximum_input = maximum_input

    def calculate(self, measurement: float, setpoint: Optional[float] = None) -> float:
        """Compute the controller output for one period.

        Args:
            measurement: Current process value
            setpoint: New setpoint; the previous one is reused when None

        Returns:
            Controller output
        """
        if setpoint is not None:
            self.setpoint = setpoint

        error = self.setpoint - measurement
        if self.continuous:
            span = self.maximum_input - self.minimum_input
            half = span / 2.0
            error = math.fmod(error + half, span)
            if error < 0:
                error += span
            error -= half

        # No derivative kick on the first sample
        if self._has_measurement:
            error_derivative = (error - self.prev_error) / self.period
        else:
            error_derivative = 0.0

        self.prev_error = error
        self.position_error = error
        self._has_measurement = True

        if self.ki != 0.0:
            self.integral += error * self.period
            self.integral = max(-self.integral_limit, min(self.integral_limit, self.integral))

        return self.kp * error + self.ki * self.integral + self.kd * error_derivative

    def reset(self) -> None:
        """Reset integral and derivative states to zero."""
        self.integral = 0.0
        self.prev_error = 0.0
        self.position_error = 0.0
        self._has_measurement = False

    def get_diagnostics(self) -> Dict[str, float]:
        """Get diagnostic information for logging and debugging."""
        return {
            "setpoint": self.setpoint,
            "error": self.position_error,
            "integral": self.integral,
        }


class SimpleMotorFeedforward:
    """Feedforward for a DC motor driving a load without gravity.

    volts = ks * sign(v) + kv * v + ka * a
    """

    def __init__(self, ks: float, kv: float, ka: float = 0.0):
        self.ks = ks
        self.kv = kv
        self.ka = ka

    def calculate(self, velocity: float, acceleration: float = 0.0) -> float:
        return self.ks * _sign(velocity) + self.kv * velocity + self.ka * acceleration


class ArmFeedforward:
    """Feedforward for a single-jointed arm acted on by gravity.

    volts = ks * sign(v) + kg * cos(position) + kv * v + ka * a

    Position is measured from horizontal, so the gravity term peaks with the
    arm held straight out.
    """

    def __init__(self, ks: float, kg: float, kv: float, ka: float = 0.0):
        self.ks = ks
        self.kg = kg
        self.kv = kv
        self.ka = ka

    def calculate(self, position: float, velocity: float, acceleration: float = 0.0) -> float:
        return (
            self.ks * _sign(velocity)
            + self.kg * math.cos(position)
            + self.kv * velocity
            + self.ka * acceleration
        )


@dataclass(frozen=True)
class ProfileState:
    """Position and velocity along a motion profile."""

    position: float = 0.0
    velocity: float = 0.0


class TrapezoidProfile:
    """Trapezoidal velocity profile with velocity and acceleration limits.

    The profile accelerates at max_acceleration up to max_velocity, cruises,
    then decelerates to reach the goal. Short moves never reach cruise speed
    and become triangular.
    """

    def __init__(self, max_velocity: float, max_acceleration: float):
        if max_velocity <= 0 or max_acceleration <= 0:
            raise ValueError(
                f"Profile limits must be positive, got v={max_velocity}, a={max_acceleration}"
            )
        self.max_velocity = max_velocity
        self.max_acceleration = max_acceleration
        self._end_time: float = 0.0

    def calculate(self, t: float, current: ProfileState, goal: ProfileState) -> ProfileState:
        """Sample the profile from ``current`` to ``goal`` at time t.

        Args:
            t: Time since the profile started (seconds)
            current: State at t = 0
            goal: Final state

        Returns:
            Profiled state at time t
        """
        direction = -1.0 if current.position > goal.position else 1.0
        current = _directed(current, direction)
        goal = _directed(goal, direction)

        accel = self.max_acceleration
        start_velocity = min(current.velocity, self.max_velocity)

        # Extend the profile backwards/forwards to zero velocity at both ends
        cutoff_begin = start_velocity / accel
        cutoff_dist_begin = cutoff_begin * cutoff_begin * accel / 2.0
        cutoff_end = goal.velocity / accel
        cutoff_dist_end = cutoff_end * cutoff_end * accel / 2.0

        full_trapezoid_dist = (
            cutoff_dist_begin + (goal.position - current.position) + cutoff_dist_end
        )
        acceleration_time = self.max_velocity / accel
        full_speed_dist = full_trapezoid_dist - acceleration_time * acceleration_time * accel

        if full_speed_dist < 0:
            acceleration_time = math.sqrt(max(full_trapezoid_dist, 0.0) / accel)
            full_speed_dist = 0.0

        end_accel = acceleration_time - cutoff_begin
        end_full_speed = end_accel + full_speed_dist / self.max_velocity
        end_decel = end_full_speed + acceleration_time - cutoff_end
        self._end_time = end_decel

        if t < end_accel:
            result = ProfileState(
                current.position + (start_velocity + t * accel / 2.0) * t,
                start_velocity + t * accel,
            )
        elif t < end_full_speed:
            result = ProfileState(
                current.position
                + (start_velocity + end_accel * accel / 2.0) * end_accel
                + self.max_velocity * (t - end_accel),
                self.max_velocity,
            )
        elif t <= end_decel:
            time_left = end_decel - t
            result = ProfileState(
                goal.position - (goal.velocity + time_left * accel / 2.0) * time_left,
                goal.velocity + time_left * accel,
            )
        else:
            result = goal

        return _directed(result, direction)

    def total_time(self) -> float:
        """Duration of the most recently calculated profile (seconds)."""
        return self._end_time

    def is_finished(self, t: float) -> bool:
        return t >= self._end_time


def _directed(state: ProfileState, direction: float) -> ProfileState:
    return ProfileState(state.position * direction, state.velocity * direction)


def _sign(value: float) -> float:
    if value > 0:
        return 1.0
    if value < 0:
        return -1.0
    return 0.0
