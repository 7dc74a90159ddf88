"""Swerve module (one wheel) closed-loop control.

Each module runs two independent loops every cycle:
- Turn: PID on the steering angle with continuous input over [-pi, pi]
- Drive: feedforward + PID on wheel velocity, with the speed setpoint scaled
  by the cosine of the remaining steering error so the wheel does not push
  sideways while it is still turning

Setpoints are optimized so the module never rotates more than 90 degrees.
"""

import logging
import math
from typing import Optional

from .controllers import PIDController, SimpleMotorFeedforward
from .drive_io import ModuleInputs, ModuleIO
from .kinematics import ModulePosition, ModuleState

MODULE_NAMES = ("FrontLeft", "FrontRight", "BackLeft", "BackRight")


class SwerveModule:
    """Closed-loop controller for one swerve module.

    Attributes:
        io: Hardware (or simulated) module implementation
        index: Module index (0=FL, 1=FR, 2=BL, 3=BR)
        inputs: Sensor snapshot from the most recent update_inputs()
        angle_setpoint: Steering target (rad), None when the turn loop is off
        speed_setpoint: Wheel speed target (m/s), None when the drive loop is off
    """

    def __init__(self, io: ModuleIO, index: int, config=None, simulated: bool = False):
        """Initialize the module.

        Args:
            io: Module IO implementation
            index: Module index (0=FL, 1=FR, 2=BL, 3=BR)
            config: Configuration module. If None, uses swerve_control.config.
            simulated: Use the simulation gains instead of the robot gains
        """
        if config is None:
            from swerve_control import config as cfg
        else:
            cfg = config

        self.io = io
        self.index = index
        self.name = MODULE_NAMES[index] if index < len(MODULE_NAMES) else f"Module{index}"
        self.wheel_radius = cfg.WHEEL_RADIUS
        self.max_voltage = cfg.MAX_VOLTAGE

        period = cfg.LOOP_PERIOD_SECS
        if simulated:
            self.drive_feedforward = SimpleMotorFeedforward(cfg.SIM_DRIVE_KS, cfg.DRIVE_KV)
            self.drive_feedback = PIDController(cfg.SIM_DRIVE_KP, 0.0, cfg.DRIVE_KD, period)
            self.turn_feedback = PIDController(cfg.SIM_TURN_KP, 0.0, cfg.TURN_KD, period)
        else:
            self.drive_feedforward = SimpleMotorFeedforward(cfg.DRIVE_KS, cfg.DRIVE_KV)
            self.drive_feedback = PIDController(cfg.DRIVE_KP, 0.0, cfg.DRIVE_KD, period)
            self.turn_feedback = PIDController(cfg.TURN_KP, 0.0, cfg.TURN_KD, period)
        self.turn_feedback.enable_continuous_input(-math.pi, math.pi)

        self.inputs = ModuleInputs()
        self.angle_setpoint: Optional[float] = None
        self.speed_setpoint: Optional[float] = None

        self.last_position = ModulePosition()
        self.position_delta = ModulePosition()
        self._has_inputs = False

        self.set_brake_mode(True)

    def update_inputs(self) -> None:
        """Read the module sensors once and update the per-cycle position delta.

        The delta pairs the distance travelled since the previous snapshot
        with the angle measured in this one.
        """
        self.io.update_inputs(self.inputs)

        current = self.get_position()
        if self._has_inputs:
            self.position_delta = ModulePosition(
                current.distance - self.last_position.distance, current.angle
            )
        else:
            # First snapshot establishes the baseline, no motion yet
            self.position_delta = ModulePosition(0.0, current.angle)
            self._has_inputs = True
        self.last_position = current

    def run_setpoint(self, state: ModuleState) -> ModuleState:
        """Drive the module toward a target state.

        Args:
            state: Desired speed (m/s) and angle (rad)

        Returns:
            The optimized state actually commanded
        """
        optimized = ModuleState.optimize(state, self.get_angle())

        self.angle_setpoint = optimized.angle
        self.speed_setpoint = optimized.speed
        self._apply_closed_loop()

        return optimized

    def run_characterization(self, volts: float) -> None:
        """Hold the wheel straight and drive it open loop at a fixed voltage."""
        self.angle_setpoint = 0.0
        self.speed_setpoint = None
        self._apply_closed_loop()
        self.io.set_drive_voltage(self._clamp(volts))

    def run_drive_motor(self, volts: float) -> None:
        """Apply a raw voltage to the drive motor only; the turn motor is unpowered."""
        self.angle_setpoint = None
        self.speed_setpoint = None
        self.io.set_turn_voltage(0.0)
        self.io.set_drive_voltage(self._clamp(volts))

    def run_turn_motor(self, volts: float) -> None:
        """Apply a raw voltage to the turn motor only; the drive motor is unpowered."""
        self.angle_setpoint = None
        self.speed_setpoint = None
        self.io.set_drive_voltage(0.0)
        self.io.set_turn_voltage(self._clamp(volts))

    def stop(self) -> None:
        """Disable both loops and zero the motors.

        The steering angle is held by the motor's brake mode, not by the loop.
        """
        self.io.set_turn_voltage(0.0)
        self.io.set_drive_voltage(0.0)
        self.angle_setpoint = None
        self.speed_setpoint = None

    def set_brake_mode(self, enabled: bool) -> None:
        self.io.set_brake_mode(enabled)

    def _apply_closed_loop(self) -> None:
        if self.angle_setpoint is None:
            return

        turn_volts = self.turn_feedback.calculate(self.get_angle(), self.angle_setpoint)
        self.io.set_turn_voltage(self._clamp(turn_volts))

        if self.speed_setpoint is None:
            return

        # Scale speed by the remaining steering error; 90 degrees off means no drive
        adjusted_speed = self.speed_setpoint * math.cos(self.turn_feedback.position_error)
        velocity_rad_per_sec = adjusted_speed / self.wheel_radius

        feedforward_volts = self.drive_feedforward.calculate(velocity_rad_per_sec)
        feedback_volts = self.drive_feedback.calculate(
            self.inputs.drive_velocity_rad_per_sec, velocity_rad_per_sec
        )
        self.io.set_drive_voltage(self._clamp(feedforward_volts + feedback_volts))

    def _clamp(self, volts: float) -> float:
        if abs(volts) > self.max_voltage:
            logging.debug(f"{self.name}: clamping {volts:.2f} V to {self.max_voltage:.1f} V")
        return max(-self.max_voltage, min(self.max_voltage, volts))

    def get_angle(self) -> float:
        """Measured steering angle (rad)."""
        return self.inputs.turn_position

    def get_position_meters(self) -> float:
        return self.inputs.drive_position_rad * self.wheel_radius

    def get_velocity_meters_per_sec(self) -> float:
        return self.inputs.drive_velocity_rad_per_sec * self.wheel_radius

    def get_position(self) -> ModulePosition:
        """Cumulative wheel distance and current angle."""
        return ModulePosition(self.get_position_meters(), self.get_angle())

    def get_position_delta(self) -> ModulePosition:
        """Distance since the previous cycle paired with this cycle's angle."""
        return self.position_delta

    def get_state(self) -> ModuleState:
        """Measured wheel speed and angle."""
        return ModuleState(self.get_velocity_meters_per_sec(), self.get_angle())

    def get_characterization_velocity(self) -> float:
        """Drive velocity in rad/s for feedforward characterization."""
        return self.inputs.drive_velocity_rad_per_sec
