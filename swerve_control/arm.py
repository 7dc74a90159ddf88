"""Arm mechanism: pivot motor pair plus a pneumatic extension piston.

The arm runs one of two modes each cycle:
- MANUAL: driver stick sets a target velocity, held against gravity by feedforward
- GO_TO_POSITION: trapezoid motion profile to a target angle, tracked by feedforward

The piston is either EXTENDED or RETRACTED. Disabling the robot drops the arm
back to MANUAL so it never resumes a stale profile when re-enabled.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol

from .controllers import ArmFeedforward, ProfileState, TrapezoidProfile


class ArmState(Enum):
    MANUAL = "manual"
    GO_TO_POSITION = "go_to_position"


class PistonState(Enum):
    EXTENDED = "extended"
    RETRACTED = "retracted"


class ArmPosition(Enum):
    """Preset arm targets; values name the config constant holding the angle."""

    AMP = "ARM_AMP_POSITION"
    TRAP = "ARM_TRAP_POSITION"
    DRIVE = "ARM_DRIVE_POSITION"
    INTAKE = "ARM_INTAKE_POSITION"


@dataclass
class ArmInputs:
    """Sensor snapshot of the arm.

    Attributes:
        angle_rads: Arm angle from horizontal (rad)
        velocity_rads_per_sec: Arm angular velocity (rad/s)
        applied_volts: Voltage applied to the leader motor (V)
        current_amps: Leader and follower motor currents (A)
        is_extended: Piston extension as reported by the solenoid
    """

    angle_rads: float = 0.0
    velocity_rads_per_sec: float = 0.0
    applied_volts: float = 0.0
    current_amps: List[float] = field(default_factory=lambda: [0.0, 0.0])
    is_extended: bool = False

    @property
    def angle_degs(self) -> float:
        return math.degrees(self.angle_rads)


class ArmIO(Protocol):
    """Capabilities an arm implementation must provide."""

    def update_inputs(self, inputs: ArmInputs) -> None:
        ...

    def set_voltage(self, volts: float) -> None:
        ...

    def extend(self) -> None:
        ...

    def retract(self) -> None:
        ...


class ArmIOSim:
    """Simulated arm: first-order velocity response to the voltage left after
    gravity compensation, integrated into angle and clamped to [0, pi]."""

    def __init__(self, config=None, dt: float = 0.02, time_constant: float = 0.1):
        if config is None:
            from swerve_control import config as cfg
        else:
            cfg = config

        self.kg = cfg.ARM_FF_KG
        self.kv = cfg.ARM_FF_KV
        self.max_voltage = cfg.MAX_VOLTAGE
        self.dt = dt
        self.time_constant = time_constant

        self.angle = 0.0
        self.velocity = 0.0
        self.volts = 0.0
        self.extended = False

    def update_inputs(self, inputs: ArmInputs) -> None:
        # Velocity the applied voltage sustains once gravity is accounted for
        target = (self.volts - self.kg * math.cos(self.angle)) / self.kv
        alpha = min(1.0, self.dt / self.time_constant)
        self.velocity += alpha * (target - self.velocity)
        self.angle += self.velocity * self.dt
        if self.angle < 0.0 or self.angle > math.pi:
            self.angle = max(0.0, min(math.pi, self.angle))
            self.velocity = 0.0

        inputs.angle_rads = self.angle
        inputs.velocity_rads_per_sec = self.velocity
        inputs.applied_volts = self.volts
        inputs.current_amps = [abs(self.volts) * 2.0, abs(self.volts) * 2.0]
        inputs.is_extended = self.extended

    def set_voltage(self, volts: float) -> None:
        self.volts = max(-self.max_voltage, min(self.max_voltage, volts))

    def extend(self) -> None:
        self.extended = True

    def retract(self) -> None:
        self.extended = False


class Arm:
    """Arm subsystem with manual and profiled position control.

    Attributes:
        io: Arm IO implementation
        inputs: Sensor snapshot from the most recent periodic()
        arm_state: Current control mode
        piston_state: Commanded piston position
    """

    def __init__(self, io: ArmIO, config=None):
        """Initialize the arm in MANUAL with the piston retracted.

        Args:
            io: Arm IO implementation
            config: Configuration module. If None, uses swerve_control.config.
        """
        if config is None:
            from swerve_control import config as cfg
        else:
            cfg = config

        logging.info("[Init] Creating Arm")
        self.config = cfg
        self.io = io
        self.inputs = ArmInputs()
        self.feedforward = ArmFeedforward(
            cfg.ARM_FF_KS, cfg.ARM_FF_KG, cfg.ARM_FF_KV, cfg.ARM_FF_KA
        )
        self.profile = TrapezoidProfile(cfg.ARM_MAX_VELOCITY, cfg.ARM_MAX_ACCELERATION)
        self.manual_max_velocity = cfg.ARM_MANUAL_MAX_VELOCITY

        self.arm_state = ArmState.MANUAL
        self.piston_state = PistonState.RETRACTED
        self.manual_input = 0.0
        self.applied_feedforward = 0.0

        self.profile_start = ProfileState()
        self.goal = ProfileState()
        self.setpoint = ProfileState()
        self.profile_start_time: Optional[float] = None
        self.last_time = 0.0

    def periodic(self, enabled: bool, now: float) -> None:
        """Run one control cycle.

        Args:
            enabled: False while the robot is disabled
            now: Current time (seconds)
        """
        self.io.update_inputs(self.inputs)
        self.last_time = now

        if not enabled:
            self.arm_state = ArmState.MANUAL

        if self.arm_state is ArmState.MANUAL:
            self.applied_feedforward = self.feedforward.calculate(
                self.inputs.angle_rads, self.manual_max_velocity * self.manual_input
            )
        elif self.arm_state is ArmState.GO_TO_POSITION:
            if self.profile_start_time is None:
                self.profile_start_time = now
            self.setpoint = self.profile.calculate(
                self._elapsed(now), self.profile_start, self.goal
            )
            self.applied_feedforward = self.feedforward.calculate(
                self.setpoint.position, self.setpoint.velocity
            )
        else:
            raise ValueError(f"Unhandled arm state: {self.arm_state}")
        self.io.set_voltage(self.applied_feedforward)

        if self.piston_state is PistonState.EXTENDED:
            self.io.extend()
        elif self.piston_state is PistonState.RETRACTED:
            self.io.retract()
        else:
            raise ValueError(f"Unhandled piston state: {self.piston_state}")

    def _elapsed(self, now: float) -> float:
        if self.profile_start_time is None:
            return 0.0
        return now - self.profile_start_time

    def has_reached_target(self) -> bool:
        """True once the current motion profile has run to completion."""
        self.profile.calculate(0.0, self.profile_start, self.goal)
        return self.profile.is_finished(self._elapsed(self.last_time))

    def set_manual(self, manual_input: float) -> None:
        """Switch to manual control; input in [-1, 1] scales the arm velocity."""
        self.arm_state = ArmState.MANUAL
        self.manual_input = max(-1.0, min(1.0, manual_input))

    def set_target_position(self, target: float) -> None:
        """Start a new profile from the measured state to target (rad).

        Called once per target, not every cycle; the profile restarts each call.
        """
        self.profile_start = ProfileState(self.inputs.angle_rads, self.inputs.velocity_rads_per_sec)
        self.goal = ProfileState(target, 0.0)
        # Clock starts on the first profiled cycle
        self.profile_start_time = None

    def set_target_to_current(self) -> None:
        """Hold the current angle: profile from the measured state to a stop here."""
        self.set_target_position(self.inputs.angle_rads)

    def set_go_to_position(self) -> None:
        self.arm_state = ArmState.GO_TO_POSITION

    def set_extended(self) -> None:
        self.piston_state = PistonState.EXTENDED

    def set_retracted(self) -> None:
        self.piston_state = PistonState.RETRACTED


def arm_to_position(arm: Arm, position: ArmPosition) -> float:
    """Send the arm to a preset angle and switch it to profiled control.

    Returns:
        Target angle (rad)
    """
    target = getattr(arm.config, position.value)
    arm.set_target_position(target)
    arm.set_go_to_position()
    return target
