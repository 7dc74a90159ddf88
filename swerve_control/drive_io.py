"""Hardware-facing interfaces of the drivetrain.

The drive coordinator and swerve modules only talk to hardware through the
ModuleIO and GyroIO capabilities defined here: read a snapshot of sensor
inputs, write a voltage, set the idle (brake/coast) mode. Any object with the
right methods can be plugged in, which keeps the control code identical across:
- Simulation (ModuleIOSim, GyroIOSim): first-order motor models
- Replay (ModuleIOReplay, GyroIOReplay): recorded inputs played back cycle by cycle

Physical motor controller drivers are provided by the robot runtime.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Protocol, Tuple

from .geometry import wrap_angle


@dataclass
class ModuleInputs:
    """Sensor snapshot of one swerve module, refreshed once per cycle.

    Attributes:
        drive_position_rad: Cumulative wheel rotation (rad)
        drive_velocity_rad_per_sec: Wheel angular velocity (rad/s)
        drive_applied_volts: Voltage applied to the drive motor (V)
        drive_current_amps: Drive motor current (A)
        turn_position: Module steering angle (rad, wrapped to [-pi, pi])
        turn_velocity_rad_per_sec: Steering angular velocity (rad/s)
        turn_applied_volts: Voltage applied to the turn motor (V)
        turn_current_amps: Turn motor current (A)
    """

    drive_position_rad: float = 0.0
    drive_velocity_rad_per_sec: float = 0.0
    drive_applied_volts: float = 0.0
    drive_current_amps: float = 0.0
    turn_position: float = 0.0
    turn_velocity_rad_per_sec: float = 0.0
    turn_applied_volts: float = 0.0
    turn_current_amps: float = 0.0


@dataclass
class GyroInputs:
    """Sensor snapshot of the yaw gyro.

    Attributes:
        connected: False when the sensor is absent or not responding
        yaw_position: Yaw angle (rad), counter-clockwise positive
        yaw_velocity: Yaw rate (rad/s)
    """

    connected: bool = False
    yaw_position: float = 0.0
    yaw_velocity: float = 0.0


class ModuleIO(Protocol):
    """Capabilities a swerve module implementation must provide."""

    def update_inputs(self, inputs: ModuleInputs) -> None:
        ...

    def set_drive_voltage(self, volts: float) -> None:
        ...

    def set_turn_voltage(self, volts: float) -> None:
        ...

    def set_brake_mode(self, enable: bool) -> None:
        ...


class GyroIO(Protocol):
    """Capabilities a gyro implementation must provide."""

    def update_inputs(self, inputs: GyroInputs) -> None:
        ...

    def reset(self) -> None:
        ...


class ModuleIOSim:
    """Simulated swerve module using first-order motor models.

    Drive: wheel velocity approaches volts / kv with time constant tau_drive.
    Turn: steering rate approaches volts / turn_kv with time constant tau_turn.
    With brake mode off, an unpowered motor coasts down five times slower.
    """

    def __init__(self, config=None, dt: Optional[float] = None):
        """Initialize the simulated module.

        Args:
            config: Configuration module. If None, uses swerve_control.config.
            dt: Simulation step (seconds). Defaults to the control loop period.
        """
        if config is None:
            from swerve_control import config as cfg
        else:
            cfg = config

        self.dt = dt if dt is not None else cfg.LOOP_PERIOD_SECS
        self.drive_kv = cfg.DRIVE_KV
        self.turn_kv = cfg.SIM_TURN_KV
        self.drive_tau = cfg.SIM_DRIVE_TIME_CONSTANT
        self.turn_tau = cfg.SIM_TURN_TIME_CONSTANT
        self.max_voltage = cfg.MAX_VOLTAGE

        self.drive_position = 0.0
        self.drive_velocity = 0.0
        self.turn_position = 0.0
        self.turn_velocity = 0.0
        self.drive_volts = 0.0
        self.turn_volts = 0.0
        self.brake = True

    def _step_velocity(self, velocity: float, volts: float, kv: float, tau: float) -> float:
        if volts == 0.0 and not self.brake:
            tau *= 5.0
        target = volts / kv
        alpha = min(1.0, self.dt / tau)
        return velocity + alpha * (target - velocity)

    def update_inputs(self, inputs: ModuleInputs) -> None:
        self.drive_velocity = self._step_velocity(
            self.drive_velocity, self.drive_volts, self.drive_kv, self.drive_tau
        )
        self.turn_velocity = self._step_velocity(
            self.turn_velocity, self.turn_volts, self.turn_kv, self.turn_tau
        )
        self.drive_position += self.drive_velocity * self.dt
        self.turn_position = wrap_angle(self.turn_position + self.turn_velocity * self.dt)

        inputs.drive_position_rad = self.drive_position
        inputs.drive_velocity_rad_per_sec = self.drive_velocity
        inputs.drive_applied_volts = self.drive_volts
        inputs.drive_current_amps = abs(self.drive_volts - self.drive_kv * self.drive_velocity)
        inputs.turn_position = self.turn_position
        inputs.turn_velocity_rad_per_sec = self.turn_velocity
        inputs.turn_applied_volts = self.turn_volts
        inputs.turn_current_amps = abs(self.turn_volts - self.turn_kv * self.turn_velocity)

    def set_drive_voltage(self, volts: float) -> None:
        self.drive_volts = max(-self.max_voltage, min(self.max_voltage, volts))

    def set_turn_voltage(self, volts: float) -> None:
        self.turn_volts = max(-self.max_voltage, min(self.max_voltage, volts))

    def set_brake_mode(self, enable: bool) -> None:
        self.brake = enable


class GyroIOSim:
    """Simulated gyro.

    Disconnected by default, which makes the drive fall back to kinematics-only
    heading. When connected, yaw integrates whatever rate the simulation feeds
    in through set_yaw_velocity().
    """

    def __init__(self, connected: bool = False, dt: float = 0.02):
        self.connected = connected
        self.dt = dt
        self.yaw_position = 0.0
        self.yaw_velocity = 0.0

    def set_yaw_velocity(self, yaw_velocity: float) -> None:
        self.yaw_velocity = yaw_velocity

    def update_inputs(self, inputs: GyroInputs) -> None:
        inputs.connected = self.connected
        if not self.connected:
            inputs.yaw_velocity = 0.0
            return
        self.yaw_position = wrap_angle(self.yaw_position + self.yaw_velocity * self.dt)
        inputs.yaw_position = self.yaw_position
        inputs.yaw_velocity = self.yaw_velocity

    def reset(self) -> None:
        self.yaw_position = 0.0


class ModuleIOReplay:
    """Plays back recorded module inputs, one record per update_inputs() call.

    Voltage and brake commands are recorded instead of applied so they can be
    inspected afterwards. The last record repeats once the log is exhausted.
    """

    def __init__(self, records: Iterable[ModuleInputs]):
        self.records: List[ModuleInputs] = list(records)
        self.index = 0
        self.drive_voltages: List[float] = []
        self.turn_voltages: List[float] = []
        self.brake_modes: List[bool] = []

    def update_inputs(self, inputs: ModuleInputs) -> None:
        if not self.records:
            return
        record = self.records[min(self.index, len(self.records) - 1)]
        self.index += 1
        for name, value in vars(record).items():
            setattr(inputs, name, value)

    def set_drive_voltage(self, volts: float) -> None:
        self.drive_voltages.append(volts)

    def set_turn_voltage(self, volts: float) -> None:
        self.turn_voltages.append(volts)

    def set_brake_mode(self, enable: bool) -> None:
        self.brake_modes.append(enable)

    @property
    def last_voltages(self) -> Tuple[Optional[float], Optional[float]]:
        """Most recent (drive, turn) voltages, None where never commanded."""
        drive = self.drive_voltages[-1] if self.drive_voltages else None
        turn = self.turn_voltages[-1] if self.turn_voltages else None
        return drive, turn


@dataclass
class GyroIOReplay:
    """Plays back recorded gyro inputs, one record per update_inputs() call."""

    records: List[GyroInputs] = field(default_factory=list)
    index: int = 0
    resets: int = 0

    def update_inputs(self, inputs: GyroInputs) -> None:
        if not self.records:
            inputs.connected = False
            return
        record = self.records[min(self.index, len(self.records) - 1)]
        self.index += 1
        inputs.connected = record.connected
        inputs.yaw_position = record.yaw_position
        inputs.yaw_velocity = record.yaw_velocity

    def reset(self) -> None:
        self.resets += 1


def module_records(
    distances: Iterable[float], angles: Iterable[float], wheel_radius: float
) -> List[ModuleInputs]:
    """Build replay records from wheel distances (m) and steering angles (rad).

    Args:
        distances: Cumulative wheel distance per cycle (m)
        angles: Steering angle per cycle (rad)
        wheel_radius: Wheel radius used to convert distance to rotation (m)

    Returns:
        One ModuleInputs per cycle
    """
    records = []
    for distance, angle in zip(distances, angles):
        records.append(
            ModuleInputs(
                drive_position_rad=distance / wheel_radius,
                turn_position=wrap_angle(angle),
            )
        )
    return records
