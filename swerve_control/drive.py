"""Swerve drive coordinator: odometry and setpoint pipeline.

Drive owns the four swerve modules, the gyro, the kinematics and the pose
estimate. Once per control period the robot runtime calls periodic(), which:

1. Reads the gyro and every module (one sensor snapshot per cycle)
2. Computes each wheel's distance delta since the previous cycle
3. Converts the deltas into a body-frame twist with the kinematics
4. Replaces the twist's rotation with the gyro yaw delta when the gyro is connected
5. Integrates the twist into the pose with the SE(2) exponential map
6. When disabled, stops every module and records empty setpoints
7. Otherwise discretizes the chassis command, converts it to module states,
   desaturates them and sends each module its setpoint
8. Recomputes the field-frame velocity from the measured module states

The chassis command is a single slot: run_velocity() overwrites it and the
next periodic() consumes whatever was written last.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .drive_io import GyroInputs, GyroIO, ModuleIO
from .errors import ConfigurationError
from .geometry import ChassisSpeeds, Pose, Translation, Twist, wrap_angle
from .kinematics import ModuleState, SwerveKinematics
from .module import SwerveModule


@dataclass
class DriveRecord:
    """Telemetry produced by one Drive.periodic() call.

    Setpoint lists are empty (not zero-valued) on cycles where the drive was
    disabled and no command was issued.
    """

    cycle: int
    enabled: bool
    pose: Pose
    measured_states: List[ModuleState]
    setpoints: List[ModuleState] = field(default_factory=list)
    optimized_setpoints: List[ModuleState] = field(default_factory=list)
    field_velocity: ChassisSpeeds = field(default_factory=ChassisSpeeds)
    gyro_connected: bool = False


class Drive:
    """Four-module swerve drive with gyro-aided odometry.

    Attributes:
        modules: Swerve modules in FL, FR, BL, BR order
        kinematics: Swerve kinematics built from the module translations
        setpoint: Chassis command consumed by the next periodic() call
        module_test_index: Module driven by the single-module voltage ramps
        last_record: Telemetry from the most recent periodic() call
    """

    def __init__(
        self,
        gyro_io: GyroIO,
        module_ios: Sequence[ModuleIO],
        config=None,
        simulated: bool = False,
        discretize: bool = True,
        desaturate: bool = True,
    ):
        """Initialize the drive.

        Args:
            gyro_io: Gyro implementation
            module_ios: Module implementations in FL, FR, BL, BR order
            config: Configuration module. If None, uses swerve_control.config.
            simulated: Use simulation gains for the modules
            discretize: Compensate the chassis command for the loop period
            desaturate: Scale wheel speeds down to the max linear speed

        Raises:
            ConfigurationError: If the module count, loop period or speed
                limits are invalid.
        """
        if config is None:
            from swerve_control import config as cfg
        else:
            cfg = config

        if len(module_ios) != cfg.NUM_MODULES:
            raise ConfigurationError(
                f"Drive requires {cfg.NUM_MODULES} modules, got {len(module_ios)}"
            )
        if cfg.LOOP_PERIOD_SECS <= 0:
            raise ConfigurationError(f"Loop period must be positive, got {cfg.LOOP_PERIOD_SECS}")
        if cfg.MAX_LINEAR_SPEED <= 0:
            raise ConfigurationError(
                f"Max linear speed must be positive, got {cfg.MAX_LINEAR_SPEED}"
            )

        self.config = cfg
        self.loop_period = cfg.LOOP_PERIOD_SECS
        self.max_linear_speed = cfg.MAX_LINEAR_SPEED
        self.drive_base_radius = math.hypot(cfg.TRACK_WIDTH_X / 2.0, cfg.TRACK_WIDTH_Y / 2.0)
        self.max_angular_speed = self.max_linear_speed / self.drive_base_radius
        self.discretize = discretize
        self.desaturate = desaturate

        self.gyro_io = gyro_io
        self.gyro_inputs = GyroInputs()
        self.modules: List[SwerveModule] = [
            SwerveModule(io, i, config=cfg, simulated=simulated) for i, io in enumerate(module_ios)
        ]

        self.kinematics = SwerveKinematics(self.get_module_translations(cfg))
        self.pose = Pose()
        self.last_gyro_rotation: Optional[float] = None
        self.field_velocity = ChassisSpeeds()
        self.setpoint = ChassisSpeeds()
        self.module_test_index = 0

        self.cycle = 0
        self.last_record: Optional[DriveRecord] = None
        self._gyro_was_connected: Optional[bool] = None

    def periodic(self, enabled: bool) -> DriveRecord:
        """Run one control cycle.

        Args:
            enabled: False while the robot is disabled by the field or driver
                station; modules are then stopped for this cycle.

        Returns:
            Telemetry record for this cycle
        """
        # 1. Sensor snapshot
        self.gyro_io.update_inputs(self.gyro_inputs)
        for module in self.modules:
            module.update_inputs()

        if self.gyro_inputs.connected != self._gyro_was_connected:
            logging.debug(
                f"Gyro {'connected' if self.gyro_inputs.connected else 'disconnected'}, "
                f"heading from {'gyro' if self.gyro_inputs.connected else 'kinematics'}"
            )
            self._gyro_was_connected = self.gyro_inputs.connected

        # 2-5. Odometry
        self._update_odometry()

        # 6-7. Setpoints
        setpoints: List[ModuleState] = []
        optimized_setpoints: List[ModuleState] = []
        if not enabled:
            for module in self.modules:
                module.stop()
        else:
            speeds = self.setpoint
            if self.discretize:
                speeds = ChassisSpeeds.discretize(speeds, self.loop_period)
            setpoints = self.kinematics.to_wheel_states(speeds)
            if self.desaturate:
                setpoints = SwerveKinematics.desaturate(setpoints, self.max_linear_speed)

            for module, state in zip(self.modules, setpoints):
                optimized_setpoints.append(module.run_setpoint(state))

        # 8. Field velocity from measured states
        measured_states = self.get_module_states()
        chassis_speeds = self.kinematics.to_chassis_velocity(measured_states)
        linear_field_velocity = Translation(chassis_speeds.vx, chassis_speeds.vy).rotate_by(
            self.get_rotation()
        )
        self.field_velocity = ChassisSpeeds(
            linear_field_velocity.x,
            linear_field_velocity.y,
            self.gyro_inputs.yaw_velocity if self.gyro_inputs.connected else chassis_speeds.omega,
        )

        self.last_record = DriveRecord(
            cycle=self.cycle,
            enabled=enabled,
            pose=self.pose,
            measured_states=measured_states,
            setpoints=setpoints,
            optimized_setpoints=optimized_setpoints,
            field_velocity=self.field_velocity,
            gyro_connected=self.gyro_inputs.connected,
        )
        self.cycle += 1
        return self.last_record

    def _update_odometry(self) -> None:
        wheel_deltas = [module.get_position_delta() for module in self.modules]

        # Motion since the last cycle from the modules alone
        twist = self.kinematics.to_twist(wheel_deltas)

        if self.gyro_inputs.connected:
            current_gyro_rotation = self.gyro_inputs.yaw_position
            if self.last_gyro_rotation is None:
                self.last_gyro_rotation = current_gyro_rotation
            # Gyro is authoritative for rotation whenever it reports in
            twist = Twist(
                twist.dx,
                twist.dy,
                wrap_angle(current_gyro_rotation - self.last_gyro_rotation),
            )
            self.last_gyro_rotation = current_gyro_rotation
        else:
            # Track a virtual gyro from the kinematics
            self.last_gyro_rotation = wrap_angle((self.last_gyro_rotation or 0.0) + twist.dtheta)

        self.pose = self.pose.exp(twist)

    def run_velocity(self, speeds: ChassisSpeeds) -> None:
        """Command a body-frame chassis velocity (m/s, rad/s) from the next cycle on."""
        self.setpoint = speeds

    def stop(self) -> None:
        """Command zero velocity. Modules keep their current headings."""
        self.run_velocity(ChassisSpeeds())

    def stop_with_x(self) -> None:
        """Stop and turn the modules into an X to resist being pushed.

        Each module points along its own translation from the robot centre.
        The modules return to their normal orientation the next time a
        nonzero velocity is requested.
        """
        headings = [t.angle for t in self.get_module_translations(self.config)]
        self.kinematics.reset_headings(headings)
        self.stop()

    def run_characterization_volts(self, volts: float) -> None:
        """Drive every module straight ahead at a fixed open-loop voltage."""
        for module in self.modules:
            module.run_characterization(volts)

    def run_drive_command_ramp_volts(self, volts: float) -> None:
        """Apply a voltage to the drive motor of the test module; stop the others."""
        for i, module in enumerate(self.modules):
            if i == self.module_test_index:
                module.run_drive_motor(volts)
            else:
                module.stop()

    def run_turn_command_ramp_volts(self, volts: float) -> None:
        """Apply a voltage to the turn motor of the test module; stop the others."""
        for i, module in enumerate(self.modules):
            if i == self.module_test_index:
                module.run_turn_motor(volts)
            else:
                module.stop()

    def set_module_test_index(self, index: int) -> None:
        if not 0 <= index < len(self.modules):
            raise ValueError(
                f"Module test index must be in [0, {len(self.modules) - 1}], got {index}"
            )
        self.module_test_index = index

    def get_characterization_velocity(self) -> float:
        """Average drive velocity of all modules (rad/s)."""
        return sum(module.get_characterization_velocity() for module in self.modules) / len(
            self.modules
        )

    def set_brake_mode(self, enabled: bool) -> None:
        for module in self.modules:
            module.set_brake_mode(enabled)

    def get_module_states(self) -> List[ModuleState]:
        """Measured speed and angle of every module."""
        return [module.get_state() for module in self.modules]

    def get_chassis_velocity(self) -> ChassisSpeeds:
        """Body-frame chassis velocity from the measured module states."""
        return self.kinematics.to_chassis_velocity(self.get_module_states())

    def get_pose(self) -> Pose:
        """Current odometry pose."""
        return self.pose

    def set_pose(self, pose: Pose) -> None:
        """Overwrite the odometry pose. The gyro is not re-zeroed."""
        self.pose = pose

    def get_rotation(self) -> float:
        """Current odometry heading (rad)."""
        return self.pose.heading

    def get_yaw(self) -> float:
        return self.pose.heading

    def get_yaw_velocity(self) -> float:
        """Yaw rate reported by the gyro (rad/s); 0 when disconnected."""
        return self.gyro_inputs.yaw_velocity if self.gyro_inputs.connected else 0.0

    def get_field_velocity(self) -> ChassisSpeeds:
        """Measured field-frame velocity (vx, vy in m/s, omega in rad/s)."""
        return self.field_velocity

    def reset_field_heading(self) -> None:
        """Zero the gyro so the current direction becomes the field's forward."""
        self.gyro_io.reset()

    def get_max_linear_speed(self) -> float:
        return self.max_linear_speed

    def get_max_angular_speed(self) -> float:
        return self.max_angular_speed

    @staticmethod
    def get_module_translations(config=None) -> List[Translation]:
        """Module positions relative to the robot centre in FL, FR, BL, BR order."""
        if config is None:
            from swerve_control import config as cfg
        else:
            cfg = config

        half_x = cfg.TRACK_WIDTH_X / 2.0
        half_y = cfg.TRACK_WIDTH_Y / 2.0
        return [
            Translation(half_x, half_y),
            Translation(half_x, -half_y),
            Translation(-half_x, half_y),
            Translation(-half_x, -half_y),
        ]
