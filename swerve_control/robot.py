"""Robot container: wires the drive, mechanisms and driver input together.

Each control cycle the runtime hands the robot a DriverStationState snapshot
(enabled flag, mode, stick values, button requests). Robot.step() applies the
requests, runs the drive, arm and intake periodic updates, then advances the
simulated sensors.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from . import paths
from .arm import Arm, ArmIOSim, ArmPosition, arm_to_position
from .component_modes import ComponentMode
from .drive import Drive, DriveRecord
from .drive_io import GyroIOSim, ModuleIOSim
from .follower import HolonomicDriveController, HolonomicFollowerAdapter, Trajectory
from .intake import NoteIntake, NoteIntakeIOSim
from .teleop import joystick_drive


@dataclass
class DriverStationState:
    """Driver station snapshot for one cycle.

    Attributes:
        enabled: Robot enabled by the field / driver station
        mode: "teleop" or "autonomous"
        alliance: "blue" or "red"
        x, y, omega: Drive sticks in [-1, 1]
        x_lock: Hold the X-lock button
        reset_heading: Zero the gyro this cycle
        arm_manual: Manual arm stick in [-1, 1], None when not in use
        arm_preset: Name of an ArmPosition preset; acted on when it first appears
        piston: "extend" or "retract"
        intake: "intake", "eject" or "stop"
    """

    enabled: bool = False
    mode: str = "teleop"
    alliance: str = "blue"
    x: float = 0.0
    y: float = 0.0
    omega: float = 0.0
    x_lock: bool = False
    reset_heading: bool = False
    arm_manual: Optional[float] = None
    arm_preset: Optional[str] = None
    piston: Optional[str] = None
    intake: Optional[str] = None

    @classmethod
    def from_message(cls, data: Dict[str, Any]) -> "DriverStationState":
        """Build from a driver_station message.

        Raises:
            ValueError: If the message or one of its sections is not a JSON
                object, or mode, alliance or a preset name is not recognized.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
        joystick = data.get("joystick", {}) or {}
        arm = data.get("arm", {}) or {}
        for section, value in (("joystick", joystick), ("arm", arm)):
            if not isinstance(value, dict):
                raise ValueError(f"{section} must be an object, got {type(value).__name__}")
        if arm.get("preset") is not None and not isinstance(arm["preset"], str):
            raise ValueError(f"Arm preset must be a name, got {arm['preset']!r}")

        state = cls(
            enabled=bool(data.get("enabled", False)),
            mode=data.get("mode", "teleop"),
            alliance=data.get("alliance", "blue"),
            x=float(joystick.get("x", 0.0)),
            y=float(joystick.get("y", 0.0)),
            omega=float(joystick.get("omega", 0.0)),
            x_lock=bool(data.get("x_lock", False)),
            reset_heading=bool(data.get("reset_heading", False)),
            arm_manual=float(arm["manual"]) if arm.get("manual") is not None else None,
            arm_preset=arm.get("preset"),
            piston=arm.get("piston"),
            intake=data.get("intake"),
        )

        if state.mode not in ("teleop", "autonomous"):
            raise ValueError(f"Unknown mode: {state.mode}")
        if state.alliance not in ("blue", "red"):
            raise ValueError(f"Unknown alliance: {state.alliance}")
        if state.arm_preset is not None and state.arm_preset.upper() not in ArmPosition.__members__:
            raise ValueError(f"Unknown arm preset: {state.arm_preset}")
        return state


class Robot:
    """Simulated robot: swerve drive, arm and note intake.

    Attributes:
        drive: Swerve drive coordinator
        arm: Arm subsystem
        intake: Note intake subsystem
        adapter: Path-follower bridge to the drive
        auto_controller: Trajectory tracker used in autonomous
    """

    def __init__(
        self,
        component_mode: Optional[ComponentMode] = None,
        autonomous_trajectory: Optional[Trajectory] = None,
        config=None,
    ):
        if config is None:
            from swerve_control import config as cfg
        else:
            cfg = config

        if component_mode is None:
            component_mode = ComponentMode()
        self.component_mode = component_mode
        self.loop_period = cfg.LOOP_PERIOD_SECS

        self.gyro_io = GyroIOSim(connected=component_mode.use_gyro, dt=cfg.LOOP_PERIOD_SECS)
        self.drive = Drive(
            self.gyro_io,
            [ModuleIOSim(config=cfg) for _ in range(cfg.NUM_MODULES)],
            config=cfg,
            simulated=True,
            discretize=component_mode.use_discretize,
            desaturate=component_mode.use_desaturate,
        )
        self.drive.set_brake_mode(component_mode.brake_mode)
        self.arm = Arm(ArmIOSim(config=cfg, dt=cfg.LOOP_PERIOD_SECS), config=cfg)
        self.intake = NoteIntake(NoteIntakeIOSim(), config=cfg)

        self.alliance = "blue"
        self.adapter = HolonomicFollowerAdapter(
            self.drive, should_flip=lambda: self.alliance == "red", config=cfg
        )
        self.auto_controller = HolonomicDriveController(self.adapter, period=cfg.LOOP_PERIOD_SECS)
        self.autonomous_trajectory = (
            autonomous_trajectory if autonomous_trajectory is not None else paths.figure_eight()
        )

        self.time = 0.0
        self.last_mode: Optional[str] = None
        self.last_arm_preset: Optional[str] = None
        self.was_enabled = False

    def step(self, ds: DriverStationState) -> DriveRecord:
        """Run one robot cycle.

        Args:
            ds: Driver station snapshot for this cycle

        Returns:
            Drive telemetry for this cycle
        """
        self.alliance = ds.alliance
        entering_auto = ds.enabled and ds.mode == "autonomous" and (
            not self.was_enabled or self.last_mode != "autonomous"
        )
        if ds.enabled != self.was_enabled:
            logging.info(f"Robot {'enabled' if ds.enabled else 'disabled'} ({ds.mode})")

        if ds.reset_heading:
            self.drive.reset_field_heading()

        if ds.enabled and ds.mode == "autonomous":
            if entering_auto:
                logging.info("Starting autonomous trajectory")
                self.auto_controller.start(self.autonomous_trajectory, self.time)
            if self.auto_controller.is_finished(self.time):
                self.drive.stop()
            else:
                self.auto_controller.compute_control(self.time)
        elif ds.x_lock:
            self.drive.stop_with_x()
        else:
            joystick_drive(
                self.drive,
                ds.x,
                ds.y,
                ds.omega,
                field_relative=self.component_mode.field_relative,
                flip=ds.alliance == "red",
            )

        self._apply_mechanism_requests(ds)

        record = self.drive.periodic(ds.enabled)
        self.arm.periodic(ds.enabled, self.time)
        self.intake.periodic(ds.enabled)

        self.simulation_periodic()

        self.was_enabled = ds.enabled
        self.last_mode = ds.mode
        self.time += self.loop_period
        return record

    def _apply_mechanism_requests(self, ds: DriverStationState) -> None:
        # Presets trigger on the press, not while held
        if ds.arm_preset is not None and ds.arm_preset != self.last_arm_preset:
            arm_to_position(self.arm, ArmPosition[ds.arm_preset.upper()])
        elif ds.arm_manual is not None:
            self.arm.set_manual(ds.arm_manual)
        self.last_arm_preset = ds.arm_preset

        if ds.piston == "extend":
            self.arm.set_extended()
        elif ds.piston == "retract":
            self.arm.set_retracted()

        if ds.intake == "intake":
            self.intake.start_intake()
        elif ds.intake == "eject":
            self.intake.eject()
        elif ds.intake == "stop":
            self.intake.stop()

    def simulation_periodic(self) -> None:
        """Feed the simulated gyro the yaw rate the modules are producing."""
        self.gyro_io.set_yaw_velocity(self.drive.get_chassis_velocity().omega)

    def mechanism_diagnostics(self) -> Dict[str, Any]:
        """Arm and intake state for logging."""
        return {
            "arm_state": self.arm.arm_state.value,
            "arm_angle": self.arm.inputs.angle_rads,
            "arm_setpoint": self.arm.setpoint.position,
            "arm_volts": self.arm.applied_feedforward,
            "piston_state": self.arm.piston_state.value,
            "intake_state": self.intake.state.value,
            "has_note": int(self.intake.has_note()),
        }

    def telemetry(self, record: DriveRecord) -> Dict[str, Any]:
        """JSON-serializable telemetry message for one cycle."""
        pose = record.pose
        velocity = record.field_velocity
        return {
            "message_type": "telemetry",
            "cycle": record.cycle,
            "enabled": record.enabled,
            "pose": {"x": pose.x, "y": pose.y, "heading": pose.heading},
            "field_velocity": {"vx": velocity.vx, "vy": velocity.vy, "omega": velocity.omega},
            "gyro_connected": record.gyro_connected,
            "measured_states": [[s.speed, s.angle] for s in record.measured_states],
            "setpoints": [[s.speed, s.angle] for s in record.setpoints],
            "optimized_setpoints": [[s.speed, s.angle] for s in record.optimized_setpoints],
            "mechanisms": self.mechanism_diagnostics(),
        }
