"""Note intake: a single roller motor with a note-present sensor."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class IntakeState(Enum):
    IDLE = "idle"
    INTAKING = "intaking"
    EJECTING = "ejecting"


@dataclass
class NoteIntakeInputs:
    velocity_rpm: float = 0.0
    has_note: bool = False
    applied_volts: float = 0.0
    current_amps: float = 0.0


class NoteIntakeIO(Protocol):
    def update_inputs(self, inputs: NoteIntakeInputs) -> None:
        ...

    def set_voltage(self, volts: float) -> None:
        ...

    def set_brake_mode(self, brake: bool) -> None:
        ...


class NoteIntakeIOSim:
    """Simulated intake. A note is picked up after the roller has run
    forward for ``cycles_to_note`` cycles and released when ejecting."""

    def __init__(self, cycles_to_note: int = 25, rpm_per_volt: float = 500.0):
        self.cycles_to_note = cycles_to_note
        self.rpm_per_volt = rpm_per_volt
        self.volts = 0.0
        self.brake = True
        self.has_note = False
        self.intake_cycles = 0

    def update_inputs(self, inputs: NoteIntakeInputs) -> None:
        if self.volts > 0 and not self.has_note:
            self.intake_cycles += 1
            if self.intake_cycles >= self.cycles_to_note:
                self.has_note = True
        elif self.volts < 0:
            self.has_note = False
            self.intake_cycles = 0

        inputs.velocity_rpm = self.volts * self.rpm_per_volt
        inputs.has_note = self.has_note
        inputs.applied_volts = self.volts
        inputs.current_amps = abs(self.volts) * 1.5

    def set_voltage(self, volts: float) -> None:
        self.volts = volts

    def set_brake_mode(self, brake: bool) -> None:
        self.brake = brake


class NoteIntake:
    """Intake subsystem.

    INTAKING runs the roller until the sensor reports a note, then drops back
    to IDLE on its own. Disabling the robot forces IDLE.
    """

    def __init__(self, io: NoteIntakeIO, config=None):
        if config is None:
            from swerve_control import config as cfg
        else:
            cfg = config

        logging.info("[Init] Creating NoteIntake")
        self.io = io
        self.inputs = NoteIntakeInputs()
        self.intake_voltage = cfg.INTAKE_VOLTAGE
        self.eject_voltage = cfg.EJECT_VOLTAGE
        self.state = IntakeState.IDLE
        self.io.set_brake_mode(True)

    def periodic(self, enabled: bool) -> None:
        self.io.update_inputs(self.inputs)

        if not enabled:
            self.state = IntakeState.IDLE

        if self.state is IntakeState.INTAKING and self.inputs.has_note:
            logging.debug("Note acquired, stopping intake")
            self.state = IntakeState.IDLE

        if self.state is IntakeState.IDLE:
            self.io.set_voltage(0.0)
        elif self.state is IntakeState.INTAKING:
            self.io.set_voltage(self.intake_voltage)
        elif self.state is IntakeState.EJECTING:
            self.io.set_voltage(self.eject_voltage)
        else:
            raise ValueError(f"Unhandled intake state: {self.state}")

    def start_intake(self) -> None:
        # Nothing to do with a note already held
        if not self.inputs.has_note:
            self.state = IntakeState.INTAKING

    def eject(self) -> None:
        self.state = IntakeState.EJECTING

    def stop(self) -> None:
        self.state = IntakeState.IDLE

    def has_note(self) -> bool:
        return self.inputs.has_note
