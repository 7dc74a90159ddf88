"""
Component isolation modes for simulation runs.

This module defines which parts of the drive pipeline are active/bypassed so
each one's effect on tracking can be evaluated in isolation.
"""

import argparse
import sys
from dataclasses import dataclass


@dataclass
class ComponentMode:
    """Configuration for which drive components are active."""

    # Odometry
    use_gyro: bool = True  # If False, the simulated gyro reports disconnected

    # Setpoint pipeline
    use_discretize: bool = True  # If False, send the continuous chassis command
    use_desaturate: bool = True  # If False, wheel speeds may exceed the limit

    # Teleop
    field_relative: bool = True  # If False, sticks are robot-relative

    # Motors
    brake_mode: bool = True  # If False, motors coast when unpowered

    def __str__(self):
        """Human-readable description of active components."""
        components = ["Gyro" if self.use_gyro else "Kinematics heading"]

        setpoint_steps = []
        if self.use_discretize:
            setpoint_steps.append("Discretize")
        setpoint_steps.append("IK")
        if self.use_desaturate:
            setpoint_steps.append("Desaturate")
        components.append("+".join(setpoint_steps))

        components.append("Field-relative" if self.field_relative else "Robot-relative")
        components.append("Brake" if self.brake_mode else "Coast")

        return " → ".join(components)

    def to_dict(self):
        """Convert to dictionary for logging."""
        return {
            "use_gyro": self.use_gyro,
            "use_discretize": self.use_discretize,
            "use_desaturate": self.use_desaturate,
            "field_relative": self.field_relative,
            "brake_mode": self.brake_mode,
        }


def parse_component_flags(args=None):
    """
    Parse command-line flags to determine which components are active.

    Args:
        args: List of command-line arguments (default: sys.argv[1:])

    Returns:
        tuple: (ComponentMode, remaining_args)
            - ComponentMode with appropriate settings
            - List of remaining arguments not consumed
    """
    parser = argparse.ArgumentParser(add_help=False)

    parser.add_argument("--no-gyro", action="store_true",
                        help="Simulate a disconnected gyro (kinematics-only heading)")
    parser.add_argument("--no-discretize", action="store_true",
                        help="Skip chassis command discretization")
    parser.add_argument("--no-desaturate", action="store_true",
                        help="Skip wheel speed desaturation")
    parser.add_argument("--robot-relative", action="store_true",
                        help="Interpret joystick input in the robot frame")
    parser.add_argument("--coast", action="store_true",
                        help="Put drive motors in coast mode")

    if args is None:
        args = sys.argv[1:]

    known_args, remaining_args = parser.parse_known_args(args)

    mode = ComponentMode(
        use_gyro=not known_args.no_gyro,
        use_discretize=not known_args.no_discretize,
        use_desaturate=not known_args.no_desaturate,
        field_relative=not known_args.robot_relative,
        brake_mode=not known_args.coast,
    )

    return mode, remaining_args
