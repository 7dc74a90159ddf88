"""Joystick driving.

Shapes raw stick input into a chassis command:
- Deadband on the linear stick magnitude and on the rotation stick
- Squared response for finer control at low deflection
- Scaled to the drive's max linear and angular speeds
- Converted from field-relative to robot-relative using the odometry heading
"""

import math

from .geometry import ChassisSpeeds


def apply_deadband(value: float, deadband: float, max_magnitude: float = 1.0) -> float:
    """Zero small inputs and rescale the rest to start from 0 at the deadband edge.

    Args:
        value: Raw input
        deadband: Inputs with magnitude at or below this become 0
        max_magnitude: Input magnitude that maps to full output

    Returns:
        Shaped input in [-max_magnitude, max_magnitude]
    """
    if abs(value) <= deadband:
        return 0.0
    scaled = (abs(value) - deadband) / (max_magnitude - deadband) * max_magnitude
    return math.copysign(min(scaled, max_magnitude), value)


def joystick_to_speeds(
    x: float,
    y: float,
    omega: float,
    max_linear_speed: float,
    max_angular_speed: float,
    robot_heading: float = 0.0,
    field_relative: bool = True,
    flip: bool = False,
    deadband: float = 0.1,
) -> ChassisSpeeds:
    """Convert stick values in [-1, 1] to a body-frame chassis command.

    Args:
        x: Forward stick (positive away from the driver)
        y: Left stick (positive to the driver's left)
        omega: Rotation stick (positive counter-clockwise)
        max_linear_speed: Speed at full deflection (m/s)
        max_angular_speed: Rotation rate at full deflection (rad/s)
        robot_heading: Odometry heading (rad), used when field_relative
        field_relative: Interpret x/y in the field frame
        flip: Driver stands on the red alliance wall; field forward is reversed
        deadband: Stick deadband

    Returns:
        Robot-relative ChassisSpeeds
    """
    linear_magnitude = apply_deadband(math.hypot(x, y), deadband)
    linear_direction = math.atan2(y, x)
    omega = apply_deadband(omega, deadband)

    # Square for finer control at low speed
    linear_magnitude = linear_magnitude * linear_magnitude
    omega = math.copysign(omega * omega, omega)

    vx = linear_magnitude * math.cos(linear_direction) * max_linear_speed
    vy = linear_magnitude * math.sin(linear_direction) * max_linear_speed
    omega_speed = omega * max_angular_speed

    if not field_relative:
        return ChassisSpeeds(vx, vy, omega_speed)

    heading = robot_heading + math.pi if flip else robot_heading
    return ChassisSpeeds.from_field_relative(vx, vy, omega_speed, heading)


def joystick_drive(
    drive,
    x: float,
    y: float,
    omega: float,
    field_relative: bool = True,
    flip: bool = False,
    deadband: float = 0.1,
) -> ChassisSpeeds:
    """Shape stick input and write it to the drive's command slot."""
    speeds = joystick_to_speeds(
        x,
        y,
        omega,
        drive.get_max_linear_speed(),
        drive.get_max_angular_speed(),
        robot_heading=drive.get_rotation(),
        field_relative=field_relative,
        flip=flip,
        deadband=deadband,
    )
    drive.run_velocity(speeds)
    return speeds
