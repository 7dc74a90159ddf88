"""Configuration parameters for the swerve drive control system.

This module centralizes all configuration parameters including:
- Drivetrain geometry and speed limits
- Swerve module gains (drive velocity and turn angle loops)
- Arm and intake mechanism constants
- Simulation model parameters
- WebSocket connection parameters

Classes that take a ``config`` argument read these names from whatever module
they are given, so an alternate robot can ship its own constants module.
"""

import math

# ============================================================================
# Control Loop Timing
# ============================================================================

LOOP_PERIOD_SECS = 0.02
"""Fixed control period (seconds).
One Drive.periodic() call per period; 50 Hz matches the robot runtime scheduler."""


# ============================================================================
# Drivetrain Geometry
# ============================================================================

TRACK_WIDTH_X = 0.5715
"""Distance between front and back module centres (meters). 22.5 in chassis."""

TRACK_WIDTH_Y = 0.5715
"""Distance between left and right module centres (meters)."""

WHEEL_RADIUS = 0.0508
"""Drive wheel radius (meters). 2 in wheels."""

DRIVE_GEAR_RATIO = 6.75
"""Drive motor rotations per wheel rotation (L2 gearing)."""

TURN_GEAR_RATIO = 150.0 / 7.0
"""Turn motor rotations per module rotation."""

NUM_MODULES = 4
"""Module count. Order is always front-left, front-right, back-left, back-right."""


# ============================================================================
# Speed Limits
# ============================================================================

MAX_LINEAR_SPEED = 4.0
"""Maximum wheel / chassis linear speed (m/s).

Wheel setpoints are desaturated against this value every cycle, so the fastest
wheel never exceeds it and the others are scaled by the same factor.
"""

DRIVE_BASE_RADIUS = math.hypot(TRACK_WIDTH_X / 2.0, TRACK_WIDTH_Y / 2.0)
"""Distance from robot centre to each module (meters)."""

MAX_ANGULAR_SPEED = MAX_LINEAR_SPEED / DRIVE_BASE_RADIUS
"""Maximum chassis angular speed (rad/s) when spinning in place at max wheel speed."""


# ============================================================================
# Swerve Module Gains
# ============================================================================

DRIVE_KS = 0.1
"""Drive static feedforward (volts). Overcomes friction before the wheel moves."""

DRIVE_KV = 0.13
"""Drive velocity feedforward (volts per rad/s of wheel speed)."""

DRIVE_KP = 0.05
"""Drive velocity proportional gain (volts per rad/s of error)."""

DRIVE_KD = 0.0
"""Drive velocity derivative gain. Disabled, velocity readings are too noisy."""

TURN_KP = 7.0
"""Turn angle proportional gain (volts per radian of error)."""

TURN_KD = 0.0
"""Turn angle derivative gain."""

MAX_VOLTAGE = 12.0
"""Battery voltage; every applied motor voltage is clamped to +/- this value."""


# ============================================================================
# Teleop Input
# ============================================================================

JOYSTICK_DEADBAND = 0.1
"""Joystick deadband applied to linear magnitude and rotation (range: [0, 1])."""


# ============================================================================
# Arm Parameters
# ============================================================================

ARM_FF_KS = 0.1
"""Arm static feedforward (volts)."""

ARM_FF_KG = 0.35
"""Arm gravity feedforward (volts at horizontal)."""

ARM_FF_KV = 1.9
"""Arm velocity feedforward (volts per rad/s)."""

ARM_FF_KA = 0.05
"""Arm acceleration feedforward (volts per rad/s^2)."""

ARM_MAX_VELOCITY = 2.0
"""Motion profile cruise velocity (rad/s)."""

ARM_MAX_ACCELERATION = 4.0
"""Motion profile acceleration limit (rad/s^2)."""

ARM_MANUAL_MAX_VELOCITY = 0.5
"""Arm velocity at full manual stick deflection (rad/s)."""

ARM_AMP_POSITION = 1.75
"""Preset arm angle for scoring in the amp (radians)."""

ARM_TRAP_POSITION = 2.05
"""Preset arm angle for the trap (radians)."""

ARM_DRIVE_POSITION = 0.35
"""Preset arm angle while driving (radians)."""

ARM_INTAKE_POSITION = 0.05
"""Preset arm angle for floor intake (radians)."""


# ============================================================================
# Intake Parameters
# ============================================================================

INTAKE_VOLTAGE = 8.0
"""Intake roller voltage while collecting a note (volts)."""

EJECT_VOLTAGE = -6.0
"""Intake roller voltage while ejecting (volts)."""


# ============================================================================
# Field Parameters
# ============================================================================

FIELD_LENGTH = 16.541
"""Field length along x (meters). Used to mirror poses for the red alliance."""


# ============================================================================
# Simulation Model Parameters
# ============================================================================

SIM_DRIVE_TIME_CONSTANT = 0.08
"""First-order time constant of the simulated drive wheel (seconds)."""

SIM_TURN_TIME_CONSTANT = 0.03
"""First-order time constant of the simulated turn motor (seconds)."""

SIM_TURN_KV = 1.5
"""Simulated turn motor volts per rad/s of module rotation at steady state."""

SIM_DRIVE_KS = 0.0
"""Drive static feedforward used with the simulated module (volts)."""

SIM_DRIVE_KP = 0.1
"""Drive proportional gain used with the simulated module."""

SIM_TURN_KP = 10.0
"""Turn proportional gain used with the simulated module."""


# ============================================================================
# Terminal Colors
# ============================================================================

TERM_ORANGE = "\033[38;2;247;72;35m"
"""Terminal color code for warnings and highlights (RGB: 247, 72, 35)."""

TERM_BLUE = "\033[38;2;35;116;247m"
"""Terminal color code for status lines (RGB: 35, 116, 247)."""

TERM_RESET = "\033[0m"
"""Terminal color reset code."""


# ============================================================================
# Plot Colors
# ============================================================================

PLOT_ORANGE = "#f74823"
"""Primary plot color - measured data, actual trajectory."""

PLOT_BLUE = "#2374f7"
"""Secondary plot color - setpoints, reference paths."""

PLOT_CREAM = "#fffdee"
"""Text and labels on dark backgrounds."""

PLOT_DARK_BLUE = "#0d1b2a"
"""Dark background color."""


# ============================================================================
# WebSocket Configuration
# ============================================================================

WS_URI = "ws://localhost:5810"
"""Driver station / simulation server URI."""

WS_RETRY_DELAY_SECONDS = 1
"""Initial retry delay for failed WebSocket connections (seconds)."""

WS_MAX_RETRY_DELAY_SECONDS = 60
"""Maximum retry delay with exponential backoff (seconds)."""

WS_TIMEOUT_SECONDS = 5.0
"""Timeout for WebSocket message reception (seconds)."""
