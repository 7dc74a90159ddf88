"""Swerve Control - Simulated Swerve Drive Robot with Arm and Note Intake

A layered control stack for a four-module swerve drivetrain, plus the arm and
intake mechanisms, run against a driver station server over WebSocket.

## Architecture Overview

### Layer 1: Module Control (module.py)
Each swerve module closes two loops on its own hardware interface.
- Turn: PID on wheel azimuth with continuous input over [-pi, pi]
- Drive: velocity feedforward plus PID, scaled by the cosine of the turn error
- Setpoint optimization: never rotate a wheel more than 90 degrees

### Layer 2: Kinematics (kinematics.py)
Maps chassis velocities to wheel states and back.
- Inverse kinematics with heading hold for zero commands (X-lock)
- Least-squares forward kinematics for odometry twists
- Desaturation to the maximum wheel speed

### Layer 3: Drive Subsystem (drive.py)
Runs odometry and applies chassis commands once per cycle.
- SE(2) pose integration using gyro yaw when connected
- Discretized chassis commands to remove second-order drift
- Characterization and single-motor voltage ramps for tuning

### Layer 4: Commands (follower.py, teleop.py, robot.py)
- Holonomic trajectory following with alliance flipping
- Field-relative joystick driving
- Arm presets and intake control

## Modules

- `config.py` - Centralized configuration parameters
- `geometry.py` - Pose, Twist and ChassisSpeeds
- `drive_io.py` - Hardware interfaces with simulated and replay implementations
- `controllers.py` - PID, feedforward and trapezoid profile
- `arm.py`, `intake.py` - Mechanism state machines
- `client.py` - WebSocket client and main control loop
- `data_collector.py` - CSV telemetry logging
- `visualization.py`, `plot_results.py` - Post-run plots

## Quick Start

```bash
python -m swerve_control --uri ws://localhost:5810
python -m swerve_control.plot_results --save
```
"""

__version__ = "0.1.0"

from .data_collector import DataCollector
from .drive import Drive
from .kinematics import SwerveKinematics
from .module import SwerveModule
from .robot import Robot

__all__ = [
    "Drive",
    "SwerveModule",
    "SwerveKinematics",
    "Robot",
    "DataCollector",
]
