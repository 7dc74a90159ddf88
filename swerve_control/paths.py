"""Sample trajectories for simulation and autonomous testing.

These are fixed, analytically defined paths, not a path planner:
- figure_eight: Lemniscate of Gerono traced at constant parameter rate
- straight_line: constant-velocity segment between two poses
"""

import numpy as np
import numpy.typing as npt

from .follower import Trajectory
from .geometry import Pose


def lemniscate_position(
    k: npt.NDArray[np.float64], scale: float
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """Position on the Lemniscate of Gerono for path parameter k.

    The curve is:
        x = -scale * sin(k) * cos(k)
        y = scale * (sin(k) + 1)

    Args:
        k: Path parameter(s) in radians
        scale: Half-width of the figure eight (m)

    Returns:
        Tuple of (x, y) arrays in meters, relative to the start point
    """
    x = -scale * np.sin(k) * np.cos(k)
    y = scale * (np.sin(k) + 1.0)
    return x, y


def figure_eight(
    duration: float = 20.0,
    dt: float = 0.1,
    origin: Pose = Pose(2.0, 2.0, 0.0),
    scale: float = 2.0,
    face_forward: bool = False,
) -> Trajectory:
    """Figure-eight trajectory starting and ending at ``origin``.

    k sweeps from -pi/2 to 3pi/2 over ``duration`` seconds, which traces the
    whole lemniscate once.

    Args:
        duration: Time to complete the figure eight (seconds)
        dt: Sample spacing (seconds)
        origin: Start pose; its heading is held unless face_forward is set
        scale: Half-width of the figure eight (m)
        face_forward: Point the robot along the direction of travel

    Returns:
        Trajectory sampled every dt
    """
    t = np.arange(0.0, duration + dt / 2.0, dt)
    k = 2.0 * np.pi * t / duration - np.pi / 2.0
    x_rel, y_rel = lemniscate_position(k, scale)

    x = origin.x + x_rel
    y = origin.y + y_rel

    if face_forward:
        # Direction of travel from the analytic derivatives dx/dk, dy/dk
        dx_dk = -scale * np.cos(2.0 * k)
        dy_dk = scale * np.cos(k)
        heading = np.arctan2(dy_dk, dx_dk)
    else:
        heading = np.full_like(t, origin.heading)

    return Trajectory.from_arrays(t, x, y, heading)


def straight_line(start: Pose, end: Pose, duration: float, dt: float = 0.1) -> Trajectory:
    """Constant-velocity trajectory from start to end.

    Heading is interpolated along with position.
    """
    if duration <= 0:
        raise ValueError(f"Duration must be positive, got {duration}")

    t = np.arange(0.0, duration + dt / 2.0, dt)
    frac = np.clip(t / duration, 0.0, 1.0)
    dheading = np.arctan2(np.sin(end.heading - start.heading), np.cos(end.heading - start.heading))

    return Trajectory.from_arrays(
        t,
        start.x + frac * (end.x - start.x),
        start.y + frac * (end.y - start.y),
        start.heading + frac * dheading,
    )
