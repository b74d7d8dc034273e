"""
Planar Motion Model for Simulated Bodies

This module implements the kinematic state shared by every simulated object:
three independent jerk-constant 1-D motion states (x, y, heading), the planar
pose value type, frame rotations, and the per-cycle integration step.

Mathematical Framework:
    Each axis is integrated in closed form over a step dt with constant jerk:

        x(t+dt) = x + v dt + a dt²/2 + j dt³/6
        v(t+dt) = v + a dt + j dt²/2
        a(t+dt) = a + j dt
        j(t+dt) = j

    Body-frame vectors are mapped to the world frame with the planar rotation

        R(θ) = [[cos θ, -sin θ],
                [sin θ,  cos θ]]

Coordinate Frames:
    - World frame: fixed field coordinates
    - Body frame: x-forward (axial), y-left (lateral)

Heading is never wrapped to [-π, π]; it accumulates freely.

Author: Scientific Computing Team
License: MIT
"""

import numpy as np
from typing import Optional, Sequence
from dataclasses import dataclass, replace

from .clock import Clock


@dataclass(frozen=True)
class MotionState1D:
    """Position, velocity, acceleration and jerk along one axis."""

    x: float = 0.0
    v: float = 0.0
    a: float = 0.0
    j: float = 0.0

    def state_at_time(self, dt: float) -> "MotionState1D":
        """
        Advance the state by dt seconds assuming constant jerk.

        Args:
            dt: Time step [s]. Negative steps integrate backwards.

        Returns:
            New MotionState1D after dt
        """
        dt2 = dt * dt
        return MotionState1D(
            x=self.x + self.v * dt + self.a * dt2 / 2.0 + self.j * dt2 * dt / 6.0,
            v=self.v + self.a * dt + self.j * dt2 / 2.0,
            a=self.a + self.j * dt,
            j=self.j,
        )


@dataclass(frozen=True)
class Pose:
    """
    Planar pose (x, y, heading).

    Used for reference poses, estimated poses, velocity triples and error
    vectors alike. Addition and subtraction are component-wise, heading
    included.
    """

    x: float = 0.0
    y: float = 0.0
    heading: float = 0.0

    @property
    def position(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=np.float64)

    def __add__(self, other: "Pose") -> "Pose":
        return Pose(self.x + other.x, self.y + other.y, self.heading + other.heading)

    def __sub__(self, other: "Pose") -> "Pose":
        return Pose(self.x - other.x, self.y - other.y, self.heading - other.heading)

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite([self.x, self.y, self.heading])))

    def to_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.heading], dtype=np.float64)

    def __repr__(self) -> str:
        return f"Pose(x={self.x:.3f}, y={self.y:.3f}, heading={self.heading:.4f})"


def rotation_matrix(angle: float) -> np.ndarray:
    """2x2 rotation matrix for a counter-clockwise rotation by angle [rad]."""
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, -s],
                     [s, c]])


def rotate(vector: Sequence[float], angle: float) -> np.ndarray:
    """
    Rotate a planar vector by angle.

    Rotating by +θ maps body-frame vectors into the world frame for a body
    with heading θ; rotating by -θ maps world-frame vectors into the body.

    Args:
        vector: 2-element vector
        angle: Rotation angle [rad]

    Returns:
        Rotated 2-element numpy array
    """
    vector = np.asarray(vector, dtype=np.float64)
    if vector.shape != (2,):
        raise ValueError(f"Planar rotation needs a 2D vector, got shape {vector.shape}")
    return rotation_matrix(angle) @ vector


class KinematicBody:
    """
    Three-axis kinematic state advanced once per simulation cycle.

    The body integrates whatever velocity, acceleration and jerk its owner has
    written into it. The integration step is the elapsed simulation time scaled
    by the clock's speed multiplier.

    The first update after construction or reset_timestamp() only records a
    baseline timestamp. This is how pause/resume avoids integrating a large,
    stale dt.

    Attributes:
        clock (Clock): Shared time authority
        last_update_timestamp (Optional[float]): None until the first update
    """

    def __init__(self, clock: Clock, x: float = 0.0, y: float = 0.0, heading: float = 0.0):
        self.clock = clock
        self._x_state = MotionState1D(x=x)
        self._y_state = MotionState1D(x=y)
        self._heading_state = MotionState1D(x=heading)
        self.last_update_timestamp: Optional[float] = None

    @property
    def x_state(self) -> MotionState1D:
        return self._x_state

    @property
    def y_state(self) -> MotionState1D:
        return self._y_state

    @property
    def heading_state(self) -> MotionState1D:
        return self._heading_state

    @property
    def heading(self) -> float:
        return self._heading_state.x

    def pose(self) -> Pose:
        """Current pose <x, y, heading>."""
        return Pose(self._x_state.x, self._y_state.x, self._heading_state.x)

    def velocity(self) -> Pose:
        """Current world-frame velocity <vx, vy, omega>."""
        return Pose(self._x_state.v, self._y_state.v, self._heading_state.v)

    def set_pose(self, x: float, y: float, heading: float) -> None:
        """Teleport the body; velocities are left as they are."""
        self._x_state = replace(self._x_state, x=x)
        self._y_state = replace(self._y_state, x=y)
        self._heading_state = replace(self._heading_state, x=heading)

    def set_velocity(self, vx: float, vy: float, omega: float) -> None:
        """Overwrite the world-frame velocity of each axis."""
        self._x_state = replace(self._x_state, v=vx)
        self._y_state = replace(self._y_state, v=vy)
        self._heading_state = replace(self._heading_state, v=omega)

    def zero_velocities(self) -> None:
        """Remove all kinematic vectors (velocity, acceleration, jerk)."""
        self._x_state = MotionState1D(x=self._x_state.x)
        self._y_state = MotionState1D(x=self._y_state.x)
        self._heading_state = MotionState1D(x=self._heading_state.x)

    def reset_timestamp(self) -> None:
        """Make the next update a no-op that only records a fresh baseline."""
        self.last_update_timestamp = None

    def update(self, timestamp: float) -> None:
        """
        Run a single integration step.

        Args:
            timestamp: Simulation time [s]
        """
        if self.last_update_timestamp is not None:
            dt = (timestamp - self.last_update_timestamp) * self.clock.simulation_speed

            self._x_state = self._x_state.state_at_time(dt)
            self._y_state = self._y_state.state_at_time(dt)
            self._heading_state = self._heading_state.state_at_time(dt)

        self.last_update_timestamp = timestamp

    def __repr__(self) -> str:
        return f"KinematicBody({self.pose()!r})"
