"""
Drivetrain Kinematics for the Simulated Robot

This module converts the four wheel power commands of a mecanum chassis into
a body-frame velocity.

Mathematical Model:
    Wheel indices start at the front left and go counter-clockwise:
    0 = front-left, 1 = back-left, 2 = back-right, 3 = front-right.

    With wheel radius r, half-track dimensions (w, l) and maximum velocity V:

        vx = ( p0 + p1 + p2 + p3) * r/4 * V
        vy = (-p0 + p1 - p2 + p3) * r/4 * V
        ω  = (-p0 - p1 + p2 + p3) * r / (4 (w + l))

Powers are always clamped to [-1, 1] as they are stored.

Author: Scientific Computing Team
License: MIT
"""

import logging
import numpy as np
from typing import Tuple
from enum import Enum

from ..simulation.motion import Pose

logger = logging.getLogger(__name__)


class DrivetrainType(Enum):
    """Supported drivetrain kinematics."""
    MECANUM = "mecanum"
    TANK = "tank"      # placeholder, produces no motion


class Drivetrain:
    """
    Four-wheel drivetrain with mutable geometry.

    Attributes:
        drivetrain_type (DrivetrainType): Kinematic model used by state()
        max_velocity (float): Linear velocity at full power per unit radius
        wheel_radius (float): Wheel radius
        half_width (float): Half of the wheel separation across the chassis
        half_length (float): Half of the wheel separation along the chassis
    """

    WHEEL_COUNT = 4

    def __init__(self,
                 drivetrain_type: DrivetrainType = DrivetrainType.MECANUM,
                 max_velocity: float = 50.0,
                 wheel_radius: float = 2.0,
                 half_width: float = 9.0,
                 half_length: float = 9.0):
        if max_velocity <= 0:
            raise ValueError(f"Maximum velocity must be positive, got {max_velocity}")

        self.drivetrain_type = drivetrain_type
        self.max_velocity = float(max_velocity)
        self._powers = np.zeros(self.WHEEL_COUNT)
        self._wheel_radius = 0.0
        self._half_width = 0.0
        self._half_length = 0.0

        self.set_wheel_radius(wheel_radius)
        self.set_geometry(half_width, half_length)

    @property
    def powers(self) -> Tuple[float, float, float, float]:
        """Wheel powers (front-left, back-left, back-right, front-right)."""
        return tuple(float(p) for p in self._powers)

    def power(self, index: int) -> float:
        return float(self._powers[index])

    @staticmethod
    def _checked(values) -> np.ndarray:
        values = np.asarray(values, dtype=np.float64)
        if not np.all(np.isfinite(values)):
            raise ValueError(f"Wheel powers must be finite, got {values.tolist()}")
        return values

    def set_power(self, index: int, power: float) -> None:
        """Set one wheel's power, clamped to [-1, 1]."""
        self._powers[index] = np.clip(self._checked([power])[0], -1.0, 1.0)

    def set_powers(self, a: float, b: float, c: float, d: float) -> None:
        """Set all four wheel powers, each clamped to [-1, 1]."""
        self._powers = np.clip(self._checked([a, b, c, d]), -1.0, 1.0)

    def update_powers(self, a: float, b: float, c: float, d: float) -> None:
        """Increment all four wheel powers and clamp the results to [-1, 1]."""
        self._powers = np.clip(self._powers + self._checked([a, b, c, d]), -1.0, 1.0)

    @property
    def wheel_radius(self) -> float:
        return self._wheel_radius

    def set_wheel_radius(self, radius: float) -> None:
        if not np.isfinite(radius) or radius <= 0:
            raise ValueError(f"Wheel radius must be positive, got {radius}")
        self._wheel_radius = float(radius)
        logger.info(f"Set Drivetrain.wheel_radius={self._wheel_radius}")

    @property
    def half_width(self) -> float:
        return self._half_width

    @property
    def half_length(self) -> float:
        return self._half_length

    def set_geometry(self, half_width: float, half_length: float) -> None:
        """
        Set the half-track dimensions used by the angular term.

        Raises:
            ValueError: If either dimension is not finite and positive
        """
        if not np.all(np.isfinite([half_width, half_length])) or min(half_width, half_length) <= 0:
            raise ValueError(
                f"Half-track dimensions must be positive, got ({half_width}, {half_length})")
        self._half_width = float(half_width)
        self._half_length = float(half_length)

    def state(self) -> Pose:
        """
        Body-frame velocity for the current type and wheel powers.

        Returns:
            Pose <vx, vy, ω>
        """
        if self.drivetrain_type == DrivetrainType.MECANUM:
            p0, p1, p2, p3 = self._powers
            r = self._wheel_radius
            x_vel = (p0 + p3 + p1 + p2) * (r / 4.0)
            y_vel = (-p0 + p3 + p1 - p2) * (r / 4.0)
            theta_vel = (-p0 + p3 - p1 + p2) * (r / (4.0 * (self._half_width + self._half_length)))
            return Pose(float(x_vel * self.max_velocity), float(y_vel * self.max_velocity), float(theta_vel))

        if self.drivetrain_type == DrivetrainType.TANK:
            return Pose()

        raise ValueError(f"Unknown drivetrain type: {self.drivetrain_type}")

    def __repr__(self) -> str:
        return (f"Drivetrain({self.drivetrain_type.value}, r={self._wheel_radius:.2f}, "
                f"powers={list(np.round(self._powers, 3))})")
