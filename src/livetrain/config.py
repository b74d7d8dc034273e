"""
Configuration parameters for the Livetrain simulator.

Every tunable of the simulation lives in a validated dataclass. The defaults
reproduce the simulator's stock setup: an 18x18 robot at (24, 24) following a
Hermite cubic path to (144, 144, 45°) with a triangular profile.
"""

import math
from typing import Optional, Sequence, Tuple
from dataclasses import dataclass, field

from .simulation.motion import Pose
from .simulation.trajectory import MotionConstraints, PathType, ProfileType
from .noise.noise import NoiseKind
from .robot.follower import (DEFAULT_AXIAL_COEFFICIENTS, DEFAULT_HEADING_COEFFICIENTS,
                             DEFAULT_LATERAL_COEFFICIENTS)


@dataclass
class RobotConfig:
    """Physical robot parameters and initial pose."""

    x: float = 24.0
    y: float = 24.0
    heading: float = 0.0          # [rad]
    width: float = 18.0
    height: float = 18.0
    wheel_radius: float = 2.0
    max_velocity: float = 50.0
    update_frequency: float = 100.0  # Controller rate limit [Hz]
    initial_powers: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)

    def __post_init__(self):
        """Validate robot parameters."""
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Robot size must be positive, got {self.width}x{self.height}")
        if self.wheel_radius <= 0:
            raise ValueError(f"Wheel radius must be positive, got {self.wheel_radius}")
        if self.max_velocity <= 0:
            raise ValueError(f"Maximum velocity must be positive, got {self.max_velocity}")
        if self.update_frequency <= 0:
            raise ValueError(f"Update frequency must be positive, got {self.update_frequency}")
        if len(self.initial_powers) != 4 or not all(math.isfinite(p) for p in self.initial_powers):
            raise ValueError(f"Initial powers must be 4 finite values, got {self.initial_powers}")


@dataclass
class ControllerConfig:
    """(P, I, D, V, A, S) coefficient sets for the three feedback axes."""

    heading: Tuple[float, ...] = DEFAULT_HEADING_COEFFICIENTS
    lateral: Tuple[float, ...] = DEFAULT_LATERAL_COEFFICIENTS
    axial: Tuple[float, ...] = DEFAULT_AXIAL_COEFFICIENTS

    def __post_init__(self):
        """Validate coefficient set lengths."""
        for name in ("heading", "lateral", "axial"):
            values = getattr(self, name)
            if len(values) != 6:
                raise ValueError(f"{name} coefficients must be 6 in length, got {len(values)}")


@dataclass
class NoiseConfig:
    """Pose noise channels and the global enable flag."""

    enabled: bool = False
    static_kind: NoiseKind = NoiseKind.RANDOM
    static_bounds: Tuple[float, float] = (0.0, 0.0)
    additive_kind: NoiseKind = NoiseKind.RANDOM
    additive_bounds: Tuple[float, float] = (0.0, 0.0)
    seed: Optional[int] = None

    def __post_init__(self):
        """Validate noise bounds."""
        for name in ("static_bounds", "additive_bounds"):
            lower, upper = getattr(self, name)
            if lower > upper:
                raise ValueError(f"{name} lower bound {lower} exceeds upper bound {upper}")


def _default_waypoints() -> Tuple[Pose, ...]:
    return (Pose(24.0, 24.0, 0.0), Pose(144.0, 144.0, math.radians(45.0)))


@dataclass
class SimulationConfig:
    """Top-level configuration consumed by the composition root."""

    speed: float = 1.0
    resolution: float = 0.01      # Batched advance step [s]
    robot: RobotConfig = field(default_factory=RobotConfig)
    controller: ControllerConfig = field(default_factory=ControllerConfig)
    noise: NoiseConfig = field(default_factory=NoiseConfig)
    constraints: MotionConstraints = field(default_factory=MotionConstraints)
    waypoints: Sequence[Pose] = field(default_factory=_default_waypoints)
    path_type: PathType = PathType.HERMITE_CUBIC
    profile_type: ProfileType = ProfileType.TRIANGULAR
    follow_trajectory: bool = True

    def __post_init__(self):
        """Validate simulation parameters."""
        if self.speed < 0:
            raise ValueError(f"Simulation speed must be non-negative, got {self.speed}")
        if self.resolution <= 0:
            raise ValueError(f"Resolution must be positive, got {self.resolution}")
        if self.follow_trajectory and len(self.waypoints) < 2:
            raise ValueError(f"Following a trajectory needs at least 2 waypoints, got {len(self.waypoints)}")
