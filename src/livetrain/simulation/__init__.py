"""
Simulation components for livetrain.

Components:
    - Clock: Pausable simulation time with banking and speed scaling
    - KinematicBody: Three-axis jerk-constant motion state
    - TrajectoryBuilder: Hermite paths timed by motion profiles
    - Simulation: Ordered body registry and update cycle
"""

from .clock import Clock
from .motion import KinematicBody, MotionState1D, Pose, rotate
from .trajectory import (HermitePath, HermiteSegment, MotionConstraints, MotionProfile,
                         PathType, ProfileType, Trajectory, TrajectoryBuilder)
from .engine import Simulant, Simulation

__all__ = [
    "Clock",
    "KinematicBody",
    "MotionState1D",
    "Pose",
    "rotate",
    "HermitePath",
    "HermiteSegment",
    "MotionConstraints",
    "MotionProfile",
    "PathType",
    "ProfileType",
    "Trajectory",
    "TrajectoryBuilder",
    "Simulant",
    "Simulation",
]
