"""
Livetrain: Mecanum Robot Trajectory-Following Simulator

A Python package for simulating a ground robot under closed-loop trajectory
tracking with interactive control over simulated time.

This package implements:
- A pausable, speed-scaled simulation clock with time banking
- Jerk-constant kinematic integration of planar bodies
- Mecanum drivetrain kinematics
- A three-axis PIDF trajectory follower over Hermite paths and motion profiles
- Sinusoidal and random pose noise emulating sensor imperfection
"""

from .simulation.clock import Clock
from .simulation.motion import KinematicBody, MotionState1D, Pose
from .simulation.trajectory import (MotionConstraints, PathType, ProfileType,
                                    Trajectory, TrajectoryBuilder)
from .simulation.engine import Simulation
from .noise.noise import Noise, NoiseGenerator, NoiseKind, NoiseType
from .robot.drivetrain import Drivetrain, DrivetrainType
from .robot.follower import NoTrajectoryError, TrajectoryFollower
from .robot.robot import Robot
from .config import SimulationConfig
from .app import SimulationLoop, build_simulation

__version__ = "1.0.0"
__author__ = "Livetrain Team"

__all__ = [
    "Clock",
    "KinematicBody",
    "MotionState1D",
    "Pose",
    "MotionConstraints",
    "PathType",
    "ProfileType",
    "Trajectory",
    "TrajectoryBuilder",
    "Simulation",
    "Noise",
    "NoiseGenerator",
    "NoiseKind",
    "NoiseType",
    "Drivetrain",
    "DrivetrainType",
    "NoTrajectoryError",
    "TrajectoryFollower",
    "Robot",
    "SimulationConfig",
    "SimulationLoop",
    "build_simulation",
]
