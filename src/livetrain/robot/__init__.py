"""
Robot components: drivetrain kinematics, feedback control and composition.
"""

from .control import PIDFCoefficients, PIDFController
from .drivetrain import Drivetrain, DrivetrainType
from .follower import NoTrajectoryError, TrajectoryFollower
from .robot import Robot

__all__ = [
    "PIDFCoefficients",
    "PIDFController",
    "Drivetrain",
    "DrivetrainType",
    "NoTrajectoryError",
    "TrajectoryFollower",
    "Robot",
]
