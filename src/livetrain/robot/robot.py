"""
Robot Composition: Kinematic Body + Drivetrain + Trajectory Follower

This module implements the controlled vehicle. The robot owns a kinematic
body, a mecanum drivetrain and a trajectory follower, and runs the per-cycle
pipeline that connects them.

Update Cycle:
    1. Controller gate: the follower fires only while following a trajectory
       and at most once per 1/update_frequency seconds of simulation time.
    2. On firing:
           offset    <- offset + n_additive          (persistent)
           estimated <- (actual + offset) + n_static
           powers    <- follower(estimated, t)  ->  drivetrain (clamped)
    3. Every cycle, fired or not:
           [vx, vy]_world = R(θ) [vx, vy]_drivetrain
           ω_world        = -ω_drivetrain
       then the body integrates.

The sign flip on ω is part of the model: positive wheel mixing drives the
world heading down.

Author: Scientific Computing Team
License: MIT
"""

import logging
import numpy as np
from typing import Any, Dict, Optional, Sequence, Tuple

from ..simulation.clock import Clock
from ..simulation.motion import KinematicBody, Pose, rotate
from ..simulation.trajectory import (MotionConstraints, PathType, ProfileType,
                                     Trajectory, TrajectoryBuilder)
from ..noise.noise import NoiseGenerator, NoiseType
from .drivetrain import Drivetrain, DrivetrainType
from .follower import TrajectoryFollower

logger = logging.getLogger(__name__)


class Robot:
    """
    Trajectory-following mecanum robot.

    The controller gate measures from the last controller firing, not from the
    last integration step.

    Attributes:
        body (KinematicBody): True kinematic state
        drivetrain (Drivetrain): Wheel powers and kinematics
        follower (TrajectoryFollower): Closed-loop controller
        noise (NoiseGenerator): Shared pose-noise source
        motion_constraints (MotionConstraints): Limits for trajectories built by this robot
        initial_pose (Pose): Pose restored by a simulation reset
        initial_powers (Tuple): Wheel powers restored by a simulation reset
        actual_pose (Optional[Pose]): True pose at the last controller firing
        estimated_pose (Optional[Pose]): Noisy pose handed to the follower
        noise_pose (Pose): Accumulated additive noise offset
    """

    def __init__(self,
                 clock: Clock,
                 noise: NoiseGenerator,
                 x: float = 0.0,
                 y: float = 0.0,
                 heading: float = 0.0,
                 width: float = 18.0,
                 height: float = 18.0,
                 wheel_radius: float = 2.0,
                 max_velocity: float = 50.0,
                 update_frequency: float = 100.0,
                 initial_powers: Sequence[float] = (0.0, 0.0, 0.0, 0.0),
                 follower: Optional[TrajectoryFollower] = None):
        self.body = KinematicBody(clock, x, y, heading)
        self.noise = noise
        self.drivetrain = Drivetrain(DrivetrainType.MECANUM, max_velocity, wheel_radius,
                                     width / 2.0, height / 2.0)
        self.follower = follower or TrajectoryFollower()
        self.motion_constraints = MotionConstraints()
        self.initial_pose = Pose(x, y, heading)
        self.initial_powers = (0.0, 0.0, 0.0, 0.0)
        self.set_initial_powers(*initial_powers)

        self._width = float(width)
        self._height = float(height)
        self._update_frequency = 0.0
        self.set_update_frequency(update_frequency)

        self.is_following_trajectory = False
        self.actual_pose: Optional[Pose] = None
        self.estimated_pose: Optional[Pose] = None
        self.noise_pose = Pose()
        self._last_control_timestamp: Optional[float] = None

    # Geometry and configuration

    @property
    def width(self) -> float:
        return self._width

    @property
    def height(self) -> float:
        return self._height

    def set_size(self, width: float, height: float) -> None:
        """Resize the chassis; the drivetrain half-track follows."""
        self.drivetrain.set_geometry(width / 2.0, height / 2.0)
        self._width = float(width)
        self._height = float(height)
        logger.info(f"Set Robot size width={self._width} height={self._height}")

    @property
    def update_frequency(self) -> float:
        """Maximum controller firing rate [Hz]."""
        return self._update_frequency

    def set_update_frequency(self, frequency: float) -> None:
        if not np.isfinite(frequency) or frequency <= 0:
            raise ValueError(f"Update frequency must be positive, got {frequency}")
        self._update_frequency = float(frequency)
        logger.info(f"Set Robot.update_frequency={self._update_frequency}")

    def set_is_following_trajectory(self, following: bool) -> None:
        self.is_following_trajectory = bool(following)
        logger.info(f"Set Robot.is_following_trajectory={self.is_following_trajectory}")

    def set_motion_constraints(self, max_velocity: float, max_acceleration: float,
                               max_jerk: float) -> None:
        self.motion_constraints = MotionConstraints(max_velocity, max_acceleration, max_jerk)
        logger.info(f"Set Robot.motion_constraints v={max_velocity} a={max_acceleration} j={max_jerk}")

    def set_initial_pose(self, x: float, y: float, heading: float) -> None:
        self.initial_pose = Pose(x, y, heading)
        logger.info(f"Set Robot.initial_pose={self.initial_pose}")

    def set_initial_powers(self, a: float, b: float, c: float, d: float) -> None:
        """
        Set the wheel powers restored on reset and apply them to the drivetrain.

        Raises:
            ValueError: If any power is not finite
        """
        self.drivetrain.set_powers(a, b, c, d)
        self.initial_powers = self.drivetrain.powers
        logger.info(f"Set Robot.initial_powers={list(self.initial_powers)}")

    def restore_initial_state(self) -> None:
        """Return to the initial pose and wheel powers, at rest."""
        self.set_pose(self.initial_pose.x, self.initial_pose.y, self.initial_pose.heading)
        self.drivetrain.set_powers(*self.initial_powers)
        self.zero_velocities()

    def build_trajectory(self, waypoints: Sequence[Pose],
                         path_type: PathType = PathType.HERMITE_CUBIC,
                         profile_type: ProfileType = ProfileType.TRIANGULAR) -> Trajectory:
        """
        Build a trajectory with this robot's constraints and hand it to the follower.

        Returns:
            The new trajectory
        """
        trajectory = TrajectoryBuilder.build(path_type, self.motion_constraints, profile_type, waypoints)
        self.follower.set_trajectory(trajectory)
        return trajectory

    # State access

    def pose(self) -> Pose:
        return self.body.pose()

    def velocity(self) -> Pose:
        return self.body.velocity()

    @property
    def powers(self) -> Tuple[float, float, float, float]:
        return self.drivetrain.powers

    def set_pose(self, x: float, y: float, heading: float) -> None:
        self.body.set_pose(x, y, heading)

    def zero_velocities(self) -> None:
        self.body.zero_velocities()

    def reset_timestamp(self) -> None:
        """Reset the integration baseline, the controller gate and the additive noise."""
        self.body.reset_timestamp()
        self._last_control_timestamp = None
        self.noise_pose = Pose()

    # Update cycle

    def _controller_due(self, timestamp: float) -> bool:
        if not self.is_following_trajectory:
            return False
        if self._last_control_timestamp is None:
            return True
        return timestamp - self._last_control_timestamp >= 1.0 / self._update_frequency

    def update(self, timestamp: float) -> None:
        """
        Run a single update cycle.

        Args:
            timestamp: Simulation time [s]
        """
        if self._controller_due(timestamp):
            actual = self.body.pose()
            noise_pose = self.noise.generate_pose(NoiseType.ROBOT_POSE_ADD, timestamp, self.noise_pose)
            estimated = self.noise.generate_pose(NoiseType.ROBOT_POSE_STATIC, timestamp,
                                                 actual + noise_pose)

            # Nothing is committed unless the follower succeeds
            powers = self.follower.update(estimated, timestamp)
            self.drivetrain.set_powers(*powers)

            self.actual_pose = actual
            self.noise_pose = noise_pose
            self.estimated_pose = estimated
            self._last_control_timestamp = timestamp
            logger.debug(f"Drivetrain powers {list(self.drivetrain.powers)}")
        elif self.is_following_trajectory:
            logger.debug("Queried follower, query denied")

        drivetrain_velocity = self.drivetrain.state()
        vx, vy = rotate([drivetrain_velocity.x, drivetrain_velocity.y], self.body.heading)
        self.body.set_velocity(float(vx), float(vy), -drivetrain_velocity.heading)

        self.body.update(timestamp)

    def get_current_state(self) -> Dict[str, Any]:
        """Snapshot of the robot for telemetry consumers."""
        return {
            'pose': self.pose(),
            'velocity': self.velocity(),
            'actual_pose': self.actual_pose,
            'estimated_pose': self.estimated_pose,
            'noise_pose': self.noise_pose,
            'powers': self.powers,
            'path_pose': self.follower.path_pose,
            'path_velocity': self.follower.path_velocity,
            'path_acceleration': self.follower.path_acceleration,
            'is_following_trajectory': self.is_following_trajectory,
        }

    def __repr__(self) -> str:
        return f"Robot({self.pose()!r}, following={self.is_following_trajectory})"
