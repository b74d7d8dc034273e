"""
Closed-loop trajectory follower for a mecanum robot.

Control Law:
    At time t the reference trajectory is sampled for pose P_ref, velocity
    V_ref and acceleration A_ref. With the estimated pose P_est:

        e_θ            = θ_est - θ_ref
        [e_ax, e_lat]  = R(-θ_est) (p_est - p_ref)
        [v_ax, v_lat]  = R(-θ_est) v_ref
        [a_ax, a_lat]  = R(-θ_est) a_ref

        h   = PIDF_heading(e_θ, t)
        ax  = PIDF_axial(e_ax, t, v_ax, a_ax)
        lat = PIDF_lateral(e_lat, t, v_lat, a_lat)

    Corrections are mixed straight into wheel powers with the mecanum sign
    pattern (front-left, back-left, back-right, front-right):

        p0 = ax - lat - h
        p1 = ax + lat - h
        p2 = ax - lat + h
        p3 = ax + lat + h

    The mixing assumes mecanum geometry whatever the drivetrain type is, and
    powers are left unclamped; the drivetrain clamps them when they are set.
"""

import logging
import numpy as np
from typing import Optional, Sequence

from ..simulation.motion import Pose, rotate
from ..simulation.trajectory import Trajectory
from .control import PIDFCoefficients, PIDFController

logger = logging.getLogger(__name__)

DEFAULT_HEADING_COEFFICIENTS = (0.5, 0.0, 0.0, 0.2, 0.0, 0.0)
DEFAULT_LATERAL_COEFFICIENTS = (-0.05, 0.0, 0.0, 0.02, 0.0, 0.0)
DEFAULT_AXIAL_COEFFICIENTS = (-0.05, 0.0, 0.0, 0.02, 0.0, 0.0)


class NoTrajectoryError(RuntimeError):
    """Raised when the follower is updated before a trajectory is assigned."""


class TrajectoryFollower:
    """
    Three-axis feedback controller tracking a reference trajectory.

    Attributes:
        path_pose (Optional[Pose]): Last sampled reference pose
        path_velocity (Optional[Pose]): Last sampled reference velocity
        path_acceleration (Optional[Pose]): Last sampled reference acceleration
    """

    def __init__(self,
                 heading: Sequence[float] = DEFAULT_HEADING_COEFFICIENTS,
                 lateral: Sequence[float] = DEFAULT_LATERAL_COEFFICIENTS,
                 axial: Sequence[float] = DEFAULT_AXIAL_COEFFICIENTS):
        self._trajectory: Optional[Trajectory] = None
        self.path_pose: Optional[Pose] = None
        self.path_velocity: Optional[Pose] = None
        self.path_acceleration: Optional[Pose] = None
        self.set_coefficients(heading, lateral, axial)

    @property
    def coefficients(self):
        """(heading, lateral, axial) coefficient sets currently in use."""
        return (self._heading_controller.coefficients,
                self._lateral_controller.coefficients,
                self._axial_controller.coefficients)

    def set_coefficients(self, heading: Sequence[float], lateral: Sequence[float],
                         axial: Sequence[float]) -> None:
        """
        Replace all three controllers.

        Every set is validated before any controller is replaced, so a bad set
        leaves the previous controllers in place.

        Raises:
            ValueError: If any set is not exactly 6 finite numbers
        """
        heading_k = PIDFCoefficients.from_sequence(heading)
        lateral_k = PIDFCoefficients.from_sequence(lateral)
        axial_k = PIDFCoefficients.from_sequence(axial)

        self._heading_controller = PIDFController(heading_k)
        self._lateral_controller = PIDFController(lateral_k)
        self._axial_controller = PIDFController(axial_k)

        logger.info(f"Set TrajectoryFollower controller coefficients "
                    f"heading={list(heading_k)} lateral={list(lateral_k)} axial={list(axial_k)}")

    @property
    def trajectory(self) -> Optional[Trajectory]:
        return self._trajectory

    @property
    def has_trajectory(self) -> bool:
        return self._trajectory is not None

    def set_trajectory(self, trajectory: Trajectory) -> None:
        self._trajectory = trajectory
        logger.info(f"Set TrajectoryFollower.trajectory {trajectory!r}")

    def clear_trajectory(self) -> None:
        self._trajectory = None
        self.path_pose = self.path_velocity = self.path_acceleration = None
        logger.info("Cleared TrajectoryFollower.trajectory")

    def update(self, estimated_pose: Pose, t: float) -> np.ndarray:
        """
        Compute wheel powers that drive the estimated pose onto the reference.

        Args:
            estimated_pose: Pose as observed by the controller (noise included)
            t: Simulation time [s] at which to sample the trajectory

        Returns:
            Unclamped wheel powers [p0, p1, p2, p3]

        Raises:
            NoTrajectoryError: If no trajectory has been assigned
            ValueError: If the computation produced non-finite powers
        """
        if self._trajectory is None:
            raise NoTrajectoryError("TrajectoryFollower.update called with no trajectory assigned")

        logger.debug(f"Trajectory follower update @ t={t:.4f}")

        self.path_pose = self._trajectory.pose_at_time(t)
        self.path_velocity = self._trajectory.velocity_at_time(t)
        self.path_acceleration = self._trajectory.acceleration_at_time(t)

        logger.debug(f"Trajectory poses p={self.path_pose} v={self.path_velocity} "
                     f"a={self.path_acceleration}")

        heading_error = estimated_pose.heading - self.path_pose.heading
        heading_update = self._heading_controller.update(heading_error, t)

        # Spatial error in the robot frame
        axial_error, lateral_error = rotate(estimated_pose.position - self.path_pose.position,
                                            -estimated_pose.heading)
        robot_velocity = rotate(self.path_velocity.position, -estimated_pose.heading)
        robot_acceleration = rotate(self.path_acceleration.position, -estimated_pose.heading)

        axial_update = self._axial_controller.update(
            axial_error, t, robot_velocity[0], robot_acceleration[0])
        lateral_update = self._lateral_controller.update(
            lateral_error, t, robot_velocity[1], robot_acceleration[1])

        logger.debug(f"Errors heading={heading_error:.4f} axial={axial_error:.4f} "
                     f"lateral={lateral_error:.4f}; updates heading={heading_update:.4f} "
                     f"axial={axial_update:.4f} lateral={lateral_update:.4f}")

        powers = np.array([
            axial_update - lateral_update - heading_update,
            axial_update + lateral_update - heading_update,
            axial_update - lateral_update + heading_update,
            axial_update + lateral_update + heading_update,
        ])

        if not np.all(np.isfinite(powers)):
            raise ValueError(f"Follower produced non-finite wheel powers {powers.tolist()} at t={t:.4f}")

        return powers
