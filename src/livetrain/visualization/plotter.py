"""
Run telemetry recording and plotting.

Classes:
    RunRecorder: Samples a simulation into time series and summarises tracking error

Functions:
    plot_run: Plots actual vs reference path and wheel powers of a recorded run

Author: Scientific Computing Team
License: MIT
"""

import logging
import numpy as np
import matplotlib.pyplot as plt
from typing import Any, Dict, List, Optional
from dataclasses import dataclass

from ..simulation.engine import Simulation
from ..simulation.trajectory import Trajectory

logger = logging.getLogger(__name__)


@dataclass
class TrackingStatistics:
    """Position tracking error statistics over a run."""
    mean_error: float
    max_error: float
    rms_error: float
    final_error: float
    final_heading_error: float
    samples: int


class RunRecorder:
    """
    Records one telemetry sample per call to record().

    Reference poses are only available once the controller has fired; until
    then the reference columns hold NaN.
    """

    def __init__(self):
        self.times: List[float] = []
        self.actual: List[np.ndarray] = []
        self.estimated: List[np.ndarray] = []
        self.reference: List[np.ndarray] = []
        self.powers: List[np.ndarray] = []

    def __len__(self) -> int:
        return len(self.times)

    def record(self, simulation: Simulation) -> None:
        state = simulation.get_current_state()
        missing = np.full(3, np.nan)

        self.times.append(state['simulation_time'])
        self.actual.append(state['pose'].to_array())
        self.estimated.append(state['estimated_pose'].to_array()
                              if state['estimated_pose'] is not None else missing)
        self.reference.append(state['path_pose'].to_array()
                              if state['path_pose'] is not None else missing)
        self.powers.append(np.array(state['powers']))

    def as_arrays(self) -> Dict[str, np.ndarray]:
        """Export the recorded series as numpy arrays."""
        return {
            'times': np.array(self.times),
            'actual': np.array(self.actual).reshape(-1, 3),
            'estimated': np.array(self.estimated).reshape(-1, 3),
            'reference': np.array(self.reference).reshape(-1, 3),
            'powers': np.array(self.powers).reshape(-1, 4),
        }

    def tracking_errors(self) -> np.ndarray:
        """Euclidean distance between actual and reference position per sample (NaN-free)."""
        data = self.as_arrays()
        errors = np.linalg.norm(data['actual'][:, :2] - data['reference'][:, :2], axis=1)
        return errors[np.isfinite(errors)]

    def summary(self) -> Optional[TrackingStatistics]:
        """
        Returns:
            Tracking statistics, or None if no sample has a reference pose
        """
        errors = self.tracking_errors()
        if errors.size == 0:
            return None

        data = self.as_arrays()
        finite = np.all(np.isfinite(data['reference']), axis=1)
        last = np.flatnonzero(finite)[-1]

        return TrackingStatistics(
            mean_error=float(np.mean(errors)),
            max_error=float(np.max(errors)),
            rms_error=float(np.sqrt(np.mean(errors ** 2))),
            final_error=float(errors[-1]),
            final_heading_error=float(data['actual'][last, 2] - data['reference'][last, 2]),
            samples=int(errors.size),
        )


def sample_path(trajectory: Trajectory, points_per_segment: int = 50) -> np.ndarray:
    """Sample a trajectory's path segments by arc length into an Nx3 array."""
    poses = []
    for segment in trajectory.path.segments:
        for s in np.linspace(0.0, segment.length, points_per_segment):
            poses.append(segment.pose_at(s).to_array())
    return np.array(poses)


def plot_run(recorder: RunRecorder, trajectory: Optional[Trajectory] = None,
             show: bool = True) -> Any:
    """
    Plot a recorded run.

    Args:
        recorder: Recorded telemetry
        trajectory: Optional trajectory whose path is drawn for reference
        show: Call plt.show() before returning

    Returns:
        The matplotlib Figure
    """
    if len(recorder) == 0:
        raise ValueError("Nothing recorded to plot")

    data = recorder.as_arrays()
    figure, (path_axes, power_axes) = plt.subplots(1, 2, figsize=(14, 6))

    if trajectory is not None:
        path = sample_path(trajectory)
        path_axes.plot(path[:, 0], path[:, 1], 'k--', linewidth=1, label='Path')
        waypoints = np.array([wp.to_array() for wp in trajectory.path.waypoints])
        path_axes.plot(waypoints[:, 0], waypoints[:, 1], 'ko', label='Waypoints')

    path_axes.plot(data['reference'][:, 0], data['reference'][:, 1], 'b-', alpha=0.6, label='Reference')
    path_axes.plot(data['actual'][:, 0], data['actual'][:, 1], 'r-', label='Actual')
    if np.any(np.isfinite(data['estimated'])):
        path_axes.plot(data['estimated'][:, 0], data['estimated'][:, 1], 'g:', alpha=0.6, label='Estimated')
    path_axes.set_xlabel('x')
    path_axes.set_ylabel('y')
    path_axes.set_aspect('equal', adjustable='datalim')
    path_axes.set_title('Robot path')
    path_axes.legend()
    path_axes.grid(True, alpha=0.3)

    labels = ('front-left', 'back-left', 'back-right', 'front-right')
    for wheel, label in enumerate(labels):
        power_axes.plot(data['times'], data['powers'][:, wheel], label=label)
    power_axes.set_ylim(-1.1, 1.1)
    power_axes.set_xlabel('Simulation time [s]')
    power_axes.set_ylabel('Wheel power')
    power_axes.set_title('Wheel powers')
    power_axes.legend()
    power_axes.grid(True, alpha=0.3)

    figure.tight_layout()
    logger.info(f"Plotted run with {len(recorder)} samples")

    if show:
        plt.show()
    return figure
