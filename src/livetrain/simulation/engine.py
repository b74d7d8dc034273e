"""
Simulation Engine for the Livetrain Simulator

This module implements the update cycle driving every simulated body, along
with pause/resume, speed scaling and batched "advance by" time progression.

Update Cycle:
    1. Pending advance request of duration D at resolution r:
           for k in 1..ceil(D / r):
               bank r into the clock
               t_k <- clock.simulation_time()
               body.update(t_k) for every body, in registration order
    2. If running: t <- clock.simulation_time() once, then body.update(t)
       for every body.

Simulation time is captured once per pass so every body of a pass observes
the same timestamp. Advancement runs inline inside a single update() call;
its latency grows with the requested duration.

Author: Scientific Computing Team
License: MIT
"""

import math
import logging
import warnings
from typing import TYPE_CHECKING, Any, Dict, List, Protocol

from .clock import Clock

if TYPE_CHECKING:
    from ..robot.robot import Robot

logger = logging.getLogger(__name__)


class Simulant(Protocol):
    """Anything the simulation can advance."""

    def update(self, timestamp: float) -> None: ...

    def reset_timestamp(self) -> None: ...


class Simulation:
    """
    Ordered registry of simulated bodies and the cycle that advances them.

    The robot is registered first at construction, so it is always updated
    first. There is no removal API.

    Attributes:
        clock (Clock): Shared time authority
        robot: The controlled robot (first registered body)
        resolution (float): Step used by batched advancement [s]
    """

    DEFAULT_RESOLUTION = 0.01
    ADVANCE_WARNING_SECONDS = 60.0

    def __init__(self, clock: Clock, robot: "Robot", resolution: float = DEFAULT_RESOLUTION):
        if resolution <= 0:
            raise ValueError(f"Advance resolution must be positive, got {resolution}")

        self.clock = clock
        self.robot = robot
        self.resolution = float(resolution)
        self._objects: List[Simulant] = []

        self._advance_pending = False
        self._advance_time = 0.0

        self.add_object(robot)

    @property
    def objects(self) -> List[Simulant]:
        """Registered bodies in update order."""
        return list(self._objects)

    def add_object(self, body: Simulant) -> None:
        self._objects.append(body)

    @property
    def run(self) -> bool:
        return self.clock.running

    def set_run(self, run: bool) -> None:
        """
        Start or pause the simulation.

        Every body's timestamp is reset so that the first cycle after the
        transition only records a baseline.
        """
        if run:
            self.clock.start()
        else:
            self.clock.pause()

        self._reset_timestamps()
        logger.info(f"Set Simulation.run={run} at sim t={self.clock.simulation_time():.3f}s")

    def set_speed(self, speed: float) -> None:
        self.clock.simulation_speed = speed

    @property
    def advance_pending(self) -> bool:
        return self._advance_pending

    def advance(self, duration: float, reset_timestamps: bool = True) -> None:
        """
        Request that simulation time be advanced by duration on the next update().

        Args:
            duration: Seconds of simulation time to replay (non-negative)
            reset_timestamps: Reset every body first, so the first replayed step
                only records a baseline. Chained advances pass False to keep
                integrating continuously.

        Raises:
            ValueError: If duration is negative or not finite
        """
        if not math.isfinite(duration) or duration < 0:
            raise ValueError(f"Advance duration must be finite and non-negative, got {duration}")
        if duration > self.ADVANCE_WARNING_SECONDS:
            warnings.warn(f"Advancing by {duration:.1f}s runs inline and will block the "
                          f"update loop for {int(math.ceil(duration / self.resolution))} steps")

        if reset_timestamps:
            self._reset_timestamps()
        self._advance_time = float(duration)
        self._advance_pending = True
        logger.info(f"Advance simulation by {duration}s requested")

    def reset(self) -> None:
        """Pause, return the robot to its initial pose and powers, and zero simulation time."""
        self.set_run(False)
        self.robot.restore_initial_state()
        self.clock.reset()
        logger.info("Simulation reset")

    def _reset_timestamps(self) -> None:
        for body in self._objects:
            body.reset_timestamp()

    def _step(self, timestamp: float) -> None:
        for body in self._objects:
            body.update(timestamp)

    def update(self) -> None:
        """Run one cycle: pending advancement first, then a live pass if running."""
        if self._advance_pending:
            steps = int(math.ceil(self._advance_time / self.resolution - 1e-9))
            for _ in range(steps):
                self.clock.bank(self.resolution)
                self._step(self.clock.simulation_time())

            self._advance_pending = False
            logger.debug(f"Advanced {steps} steps to sim t={self.clock.simulation_time():.3f}s")

        if not self.run:
            return

        self._step(self.clock.simulation_time())

    def get_current_state(self) -> Dict[str, Any]:
        """
        Snapshot for UI and renderer consumers.

        Returns:
            Dictionary with time, run state and the robot's telemetry
        """
        state: Dict[str, Any] = {
            'simulation_time': self.clock.simulation_time(),
            'wall_time': self.clock.timestamp(),
            'running': self.run,
            'speed': self.clock.simulation_speed,
            'object_count': len(self._objects),
        }
        state.update(self.robot.get_current_state())
        return state

    def __repr__(self) -> str:
        return (f"Simulation({'running' if self.run else 'paused'}, "
                f"t={self.clock.simulation_time():.2f}s, objects={len(self._objects)})")
