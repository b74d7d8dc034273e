"""
Composition root and update loop for the Livetrain simulator.

build_simulation() is the only place the clock, noise generator, robot and
simulation are constructed and wired together. SimulationLoop drives the
resulting simulation continuously on a dedicated thread.
"""

import time
import logging
import threading
from typing import Callable, Optional

from .config import SimulationConfig
from .simulation.clock import Clock
from .simulation.engine import Simulation
from .noise.noise import NoiseGenerator
from .robot.robot import Robot

logger = logging.getLogger(__name__)


def build_simulation(config: Optional[SimulationConfig] = None,
                     time_source: Callable[[], float] = time.monotonic) -> Simulation:
    """
    Construct and wire every component of a simulation.

    Args:
        config: Simulation configuration. Defaults to SimulationConfig().
        time_source: Monotonic seconds source for the clock

    Returns:
        A paused Simulation whose robot is ready to follow the configured path
    """
    config = config or SimulationConfig()

    clock = Clock(time_source)
    clock.simulation_speed = config.speed

    noise = NoiseGenerator(enabled=config.noise.enabled, seed=config.noise.seed)
    noise.set_static(config.noise.static_kind, *config.noise.static_bounds)
    noise.set_additive(config.noise.additive_kind, *config.noise.additive_bounds)

    rc = config.robot
    robot = Robot(clock, noise, rc.x, rc.y, rc.heading, rc.width, rc.height,
                  rc.wheel_radius, rc.max_velocity, rc.update_frequency, rc.initial_powers)
    robot.follower.set_coefficients(config.controller.heading, config.controller.lateral,
                                    config.controller.axial)
    robot.set_motion_constraints(config.constraints.max_velocity,
                                 config.constraints.max_acceleration,
                                 config.constraints.max_jerk)

    if len(config.waypoints) >= 2:
        robot.build_trajectory(config.waypoints, config.path_type, config.profile_type)
        robot.set_is_following_trajectory(config.follow_trajectory)

    simulation = Simulation(clock, robot, config.resolution)
    logger.info(f"Simulation built: {robot!r}")
    return simulation


class SimulationLoop:
    """
    Continuous update loop on a daemon thread.

    There is no cancellation: once started the loop runs until the process
    exits. Exceptions raised by an update are logged and end the thread.

    Attributes:
        simulation (Simulation): Simulation being driven
        idle_interval (float): Sleep between cycles [s]; 0 spins
    """

    def __init__(self, simulation: Simulation, idle_interval: float = 0.001):
        if idle_interval < 0:
            raise ValueError(f"Idle interval must be non-negative, got {idle_interval}")
        self.simulation = simulation
        self.idle_interval = idle_interval
        self.cycles = 0
        self._thread: Optional[threading.Thread] = None

    def run_cycles(self, count: int) -> None:
        """Synchronously run a fixed number of update cycles."""
        for _ in range(count):
            self._cycle()

    def _cycle(self) -> None:
        try:
            self.simulation.update()
        except Exception:
            logger.exception(f"Simulation update failed after {self.cycles} cycles")
            raise
        self.cycles += 1

    def run_forever(self) -> None:
        while True:
            self._cycle()
            if self.idle_interval:
                time.sleep(self.idle_interval)

    def start(self) -> threading.Thread:
        """Start the loop on a daemon thread (idempotent)."""
        if self._thread is None:
            self._thread = threading.Thread(target=self.run_forever, name="livetrain-loop", daemon=True)
            self._thread.start()
            logger.info("Simulation loop started")
        return self._thread
