"""
Time Authority for the Livetrain Simulator

This module provides the clock that every simulated object consults for
timestamps. It separates wall time from simulation time so the simulation can
be paused, resumed, reset and advanced in fixed increments without simulation
time ever running backwards.

Time Model:
    wall(t)      = source(t) - epoch
    sim(t)       = bank                          (paused)
    sim(t)       = bank + wall(t) - sim_epoch    (running)

    On start:  sim_epoch <- wall(now)
    On pause:  bank      <- bank + wall(now) - sim_epoch

The speed multiplier is deliberately NOT part of sim(t). Each kinematic body
scales its own integration step by it, so the displayed simulation time stays
proportional to wall time while body dynamics are stretched or compressed.

Author: Scientific Computing Team
License: MIT
"""

import time
import logging
from typing import Callable

logger = logging.getLogger(__name__)


class Clock:
    """
    Pausable simulation clock with time banking.

    A single Clock is created by the composition root and passed to every
    component that needs time. All state is plain mutable attributes; writes
    from a control surface are expected to become visible to the update loop
    eventually, with no stronger guarantee.

    Attributes:
        simulation_speed (float): Integration dt multiplier applied by bodies
        time_bank (float): Simulation seconds accumulated before the last start
        sim_epoch (float): Wall timestamp at which the simulation last started
        running (bool): Whether simulation time is currently advancing
    """

    def __init__(self, time_source: Callable[[], float] = time.monotonic):
        """
        Initialize the clock and capture the process epoch.

        Args:
            time_source: Monotonic seconds source. Tests inject a fake.
        """
        self._time_source = time_source
        self._epoch = time_source()

        self._simulation_speed = 1.0
        self.time_bank = 0.0
        self.sim_epoch = 0.0
        self.running = False

    @property
    def simulation_speed(self) -> float:
        """Multiplier applied to every body's integration step."""
        return self._simulation_speed

    @simulation_speed.setter
    def simulation_speed(self, speed: float) -> None:
        if speed < 0:
            raise ValueError(f"Simulation speed must be non-negative, got {speed}")
        self._simulation_speed = float(speed)
        logger.info(f"Set Clock.simulation_speed={self._simulation_speed:.2f}")

    def timestamp(self) -> float:
        """
        Returns:
            Wall-clock seconds elapsed since the clock was created
        """
        return self._time_source() - self._epoch

    def simulation_time(self) -> float:
        """
        Returns:
            Current simulation time in seconds, frozen while paused
        """
        if not self.running:
            return self.time_bank
        return self.time_bank + (self.timestamp() - self.sim_epoch)

    def start(self) -> None:
        """Resume simulation time from the banked value."""
        if self.running:
            return
        self.sim_epoch = self.timestamp()
        self.running = True

    def pause(self) -> None:
        """Freeze simulation time, banking everything elapsed since start."""
        if not self.running:
            return
        self.time_bank += self.timestamp() - self.sim_epoch
        self.running = False

    def reset(self) -> None:
        """Zero the time bank and restart the epoch at the current wall time."""
        self.time_bank = 0.0
        self.sim_epoch = self.timestamp()

    def bank(self, dt: float) -> None:
        """
        Add a fixed increment to the time bank.

        Used by batched advancement, which moves simulation time forward while
        the simulation is visually paused.

        Args:
            dt: Seconds to bank (non-negative)
        """
        if dt < 0:
            raise ValueError(f"Cannot bank negative time {dt}")
        self.time_bank += dt

    def __repr__(self) -> str:
        state = "running" if self.running else "paused"
        return (f"Clock({state}, sim={self.simulation_time():.3f}s, "
                f"speed={self._simulation_speed:.2f})")
