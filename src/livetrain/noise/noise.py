"""
Pose noise models emulating sensor and actuator imperfection.

This module implements the waveform generators used to perturb the pose a
robot's controller observes, and the generator that gates them behind a
single enable flag.

Noise Model:
    estimated = (actual + offset_k) + n_static
    offset_k  = offset_{k-1} + n_additive

    where:
    - offset_k: persistent additive offset pose, accumulated every controller
      cycle until the robot's timestamp is reset
    - n_static: read-time bias, re-drawn every cycle and never accumulated
    - each pose axis (x, y, heading) receives its own independent draw

Waveforms:
    - SINUSOIDAL: n(t) = sin(t) * r + r / 4,  r = upper - lower
      (deterministic given time; the r/4 offset makes it asymmetric about 0)
    - RANDOM: n ~ U[lower, upper)
"""

import logging
import numpy as np
from typing import Optional
from dataclasses import dataclass
from enum import Enum

from ..simulation.motion import Pose

logger = logging.getLogger(__name__)


class NoiseKind(Enum):
    """Waveform shapes."""
    SINUSOIDAL = "sinusoidal"
    RANDOM = "random"


class NoiseType(Enum):
    """Noise channels applied to the robot pose."""
    ROBOT_POSE_STATIC = "robot_pose_static"
    ROBOT_POSE_ADD = "robot_pose_add"


@dataclass(frozen=True)
class Noise:
    """
    Immutable noise waveform and bounds.

    Attributes:
        kind: Waveform shape
        lower: Lower bound of the waveform range
        upper: Upper bound of the waveform range
    """

    kind: NoiseKind = NoiseKind.RANDOM
    lower: float = 0.0
    upper: float = 0.0

    def __post_init__(self):
        """Validate noise bounds."""
        if not np.isfinite(self.lower) or not np.isfinite(self.upper):
            raise ValueError(f"Noise bounds must be finite, got [{self.lower}, {self.upper}]")
        if self.lower > self.upper:
            raise ValueError(f"Noise lower bound {self.lower} exceeds upper bound {self.upper}")

    @property
    def range(self) -> float:
        return self.upper - self.lower

    def generate(self, timestamp: float, rng: np.random.Generator) -> float:
        """
        Draw a single noise sample.

        Args:
            timestamp: Simulation time [s], drives the sinusoidal waveform
            rng: Random generator used by the RANDOM waveform

        Returns:
            Scalar perturbation
        """
        if self.kind == NoiseKind.SINUSOIDAL:
            return float(np.sin(timestamp) * self.range + self.range / 4.0)

        if self.kind == NoiseKind.RANDOM:
            return float(self.lower + rng.random() * self.range)

        raise ValueError(f"Unknown noise kind: {self.kind}")

    def __str__(self) -> str:
        return f"{self.kind.name}[{self.lower}, {self.upper}]"


class NoiseGenerator:
    """
    Holds the static and additive pose noise behind a global enable flag.

    When disabled every draw is exactly 0 regardless of the configured
    waveforms.

    Attributes:
        enabled (bool): Whether noise is applied at all
        static (Noise): Read-time, non-accumulating pose noise
        additive (Noise): Noise accumulated into a persistent offset pose
    """

    def __init__(self, enabled: bool = False, seed: Optional[int] = None):
        """
        Initialize the generator with zero-width RANDOM noise on both channels.

        Args:
            enabled: Initial state of the enable flag
            seed: Seed for the RANDOM waveform; None draws fresh entropy
        """
        self._enabled = enabled
        self.static = Noise()
        self.additive = Noise()
        self._rng = np.random.default_rng(seed)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, enabled: bool) -> None:
        self._enabled = bool(enabled)
        logger.info(f"Set NoiseGenerator.enabled={self._enabled}")

    def set_static(self, kind: NoiseKind, lower: float, upper: float) -> None:
        self.static = Noise(kind, lower, upper)
        logger.info(f"Set robot pose noise {self.static}")

    def set_additive(self, kind: NoiseKind, lower: float, upper: float) -> None:
        self.additive = Noise(kind, lower, upper)
        logger.info(f"Set robot pose additive noise {self.additive}")

    def noise_for(self, noise_type: NoiseType) -> Noise:
        if noise_type == NoiseType.ROBOT_POSE_STATIC:
            return self.static
        if noise_type == NoiseType.ROBOT_POSE_ADD:
            return self.additive
        raise ValueError(f"Unknown noise type: {noise_type}")

    def generate(self, noise_type: NoiseType, timestamp: float) -> float:
        """
        Draw one scalar sample from a channel.

        Returns:
            The sample, or exactly 0.0 while noise is disabled
        """
        noise = self.noise_for(noise_type)
        if not self._enabled:
            return 0.0
        return noise.generate(timestamp, self._rng)

    def generate_pose(self, noise_type: NoiseType, timestamp: float, pose: Pose) -> Pose:
        """
        Perturb a pose with one independent draw per axis.

        Args:
            noise_type: Channel to draw from
            timestamp: Simulation time [s]
            pose: Pose to perturb

        Returns:
            New pose <x + n1, y + n2, heading + n3>
        """
        return Pose(pose.x + self.generate(noise_type, timestamp),
                    pose.y + self.generate(noise_type, timestamp),
                    pose.heading + self.generate(noise_type, timestamp))

    def __repr__(self) -> str:
        return (f"NoiseGenerator(enabled={self._enabled}, static={self.static}, "
                f"additive={self.additive})")
