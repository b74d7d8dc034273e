"""
PID controller with velocity/acceleration feedforward.

Control law:
    u = kP e + kI ∫e dt + kD de/dt + kV v + kA a + kS sign(kV v + kA a)

    where e is the error passed by the caller and (v, a) are the optional
    feedforward reference velocity and acceleration. The static term kS is
    only applied when the feedforward term is non-zero.
"""

import math
from typing import NamedTuple, Optional, Sequence


class PIDFCoefficients(NamedTuple):
    """The six tunable coefficients, in table order."""
    kP: float = 0.0
    kI: float = 0.0
    kD: float = 0.0
    kV: float = 0.0
    kA: float = 0.0
    kS: float = 0.0

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "PIDFCoefficients":
        """
        Raises:
            ValueError: If values does not hold exactly 6 finite numbers
        """
        if len(values) != len(cls._fields):
            raise ValueError(f"Coefficient sets must be {len(cls._fields)} in length, got {len(values)}")
        coefficients = cls(*(float(value) for value in values))
        if not all(math.isfinite(value) for value in coefficients):
            raise ValueError(f"Coefficients must be finite, got {list(values)}")
        return coefficients


class PIDFController:
    """
    Single-axis PIDF controller.

    The first update after construction or reset() has no history, so its
    integral and derivative contributions are zero.
    """

    def __init__(self, coefficients: Optional[PIDFCoefficients] = None):
        self.coefficients = coefficients or PIDFCoefficients()
        self.reset()

    def reset(self) -> None:
        self._integral = 0.0
        self._last_error: Optional[float] = None
        self._last_time: Optional[float] = None

    def update(self, error: float, t: float, velocity: float = 0.0, acceleration: float = 0.0) -> float:
        """
        Compute the correction for one control cycle.

        Args:
            error: Measured minus reference value
            t: Timestamp of the measurement [s]
            velocity: Feedforward reference velocity
            acceleration: Feedforward reference acceleration

        Returns:
            Correction scalar
        """
        k = self.coefficients
        derivative = 0.0

        if self._last_time is not None:
            dt = t - self._last_time
            if dt > 0:
                self._integral += error * dt
                derivative = (error - self._last_error) / dt

        self._last_error = error
        self._last_time = t

        feedforward = k.kV * velocity + k.kA * acceleration
        static = math.copysign(k.kS, feedforward) if feedforward != 0 else 0.0

        return k.kP * error + k.kI * self._integral + k.kD * derivative + feedforward + static

    def __repr__(self) -> str:
        return f"PIDFController({tuple(self.coefficients)})"
