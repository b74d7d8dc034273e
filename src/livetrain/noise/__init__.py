"""
Pose noise models emulating sensor and actuator imperfection.
"""

from .noise import Noise, NoiseGenerator, NoiseKind, NoiseType

__all__ = [
    "Noise",
    "NoiseGenerator",
    "NoiseKind",
    "NoiseType",
]
