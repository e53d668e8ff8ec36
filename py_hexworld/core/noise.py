"""
Octave simplex noise sampled on the unit sphere.

Every noise sample in world generation is taken at a hex's position on the
unit sphere, so fields wrap at the date line and stay undistorted near the
poles.
"""

from dataclasses import dataclass
from typing import Callable

import numpy as np
from opensimplex import OpenSimplex

from ..utils.random import phase_prng


@dataclass(frozen=True)
class NoiseChannel:
    """Octave settings for one noise field."""

    octaves: int = 7
    persistence: float = 0.5
    frequency: float = 1.0


def octave_noise_3d(
    noise_func: Callable[[float, float, float], float],
    x: float,
    y: float,
    z: float,
    octaves: int,
    persistence: float,
    frequency: float = 1.0,
) -> float:
    """
    Sum ``octaves`` layers of noise, doubling frequency each layer.

    The result is divided by the summed amplitudes, so it stays in the noise
    function's own range ([-1, 1] for simplex).
    """
    total = 0.0
    frequency_ = frequency
    amplitude = 1.0
    max_value = 0.0
    for _ in range(octaves):
        total += noise_func(x * frequency_, y * frequency_, z * frequency_) * amplitude
        max_value += amplitude
        amplitude *= persistence
        frequency_ *= 2

    if max_value == 0:
        return 0.0
    return total / max_value


class SphereNoise:
    """Simplex noise source for one generation phase."""

    def __init__(self, seed):
        """
        Args:
            seed: World seed; the simplex permutation is drawn from a fresh
                Alea stream for that seed
        """
        prng = phase_prng(seed)
        self.simplex = OpenSimplex(prng.uint32())

    def sample(self, x: float, y: float, z: float, channel: NoiseChannel) -> float:
        """Octave noise in [-1, 1] at one point."""
        return octave_noise_3d(
            self.simplex.noise3,
            x,
            y,
            z,
            channel.octaves,
            channel.persistence,
            channel.frequency,
        )

    def sample_unit(self, x: float, y: float, z: float, channel: NoiseChannel) -> float:
        """Octave noise remapped to [0, 1]."""
        return (self.sample(x, y, z, channel) + 1) / 2

    def field(self, points: np.ndarray, channel: NoiseChannel) -> np.ndarray:
        """Octave noise in [-1, 1] for every row of an (n, 3) point array."""
        values = np.empty(len(points), dtype=np.float64)
        for i, (x, y, z) in enumerate(points):
            values[i] = self.sample(x, y, z, channel)
        return values
