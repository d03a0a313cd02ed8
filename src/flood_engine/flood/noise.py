"""Seeded micro-relief noise using OpenSimplex."""

import numpy as np
from numpy.typing import NDArray
from opensimplex import OpenSimplex


class SeededNoise:
    """Deterministic noise generator with a fixed seed."""

    def __init__(self, seed: int) -> None:
        self.seed = seed
        self._simplex = OpenSimplex(seed=seed)

    def sample_2d(self, x: float, y: float) -> float:
        """Sample 2D noise at the given coordinates. Returns value in [-1, 1]."""
        return self._simplex.noise2(x, y)

    def octave_noise_2d(
        self,
        x: float,
        y: float,
        octaves: int = 3,
        persistence: float = 0.5,
        lacunarity: float = 2.0,
        scale: float = 1.0,
    ) -> float:
        """Fractal Brownian motion: *octaves* layers of noise.

        Returns:
            Noise value approximately in [-1, 1]
        """
        total = 0.0
        amplitude = 1.0
        frequency = scale
        max_amplitude = 0.0

        for _ in range(octaves):
            total += amplitude * self.sample_2d(x * frequency, y * frequency)
            max_amplitude += amplitude
            amplitude *= persistence
            frequency *= lacunarity

        return total / max_amplitude

    def relief(
        self,
        u: NDArray[np.float64],
        v: NDArray[np.float64],
        scale: float = 12.0,
        octaves: int = 3,
    ) -> NDArray[np.float64]:
        """Octave noise at arbitrary normalised positions, elementwise.

        *u* and *v* broadcast against each other; the result has their
        broadcast shape.
        """
        uu, vv = np.broadcast_arrays(np.asarray(u, dtype=np.float64), np.asarray(v, dtype=np.float64))
        out = np.empty(uu.shape, dtype=np.float64)
        for idx in np.ndindex(uu.shape):
            out[idx] = self.octave_noise_2d(
                float(uu[idx]), float(vv[idx]), octaves=octaves, scale=scale
            )
        return out
