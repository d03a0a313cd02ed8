"""Terrain-RGB elevation codec.

Elevation is shifted by +10000 m, quantized at 0.1 m and split into
three base-256 digits:

    scaled = round((elevation + 10000) / 0.1)
    r, g, b = scaled // 65536, (scaled % 65536) // 256, scaled % 256

and decoded with ``-10000 + (r * 65536 + g * 256 + b) * 0.1``.
"""

import math

import numpy as np
from numpy.typing import NDArray

from flood_engine.errors import OutOfRangeError
from flood_engine.flood.types import TerrainRGBSample

OFFSET = 10000.0
STEP = 0.1
MAX_SCALED = 0xFFFFFF

MIN_ELEVATION = -OFFSET
MAX_ELEVATION = -OFFSET + MAX_SCALED * STEP


def encode(elevation: float) -> TerrainRGBSample:
    """Encode an elevation in meters to a Terrain-RGB triple.

    Raises:
        OutOfRangeError: if the value cannot be represented in 24 bits.
    """
    if not math.isfinite(elevation) or not MIN_ELEVATION <= elevation <= MAX_ELEVATION:
        raise OutOfRangeError(elevation)

    scaled = min(int(round((elevation + OFFSET) / STEP)), MAX_SCALED)
    return TerrainRGBSample(
        r=scaled // 65536,
        g=(scaled % 65536) // 256,
        b=scaled % 256,
    )


def decode(r: int, g: int, b: int) -> float:
    """Decode a Terrain-RGB triple to meters."""
    return -OFFSET + (r * 65536 + g * 256 + b) * STEP


def encode_array(elevations: NDArray[np.float64]) -> NDArray[np.uint8]:
    """Encode an elevation array to an (..., 3) uint8 array.

    Raises:
        OutOfRangeError: carrying the first offending value.
    """
    values = np.asarray(elevations, dtype=np.float64)
    bad = ~np.isfinite(values) | (values < MIN_ELEVATION) | (values > MAX_ELEVATION)
    if bad.any():
        raise OutOfRangeError(float(values[bad].flat[0]))

    scaled = np.minimum(np.rint((values + OFFSET) / STEP).astype(np.int64), MAX_SCALED)
    rgb = np.empty(values.shape + (3,), dtype=np.uint8)
    rgb[..., 0] = scaled // 65536
    rgb[..., 1] = (scaled % 65536) // 256
    rgb[..., 2] = scaled % 256
    return rgb


def decode_array(rgb: NDArray[np.uint8]) -> NDArray[np.float64]:
    """Decode an (..., 3) array of Terrain-RGB pixels to meters.

    Extra channels (e.g. alpha) are ignored.
    """
    pixels = np.asarray(rgb)
    r = pixels[..., 0].astype(np.int64)
    g = pixels[..., 1].astype(np.int64)
    b = pixels[..., 2].astype(np.int64)
    return -OFFSET + (r * 65536 + g * 256 + b) * STEP
