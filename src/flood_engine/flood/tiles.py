"""Terrain-RGB raster tiles.

Tiles are square north-up PNGs (conventionally 256x256) addressed by
``{zoom}/{x}/{y}`` in the Web-Mercator slippy-map scheme.  The engine
only needs their decoded elevations; fetching and packaging belong to
the ingestion pipeline.
"""

import io
import logging
import math

import numpy as np
from numpy.typing import NDArray
from PIL import Image

from flood_engine.config import settings
from flood_engine.errors import InvalidGridError
from flood_engine.flood import codec
from flood_engine.geometry import GeographicBounds

logger = logging.getLogger(__name__)

TILE_SIZE = 256
NO_DATA_RGB = (0, 0, 0)


def tile_bounds(zoom: int, x: int, y: int) -> GeographicBounds:
    """Geographic bounds of a slippy-map tile."""
    n = 2**zoom
    if not (0 <= x < n and 0 <= y < n):
        raise ValueError(f"Tile {zoom}/{x}/{y} does not exist")

    def lat(row: int) -> float:
        return math.degrees(math.atan(math.sinh(math.pi * (1 - 2 * row / n))))

    return GeographicBounds(
        north=lat(y),
        south=lat(y + 1),
        west=x / n * 360.0 - 180.0,
        east=(x + 1) / n * 360.0 - 180.0,
    )


def decode_tile_png(
    png_bytes: bytes,
    no_data_rgb: tuple[int, int, int] | None = NO_DATA_RGB,
    no_data: float | None = None,
) -> NDArray[np.float64]:
    """Decode a Terrain-RGB PNG to a north-up (H, W) elevation array.

    Pixels equal to *no_data_rgb* (or fully transparent pixels, when the
    tile has alpha) become the no-data sentinel.
    """
    sentinel = settings.no_data_value if no_data is None else float(no_data)

    img = Image.open(io.BytesIO(png_bytes))
    has_alpha = img.mode in ("RGBA", "LA") or "transparency" in img.info
    arr = np.array(img.convert("RGBA" if has_alpha else "RGB"))

    elevations = codec.decode_array(arr)
    missing = np.zeros(elevations.shape, dtype=bool)
    if no_data_rgb is not None:
        missing |= np.all(arr[..., :3] == np.asarray(no_data_rgb, dtype=np.uint8), axis=-1)
    if has_alpha:
        missing |= arr[..., 3] == 0

    return np.where(missing, sentinel, elevations)


def encode_tile_png(elevations: NDArray[np.float64], no_data: float | None = None) -> bytes:
    """Encode a north-up elevation array as a Terrain-RGB PNG.

    No-data cells (sentinel or NaN) are written as ``NO_DATA_RGB``.

    Raises:
        OutOfRangeError: if a measured elevation cannot be encoded.
    """
    sentinel = settings.no_data_value if no_data is None else float(no_data)
    values = np.asarray(elevations, dtype=np.float64)
    missing = np.isnan(values) | (values == sentinel)

    rgb = codec.encode_array(np.where(missing, codec.MIN_ELEVATION, values))
    rgb[missing] = NO_DATA_RGB

    buf = io.BytesIO()
    Image.fromarray(rgb).save(buf, format="PNG")
    return buf.getvalue()


def mosaic_tiles(
    tiles: dict[tuple[int, int], NDArray[np.float64]],
    zoom: int,
    no_data: float | None = None,
) -> tuple[NDArray[np.float64], GeographicBounds]:
    """Stitch same-zoom decoded tiles keyed by (x, y) into one raster.

    Missing tiles inside the covered rectangle are filled with no-data.

    Returns:
        (north-up raster, bounds of the covered tile rectangle)
    """
    if not tiles:
        raise InvalidGridError("No tiles to mosaic")

    sentinel = settings.no_data_value if no_data is None else float(no_data)
    shapes = {arr.shape for arr in tiles.values()}
    if len(shapes) != 1:
        raise InvalidGridError(f"Tiles must share one shape, got {sorted(shapes)}")
    (h, w) = shapes.pop()

    xs = [x for x, _ in tiles]
    ys = [y for _, y in tiles]
    x0, x1, y0, y1 = min(xs), max(xs), min(ys), max(ys)

    out = np.full(((y1 - y0 + 1) * h, (x1 - x0 + 1) * w), sentinel, dtype=np.float64)
    for (x, y), arr in tiles.items():
        r, c = (y - y0) * h, (x - x0) * w
        out[r : r + h, c : c + w] = arr

    missing = (x1 - x0 + 1) * (y1 - y0 + 1) - len(tiles)
    if missing:
        logger.warning("Mosaic at zoom %d is missing %d tiles; filled with no-data", zoom, missing)

    nw = tile_bounds(zoom, x0, y0)
    se = tile_bounds(zoom, x1, y1)
    bounds = GeographicBounds(north=nw.north, south=se.south, west=nw.west, east=se.east)
    return out, bounds
