"""Uniform elevation grid over a geographic bounding box.

Grids are stored south-up: row 0 is the southern edge and sample
``(i, j)`` sits at ``lat = south + i * lat_step``,
``lng = west + j * lng_step``.  Rasters and tiles arrive north-up
(image order) and are flipped on the way in.

A grid is read-only after construction and can be shared by reference
across concurrent flood computations.
"""

import logging
import math
from typing import Any, Callable, Literal

import numpy as np
from numpy.typing import NDArray

from flood_engine.config import settings
from flood_engine.errors import InvalidGridError, OutOfBoundsError
from flood_engine.flood import codec
from flood_engine.flood.types import Cell
from flood_engine.geometry import GeographicBounds

logger = logging.getLogger(__name__)

EDGES = ("west", "east", "north", "south")

SampleMethod = Literal["nearest", "bilinear"]


class ElevationGrid:
    """A rows x cols array of elevations (meters) plus its bounds."""

    def __init__(
        self,
        elevations: Any,
        bounds: GeographicBounds,
        no_data: float | None = None,
    ) -> None:
        values = np.array(elevations, dtype=np.float64)
        if values.ndim != 2:
            raise InvalidGridError(f"Elevation grid must be 2-D, got shape {values.shape}")
        rows, cols = values.shape
        if rows < 1 or cols < 1:
            raise InvalidGridError(f"Elevation grid must be at least 1x1, got {rows}x{cols}")

        self.bounds = bounds
        self.no_data = settings.no_data_value if no_data is None else float(no_data)

        values.setflags(write=False)
        self._values = values

        mask = np.isnan(values) | (values == self.no_data)
        mask.setflags(write=False)
        self._no_data_mask = mask

    def __repr__(self) -> str:
        return f"ElevationGrid({self.rows}x{self.cols}, bounds={self.bounds!r})"

    @property
    def values(self) -> NDArray[np.float64]:
        """Read-only elevation array, south-up."""
        return self._values

    @property
    def rows(self) -> int:
        return self._values.shape[0]

    @property
    def cols(self) -> int:
        return self._values.shape[1]

    @property
    def shape(self) -> tuple[int, int]:
        return (self.rows, self.cols)

    @property
    def lat_step(self) -> float:
        return self.bounds.height / self.rows

    @property
    def lng_step(self) -> float:
        return self.bounds.width / self.cols

    @property
    def no_data_mask(self) -> NDArray[np.bool_]:
        return self._no_data_mask

    def elevation(self, i: int, j: int) -> float:
        return float(self._values[i, j])

    def is_no_data(self, i: int, j: int) -> bool:
        return bool(self._no_data_mask[i, j])

    def in_grid(self, i: int, j: int) -> bool:
        return 0 <= i < self.rows and 0 <= j < self.cols

    def lat_lng(self, i: int, j: int) -> tuple[float, float]:
        """Geographic position of sample (i, j)."""
        return (self.bounds.south + i * self.lat_step, self.bounds.west + j * self.lng_step)

    def center_lng_lat(self, i: int, j: int) -> tuple[float, float]:
        """Centre of cell (i, j) in GeoJSON (lng, lat) order."""
        return (
            self.bounds.west + (j + 0.5) * self.lng_step,
            self.bounds.south + (i + 0.5) * self.lat_step,
        )

    def neighbors(self, i: int, j: int) -> list[Cell]:
        """4-connected neighbours of (i, j) inside the grid."""
        result = []
        for di, dj in ((-1, 0), (1, 0), (0, -1), (0, 1)):
            ni, nj = i + di, j + dj
            if 0 <= ni < self.rows and 0 <= nj < self.cols:
                result.append((ni, nj))
        return result

    def edge_cells(self, edge: str) -> list[Cell]:
        """Cells along one grid edge ("west", "east", "north", "south")."""
        if edge == "west":
            return [(i, 0) for i in range(self.rows)]
        if edge == "east":
            return [(i, self.cols - 1) for i in range(self.rows)]
        if edge == "south":
            return [(0, j) for j in range(self.cols)]
        if edge == "north":
            return [(self.rows - 1, j) for j in range(self.cols)]
        raise ValueError(f"Unknown grid edge: {edge!r} (expected one of {EDGES})")

    def elevation_range(self) -> tuple[float, float] | None:
        """(min, max) over measured cells, or None if every cell is no-data."""
        valid = self._values[~self._no_data_mask]
        if valid.size == 0:
            return None
        return (float(valid.min()), float(valid.max()))

    def cell_at(self, lat: float, lng: float) -> Cell:
        """Index of the cell containing the point.

        Raises:
            OutOfBoundsError: if the point is off the map.
        """
        self._check_bounds(lat, lng)
        i = min(int((lat - self.bounds.south) / self.lat_step), self.rows - 1)
        j = min(int((lng - self.bounds.west) / self.lng_step), self.cols - 1)
        return (i, j)

    def sample(self, lat: float, lng: float, method: SampleMethod = "bilinear") -> float:
        """Elevation at a geographic point.

        Nearest picks the closest sample; bilinear interpolates between
        the four surrounding samples and falls back to nearest when any
        of them is no-data.  Points past the last sample row or column
        use edge extension.

        Raises:
            OutOfBoundsError: if the point is outside the grid bounds.
        """
        self._check_bounds(lat, lng)

        fi = min((lat - self.bounds.south) / self.lat_step, self.rows - 1)
        fj = min((lng - self.bounds.west) / self.lng_step, self.cols - 1)

        if method == "nearest":
            return self._nearest(fi, fj)
        if method != "bilinear":
            raise ValueError(f"Unknown sample method: {method!r}")

        i0, j0 = int(math.floor(fi)), int(math.floor(fj))
        i1, j1 = min(i0 + 1, self.rows - 1), min(j0 + 1, self.cols - 1)
        ti, tj = fi - i0, fj - j0

        corners = ((i0, j0), (i0, j1), (i1, j0), (i1, j1))
        if any(self._no_data_mask[c] for c in corners):
            return self._nearest(fi, fj)

        v = self._values
        south = v[i0, j0] * (1 - tj) + v[i0, j1] * tj
        north = v[i1, j0] * (1 - tj) + v[i1, j1] * tj
        return float(south * (1 - ti) + north * ti)

    def _nearest(self, fi: float, fj: float) -> float:
        i = min(int(round(fi)), self.rows - 1)
        j = min(int(round(fj)), self.cols - 1)
        return float(self._values[i, j])

    def _check_bounds(self, lat: float, lng: float) -> None:
        if not self.bounds.contains(lat, lng):
            raise OutOfBoundsError(lat, lng)

    def node_coordinates(self) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """(lats, lngs) meshgrid of every sample position, shape (rows, cols)."""
        lats = self.bounds.south + np.arange(self.rows, dtype=np.float64) * self.lat_step
        lngs = self.bounds.west + np.arange(self.cols, dtype=np.float64) * self.lng_step
        lng_grid, lat_grid = np.meshgrid(lngs, lats)
        return lat_grid, lng_grid

    # ── Construction ──────────────────────────────────────────────

    @classmethod
    def from_raster(
        cls,
        raster: Any,
        bounds: GeographicBounds,
        resolution: int | None = None,
        no_data: float | None = None,
    ) -> "ElevationGrid":
        """Build a grid from a north-up elevation raster covering *bounds*.

        With *resolution* the raster is resampled (nearest pixel) to
        resolution x resolution cells.
        """
        image = np.asarray(raster, dtype=np.float64)
        if image.ndim != 2 or image.size == 0:
            raise InvalidGridError(f"Raster must be a non-empty 2-D array, got shape {image.shape}")

        if resolution is not None:
            _check_resolution(resolution)
            image = _resample_nearest(image, resolution, resolution)

        return cls(np.flipud(image), bounds, no_data=no_data)

    @classmethod
    def from_terrain_rgb(
        cls,
        rgb: Any,
        bounds: GeographicBounds,
        resolution: int | None = None,
        no_data_rgb: tuple[int, int, int] | None = (0, 0, 0),
        no_data: float | None = None,
    ) -> "ElevationGrid":
        """Build a grid from a north-up (H, W, 3+) Terrain-RGB pixel array.

        Pixels equal to *no_data_rgb* become the no-data sentinel.
        """
        pixels = np.asarray(rgb)
        if pixels.ndim != 3 or pixels.shape[2] < 3:
            raise InvalidGridError(f"Terrain-RGB raster must be (H, W, 3), got shape {pixels.shape}")

        sentinel = settings.no_data_value if no_data is None else float(no_data)
        elevations = codec.decode_array(pixels)
        if no_data_rgb is not None:
            missing = np.all(pixels[..., :3] == np.asarray(no_data_rgb, dtype=pixels.dtype), axis=-1)
            elevations = np.where(missing, sentinel, elevations)

        return cls.from_raster(elevations, bounds, resolution=resolution, no_data=sentinel)

    @classmethod
    def from_function(
        cls,
        fn: Callable[[NDArray[np.float64], NDArray[np.float64]], NDArray[np.float64]],
        bounds: GeographicBounds,
        resolution: int,
        no_data: float | None = None,
    ) -> "ElevationGrid":
        """Evaluate a vectorised ``fn(lats, lngs)`` at every grid node."""
        _check_resolution(resolution)
        lat_step = bounds.height / resolution
        lng_step = bounds.width / resolution
        lats = bounds.south + np.arange(resolution, dtype=np.float64) * lat_step
        lngs = bounds.west + np.arange(resolution, dtype=np.float64) * lng_step
        lng_grid, lat_grid = np.meshgrid(lngs, lats)
        values = np.asarray(fn(lat_grid, lng_grid), dtype=np.float64)
        return cls(values, bounds, no_data=no_data)

    @classmethod
    def from_model(
        cls,
        model: Any,
        resolution: int,
        bounds: GeographicBounds | None = None,
    ) -> "ElevationGrid":
        """Sample a procedural model over its own bounds (or *bounds*)."""
        return cls.from_function(model.elevation_at, bounds or model.bounds, resolution)


def build(bounds: GeographicBounds, resolution: int, source: Any) -> ElevationGrid:
    """Build a resolution x resolution grid over *bounds* from *source*.

    *source* may be:
      - an elevation model exposing ``elevation_at(lats, lngs)``
      - a vectorised callable ``fn(lats, lngs)``
      - a north-up 2-D elevation raster covering *bounds*
      - a north-up (H, W, 3) Terrain-RGB pixel array covering *bounds*

    Raises:
        InvalidGridError: on a non-positive resolution or malformed raster.
    """
    _check_resolution(resolution)

    if hasattr(source, "elevation_at"):
        grid = ElevationGrid.from_model(source, resolution, bounds)
    elif callable(source):
        grid = ElevationGrid.from_function(source, bounds, resolution)
    else:
        array = np.asarray(source)
        if array.ndim == 3:
            grid = ElevationGrid.from_terrain_rgb(array, bounds, resolution=resolution)
        else:
            grid = ElevationGrid.from_raster(array, bounds, resolution=resolution)

    logger.debug("Built %dx%d elevation grid over %s", grid.rows, grid.cols, bounds)
    return grid


def _check_resolution(resolution: int) -> None:
    if int(resolution) != resolution or resolution < 1:
        raise InvalidGridError(f"Resolution must be a positive integer, got {resolution!r}")


def _resample_nearest(image: NDArray[np.float64], rows: int, cols: int) -> NDArray[np.float64]:
    """Nearest-pixel resample of a north-up raster to (rows, cols).

    Output cell k samples the source pixel containing its south-west
    corner, so equal shapes are an identity mapping.
    """
    h, w = image.shape
    # Fractions measured from the south edge, then flipped to image rows
    from_south = np.minimum((np.arange(rows) * h) // rows, h - 1)
    src_rows = (h - 1) - from_south
    src_cols = np.minimum((np.arange(cols) * w) // cols, w - 1)
    return image[np.ix_(src_rows, src_cols)][::-1]
