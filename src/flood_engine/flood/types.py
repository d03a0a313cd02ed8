"""Type definitions for flood-extent computation."""

import threading
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import NDArray

from flood_engine.config import settings
from flood_engine.models import PolygonMode, ReachabilityStrategy

Cell = tuple[int, int]
Point = tuple[float, float]
Ring = list[Point]


@dataclass(frozen=True)
class TerrainRGBSample:
    """One Terrain-RGB encoded elevation value."""

    r: int
    g: int
    b: int

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.r, self.g, self.b)


@dataclass(frozen=True)
class SeedSet:
    """Grid cells treated as open water for connectivity purposes.

    Built once per grid and read-only during flood fill.
    """

    cells: frozenset[Cell]

    def __len__(self) -> int:
        return len(self.cells)

    def __iter__(self):
        return iter(sorted(self.cells))

    def __contains__(self, cell: object) -> bool:
        return cell in self.cells

    @classmethod
    def of(cls, cells) -> "SeedSet":
        return cls(frozenset((int(i), int(j)) for i, j in cells))


@dataclass(frozen=True)
class FloodedCellSet:
    """Cells connected to open water below a given water level.

    Valid only for the (grid, water_level, seeds) triple that produced it.
    A new water level requires a fresh computation.
    """

    cells: frozenset[Cell]
    water_level: float
    shape: tuple[int, int]

    def __len__(self) -> int:
        return len(self.cells)

    def __contains__(self, cell: object) -> bool:
        return cell in self.cells

    def __iter__(self):
        return iter(sorted(self.cells))

    def issubset(self, other: "FloodedCellSet") -> bool:
        return self.cells <= other.cells

    def to_mask(self) -> NDArray[np.bool_]:
        """Boolean (rows, cols) mask of flooded cells."""
        mask = np.zeros(self.shape, dtype=bool)
        for i, j in self.cells:
            mask[i, j] = True
        return mask


@dataclass
class Contour:
    """A polyline of (lng, lat) points where elevation crosses a threshold."""

    points: Ring
    threshold: float
    closed: bool = True

    def __len__(self) -> int:
        return len(self.points)


@dataclass
class FloodPolygon:
    """A renderable flooded area: exterior ring plus optional holes."""

    exterior: Ring
    water_level: float
    holes: list[Ring] = field(default_factory=list)
    properties: dict[str, Any] = field(default_factory=dict)

    def to_geometry(self) -> dict[str, Any]:
        return {
            "type": "Polygon",
            "coordinates": [
                [list(p) for p in self.exterior],
                *[[list(p) for p in hole] for hole in self.holes],
            ],
        }


@dataclass
class FloodFeature:
    """A single flood feature in GeoJSON-like format."""

    type: str  # "flood_area", "flood_hull", "contour"
    geometry: dict[str, Any]  # GeoJSON geometry
    properties: dict[str, Any] = field(default_factory=dict)


@dataclass
class FloodConfig:
    """Configuration for one flood computation pipeline."""

    # Grid cells per axis
    resolution: int = field(default_factory=lambda: settings.default_resolution)

    # Grid edges treated as open water ("west", "east", "north", "south")
    seed_edges: tuple[str, ...] = ("west", "east", "north")

    strategy: ReachabilityStrategy = ReachabilityStrategy.EXACT
    polygon_mode: PolygonMode = PolygonMode.EXACT

    # Emit the waterline contour alongside the flood polygons
    contours_enabled: bool = True

    # Attach per-district summaries to the result
    areas_enabled: bool = True

    # Points sampled by the line-of-sight approximation
    line_samples: int = field(default_factory=lambda: settings.line_sample_count)

    def __post_init__(self) -> None:
        self.strategy = ReachabilityStrategy(self.strategy)
        self.polygon_mode = PolygonMode(self.polygon_mode)
        self.seed_edges = tuple(self.seed_edges)


@dataclass
class FloodResult:
    """Output of one flood computation."""

    water_level: float
    flooded: FloodedCellSet
    features: list[FloodFeature]
    area_summaries: list[dict[str, Any]] = field(default_factory=list)
    timings_ms: dict[str, float] = field(default_factory=dict)

    def features_to_geojson(self) -> dict[str, Any]:
        """Convert features to a GeoJSON FeatureCollection."""
        return {
            "type": "FeatureCollection",
            "features": [
                {
                    "type": "Feature",
                    "geometry": f.geometry,
                    "properties": {"feature_type": f.type, **f.properties},
                }
                for f in self.features
            ],
        }


class CancelToken:
    """Cooperative cancellation flag checked by long-running loops."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()
