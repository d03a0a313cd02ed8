"""Point flood status and per-district summaries.

District flood state is always derived from the grid and the flooded
set, never from fixed per-district threshold elevations, so it stays
consistent with the polygons rendered for the same water level.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import numpy as np

from flood_engine.flood.grid import ElevationGrid
from flood_engine.flood.types import FloodedCellSet
from flood_engine.geometry import GeographicBounds

AT_RISK_FREEBOARD = 2.0
LOW_RISK_FREEBOARD = 5.0


class FloodStatus(StrEnum):
    FLOODED = "flooded"
    ISOLATED_LOW = "isolated_low"  # below the water line but cut off from open water
    AT_RISK = "at_risk"
    LOW_RISK = "low_risk"
    SAFE = "safe"
    NO_DATA = "no_data"


def classify_point(elevation: float, water_level: float) -> FloodStatus:
    """Status from elevation alone (bathtub view, no connectivity)."""
    if elevation < water_level:
        return FloodStatus.FLOODED
    freeboard = elevation - water_level
    if freeboard < AT_RISK_FREEBOARD:
        return FloodStatus.AT_RISK
    if freeboard < LOW_RISK_FREEBOARD:
        return FloodStatus.LOW_RISK
    return FloodStatus.SAFE


@dataclass(frozen=True)
class PointReport:
    lat: float
    lng: float
    elevation: float
    status: FloodStatus
    depth: float  # meters under water, 0 when dry
    connected: bool


def query_point(grid: ElevationGrid, flooded: FloodedCellSet, lat: float, lng: float) -> PointReport:
    """Elevation and flood status of the cell containing a point.

    Status and connectivity both come from that cell, so a point is
    reported flooded exactly when its cell is in the flooded set.
    Cells without data report NO_DATA.

    Raises:
        OutOfBoundsError: if the point is off the map.
    """
    i, j = grid.cell_at(lat, lng)
    elevation = grid.elevation(i, j)
    connected = (i, j) in flooded

    if grid.is_no_data(i, j):
        status = FloodStatus.NO_DATA
    else:
        status = classify_point(elevation, flooded.water_level)

    if status == FloodStatus.FLOODED and not connected:
        status = FloodStatus.ISOLATED_LOW
    depth = max(flooded.water_level - elevation, 0.0) if status == FloodStatus.FLOODED else 0.0

    return PointReport(
        lat=lat,
        lng=lng,
        elevation=elevation,
        status=status,
        depth=depth,
        connected=connected,
    )


@dataclass(frozen=True)
class NamedArea:
    name: str
    bounds: GeographicBounds


def _area(name: str, west: float, east: float, south: float, north: float) -> NamedArea:
    return NamedArea(name, GeographicBounds(north=north, south=south, east=east, west=west))


SF_AREAS: tuple[NamedArea, ...] = (
    _area("Mission Bay", -122.4044, -122.3844, 37.7599, 37.7699),
    _area("Marina District", -122.4494, -122.4294, 37.7999, 37.8099),
    _area("SOMA", -122.4194, -122.3994, 37.7699, 37.7799),
    _area("Financial District", -122.4094, -122.3994, 37.7849, 37.7949),
    _area("Bayview", -122.3974, -122.3774, 37.7219, 37.7319),
    _area("Sunset District", -122.4774, -122.4574, 37.7319, 37.7519),
    _area("Castro/Mission Valley", -122.4394, -122.4194, 37.7569, 37.7669),
    _area("Richmond District", -122.4774, -122.4574, 37.7719, 37.7919),
    _area("Pacific Heights", -122.4444, -122.4244, 37.7849, 37.7999),
    _area("Cole Valley/Haight", -122.4574, -122.4374, 37.7619, 37.7719),
    _area("Nob Hill", -122.4294, -122.4094, 37.7869, 37.7969),
    _area("Russian Hill", -122.4294, -122.4094, 37.7969, 37.8069),
)


def _area_cells(grid: ElevationGrid, area: NamedArea) -> list[tuple[int, int]]:
    """Cells whose centre lies inside the area."""
    cells = []
    for i in range(grid.rows):
        lat = grid.bounds.south + (i + 0.5) * grid.lat_step
        if not area.bounds.south <= lat <= area.bounds.north:
            continue
        for j in range(grid.cols):
            lng = grid.bounds.west + (j + 0.5) * grid.lng_step
            if area.bounds.west <= lng <= area.bounds.east:
                cells.append((i, j))
    return cells


def summarize_areas(
    grid: ElevationGrid,
    flooded: FloodedCellSet,
    areas: tuple[NamedArea, ...] = SF_AREAS,
) -> list[dict[str, Any]]:
    """Per-area flooded fraction, max depth and lowest elevation.

    Areas with no measured cell on this grid are skipped.
    """
    summaries = []
    for area in areas:
        cells = [c for c in _area_cells(grid, area) if not grid.is_no_data(*c)]
        if not cells:
            continue

        idx = np.array(cells, dtype=np.int64)
        elevations = grid.values[idx[:, 0], idx[:, 1]]
        wet = np.array([c in flooded for c in cells], dtype=bool)
        depths = flooded.water_level - elevations[wet]

        summaries.append(
            {
                "name": area.name,
                "flooded_fraction": round(float(wet.mean()), 4),
                "flooded": bool(wet.any()),
                "depth": round(float(depths.max()), 3) if wet.any() else 0.0,
                "elevation": round(float(elevations.min()), 3),
                "cell_count": len(cells),
            }
        )
    return summaries


def area_name_at(lng: float, lat: float, areas: tuple[NamedArea, ...] = SF_AREAS) -> str | None:
    """First named area containing the point, if any."""
    for area in areas:
        if area.bounds.contains(lat, lng):
            return area.name
    return None


def scenario_label(water_level: float) -> str:
    """Human label for a sea-level rise scenario in meters."""
    if water_level <= 0:
        return "Current sea level"
    if water_level <= 2:
        return "Near-term warming"
    if water_level <= 10:
        return "Severe climate change"
    if water_level <= 50:
        return "Catastrophic scenarios"
    if water_level <= 100:
        return "Ice sheet collapse"
    return "Extreme/theoretical"
