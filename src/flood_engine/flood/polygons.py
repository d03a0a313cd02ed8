"""Turn flooded cells (or contours) into renderable polygons.

Two paths:

- ``build_polygons`` traces the exact cell boundary of every 4-connected
  component, producing possibly concave polygons with holes for dry
  land enclosed by water.
- ``build_hull_polygon`` wraps every flooded cell centre in a single
  convex hull.  This is an over-approximation: wherever the true flood
  is concave (coastal flooding usually is) the hull shows dry land as
  flooded.  Use it only for coarse single-blob rendering.

Fewer than three distinct points never raise; they yield no polygon.
"""

import logging
from collections.abc import Iterable, Sequence
from typing import Any

import numpy as np
from shapely.errors import GEOSException, TopologicalError
from shapely.geometry import MultiPolygon, Polygon, box
from shapely.geometry.polygon import orient
from shapely.ops import unary_union

from flood_engine.flood.grid import ElevationGrid
from flood_engine.flood.reachability import connected_components
from flood_engine.flood.types import Cell, Contour, FloodedCellSet, FloodFeature, FloodPolygon, Point, Ring

logger = logging.getLogger(__name__)


def cross(o: Point, a: Point, b: Point) -> float:
    """Z component of (a - o) x (b - o); positive for a left turn."""
    return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])


def convex_hull(points: Iterable[Point]) -> Ring:
    """Monotone-chain convex hull.

    Returns the hull as an open counter-clockwise ring (first point not
    repeated), or an empty list when fewer than three distinct,
    non-collinear points are given.
    """
    pts = sorted(set((float(x), float(y)) for x, y in points))
    if len(pts) < 3:
        return []

    lower: Ring = []
    for p in pts:
        while len(lower) >= 2 and cross(lower[-2], lower[-1], p) <= 0:
            lower.pop()
        lower.append(p)

    upper: Ring = []
    for p in reversed(pts):
        while len(upper) >= 2 and cross(upper[-2], upper[-1], p) <= 0:
            upper.pop()
        upper.append(p)

    hull = lower[:-1] + upper[:-1]
    if len(hull) < 3:
        return []
    return hull


def _component_geometry(component: Sequence[Cell], grid: ElevationGrid) -> Polygon | MultiPolygon:
    """Union of a component's cells, merged row by row into runs first."""
    by_row: dict[int, list[int]] = {}
    for i, j in component:
        by_row.setdefault(i, []).append(j)

    south, west = grid.bounds.south, grid.bounds.west
    lat_step, lng_step = grid.lat_step, grid.lng_step

    boxes = []
    for i, cols in by_row.items():
        cols.sort()
        start = prev = cols[0]
        for j in cols[1:] + [None]:
            if j is not None and j == prev + 1:
                prev = j
                continue
            boxes.append(
                box(
                    west + start * lng_step,
                    south + i * lat_step,
                    west + (prev + 1) * lng_step,
                    south + (i + 1) * lat_step,
                )
            )
            if j is not None:
                start = prev = j

    return unary_union(boxes)


def _depth_properties(cells: Sequence[Cell], grid: ElevationGrid, water_level: float) -> dict[str, Any]:
    idx = np.array(cells, dtype=np.int64)
    elevations = grid.values[idx[:, 0], idx[:, 1]]
    depths = water_level - elevations
    return {
        "cell_count": len(cells),
        "depth": round(float(depths.max()), 3),
        "mean_depth": round(float(depths.mean()), 3),
        "elevation": round(float(elevations.min()), 3),
    }


def _to_flood_polygon(poly: Polygon, water_level: float, properties: dict[str, Any]) -> FloodPolygon:
    poly = orient(poly, sign=1.0)
    return FloodPolygon(
        exterior=[(x, y) for x, y in poly.exterior.coords],
        holes=[[(x, y) for x, y in ring.coords] for ring in poly.interiors],
        water_level=water_level,
        properties=properties,
    )


def build_polygons(
    flooded: FloodedCellSet,
    grid: ElevationGrid,
    simplify_tolerance: float = 0.0,
) -> list[FloodPolygon]:
    """Exact boundary polygons, one per connected flooded component.

    Exterior rings are counter-clockwise and holes clockwise.  With
    *simplify_tolerance* (degrees) the outlines are simplified with
    topology preserved.
    """
    polygons: list[FloodPolygon] = []

    for component in connected_components(flooded.cells):
        try:
            geom = _component_geometry(component, grid)
            if simplify_tolerance > 0:
                geom = geom.simplify(simplify_tolerance, preserve_topology=True)
        except (GEOSException, TopologicalError, ValueError) as e:
            logger.warning("Failed to trace flooded component of %d cells: %s", len(component), e)
            continue

        if geom.is_empty:
            continue

        properties = _depth_properties(component, grid, flooded.water_level)
        parts = geom.geoms if isinstance(geom, MultiPolygon) else [geom]
        for part in parts:
            if isinstance(part, Polygon) and not part.is_empty:
                polygons.append(_to_flood_polygon(part, flooded.water_level, dict(properties)))

    polygons.sort(key=lambda p: -p.properties["cell_count"])
    logger.debug(
        "Built %d flood polygons from %d cells at %.2f m",
        len(polygons),
        len(flooded),
        flooded.water_level,
    )
    return polygons


def build_hull_polygon(flooded: FloodedCellSet, grid: ElevationGrid) -> list[FloodPolygon]:
    """Single convex-hull polygon around every flooded cell centre.

    Over-approximates concave flood extents; tagged ``approximate``.
    """
    cells = list(flooded.cells)
    ring = convex_hull(grid.center_lng_lat(i, j) for i, j in cells)
    if not ring:
        return []

    properties = _depth_properties(cells, grid, flooded.water_level)
    properties["approximate"] = True
    return [
        FloodPolygon(
            exterior=ring + [ring[0]],
            water_level=flooded.water_level,
            properties=properties,
        )
    ]


def contour_polygons(contours: Iterable[Contour], water_level: float) -> list[FloodPolygon]:
    """Wrap closed contour rings as polygons; rings under four points are dropped."""
    polygons = []
    for contour in contours:
        if len(contour.points) <= 3:
            continue
        polygons.append(
            FloodPolygon(
                exterior=list(contour.points),
                water_level=water_level,
                properties={"elevation": contour.threshold, "closed": contour.closed},
            )
        )
    return polygons


def polygon_to_feature(poly: FloodPolygon, feature_type: str = "flood_area") -> FloodFeature:
    """Convert a FloodPolygon to a FloodFeature carrying its water level."""
    return FloodFeature(
        type=feature_type,
        geometry=poly.to_geometry(),
        properties={"waterLevel": poly.water_level, **poly.properties},
    )
