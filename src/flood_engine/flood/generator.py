"""Flood pipeline: reachability -> polygons -> contours -> area summaries."""

import logging
import time
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from shapely.geometry import Polygon

from flood_engine.config import settings
from flood_engine.flood.approximation import LineSampleApproximation
from flood_engine.flood.areas import area_name_at, summarize_areas
from flood_engine.flood.contours import extract_contours
from flood_engine.flood.elevation_model import TopographicModel
from flood_engine.flood.grid import ElevationGrid, build
from flood_engine.flood.polygons import build_hull_polygon, build_polygons, polygon_to_feature
from flood_engine.flood.reachability import compute_flooded, edge_seeds
from flood_engine.flood.types import (
    CancelToken,
    FloodConfig,
    FloodedCellSet,
    FloodFeature,
    FloodResult,
    SeedSet,
)
from flood_engine.models import PolygonMode, ReachabilityStrategy

logger = logging.getLogger(__name__)


class FloodGenerator:
    """Computes flood extents over one shared, read-only grid.

    Each call is independent: nothing is carried between water levels,
    so calls for different levels can run concurrently.
    """

    def __init__(
        self,
        config: FloodConfig,
        grid: ElevationGrid,
        seeds: SeedSet | None = None,
        model: TopographicModel | None = None,
    ) -> None:
        self.config = config
        self.grid = grid
        self.seeds = seeds if seeds is not None else edge_seeds(grid, config.seed_edges)
        self.model = model

        if config.strategy == ReachabilityStrategy.LINE_SAMPLE and model is None:
            raise ValueError("line_sample strategy needs the procedural elevation model")

    def flooded_cells(self, water_level: float, cancel: CancelToken | None = None) -> FloodedCellSet:
        """Flooded set for *water_level* using the configured strategy."""
        if self.config.strategy == ReachabilityStrategy.LINE_SAMPLE:
            approximation = LineSampleApproximation(self.model, samples=self.config.line_samples)
            return approximation.evaluate_grid(self.grid, water_level)
        return compute_flooded(self.grid, water_level, self.seeds, cancel=cancel)

    def generate(self, water_level: float, cancel: CancelToken | None = None) -> FloodResult:
        """Compute the flood extent and its vector features for one level.

        Raises:
            ComputationCancelled: if *cancel* is set during the flood fill.
        """
        cfg = self.config
        t0 = time.perf_counter()

        flooded = self.flooded_cells(water_level, cancel=cancel)
        t_flood = time.perf_counter()

        features: list[FloodFeature] = []
        if cfg.polygon_mode == PolygonMode.HULL:
            for poly in build_hull_polygon(flooded, self.grid):
                features.append(polygon_to_feature(poly, "flood_hull"))
        else:
            for poly in build_polygons(flooded, self.grid):
                name = area_name_at(*_label_point(poly.exterior, poly.holes))
                if name is not None:
                    poly.properties["name"] = name
                features.append(polygon_to_feature(poly, "flood_area"))
        t_polygons = time.perf_counter()

        if cfg.contours_enabled:
            for contour in extract_contours(self.grid, water_level):
                features.append(
                    FloodFeature(
                        type="contour",
                        geometry={
                            "type": "LineString",
                            "coordinates": [list(p) for p in contour.points],
                        },
                        properties={
                            "waterLevel": water_level,
                            "elevation": contour.threshold,
                            "closed": contour.closed,
                        },
                    )
                )
        t_contours = time.perf_counter()

        summaries: list[dict[str, Any]] = []
        if cfg.areas_enabled:
            summaries = summarize_areas(self.grid, flooded)
        t_areas = time.perf_counter()

        timings = {
            "flood": (t_flood - t0) * 1000,
            "polygons": (t_polygons - t_flood) * 1000,
            "contours": (t_contours - t_polygons) * 1000,
            "areas": (t_areas - t_contours) * 1000,
            "total": (t_areas - t0) * 1000,
        }
        logger.info(
            "[Flood] %.2f m (%s) phase timings: flood=%.1fms polygons=%.1fms contours=%.1fms "
            "areas=%.1fms total=%.1fms cells=%d features=%d",
            water_level,
            cfg.strategy.value,
            timings["flood"],
            timings["polygons"],
            timings["contours"],
            timings["areas"],
            timings["total"],
            len(flooded),
            len(features),
        )

        return FloodResult(
            water_level=water_level,
            flooded=flooded,
            features=features,
            area_summaries=summaries,
            timings_ms=timings,
        )

    def generate_levels(
        self, levels: Iterable[float], max_workers: int | None = None
    ) -> dict[float, FloodResult]:
        """Compute several independent water levels concurrently."""
        levels = list(levels)
        workers = max_workers or settings.max_concurrent_jobs
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(self.generate, levels))
        return dict(zip(levels, results))


def _label_point(exterior, holes) -> tuple[float, float]:
    """A (lng, lat) point guaranteed inside the polygon."""
    pt = Polygon(exterior, holes).representative_point()
    return (pt.x, pt.y)


def generate_flood(
    water_level: float,
    config_overrides: dict[str, Any] | None = None,
    model: TopographicModel | None = None,
) -> FloodResult:
    """Convenience function: flood extent over the synthetic city model.

    Args:
        water_level: Water level in meters
        config_overrides: Optional FloodConfig parameter overrides
        model: Elevation model (defaults to the San Francisco model)

    Returns:
        FloodResult for the requested level
    """
    config = FloodConfig(**(config_overrides or {}))
    model = model or TopographicModel()
    grid = build(model.bounds, config.resolution, model)
    generator = FloodGenerator(config, grid, model=model)
    return generator.generate(water_level)
