"""Flood-extent computation: codec, grid, contours, reachability, polygons."""

from flood_engine.flood.approximation import LineSampleApproximation, divergence, water_color
from flood_engine.flood.codec import decode, encode
from flood_engine.flood.contours import extract_contours
from flood_engine.flood.elevation_model import InverseDistanceModel, TopographicModel
from flood_engine.flood.generator import FloodGenerator, generate_flood
from flood_engine.flood.grid import ElevationGrid, build
from flood_engine.flood.polygons import build_hull_polygon, build_polygons, convex_hull
from flood_engine.flood.reachability import compute_flooded, edge_seeds
from flood_engine.flood.types import (
    Contour,
    FloodConfig,
    FloodedCellSet,
    FloodPolygon,
    FloodResult,
    SeedSet,
    TerrainRGBSample,
)

__all__ = [
    "Contour",
    "ElevationGrid",
    "FloodConfig",
    "FloodGenerator",
    "FloodPolygon",
    "FloodResult",
    "FloodedCellSet",
    "InverseDistanceModel",
    "LineSampleApproximation",
    "SeedSet",
    "TerrainRGBSample",
    "TopographicModel",
    "build",
    "build_hull_polygon",
    "build_polygons",
    "compute_flooded",
    "convex_hull",
    "decode",
    "divergence",
    "edge_seeds",
    "encode",
    "extract_contours",
    "generate_flood",
    "water_color",
]
