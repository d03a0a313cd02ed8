"""Tests for the flood pipeline."""

import json

import numpy as np
import pytest

from flood_engine.config import settings
from flood_engine.errors import ComputationCancelled
from flood_engine.flood import FloodConfig, FloodGenerator, TopographicModel, build, generate_flood
from flood_engine.flood.types import CancelToken
from flood_engine.models import PolygonMode, ReachabilityStrategy


@pytest.fixture(scope="module")
def model():
    return TopographicModel()


@pytest.fixture(scope="module")
def city_grid(model):
    return build(model.bounds, 40, model)


class TestFloodConfig:
    """Tests for pipeline configuration."""

    def test_defaults(self):
        config = FloodConfig()
        assert config.resolution == settings.default_resolution
        assert config.seed_edges == ("west", "east", "north")
        assert config.strategy == ReachabilityStrategy.EXACT
        assert config.polygon_mode == PolygonMode.EXACT

    def test_defaults_follow_settings(self, monkeypatch):
        """Resolution and line sample count come from the engine settings."""
        monkeypatch.setattr(settings, "default_resolution", 32)
        monkeypatch.setattr(settings, "line_sample_count", 7)
        config = FloodConfig()
        assert config.resolution == 32
        assert config.line_samples == 7

    def test_explicit_values_override_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "line_sample_count", 7)
        assert FloodConfig(line_samples=12).line_samples == 12

    def test_string_values_coerced(self):
        config = FloodConfig(strategy="line_sample", polygon_mode="hull", seed_edges=["west"])
        assert config.strategy is ReachabilityStrategy.LINE_SAMPLE
        assert config.polygon_mode is PolygonMode.HULL
        assert config.seed_edges == ("west",)

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            FloodConfig(strategy="teleport")


class TestFloodGenerator:
    """Tests for FloodGenerator."""

    def test_geojson_output(self, city_grid):
        result = FloodGenerator(FloodConfig(), city_grid).generate(5.0)
        geojson = result.features_to_geojson()

        assert geojson["type"] == "FeatureCollection"
        assert len(geojson["features"]) > 0
        json.dumps(geojson)

        feature_types = {f["properties"]["feature_type"] for f in geojson["features"]}
        assert "flood_area" in feature_types
        assert feature_types <= {"flood_area", "contour"}
        for f in geojson["features"]:
            assert f["properties"]["waterLevel"] == 5.0

    def test_flood_area_polygons_are_closed(self, city_grid):
        result = FloodGenerator(FloodConfig(contours_enabled=False), city_grid).generate(5.0)
        for feature in result.features:
            assert feature.geometry["type"] == "Polygon"
            ring = feature.geometry["coordinates"][0]
            assert ring[0] == ring[-1]
            assert len(ring) >= 4

    def test_contour_features(self, city_grid):
        result = FloodGenerator(FloodConfig(), city_grid).generate(5.0)
        contours = [f for f in result.features if f.type == "contour"]
        assert contours
        for feature in contours:
            assert feature.geometry["type"] == "LineString"
            assert feature.properties["elevation"] == 5.0

    def test_zero_water_level_floods_nothing(self, city_grid):
        result = FloodGenerator(FloodConfig(), city_grid).generate(0.0)
        assert len(result.flooded) == 0
        assert [f for f in result.features if f.type == "flood_area"] == []

    def test_flooded_cells_are_candidates(self, city_grid):
        result = FloodGenerator(FloodConfig(), city_grid).generate(5.0)
        for i, j in result.flooded:
            assert city_grid.elevation(i, j) < 5.0

    def test_monotonic_over_levels(self, city_grid):
        generator = FloodGenerator(FloodConfig(contours_enabled=False, areas_enabled=False), city_grid)
        low = generator.flooded_cells(2.0)
        high = generator.flooded_cells(10.0)
        assert low.issubset(high)

    def test_hull_mode(self, city_grid):
        config = FloodConfig(polygon_mode=PolygonMode.HULL, contours_enabled=False)
        result = FloodGenerator(config, city_grid).generate(5.0)

        assert len(result.features) == 1
        assert result.features[0].type == "flood_hull"
        assert result.features[0].properties["approximate"] is True

    def test_area_summaries(self, city_grid):
        result = FloodGenerator(FloodConfig(), city_grid).generate(5.0)
        names = {s["name"] for s in result.area_summaries}
        assert "Mission Bay" in names
        for summary in result.area_summaries:
            assert 0.0 <= summary["flooded_fraction"] <= 1.0

    def test_areas_disabled(self, city_grid):
        result = FloodGenerator(FloodConfig(areas_enabled=False), city_grid).generate(5.0)
        assert result.area_summaries == []

    def test_timings_recorded(self, city_grid):
        result = FloodGenerator(FloodConfig(), city_grid).generate(5.0)
        assert set(result.timings_ms) == {"flood", "polygons", "contours", "areas", "total"}

    def test_line_sample_needs_model(self, city_grid):
        with pytest.raises(ValueError, match="procedural elevation model"):
            FloodGenerator(FloodConfig(strategy=ReachabilityStrategy.LINE_SAMPLE), city_grid)

    def test_line_sample_strategy(self, city_grid, model):
        config = FloodConfig(strategy=ReachabilityStrategy.LINE_SAMPLE, contours_enabled=False)
        result = FloodGenerator(config, city_grid, model=model).generate(5.0)

        assert len(result.flooded) > 0
        for i, j in result.flooded:
            assert city_grid.elevation(i, j) < 5.0

    def test_cancelled(self, model):
        grid = build(model.bounds, 100, model)
        token = CancelToken()
        token.cancel()

        with pytest.raises(ComputationCancelled):
            FloodGenerator(FloodConfig(), grid).generate(60.0, cancel=token)

    def test_generate_levels(self, city_grid):
        generator = FloodGenerator(FloodConfig(contours_enabled=False), city_grid)
        results = generator.generate_levels([1.0, 5.0, 10.0], max_workers=2)

        assert list(results) == [1.0, 5.0, 10.0]
        assert results[1.0].flooded.issubset(results[10.0].flooded)
        assert results[5.0].water_level == 5.0


def test_generate_flood_convenience():
    """generate_flood builds the city grid and runs the pipeline."""
    result = generate_flood(3.0, {"resolution": 20})

    assert result.water_level == 3.0
    assert result.flooded.shape == (20, 20)


def test_generate_flood_with_custom_model():
    """A flat model below the water level floods completely."""
    flat = TopographicModel(hills=(), zones=())
    result = generate_flood(100.0, {"resolution": 10, "contours_enabled": False}, model=flat)
    assert len(result.flooded) == 100
    assert np.all(result.flooded.to_mask())
