"""Tests for point queries and district summaries."""

import pytest

from flood_engine.errors import OutOfBoundsError
from flood_engine.flood.areas import (
    FloodStatus,
    NamedArea,
    area_name_at,
    classify_point,
    query_point,
    scenario_label,
    summarize_areas,
)
from flood_engine.flood.grid import ElevationGrid
from flood_engine.flood.reachability import compute_flooded, edge_seeds
from flood_engine.geometry import GeographicBounds


class TestClassifyPoint:
    """Tests for elevation-only classification."""

    def test_below_water(self):
        assert classify_point(1.0, 2.0) == FloodStatus.FLOODED

    def test_at_water_level_is_not_flooded(self):
        assert classify_point(2.0, 2.0) == FloodStatus.AT_RISK

    def test_freeboard_bands(self):
        assert classify_point(3.0, 2.0) == FloodStatus.AT_RISK
        assert classify_point(5.0, 2.0) == FloodStatus.LOW_RISK
        assert classify_point(10.0, 2.0) == FloodStatus.SAFE

    def test_status_is_string(self):
        assert FloodStatus.ISOLATED_LOW == "isolated_low"


class TestQueryPoint:
    """Tests for connectivity-aware point queries."""

    def test_connected_point(self, basin_grid):
        flooded = compute_flooded(basin_grid, 10.0, edge_seeds(basin_grid, ["west"]))
        report = query_point(basin_grid, flooded, 0.05, 0.05)

        assert report.status == FloodStatus.FLOODED
        assert report.connected
        assert report.depth == pytest.approx(10.0 - report.elevation)

    def test_enclosed_basin_point(self, basin_grid):
        flooded = compute_flooded(basin_grid, 10.0, edge_seeds(basin_grid, ["west"]))
        report = query_point(basin_grid, flooded, 0.41, 0.41)

        assert report.elevation < 10.0
        assert report.status == FloodStatus.ISOLATED_LOW
        assert not report.connected
        assert report.depth == 0.0

    def test_dry_point(self, basin_grid):
        flooded = compute_flooded(basin_grid, 10.0, edge_seeds(basin_grid, ["west"]))
        report = query_point(basin_grid, flooded, 0.3, 0.5)
        assert report.status == FloodStatus.SAFE

    def test_no_data_point(self, unit_bounds):
        """Cells without data are never reported as under water."""
        grid = ElevationGrid([[0.0, 0.0], [-9999.0, -9999.0]], unit_bounds)
        flooded = compute_flooded(grid, 5.0, edge_seeds(grid, ["south"]))
        report = query_point(grid, flooded, 0.75, 0.25)

        assert report.status == FloodStatus.NO_DATA
        assert not report.connected
        assert report.depth == 0.0

    def test_status_follows_containing_cell(self, unit_bounds):
        """A point inside a flooded cell is flooded even if its neighbour is high."""
        grid = ElevationGrid([[0.0, 10.0], [0.0, 10.0]], unit_bounds)
        flooded = compute_flooded(grid, 5.0, edge_seeds(grid, ["west"]))
        report = query_point(grid, flooded, 0.25, 0.45)

        assert report.connected
        assert report.status == FloodStatus.FLOODED
        assert report.elevation == 0.0
        assert report.depth == pytest.approx(5.0)

    def test_out_of_bounds(self, basin_grid):
        flooded = compute_flooded(basin_grid, 10.0, edge_seeds(basin_grid, ["west"]))
        with pytest.raises(OutOfBoundsError):
            query_point(basin_grid, flooded, 5.0, 5.0)


class TestSummaries:
    """Tests for per-area summaries."""

    def test_summary_from_flooded_cells(self, scenario_grid):
        west = NamedArea("West", GeographicBounds(north=1.0, south=0.0, east=0.4, west=0.0))
        flooded = compute_flooded(scenario_grid, 3.0, edge_seeds(scenario_grid, ["west"]))

        (summary,) = summarize_areas(scenario_grid, flooded, (west,))

        assert summary["name"] == "West"
        assert summary["cell_count"] == 10
        assert summary["flooded"] is True
        assert summary["flooded_fraction"] == pytest.approx(0.6)
        assert summary["depth"] == pytest.approx(3.0)
        assert summary["elevation"] == pytest.approx(0.0)

    def test_dry_area(self, scenario_grid):
        east = NamedArea("East", GeographicBounds(north=1.0, south=0.0, east=1.0, west=0.7))
        flooded = compute_flooded(scenario_grid, 3.0, edge_seeds(scenario_grid, ["west"]))

        (summary,) = summarize_areas(scenario_grid, flooded, (east,))

        assert summary["flooded"] is False
        assert summary["flooded_fraction"] == 0.0
        assert summary["depth"] == 0.0

    def test_area_off_grid_skipped(self, scenario_grid):
        far = NamedArea("Far", GeographicBounds(north=11.0, south=10.0, east=11.0, west=10.0))
        flooded = compute_flooded(scenario_grid, 3.0, edge_seeds(scenario_grid, ["west"]))
        assert summarize_areas(scenario_grid, flooded, (far,)) == []

    def test_area_name_at(self):
        assert area_name_at(-122.3944, 37.7649) == "Mission Bay"
        assert area_name_at(0.0, 0.0) is None


class TestScenarioLabel:
    """Tests for scenario labels."""

    @pytest.mark.parametrize(
        "level,label",
        [
            (0.0, "Current sea level"),
            (1.5, "Near-term warming"),
            (2.0, "Near-term warming"),
            (6.0, "Severe climate change"),
            (30.0, "Catastrophic scenarios"),
            (80.0, "Ice sheet collapse"),
            (150.0, "Extreme/theoretical"),
        ],
    )
    def test_labels(self, level, label):
        assert scenario_label(level) == label
