"""Pytest configuration and fixtures for flood engine tests."""

import numpy as np
import pytest

from flood_engine.flood.grid import ElevationGrid
from flood_engine.geometry import GeographicBounds

# Row-major, row 0 first; the western three columns of the first three
# rows are the only cells below 3 m.
SCENARIO_ELEVATIONS = [
    [0, 1, 2, 10, 10],
    [0, 1, 2, 10, 10],
    [0, 1, 2, 10, 10],
    [10, 10, 10, 10, 10],
    [10, 10, 10, 10, 10],
]


@pytest.fixture
def unit_bounds():
    """A one-degree box anchored at the origin."""
    return GeographicBounds(north=1.0, south=0.0, east=1.0, west=0.0)


@pytest.fixture
def scenario_grid(unit_bounds):
    """5x5 grid with a low strip along the western edge."""
    return ElevationGrid(SCENARIO_ELEVATIONS, unit_bounds)


@pytest.fixture
def basin_grid(unit_bounds):
    """5x5 grid: open water around the border, a 50 m ring, a 0 m pit in the middle."""
    values = np.zeros((5, 5))
    values[1:4, 1:4] = 50.0
    values[2, 2] = 0.0
    return ElevationGrid(values, unit_bounds)
