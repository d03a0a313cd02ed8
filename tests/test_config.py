"""Tests for engine settings and shared primitives."""

import pytest

from flood_engine.config import Settings
from flood_engine.errors import FloodEngineError, InvalidGridError, OutOfBoundsError, OutOfRangeError
from flood_engine.geometry import GeographicBounds


def test_settings_defaults():
    """Test Settings has sensible defaults."""
    settings = Settings()
    assert settings.default_resolution > 0
    assert settings.no_data_value == -9999.0
    assert settings.line_sample_count > 0
    assert settings.max_concurrent_jobs > 0
    assert settings.job_timeout_seconds > 0


def test_settings_default_bounds_are_valid():
    """Default study area forms a valid bounding box."""
    settings = Settings()
    bounds = GeographicBounds(
        north=settings.bounds_north,
        south=settings.bounds_south,
        east=settings.bounds_east,
        west=settings.bounds_west,
    )
    assert bounds.contains(37.7749, -122.4194)


def test_settings_from_environment(monkeypatch):
    """FLOOD_-prefixed environment variables override defaults."""
    monkeypatch.setenv("FLOOD_DEFAULT_RESOLUTION", "50")
    monkeypatch.setenv("FLOOD_NO_DATA_VALUE", "-32768")
    settings = Settings()
    assert settings.default_resolution == 50
    assert settings.no_data_value == -32768.0


class TestGeographicBounds:
    """Tests for the bounds model."""

    def test_dimensions(self):
        bounds = GeographicBounds(north=2.0, south=1.0, east=5.0, west=3.0)
        assert bounds.width == 2.0
        assert bounds.height == 1.0

    def test_contains_is_inclusive(self):
        bounds = GeographicBounds(north=1.0, south=0.0, east=1.0, west=0.0)
        assert bounds.contains(0.0, 1.0)
        assert not bounds.contains(1.01, 0.5)

    def test_intersects(self):
        a = GeographicBounds(north=1.0, south=0.0, east=1.0, west=0.0)
        b = GeographicBounds(north=2.0, south=0.5, east=2.0, west=0.5)
        c = GeographicBounds(north=5.0, south=4.0, east=5.0, west=4.0)
        assert a.intersects(b)
        assert not a.intersects(c)

    def test_frozen(self):
        bounds = GeographicBounds(north=1.0, south=0.0, east=1.0, west=0.0)
        with pytest.raises(ValueError):
            bounds.north = 3.0

    def test_degenerate_rejected(self):
        with pytest.raises(ValueError):
            GeographicBounds(north=1.0, south=1.0, east=1.0, west=0.0)


def test_error_hierarchy():
    """Precondition errors are ValueErrors under one base class."""
    for exc in (OutOfRangeError(-20000.0), OutOfBoundsError(1.0, 2.0), InvalidGridError("bad")):
        assert isinstance(exc, FloodEngineError)
        assert isinstance(exc, ValueError)
