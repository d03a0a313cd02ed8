"""Tests for the Terrain-RGB codec."""

import math

import numpy as np
import pytest

from flood_engine.errors import OutOfRangeError
from flood_engine.flood.codec import (
    MAX_ELEVATION,
    MIN_ELEVATION,
    decode,
    decode_array,
    encode,
    encode_array,
)


class TestEncode:
    """Tests for single-value encoding."""

    def test_sea_level(self):
        """0 m is 100000 steps above the offset."""
        sample = encode(0.0)
        assert sample.as_tuple() == (1, 134, 160)

    def test_minimum_encodes_to_black(self):
        assert encode(MIN_ELEVATION).as_tuple() == (0, 0, 0)

    def test_maximum_encodes_to_white(self):
        assert encode(MAX_ELEVATION).as_tuple() == (255, 255, 255)

    def test_channels_are_bytes(self):
        """Every channel stays within 0-255."""
        for elevation in (-10000.0, -432.1, 0.05, 8848.86, 500000.0):
            sample = encode(elevation)
            for channel in sample.as_tuple():
                assert 0 <= channel <= 255

    def test_below_range_raises(self):
        with pytest.raises(OutOfRangeError) as exc_info:
            encode(-20000.0)
        assert exc_info.value.elevation == -20000.0

    def test_above_range_raises(self):
        with pytest.raises(OutOfRangeError):
            encode(MAX_ELEVATION + 1.0)

    def test_non_finite_raises(self):
        with pytest.raises(OutOfRangeError):
            encode(math.nan)
        with pytest.raises(OutOfRangeError):
            encode(math.inf)

    def test_out_of_range_is_value_error(self):
        """Callers catching ValueError also see codec errors."""
        with pytest.raises(ValueError):
            encode(-10000.5)


class TestDecode:
    """Tests for decoding and round trips."""

    def test_black_is_minimum(self):
        assert decode(0, 0, 0) == pytest.approx(-10000.0)

    def test_round_trip_within_half_step(self):
        """decode(encode(e)) recovers e to within the 0.1 m quantization."""
        for elevation in (-50.3, -0.04, 0.0, 1.0, 12.34, 280.0, 8848.86):
            recovered = decode(*encode(elevation).as_tuple())
            assert abs(recovered - elevation) <= 0.05 + 1e-9

    def test_high_and_deep_values(self):
        assert decode(*encode(2949.6).as_tuple()) == pytest.approx(2949.6, abs=0.05)
        assert decode(*encode(-9994.0).as_tuple()) == pytest.approx(-9994.0, abs=0.05)

    def test_decode_is_monotonic_in_scaled_value(self):
        assert decode(1, 134, 160) < decode(1, 134, 161) < decode(1, 135, 0)


class TestArrayCodec:
    """Tests for the vectorised codec."""

    def test_encode_array_shape_and_dtype(self):
        elevations = np.array([[0.0, 10.0], [-5.0, 250.5]])
        rgb = encode_array(elevations)
        assert rgb.shape == (2, 2, 3)
        assert rgb.dtype == np.uint8

    def test_matches_scalar_encode(self):
        elevations = np.array([0.0, 12.34, -50.3, 8848.86])
        rgb = encode_array(elevations)
        for k, elevation in enumerate(elevations):
            assert tuple(int(c) for c in rgb[k]) == encode(float(elevation)).as_tuple()

    def test_array_round_trip(self):
        elevations = np.linspace(-100.0, 300.0, 41).reshape(41, 1)
        recovered = decode_array(encode_array(elevations))
        assert np.all(np.abs(recovered - elevations) <= 0.05 + 1e-9)

    def test_full_range_round_trip(self):
        """Every 0.1 m step from -10000 m to 1000000 m survives a round trip."""
        steps = 10_100_000
        chunk = 1_000_000
        for start in range(0, steps + 1, chunk):
            k = np.arange(start, min(start + chunk, steps + 1), dtype=np.int64)
            for shift in (0.0, 0.037):
                elevations = np.minimum(MIN_ELEVATION + k * 0.1 + shift, 1_000_000.0)
                recovered = decode_array(encode_array(elevations))
                assert np.max(np.abs(recovered - elevations)) <= 0.05 + 1e-6

    def test_decode_ignores_alpha(self):
        rgba = np.array([[[1, 134, 160, 0], [1, 134, 160, 255]]], dtype=np.uint8)
        decoded = decode_array(rgba)
        assert decoded.shape == (1, 2)
        assert decoded[0, 0] == pytest.approx(0.0)
        assert decoded[0, 1] == pytest.approx(0.0)

    def test_encode_array_reports_first_bad_value(self):
        with pytest.raises(OutOfRangeError) as exc_info:
            encode_array(np.array([0.0, -20000.0, math.nan]))
        assert exc_info.value.elevation == -20000.0
