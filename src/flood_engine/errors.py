"""Error types raised by the flood engine.

All errors are precondition violations surfaced synchronously to the
caller.  Degenerate geometry (fewer than three points where a ring was
expected) is not an error: those paths return empty results.
"""


class FloodEngineError(ValueError):
    """Base class for flood engine errors."""


class OutOfRangeError(FloodEngineError):
    """Elevation cannot be represented by the Terrain-RGB codec."""

    def __init__(self, elevation: float) -> None:
        super().__init__(f"Elevation {elevation!r} m is outside the Terrain-RGB range")
        self.elevation = elevation


class OutOfBoundsError(FloodEngineError):
    """Query point lies outside the grid's geographic bounds."""

    def __init__(self, lat: float, lng: float) -> None:
        super().__init__(f"Point (lat={lat}, lng={lng}) is outside the grid bounds")
        self.lat = lat
        self.lng = lng


class InvalidGridError(FloodEngineError):
    """Grid is zero-sized or otherwise malformed."""


class ComputationCancelled(Exception):
    """A long-running computation was superseded before it finished."""
