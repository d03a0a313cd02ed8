"""Geographic primitives shared across the engine."""

from pydantic import BaseModel, ConfigDict, model_validator


class GeographicBounds(BaseModel):
    """A north/south/east/west box in decimal degrees.

    No antimeridian wraparound: ``east`` must be greater than ``west``.
    """

    model_config = ConfigDict(frozen=True)

    north: float
    south: float
    east: float
    west: float

    @model_validator(mode="after")
    def _check_order(self) -> "GeographicBounds":
        if not self.north > self.south:
            raise ValueError(f"north ({self.north}) must be greater than south ({self.south})")
        if not self.east > self.west:
            raise ValueError(f"east ({self.east}) must be greater than west ({self.west})")
        return self

    @property
    def width(self) -> float:
        """Longitude span in degrees."""
        return self.east - self.west

    @property
    def height(self) -> float:
        """Latitude span in degrees."""
        return self.north - self.south

    def contains(self, lat: float, lng: float) -> bool:
        """Whether the point lies inside the box (edges inclusive)."""
        return self.south <= lat <= self.north and self.west <= lng <= self.east

    def intersects(self, other: "GeographicBounds") -> bool:
        return not (
            other.west > self.east
            or other.east < self.west
            or other.south > self.north
            or other.north < self.south
        )

