"""Sea-level rise flood-extent engine."""

from flood_engine.geometry import GeographicBounds

__version__ = "0.1.0"
__all__ = ["GeographicBounds"]
