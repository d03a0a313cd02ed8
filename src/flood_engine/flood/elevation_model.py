"""Procedural elevation models used for demos, tests and the fast path.

The topographic model is the single ground truth for synthetic
elevation: grids built from it and the line-sample approximation both
evaluate the same function, so exact and approximate flood extents are
directly comparable.

Positions are normalised to ``(u, v)`` in [0, 1] over the model bounds:
``u`` runs west to east, ``v`` south to north.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Protocol

import numpy as np
from numpy.typing import NDArray

from flood_engine.flood.noise import SeededNoise
from flood_engine.geometry import GeographicBounds

# Study area the San Francisco model is laid out over
SF_MODEL_BOUNDS = GeographicBounds(north=37.8324, south=37.7034, east=-122.3557, west=-122.5155)


class ElevationSource(Protocol):
    """Anything a grid can be built from by evaluating nodes."""

    bounds: GeographicBounds

    def elevation_at(
        self, lats: NDArray[np.float64], lngs: NDArray[np.float64]
    ) -> NDArray[np.float64]: ...


def _mix(a, b, t):
    return a * (1.0 - t) + b * t


@dataclass(frozen=True)
class HillFeature:
    """An additive conical hill in normalised coordinates."""

    name: str
    x: float
    y: float
    peak: float  # meters added at the centre
    radius: float  # falloff radius in normalised units


@dataclass(frozen=True)
class ZoneOverride:
    """Blend the elevation toward a target inside a rectangle.

    With ``target_end`` the target ramps linearly along ``u`` from
    ``target`` at ``u_min`` to ``target_end`` at ``u_max``.  Rectangle
    edges are exclusive.
    """

    name: str
    target: float
    blend: float
    u_min: float = -math.inf
    u_max: float = math.inf
    v_min: float = -math.inf
    v_max: float = math.inf
    target_end: float | None = None

    def apply(
        self, elevation: NDArray[np.float64], u: NDArray[np.float64], v: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        inside = (u > self.u_min) & (u < self.u_max) & (v > self.v_min) & (v < self.v_max)
        if self.target_end is None:
            target = np.full_like(elevation, self.target)
        else:
            t = (u - self.u_min) / (self.u_max - self.u_min)
            target = _mix(self.target, self.target_end, t)
        return np.where(inside, _mix(elevation, target, self.blend), elevation)


SF_HILLS: tuple[HillFeature, ...] = (
    HillFeature("Twin Peaks", x=0.52, y=0.35, peak=230.0, radius=0.08),
    HillFeature("Nob Hill", x=0.42, y=0.72, peak=90.0, radius=0.06),
    HillFeature("Russian Hill", x=0.38, y=0.78, peak=70.0, radius=0.05),
    HillFeature("Pacific Heights", x=0.32, y=0.68, peak=80.0, radius=0.08),
)

SF_ZONES: tuple[ZoneOverride, ...] = (
    ZoneOverride("Mission Bay", target=1.0, blend=0.8, u_min=0.75, v_max=0.4),
    ZoneOverride("SOMA", target=5.0, blend=0.6, u_min=0.65, u_max=0.85, v_min=0.4, v_max=0.7),
    ZoneOverride(
        "Sunset District",
        target=8.0,
        target_end=40.0,
        blend=0.7,
        u_min=0.0,
        u_max=0.4,
        v_min=0.2,
        v_max=0.8,
    ),
)


@dataclass(frozen=True)
class TopographicModel:
    """Regional gradient + named hills + district overrides.

    Base gradient: a western coastal band (u < 0.15) rising 0 -> 8 m, an
    eastern bay band (u > 0.85) falling 5 -> 0 m toward the water, and
    an interior that rises to 50 m at the centre.  Hills are added, then
    zone overrides applied in order, then optional seeded micro-relief.
    The result never goes below 0 m.
    """

    bounds: GeographicBounds = SF_MODEL_BOUNDS
    hills: tuple[HillFeature, ...] = SF_HILLS
    zones: tuple[ZoneOverride, ...] = SF_ZONES
    coastal_band: float = 0.15
    roughness: float = 0.0  # meters of OpenSimplex micro-relief
    seed: int = 0
    _noise: SeededNoise | None = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.roughness > 0:
            object.__setattr__(self, "_noise", SeededNoise(self.seed))

    def to_normalized(self, lat, lng):
        """Geographic -> (u, v); works on scalars and arrays."""
        u = (np.asarray(lng, dtype=np.float64) - self.bounds.west) / self.bounds.width
        v = (np.asarray(lat, dtype=np.float64) - self.bounds.south) / self.bounds.height
        return u, v

    def from_normalized(self, u: float, v: float) -> tuple[float, float]:
        """(u, v) -> (lat, lng)."""
        return (
            self.bounds.south + v * self.bounds.height,
            self.bounds.west + u * self.bounds.width,
        )

    def elevation_array(self, u, v) -> NDArray[np.float64]:
        """Elevation (meters) at normalised positions, elementwise."""
        u, v = np.broadcast_arrays(np.asarray(u, dtype=np.float64), np.asarray(v, dtype=np.float64))
        band = self.coastal_band

        center_dist = np.abs(u - 0.5) * 2.0
        elevation = np.where(
            u < band,
            _mix(0.0, 8.0, u / band),
            np.where(
                u > 1.0 - band,
                _mix(0.0, 5.0, (1.0 - u) / band),
                _mix(50.0, 15.0, center_dist),
            ),
        )

        for hill in self.hills:
            d = np.hypot(u - hill.x, v - hill.y)
            elevation = elevation + np.where(d < hill.radius, _mix(hill.peak, 0.0, d / hill.radius), 0.0)

        for zone in self.zones:
            elevation = zone.apply(elevation, u, v)

        if self._noise is not None:
            elevation = elevation + self.roughness * self._noise.relief(u, v)

        return np.maximum(elevation, 0.0)

    def elevation(self, u: float, v: float) -> float:
        return float(self.elevation_array(u, v))

    def elevation_at(self, lats, lngs) -> NDArray[np.float64]:
        u, v = self.to_normalized(lats, lngs)
        return self.elevation_array(u, v)


@dataclass(frozen=True)
class SurveyPoint:
    name: str
    lat: float
    lng: float
    elevation: float


SF_SURVEY_POINTS: tuple[SurveyPoint, ...] = (
    SurveyPoint("Downtown", 37.7749, -122.4194, 10.0),
    SurveyPoint("Financial District", 37.7849, -122.4094, 5.0),
    SurveyPoint("Mission Bay", 37.7699, -122.3944, 2.0),
    SurveyPoint("Mission Bay South", 37.7649, -122.3894, 1.0),
    SurveyPoint("SOMA", 37.7699, -122.4094, 8.0),
    SurveyPoint("Marina District", 37.8049, -122.4394, 3.0),
    SurveyPoint("Marina West", 37.8099, -122.4444, 4.0),
    SurveyPoint("Pacific Heights", 37.7949, -122.4294, 45.0),
    SurveyPoint("Pacific Heights West", 37.7899, -122.4344, 55.0),
    SurveyPoint("Nob Hill", 37.7919, -122.4194, 85.0),
    SurveyPoint("Russian Hill", 37.8019, -122.4194, 90.0),
    SurveyPoint("Twin Peaks", 37.7519, -122.4474, 280.0),
    SurveyPoint("Castro/Mission", 37.7619, -122.4294, 25.0),
    SurveyPoint("Sunset District", 37.7519, -122.4674, 15.0),
    SurveyPoint("Outer Sunset", 37.7419, -122.4774, 12.0),
    SurveyPoint("Richmond District", 37.7819, -122.4674, 18.0),
    SurveyPoint("Bayview", 37.7319, -122.3874, 8.0),
    SurveyPoint("Hunters Point", 37.7219, -122.3774, 5.0),
)


@dataclass(frozen=True)
class InverseDistanceModel:
    """Elevation interpolated from scattered survey points.

    Weights are ``1 / (distance + 0.001)`` in degrees; with no points
    every query returns ``default``.
    """

    points: tuple[SurveyPoint, ...] = SF_SURVEY_POINTS
    bounds: GeographicBounds = SF_MODEL_BOUNDS
    default: float = 10.0

    def elevation_at(self, lats, lngs) -> NDArray[np.float64]:
        lats, lngs = np.broadcast_arrays(
            np.asarray(lats, dtype=np.float64), np.asarray(lngs, dtype=np.float64)
        )
        if not self.points:
            return np.full(lats.shape, self.default)

        total_weight = np.zeros(lats.shape)
        weighted = np.zeros(lats.shape)
        for p in self.points:
            weight = 1.0 / (np.hypot(lats - p.lat, lngs - p.lng) + 0.001)
            total_weight += weight
            weighted += p.elevation * weight
        return weighted / total_weight
