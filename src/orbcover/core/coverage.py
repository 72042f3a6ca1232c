"""Single-satellite ground coverage on a spherical Earth.

The region of the surface that sees a satellite above a minimum elevation
angle is a spherical cap centred on the sub-satellite point. Its central
half-angle has a closed form, so no horizon search is needed:

    ψ = arccos((R / d) · cos e) − e

where ``d`` is the satellite's distance from Earth's center and ``e`` the
minimum elevation angle.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

from orbcover.core.propagation import StateVector
from orbcover.utils.constants import EARTH_RADIUS_KM as RE, SURFACE_REL_TOL

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class CoverageCap:
    """A spherical cap on the reference sphere.

    Attributes:
        direction: Unit vector from Earth's center toward the satellite.
        central_angle: Cap half-angle ψ in radians (0 for a degenerate cap).
        satellite_altitude_km: Satellite height above the sphere in km.
        earth_radius_km: Radius of the reference sphere.
    """

    direction: NDArray[np.float64]
    central_angle: float
    satellite_altitude_km: float = 0.0
    earth_radius_km: float = RE

    @classmethod
    def empty(cls, earth_radius_km: float = RE) -> CoverageCap:
        """A zero-area cap, used for sub-surface or non-finite positions."""
        return cls(
            direction=np.zeros(3, dtype=np.float64),
            central_angle=0.0,
            earth_radius_km=earth_radius_km,
        )

    def _key(self) -> tuple[object, ...]:
        return (
            tuple(float(c) for c in np.ravel(self.direction)),
            self.central_angle,
            self.satellite_altitude_km,
            self.earth_radius_km,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CoverageCap):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    @property
    def is_empty(self) -> bool:
        return not self.central_angle > 0.0

    @property
    def area_km2(self) -> float:
        """Cap area ``2πR²(1 − cos ψ)`` in km²."""
        if self.is_empty:
            return 0.0
        return 2.0 * math.pi * self.earth_radius_km ** 2 * (1.0 - math.cos(self.central_angle))

    @property
    def percentage(self) -> float:
        """Share of the whole sphere's surface, in percent."""
        return self.area_km2 / (4.0 * math.pi * self.earth_radius_km ** 2) * 100.0

    @property
    def surface_radius_km(self) -> float:
        """Radius of the coverage circle measured in the cap's base plane."""
        return self.earth_radius_km * math.sin(self.central_angle)

    def to_record(self) -> dict[str, object]:
        """Per-satellite coverage record in the shape the UI consumes."""
        return {
            "centralAngle": self.central_angle,
            "coverageAreaKm2": self.area_km2,
            "coveragePercentage": self.percentage,
            "satelliteAltitudeKm": self.satellite_altitude_km,
            "direction": tuple(float(c) for c in self.direction),
        }


def horizon_central_angle(distance_km: float, earth_radius_km: float = RE) -> float:
    """Central angle out to the geometric horizon (zero elevation)."""
    if not distance_km > earth_radius_km * (1.0 + SURFACE_REL_TOL):
        return 0.0
    return math.acos(earth_radius_km / distance_km)


def coverage(
    position: ArrayLike,
    min_elevation_deg: float = 0.0,
    earth_radius_km: float = RE,
) -> CoverageCap:
    """Coverage cap for a satellite at ``position``.

    Args:
        position: Satellite position vector in km (any Earth-centred frame).
        min_elevation_deg: Minimum ground elevation angle; clamped to [0, 90].
        earth_radius_km: Radius of the reference sphere.

    Returns:
        The visible cap. Positions at or below the surface (within a
        relative :data:`SURFACE_REL_TOL` of the radius), or non-finite
        positions, give :meth:`CoverageCap.empty` instead of raising.
    """
    pos = np.asarray(position, dtype=np.float64)
    d = float(np.linalg.norm(pos))

    if not math.isfinite(d) or d <= earth_radius_km * (1.0 + SURFACE_REL_TOL):
        logger.debug("Degenerate coverage: distance %.3f km vs radius %.3f km", d, earth_radius_km)
        return CoverageCap.empty(earth_radius_km)

    elevation = math.radians(min(max(min_elevation_deg, 0.0), 90.0))
    u = earth_radius_km / d
    psi = max(0.0, math.acos(min(1.0, u * math.cos(elevation))) - elevation)

    return CoverageCap(
        direction=pos / d,
        central_angle=psi,
        satellite_altitude_km=d - earth_radius_km,
        earth_radius_km=earth_radius_km,
    )


def coverage_for_state(
    state: StateVector,
    min_elevation_deg: float = 0.0,
    earth_radius_km: float = RE,
) -> CoverageCap:
    """Coverage cap for a propagated state."""
    return coverage(state.position_km, min_elevation_deg, earth_radius_km)
