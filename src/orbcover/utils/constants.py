"""Physical constants and tunable thresholds for propagation and coverage.

All values in km / seconds / degrees unless otherwise noted.
"""

from __future__ import annotations

# --- Earth parameters (WGS-84) ---
EARTH_RADIUS_KM: float = 6378.137
"""Equatorial radius of Earth in km. Also the area-normalization radius."""

EARTH_MU_KM3_S2: float = 398600.4418
"""Earth gravitational parameter (GM) in km³/s²."""

SECONDS_PER_DAY: float = 86400.0
MINUTES_PER_DAY: float = 1440.0

# --- Kepler solver ---
KEPLER_MAX_ITER: int = 10
"""Newton-Raphson iteration cap for Kepler's equation."""

KEPLER_TOL: float = 1e-12
"""Convergence tolerance on |ΔE| in radians."""

# --- Coverage ---
DOMINATION_EPS: float = 1e-12
"""Angular slack (rad) when testing whether one cap contains another."""

COVERAGE_EPS: float = 1e-12
"""Dot-product slack when testing whether a sample lies inside a cap."""

SURFACE_REL_TOL: float = 1e-12
"""Relative slack on the Earth radius below which a satellite counts as on the surface."""

# Adaptive grid resolution: (max caps, min cap radius deg, step deg), finest first.
FINE_GRID_STEP_DEG: float = 0.25
FINE_GRID_MAX_CAPS: int = 40
FINE_GRID_MIN_PSI_DEG: float = 3.0

MEDIUM_GRID_STEP_DEG: float = 0.5
MEDIUM_GRID_MAX_CAPS: int = 20
MEDIUM_GRID_MIN_PSI_DEG: float = 6.0

COARSE_GRID_STEP_DEG: float = 1.0

# --- Rendering hand-off ---
DEFAULT_SCENE_EARTH_RADIUS: float = 2.0
"""Earth radius in scene units used by :func:`eci_to_scene`."""

DEFAULT_TRACK_SEGMENTS: int = 256
"""Number of segments used when sampling one orbital period."""
