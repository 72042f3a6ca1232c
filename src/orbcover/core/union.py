"""Union coverage of many spherical caps.

Estimates the share of the sphere seen by at least one satellite with a
deterministic equal-area quadrature:

1. Drop caps that lie entirely inside another cap.
2. Pick a grid step from the number of surviving caps and the smallest
   cap radius.
3. Sample latitude-band/longitude-cell centres, each weighted by the true
   solid-angle fraction of its cell.
4. Sum the weights of samples inside any cap.

Grids depend only on resolution and are cached in a :class:`GridCache`.
"""
from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, field
from typing import Iterable

import numpy as np
from numpy.typing import NDArray
from scipy.spatial import cKDTree

from orbcover.core.coverage import CoverageCap
from orbcover.utils.constants import (
    COARSE_GRID_STEP_DEG,
    COVERAGE_EPS,
    DOMINATION_EPS,
    EARTH_RADIUS_KM as RE,
    FINE_GRID_MAX_CAPS,
    FINE_GRID_MIN_PSI_DEG,
    FINE_GRID_STEP_DEG,
    MEDIUM_GRID_MAX_CAPS,
    MEDIUM_GRID_MIN_PSI_DEG,
    MEDIUM_GRID_STEP_DEG,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnionCoverage:
    """Aggregate coverage of a set of caps.

    Attributes:
        percent: Share of the sphere covered by at least one cap, in percent.
        area_km2: Covered area in km².
        caps_used: Number of caps left after domination pruning.
        resolution_deg: Grid step used, or None when nothing was sampled.
    """

    percent: float
    area_km2: float
    caps_used: int = 0
    resolution_deg: float | None = None


@dataclass(eq=False)
class EqualAreaGrid:
    """Unit-sphere sample directions with solid-angle weights.

    Attributes:
        lat_step_deg: Latitude band height in degrees.
        lon_step_deg: Longitude cell width in degrees.
        points: (N, 3) unit vectors.
        weights: (N,) fractions of the sphere; they sum to 1.
    """

    lat_step_deg: float
    lon_step_deg: float
    points: NDArray[np.float64]
    weights: NDArray[np.float64]
    _tree: cKDTree | None = field(default=None, repr=False)
    _tree_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __len__(self) -> int:
        return len(self.weights)

    @property
    def tree(self) -> cKDTree:
        """KD-tree over :attr:`points`, built on first use."""
        if self._tree is None:
            with self._tree_lock:
                if self._tree is None:
                    self._tree = cKDTree(self.points)
        return self._tree


def _cell_count(span_deg: float, step_deg: float, axis: str) -> int:
    if not (math.isfinite(step_deg) and 0.0 < step_deg <= span_deg):
        logger.error("Invalid %s grid step: %r deg", axis, step_deg)
        raise ValueError(f"{axis} grid step must be in (0, {span_deg:g}] degrees, got {step_deg!r}")
    count = int(round(span_deg / step_deg))
    if abs(count * step_deg - span_deg) > 1e-9:
        logger.error("%s grid step %r deg does not divide %g deg", axis.capitalize(), step_deg, span_deg)
        raise ValueError(f"{axis} grid step {step_deg!r} does not divide {span_deg:g} degrees")
    return count


def build_grid(lat_step_deg: float, lon_step_deg: float) -> EqualAreaGrid:
    """Build the equal-area sample grid for one resolution.

    Points sit at latitude-band centres and longitude-cell centres, in the
    Y-up frame ``(cos φ cos λ, sin φ, cos φ sin λ)``. Each cell's weight is
    ``Δλ (sin φ2 − sin φ1) / 4π``.

    Raises:
        ValueError: If a step is not positive or does not divide its span
            (180° for latitude, 360° for longitude) into whole cells.
    """
    lat_steps = _cell_count(180.0, lat_step_deg, "latitude")
    lon_steps = _cell_count(360.0, lon_step_deg, "longitude")

    lat_edges = np.radians(-90.0 + np.arange(lat_steps + 1) * lat_step_deg)
    lat_edges[-1] = math.pi / 2
    lat_centers = 0.5 * (lat_edges[:-1] + lat_edges[1:])
    band_fraction = math.radians(lon_step_deg) * np.diff(np.sin(lat_edges)) / (4.0 * math.pi)

    lon_centers = np.radians(-180.0 + (np.arange(lon_steps) + 0.5) * lon_step_deg)

    phi, lam = np.meshgrid(lat_centers, lon_centers, indexing="ij")
    cos_phi = np.cos(phi)
    points = np.stack(
        [cos_phi * np.cos(lam), np.sin(phi), cos_phi * np.sin(lam)], axis=-1
    ).reshape(-1, 3)
    weights = np.repeat(band_fraction, lon_steps)

    logger.debug(
        "Built %.3gx%.3g deg grid with %d samples", lat_step_deg, lon_step_deg, len(weights)
    )
    return EqualAreaGrid(lat_step_deg, lon_step_deg, points, weights)


class GridCache:
    """Compute-or-fetch store of :class:`EqualAreaGrid` keyed by resolution.

    Each entry is built at most once; concurrent callers asking for the same
    resolution wait for the first build. Pass a fresh instance to
    :func:`union_coverage` to isolate callers (e.g. tests).
    """

    def __init__(self) -> None:
        self._grids: dict[tuple[float, float], EqualAreaGrid] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(lat_step_deg: float, lon_step_deg: float) -> tuple[float, float]:
        return (round(float(lat_step_deg), 9), round(float(lon_step_deg), 9))

    def get(self, lat_step_deg: float, lon_step_deg: float) -> EqualAreaGrid:
        key = self._key(lat_step_deg, lon_step_deg)
        grid = self._grids.get(key)
        if grid is not None:
            return grid
        with self._lock:
            grid = self._grids.get(key)
            if grid is None:
                grid = build_grid(*key)
                self._grids[key] = grid
        return grid

    def clear(self) -> None:
        with self._lock:
            self._grids.clear()

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        return self._key(*key) in self._grids

    def __len__(self) -> int:
        return len(self._grids)


_default_cache = GridCache()


def default_grid_cache() -> GridCache:
    """The process-wide cache used when none is passed in."""
    return _default_cache


def _is_usable(cap: CoverageCap) -> bool:
    psi = cap.central_angle
    norm = float(np.linalg.norm(cap.direction))
    return math.isfinite(psi) and psi > 0.0 and math.isfinite(norm) and norm > 0.0


def _usable(caps: Iterable[CoverageCap]) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Unit axes (n, 3) and angles (n,) of caps with a finite positive ψ."""
    axes: list[NDArray[np.float64]] = []
    angles: list[float] = []
    for cap in caps:
        if not _is_usable(cap):
            continue
        axis = np.asarray(cap.direction, dtype=np.float64)
        axes.append(axis / np.linalg.norm(axis))
        angles.append(cap.central_angle)
    if not axes:
        return np.empty((0, 3), dtype=np.float64), np.empty(0, dtype=np.float64)
    return np.array(axes), np.array(angles)


def _dominated_mask(axes: NDArray[np.float64], angles: NDArray[np.float64], eps: float) -> NDArray[np.bool_]:
    n = len(angles)
    separation = np.arccos(np.clip(axes @ axes.T, -1.0, 1.0))
    # contains[i, j]: cap j contains cap i
    contains = angles[None, :] >= angles[:, None] + separation - eps
    np.fill_diagonal(contains, False)

    dropped = np.zeros(n, dtype=np.bool_)
    for i in range(n):
        # A dropped j is inside some kept cap that also contains i.
        if np.any(contains[i] & ~dropped):
            dropped[i] = True
    return dropped


def prune_dominated(caps: Iterable[CoverageCap], eps: float = DOMINATION_EPS) -> list[CoverageCap]:
    """Drop caps that are entirely contained in another cap.

    Cap i is dropped if some other cap j has ``ψj ≥ ψi + sep(i, j) − eps``.
    Caps with a non-finite or non-positive angle are dropped as well. Of a
    set of identical caps, exactly one survives.

    Args:
        caps: Candidate caps.
        eps: Angular slack in radians.

    Returns:
        The surviving caps, in input order.
    """
    candidates = [cap for cap in caps if _is_usable(cap)]
    if len(candidates) < 2:
        return candidates
    axes, angles = _usable(candidates)
    dropped = _dominated_mask(axes, angles, eps)
    return [cap for cap, drop in zip(candidates, dropped) if not drop]


def choose_resolution(n_caps: int, min_psi_deg: float) -> float:
    """Grid step in degrees for a set of caps.

    Dense constellations and small caps get finer grids.
    """
    if n_caps > FINE_GRID_MAX_CAPS or min_psi_deg < FINE_GRID_MIN_PSI_DEG:
        return FINE_GRID_STEP_DEG
    if n_caps > MEDIUM_GRID_MAX_CAPS or min_psi_deg < MEDIUM_GRID_MIN_PSI_DEG:
        return MEDIUM_GRID_STEP_DEG
    return COARSE_GRID_STEP_DEG


def union_coverage(
    caps: Iterable[CoverageCap],
    *,
    cache: GridCache | None = None,
    earth_radius_km: float = RE,
    resolution_deg: float | None = None,
) -> UnionCoverage:
    """Share of the sphere covered by at least one cap.

    Args:
        caps: Coverage caps of the active satellites.
        cache: Grid cache to use; defaults to the process-wide cache.
        earth_radius_km: Radius used to turn the covered fraction into km².
        resolution_deg: Fixed grid step; chosen adaptively when None.

    Returns:
        The union coverage. No usable caps gives exactly 0.0 percent and
        0.0 km².

    Raises:
        ValueError: If ``resolution_deg`` does not divide 180°.
    """
    axes, angles = _usable(caps)
    if len(angles) == 0:
        return UnionCoverage(percent=0.0, area_km2=0.0)

    kept = ~_dominated_mask(axes, angles, DOMINATION_EPS)
    axes, angles = axes[kept], angles[kept]

    step = resolution_deg
    if step is None:
        step = choose_resolution(len(angles), math.degrees(float(np.min(angles))))

    grid = (cache if cache is not None else default_grid_cache()).get(step, step)
    covered = np.zeros(len(grid), dtype=np.bool_)
    cos_thresholds = np.cos(angles)

    for axis, cos_psi in zip(axes, cos_thresholds):
        # |p - a|^2 = 2 - 2 p·a for unit vectors; small slack, exact test below
        chord = math.sqrt(max(0.0, 2.0 * (1.0 - cos_psi + COVERAGE_EPS))) + 1e-9
        idx = np.asarray(grid.tree.query_ball_point(axis, chord), dtype=np.intp)
        if idx.size == 0:
            continue
        inside = grid.points[idx] @ axis + COVERAGE_EPS >= cos_psi
        covered[idx[inside]] = True

    fraction = float(np.sum(grid.weights[covered]))
    percent = fraction * 100.0
    area = percent / 100.0 * 4.0 * math.pi * earth_radius_km ** 2

    logger.debug(
        "Union coverage %.4f%% from %d caps (%d pruned) on %.2f deg grid",
        percent, len(angles), int(np.sum(~kept)), step,
    )
    return UnionCoverage(percent=percent, area_km2=area, caps_used=len(angles), resolution_deg=step)
