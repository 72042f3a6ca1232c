"""Orbital propagation via Kepler's equation.

Two-body propagation of TLE mean elements with a first-order secular
correction to mean motion (``n' = n + ṅ·Δt``). This is deliberately not
SGP4: there is no drag model beyond ṅ, no J2 secular or periodic terms, and
long horizons (days or more) drift visibly from real ephemerides.
:func:`propagate_sgp4` gives an SGP4 reference state for comparison.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import numpy as np

logger = logging.getLogger(__name__)
from numpy.typing import ArrayLike, NDArray
from sgp4.api import Satrec, WGS72, jday

from orbcover.core.tle import OrbitalElements
from orbcover.utils.constants import (
    DEFAULT_SCENE_EARTH_RADIUS,
    DEFAULT_TRACK_SEGMENTS,
    EARTH_MU_KM3_S2 as MU,
    EARTH_RADIUS_KM as RE,
    KEPLER_MAX_ITER,
    KEPLER_TOL,
    MINUTES_PER_DAY,
)


@dataclass(frozen=True)
class StateVector:
    """Position and velocity in the inertial frame of the TLE elements.

    Attributes:
        position_km: [x, y, z] position in km.
        velocity_km_s: [vx, vy, vz] velocity in km/s.
        epoch: Time of this state vector.
    """

    position_km: NDArray[np.float64]  # shape (3,)
    velocity_km_s: NDArray[np.float64]  # shape (3,)
    epoch: datetime

    @property
    def distance_km(self) -> float:
        """Distance from Earth's center in km."""
        return float(np.linalg.norm(self.position_km))

    @property
    def altitude_km(self) -> float:
        """Height above the equatorial radius in km."""
        return self.distance_km - RE


def _as_utc(t: datetime) -> datetime:
    if t.tzinfo is None:
        return t.replace(tzinfo=timezone.utc)
    return t.astimezone(timezone.utc)


def _minutes_since_epoch(elements: OrbitalElements, t: datetime) -> float:
    return (_as_utc(t) - elements.epoch).total_seconds() / 60.0


def solve_kepler(
    mean_anomaly: ArrayLike,
    eccentricity: ArrayLike,
    max_iter: int = KEPLER_MAX_ITER,
    tol: float = KEPLER_TOL,
) -> float | NDArray[np.float64]:
    """Solve Kepler's equation ``M = E - e sin E`` for the eccentric anomaly.

    Newton-Raphson seeded at ``E0 = M``, stopping after ``max_iter`` steps or
    once every ``|ΔE| < tol``. Accepts scalars or arrays (elementwise).

    The iteration cap is not a convergence guarantee: for eccentricities
    close to 1 the last iterate is returned as-is.

    Args:
        mean_anomaly: Mean anomaly in radians.
        eccentricity: Eccentricity, 0 <= e < 1.
        max_iter: Iteration cap.
        tol: Step-size tolerance in radians.

    Returns:
        Eccentric anomaly in radians, a float for scalar input.
    """
    M = np.asarray(mean_anomaly, dtype=np.float64)
    e = np.asarray(eccentricity, dtype=np.float64)
    E = np.array(np.broadcast_to(M, np.broadcast(M, e).shape), dtype=np.float64)
    dE = np.zeros_like(E)

    for _ in range(max_iter):
        dE = (E - e * np.sin(E) - M) / (1.0 - e * np.cos(E))
        E = E - dE
        if np.all(np.abs(dE) < tol):
            break
    else:
        logger.debug(
            "Kepler solver hit iteration cap (%d); max |dE| = %.3e",
            max_iter, float(np.max(np.abs(dE))),
        )

    if E.ndim == 0:
        return float(E)
    return E


def _rotation_to_inertial(
    raan: NDArray[np.float64], inc: NDArray[np.float64], argp: NDArray[np.float64]
) -> NDArray[np.float64]:
    """Perifocal-to-inertial rotation Rz(Ω)·Rx(i)·Rz(ω), shape (..., 3, 2).

    Only the first two columns are needed since perifocal z is zero.
    """
    cos_raan, sin_raan = np.cos(raan), np.sin(raan)
    cos_argp, sin_argp = np.cos(argp), np.sin(argp)
    cos_inc, sin_inc = np.cos(inc), np.sin(inc)

    rot = np.empty(np.shape(raan) + (3, 2), dtype=np.float64)
    rot[..., 0, 0] = cos_raan * cos_argp - sin_raan * sin_argp * cos_inc
    rot[..., 0, 1] = -cos_raan * sin_argp - sin_raan * cos_argp * cos_inc
    rot[..., 1, 0] = sin_raan * cos_argp + cos_raan * sin_argp * cos_inc
    rot[..., 1, 1] = -sin_raan * sin_argp + cos_raan * cos_argp * cos_inc
    rot[..., 2, 0] = sin_argp * sin_inc
    rot[..., 2, 1] = cos_argp * sin_inc
    return rot


def _kepler_states(
    elements: list[OrbitalElements], dt_minutes: NDArray[np.float64]
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Vectorized two-body states for paired (elements[k], dt_minutes[k]).

    Returns:
        Tuple of positions (n, 3) in km and velocities (n, 3) in km/s.
    """
    e = np.array([el.eccentricity for el in elements], dtype=np.float64)
    a = np.array([el.semi_major_axis_km for el in elements], dtype=np.float64)
    inc = np.array([el.inclination_rad for el in elements], dtype=np.float64)
    raan = np.array([el.raan_rad for el in elements], dtype=np.float64)
    argp = np.array([el.arg_perigee_rad for el in elements], dtype=np.float64)
    m0 = np.array([el.mean_anomaly_rad for el in elements], dtype=np.float64)

    # rev/day -> rad/min, rev/day^2 -> rad/min^2
    n = np.array([el.mean_motion_rev_per_day for el in elements]) * 2 * np.pi / MINUTES_PER_DAY
    n_dot = np.array([el.mean_motion_dot for el in elements]) * 2 * np.pi / MINUTES_PER_DAY ** 2

    n_current = n + n_dot * dt_minutes
    M = m0 + n_current * dt_minutes
    E = np.asarray(solve_kepler(M, e), dtype=np.float64)

    nu = 2.0 * np.arctan2(
        np.sqrt(1.0 + e) * np.sin(E / 2.0),
        np.sqrt(1.0 - e) * np.cos(E / 2.0),
    )
    r = a * (1.0 - e * np.cos(E))

    p = a * (1.0 - e * e)
    speed = np.sqrt(MU / p)
    pos_pf = np.stack([r * np.cos(nu), r * np.sin(nu)], axis=-1)
    vel_pf = np.stack([-speed * np.sin(nu), speed * (e + np.cos(nu))], axis=-1)

    rot = _rotation_to_inertial(raan, inc, argp)
    positions = np.einsum("nij,nj->ni", rot, pos_pf)
    velocities = np.einsum("nij,nj->ni", rot, vel_pf)
    return positions, velocities


def propagate(elements: OrbitalElements, at: datetime) -> StateVector:
    """Propagate a single element set to one time.

    Never raises for numeric reasons; degenerate elements give a best-effort
    (possibly non-finite) state. Input validation belongs to the parser.

    Args:
        elements: Parsed orbital elements.
        at: Time to propagate to. Naive datetimes are taken as UTC.

    Returns:
        The inertial state at ``at``.
    """
    dt = np.array([_minutes_since_epoch(elements, at)], dtype=np.float64)
    positions, velocities = _kepler_states([elements], dt)
    return StateVector(position_km=positions[0], velocity_km_s=velocities[0], epoch=at)


def propagate_many(elements: OrbitalElements, times: list[datetime]) -> list[StateVector]:
    """Propagate a single element set to multiple times.

    Args:
        elements: Parsed orbital elements.
        times: List of datetimes to propagate to.

    Returns:
        List of StateVector objects, one per requested time.
    """
    if not times:
        return []
    dt = np.array([_minutes_since_epoch(elements, t) for t in times], dtype=np.float64)
    positions, velocities = _kepler_states([elements] * len(times), dt)

    logger.debug("Propagated NORAD %d to %d times", elements.norad_id, len(times))
    return [
        StateVector(position_km=positions[k], velocity_km_s=velocities[k], epoch=t)
        for k, t in enumerate(times)
    ]


def propagate_batch(
    elements_list: list[OrbitalElements], time: datetime
) -> tuple[NDArray[np.float64], NDArray[np.bool_]]:
    """Propagate many element sets to a single time in one vectorized pass.

    Args:
        elements_list: Element sets to propagate.
        time: Single datetime to propagate all objects to.

    Returns:
        Tuple of:
            - positions_velocities: Array of shape (n, 6) with [x,y,z,vx,vy,vz] in km, km/s
            - valid_mask: Boolean array of shape (n,), False where the state is not finite
    """
    if not elements_list:
        return np.empty((0, 6), dtype=np.float64), np.empty(0, dtype=np.bool_)

    dt = np.array([_minutes_since_epoch(el, time) for el in elements_list], dtype=np.float64)
    positions, velocities = _kepler_states(elements_list, dt)

    result = np.empty((len(elements_list), 6), dtype=np.float64)
    result[:, 0:3] = positions
    result[:, 3:6] = velocities
    valid_mask = np.all(np.isfinite(result), axis=1)
    if not np.all(valid_mask):
        logger.warning("%d of %d states are not finite", int(np.sum(~valid_mask)), len(elements_list))
    return result, valid_mask


def orbit_track(
    elements: OrbitalElements,
    start: datetime,
    segments: int = DEFAULT_TRACK_SEGMENTS,
) -> NDArray[np.float64]:
    """Sample positions over one orbital period starting at ``start``.

    Returns:
        Array of shape (segments + 1, 3); the last point closes the loop.
    """
    step = timedelta(minutes=elements.period_minutes / segments)
    times = [start + k * step for k in range(segments + 1)]
    dt = np.array([_minutes_since_epoch(elements, t) for t in times], dtype=np.float64)
    positions, _ = _kepler_states([elements] * len(times), dt)
    return positions


def eci_to_scene(
    vector: ArrayLike, scene_earth_radius: float = DEFAULT_SCENE_EARTH_RADIUS
) -> NDArray[np.float64]:
    """Map inertial km vectors into a Y-up renderer frame.

    Uniform scale so Earth has radius ``scene_earth_radius``, then
    ``(x, y, z) -> (x, z, -y)``. Works on (3,) or (n, 3) input.
    """
    v = np.asarray(vector, dtype=np.float64)
    scale = scene_earth_radius / RE
    return np.stack([v[..., 0], v[..., 2], -v[..., 1]], axis=-1) * scale


def propagate_sgp4(elements: OrbitalElements, at: datetime) -> StateVector:
    """Reference state from full SGP4 (TEME frame), for cross-checking.

    Raises:
        ValueError: If SGP4 propagation fails (error code != 0).
    """
    satrec = Satrec.twoline2rv(elements.line1, elements.line2, WGS72)
    t = _as_utc(at)
    jd, fr = jday(t.year, t.month, t.day, t.hour, t.minute, t.second + t.microsecond / 1e6)
    error_code, pos, vel = satrec.sgp4(jd, fr)

    if error_code != 0:
        logger.warning("SGP4 propagation failed for NORAD %d at %s: error code %d", elements.norad_id, t, error_code)
        raise ValueError(
            f"SGP4 propagation failed for NORAD {elements.norad_id} at {t}: error code {error_code}"
        )

    return StateVector(
        position_km=np.array(pos, dtype=np.float64),
        velocity_km_s=np.array(vel, dtype=np.float64),
        epoch=at,
    )
