"""
orbcover — satellite propagation and ground coverage for Python.

Parses TLEs, propagates them with Keplerian two-body motion, and measures
how much of the Earth's surface one satellite, or a whole constellation,
can see above a minimum elevation angle.
"""

from __future__ import annotations

__version__ = "0.1.0-dev"

from orbcover.core.tle import (
    OrbitalElements,
    FormatError,
    FormatErrorReason,
    parse,
    parse_tle,
    validate_checksum,
)
from orbcover.core.propagation import (
    StateVector,
    solve_kepler,
    propagate,
    propagate_many,
    propagate_batch,
    orbit_track,
    eci_to_scene,
)
from orbcover.core.coverage import CoverageCap, coverage, coverage_for_state
from orbcover.core.union import GridCache, UnionCoverage, union_coverage, prune_dominated
from orbcover.core.clock import SimulationClock
from orbcover.data.catalog import SAMPLE_TLES, load_sample

__all__ = [
    "__version__",
    "OrbitalElements",
    "FormatError",
    "FormatErrorReason",
    "parse",
    "parse_tle",
    "validate_checksum",
    "StateVector",
    "solve_kepler",
    "propagate",
    "propagate_many",
    "propagate_batch",
    "orbit_track",
    "eci_to_scene",
    "CoverageCap",
    "coverage",
    "coverage_for_state",
    "GridCache",
    "UnionCoverage",
    "union_coverage",
    "prune_dominated",
    "SimulationClock",
    "SAMPLE_TLES",
    "load_sample",
]
