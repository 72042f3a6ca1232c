"""Bundled sample TLEs for demos and tests (no network access needed)."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from orbcover.core.tle import OrbitalElements

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SampleTLE:
    """Raw two-line element set with a display name."""

    name: str
    line1: str
    line2: str

    def parse(self) -> OrbitalElements:
        return OrbitalElements.from_lines(self.line1, self.line2, name=self.name)


SAMPLE_TLES: dict[str, SampleTLE] = {
    "ISS": SampleTLE(
        name="ISS (ZARYA)",
        line1="1 25544U 98067A   24001.00000000  .00020137  00000-0  16538-3 0  9993",
        line2="2 25544  51.6461 339.2377 0001078  88.2548 271.9142 15.48919103123456",
    ),
    "HUBBLE": SampleTLE(
        name="Hubble Space Telescope",
        line1="1 20580U 90037B   24001.00000000  .00000000  00000-0  00000-0 0  9991",
        line2="2 20580  28.4684 288.8542 0002978 321.7771  38.2496 15.09299743654321",
    ),
    "STARLINK": SampleTLE(
        name="Starlink-1007",
        line1="1 44713U 19074A   24001.00000000  .00002182  00000-0  16717-3 0  9990",
        line2="2 44713  53.0531 123.4567 0001234  98.7654 261.3456 15.06417112234567",
    ),
    "NOAA19": SampleTLE(
        name="NOAA-19",
        line1="1 33591U 09005A   24001.00000000  .00000100  00000-0  62552-4 0  9990",
        line2="2 33591  99.1890 123.4567 0014567  45.1234 315.0123 14.11826543456789",
    ),
    "GPS": SampleTLE(
        name="GPS BIIR-2",
        line1="1 24876U 97035A   24001.00000000 -.00000020  00000-0  00000-0 0  9994",
        line2="2 24876  55.4567 234.5678 0123456  78.9012 281.1234  2.00561234567890",
    ),
    "GOES16": SampleTLE(
        name="GOES-16",
        line1="1 41866U 16071A   24001.00000000 -.00000280  00000-0  00000-0 0  9991",
        line2="2 41866   0.0123 264.5678 0002345  12.3456  45.6789  1.00270123456789",
    ),
    "TERRA": SampleTLE(
        name="Terra",
        line1="1 25994U 99068A   24001.00000000  .00000200  00000-0  89123-4 0  9997",
        line2="2 25994  98.2123 156.7890 0001234  89.0123 271.1234 14.57123456789012",
    ),
}


def load_sample(key: str) -> OrbitalElements:
    """Parse a bundled sample by key (e.g. ``"ISS"``).

    Raises:
        KeyError: If no sample has that key.
    """
    try:
        sample = SAMPLE_TLES[key.upper()]
    except KeyError:
        logger.error("Unknown sample TLE %r", key)
        raise KeyError(f"Unknown sample TLE {key!r}; choose from {sorted(SAMPLE_TLES)}") from None
    return sample.parse()


def load_all_samples() -> list[OrbitalElements]:
    """Parse every bundled sample, in catalog order."""
    return [sample.parse() for sample in SAMPLE_TLES.values()]
