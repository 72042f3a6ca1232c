"""TLE (Two-Line Element) parsing and validation.

Fixed-column parsing of NORAD two-card element sets into an immutable
:class:`OrbitalElements` record, with derived orbit geometry (semi-major
axis, perigee/apogee altitude, period) computed once at parse time.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

from orbcover.utils.constants import (
    EARTH_MU_KM3_S2 as MU,
    EARTH_RADIUS_KM as RE,
    SECONDS_PER_DAY,
)

logger = logging.getLogger(__name__)

TLE_LINE_LENGTH = 69


class FormatErrorReason(Enum):
    """Why a TLE was rejected."""

    SHORT_LINE = "short_line"
    BAD_LINE_NUMBER = "bad_line_number"
    BAD_FIELD = "bad_field"
    OUT_OF_RANGE = "out_of_range"


class FormatError(ValueError):
    """A TLE could not be parsed.

    Attributes:
        reason: Machine-readable rejection reason.
    """

    def __init__(self, reason: FormatErrorReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason


def _fail(reason: FormatErrorReason, message: str) -> FormatError:
    logger.error(message)
    return FormatError(reason, message)


def _float_field(line: str, start: int, end: int, label: str) -> float:
    """Parse ``line[start:end]`` as a float, raising FormatError on failure."""
    text = line[start:end]
    try:
        return float(text)
    except ValueError:
        raise _fail(FormatErrorReason.BAD_FIELD, f"Invalid TLE field {label}: {text!r}") from None


def _int_field(line: str, start: int, end: int, label: str) -> int:
    text = line[start:end]
    try:
        return int(text)
    except ValueError:
        raise _fail(FormatErrorReason.BAD_FIELD, f"Invalid TLE field {label}: {text!r}") from None


def _implied_decimal_field(line: str, start: int, end: int, label: str) -> float:
    """Parse an exponent field such as `` 16538-3`` (= 0.16538e-3)."""
    text = line[start:end]
    mantissa, exponent = text[:-2].strip(), text[-2:]
    sign = ""
    if mantissa[:1] in ("+", "-"):
        sign, mantissa = mantissa[0], mantissa[1:]
    if not mantissa.isdigit():
        raise _fail(FormatErrorReason.BAD_FIELD, f"Invalid TLE field {label}: {text!r}")
    try:
        return float(f"{sign}0.{mantissa}") * 10.0 ** int(exponent)
    except ValueError:
        raise _fail(FormatErrorReason.BAD_FIELD, f"Invalid TLE field {label}: {text!r}") from None


def _epoch_from_fields(two_digit_year: int, day_of_year: float) -> datetime:
    year = two_digit_year + 2000 if two_digit_year < 57 else two_digit_year + 1900
    return datetime(year, 1, 1, tzinfo=timezone.utc) + timedelta(days=day_of_year - 1)


def semi_major_axis_km(mean_motion_rev_per_day: float) -> float:
    """Semi-major axis from mean motion: ``a = (µ / n²)^(1/3)``."""
    n = mean_motion_rev_per_day * 2 * math.pi / SECONDS_PER_DAY
    return (MU / (n * n)) ** (1.0 / 3.0)


@dataclass(frozen=True)
class OrbitalElements:
    """A parsed Two-Line Element set.

    Angles are stored in degrees, as they appear in the TLE; the ``*_rad``
    properties give the radian values used by the propagator.

    Attributes:
        name: Satellite name (line 0, if provided).
        line1: Raw TLE line 1.
        line2: Raw TLE line 2.
        norad_id: NORAD catalog number.
        epoch: Epoch as a UTC datetime.
        inclination_deg: Orbital inclination in degrees.
        raan_deg: Right ascension of ascending node in degrees.
        eccentricity: Orbital eccentricity (dimensionless, 0 <= e < 1).
        arg_perigee_deg: Argument of perigee in degrees.
        mean_anomaly_deg: Mean anomaly in degrees.
        mean_motion_rev_per_day: Mean motion in revolutions per day.
        mean_motion_dot: First derivative of mean motion in rev/day².
        bstar: BSTAR drag term.
        semi_major_axis_km: Semi-major axis derived from mean motion.
        perigee_altitude_km: Perigee height above the equatorial radius.
        apogee_altitude_km: Apogee height above the equatorial radius.
        period_minutes: Orbital period in minutes.
    """

    name: str
    line1: str
    line2: str
    norad_id: int
    epoch: datetime
    inclination_deg: float
    raan_deg: float
    eccentricity: float
    arg_perigee_deg: float
    mean_anomaly_deg: float
    mean_motion_rev_per_day: float
    mean_motion_dot: float
    bstar: float
    semi_major_axis_km: float
    perigee_altitude_km: float
    apogee_altitude_km: float
    period_minutes: float

    @classmethod
    def from_lines(cls, line1: str, line2: str, name: str = "") -> OrbitalElements:
        """Parse a TLE from its two data lines.

        Args:
            line1: TLE line 1 (at least 69 characters).
            line2: TLE line 2 (at least 69 characters).
            name: Optional satellite name (line 0).

        Returns:
            A parsed OrbitalElements record.

        Raises:
            FormatError: If a line is too short, starts with the wrong line
                number, or holds a field that is not a number.
        """
        line1 = line1.rstrip()
        line2 = line2.rstrip()

        for number, line in (("1", line1), ("2", line2)):
            if len(line) < TLE_LINE_LENGTH:
                raise _fail(
                    FormatErrorReason.SHORT_LINE,
                    f"Invalid TLE line {number}: expected at least {TLE_LINE_LENGTH} characters, got {len(line)}",
                )
            if line[0] != number:
                raise _fail(
                    FormatErrorReason.BAD_LINE_NUMBER,
                    f"Invalid TLE line {number}: must start with {number!r}, got {line[0]!r}",
                )

        norad_id = _int_field(line1, 2, 7, "catalog number")
        epoch_year = _int_field(line1, 18, 20, "epoch year")
        epoch_day = _float_field(line1, 20, 32, "epoch day")
        mean_motion_dot = _float_field(line1, 33, 43, "mean motion derivative")
        bstar = _implied_decimal_field(line1, 53, 61, "bstar")

        inclination = _float_field(line2, 8, 16, "inclination")
        raan = _float_field(line2, 17, 25, "raan")
        # Implied leading "0."
        ecc_text = line2[26:33]
        if not ecc_text.isdigit():
            raise _fail(FormatErrorReason.BAD_FIELD, f"Invalid TLE field eccentricity: {ecc_text!r}")
        eccentricity = float("0." + ecc_text)
        arg_perigee = _float_field(line2, 34, 42, "argument of perigee")
        mean_anomaly = _float_field(line2, 43, 51, "mean anomaly")
        mean_motion = _float_field(line2, 52, 63, "mean motion")

        if not mean_motion > 0:
            raise _fail(FormatErrorReason.OUT_OF_RANGE, f"Invalid TLE mean motion: {mean_motion}")

        epoch = _epoch_from_fields(epoch_year, epoch_day)
        a = semi_major_axis_km(mean_motion)

        logger.debug("Parsed TLE for NORAD %d (epoch %s)", norad_id, epoch.isoformat())

        return cls(
            name=name.strip(),
            line1=line1,
            line2=line2,
            norad_id=norad_id,
            epoch=epoch,
            inclination_deg=inclination,
            raan_deg=raan,
            eccentricity=eccentricity,
            arg_perigee_deg=arg_perigee,
            mean_anomaly_deg=mean_anomaly,
            mean_motion_rev_per_day=mean_motion,
            mean_motion_dot=mean_motion_dot,
            bstar=bstar,
            semi_major_axis_km=a,
            perigee_altitude_km=a * (1 - eccentricity) - RE,
            apogee_altitude_km=a * (1 + eccentricity) - RE,
            period_minutes=SECONDS_PER_DAY / mean_motion / 60.0,
        )

    @property
    def inclination_rad(self) -> float:
        return math.radians(self.inclination_deg)

    @property
    def raan_rad(self) -> float:
        return math.radians(self.raan_deg)

    @property
    def arg_perigee_rad(self) -> float:
        return math.radians(self.arg_perigee_deg)

    @property
    def mean_anomaly_rad(self) -> float:
        return math.radians(self.mean_anomaly_deg)

    def __str__(self) -> str:
        header = f"0 {self.name}\n" if self.name else ""
        return f"{header}{self.line1}\n{self.line2}"


def parse(line1: str, line2: str, name: str = "") -> OrbitalElements:
    """Parse a single TLE. See :meth:`OrbitalElements.from_lines`."""
    return OrbitalElements.from_lines(line1, line2, name=name)


def compute_checksum(line: str) -> int:
    """Mod-10 checksum over the first 68 columns of a TLE line.

    Digits count their value, ``-`` counts 1, everything else counts 0.
    """
    total = 0
    for char in line[:TLE_LINE_LENGTH - 1]:
        if char.isdigit():
            total += int(char)
        elif char == "-":
            total += 1
    return total % 10


def validate_checksum(line: str) -> bool:
    """Check the trailing checksum digit (column 69) of a TLE line.

    Parsing does not require a valid checksum; this is a diagnostic. A change
    that shifts the digit sum by a multiple of 10 (e.g. two compensating
    edits) cannot be detected.
    """
    line = line.rstrip()
    if len(line) < TLE_LINE_LENGTH:
        return False
    check = line[TLE_LINE_LENGTH - 1]
    if not check.isdigit():
        return False
    return compute_checksum(line) == int(check)


def parse_tle(text: str) -> list[OrbitalElements]:
    """Parse one or more TLEs from text.

    Handles both 2-line and 3-line (with name) formats.

    Args:
        text: Raw TLE text, one or more TLE sets separated by newlines.

    Returns:
        A list of parsed OrbitalElements.

    Raises:
        FormatError: If a recognized TLE set is malformed.
    """
    lines = [l.rstrip() for l in text.strip().splitlines() if l.strip()]
    tles: list[OrbitalElements] = []
    i = 0

    while i < len(lines):
        if lines[i].startswith("1 ") and i + 1 < len(lines) and lines[i + 1].startswith("2 "):
            tles.append(OrbitalElements.from_lines(lines[i], lines[i + 1]))
            i += 2
        elif (
            not lines[i].startswith("1 ")
            and not lines[i].startswith("2 ")
            and i + 2 < len(lines)
            and lines[i + 1].startswith("1 ")
            and lines[i + 2].startswith("2 ")
        ):
            name = lines[i][2:] if lines[i].startswith("0 ") else lines[i]
            tles.append(OrbitalElements.from_lines(lines[i + 1], lines[i + 2], name=name))
            i += 3
        else:
            logger.debug("Skipping unrecognized TLE line: %r", lines[i])
            i += 1

    logger.debug("Parsed %d TLEs from text", len(tles))
    return tles
