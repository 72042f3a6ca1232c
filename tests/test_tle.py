"""Tests for TLE parsing."""

from datetime import datetime, timezone

import pytest

from orbcover.core.tle import (
    FormatError,
    FormatErrorReason,
    OrbitalElements,
    compute_checksum,
    parse,
    parse_tle,
    validate_checksum,
)

# ISS (ZARYA) TLE — the bundled reference fixture
ISS_NAME = "ISS (ZARYA)"
ISS_LINE1 = "1 25544U 98067A   24001.00000000  .00020137  00000-0  16538-3 0  9993"
ISS_LINE2 = "2 25544  51.6461 339.2377 0001078  88.2548 271.9142 15.48919103123456"

# Real element sets with correct checksums
CSS_LINE1 = "1 48274U 21035A   24045.50261574  .00021540  00000-0  25163-3 0  9993"
HST_LINE2 = "2 20580  28.4701  41.0696 0002622 348.3544 140.2428 15.09435694872912"


def _with_checksum(line: str) -> str:
    return line[:68] + str(compute_checksum(line))


class TestFromLines:
    def test_parse_basic(self) -> None:
        tle = OrbitalElements.from_lines(ISS_LINE1, ISS_LINE2, name=ISS_NAME)
        assert tle.norad_id == 25544
        assert tle.name == ISS_NAME

    def test_module_level_parse(self) -> None:
        assert parse(ISS_LINE1, ISS_LINE2, ISS_NAME) == OrbitalElements.from_lines(
            ISS_LINE1, ISS_LINE2, name=ISS_NAME
        )

    def test_angles(self) -> None:
        tle = parse(ISS_LINE1, ISS_LINE2)
        assert tle.inclination_deg == pytest.approx(51.6461)
        assert tle.raan_deg == pytest.approx(339.2377)
        assert tle.arg_perigee_deg == pytest.approx(88.2548)
        assert tle.mean_anomaly_deg == pytest.approx(271.9142)
        assert tle.eccentricity == pytest.approx(0.0001078)
        assert tle.mean_motion_rev_per_day == pytest.approx(15.48919103)

    def test_radian_accessors(self) -> None:
        tle = parse(ISS_LINE1, ISS_LINE2)
        assert tle.inclination_rad == pytest.approx(0.901394, rel=1e-5)

    def test_epoch(self) -> None:
        tle = parse(ISS_LINE1, ISS_LINE2)
        assert tle.epoch == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_epoch_fractional_day(self) -> None:
        line1 = ISS_LINE1[:18] + "24045.50000000" + ISS_LINE1[32:]
        tle = parse(line1, ISS_LINE2)
        assert tle.epoch == datetime(2024, 2, 14, 12, tzinfo=timezone.utc)

    def test_year_pivot(self) -> None:
        old = parse(ISS_LINE1[:18] + "98" + ISS_LINE1[20:], ISS_LINE2)
        assert old.epoch.year == 1998
        pivot = parse(ISS_LINE1[:18] + "57" + ISS_LINE1[20:], ISS_LINE2)
        assert pivot.epoch.year == 1957
        new = parse(ISS_LINE1[:18] + "56" + ISS_LINE1[20:], ISS_LINE2)
        assert new.epoch.year == 2056

    def test_drag_terms(self) -> None:
        tle = parse(ISS_LINE1, ISS_LINE2)
        assert tle.mean_motion_dot == pytest.approx(0.00020137)
        assert tle.bstar == pytest.approx(1.6538e-4)

    def test_negative_bstar(self) -> None:
        line1 = ISS_LINE1[:53] + "-11606-4" + ISS_LINE1[61:]
        assert parse(line1, ISS_LINE2).bstar == pytest.approx(-1.1606e-5)

    def test_iss_round_trip_plausibility(self) -> None:
        tle = parse(ISS_LINE1, ISS_LINE2)
        assert tle.inclination_deg == pytest.approx(51.6461)
        assert tle.period_minutes == pytest.approx(92.9, rel=0.005)
        # With R = 6378.137 km the fixture's apogee computes to ~420.6 km
        assert 400.0 <= tle.perigee_altitude_km <= 421.0
        assert 400.0 <= tle.apogee_altitude_km <= 421.0
        assert tle.perigee_altitude_km < tle.apogee_altitude_km

    def test_semi_major_axis(self) -> None:
        tle = parse(ISS_LINE1, ISS_LINE2)
        assert tle.semi_major_axis_km == pytest.approx(6798.0, abs=1.0)

    def test_trailing_whitespace_ignored(self) -> None:
        tle = parse(ISS_LINE1 + "  \r\n", ISS_LINE2 + "\n")
        assert tle.line1 == ISS_LINE1

    def test_str_roundtrip(self) -> None:
        text = str(parse(ISS_LINE1, ISS_LINE2, ISS_NAME))
        assert ISS_LINE1 in text
        assert ISS_LINE2 in text
        assert ISS_NAME in text

    def test_immutable(self) -> None:
        tle = parse(ISS_LINE1, ISS_LINE2)
        with pytest.raises(AttributeError):
            tle.eccentricity = 0.5  # type: ignore[misc]


class TestFormatErrors:
    def test_short_line1(self) -> None:
        with pytest.raises(FormatError, match="Invalid TLE line 1") as exc:
            parse("garbage", ISS_LINE2)
        assert exc.value.reason is FormatErrorReason.SHORT_LINE

    def test_short_line2(self) -> None:
        with pytest.raises(FormatError, match="Invalid TLE line 2") as exc:
            parse(ISS_LINE1, ISS_LINE2[:60])
        assert exc.value.reason is FormatErrorReason.SHORT_LINE

    def test_wrong_line_number(self) -> None:
        with pytest.raises(FormatError) as exc:
            parse(ISS_LINE2, ISS_LINE1)
        assert exc.value.reason is FormatErrorReason.BAD_LINE_NUMBER

    def test_unparseable_field(self) -> None:
        line2 = ISS_LINE2[:8] + " 51.6x61" + ISS_LINE2[16:]
        with pytest.raises(FormatError, match="inclination") as exc:
            parse(ISS_LINE1, line2)
        assert exc.value.reason is FormatErrorReason.BAD_FIELD

    def test_unparseable_eccentricity(self) -> None:
        line2 = ISS_LINE2[:26] + "00 1078" + ISS_LINE2[33:]
        with pytest.raises(FormatError, match="eccentricity"):
            parse(ISS_LINE1, line2)

    def test_unparseable_bstar(self) -> None:
        line1 = ISS_LINE1[:53] + " 1a538-3" + ISS_LINE1[61:]
        with pytest.raises(FormatError, match="bstar"):
            parse(line1, ISS_LINE2)

    def test_zero_mean_motion(self) -> None:
        line2 = ISS_LINE2[:52] + " 0.00000000" + ISS_LINE2[63:]
        with pytest.raises(FormatError) as exc:
            parse(ISS_LINE1, line2)
        assert exc.value.reason is FormatErrorReason.OUT_OF_RANGE

    def test_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse("", "")


class TestChecksum:
    def test_known_good_lines(self) -> None:
        assert validate_checksum(CSS_LINE1)
        assert validate_checksum(HST_LINE2)

    def test_fixture_checksums_do_not_block_parsing(self) -> None:
        assert not validate_checksum(ISS_LINE1)
        assert parse(ISS_LINE1, ISS_LINE2).norad_id == 25544

    def test_minus_counts_as_one(self) -> None:
        assert compute_checksum("-" * 68) == 68 % 10

    @pytest.mark.parametrize("line", [ISS_LINE1, ISS_LINE2, CSS_LINE1, HST_LINE2])
    def test_repaired_line_validates(self, line: str) -> None:
        assert validate_checksum(_with_checksum(line))

    @pytest.mark.parametrize("line", [ISS_LINE1, ISS_LINE2])
    def test_any_single_digit_flip_detected(self, line: str) -> None:
        good = _with_checksum(line)
        for i in range(68):
            if not good[i].isdigit():
                continue
            flipped = str((int(good[i]) + 1) % 10)
            bad = good[:i] + flipped + good[i + 1:]
            assert not validate_checksum(bad), f"flip at column {i + 1} not detected"

    def test_short_line_invalid(self) -> None:
        assert not validate_checksum(CSS_LINE1[:60])

    def test_non_digit_check_character(self) -> None:
        assert not validate_checksum(CSS_LINE1[:68] + "X")


class TestParseTLE:
    def test_two_line_format(self) -> None:
        tles = parse_tle(f"{ISS_LINE1}\n{ISS_LINE2}")
        assert len(tles) == 1
        assert tles[0].norad_id == 25544

    def test_three_line_format(self) -> None:
        tles = parse_tle(f"{ISS_NAME}\n{ISS_LINE1}\n{ISS_LINE2}")
        assert len(tles) == 1
        assert tles[0].name == ISS_NAME

    def test_zero_prefixed_name(self) -> None:
        tles = parse_tle(f"0 {ISS_NAME}\n{ISS_LINE1}\n{ISS_LINE2}")
        assert tles[0].name == ISS_NAME

    def test_multiple_tles(self) -> None:
        text = f"{ISS_NAME}\n{ISS_LINE1}\n{ISS_LINE2}\n{ISS_LINE1}\n{ISS_LINE2}"
        assert len(parse_tle(text)) == 2

    def test_junk_lines_skipped(self) -> None:
        text = f"# comment\n\n{ISS_LINE1}\n{ISS_LINE2}\ntrailing"
        assert len(parse_tle(text)) == 1
