"""orbcover Quickstart — parse a TLE, propagate it, and measure its footprint."""

from datetime import timedelta

from orbcover import coverage_for_state, parse_tle, propagate, validate_checksum

# ISS (ZARYA) TLE
tle_text = """
ISS (ZARYA)
1 25544U 98067A   24001.00000000  .00020137  00000-0  16538-3 0  9993
2 25544  51.6461 339.2377 0001078  88.2548 271.9142 15.48919103123456
""".strip()

# Parse it
iss = parse_tle(tle_text)[0]

print(f"Satellite: {iss.name}")
print(f"NORAD ID:  {iss.norad_id}")
print(f"Epoch:     {iss.epoch}")
print(f"Incl:      {iss.inclination_deg:.4f}°")
print(f"Ecc:       {iss.eccentricity:.7f}")
print(f"Period:    {iss.period_minutes:.1f} min")
print(f"Perigee:   {iss.perigee_altitude_km:.1f} km")
print(f"Apogee:    {iss.apogee_altitude_km:.1f} km")
print(f"Checksums: {validate_checksum(iss.line1)}, {validate_checksum(iss.line2)}")

# Where is it half an hour later, and what can it see above 10° elevation?
state = propagate(iss, iss.epoch + timedelta(minutes=30))
cap = coverage_for_state(state, min_elevation_deg=10.0)

print(f"Altitude:  {state.altitude_km:.1f} km")
print(f"Footprint: {cap.percentage:.2f}% of Earth ({cap.area_km2 / 1e6:.2f}M km²)")
