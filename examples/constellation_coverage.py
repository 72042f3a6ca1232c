"""orbcover Constellation Coverage — union footprint of the bundled samples.

Steps a simulated clock through two hours and prints how much of the globe
is seen by at least one satellite above the minimum elevation angle.
"""

import logging

from orbcover import SimulationClock, coverage, load_sample, propagate_batch, union_coverage
from orbcover.data.catalog import load_all_samples

logging.basicConfig(level=logging.INFO)

MIN_ELEVATION_DEG = 10.0

catalog = load_all_samples()
clock = SimulationClock(start=load_sample("ISS").epoch, speed=600.0)

for _ in range(12):
    t = clock.advance(1.0)
    states, valid = propagate_batch(catalog, t)
    caps = [coverage(row[:3], MIN_ELEVATION_DEG) for row, ok in zip(states, valid) if ok]
    result = union_coverage(caps)
    print(
        f"{t:%H:%M}  {result.percent:6.2f}%  "
        f"({result.area_km2 / 1e6:6.1f}M km², {result.caps_used} caps, {result.resolution_deg}° grid)"
    )
