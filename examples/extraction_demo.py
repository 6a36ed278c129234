#!/usr/bin/env python3
"""
Demo script extracting heightmaps from procedural spherical bodies.
"""

import math
import tempfile

import numpy as np
from py_heightmap import Body, HeightmapGrid, start_extraction
from py_heightmap.config import settings
from py_heightmap.core import run_to_completion
from py_heightmap.utils import configure_logging


class RippleTerrain:
    """A sphere with sinusoidal ridges and a raised northern cap."""

    def __init__(self, radius: float, amplitude: float, frequency: int):
        self.radius = radius
        self.amplitude = amplitude
        self.frequency = frequency

    def surface_height(self, direction: np.ndarray) -> float:
        x, y, z = direction
        lon = math.atan2(z, x)
        ripple = math.sin(self.frequency * lon) * math.cos(self.frequency * math.asin(y))
        return self.radius + self.amplitude * ripple + 0.5 * self.amplitude * max(y, 0.0)


def main():
    """Demonstrate heightmap extraction."""
    configure_logging(settings)
    print("Py-Heightmap Extraction Demo")
    print("=" * 40)

    bodies = [
        Body("Kerbin", RippleTerrain(600000.0, 3000.0, 4)),
        Body("Mun", RippleTerrain(200000.0, 6000.0, 9)),
        Body("Jool"),  # gas giant, no terrain
    ]

    with tempfile.TemporaryDirectory() as destination:
        session = start_extraction(
            {
                "width": 360,
                "height": 180,
                "bodies": "all",
                "save_type": "both",
                "destination_path": destination,
            },
            bodies,
        )

        ticks = 0
        while session.tick():
            ticks += 1
            if ticks % 50 == 0:
                print(f"  {session.message}: {session.progress() * 100:5.1f}%")

        print(f"\nFinished in {session.elapsed_seconds:.3f}s over {ticks} ticks")
        for result in session.results:
            print(f"  {result.body}: {result.status} {result.paths}")

        print("\nReloading Kerbin heightmap...")
        grid = HeightmapGrid.load(f"{destination}/Kerbin_raw.bin")
        print(f"  Size: {grid.width}x{grid.height} ({grid.size} pixels)")
        print(f"  Height range: {grid.pixels.min()} to {grid.pixels.max()}")
        print(f"  Centre sample (bilinear): {grid.sample_bilinear(0.5, 0.5):.1f}")

    # A second, tiny run driven by the blocking helper
    with tempfile.TemporaryDirectory() as destination:
        session = start_extraction(
            {"width": 8, "height": 4, "bodies": ["Mun"], "destination_path": destination},
            bodies,
        )
        results = run_to_completion(session)
        print(f"\nMun quick run: {[r.status for r in results]}")


if __name__ == "__main__":
    main()
