"""Shared fixtures and fake terrain providers."""

import numpy as np
import pytest

from py_heightmap.core.bodies import Body


class ConstantTerrain:
    """Terrain at a fixed altitude everywhere."""

    def __init__(self, altitude: float = 0.0, radius: float = 1000.0):
        self.radius = radius
        self.altitude = altitude
        self.calls = 0

    def surface_height(self, direction: np.ndarray) -> float:
        self.calls += 1
        return self.radius + self.altitude


class LatitudeTerrain:
    """Altitude of amplitude * sin(latitude)."""

    def __init__(self, amplitude: float = 500.0, radius: float = 1000.0):
        self.radius = radius
        self.amplitude = amplitude
        self.calls = 0

    def surface_height(self, direction: np.ndarray) -> float:
        self.calls += 1
        return self.radius + self.amplitude * direction[1]


class LongitudeTerrain:
    """Altitude of amplitude * x, varying along each row."""

    def __init__(self, amplitude: float = 1000.0, radius: float = 1000.0):
        self.radius = radius
        self.amplitude = amplitude

    def surface_height(self, direction: np.ndarray) -> float:
        return self.radius + self.amplitude * direction[0]


class BrokenTerrain:
    """Terrain whose height query always fails."""

    radius = 1000.0

    def surface_height(self, direction: np.ndarray) -> float:
        raise RuntimeError("terrain query failed")


class FakeClock:
    """Clock that advances a fixed step every time it is read."""

    def __init__(self, step: float = 1.0):
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        self.now += self.step
        return self.now


@pytest.fixture
def catalogue():
    """A small set of bodies, one without terrain."""
    return [
        Body("Kerbin", LatitudeTerrain()),
        Body("Mun", ConstantTerrain(250.0)),
        Body("Jool"),
        Body("Minmus", LongitudeTerrain()),
    ]


@pytest.fixture
def base_config(tmp_path):
    """Small, fast extraction settings writing into tmp_path."""
    return {
        "width": 8,
        "height": 4,
        "bodies": ["Kerbin"],
        "save_type": "binary",
        "destination_path": str(tmp_path),
        "frame_budget": 10.0,
    }
