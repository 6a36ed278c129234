"""
Terrain bodies and latitude/longitude mapping.

A body is a named sphere-like terrain source. Its height queries are
delegated to an external terrain provider; bodies without one cannot be
sampled and are skipped by the extractor.
"""

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol

import numpy as np
import structlog

from .errors import CapabilityUnavailableError, ConfigurationError
from .math_utils import clamp_to_int16, clamp_to_range

logger = structlog.get_logger()

ALL_BODIES = "all"


class TerrainProvider(Protocol):
    """Height query capability of a body."""

    radius: float

    def surface_height(self, direction: np.ndarray) -> float:
        """Distance from the body centre to the surface along a unit vector."""
        ...


@dataclass
class Body:
    """A sampled terrain body."""

    name: str
    terrain: Optional[TerrainProvider] = None

    @property
    def has_terrain(self) -> bool:
        return self.terrain is not None


def radial_direction(latitude: float, longitude: float) -> np.ndarray:
    """
    Unit vector from the body centre for a latitude/longitude in degrees.

    The equator/prime meridian point is +x, the north pole is +y.
    """
    lat = math.radians(latitude)
    lon = math.radians(longitude)
    cos_lat = math.cos(lat)
    return np.array(
        [cos_lat * math.cos(lon), math.sin(lat), cos_lat * math.sin(lon)],
        dtype=np.float64,
    )


def terrain_altitude(body: Body, latitude: float, longitude: float) -> float:
    """Height of the terrain above the body radius at a coordinate."""
    if body.terrain is None:
        raise CapabilityUnavailableError(
            f"Body {body.name} has no terrain provider", body=body.name
        )
    terrain = body.terrain
    return terrain.surface_height(radial_direction(latitude, longitude)) - terrain.radius


def sample_elevation(
    body: Body,
    latitude: float,
    longitude: float,
    min_altitude: float,
    max_altitude: float,
) -> int:
    """Terrain altitude clamped to the altitude bounds and saturated to int16."""
    altitude = terrain_altitude(body, latitude, longitude)
    return clamp_to_int16(clamp_to_range(altitude, min_altitude, max_altitude))


def column_jump(latitude: float, width: int) -> int:
    """
    Column stride for a row at the given latitude.

    Columns converge towards the poles, so a row only needs about
    cos(latitude) * width distinct samples. The stride grows as
    1 / cos(latitude) and saturates at the full row width. Latitudes
    pushed past the poles by offsets have a negative cosine and are
    sampled at every column.
    """
    cos_lat = math.cos(math.radians(latitude))
    if cos_lat <= 0:
        return 1
    if cos_lat * width <= 1:
        return width
    return max(1, min(int(math.floor(1.0 / cos_lat)), width))


def parse_body_selection(selection) -> List[str]:
    """Normalize a body selection to a list of names."""
    if isinstance(selection, str):
        selection = selection.split(",")
    return [str(name).strip() for name in selection if str(name).strip()]


def resolve_bodies(selection, available: Iterable[Body]) -> List[Body]:
    """
    Pick the bodies to extract from the available catalogue.

    Args:
        selection: Body names (list or comma separated string), or "all"
            to select every body that has a terrain provider
        available: Bodies known to the host, in extraction order

    Returns:
        Selected bodies in catalogue order

    Raises:
        ConfigurationError: If no selected body can be sampled
    """
    available = list(available)
    names = parse_body_selection(selection)

    if len(names) == 1 and names[0].lower() == ALL_BODIES:
        bodies = [b for b in available if b.has_terrain]
    else:
        wanted = set(names)
        bodies = [b for b in available if b.name in wanted]
        missing = sorted(wanted - {b.name for b in bodies})
        if missing:
            logger.warning("Unknown bodies requested", bodies=missing)

    if not any(b.has_terrain for b in bodies):
        raise ConfigurationError(
            f"No bodies with terrain found for selection {names}"
        )
    return bodies
