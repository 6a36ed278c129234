"""
Heightmap extraction from spherical terrain bodies.
"""

__version__ = "0.1.0"

from .core import (
    Body, ExtractionSession, HeightmapGrid, SaveFormat, start_extraction,
)
from .config import ExtractionConfig

__all__ = ['Body', 'ExtractionSession', 'HeightmapGrid', 'SaveFormat',
           'start_extraction', 'ExtractionConfig']
