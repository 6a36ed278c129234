"""
Core heightmap extraction functionality.
"""

from .errors import (
    HeightmapError, ConfigurationError, CapabilityUnavailableError, PersistenceError,
    FormatError, UnsupportedExtensionError, HeightmapNotFoundError,
)
from .codec import SaveFormat
from .heightmap import HeightmapGrid
from .bodies import Body, TerrainProvider, resolve_bodies
from .progress import BodyResult, ProgressReport
from .extractor import (
    ExtractionSession, ExtractionState, start_extraction, run_to_completion, run_async,
)

__all__ = ['HeightmapError', 'ConfigurationError', 'CapabilityUnavailableError',
           'PersistenceError', 'FormatError', 'UnsupportedExtensionError',
           'HeightmapNotFoundError', 'SaveFormat', 'HeightmapGrid', 'Body',
           'TerrainProvider', 'resolve_bodies', 'BodyResult', 'ProgressReport',
           'ExtractionSession', 'ExtractionState', 'start_extraction',
           'run_to_completion', 'run_async']
