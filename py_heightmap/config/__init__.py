"""
Configuration modules for heightmap extraction.
"""

from .config import Settings, settings
from .extraction import ExtractionConfig

__all__ = ['Settings', 'settings', 'ExtractionConfig']
