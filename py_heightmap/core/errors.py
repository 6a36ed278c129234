"""
Error types raised by heightmap extraction and loading.

Errors are split by how far they reach:

- SessionError: aborts an extraction session before any sampling starts
- BodyError: affects a single body; the session logs it and moves on
- LoadError: raised only by the heightmap load path

Every class carries a ``fatal`` flag so callers can choose a recovery
strategy without looking at messages.
"""

from typing import Optional


class HeightmapError(Exception):
    """Base class for all heightmap errors."""

    fatal = True

    @property
    def kind(self) -> str:
        """Short name used in log events."""
        return type(self).__name__


class SessionError(HeightmapError):
    """Failure that aborts a whole extraction session."""

    fatal = True


class ConfigurationError(SessionError):
    """No valid bodies, invalid settings, or unusable destination."""


class BodyError(HeightmapError):
    """Failure scoped to one body of a session."""

    fatal = False

    def __init__(self, message: str, body: Optional[str] = None):
        super().__init__(message)
        self.body = body


class CapabilityUnavailableError(BodyError):
    """The body has no terrain provider to sample."""


class PersistenceError(BodyError):
    """Writing or encoding a heightmap artifact failed."""


class LoadError(HeightmapError):
    """Failure while loading a heightmap from disk."""


class FormatError(LoadError):
    """Binary data does not match the heightmap format."""


class UnsupportedExtensionError(FormatError):
    """File extension is not one of the accepted binary extensions."""


class HeightmapNotFoundError(LoadError, FileNotFoundError):
    """Heightmap file does not exist."""
