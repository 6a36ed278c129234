"""
Heightmap codec: binary wire format and grayscale PNG encoding.

Binary layout (little-endian):

    offset 0 : u16 width
    offset 2 : u16 height
    offset 4 : height * width int16 samples, row-major

so a heightmap always serializes to ``4 + 2 * width * height`` bytes.
"""

from __future__ import annotations

import io
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, List, Tuple, Union

import numpy as np
import structlog
from PIL import Image

from .errors import FormatError, PersistenceError

if TYPE_CHECKING:
    from .heightmap import HeightmapGrid

logger = structlog.get_logger()

HEADER_DTYPE = np.dtype("<u2")
SAMPLE_DTYPE = np.dtype("<i2")
HEADER_SIZE = 4

ACCEPTED_EXTENSIONS = (".bin", ".raw", ".dat")
BINARY_SUFFIX = "_raw.bin"
IMAGE_SUFFIX = ".png"


class SaveFormat(Enum):
    """Which artifacts to write for a heightmap."""

    IMAGE = "image"
    BINARY = "binary"
    BOTH = "both"

    @classmethod
    def parse(cls, value: Union[str, "SaveFormat", None]) -> "SaveFormat":
        """Parse a save type case-insensitively, defaulting to BOTH."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                pass
        return cls.BOTH


def expected_length(width: int, height: int) -> int:
    """Serialized size in bytes of a width x height heightmap."""
    return HEADER_SIZE + SAMPLE_DTYPE.itemsize * width * height


def encode_binary(grid: "HeightmapGrid") -> bytes:
    """Serialize a grid to the binary heightmap format."""
    header = np.array([grid.width, grid.height], dtype=HEADER_DTYPE)
    return header.tobytes() + grid.pixels.astype(SAMPLE_DTYPE).tobytes()


def decode_binary(data: bytes) -> Tuple[int, int, np.ndarray]:
    """
    Parse a binary heightmap blob.

    Args:
        data: Raw file contents

    Returns:
        Tuple of (width, height, pixels) where pixels has shape (height, width)

    Raises:
        FormatError: If the header is truncated, declares an empty grid,
            or the payload length does not match the header
    """
    if len(data) < HEADER_SIZE:
        raise FormatError(
            f"Binary data is too short for a heightmap header ({len(data)} bytes)"
        )

    width, height = (int(v) for v in np.frombuffer(data, dtype=HEADER_DTYPE, count=2))
    if width == 0 or height == 0:
        raise FormatError(f"Heightmap header declares an empty grid ({width}x{height})")

    if len(data) != expected_length(width, height):
        raise FormatError(
            f"Binary data is of incorrect length: expected "
            f"{expected_length(width, height)} bytes for {width}x{height}, got {len(data)}"
        )

    pixels = np.frombuffer(data, dtype=SAMPLE_DTYPE, offset=HEADER_SIZE)
    return width, height, pixels.reshape(height, width).astype(np.int16)


def grayscale_to_bytes(shades: np.ndarray) -> np.ndarray:
    """Quantize [0, 1] shades to 8-bit intensities."""
    return np.rint(np.clip(shades, 0.0, 1.0) * 255.0).astype(np.uint8)


def encode_image(grid: "HeightmapGrid") -> Image.Image:
    """Build a single-channel grayscale image of the grid."""
    shades = grid.to_grayscale().reshape(grid.height, grid.width)
    # 2D uint8 arrays map to mode "L"
    return Image.fromarray(grayscale_to_bytes(shades))


def encode_png(grid: "HeightmapGrid") -> bytes:
    """Encode the grid as an 8-bit grayscale PNG."""
    buffer = io.BytesIO()
    encode_image(grid).save(buffer, format="PNG")
    return buffer.getvalue()


def _write(path: Path, data: bytes, body: str = None) -> Path:
    try:
        path.write_bytes(data)
    except OSError as e:
        raise PersistenceError(f"Could not write {path}: {e}", body=body) from e
    return path


def save_binary(grid: "HeightmapGrid", path: Union[str, Path], body: str = None) -> Path:
    """Write the grid as a binary heightmap to an exact path."""
    return _write(Path(path), encode_binary(grid), body)


def save_image(grid: "HeightmapGrid", path: Union[str, Path], body: str = None) -> Path:
    """Write the grid as a grayscale PNG to an exact path."""
    return _write(Path(path), _encode_png_checked(grid, body), body)


def _encode_png_checked(grid: "HeightmapGrid", body: str = None) -> bytes:
    try:
        return encode_png(grid)
    except (OSError, ValueError) as e:
        raise PersistenceError(f"Could not encode image: {e}", body=body) from e


def save(
    grid: "HeightmapGrid",
    base_path: Union[str, Path],
    fmt: Union[SaveFormat, str],
    body: str = None,
) -> List[Path]:
    """
    Persist a grid under a shared base path.

    BINARY writes ``<base>_raw.bin``, IMAGE writes ``<base>.png`` and BOTH
    writes both. All buffers are encoded before anything touches the disk.

    Args:
        grid: Heightmap to persist (read only)
        base_path: Output path without suffix
        fmt: Artifacts to write, a SaveFormat or its name
        body: Body name attached to any PersistenceError

    Returns:
        Paths written, in write order

    Raises:
        PersistenceError: If encoding or writing fails; files already
            written for this call are removed first
    """
    fmt = SaveFormat.parse(fmt)
    base = str(base_path)
    pending = []

    if fmt in (SaveFormat.BINARY, SaveFormat.BOTH):
        pending.append((Path(base + BINARY_SUFFIX), encode_binary(grid)))
    if fmt in (SaveFormat.IMAGE, SaveFormat.BOTH):
        pending.append((Path(base + IMAGE_SUFFIX), _encode_png_checked(grid, body)))

    written = []
    try:
        for path, data in pending:
            written.append(_write(path, data, body))
    except PersistenceError:
        # a body's artifacts are written together or not at all
        for path in written:
            path.unlink(missing_ok=True)
        raise

    logger.debug("Heightmap written", paths=[str(p) for p in written], format=fmt.name)
    return written
