"""
Heightmap grid of signed 16-bit elevation samples.

The grid is stored as a NumPy int16 array of shape (height, width) and
addressed as (x, y), column then row. Index access is bounds checked and
raises IndexError on out-of-range coordinates, negative ones included.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import List, Sequence, Union

import numpy as np

from . import codec
from .codec import SaveFormat
from .errors import HeightmapNotFoundError, UnsupportedExtensionError
from .math_utils import INT16_MAX, INT16_MIN, clamp_to_int16, lerp

MAX_DIMENSION = 65535

# Positions closer than this to a whole number are treated as exact
_INTEGER_TOLERANCE = 1e-9


def _check_dimension(name: str, value: int) -> int:
    value = int(value)
    if not 1 <= value <= MAX_DIMENSION:
        raise ValueError(f"Heightmap {name} must be in [1, {MAX_DIMENSION}], got {value}")
    return value


def _as_int16(values: np.ndarray) -> np.ndarray:
    """
    Convert an array to int16, rejecting values outside the range.

    Floating point input is rounded to the nearest integer (ties to even),
    as set() does.
    """
    values = np.asarray(values)
    if np.issubdtype(values.dtype, np.floating):
        values = np.rint(values)
    if values.size and (values.min() < INT16_MIN or values.max() > INT16_MAX):
        raise ValueError("Heightmap values must fit in a signed 16-bit integer")
    return values.astype(np.int16)


class HeightmapGrid:
    """
    A width x height grid of elevation samples.

    Heightmaps can be created empty, from rows, from a flat row-major
    buffer, or loaded from a binary file, and saved as a raw binary file,
    an 8-bit grayscale PNG, or both.
    """

    def __init__(self, width: int, height: int, invert_colours: bool = False):
        """
        Create an empty (zero-filled) heightmap.

        Args:
            width: Width in pixels, 1 to 65535
            height: Height in pixels, 1 to 65535
            invert_colours: Whether high ground encodes dark in grayscale output
        """
        self._width = _check_dimension("width", width)
        self._height = _check_dimension("height", height)
        self.pixels = np.zeros((self._height, self._width), dtype=np.int16)
        self.invert_colours = invert_colours

    @classmethod
    def from_rows(cls, rows, invert_colours: bool = False) -> "HeightmapGrid":
        """Create a heightmap from a 2D array indexed as [y][x]."""
        values = np.asarray(rows)
        if values.ndim != 2:
            raise ValueError(f"Expected a 2D array of heights, got {values.ndim} dimensions")
        grid = cls(values.shape[1], values.shape[0], invert_colours)
        grid.pixels = _as_int16(values)
        return grid

    @classmethod
    def from_flat(
        cls, values: Sequence[int], width: int, height: int, invert_colours: bool = False
    ) -> "HeightmapGrid":
        """Create a heightmap from a row-major flat buffer."""
        grid = cls(width, height, invert_colours)
        values = np.asarray(values).ravel()
        if values.size != grid.size:
            raise ValueError(
                f"Expected {grid.size} values for a {width}x{height} heightmap, got {values.size}"
            )
        grid.pixels = _as_int16(values).reshape(grid.height, grid.width)
        return grid

    @classmethod
    def from_bytes(cls, data: bytes, invert_colours: bool = False) -> "HeightmapGrid":
        """Create a heightmap from an in-memory binary blob."""
        width, height, pixels = codec.decode_binary(data)
        grid = cls(width, height, invert_colours)
        grid.pixels = pixels
        return grid

    @classmethod
    def load(cls, path: Union[str, Path], invert_colours: bool = False) -> "HeightmapGrid":
        """
        Load a heightmap from a binary file.

        Args:
            path: Path to a .bin, .raw or .dat heightmap

        Raises:
            UnsupportedExtensionError: If the extension is not accepted
            HeightmapNotFoundError: If the file does not exist
            FormatError: If the contents do not match the declared size
        """
        path = Path(path)
        if path.suffix.lower() not in codec.ACCEPTED_EXTENSIONS:
            raise UnsupportedExtensionError(
                f"Only {', '.join(codec.ACCEPTED_EXTENSIONS)} heightmaps are supported, got '{path.suffix}'"
            )
        if not path.is_file():
            raise HeightmapNotFoundError(f"Heightmap file not found: {path}")
        return cls.from_bytes(path.read_bytes(), invert_colours)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def size(self) -> int:
        """Total number of pixels."""
        return self._width * self._height

    def _check_index(self, x: int, y: int):
        if not (0 <= x < self._width and 0 <= y < self._height):
            raise IndexError(
                f"Pixel ({x}, {y}) outside {self._width}x{self._height} heightmap"
            )

    def get(self, x: int, y: int) -> int:
        """Read the pixel at (x, y), where (0, 0) is the top left corner."""
        self._check_index(x, y)
        return int(self.pixels[y, x])

    def set(self, x: int, y: int, value: float):
        """Set the pixel at (x, y), saturating into the int16 range."""
        self._check_index(x, y)
        self.pixels[y, x] = clamp_to_int16(value)

    def __getitem__(self, xy) -> int:
        x, y = xy
        return self.get(x, y)

    def __setitem__(self, xy, value: float):
        x, y = xy
        self.set(x, y, value)

    def fill_span(self, y: int, x_start: int, x_end: int, value: int):
        """Write one value into [x_start, min(x_end, width)) on row y."""
        self._check_index(x_start, y)
        self.pixels[y, x_start:min(x_end, self._width)] = clamp_to_int16(value)

    def set_pixels(self, values):
        """
        Replace every pixel.

        Accepts either a flat row-major sequence of ``size`` values or a 2D
        array of shape (height, width).
        """
        values = np.asarray(values)
        if values.ndim == 1 and values.size == self.size:
            self.pixels = _as_int16(values).reshape(self._height, self._width)
        elif values.shape == (self._height, self._width):
            self.pixels = _as_int16(values)
        else:
            raise ValueError(
                f"Cannot set {self._width}x{self._height} heightmap from array of shape {values.shape}"
            )

    def to_flat(self) -> np.ndarray:
        """Row-major copy of all pixels."""
        return self.pixels.ravel().copy()

    def to_rows(self) -> List[List[int]]:
        """Pixels as nested lists indexed as [y][x]."""
        return self.pixels.tolist()

    def sample_bilinear(self, u: float, v: float) -> float:
        """
        Sample the heightmap at normalized coordinates.

        (u, v) in [0, 1] map to the continuous position (u * width,
        v * height). Whole-number positions return the stored sample
        directly; other positions are interpolated along x on the two
        bracketing rows, then along y.
        """
        px = u * self._width
        py = v * self._height
        if abs(px - round(px)) < _INTEGER_TOLERANCE:
            px = float(round(px))
        if abs(py - round(py)) < _INTEGER_TOLERANCE:
            py = float(round(py))

        x0 = int(math.floor(px))
        y0 = int(math.floor(py))
        fx = px - x0
        fy = py - y0

        max_x = self._width - 1
        max_y = self._height - 1
        x1 = min(max(x0 + 1, 0), max_x)
        y1 = min(max(y0 + 1, 0), max_y)
        x0 = min(max(x0, 0), max_x)
        y0 = min(max(y0, 0), max_y)

        if fx == 0 and fy == 0:
            return float(self.pixels[y0, x0])

        top = lerp(fx, float(self.pixels[y0, x0]), float(self.pixels[y0, x1]))
        bottom = lerp(fx, float(self.pixels[y1, x0]), float(self.pixels[y1, x1]))
        return lerp(fy, top, bottom)

    def to_bytes(self) -> bytes:
        """Serialize to the binary heightmap format."""
        return codec.encode_binary(self)

    def to_grayscale(self) -> np.ndarray:
        """
        Normalized row-major intensities in [0, 1].

        A flat heightmap (max == min) is fully bright whatever the invert
        flag, since there is no contrast to invert.
        """
        values = self.pixels.astype(np.float64).ravel()
        low = values.min()
        high = values.max()
        if high == low:
            return np.ones(self.size, dtype=np.float64)

        shades = (values - low) / (high - low)
        if self.invert_colours:
            shades = 1.0 - shades
        return shades

    def to_image(self):
        """Grayscale Pillow image of the heightmap."""
        return codec.encode_image(self)

    def save(self, base_path: Union[str, Path], fmt: Union[SaveFormat, str] = SaveFormat.BOTH,
             body: str = None) -> List[Path]:
        """Save the heightmap under base_path in the requested format(s)."""
        return codec.save(self, base_path, fmt, body=body)

    def __eq__(self, other) -> bool:
        if not isinstance(other, HeightmapGrid):
            return NotImplemented
        return (self._width, self._height) == (other.width, other.height) and bool(
            np.array_equal(self.pixels, other.pixels)
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"HeightmapGrid(width={self._width}, height={self._height})"
