"""
Extraction session configuration.

The host turns whatever settings source it has into an ExtractionConfig;
the model is validated once when a session starts.
"""

import sys
from typing import List, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from ..core.bodies import parse_body_selection
from ..core.codec import SaveFormat
from ..core.heightmap import MAX_DIMENSION
from .config import settings


class ExtractionConfig(BaseModel):
    """Settings for one heightmap extraction session."""

    # Image settings
    height: int = Field(360, ge=1, le=MAX_DIMENSION, description="Output grid height (rows)")
    width: int = Field(720, ge=1, le=MAX_DIMENSION, description="Output grid width (columns)")
    bodies: List[str] = Field(..., description='Body names to extract, or "all"')

    # Generation restrictions
    invert_latitude: bool = Field(False, description="Flip the sign of the sampled latitude")
    invert_longitude: bool = Field(False, description="Flip the sign of the sampled longitude")
    latitude_offset: float = Field(0.0, description="Degrees added to every latitude")
    longitude_offset: float = Field(0.0, description="Degrees added to every longitude")
    starting_latitude: float = Field(-90.0, description="Latitude of the first row")
    ending_latitude: float = Field(90.0, description="Latitude one row past the last row")
    starting_longitude: float = Field(0.0, description="Longitude of the first column")
    ending_longitude: float = Field(360.0, description="Longitude one column past the last column")
    min_altitude: float = Field(-sys.float_info.max, description="Lowest altitude kept before int16 saturation")
    max_altitude: float = Field(sys.float_info.max, description="Highest altitude kept before int16 saturation")

    # Output
    invert_colours: bool = Field(True, description="Render high ground dark in grayscale images")
    save_type: SaveFormat = Field(SaveFormat.BOTH, description="Artifacts to write: image, binary or both")
    destination_path: str = Field(
        default_factory=lambda: settings.maps_dir, description="Output directory, created if absent"
    )
    frame_budget: float = Field(
        default_factory=lambda: settings.frame_budget_seconds,
        ge=0,
        description="Sampling time per scheduler tick in seconds",
    )

    @field_validator("bodies", mode="before")
    @classmethod
    def split_bodies(cls, value):
        if isinstance(value, (str, list, tuple)):
            return parse_body_selection(value)
        return value

    @field_validator("save_type", mode="before")
    @classmethod
    def parse_save_type(cls, value) -> SaveFormat:
        return SaveFormat.parse(value)

    @model_validator(mode="after")
    def check_altitudes(self):
        if self.min_altitude > self.max_altitude:
            raise ValueError(
                f"min_altitude ({self.min_altitude}) is above max_altitude ({self.max_altitude})"
            )
        if not self.bodies:
            raise ValueError("At least one body must be selected")
        return self

    @property
    def resolution(self) -> int:
        """Cells per body."""
        return self.width * self.height


ConfigInput = Union[ExtractionConfig, dict]
