"""
Core data models for framescan.

- ImageProperties: pixel size and metadata of a decoded image
- Frame: named rectangular region of interest in image pixel space
- FrameResult: outcome of recognizing a single frame
"""

import logging
import math
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .frame_parser import parse_frame_spec

logger = logging.getLogger(__name__)

EXTENT_NAME = "extent"


class ImageProperties(BaseModel):
    """
    Image metadata consumed by frames and scanners.

    Keys follow the ImageIO property names (PixelWidth, PixelHeight, ...);
    snake_case field names are accepted as well.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    pixel_width: int = Field(..., gt=0, alias="PixelWidth", description="Width in pixels")
    pixel_height: int = Field(..., gt=0, alias="PixelHeight", description="Height in pixels")
    orientation: int = Field(default=1, alias="Orientation", description="EXIF orientation 1-8")
    dpi_width: Optional[float] = Field(default=None, alias="DPIWidth")
    dpi_height: Optional[float] = Field(default=None, alias="DPIHeight")
    color_model: Optional[str] = Field(default=None, alias="ColorModel")

    @field_validator("orientation", mode="before")
    @classmethod
    def _orientation_or_default(cls, value: Any) -> int:
        try:
            value = int(value)
        except (TypeError, ValueError):
            return 1
        return value if 1 <= value <= 8 else 1

    @classmethod
    def coerce(cls, value: Any) -> Optional["ImageProperties"]:
        """Build properties from an instance or mapping; None if unusable."""
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        if not isinstance(value, Mapping):
            return None
        try:
            return cls.model_validate(dict(value))
        except ValidationError as e:
            logger.debug("Unusable image properties: %s", e.errors())
            return None

    @classmethod
    def from_array(cls, image: Any) -> "ImageProperties":
        """Derive pixel dimensions from an ndarray shape."""
        height, width = image.shape[:2]
        return cls(pixel_width=int(width), pixel_height=int(height))

    @property
    def size(self) -> tuple[int, int]:
        return (self.pixel_width, self.pixel_height)


class Frame(BaseModel):
    """
    Named rectangular region of interest.

    Coordinates are in the image's pixel space with the origin at the top-left
    corner, as delivered by whoever supplied the image properties. Frames do
    not correct for orientation. Names are not required to be unique.
    """

    model_config = ConfigDict(validate_assignment=True)

    name: Optional[str] = Field(default=None, description="Frame identifier")
    x: float = Field(default=0.0, allow_inf_nan=False, description="Left edge")
    y: float = Field(default=0.0, allow_inf_nan=False, description="Top edge")
    width: float = Field(default=0.0, ge=0.0, allow_inf_nan=False)
    height: float = Field(default=0.0, ge=0.0, allow_inf_nan=False)

    @classmethod
    def from_geometry(
        cls,
        name: Optional[str],
        x: float,
        y: float,
        width: float,
        height: float,
    ) -> "Frame":
        """Frame with the given geometry stored verbatim."""
        return cls(name=name, x=x, y=y, width=width, height=height)

    @classmethod
    def from_image_properties(
        cls,
        image_properties: Any,
        name: Optional[str] = EXTENT_NAME,
    ) -> Optional["Frame"]:
        """Whole-image frame at (0, 0); None when dimensions are missing."""
        props = ImageProperties.coerce(image_properties)
        if props is None:
            return None
        return cls(
            name=name,
            x=0.0,
            y=0.0,
            width=float(props.pixel_width),
            height=float(props.pixel_height),
        )

    @classmethod
    def from_string(
        cls,
        text: str,
        image_properties: Any = None,
    ) -> Optional["Frame"]:
        """
        Parse a frame string (see ``framescan.frame_parser``).

        Fractional and percent forms are scaled by the pixel size in
        ``image_properties``. Returns None when the string is malformed or
        when scaling is needed and no usable properties were given.
        """
        spec = parse_frame_spec(text)
        if spec is None:
            logger.debug("Malformed frame string: %r", text)
            return None

        if spec.is_extent:
            return cls.from_image_properties(
                image_properties, name=spec.name or EXTENT_NAME
            )

        x, y, width, height = spec.values
        if spec.is_relative:
            props = ImageProperties.coerce(image_properties)
            if props is None:
                logger.debug("Relative frame %r needs image properties", text)
                return None
            fx, fy, fw, fh = spec.fractions()
            x = fx * props.pixel_width
            y = fy * props.pixel_height
            width = fw * props.pixel_width
            height = fh * props.pixel_height

        return cls(name=spec.name, x=x, y=y, width=width, height=height)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def to_pixel_box(
        self, bounds_width: int, bounds_height: int
    ) -> Optional[tuple[int, int, int, int]]:
        """
        Integer (x1, y1, x2, y2) covering the frame, clipped to the bounds.

        Returns None when nothing of the frame remains after clipping.
        """
        if self.is_empty:
            return None
        x1 = max(0, math.floor(self.x))
        y1 = max(0, math.floor(self.y))
        x2 = min(int(bounds_width), math.ceil(self.right))
        y2 = min(int(bounds_height), math.ceil(self.bottom))
        if x2 <= x1 or y2 <= y1:
            return None
        return (x1, y1, x2, y2)

    def to_string(self) -> str:
        """Absolute-pixel encoding; ``from_string`` parses it back when x, y >= 0."""
        coords = ",".join(
            f"{_format_number(v)}px" for v in (self.x, self.y, self.width, self.height)
        )
        if self.name and not any(sep in self.name for sep in "=:"):
            return f"{self.name}={coords}"
        return coords


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


class FrameResult(BaseModel):
    """Recognition outcome for one submitted frame."""

    index: int = Field(..., ge=0, description="Position of the frame in the submitted batch")
    name: Optional[str] = Field(default=None, description="Frame name")
    text: Optional[str] = Field(default=None, description="Recognized text, None if nothing found")
    error_code: Optional[str] = Field(default=None, description="Machine-readable failure code")
    error_message: Optional[str] = Field(default=None, description="Failure detail")

    @property
    def ok(self) -> bool:
        return self.error_code is None
