"""
Frame string grammar.

    frame    := [ name ( "=" | ":" ) ] geometry
    geometry := "extent" | coord "," coord "," coord "," coord
    coord    := number [ "px" | "%" ]

All four coordinates share one unit. Bare numbers are image-relative
fractions when every value lies in [0, 1], absolute pixels otherwise.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Optional

EXTENT_KEYWORD = "extent"

UNIT_PIXELS = "px"
UNIT_PERCENT = "%"
UNIT_NONE = ""

_NAME_SEPARATOR = re.compile(r"[=:]")
_COORD = re.compile(
    r"^(?P<number>[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)\s*(?P<unit>px|%)?$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class FrameSpec:
    """Parsed but not yet denormalized frame description."""

    name: Optional[str]
    values: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
    unit: str = UNIT_NONE
    is_extent: bool = False

    @property
    def is_relative(self) -> bool:
        """True when values must be scaled by the image size."""
        if self.is_extent:
            return False
        if self.unit == UNIT_PERCENT:
            return True
        if self.unit == UNIT_PIXELS:
            return False
        return all(0.0 <= v <= 1.0 for v in self.values)

    def fractions(self) -> tuple[float, float, float, float]:
        """Values as [0, 1] fractions of the image size."""
        if self.unit == UNIT_PERCENT:
            return tuple(v / 100.0 for v in self.values)  # type: ignore[return-value]
        return self.values


def _split_name(text: str) -> tuple[Optional[str], str]:
    match = _NAME_SEPARATOR.search(text)
    if match is None:
        return None, text
    name = text[: match.start()].strip()
    return name, text[match.end():].strip()


def _parse_coord(token: str) -> Optional[tuple[float, str]]:
    match = _COORD.match(token.strip())
    if match is None:
        return None
    value = float(match.group("number"))
    if not math.isfinite(value):
        return None
    return value, (match.group("unit") or UNIT_NONE).lower()


def parse_frame_spec(text: Optional[str]) -> Optional[FrameSpec]:
    """
    Parse a frame string.

    Returns None for anything malformed: blank input, an empty name before
    the separator, a coordinate count other than four, non-numeric or
    negative values, mixed units, or percentages above 100.
    """
    if text is None:
        return None
    text = text.strip()
    if not text:
        return None

    name, geometry = _split_name(text)
    if name is not None and not name:
        return None
    if not geometry:
        return None

    if geometry.lower() == EXTENT_KEYWORD:
        return FrameSpec(name=name, is_extent=True)

    tokens = geometry.split(",")
    if len(tokens) != 4:
        return None

    coords = [_parse_coord(token) for token in tokens]
    if any(c is None for c in coords):
        return None

    units = {unit for _, unit in coords}
    if len(units) != 1:
        return None
    unit = units.pop()

    values = tuple(value for value, _ in coords)
    if any(v < 0 for v in values):
        return None
    if unit == UNIT_PERCENT and any(v > 100.0 for v in values):
        return None

    return FrameSpec(name=name, values=values, unit=unit)  # type: ignore[arg-type]
