"""framescan - region-of-interest text recognition over a single image."""

from .errors import (
    FrameOutOfBoundsError,
    InvalidImageError,
    RecognitionError,
    ScanError,
    ScannerClosedError,
)
from .models import EXTENT_NAME, Frame, FrameResult, ImageProperties
from .scanner import ResultCollector, Scanner

__version__ = "0.1.0"

__all__ = [
    "EXTENT_NAME",
    "Frame",
    "FrameResult",
    "ImageProperties",
    "ResultCollector",
    "Scanner",
    "ScanError",
    "InvalidImageError",
    "FrameOutOfBoundsError",
    "RecognitionError",
    "ScannerClosedError",
]
