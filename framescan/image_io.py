"""
Image decoding and property extraction.

Images are decoded with Pillow, rotated upright according to their EXIF
orientation and handed to the recognizers as BGR ndarrays.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import cv2
import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .errors import InvalidImageError
from .models import ImageProperties

logger = logging.getLogger(__name__)

EXIF_ORIENTATION_TAG = 0x0112

# Orientations 5-8 swap width and height once applied
_TRANSPOSED_ORIENTATIONS = {5, 6, 7, 8}

PathLike = Union[str, Path]


def _orientation_of(img: Image.Image) -> int:
    try:
        value = int(img.getexif().get(EXIF_ORIENTATION_TAG, 1))
    except (TypeError, ValueError):
        return 1
    return value if 1 <= value <= 8 else 1


def _dpi_of(img: Image.Image) -> tuple[Optional[float], Optional[float]]:
    dpi = img.info.get("dpi")
    if not dpi or len(dpi) < 2:
        return None, None
    try:
        return float(dpi[0]), float(dpi[1])
    except (TypeError, ValueError):
        return None, None


def _properties_of(img: Image.Image, *, upright: bool) -> ImageProperties:
    orientation = _orientation_of(img)
    width, height = img.size
    if upright and orientation in _TRANSPOSED_ORIENTATIONS:
        width, height = height, width
    dpi_w, dpi_h = _dpi_of(img)
    return ImageProperties(
        pixel_width=width,
        pixel_height=height,
        orientation=orientation,
        dpi_width=dpi_w,
        dpi_height=dpi_h,
        color_model=img.mode,
    )


def _open(path: PathLike) -> Image.Image:
    try:
        return Image.open(path)
    except (FileNotFoundError, UnidentifiedImageError, OSError) as e:
        raise InvalidImageError(f"Cannot read image: {path} ({e})") from e


def read_image_properties(path: PathLike, *, upright: bool = True) -> ImageProperties:
    """
    Read pixel size and metadata without decoding pixel data.

    Args:
        path: Image file
        upright: Report dimensions after applying the EXIF orientation

    Raises:
        InvalidImageError: The file is missing or not an image
    """
    with _open(path) as img:
        return _properties_of(img, upright=upright)


def to_bgr(img: Image.Image) -> np.ndarray:
    """Convert a Pillow image to a BGR (or grayscale) ndarray."""
    if img.mode in ("L", "1"):
        return np.asarray(img.convert("L"))
    rgb = np.asarray(img.convert("RGB"))
    return cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)


def load_image(path: PathLike) -> tuple[np.ndarray, ImageProperties]:
    """
    Decode an image upright.

    The returned properties describe the upright pixels; ``orientation``
    keeps the original EXIF tag for reference.

    Raises:
        InvalidImageError: The file is missing, not an image, or truncated
    """
    with _open(path) as img:
        props = _properties_of(img, upright=True)
        try:
            upright = ImageOps.exif_transpose(img)
            array = to_bgr(upright)
        except OSError as e:
            raise InvalidImageError(f"Cannot decode image: {path} ({e})") from e

    height, width = array.shape[:2]
    if (width, height) != props.size:
        logger.warning(
            "Decoded size %sx%s differs from header size %sx%s for %s",
            width, height, props.pixel_width, props.pixel_height, path,
        )
        props = props.model_copy(update={"pixel_width": width, "pixel_height": height})
    logger.debug("Loaded %s (%sx%s, orientation=%s)", path, width, height, props.orientation)
    return array, props


def crop_region(image: np.ndarray, box: tuple[int, int, int, int]) -> np.ndarray:
    """View of ``image`` inside ``box`` = (x1, y1, x2, y2)."""
    x1, y1, x2, y2 = box
    return image[y1:y2, x1:x2]
