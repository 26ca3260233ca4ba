"""Conversions between PIL images and numpy rasters.

AIDEV-NOTE: The core works on numpy rasters paired with a PixelFormat. These
helpers are the only place PIL modes are mapped onto PixelFormats.
"""

import numpy as np
from PIL import Image

from models import OutputFormat

from .pixels import PixelFormat

# PIL modes loaded as-is
_MODE_FORMATS = {
    "L": PixelFormat.GRAY8,
    "I;16": PixelFormat.GRAY16,
    "RGB": PixelFormat.RGB,
    "RGBA": PixelFormat.RGBA,
}

# Integer grayscale modes read as 16-bit samples (Pillow decodes 16-bit PNGs
# as "I" or "I;16*"). Values outside [0, 65535] are clipped.
_WIDE_INT_MODES = {"I", "I;16B", "I;16L", "I;16N"}

# Float grayscale uses the same [0, 255] scale as "L" after convert("F")
_FLOAT_MODE = "F"

_OUTPUT_FORMATS = {
    OutputFormat.GRAY: PixelFormat.GRAY8,
    OutputFormat.RGB: PixelFormat.RGB,
    OutputFormat.RGBA: PixelFormat.RGBA,
}


def normalize_image(image: Image.Image) -> Image.Image:
    """Convert an image into a mode image_to_raster can read.

    Bilevel images become "L", anything carrying transparency becomes
    "RGBA", and every other color mode becomes "RGB". Wide grayscale
    modes ("I", "I;16*", "F") are left alone so their precision survives
    until image_to_raster rescales them.
    """
    if image.mode in _MODE_FORMATS or image.mode in _WIDE_INT_MODES or image.mode == _FLOAT_MODE:
        return image
    if image.mode == "1":
        return image.convert("L")
    if image.mode in ("LA", "PA", "RGBa", "La") or "transparency" in image.info:
        return image.convert("RGBA")
    return image.convert("RGB")


def image_to_raster(image: Image.Image) -> tuple[np.ndarray, PixelFormat]:
    """Read a PIL image into a numpy raster.

    Args:
        image: Any PIL image

    Returns:
        Tuple of (raster, pixel format)
    """
    image = normalize_image(image)

    if image.mode in _WIDE_INT_MODES:
        values = np.asarray(image)
        raster = np.clip(values, 0, PixelFormat.GRAY16.max_value).astype(PixelFormat.GRAY16.dtype)
        return raster, PixelFormat.GRAY16
    if image.mode == _FLOAT_MODE:
        values = np.nan_to_num(np.asarray(image, dtype=np.float64))
        raster = np.rint(np.clip(values, 0.0, 255.0)).astype(PixelFormat.GRAY8.dtype)
        return raster, PixelFormat.GRAY8

    fmt = _MODE_FORMATS[image.mode]
    raster = np.asarray(image).astype(fmt.dtype, copy=False)
    return raster, fmt


def raster_to_image(raster: np.ndarray, fmt: PixelFormat) -> Image.Image:
    """Wrap a numpy raster as a PIL image.

    BGR and BGRA rasters are reordered to RGB and RGBA.
    """
    if fmt in (PixelFormat.BGR, PixelFormat.BGRA):
        order = [fmt.channels.index(c) for c in ("RGBA" if fmt.has_alpha else "RGB")]
        raster = raster[..., order]
    return Image.fromarray(np.ascontiguousarray(raster))


def new_raster(fmt: PixelFormat, width: int, height: int) -> np.ndarray:
    """Allocate a zeroed raster of the given format and size."""
    return np.zeros(fmt.shape(width, height), dtype=fmt.dtype)


def pixel_format_for(output_format: OutputFormat) -> PixelFormat:
    """PixelFormat used for a front-end output format."""
    return _OUTPUT_FORMATS[output_format]


def gray16_to_gray8(raster: np.ndarray) -> np.ndarray:
    """Rescale a GRAY16 raster onto the 8-bit range (65535 -> 255)."""
    scale = PixelFormat.GRAY16.max_value / PixelFormat.GRAY8.max_value
    return np.rint(raster / scale).astype(PixelFormat.GRAY8.dtype)
