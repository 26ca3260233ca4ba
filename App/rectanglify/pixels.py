"""Pixel formats and darkness measurement.

AIDEV-NOTE: Darkness is 1 - luma / max_value, so 0 is white background and
1 is full black. Every supported pixel layout knows how to reduce itself to
luma; alpha never takes part.
"""

import math
from enum import Enum

import numpy as np

from models import Rectangle

# sRGB / Rec. 709 luma coefficients
LUMA_WEIGHTS = {"R": 0.2126, "G": 0.7152, "B": 0.0722}


class PixelFormat(Enum):
    """Supported raster layouts.

    Each member carries (name, PIL mode, channel order, numpy dtype). Single
    channel rasters are shaped (height, width); multi-channel rasters are
    shaped (height, width, channels).
    """

    GRAY8 = ("GRAY8", "L", "Y", np.uint8)
    GRAY16 = ("GRAY16", "I;16", "Y", np.uint16)
    RGB = ("RGB", "RGB", "RGB", np.uint8)
    BGR = ("BGR", None, "BGR", np.uint8)
    RGBA = ("RGBA", "RGBA", "RGBA", np.uint8)
    BGRA = ("BGRA", None, "BGRA", np.uint8)

    def __init__(self, label, pil_mode, channels, dtype):
        self.label = label
        self.pil_mode = pil_mode
        self.channels = channels
        self.dtype = np.dtype(dtype)

    @property
    def channel_count(self) -> int:
        return len(self.channels)

    @property
    def max_value(self) -> int:
        return int(np.iinfo(self.dtype).max)

    @property
    def min_value(self) -> int:
        return int(np.iinfo(self.dtype).min)

    @property
    def has_alpha(self) -> bool:
        return "A" in self.channels

    @property
    def alpha_index(self) -> int | None:
        return self.channels.index("A") if self.has_alpha else None

    @property
    def rgb_indices(self) -> tuple[int, int, int] | None:
        """Channel indices of R, G and B, or None for grayscale."""
        if self.channel_count == 1:
            return None
        return tuple(self.channels.index(c) for c in "RGB")

    def shape(self, width: int, height: int) -> tuple[int, ...]:
        """Numpy shape of a raster of this format."""
        if self.channel_count == 1:
            return (height, width)
        return (height, width, self.channel_count)

    def check_raster(self, raster: np.ndarray) -> None:
        """Raise ValueError if raster does not have this layout."""
        expected_ndim = 2 if self.channel_count == 1 else 3
        if raster.ndim != expected_ndim or (
            expected_ndim == 3 and raster.shape[2] != self.channel_count
        ):
            raise ValueError(
                f"Raster of shape {raster.shape} does not match format {self.label}"
            )
        if raster.dtype != self.dtype:
            raise ValueError(
                f"Raster dtype {raster.dtype} does not match format {self.label} "
                f"({self.dtype})"
            )

    def to_luma(self, pixels) -> np.ndarray:
        """Reduce a pixel or a raster to luma in channel units.

        Color luma is rounded back to the channel type, so a pure white pixel
        has a luma of exactly max_value.
        """
        values = np.asarray(pixels, dtype=np.float64)
        if self.channel_count == 1:
            return values

        r, g, b = self.rgb_indices
        luma = (
            LUMA_WEIGHTS["R"] * values[..., r]
            + LUMA_WEIGHTS["G"] * values[..., g]
            + LUMA_WEIGHTS["B"] * values[..., b]
        )
        return np.clip(np.rint(luma), self.min_value, self.max_value)

    def background(self) -> np.ndarray:
        """White: every channel at max (alpha included)."""
        return self._fill_value(self.max_value)

    def foreground(self) -> np.ndarray:
        """Black: every color channel at min, alpha at max."""
        value = self._fill_value(self.min_value)
        if self.has_alpha:
            value[self.alpha_index] = self.max_value
        return value

    def _fill_value(self, channel_value: int) -> np.ndarray:
        if self.channel_count == 1:
            return np.array(channel_value, dtype=self.dtype)
        return np.full(self.channel_count, channel_value, dtype=self.dtype)

    @classmethod
    def infer(cls, raster: np.ndarray) -> "PixelFormat":
        """Guess the format of a raster from its shape and dtype.

        Channel order cannot be inferred, so 3 and 4 channel rasters are
        assumed to be RGB and RGBA.

        Raises:
            ValueError: If no supported format has this layout
        """
        if raster.ndim == 2:
            for fmt in (cls.GRAY8, cls.GRAY16):
                if raster.dtype == fmt.dtype:
                    return fmt
        elif raster.ndim == 3 and raster.dtype == np.uint8:
            if raster.shape[2] == 3:
                return cls.RGB
            if raster.shape[2] == 4:
                return cls.RGBA
        raise ValueError(
            f"Unsupported raster layout: shape {raster.shape}, dtype {raster.dtype}"
        )

    @classmethod
    def from_name(cls, name: str) -> "PixelFormat":
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown pixel format: {name}") from None


def darkness(pixel, fmt: PixelFormat) -> float:
    """Darkness (0-1) of a single pixel.

    Args:
        pixel: A scalar for grayscale formats, a channel sequence otherwise
        fmt: Layout of the pixel

    Returns:
        1 - luma / max_value, 0 for white and 1 for black
    """
    value = 1.0 - float(fmt.to_luma(pixel)) / fmt.max_value
    return min(max(value, 0.0), 1.0)


def darkness_map(raster: np.ndarray, fmt: PixelFormat) -> np.ndarray:
    """Darkness of every pixel of a raster, shape (height, width)."""
    luma = fmt.to_luma(raster)
    return np.clip(1.0 - luma / fmt.max_value, 0.0, 1.0)


def coverage(index: int, start: float, end: float) -> float:
    """Fraction of pixel [index, index + 1) that lies inside [start, end]."""
    overlap = min(index + 1.0, end) - max(float(index), start)
    return min(max(overlap, 0.0), 1.0)


def axis_weights(start: float, end: float, first: int, stop: int) -> np.ndarray:
    """Coverage of every pixel index in [first, stop) by the span [start, end].

    AIDEV-NOTE: Vectorized form of coverage(). Pixels straddling the near
    edge get 1 - frac(start), pixels straddling the far edge get frac(end).
    """
    index = np.arange(first, stop, dtype=np.float64)
    overlap = np.minimum(index + 1.0, end) - np.maximum(index, start)
    return np.clip(overlap, 0.0, 1.0)


def pixel_bounds(start: float, end: float, limit: int) -> tuple[int, int]:
    """Integer index range [first, stop) covering a span, clipped to the canvas."""
    first = max(int(math.floor(start)), 0)
    stop = min(int(math.ceil(end)), limit)
    return first, max(first, stop)


def darkness_at(dark: np.ndarray, rect: Rectangle, x: int, y: int) -> float:
    """Darkness of pixel (x, y) scaled by how much of it lies inside rect.

    Args:
        dark: Darkness map from darkness_map()
        rect: Fractional rectangle clipping the pixel
        x: Pixel column
        y: Pixel row

    Returns:
        Weighted darkness, 0 for pixels outside rect or outside the image
    """
    height, width = dark.shape
    if not (0 <= x < width and 0 <= y < height):
        return 0.0

    weight = coverage(x, rect.left, rect.right) * coverage(y, rect.top, rect.bottom)
    return float(dark[y, x]) * weight


def weighted_block(dark: np.ndarray, rect: Rectangle) -> tuple[np.ndarray, int, int]:
    """Darkness of every pixel touched by rect, weighted by coverage.

    Returns:
        Tuple of (block, first_x, first_y) where block[j, i] equals
        darkness_at(dark, rect, first_x + i, first_y + j)
    """
    height, width = dark.shape
    x_first, x_stop = pixel_bounds(rect.left, rect.right, width)
    y_first, y_stop = pixel_bounds(rect.top, rect.bottom, height)

    weights_x = axis_weights(rect.left, rect.right, x_first, x_stop)
    weights_y = axis_weights(rect.top, rect.bottom, y_first, y_stop)

    block = dark[y_first:y_stop, x_first:x_stop] * weights_y[:, None] * weights_x[None, :]
    return block, x_first, y_first
