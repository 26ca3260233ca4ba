"""Data models and constants for the rectanglify pipeline."""

import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

# Rectangles drawn per unit of accumulated darkness
DEFAULT_RECTS_PER_PIXEL = 0.1

# Configuration file path
CONFIG_FILE = Path.home() / ".rectanglify_config.json"


class Axis(Enum):
    """Orientation of a separator line.

    AIDEV-NOTE: VERTICAL lines have constant x and come from a left/right
    split; HORIZONTAL lines have constant y and come from a top/bottom split.
    """

    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


class OutputFormat(Enum):
    """Pixel layouts the front ends can allocate for the output."""

    GRAY = "gray"
    RGB = "rgb"
    RGBA = "rgba"


def validate_rects_per_pixel(value: float) -> float:
    """Check a density value, returning it as a float.

    Raises:
        ValueError: If the value is negative, NaN or infinite
    """
    value = float(value)
    if math.isnan(value) or math.isinf(value) or value < 0.0:
        raise ValueError(f"rects_per_pixel must be a finite value >= 0, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    """Snapshot of the effect parameters for one run.

    AIDEV-NOTE: Frozen so a run can never observe a concurrent write. The
    orchestrator recalibrates through dataclasses.replace().
    """

    rects_per_pixel: float = DEFAULT_RECTS_PER_PIXEL


@dataclass(frozen=True)
class Rectangle:
    """Real-valued axis-aligned region of the canvas, in pixel units."""

    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    def contains(self, other: "Rectangle") -> bool:
        """Whether other lies entirely inside this rectangle."""
        return (
            self.left <= other.left
            and self.top <= other.top
            and other.right <= self.right
            and other.bottom <= self.bottom
        )


@dataclass(frozen=True)
class SeparatorLine:
    """A black line drawn between the two halves of a split.

    position is the exact fractional split coordinate; index is the pixel
    row/column the line is rasterized on. The span is the perpendicular
    extent of the area that was split, in pixel units.
    """

    axis: Axis
    position: float
    index: int
    span_start: float
    span_end: float


@dataclass
class RectanglifyResult:
    """Summary of one rectanglify run."""

    total_darkness: float
    num_rects: int
    rects_per_pixel: float  # recalibrated value used by the partitioning
    width: int = 0
    height: int = 0
    lines: list[SeparatorLine] = field(default_factory=list)


@dataclass
class RectanglifyConfig:
    """Persisted front-end configuration."""

    rects_per_pixel: float = DEFAULT_RECTS_PER_PIXEL
    output_format: OutputFormat = OutputFormat.GRAY
    export_svg: bool = False

    def settings(self) -> Settings:
        return Settings(rects_per_pixel=self.rects_per_pixel)


@dataclass
class ProcessedImage:
    """Result of the file-based processing pipeline."""

    # Rendered output, a PIL image in the configured output format
    image: object

    result: RectanglifyResult

    # Source image details
    source_path: Path | None = None
    source_mode: str = ""

    @property
    def line_count(self) -> int:
        return len(self.result.lines)
