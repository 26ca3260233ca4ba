"""Rectanglify orchestration and the file-based processing pipeline.

AIDEV-NOTE: rectanglify() is the core entry point working on numpy rasters.
RectanglifyProcessor wraps it with image loading, output allocation and
saving for the CLI and the preview window.
"""

import logging
import math
from dataclasses import replace
from pathlib import Path

import numpy as np
from PIL import Image

from models import (
    ProcessedImage,
    RectanglifyConfig,
    RectanglifyResult,
    Rectangle,
    Settings,
)

from .partition import partition
from .pixels import PixelFormat, darkness_map
from .rendering import LineRecorder, RasterRenderer, Renderer, TeeRenderer
from .svg_export import separator_lines_to_svg
from .utils import image_to_raster, new_raster, pixel_format_for, raster_to_image

logger = logging.getLogger(__name__)


def target_rect_count(total_darkness: float, rects_per_pixel: float, max_rects: int) -> int:
    """Rounded rectangle count for a darkness mass, capped at max_rects.

    The cap is applied before rounding, so densities whose product with the
    darkness overflows to inf still give max_rects.
    """
    if total_darkness <= 0:
        return 0

    requested = total_darkness * rects_per_pixel
    if not math.isfinite(requested) or requested > max_rects:
        logger.warning(
            "Capping rectangle count from %.4g to %d (one per pixel)", requested, max_rects
        )
        return max_rects
    return max(int(round(requested)), 0)


def rectanglify(
    input: np.ndarray,
    output: np.ndarray,
    settings: Settings | None = None,
    input_format: PixelFormat | None = None,
    output_format: PixelFormat | None = None,
    renderer: Renderer | None = None,
) -> RectanglifyResult:
    """Replace an image by darkness-weighted black-bordered rectangles.

    Args:
        input: Source raster, read only
        output: Raster written in place; expected to match the input size
        settings: Density snapshot, defaults to Settings()
        input_format: Layout of input, inferred if None
        output_format: Layout of output, inferred if None
        renderer: Extra renderer receiving the same calls as the raster

    Returns:
        RectanglifyResult with the darkness mass, rectangle count,
        recalibrated density and the separator lines drawn

    AIDEV-NOTE: rects_per_pixel is recalibrated to num_rects / total so the
    split targets sum exactly to the canvas darkness and every requested
    rectangle is realized. A canvas with no darkness is only cleared.
    """
    settings = settings or Settings()
    input_format = input_format or PixelFormat.infer(input)
    input_format.check_raster(input)

    dark = darkness_map(input, input_format)
    height, width = dark.shape
    total_darkness = float(dark.sum())

    num_rects = target_rect_count(total_darkness, settings.rects_per_pixel, width * height)
    if num_rects > 0:
        settings = replace(settings, rects_per_pixel=num_rects / total_darkness)

    recorder = LineRecorder()
    renderers = [RasterRenderer(output, output_format), recorder]
    if renderer is not None:
        renderers.append(renderer)
    canvas = TeeRenderer(*renderers)

    canvas.clear()

    if num_rects > 0:
        area = Rectangle(left=0.0, top=0.0, right=float(width), bottom=float(height))
        partition(dark, canvas, settings, area, num_rects)

    logger.debug(
        "Rectanglified %dx%d canvas: darkness %.3f, %d rectangles, %d lines",
        width,
        height,
        total_darkness,
        num_rects,
        len(recorder.lines),
    )

    return RectanglifyResult(
        total_darkness=total_darkness,
        num_rects=num_rects,
        rects_per_pixel=settings.rects_per_pixel,
        width=width,
        height=height,
        lines=list(recorder.lines),
    )


class RectanglifyProcessor:
    """Processes image files into rectanglified images."""

    def __init__(self, config: RectanglifyConfig | None = None):
        self.config = config or RectanglifyConfig()

    def load_image(self, file_path: str | Path) -> Image.Image:
        """Load and validate an image file.

        Args:
            file_path: Path to image file (PNG, JPG, etc.)

        Returns:
            Fully loaded PIL Image

        Raises:
            ValueError: If file cannot be loaded or is invalid
        """
        try:
            image = Image.open(file_path)
            image.load()
            return image
        except (OSError, Image.DecompressionBombError) as e:
            raise ValueError(f"failed to open {file_path}: {e}") from e

    def process_image(self, image: Image.Image) -> ProcessedImage:
        """Rectanglify an in-memory image.

        Args:
            image: Source PIL image of any mode

        Returns:
            ProcessedImage holding the output image and run summary
        """
        raster, input_format = image_to_raster(image)
        output_format = pixel_format_for(self.config.output_format)
        height, width = raster.shape[:2]
        output = new_raster(output_format, width, height)

        result = rectanglify(
            raster,
            output,
            self.config.settings(),
            input_format=input_format,
            output_format=output_format,
        )

        return ProcessedImage(
            image=raster_to_image(output, output_format),
            result=result,
            source_mode=image.mode,
        )

    def process(self, file_path: str | Path) -> ProcessedImage:
        """Load an image file and rectanglify it.

        Args:
            file_path: Path to input image

        Returns:
            ProcessedImage with the output image and run summary
        """
        logger.info("Loading %s", file_path)
        image = self.load_image(file_path)
        logger.info("Loaded image with size %dx%d (%s)", image.width, image.height, image.mode)

        processed = self.process_image(image)
        processed.source_path = Path(file_path)

        result = processed.result
        logger.info(
            "Drew %d rectangles with %d separator lines (darkness %.2f)",
            result.num_rects,
            processed.line_count,
            result.total_darkness,
        )
        return processed

    def save(self, processed: ProcessedImage, file_path: str | Path) -> None:
        """Save the output image; the format follows the file extension.

        Raises:
            ValueError: If the image cannot be written
        """
        try:
            processed.image.save(file_path)
        except (OSError, ValueError, KeyError) as e:
            raise ValueError(f"failed to save output to {file_path}: {e}") from e
        logger.info("Saved %s", file_path)

    def export_svg(self, processed: ProcessedImage, file_path: str | Path) -> None:
        """Write the separator lines of a processed image as SVG."""
        result = processed.result
        content = separator_lines_to_svg(result.lines, result.width, result.height)
        Path(file_path).write_text(content, encoding="utf-8")
        logger.info("Saved %s", file_path)
