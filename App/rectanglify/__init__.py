"""Rectanglify: darkness-weighted rectangle stylization of raster images.

AIDEV-NOTE: Organized into modular components:
- pixels: Pixel formats and darkness measurement
- partition: Recursive bisection of the canvas
- rendering: Raster and recording renderers for separator lines
- processor: rectanglify() entry point and the file pipeline
- svg_export: Vector output of the separator lines
- utils: PIL image <-> numpy raster conversion
"""

from .pixels import PixelFormat
from .processor import RectanglifyProcessor, rectanglify
from .svg_export import separator_lines_to_svg

__all__ = [
    "PixelFormat",
    "RectanglifyProcessor",
    "rectanglify",
    "separator_lines_to_svg",
]
