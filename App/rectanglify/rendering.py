"""Renderers receiving the separator lines chosen by the partitioning.

AIDEV-NOTE: The partitioning only talks to the small Renderer protocol
(clear + draw_line), so the same run can paint a raster, record the lines
for SVG export, or both through TeeRenderer.
"""

from typing import Protocol

import numpy as np

from models import Axis, SeparatorLine

from .pixels import PixelFormat


class Renderer(Protocol):
    """Anything that can receive the output of a rectanglify run."""

    def clear(self) -> None:
        ...

    def draw_line(self, line: SeparatorLine) -> None:
        ...


class RasterRenderer:
    """Draws black separator lines onto a white numpy raster, in place."""

    def __init__(self, output: np.ndarray, fmt: PixelFormat | None = None):
        """Initialize the renderer.

        Args:
            output: Raster to write, shaped per fmt.shape()
            fmt: Layout of output, inferred from its shape and dtype if None

        Raises:
            ValueError: If output does not match fmt
        """
        self.fmt = fmt or PixelFormat.infer(output)
        self.fmt.check_raster(output)
        self.output = output
        self.height, self.width = output.shape[:2]

        self._background = self.fmt.background()
        self._foreground = self.fmt.foreground()

    def clear(self) -> None:
        """Fill the whole raster with opaque white."""
        self.output[...] = self._background

    def draw_line(self, line: SeparatorLine) -> None:
        """Set a one-pixel-wide line to opaque black.

        The line sits on line.index and covers [int(span_start), int(span_end)]
        inclusive, clipped to the raster.
        """
        if line.axis is Axis.VERTICAL:
            x = line.index
            if not 0 <= x < self.width:
                return
            start, stop = self._span(line, self.height)
            self.output[start:stop, x] = self._foreground
        else:
            y = line.index
            if not 0 <= y < self.height:
                return
            start, stop = self._span(line, self.width)
            self.output[y, start:stop] = self._foreground

    @staticmethod
    def _span(line: SeparatorLine, limit: int) -> tuple[int, int]:
        start = max(int(line.span_start), 0)
        stop = min(int(line.span_end) + 1, limit)
        return start, max(start, stop)


class LineRecorder:
    """Collects separator lines instead of drawing them."""

    def __init__(self):
        self.lines: list[SeparatorLine] = []

    def clear(self) -> None:
        self.lines.clear()

    def draw_line(self, line: SeparatorLine) -> None:
        self.lines.append(line)

    def count(self, axis: Axis | None = None) -> int:
        """Number of recorded lines, optionally of one orientation."""
        if axis is None:
            return len(self.lines)
        return sum(1 for line in self.lines if line.axis is axis)


class TeeRenderer:
    """Forwards every call to several renderers, in order."""

    def __init__(self, *renderers: Renderer):
        self.renderers = renderers

    def clear(self) -> None:
        for renderer in self.renderers:
            renderer.clear()

    def draw_line(self, line: SeparatorLine) -> None:
        for renderer in self.renderers:
            renderer.draw_line(line)
