"""Recursive darkness-weighted bisection of the canvas.

AIDEV-NOTE: Each call splits its area in two so that each half holds a share
of the area's darkness proportional to the number of rectangles it receives,
draws one separator line, then recurses into both halves. The geometry is
carried in immutable Rectangle values; the only side effects are the
renderer's draw calls.
"""

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

import numpy as np

from models import Axis, Rectangle, SeparatorLine, Settings

from .pixels import weighted_block

if TYPE_CHECKING:
    from .rendering import Renderer

logger = logging.getLogger(__name__)


def choose_axis(area: Rectangle) -> Axis:
    """Separator orientation for an area.

    Wide areas are cut by a vertical line into a left/right pair; tall and
    square areas are cut by a horizontal line into a top/bottom pair.
    """
    if area.width > area.height:
        return Axis.VERTICAL
    return Axis.HORIZONTAL


def find_split(
    dark: np.ndarray,
    area: Rectangle,
    axis: Axis,
    target: float,
) -> tuple[float, int | None]:
    """Locate the coordinate where the running darkness reaches target.

    Columns (VERTICAL) or rows (HORIZONTAL) are scanned in increasing order,
    each summed over the perpendicular extent of area. At the first index
    where the running total reaches target, the split is interpolated inside
    that column/row by the overshoot.

    Args:
        dark: Darkness map of the input
        area: Area being split
        axis: Orientation of the separator
        target: Darkness the first half must hold

    Returns:
        Tuple of (split coordinate, pixel index of the separator). The index is
        None when the scan ran out before reaching target; the split is then
        clamped to the far edge of the area.
    """
    block, x_first, y_first = weighted_block(dark, area)

    if axis is Axis.VERTICAL:
        sums = block.sum(axis=0)
        first_index, start, end = x_first, area.left, area.right
    else:
        sums = block.sum(axis=1)
        first_index, start, end = y_first, area.top, area.bottom

    running = np.cumsum(sums)
    hits = np.flatnonzero(running >= target)
    if hits.size == 0:
        return end, None

    i = int(hits[0])
    index = first_index + i
    overshoot = float(running[i]) - target
    line_darkness = float(sums[i])

    # Interpolate over the part of the pixel inside the area. For a fully
    # covered pixel this is (index + 1) - overshoot / line_darkness.
    low = max(float(index), start)
    high = min(index + 1.0, end)
    fraction = min(overshoot / line_darkness, 1.0)
    split = high - fraction * (high - low)

    return min(max(split, low), high), index


def split_area(area: Rectangle, axis: Axis, split: float) -> tuple[Rectangle, Rectangle]:
    """Cut area at split into (left, right) or (top, bottom)."""
    if axis is Axis.VERTICAL:
        return replace(area, right=split), replace(area, left=split)
    return replace(area, bottom=split), replace(area, top=split)


def separator_for(area: Rectangle, axis: Axis, split: float, index: int) -> SeparatorLine:
    """Separator line spanning the perpendicular extent of area."""
    if axis is Axis.VERTICAL:
        span_start, span_end = area.top, area.bottom
    else:
        span_start, span_end = area.left, area.right
    return SeparatorLine(
        axis=axis,
        position=split,
        index=index,
        span_start=span_start,
        span_end=span_end,
    )


def partition(
    dark: np.ndarray,
    renderer: "Renderer",
    settings: Settings,
    area: Rectangle,
    rects: int,
) -> int:
    """Split area into rects cells, drawing the separators on renderer.

    Args:
        dark: Darkness map of the input (see pixels.darkness_map)
        renderer: Receives one draw_line() call per split
        settings: Snapshot of the (recalibrated) density
        area: Region to subdivide
        rects: Number of cells the region must end up with

    Returns:
        Number of leaf cells produced, always equal to rects

    Raises:
        ValueError: If a split is needed but rects_per_pixel is not positive

    AIDEV-NOTE: When the scan exhausts the area without reaching the target
    (a light region asked for several cells, or float shortfall in the last
    pixel), the split is clamped to the far edge and no separator is drawn.
    Both halves still recurse, so the leaf count is conserved and the second
    half is simply a zero-extent cell.
    """
    if rects <= 1:
        return rects

    if settings.rects_per_pixel <= 0:
        raise ValueError("rects_per_pixel must be positive to split an area")

    first_count = rects // 2
    target = first_count / settings.rects_per_pixel
    axis = choose_axis(area)

    split, index = find_split(dark, area, axis, target)
    if index is None:
        logger.debug(
            "Scan of %s exhausted before reaching %.4f darkness; clamping split",
            area,
            target,
        )
    else:
        renderer.draw_line(separator_for(area, axis, split, index))

    first_area, second_area = split_area(area, axis, split)
    leaves = partition(dark, renderer, settings, first_area, first_count)
    leaves += partition(dark, renderer, settings, second_area, rects - first_count)
    return leaves
