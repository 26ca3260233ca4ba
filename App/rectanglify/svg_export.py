"""SVG rendition of a rectanglify run."""

import svg

from models import Axis, SeparatorLine


def separator_lines_to_svg(
    lines: list[SeparatorLine],
    width: float,
    height: float,
    stroke_width: float = 1.0,
) -> str:
    """Convert separator lines to an SVG string.

    Unlike the raster output, lines are placed at their exact fractional
    split position rather than on the enclosing pixel.

    Args:
        lines: Separator lines from a run (see LineRecorder)
        width: Canvas width in pixels
        height: Canvas height in pixels
        stroke_width: Line thickness in pixels

    Returns:
        SVG content as string
    """
    elements: list[svg.Element] = [
        svg.Rect(x=0, y=0, width=width, height=height, fill="white"),
    ]

    for line in lines:
        if line.axis is Axis.VERTICAL:
            x1 = x2 = line.position
            y1, y2 = line.span_start, line.span_end
        else:
            y1 = y2 = line.position
            x1, x2 = line.span_start, line.span_end

        elements.append(
            svg.Line(
                x1=x1,
                y1=y1,
                x2=x2,
                y2=y2,
                stroke="black",
                stroke_width=stroke_width,
            )
        )

    canvas = svg.SVG(
        width=width,
        height=height,
        viewBox=svg.ViewBoxSpec(0, 0, width, height),
        elements=elements,
    )
    return canvas.as_str()
