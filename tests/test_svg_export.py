"""Tests for SVG export of separator lines."""

from __future__ import annotations

from models import Axis, SeparatorLine
from rectanglify import separator_lines_to_svg


def test_empty_lines_give_white_canvas():
    content = separator_lines_to_svg([], 10, 8)
    assert content.startswith("<svg")
    assert "</svg>" in content
    assert "<rect" in content
    assert "<line" not in content


def test_lines_use_fractional_positions():
    lines = [
        SeparatorLine(Axis.VERTICAL, 2.5, 2, 0.0, 8.0),
        SeparatorLine(Axis.HORIZONTAL, 3.25, 3, 0.0, 2.5),
    ]
    content = separator_lines_to_svg(lines, 10, 8)

    assert content.count("<line") == 2
    assert "2.5" in content
    assert "3.25" in content
