"""Shared test fixtures."""

from __future__ import annotations

import numpy as np
import pytest

from rectanglify.pixels import PixelFormat


def gray(rows) -> np.ndarray:
    """8-bit grayscale raster from nested lists."""
    return np.array(rows, dtype=np.uint8)


def checkerboard(width: int, height: int, cell: int = 1) -> np.ndarray:
    """Black/white 8-bit checkerboard, black in the top-left cell."""
    ys, xs = np.indices((height, width))
    black = ((xs // cell) + (ys // cell)) % 2 == 0
    return np.where(black, 0, 255).astype(np.uint8)


def gradient(width: int, height: int) -> np.ndarray:
    """Horizontal 8-bit gradient, white on the left, black on the right."""
    row = np.linspace(255, 0, width).round().astype(np.uint8)
    return np.tile(row, (height, 1))


def blank_output(width: int, height: int, fmt: PixelFormat = PixelFormat.GRAY8) -> np.ndarray:
    return np.zeros(fmt.shape(width, height), dtype=fmt.dtype)


@pytest.fixture(scope="session")
def qapp():
    """Core application instance for signal/thread tests."""
    from PyQt6.QtCore import QCoreApplication

    app = QCoreApplication.instance() or QCoreApplication([])
    yield app
