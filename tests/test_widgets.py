"""Tests for the logarithmic density slider scale."""

from __future__ import annotations

import pytest

from ui.widgets import LogScale


@pytest.fixture
def scale():
    return LogScale(0.001, 10.0, 400)


def test_endpoints(scale):
    assert scale.to_value(0) == pytest.approx(0.001)
    assert scale.to_value(400) == pytest.approx(10.0)
    assert scale.to_position(0.001) == 0
    assert scale.to_position(10.0) == 400


def test_midpoint_is_geometric(scale):
    assert scale.to_value(200) == pytest.approx(0.1)
    assert scale.to_position(0.1) == 200


def test_out_of_range_values_are_clamped(scale):
    assert scale.to_position(0.0) == 0
    assert scale.to_position(1e-9) == 0
    assert scale.to_position(500.0) == 400
