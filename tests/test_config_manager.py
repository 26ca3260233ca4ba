"""Tests for configuration persistence."""

from __future__ import annotations

import json

from config_manager import ConfigManager
from models import DEFAULT_RECTS_PER_PIXEL, OutputFormat, RectanglifyConfig


def test_missing_file_gives_defaults(tmp_path):
    config = ConfigManager(tmp_path / "none.json").load()
    assert config == RectanglifyConfig()
    assert config.rects_per_pixel == DEFAULT_RECTS_PER_PIXEL


def test_round_trip(tmp_path):
    manager = ConfigManager(tmp_path / "config.json")
    saved = RectanglifyConfig(rects_per_pixel=0.25, output_format=OutputFormat.RGBA, export_svg=True)

    success, error = manager.save(saved)

    assert success and error is None
    assert manager.load() == saved


def test_invalid_values_fall_back_individually(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"rects_per_pixel": -1, "output_format": "rgb"}))

    config = ConfigManager(path).load()

    assert config.rects_per_pixel == DEFAULT_RECTS_PER_PIXEL
    assert config.output_format is OutputFormat.RGB


def test_unknown_format_falls_back(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"output_format": "cmyk", "rects_per_pixel": 0.5}))

    config = ConfigManager(path).load()

    assert config.output_format is OutputFormat.GRAY
    assert config.rects_per_pixel == 0.5


def test_corrupt_file_gives_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    assert ConfigManager(path).load() == RectanglifyConfig()


def test_save_failure_is_reported(tmp_path):
    manager = ConfigManager(tmp_path / "missing-dir" / "config.json")
    success, error = manager.save(RectanglifyConfig())
    assert not success
    assert error
