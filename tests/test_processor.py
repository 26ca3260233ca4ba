"""Tests for the rectanglify entry point and the file pipeline."""

from __future__ import annotations

import numpy as np
import pytest
from PIL import Image

import rectanglify.processor as processor_module
from models import Axis, OutputFormat, RectanglifyConfig, Settings
from rectanglify import RectanglifyProcessor, rectanglify
from rectanglify.pixels import PixelFormat
from rectanglify.processor import target_rect_count
from rectanglify.rendering import LineRecorder
from tests.conftest import blank_output, checkerboard, gradient, gray


class TestRectanglify:
    def test_black_square_becomes_four_cells(self):
        output = blank_output(2, 2)
        result = rectanglify(gray([[0, 0], [0, 0]]), output, Settings(rects_per_pixel=1.0))

        assert result.total_darkness == 4.0
        assert result.num_rects == 4
        assert result.rects_per_pixel == 1.0
        assert len(result.lines) == 3
        assert [line.axis for line in result.lines].count(Axis.HORIZONTAL) == 1
        assert output.tolist() == [[0, 0], [0, 255]]

    def test_white_image_is_left_blank(self):
        output = blank_output(5, 4)
        settings = Settings(rects_per_pixel=3.0)
        result = rectanglify(np.full((4, 5), 255, np.uint8), output, settings)

        assert result.total_darkness == 0.0
        assert result.num_rects == 0
        assert result.rects_per_pixel == 3.0
        assert result.lines == []
        assert (output == 255).all()

    @pytest.mark.parametrize("value", [0, 128, 255])
    @pytest.mark.parametrize("rects_per_pixel", [0.1, 1.0, 50.0])
    def test_single_pixel_never_splits(self, value, rects_per_pixel):
        output = blank_output(1, 1)
        result = rectanglify(gray([[value]]), output, Settings(rects_per_pixel))

        assert result.num_rects <= 1
        assert result.lines == []
        assert output.tolist() == [[255]]

    def test_checkerboard_recalibration(self):
        image = checkerboard(6, 4)
        result = rectanglify(image, blank_output(6, 4), Settings(rects_per_pixel=0.3))

        assert result.total_darkness == 12.0
        assert result.num_rects == round(12.0 * 0.3)
        assert result.rects_per_pixel == pytest.approx(result.num_rects / 12.0)

    def test_zero_density_clears_output(self):
        output = blank_output(3, 3)
        result = rectanglify(np.zeros((3, 3), np.uint8), output, Settings(0.0))
        assert result.num_rects == 0
        assert (output == 255).all()

    def test_rect_count_is_capped_at_pixel_count(self):
        result = rectanglify(gray([[0, 0], [0, 0]]), blank_output(2, 2), Settings(100.0))
        assert result.num_rects == 4
        assert result.rects_per_pixel == pytest.approx(1.0)

    @pytest.mark.parametrize("rects_per_pixel", [1e300, 1e308])
    def test_huge_density_is_capped_instead_of_overflowing(self, rects_per_pixel):
        output = blank_output(4, 4)
        result = rectanglify(np.zeros((4, 4), np.uint8), output, Settings(rects_per_pixel))

        assert result.num_rects == 16
        assert result.rects_per_pixel == pytest.approx(1.0)
        assert len(result.lines) == 15

    def test_every_rectangle_is_realized(self, monkeypatch):
        calls = []
        original = processor_module.partition

        def spy(dark, renderer, settings, area, rects):
            leaves = original(dark, renderer, settings, area, rects)
            calls.append((rects, leaves))
            return leaves

        monkeypatch.setattr(processor_module, "partition", spy)
        result = rectanglify(gradient(64, 48), blank_output(64, 48), Settings(0.05))

        assert result.num_rects > 1
        assert calls == [(result.num_rects, result.num_rects)]
        assert len(result.lines) == result.num_rects - 1

    def test_is_deterministic(self):
        rng = np.random.default_rng(1234)
        image = rng.integers(0, 256, size=(40, 60, 3), dtype=np.uint8)

        first = blank_output(60, 40)
        second = blank_output(60, 40)
        rectanglify(image, first, Settings(0.02))
        rectanglify(image, second, Settings(0.02))

        assert first.tobytes() == second.tobytes()

    def test_does_not_modify_input(self):
        image = gradient(20, 10)
        before = image.copy()
        rectanglify(image, blank_output(20, 10), Settings(0.5))
        np.testing.assert_array_equal(image, before)

    def test_output_layout_independent_of_input(self):
        image = np.zeros((8, 8, 3), np.uint8)
        output = blank_output(8, 8, PixelFormat.RGBA)
        result = rectanglify(
            image,
            output,
            Settings(0.25),
            input_format=PixelFormat.RGB,
            output_format=PixelFormat.RGBA,
        )

        assert result.num_rects == 16
        assert (output[..., 3] == 255).all()
        assert (output[..., :3] == 0).any()
        assert (output[..., :3] == 255).any()

    def test_extra_renderer_sees_same_lines(self):
        recorder = LineRecorder()
        result = rectanglify(
            gradient(30, 20), blank_output(30, 20), Settings(0.1), renderer=recorder
        )
        assert recorder.lines == result.lines


class TestTargetRectCount:
    def test_rounds(self):
        assert target_rect_count(10.0, 0.26, 100) == 3
        assert target_rect_count(10.0, 0.24, 100) == 2

    def test_caps(self):
        assert target_rect_count(1000.0, 1.0, 50) == 50

    def test_overflowing_product_is_capped(self):
        assert target_rect_count(16.0, 1e308, 16) == 16
        assert target_rect_count(16.0, float("inf"), 16) == 16

    def test_empty(self):
        assert target_rect_count(0.0, 5.0, 50) == 0


class TestRectanglifyProcessor:
    def _write_image(self, tmp_path, mode="RGB", size=(32, 24)):
        path = tmp_path / "input.png"
        image = Image.fromarray(gradient(*size)).convert(mode)
        image.save(path)
        return path

    def test_process_defaults_to_grayscale_output(self, tmp_path):
        path = self._write_image(tmp_path)
        processed = RectanglifyProcessor(RectanglifyConfig(rects_per_pixel=0.05)).process(path)

        assert processed.image.mode == "L"
        assert processed.image.size == (32, 24)
        assert processed.source_path == path
        assert processed.source_mode == "RGB"
        assert processed.result.num_rects > 1
        assert processed.line_count > 0

    def test_process_rgba_output(self, tmp_path):
        path = self._write_image(tmp_path, mode="L")
        config = RectanglifyConfig(rects_per_pixel=0.05, output_format=OutputFormat.RGBA)
        processed = RectanglifyProcessor(config).process(path)

        assert processed.image.mode == "RGBA"
        alpha = np.asarray(processed.image)[..., 3]
        assert (alpha == 255).all()

    def test_palette_image(self, tmp_path):
        path = self._write_image(tmp_path, mode="P")
        processed = RectanglifyProcessor().process(path)
        assert processed.image.size == (32, 24)

    def test_missing_file_raises_value_error(self, tmp_path):
        with pytest.raises(ValueError, match="failed to open"):
            RectanglifyProcessor().load_image(tmp_path / "missing.png")

    def test_garbage_file_raises_value_error(self, tmp_path):
        path = tmp_path / "broken.png"
        path.write_bytes(b"not an image")
        with pytest.raises(ValueError):
            RectanglifyProcessor().load_image(path)

    def test_save_and_export_svg(self, tmp_path):
        processor = RectanglifyProcessor(RectanglifyConfig(rects_per_pixel=0.05))
        processed = processor.process(self._write_image(tmp_path))

        out_png = tmp_path / "out.png"
        out_svg = tmp_path / "out.svg"
        processor.save(processed, out_png)
        processor.export_svg(processed, out_svg)

        with Image.open(out_png) as saved:
            assert saved.size == (32, 24)
        content = out_svg.read_text(encoding="utf-8")
        assert content.startswith("<svg")
        assert content.count("<line") == processed.line_count

    def test_save_unknown_extension_raises_value_error(self, tmp_path):
        processor = RectanglifyProcessor()
        processed = processor.process(self._write_image(tmp_path))
        with pytest.raises(ValueError):
            processor.save(processed, tmp_path / "out.unknown")
