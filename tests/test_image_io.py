"""Tests for image decoding, downscaling and PNG export."""

from io import BytesIO

import numpy as np
import pytest
from PIL import Image

from conftest import make_gradient
from core.image_io import (
    encode_png, export_filename, fit_dimensions, frame_to_data_url, load_image,
    save_image,
)


class TestFitDimensions:
    def test_small_unchanged(self):
        assert fit_dimensions(640, 480) == (640, 480)

    def test_landscape(self):
        assert fit_dimensions(2400, 1200) == (1200, 600)

    def test_portrait(self):
        assert fit_dimensions(1000, 3000) == (400, 1200)

    def test_never_zero(self):
        assert fit_dimensions(100000, 10) == (1200, 1)


class TestLoadImage:
    def test_rgb_gets_alpha(self, tmp_path):
        path = tmp_path / "rgb.jpg"
        Image.new("RGB", (10, 6), (200, 10, 10)).save(path)
        frame = load_image(path)
        assert frame.shape == (6, 10, 4)
        assert (frame[..., 3] == 255).all()

    def test_from_bytes(self):
        frame = make_gradient()
        np.testing.assert_array_equal(load_image(encode_png(frame)), frame)

    def test_from_file_object(self):
        frame = make_gradient()
        np.testing.assert_array_equal(load_image(BytesIO(encode_png(frame))), frame)

    def test_downscales(self):
        big = Image.new("RGB", (2000, 500))
        buf = BytesIO()
        big.save(buf, format="PNG")
        assert load_image(buf.getvalue()).shape == (300, 1200, 4)

    def test_palette_mode(self):
        img = Image.new("P", (4, 4))
        buf = BytesIO()
        img.save(buf, format="GIF")
        assert load_image(buf.getvalue()).shape == (4, 4, 4)


class TestExport:
    def test_png_keeps_alpha(self):
        frame = make_gradient()
        frame[0, 0, 3] = 10
        img = Image.open(BytesIO(encode_png(frame)))
        assert img.mode == "RGBA"
        assert img.getpixel((0, 0))[3] == 10

    def test_save_jpeg_drops_alpha(self, tmp_path):
        out = save_image(make_gradient(), tmp_path / "nested" / "out.jpg")
        assert Image.open(out).mode == "RGB"

    def test_data_url(self):
        assert frame_to_data_url(make_gradient()).startswith("data:image/png;base64,")

    @pytest.mark.parametrize("now,name", [
        (1700000000.5, "glitch_combo_1700000000500.png"),
        (0, "glitch_combo_0.png"),
    ])
    def test_export_filename(self, now, name):
        assert export_filename(now) == name
