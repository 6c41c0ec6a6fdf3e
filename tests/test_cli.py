"""Tests for the glitchcombo command line."""

import json

import numpy as np
import pytest
from PIL import Image

import glitchcombo
from conftest import make_gradient, make_solid
from core.image_io import save_image
from core.slots import PresetStore


@pytest.fixture
def gray_png(tmp_path):
    return save_image(make_solid(4, 4, (128, 128, 128)), tmp_path / "gray.png")


@pytest.fixture
def gradient_png(tmp_path):
    return save_image(make_gradient(), tmp_path / "gradient.png")


class TestParseParamValue:
    @pytest.mark.parametrize("raw,expected", [
        ("4", 4), ("1.5", 1.5), ("true", True), ("off", False),
        ("#ff0055", "#ff0055"), ("atkinson", "atkinson"), ("1e3", 1000.0),
    ])
    def test_values(self, raw, expected):
        assert glitchcombo._parse_param_value(raw) == expected

    @pytest.mark.parametrize("raw", ["nan", "inf", "-Infinity"])
    def test_rejects_non_finite(self, raw):
        with pytest.raises(ValueError):
            glitchcombo._parse_param_value(raw)

    def test_overrides_need_equals(self):
        with pytest.raises(ValueError):
            glitchcombo._parse_overrides(["pixel_size"])


class TestApply:
    def test_flat_threshold_white(self, gray_png, tmp_path, capsys):
        out = tmp_path / "out.png"
        glitchcombo.main([
            "apply", str(gray_png), str(out), "--stage", "dither",
            "--set", "dither_algo=flat-threshold", "dither_threshold=127",
        ])
        pixels = np.array(Image.open(out))
        assert (pixels == 255).all()
        assert "dither" in capsys.readouterr().out

    def test_preset_and_extra_stage(self, gradient_png, tmp_path, capsys):
        out = tmp_path / "out.png"
        glitchcombo.main(["apply", str(gradient_png), str(out), "--preset", "game boy", "--stage", "crt"])
        text = capsys.readouterr().out
        assert "pixelate → tone → dither → crt" in text
        assert out.exists()

    def test_config_file(self, gradient_png, tmp_path):
        cfg = tmp_path / "look.json"
        cfg.write_text(json.dumps({"pixelSize": 8}))
        out = tmp_path / "out.png"
        glitchcombo.main(["apply", str(gradient_png), str(out), "--stage", "pixel", "--config", str(cfg)])
        pixels = np.array(Image.open(out))
        block = pixels[:8, :8].reshape(-1, 4)
        assert (block == block[0]).all()

    def test_flip(self, gradient_png, tmp_path):
        out = tmp_path / "out.png"
        glitchcombo.main(["apply", str(gradient_png), str(out), "--flip"])
        np.testing.assert_array_equal(np.array(Image.open(out)), make_gradient()[:, ::-1])

    def test_save_and_use_slot(self, gradient_png, tmp_path):
        glitchcombo.main(["apply", str(gradient_png), str(tmp_path / "a.png"),
                          "--stage", "halftone", "--save-slot", "2"])
        assert PresetStore().load(2).active_stages == frozenset({"halftone"})
        glitchcombo.main(["apply", str(gradient_png), str(tmp_path / "b.png"), "--slot", "2"])
        np.testing.assert_array_equal(np.array(Image.open(tmp_path / "a.png")),
                                      np.array(Image.open(tmp_path / "b.png")))

    def test_bad_color_is_reported_not_fatal(self, gradient_png, tmp_path, capsys):
        out = tmp_path / "out.png"
        glitchcombo.main(["apply", str(gradient_png), str(out), "--stage", "edges",
                          "--set", "edge_color=#zzz"])
        assert "Skipped edges" in capsys.readouterr().err
        assert out.exists()

    def test_unknown_stage_exits(self, gradient_png, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            glitchcombo.main(["apply", str(gradient_png), str(tmp_path / "o.png"), "--stage", "sepia"])
        assert exc.value.code == 1
        assert "Unknown stage" in capsys.readouterr().err

    def test_missing_input_exits(self, tmp_path):
        with pytest.raises(SystemExit):
            glitchcombo.main(["apply", str(tmp_path / "nope.png"), str(tmp_path / "o.png")])

    def test_unknown_preset_exits(self, gradient_png, tmp_path, capsys):
        with pytest.raises(SystemExit):
            glitchcombo.main(["apply", str(gradient_png), str(tmp_path / "o.png"), "--preset", "Nope"])
        assert "Unknown preset" in capsys.readouterr().err


class TestListings:
    def test_list_stages(self, capsys):
        glitchcombo.main(["list-stages", "--compact"])
        out = capsys.readouterr().out
        assert out.index("pixelate") < out.index("crt")

    def test_presets(self, capsys):
        glitchcombo.main(["presets"])
        assert "Blueprint" in capsys.readouterr().out

    def test_slots(self, capsys):
        glitchcombo.main(["slots"])
        assert "(empty)" in capsys.readouterr().out
