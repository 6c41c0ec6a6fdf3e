"""
Conftest: shared fixtures for all GlitchCombo test modules.

1. Deterministic synthetic frames (solid, gradient, noise)
2. Slot storage redirected to a temp dir so tests never touch ~/.glitchcombo
"""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def make_solid(height, width, rgb=(128, 128, 128), alpha=255):
    """Uniform RGBA frame."""
    frame = np.empty((height, width, 4), dtype=np.uint8)
    frame[..., :3] = rgb
    frame[..., 3] = alpha
    return frame


def make_gradient(height=24, width=32):
    """Generate a synthetic test frame (gradient, not blank)."""
    frame = np.zeros((height, width, 4), dtype=np.uint8)
    frame[:, :, 0] = np.linspace(0, 255, width, dtype=np.uint8)  # R gradient
    frame[:, :, 1] = np.linspace(0, 255, height, dtype=np.uint8)[:, np.newaxis]  # G down
    frame[:, :, 2] = np.linspace(255, 0, width, dtype=np.uint8)  # B inverse
    frame[:, :, 3] = 255
    return frame


def make_noise(height=20, width=20, seed=1234):
    rng = np.random.default_rng(seed)
    frame = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    frame[..., 3] = 255
    return frame


@pytest.fixture
def gradient_frame():
    return make_gradient()


@pytest.fixture
def noise_frame():
    return make_noise()


@pytest.fixture
def gray_frame():
    return make_solid(4, 4, (128, 128, 128))


@pytest.fixture(autouse=True)
def _isolate_slots(tmp_path, monkeypatch):
    """Point the default slot file at a per-test temp file."""
    import core.slots
    monkeypatch.setattr(core.slots, "DEFAULT_PATH", tmp_path / "presets.json")
    yield
