"""
GlitchCombo — Tone Adjust Effect
Monochrome conversion with brightness, contrast curve, and film grain.
"""

import numpy as np

from effects.color import luminance_map, contrast_factor, to_uint8


def tone_adjust(frame: np.ndarray, contrast: float = 20, brightness: float = 10,
                grain: float = 0, seed: int | None = None) -> np.ndarray:
    """Desaturate to luminance, then apply brightness, contrast, and grain.

    Args:
        frame: (H, W, 4) uint8 RGBA array.
        contrast: -255 to 255. Positive steepens the curve around mid-gray.
        brightness: Added to luminance before the contrast curve.
        grain: Width of uniform noise added per pixel (0 = none).
        seed: Noise seed (sign ignored). None draws fresh noise every call.

    Returns:
        Gray frame with the input alpha preserved.
    """
    factor = contrast_factor(contrast)
    grain = max(0.0, float(grain))

    gray = luminance_map(frame) + float(brightness)
    gray = factor * (gray - 128.0) + 128.0
    if grain > 0:
        rng = np.random.default_rng(None if seed is None else abs(int(seed)))
        gray = gray + (rng.random(gray.shape) - 0.5) * grain

    result = frame.copy()
    result[..., :3] = to_uint8(gray)[..., np.newaxis]
    return result
