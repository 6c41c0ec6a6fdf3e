"""
GlitchCombo — Pixelate Effect
Nearest-neighbor downscale then upscale for chunky pixel-art blocks.
"""

import numpy as np
from PIL import Image


def pixelate(frame: np.ndarray, pixel_size: int = 4) -> np.ndarray:
    """Downsample by pixel_size and scale back up without interpolation.

    Args:
        frame: (H, W, 4) uint8 RGBA array.
        pixel_size: Block size in pixels. Clamped to >= 1; 1 = no change.

    Returns:
        Pixelated frame, same dimensions as the input.
    """
    factor = max(1, int(pixel_size))
    h, w = frame.shape[:2]
    if factor == 1:
        return frame.copy()

    tiny_w = max(1, w // factor)
    tiny_h = max(1, h // factor)

    img = Image.fromarray(np.ascontiguousarray(frame))
    small = img.resize((tiny_w, tiny_h), Image.Resampling.NEAREST)
    result = np.array(small.resize((w, h), Image.Resampling.NEAREST))
    return result
