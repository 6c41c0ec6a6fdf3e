"""
GlitchCombo — Halftone Effect
Newspaper-style dots sized by the luminance of each grid cell.
"""

import cv2
import numpy as np

from effects.color import luminance

MIN_STEP = 4
_SHIFT = 4  # cv2 fixed-point bits for sub-pixel centers and radii
_SCALE = 1 << _SHIFT


def dot_radius(lum: float, step: int, invert: bool = False) -> float:
    """Dot radius for a cell whose sampled luminance is lum (0-255)."""
    level = lum / 255.0
    return (level if invert else 1.0 - level) * step / 2.0


def halftone(frame: np.ndarray, dot_size: int = 8, invert: bool = False) -> np.ndarray:
    """Draw one filled circle per step x step cell.

    Args:
        frame: (H, W, 4) uint8 RGBA array.
        dot_size: Cell size in pixels, from 4 up to the longer frame side.
        invert: White dots on black instead of black dots on white.

    Returns:
        Opaque halftone frame.
    """
    h, w = frame.shape[:2]
    step = max(MIN_STEP, min(max(h, w, MIN_STEP), int(dot_size)))
    paper = 0 if invert else 255
    ink = (255 - paper,) * 3 + (255,)

    result = np.full((h, w, 4), paper, dtype=np.uint8)
    result[..., 3] = 255
    half = step / 2.0

    for y in range(0, h, step):
        sy = min(h - 1, int(y + half))
        for x in range(0, w, step):
            sx = min(w - 1, int(x + half))
            r, g, b = (float(c) for c in frame[sy, sx, :3])
            radius = dot_radius(luminance(r, g, b), step, invert)
            if radius <= 0.5:
                continue
            center = (int(round((x + half) * _SCALE)), int(round((y + half) * _SCALE)))
            cv2.circle(result, center, int(round(radius * _SCALE)), ink,
                       thickness=-1, lineType=cv2.LINE_8, shift=_SHIFT)

    return result
