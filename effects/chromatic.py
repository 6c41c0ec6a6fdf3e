"""
GlitchCombo — Chromatic Shift Effect
Splits red and blue channels in opposite directions (lens aberration look).
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)

DIRECTIONS = ("horizontal", "vertical")


def shifted_indices(size: int, offset: int) -> np.ndarray:
    """Source indices for sampling at i + offset, clamped to [0, size - 1]."""
    offset = max(-size, min(size, int(offset)))
    return np.clip(np.arange(size) + offset, 0, size - 1)


def chromatic_shift(frame: np.ndarray, offset: int = 5,
                    direction: str = "horizontal") -> np.ndarray:
    """Sample R from +offset and B from -offset; G stays put.

    Args:
        frame: (H, W, 4) uint8 RGBA array.
        offset: Pixel offset (any sign). Sampling clamps at the frame edge.
        direction: 'horizontal' or 'vertical'.

    Returns:
        Opaque channel-shifted frame.
    """
    if direction not in DIRECTIONS:
        logger.warning("Unknown chromatic direction %r, using horizontal", direction)
        direction = "horizontal"
    offset = int(offset)
    h, w = frame.shape[:2]

    result = np.empty_like(frame)
    if direction == "vertical":
        result[..., 0] = frame[shifted_indices(h, offset), :, 0]
        result[..., 2] = frame[shifted_indices(h, -offset), :, 2]
    else:
        result[..., 0] = frame[:, shifted_indices(w, offset), 0]
        result[..., 2] = frame[:, shifted_indices(w, -offset), 2]
    result[..., 1] = frame[..., 1]
    result[..., 3] = 255
    return result
