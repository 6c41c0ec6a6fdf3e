"""
GlitchCombo — Pixel Sort Effect
Sorts bright runs of pixels in rows or columns by luminance.
Classic glitch art effect.
"""

import logging

import numpy as np

from effects.color import luminance_map

logger = logging.getLogger(__name__)

DIRECTIONS = ("horizontal", "vertical")


def find_runs(mask: np.ndarray) -> list:
    """Return (start, end) pairs of maximal True runs in a 1-D boolean mask."""
    if mask.size == 0:
        return []
    changes = np.diff(mask.astype(np.int8))
    starts = np.where(changes == 1)[0] + 1
    ends = np.where(changes == -1)[0] + 1

    if mask[0]:
        starts = np.concatenate([[0], starts])
    if mask[-1]:
        ends = np.concatenate([ends, [mask.size]])

    return list(zip(starts.tolist(), ends.tolist()))


def pixelsort(frame: np.ndarray, threshold: float = 50,
              direction: str = "horizontal") -> np.ndarray:
    """Sort pixels inside threshold-defined intervals of each row (or column).

    Args:
        frame: (H, W, 4) uint8 RGBA array.
        threshold: 0-255 luminance. Pixels strictly above it form sortable runs.
        direction: 'horizontal' (rows) or 'vertical' (columns).

    Returns:
        Sorted frame. Only RGB moves; alpha stays where it was.
    """
    if direction not in DIRECTIONS:
        logger.warning("Unknown sort direction %r, using horizontal", direction)
        direction = "horizontal"
    threshold = max(0.0, min(255.0, float(threshold)))

    result = frame.copy()
    lum = luminance_map(frame)

    if direction == "vertical":
        result = result.transpose(1, 0, 2)  # Swap H and W
        lum = lum.T

    for line_idx in range(result.shape[0]):
        keys = lum[line_idx]
        for start, end in find_runs(keys > threshold):
            if end - start < 2:
                continue
            order = np.argsort(keys[start:end], kind="stable")
            result[line_idx, start:end, :3] = result[line_idx, start:end, :3][order]

    if direction == "vertical":
        result = result.transpose(1, 0, 2)

    return np.ascontiguousarray(result)
