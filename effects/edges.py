"""
GlitchCombo — Edge Detection Effect
Sobel gradient magnitude, thresholded to neon (or white) lines on black.
"""

import logging

import cv2
import numpy as np

from effects.color import hex_to_rgb, luminance_map, to_uint8

logger = logging.getLogger(__name__)

EDGE_MODES = ("color", "white")


def sobel_magnitude(gray: np.ndarray) -> np.ndarray:
    """3x3 Sobel gradient magnitude with zero padding outside the frame."""
    gray = gray.astype(np.float32)
    gx = cv2.Sobel(gray, cv2.CV_32F, 1, 0, ksize=3, borderType=cv2.BORDER_CONSTANT)
    gy = cv2.Sobel(gray, cv2.CV_32F, 0, 1, ksize=3, borderType=cv2.BORDER_CONSTANT)
    return np.sqrt(gx.astype(np.float64) ** 2 + gy.astype(np.float64) ** 2)


def edge_detect(frame: np.ndarray, threshold: float = 30, mode: str = "color",
                color: str = "#00ff00") -> np.ndarray:
    """Replace the frame with its edges.

    Args:
        frame: (H, W, 4) uint8 RGBA array.
        threshold: Gradient magnitude an edge must exceed (>= 0).
        mode: 'color' (edges drawn in `color`) or 'white'.
        color: Hex color for 'color' mode.

    Returns:
        Opaque frame: edges colored, everything else black.
    """
    if mode not in EDGE_MODES:
        logger.warning("Unknown edge mode %r, using white", mode)
        mode = "white"
    edge_rgb = hex_to_rgb(color) if mode == "color" else (255, 255, 255)
    threshold = max(0.0, float(threshold))

    # Gray values are stored at 8 bits before filtering
    gray = to_uint8(luminance_map(frame))
    edges = sobel_magnitude(gray) > threshold

    h, w = frame.shape[:2]
    result = np.zeros((h, w, 4), dtype=np.uint8)
    result[..., 3] = 255
    result[edges, :3] = edge_rgb
    return result
