"""
GlitchCombo — Outline / Blueprint Effect
Posterizes luminance into a few bands and draws the band boundaries as lines
on a flat background, with optional offset "echo" copies of the line layer.
"""

import math

import cv2
import numpy as np

from effects.color import hex_to_rgb, luminance_map, contrast_factor

ECHO_ALPHA = 0.6
MAX_OFFSET_COUNT = 32
MAX_LEVELS = 256


def posterize_levels(frame: np.ndarray, contrast: float = 50, levels: int = 3) -> np.ndarray:
    """Map contrast-adjusted luminance to bucket indices 0..levels-1."""
    levels = max(2, min(MAX_LEVELS, int(levels)))
    step = 255.0 / (levels - 1)
    gray = contrast_factor(contrast) * (luminance_map(frame) - 128.0) + 128.0
    gray = np.clip(gray, 0, 255)
    return np.floor(gray / step + 0.5).astype(np.int32)


def band_edges(buckets: np.ndarray) -> np.ndarray:
    """Boolean map: True where a bucket differs from its right or lower neighbor."""
    edges = np.zeros(buckets.shape, dtype=bool)
    edges[:, :-1] |= buckets[:, :-1] != buckets[:, 1:]
    edges[:-1, :] |= buckets[:-1, :] != buckets[1:, :]
    return edges


def _thicken(edges: np.ndarray, thickness: int) -> np.ndarray:
    thickness = max(0, min(max(edges.shape), int(thickness)))
    reach = math.ceil(thickness / 2)
    if reach == 0:
        return edges
    kernel = np.ones((2 * reach + 1, 2 * reach + 1), dtype=np.uint8)
    return cv2.dilate(edges.astype(np.uint8), kernel).astype(bool)


def _translate(mask: np.ndarray, dx: int, dy: int) -> np.ndarray:
    """Shift a mask by (dx, dy); pixels leaving the frame are dropped."""
    h, w = mask.shape
    out = np.zeros_like(mask)
    if abs(dx) >= w or abs(dy) >= h:
        return out
    src_x0, dst_x0 = max(0, -dx), max(0, dx)
    src_y0, dst_y0 = max(0, -dy), max(0, dy)
    cw, ch = w - abs(dx), h - abs(dy)
    out[dst_y0:dst_y0 + ch, dst_x0:dst_x0 + cw] = mask[src_y0:src_y0 + ch, src_x0:src_x0 + cw]
    return out


def outline(frame: np.ndarray, contrast: float = 50, levels: int = 3,
            thickness: int = 2, bg: str = "#1a1a1a", color: str = "#ffffff",
            offset_count: int = 0, offset_x: int = 10, offset_y: int = 10,
            offset_color: str = "#ff0055") -> np.ndarray:
    """Render posterization boundaries as blueprint-style line art.

    Args:
        frame: (H, W, 4) uint8 RGBA array.
        contrast: Contrast applied before posterizing (-255 to 255).
        levels: Number of luminance bands (2-256).
        thickness: Line thickness in pixels (0 up to the longer frame side).
        bg: Background hex color.
        color: Line hex color.
        offset_count: Number of echo copies behind the lines (0 = none).
        offset_x, offset_y: Per-echo translation in pixels.
        offset_color: Echo hex color.

    Returns:
        Opaque line-art frame.
    """
    bg_rgb = np.array(hex_to_rgb(bg), dtype=np.float32)
    line_rgb = np.array(hex_to_rgb(color), dtype=np.uint8)
    offset_count = max(0, min(MAX_OFFSET_COUNT, int(offset_count)))
    echo_rgb = np.array(hex_to_rgb(offset_color), dtype=np.float32) if offset_count else None

    h, w = frame.shape[:2]
    lines = _thicken(band_edges(posterize_levels(frame, contrast, levels)), thickness)

    canvas = np.empty((h, w, 3), dtype=np.float32)
    canvas[:] = bg_rgb

    # Echoes are painted farthest first so nearer copies overlap them
    for k in range(offset_count, 0, -1):
        echo = _translate(lines, int(offset_x) * k, int(offset_y) * k)
        canvas[echo] = canvas[echo] * (1.0 - ECHO_ALPHA) + echo_rgb * ECHO_ALPHA

    result = np.empty((h, w, 4), dtype=np.uint8)
    result[..., :3] = np.rint(canvas).astype(np.uint8)
    result[..., 3] = 255
    result[lines, :3] = line_rgb
    return result
