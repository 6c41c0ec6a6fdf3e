"""
GlitchCombo — Dither Effect
1-bit dithering: ordered Bayer 4x4, flat threshold, Floyd-Steinberg and
Atkinson error diffusion, with black/white, duotone, or random-color output.
"""

import logging
import math

import numpy as np

from effects.color import hex_to_rgb, luminance_map

logger = logging.getLogger(__name__)

BAYER_4X4 = np.array([
    [0, 8, 2, 10],
    [12, 4, 14, 6],
    [3, 11, 1, 9],
    [15, 7, 13, 5],
], dtype=np.int32)

# (dx, dy, weight): error shares pushed to unvisited neighbors
FLOYD_STEINBERG = (
    (1, 0, 7 / 16),
    (-1, 1, 3 / 16),
    (0, 1, 5 / 16),
    (1, 1, 1 / 16),
)

# Atkinson propagates 6/8 of the error; the remaining 2/8 is discarded
ATKINSON = (
    (1, 0, 1 / 8),
    (2, 0, 1 / 8),
    (-1, 1, 1 / 8),
    (0, 1, 1 / 8),
    (1, 1, 1 / 8),
    (0, 2, 1 / 8),
)

DIFFUSION_KERNELS = {
    "floyd": FLOYD_STEINBERG,
    "atkinson": ATKINSON,
}

ALGORITHMS = ("floyd", "atkinson", "bayer", "threshold")
ALGORITHM_ALIASES = {
    "ordered": "bayer",
    "bayer4x4": "bayer",
    "flat": "threshold",
    "flat-threshold": "threshold",
    "floyd-diffusion": "floyd",
    "floyd-steinberg": "floyd",
    "atkinson-diffusion": "atkinson",
}

PALETTES = ("bw", "duotone", "random")

VIBRANT_COLORS = (
    (255, 0, 100),    # pink
    (0, 255, 200),    # cyan
    (255, 200, 0),    # yellow
    (100, 100, 255),  # purple
    (50, 255, 50),    # lime
    (255, 100, 0),    # orange
)


def resolve_algorithm(name: str) -> str:
    key = str(name).strip().lower()
    key = ALGORITHM_ALIASES.get(key, key)
    if key not in ALGORITHMS:
        logger.warning("Unknown dither algorithm %r, using floyd", name)
        return "floyd"
    return key


def position_hash(x, y):
    """Deterministic pseudo-random integer for pixel coordinates (scalar or array)."""
    return np.floor(np.abs(np.sin(x * 12.9898 + y * 78.233) * 43758.5453)).astype(np.int64)


def ordered_mask(lum: np.ndarray) -> np.ndarray:
    """Bayer 4x4: lit where the 0-17 quantized level beats the matrix entry."""
    h, w = lum.shape
    level = np.floor(lum / 255.0 * 17)
    tiles = np.tile(BAYER_4X4, (h // 4 + 1, w // 4 + 1))[:h, :w]
    return level > tiles


def threshold_mask(lum: np.ndarray, threshold: float) -> np.ndarray:
    return lum > threshold


def diffusion_mask(lum: np.ndarray, threshold: float, kernel) -> np.ndarray:
    """Error diffusion in raster order over a mutable float buffer.

    Strictly sequential: each pixel sees the error pushed by every pixel before it.
    """
    h, w = lum.shape
    # float64 accumulator, not float32
    buf = lum.astype(np.float64).tolist()
    lit = np.zeros((h, w), dtype=bool)

    for y in range(h):
        row = buf[y]
        lit_row = lit[y]
        for x in range(w):
            old = row[x]
            new = 255.0 if old > threshold else 0.0
            if new:
                lit_row[x] = True
            error = old - new
            if not error:
                continue
            for dx, dy, weight in kernel:
                nx, ny = x + dx, y + dy
                if 0 <= nx < w and ny < h:
                    buf[ny][nx] += error * weight

    return lit


def dither(frame: np.ndarray, algorithm: str = "floyd", palette: str = "bw",
           threshold: float = 128, color_a: str = "#000000",
           color_b: str = "#ffffff") -> np.ndarray:
    """Reduce the frame to two tones (or random vibrant colors).

    Args:
        frame: (H, W, 4) uint8 RGBA array.
        algorithm: 'floyd', 'atkinson', 'bayer', or 'threshold' (aliases accepted).
        palette: 'bw', 'duotone' (color_a dark / color_b light), or 'random'.
        threshold: 0-255 cutoff for threshold and diffusion algorithms.
        color_a: Dark hex color (duotone, and unlit pixels in random mode).
        color_b: Light hex color (duotone).

    Returns:
        Opaque dithered frame.
    """
    algorithm = resolve_algorithm(algorithm)
    if palette not in PALETTES:
        logger.warning("Unknown dither palette %r, using bw", palette)
        palette = "bw"
    threshold = max(0.0, min(255.0, float(threshold)))

    dark = light = None
    if palette in ("duotone", "random"):
        dark = hex_to_rgb(color_a)
    if palette == "duotone":
        light = hex_to_rgb(color_b)

    lum = luminance_map(frame)
    if algorithm == "bayer":
        lit = ordered_mask(lum)
    elif algorithm == "threshold":
        lit = threshold_mask(lum, threshold)
    else:
        lit = diffusion_mask(lum, threshold, DIFFUSION_KERNELS[algorithm])

    h, w = lum.shape
    result = np.empty((h, w, 4), dtype=np.uint8)
    result[..., 3] = 255

    if palette == "bw":
        result[..., :3] = np.where(lit, 255, 0)[..., np.newaxis]
    elif palette == "duotone":
        result[..., :3] = np.where(lit[..., np.newaxis], light, dark)
    else:
        ys, xs = np.mgrid[0:h, 0:w]
        colors = np.array(VIBRANT_COLORS, dtype=np.uint8)
        picks = colors[position_hash(xs.astype(np.float64), ys.astype(np.float64)) % len(colors)]
        result[..., :3] = np.where(lit[..., np.newaxis], picks, np.array(dark, dtype=np.uint8))

    return result


def kernel_weight(kernel) -> float:
    """Total share of the quantization error a kernel propagates."""
    return math.fsum(weight for _, _, weight in kernel)
