"""
GlitchCombo — CRT Overlay Effect
Radial vignette plus darkened scan lines. Pure darkening; runs last.
"""

import numpy as np


def crt_factor(h: int, w: int, scanline_intensity: float = 50,
               scanline_thickness: int = 2, vignette: float = 50) -> np.ndarray:
    """(H, W) multiplier combining vignette falloff and scan lines."""
    vignette = max(0.0, min(100.0, float(vignette))) / 100.0
    scan = max(0.0, min(100.0, float(scanline_intensity))) / 100.0
    thickness = max(1, min(max(h, 1), int(scanline_thickness)))

    cx, cy = w / 2.0, h / 2.0
    max_dist = np.hypot(cx, cy) or 1.0
    ys = np.arange(h, dtype=np.float64).reshape(-1, 1)
    xs = np.arange(w, dtype=np.float64).reshape(1, -1)
    dist = np.sqrt((xs - cx) ** 2 + (ys - cy) ** 2)

    factor = 1.0 - (dist / max_dist) * vignette
    scan_rows = (np.arange(h) % thickness) == 0
    factor[scan_rows] *= 1.0 - scan
    return factor


def crt_overlay(frame: np.ndarray, scanline_intensity: float = 50,
                scanline_thickness: int = 2, vignette: float = 50) -> np.ndarray:
    """Darken toward the corners and on every Nth row.

    Args:
        frame: (H, W, 4) uint8 RGBA array.
        scanline_intensity: 0-100, how much scan rows are darkened.
        scanline_thickness: Row period of the scan lines (1 to frame height).
        vignette: 0-100, darkening at the farthest corner.

    Returns:
        Darkened frame with alpha untouched.
    """
    h, w = frame.shape[:2]
    factor = crt_factor(h, w, scanline_intensity, scanline_thickness, vignette)

    result = frame.copy()
    rgb = frame[..., :3].astype(np.float64) * factor[..., np.newaxis]
    result[..., :3] = np.rint(np.clip(rgb, 0, 255)).astype(np.uint8)
    return result
