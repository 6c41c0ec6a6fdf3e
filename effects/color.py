"""
GlitchCombo — Color & Luminance Utilities
Hex color parsing and Rec. 709 luminance shared by every stage.
"""

import re

import numpy as np

# Rec. 709 luma weights
LUMA_WEIGHTS = (0.2126, 0.7152, 0.0722)

_HEX_RE = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)


class StageConfigError(ValueError):
    """Raised when a stage cannot run with the parameters it was given."""
    pass


class ColorError(StageConfigError):
    """Raised when a color value cannot be parsed."""
    pass


def hex_to_rgb(color) -> tuple:
    """Parse '#rrggbb' / 'rrggbb' (or an RGB triple) into an (r, g, b) tuple.

    Raises:
        ColorError: If the value is not a 6-digit hex color or a 3-element sequence.
    """
    if isinstance(color, str):
        match = _HEX_RE.match(color.strip())
        if not match:
            raise ColorError(f"Invalid hex color: {color!r}")
        return tuple(int(part, 16) for part in match.groups())

    if isinstance(color, (tuple, list)) and len(color) == 3:
        try:
            return tuple(int(max(0, min(255, c))) for c in color)
        except (TypeError, ValueError):
            pass
    raise ColorError(f"Invalid color: {color!r}")


def rgb_to_hex(rgb) -> str:
    r, g, b = hex_to_rgb(rgb)
    return f"#{r:02x}{g:02x}{b:02x}"


def luminance(r, g, b):
    """Perceptual luminance of scalar or array channels (float result)."""
    return LUMA_WEIGHTS[0] * r + LUMA_WEIGHTS[1] * g + LUMA_WEIGHTS[2] * b


def luminance_map(frame: np.ndarray) -> np.ndarray:
    """(H, W) float64 luminance of an (H, W, 3|4) uint8 frame."""
    rgb = frame[..., :3].astype(np.float64)
    return luminance(rgb[..., 0], rgb[..., 1], rgb[..., 2])


def contrast_factor(contrast: float) -> float:
    """Classic 259-based contrast curve factor.

    Contrast is clamped to [-255, 255] so the denominator never reaches zero.
    """
    contrast = max(-255.0, min(255.0, float(contrast)))
    return (259.0 * (contrast + 255.0)) / (255.0 * (259.0 - contrast))


def to_uint8(values: np.ndarray) -> np.ndarray:
    """Clamp to [0, 255] and round, matching a clamped 8-bit store."""
    return np.rint(np.clip(values, 0, 255)).astype(np.uint8)
