"""
GlitchCombo — Built-in Presets
Curated stage combinations with tuned parameters.

Each preset names the stages to enable and only the config fields it
changes; everything else keeps its default. Stage order never comes from
the preset, the pipeline always runs stages in canonical order.

Categories:
    Retro       -- Handheld consoles, arcade cabinets, old monitors
    Print       -- Newsprint, blueprints, photocopies
    Glitch      -- Sorting, channel splits, neon edges
"""

from core.config import EffectConfig
from effects import normalize_stages

BUILT_IN_PRESETS = [
    # =========================================================================
    # RETRO
    # =========================================================================
    {
        "name": "Game Boy",
        "description": "Chunky pixels dithered into a two-tone olive palette. "
                       "Looks best on portraits and bold shapes.",
        "category": "Retro",
        "stages": ["pixelate", "tone", "dither"],
        "config": {"pixel_size": 3, "contrast": 35, "brightness": 5,
                   "dither_algo": "bayer", "dither_type": "duotone",
                   "color_a": "#0f380f", "color_b": "#9bbc0f"},
        "flip": False,
        "tags": ["handheld", "8-bit", "green", "lo-fi"],
    },
    {
        "name": "Arcade CRT",
        "description": "Cabinet glow: mild pixelation, a red/blue fringe, heavy scan lines "
                       "and a dark vignette.",
        "category": "Retro",
        "stages": ["pixelate", "chromatic", "crt"],
        "config": {"pixel_size": 2, "offset": 3, "direction": "horizontal",
                   "scanline_intensity": 70, "scanline_thickness": 2, "vignette": 65},
        "flip": False,
        "tags": ["arcade", "monitor", "scanlines", "80s"],
    },
    # =========================================================================
    # PRINT
    # =========================================================================
    {
        "name": "Blueprint",
        "description": "White technical line art on drafting blue with a faint offset echo.",
        "category": "Print",
        "stages": ["outline"],
        "config": {"outline_contrast": 60, "outline_levels": 4, "outline_thickness": 2,
                   "outline_bg": "#0b3d91", "outline_color": "#ffffff",
                   "outline_offset_count": 1, "outline_offset_x": 6, "outline_offset_y": 6,
                   "outline_offset_color": "#5d8fe0"},
        "flip": False,
        "tags": ["technical", "line-art", "blue"],
    },
    {
        "name": "Newsprint",
        "description": "Grainy high-contrast mono printed as halftone dots.",
        "category": "Print",
        "stages": ["tone", "halftone"],
        "config": {"contrast": 45, "brightness": 0, "grain": 20, "grain_seed": 7,
                   "dot_size": 6, "invert_halftone": False},
        "flip": False,
        "tags": ["newspaper", "dots", "mono", "print"],
    },
    {
        "name": "Photocopy",
        "description": "Blown-out mono run through a hard threshold, mirrored like a bad scan.",
        "category": "Print",
        "stages": ["tone", "dither"],
        "config": {"contrast": 80, "brightness": 15, "grain": 35, "grain_seed": 11,
                   "dither_algo": "threshold", "dither_type": "bw", "dither_threshold": 120},
        "flip": True,
        "tags": ["xerox", "zine", "mono", "harsh"],
    },
    # =========================================================================
    # GLITCH
    # =========================================================================
    {
        "name": "Neon Edges",
        "description": "Magenta Sobel edges on black with a chromatic split.",
        "category": "Glitch",
        "stages": ["edges", "chromatic"],
        "config": {"edge_threshold": 40, "edge_mode": "color", "edge_color": "#ff00ff",
                   "offset": 4, "direction": "horizontal"},
        "flip": False,
        "tags": ["neon", "edges", "cyberpunk"],
    },
    {
        "name": "Sorted Sunset",
        "description": "Vertical pixel sort of the highlights, then a random vibrant dither.",
        "category": "Glitch",
        "stages": ["pixelsort", "dither"],
        "config": {"sort_threshold": 90, "sort_direction": "vertical",
                   "dither_algo": "atkinson", "dither_type": "random",
                   "color_a": "#120024"},
        "flip": False,
        "tags": ["sorting", "colorful", "melt"],
    },
]


def get_preset(name: str) -> tuple | None:
    """Get a preset by name (case-insensitive) as (active_stages, config, flip)."""
    for p in BUILT_IN_PRESETS:
        if p["name"].lower() == name.strip().lower():
            return normalize_stages(p["stages"]), EffectConfig.from_dict(p["config"]), p["flip"]
    return None


def get_presets_by_category(category: str) -> list[dict]:
    return [p for p in BUILT_IN_PRESETS if p["category"].lower() == category.lower()]


def list_preset_names() -> list[str]:
    return [p["name"] for p in BUILT_IN_PRESETS]
