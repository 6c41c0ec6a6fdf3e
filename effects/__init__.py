"""
GlitchCombo — Stage Registry & Pipeline
Registers the nine stages and runs them in a fixed canonical order.
Every stage is a function: (frame: np.ndarray, **params) -> np.ndarray
operating on (H, W, 4) uint8 RGBA frames.
"""

import logging
import time
from dataclasses import dataclass, field

import numpy as np

from core.config import ConfigError, EffectConfig
from effects.color import ColorError, StageConfigError
from effects.pixelate import pixelate
from effects.tone import tone_adjust
from effects.pixelsort import pixelsort
from effects.outline import outline
from effects.edges import edge_detect
from effects.halftone import halftone
from effects.dither import dither
from effects.chromatic import chromatic_shift
from effects.crt import crt_overlay

logger = logging.getLogger(__name__)

# Execution order is fixed; it never depends on the order stages were enabled.
# Dither needs final luminance, so it follows every tone/geometry stage.
# CRT is a pure post-multiply and always runs last.
STAGE_ORDER = (
    "pixelate",
    "tone",
    "pixelsort",
    "outline",
    "edges",
    "halftone",
    "dither",
    "chromatic",
    "crt",
)

# Master registry: name -> fn, config field for each fn kwarg, description
STAGES = {
    "pixelate": {
        "fn": pixelate,
        "label": "Pixel",
        "config": {"pixel_size": "pixel_size"},
        "aliases": ("pixel", "pixel-art"),
        "description": "Nearest-neighbor blocks of pixel_size",
    },
    "tone": {
        "fn": tone_adjust,
        "label": "Mono",
        "config": {"contrast": "contrast", "brightness": "brightness",
                   "grain": "grain", "seed": "grain_seed"},
        "aliases": ("bw", "mono"),
        "description": "Monochrome with brightness, contrast curve and grain",
    },
    "pixelsort": {
        "fn": pixelsort,
        "label": "Sort",
        "config": {"threshold": "sort_threshold", "direction": "sort_direction"},
        "aliases": ("sort", "pixel-sort"),
        "description": "Sort bright runs of pixels by luminance",
    },
    "outline": {
        "fn": outline,
        "label": "Blueprint",
        "config": {"contrast": "outline_contrast", "levels": "outline_levels",
                   "thickness": "outline_thickness", "bg": "outline_bg",
                   "color": "outline_color", "offset_count": "outline_offset_count",
                   "offset_x": "outline_offset_x", "offset_y": "outline_offset_y",
                   "offset_color": "outline_offset_color"},
        "aliases": ("blueprint",),
        "description": "Posterized band boundaries as line art with offset echoes",
    },
    "edges": {
        "fn": edge_detect,
        "label": "Edge",
        "config": {"threshold": "edge_threshold", "mode": "edge_mode", "color": "edge_color"},
        "aliases": ("edge", "edge-detect"),
        "description": "Sobel edges, neon or white on black",
    },
    "halftone": {
        "fn": halftone,
        "label": "Dot",
        "config": {"dot_size": "dot_size", "invert": "invert_halftone"},
        "aliases": ("dot",),
        "description": "Newspaper dots sized by cell luminance",
    },
    "dither": {
        "fn": dither,
        "label": "Dither",
        "config": {"algorithm": "dither_algo", "palette": "dither_type",
                   "threshold": "dither_threshold", "color_a": "color_a",
                   "color_b": "color_b"},
        "aliases": (),
        "description": "1-bit dither: Floyd-Steinberg, Atkinson, Bayer 4x4 or threshold",
    },
    "chromatic": {
        "fn": chromatic_shift,
        "label": "RGB",
        "config": {"offset": "offset", "direction": "direction"},
        "aliases": ("rgb",),
        "description": "Red/blue channel split with edge clamping",
    },
    "crt": {
        "fn": crt_overlay,
        "label": "CRT",
        "config": {"scanline_intensity": "scanline_intensity",
                   "scanline_thickness": "scanline_thickness", "vignette": "vignette"},
        "aliases": (),
        "description": "Scan lines and vignette darkening",
    },
}

STAGE_ALIASES = {alias: name for name, entry in STAGES.items() for alias in entry["aliases"]}


class PipelineError(RuntimeError):
    """Raised when a stage breaks the fixed-dimension invariant."""
    pass


@dataclass
class PipelineReport:
    frame: np.ndarray
    executed: list = field(default_factory=list)
    skipped: list = field(default_factory=list)
    errors: dict = field(default_factory=dict)
    timings: dict = field(default_factory=dict)


def resolve_stage(name: str) -> str:
    """Canonical stage id for a name or alias.

    Raises:
        ConfigError: If the name is not a known stage.
    """
    key = str(name).strip().lower()
    key = STAGE_ALIASES.get(key, key)
    if key not in STAGES:
        available = ", ".join(STAGE_ORDER)
        raise ConfigError(f"Unknown stage: {name}. Available: {available}")
    return key


def normalize_stages(stages) -> frozenset:
    """Turn a stage list (or comma-separated string) into an ActiveStageSet."""
    if stages is None:
        return frozenset()
    if isinstance(stages, str):
        stages = [s for s in stages.split(",") if s.strip()]
    return frozenset(resolve_stage(s) for s in stages)


def execution_order(active) -> tuple:
    """The canonical order restricted to the active set."""
    active = normalize_stages(active)
    return tuple(name for name in STAGE_ORDER if name in active)


def stage_params(name: str, config: EffectConfig | None = None) -> dict:
    """The slice of config a stage consumes, keyed by the stage's kwarg names."""
    config = config or EffectConfig()
    entry = STAGES[resolve_stage(name)]
    return {kwarg: getattr(config, attr) for kwarg, attr in entry["config"].items()}


def list_stages() -> list[dict]:
    """Stage metadata in execution order."""
    defaults = EffectConfig()
    results = []
    for name in STAGE_ORDER:
        entry = STAGES[name]
        results.append({
            "name": name,
            "label": entry["label"],
            "description": entry["description"],
            "aliases": list(entry["aliases"]),
            "params": {attr: getattr(defaults, attr) for attr in entry["config"].values()},
        })
    return results


def as_rgba(frame: np.ndarray) -> np.ndarray:
    """Normalize gray, RGB, or RGBA input into an (H, W, 4) uint8 frame."""
    frame = np.asarray(frame)
    if frame.dtype != np.uint8:
        frame = np.clip(frame, 0, 255).astype(np.uint8)
    if frame.ndim == 2:
        frame = np.repeat(frame[:, :, np.newaxis], 3, axis=2)
    if frame.ndim != 3 or frame.shape[2] not in (3, 4):
        raise ValueError(f"Expected (H, W), (H, W, 3) or (H, W, 4) frame, got {frame.shape}")
    if frame.shape[2] == 3:
        alpha = np.full(frame.shape[:2] + (1,), 255, dtype=np.uint8)
        frame = np.concatenate([frame, alpha], axis=2)
    return np.ascontiguousarray(frame)


def apply_stage(frame, name: str, config: EffectConfig | None = None, **overrides) -> np.ndarray:
    """Run one stage with its config slice, optionally overriding kwargs."""
    name = resolve_stage(name)
    params = {**stage_params(name, config), **overrides}
    return STAGES[name]["fn"](as_rgba(frame), **params)


def apply_pipeline(frame, config: EffectConfig | None = None, active=()) -> PipelineReport:
    """Run every active stage in STAGE_ORDER, handing the buffer along.

    A stage that rejects its parameters (e.g. an unparseable color) is skipped:
    the buffer passes through unchanged and the reason lands in report.errors.
    """
    config = config or EffectConfig()
    active = normalize_stages(active)
    frame = as_rgba(frame)
    shape = frame.shape
    report = PipelineReport(frame=frame)

    for name in STAGE_ORDER:
        if name not in active:
            continue
        started = time.perf_counter()
        try:
            out = STAGES[name]["fn"](frame, **stage_params(name, config))
        except StageConfigError as e:
            kind = "color" if isinstance(e, ColorError) else "config"
            logger.warning("Skipping stage %s (%s error): %s", name, kind, e)
            report.skipped.append(name)
            report.errors[name] = str(e)
            continue

        if out.shape != shape:
            raise PipelineError(
                f"Stage {name} changed frame shape from {shape} to {out.shape}"
            )
        frame = out
        elapsed = time.perf_counter() - started
        report.executed.append(name)
        report.timings[name] = elapsed
        logger.debug("Stage %s took %.1fms", name, elapsed * 1000)

    report.frame = frame
    return report
