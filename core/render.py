"""
GlitchCombo — Render Entry Point
Turns a decoded source image plus (config, active stages, flip) into one
output frame. This is what the scheduler, server, and CLI call.
"""

import logging
from dataclasses import dataclass, field

import numpy as np

from core.config import EffectConfig
from effects import apply_pipeline, as_rgba, normalize_stages

logger = logging.getLogger(__name__)


@dataclass
class RenderResult:
    frame: np.ndarray
    executed: list = field(default_factory=list)
    skipped: list = field(default_factory=list)
    errors: dict = field(default_factory=dict)
    flip: bool = False

    @property
    def width(self) -> int:
        return self.frame.shape[1]

    @property
    def height(self) -> int:
        return self.frame.shape[0]


def mirror(frame: np.ndarray) -> np.ndarray:
    """Horizontal mirror: output column x samples source column width-1-x."""
    return np.ascontiguousarray(frame[:, ::-1])


def render_image(source, config: EffectConfig | None = None, active=(),
                 flip: bool = False) -> RenderResult | None:
    """Build a fresh buffer from the source and run the active stages on it.

    Returns:
        RenderResult, or None when there is no source image (nothing is rendered).
    """
    if source is None:
        logger.info("No input image; nothing to render")
        return None

    active = normalize_stages(active)
    frame = as_rgba(source).copy()
    if flip:
        frame = mirror(frame)

    report = apply_pipeline(frame, config or EffectConfig(), active)
    return RenderResult(
        frame=report.frame,
        executed=report.executed,
        skipped=report.skipped,
        errors=report.errors,
        flip=bool(flip),
    )
