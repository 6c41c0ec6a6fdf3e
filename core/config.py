"""
GlitchCombo — Effect Configuration
One immutable record holding every stage's parameters for a render run.

Field names are snake_case; camelCase aliases (pixelSize, ditherAlgo, ...)
are accepted so configs saved by the browser UI load unchanged.
Types are checked here, ranges are not — each stage clamps its own inputs.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

APP_HOME = Path(os.environ.get("GLITCHCOMBO_HOME", Path.home() / ".glitchcombo"))
LOG_LEVEL = os.environ.get("GLITCHCOMBO_LOG_LEVEL", "WARNING")


class ConfigError(ValueError):
    """Raised when a configuration payload or stage list is unusable."""
    pass


class EffectConfig(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    # Pixelate
    pixel_size: int = 4

    # Tone (mono)
    contrast: float = 20
    brightness: float = 10
    grain: float = 0
    grain_seed: int | None = None

    # Pixel sort
    sort_threshold: float = 50
    sort_direction: str = "horizontal"

    # Outline / blueprint
    outline_contrast: float = 50
    outline_levels: int = 3
    outline_thickness: int = 2
    outline_bg: str = "#1a1a1a"
    outline_color: str = "#ffffff"
    outline_offset_count: int = 0
    outline_offset_x: int = 10
    outline_offset_y: int = 10
    outline_offset_color: str = "#ff0055"

    # Edge detection
    edge_threshold: float = 30
    edge_color: str = "#00ff00"
    edge_mode: str = "color"

    # Halftone
    dot_size: int = 8
    invert_halftone: bool = False

    # Dither
    dither_algo: str = "floyd"
    dither_type: str = "bw"
    dither_threshold: float = 128
    color_a: str = "#000000"
    color_b: str = "#ffffff"

    # Chromatic
    offset: int = 5
    direction: str = "horizontal"

    # CRT
    scanline_intensity: float = 50
    scanline_thickness: int = 2
    vignette: float = 50

    @classmethod
    def from_dict(cls, data: dict | None) -> "EffectConfig":
        """Build a config from a (possibly partial) snake_case or camelCase dict.

        Raises:
            ConfigError: If a known field has a value of the wrong type.
        """
        data = dict(data or {})
        known = set(cls.model_fields) | {to_camel(name) for name in cls.model_fields}
        unknown = sorted(k for k in data if k not in known)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise ConfigError(f"Invalid config value(s): {fields}") from e

    def to_dict(self, camel: bool = False) -> dict:
        return self.model_dump(by_alias=camel)

    def replace(self, **changes) -> "EffectConfig":
        """Validated copy with some fields changed (snake_case or camelCase keys)."""
        changes = EffectConfig.from_dict(changes).model_dump(exclude_unset=True)
        return EffectConfig.from_dict({**self.to_dict(), **changes})


def configure_logging(level: str | int | None = None) -> logging.Logger:
    logging.basicConfig(
        level=level or LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return logging.getLogger("glitchcombo")
