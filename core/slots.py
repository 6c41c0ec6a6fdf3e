"""
GlitchCombo — Preset Slots
A small fixed number of save slots, each holding an immutable snapshot of
{active stages, effect config, flip, timestamp}. Stored as one JSON file.

Snapshots exported by the browser UI ({"activeModes", "settings",
"isFlipped", "timestamp"}) load as-is.
"""

import json
import logging
import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path

from core.config import APP_HOME, ConfigError, EffectConfig
from effects import STAGE_ORDER, normalize_stages

logger = logging.getLogger(__name__)

DEFAULT_SLOTS = 3
DEFAULT_PATH = APP_HOME / "presets.json"


class SlotError(IndexError):
    """Raised for a slot index outside the store."""
    pass


@dataclass(frozen=True)
class Preset:
    active_stages: frozenset
    config: EffectConfig
    flip: bool = False
    timestamp: int = 0

    def to_dict(self) -> dict:
        return {
            "active_stages": [s for s in STAGE_ORDER if s in self.active_stages],
            "config": self.config.to_dict(),
            "flip": self.flip,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Preset":
        """Rebuild a snapshot from its stored form.

        Raises:
            ConfigError: If the entry is not an object or a field has the wrong shape.
        """
        if not isinstance(d, dict):
            raise ConfigError(f"Preset entry must be an object, got {type(d).__name__}")
        stages = d.get("active_stages", d.get("activeModes")) or []
        config = d.get("config", d.get("settings")) or {}
        flip = d.get("flip", d.get("isFlipped", False))
        if not isinstance(stages, list):
            raise ConfigError(f"Preset stages must be a list, got {type(stages).__name__}")
        if not isinstance(config, dict):
            raise ConfigError(f"Preset config must be an object, got {type(config).__name__}")
        try:
            timestamp = int(d.get("timestamp") or 0)
        except (TypeError, ValueError, OverflowError) as e:
            raise ConfigError(f"Invalid preset timestamp: {d.get('timestamp')!r}") from e
        return cls(
            active_stages=normalize_stages(stages),
            config=EffectConfig.from_dict(config),
            flip=bool(flip),
            timestamp=timestamp,
        )


class PresetStore:
    def __init__(self, path=None, slots: int = DEFAULT_SLOTS):
        self.path = Path(path) if path is not None else DEFAULT_PATH
        self.slots = max(1, int(slots))

    def _check(self, index: int) -> int:
        index = int(index)
        if not 0 <= index < self.slots:
            raise SlotError(f"Slot {index} out of range (0-{self.slots - 1})")
        return index

    def _read(self) -> list:
        empty = [None] * self.slots
        if not self.path.exists():
            return empty
        try:
            raw = json.loads(self.path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Preset file %s unreadable, treating slots as empty: %s", self.path, e)
            return empty
        if not isinstance(raw, list):
            logger.warning("Preset file %s is not a slot list, ignoring", self.path)
            return empty
        return (raw + empty)[:self.slots]

    def _write(self, entries: list):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=str(self.path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(entries, f, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def save(self, index: int, active, config: EffectConfig, flip: bool = False) -> Preset:
        """Capture the live state into a slot, overwriting whatever was there."""
        index = self._check(index)
        preset = Preset(
            active_stages=normalize_stages(active),
            config=config,
            flip=bool(flip),
            timestamp=int(time.time() * 1000),
        )
        entries = self._read()
        entries[index] = preset.to_dict()
        self._write(entries)
        return preset

    def load(self, index: int) -> Preset | None:
        """The snapshot in a slot, or None if the slot is empty or unusable."""
        entry = self._read()[self._check(index)]
        if not entry:
            return None
        try:
            return Preset.from_dict(entry)
        except ValueError as e:
            logger.warning("Preset slot %d is invalid: %s", index, e)
            return None

    def clear(self, index: int) -> bool:
        index = self._check(index)
        entries = self._read()
        had = entries[index] is not None
        entries[index] = None
        self._write(entries)
        return had

    def list(self) -> list:
        return [self.load(i) for i in range(self.slots)]
