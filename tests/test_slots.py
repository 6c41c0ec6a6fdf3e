"""Tests for preset slot persistence."""

import json

import pytest

from core.config import ConfigError, EffectConfig
from core.slots import Preset, PresetStore, SlotError


@pytest.fixture
def store(tmp_path):
    return PresetStore(tmp_path / "slots" / "presets.json")


class TestPresetStore:
    def test_empty_store(self, store):
        assert store.list() == [None, None, None]
        assert store.load(0) is None

    def test_save_and_load(self, store):
        config = EffectConfig(pixel_size=7, color_a="#0f380f")
        saved = store.save(1, ["dither", "pixel"], config, flip=True)
        loaded = store.load(1)
        assert loaded == saved
        assert loaded.active_stages == frozenset({"dither", "pixelate"})
        assert loaded.config.pixel_size == 7
        assert loaded.flip is True
        assert loaded.timestamp > 0

    def test_overwrite(self, store):
        store.save(0, ["crt"], EffectConfig())
        store.save(0, ["tone"], EffectConfig())
        assert store.load(0).active_stages == frozenset({"tone"})

    def test_slots_are_independent(self, store):
        store.save(2, ["crt"], EffectConfig())
        assert store.load(0) is None
        assert store.load(1) is None

    def test_clear(self, store):
        store.save(0, ["crt"], EffectConfig())
        assert store.clear(0) is True
        assert store.load(0) is None
        assert store.clear(0) is False

    @pytest.mark.parametrize("index", [-1, 3, 99])
    def test_bad_index(self, store, index):
        with pytest.raises(SlotError):
            store.load(index)
        with pytest.raises(IndexError):
            store.save(index, [], EffectConfig())

    def test_file_is_json_list(self, store):
        store.save(1, ["sort", "crt"], EffectConfig())
        data = json.loads(store.path.read_text())
        assert data[0] is None and data[2] is None
        assert data[1]["active_stages"] == ["pixelsort", "crt"]

    def test_corrupt_file_reads_as_empty(self, store, caplog):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{not json")
        assert store.list() == [None, None, None]
        assert "unreadable" in caplog.text

    def test_browser_export_format(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text(json.dumps([{
            "activeModes": ["bw", "dot"],
            "settings": {"dotSize": 12, "contrast": 40},
            "isFlipped": True,
            "timestamp": 1700000000000,
        }]))
        preset = store.load(0)
        assert preset.active_stages == frozenset({"tone", "halftone"})
        assert preset.config.dot_size == 12
        assert preset.flip is True
        assert preset.timestamp == 1700000000000

    def test_invalid_entry_is_empty(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text(json.dumps([{"active_stages": ["sepia"]}]))
        assert store.load(0) is None

    @pytest.mark.parametrize("entry", [
        "garbage",
        ["crt"],
        {"active_stages": ["crt"], "config": ["pixel_size", 3]},
        {"active_stages": "crt", "config": {}},
        {"active_stages": ["crt"], "timestamp": "yesterday"},
        {"active_stages": ["crt"], "config": {"pixelSize": "big"}},
    ])
    def test_malformed_entry_is_empty(self, store, entry, caplog):
        store.path.parent.mkdir(parents=True)
        store.path.write_text(json.dumps([entry, None, None]))
        assert store.load(0) is None
        assert "invalid" in caplog.text

    def test_null_timestamp_reads_as_zero(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text(json.dumps([{"activeModes": ["crt"], "timestamp": None}]))
        preset = store.load(0)
        assert preset.active_stages == frozenset({"crt"})
        assert preset.timestamp == 0

    def test_one_bad_slot_does_not_hide_the_others(self, store):
        good = store.save(2, ["tone"], EffectConfig())
        entries = json.loads(store.path.read_text())
        entries[0] = "garbage"
        store.path.write_text(json.dumps(entries))
        assert store.list() == [None, None, good]

    def test_default_path_redirected(self, tmp_path):
        default = PresetStore()
        default.save(0, ["crt"], EffectConfig())
        assert (tmp_path / "presets.json").exists()


class TestPreset:
    def test_to_dict_uses_canonical_order(self):
        p = Preset(frozenset({"crt", "pixelate", "dither"}), EffectConfig())
        assert p.to_dict()["active_stages"] == ["pixelate", "dither", "crt"]

    def test_from_dict_rejects_non_object(self):
        with pytest.raises(ConfigError):
            Preset.from_dict(["crt"])

    def test_frozen(self):
        p = Preset(frozenset(), EffectConfig())
        with pytest.raises(AttributeError):
            p.flip = True
