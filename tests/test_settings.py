"""Tests for the settings manager"""
import json
import sys
from pathlib import Path

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from settings import SCHEMA, Setting, SettingsManager

def test_creates_default_file(tmp_path):
    path = tmp_path / "settings.json"
    manager = SettingsManager(path)

    assert path.exists()
    assert manager.get("timeline.entry_count") == 24
    assert json.loads(path.read_text(encoding="utf-8"))["server.port"] == 9012

def test_loads_and_converts_saved_values(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({
        "timeline.step_seconds": "2.5",
        "providers.genius.enabled": "false",
        "server.port": 70000,
        "custom.key": "kept"
    }), encoding="utf-8")

    manager = SettingsManager(path)

    assert manager.get("timeline.step_seconds") == 2.5
    assert manager.get("providers.genius.enabled") is False
    # Out of range falls back to the default
    assert manager.get("server.port") == 9012
    assert manager.get("custom.key") == "kept"
    assert manager.get("missing.key", "fallback") == "fallback"

def test_corrupted_file_is_backed_up(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")

    manager = SettingsManager(path)

    assert manager.get("timeline.lead_in_ms") == 3000
    assert (tmp_path / "settings.json.corrupted").read_text(encoding="utf-8") == "{not json"
    assert json.loads(path.read_text(encoding="utf-8"))["timeline.lead_in_ms"] == 3000

def test_set_and_save(tmp_path):
    path = tmp_path / "settings.json"
    manager = SettingsManager(path)

    assert manager.set("server.port", "8080") is True
    assert manager.set("timeline.min_dwell_ms", 1500) is False
    assert manager.set("not.a.setting", 1) is False
    manager.save_to_config()

    reloaded = SettingsManager(path)
    assert reloaded.get("server.port") == 8080
    assert reloaded.get("timeline.min_dwell_ms") == 1500
    assert reloaded.get("not.a.setting") is None
    assert list(tmp_path.glob("*.tmp")) == []

def test_timeline_defaults():
    assert SCHEMA["timeline.entry_count"].default == 24
    assert SCHEMA["timeline.min_dwell_ms"].default == 0

def test_setting_conversion():
    setting = Setting(float, 5.0, min_val=0.5, max_val=60.0)
    assert setting.validate_and_convert("1.5") == 1.5
    assert setting.validate_and_convert("fast") == 5.0
    assert setting.validate_and_convert(0.1) == 5.0
    assert Setting(bool, False).validate_and_convert("yes") is True
    assert Setting(bool, True).validate_and_convert(0) is False
    assert Setting(int, 9012, max_val=65535).validate_and_convert("8080") == 8080
