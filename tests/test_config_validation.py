"""
Unit tests for configuration validation (pydantic schema + ConfigManager)

Tests cover:
- Valid configuration acceptance and defaults
- Range checks on the settings tuple
- Schedule entry format and id bookkeeping
- Legacy migration of flat settings keys
- Fallback to defaults for a broken config file
"""

import json

import pytest

from quietplay.config import ConfigManager
from quietplay.config_schema import (QuietPlayConfig, migrate_legacy_config,
                                     validate_config_dict)


class TestSchemaValidation:
    """Tests for pydantic-based config validation"""

    def test_defaults(self):
        validated, warnings = validate_config_dict({})
        assert validated.settings.silence_duration == 2
        assert validated.settings.max_play_duration == 60
        assert validated.settings.fade_enabled is True
        assert validated.schedules == []
        assert warnings == []

    @pytest.mark.parametrize("settings", [
        {"silence_duration": -1},
        {"silence_duration": 1801},
        {"max_play_duration": 0},
        {"max_play_duration": 481},
    ])
    def test_settings_out_of_range(self, settings):
        with pytest.raises(ValueError, match="Configuration validation failed"):
            validate_config_dict({"settings": settings})

    def test_schedule_days_sorted_and_deduplicated(self):
        validated, _ = validate_config_dict({
            "schedules": [{"id": 1, "time": "09:00", "days": [5, 1, 5], "action": "play"}],
            "next_schedule_id": 2,
        })
        assert validated.schedules[0].days == [1, 5]

    @pytest.mark.parametrize("entry", [
        {"id": 1, "time": "9:00", "days": [1], "action": "play"},
        {"id": 1, "time": "09:00", "days": [], "action": "play"},
        {"id": 1, "time": "09:00", "days": [7], "action": "play"},
        {"id": 1, "time": "09:00", "days": [1], "action": "stop"},
    ])
    def test_invalid_schedule_entries(self, entry):
        with pytest.raises(ValueError):
            validate_config_dict({"schedules": [entry]})

    def test_duplicate_schedule_ids_rejected(self):
        entry = {"id": 1, "time": "09:00", "days": [1], "action": "play"}
        with pytest.raises(ValueError, match="Duplicate schedule id"):
            validate_config_dict({"schedules": [entry, dict(entry)]})

    def test_next_schedule_id_bumped_past_existing(self):
        validated, warnings = validate_config_dict({
            "schedules": [{"id": 4, "time": "09:00", "days": [1], "action": "pause"}],
            "next_schedule_id": 2,
        })
        assert validated.next_schedule_id == 5
        assert len(warnings) == 1

    def test_invalid_timezone(self):
        with pytest.raises(ValueError, match="Invalid timezone"):
            validate_config_dict({"timezone": "Mars/Olympus"})

    def test_empty_timezone_means_host_clock(self):
        validated, _ = validate_config_dict({})
        assert validated.timezone == ""
        assert validate_config_dict({"timezone": "local"})[0].timezone == "local"

    def test_legacy_flat_settings_migrated(self):
        migrated = migrate_legacy_config({"silence_duration": 30, "max_play_duration": 15, "debug": True})
        assert migrated["settings"] == {"silence_duration": 30, "max_play_duration": 15}
        assert "silence_duration" not in migrated
        assert QuietPlayConfig(**migrated).settings.silence_duration == 30


class TestConfigManager:

    def test_environment_file_overrides_defaults(self, tmp_path):
        (tmp_path / "default_config.json").write_text(json.dumps({"settings": {"silence_duration": 10}}))
        (tmp_path / "staging.json").write_text(json.dumps({"port": 4000}))
        manager = ConfigManager(config_dir=str(tmp_path), environment="staging")

        config = manager.load_config()
        assert config["settings"]["silence_duration"] == 10
        assert config["port"] == 4000
        assert config["_runtime"]["environment"] == "staging"

    def test_broken_file_falls_back_to_defaults(self, tmp_path):
        (tmp_path / "staging.json").write_text(json.dumps({"settings": {"max_play_duration": 9999}}))
        manager = ConfigManager(config_dir=str(tmp_path), environment="staging")
        assert manager.load_config()["settings"]["max_play_duration"] == 60

    def test_save_refuses_invalid_config(self, tmp_path):
        manager = ConfigManager(config_dir=str(tmp_path), environment="staging")
        assert manager.save_config({"settings": {"silence_duration": -5}}) is False
        assert not (tmp_path / "staging.json").exists()

    def test_save_then_load(self, tmp_path):
        manager = ConfigManager(config_dir=str(tmp_path), environment="staging")
        assert manager.save_config({"settings": {"silence_duration": 45, "max_play_duration": 20}})
        assert manager.load_config()["settings"]["silence_duration"] == 45

    def test_library_path_defaults_next_to_config(self, tmp_path, monkeypatch):
        monkeypatch.delenv("QUIETPLAY_LIBRARY_PATH", raising=False)
        manager = ConfigManager(config_dir=str(tmp_path))
        assert manager.library_path({}) == tmp_path / "library.json"
        assert manager.library_path({"library_path": "music/list.json"}) == tmp_path / "music" / "list.json"
