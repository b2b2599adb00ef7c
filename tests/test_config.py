"""
Tests for loading tracker configuration.
"""

import json

import pytest

from complaint_tracker.config import DEFAULT_DB_URL, TrackerConfig, load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "COMPLAINT_TRACKER_DB_URL",
        "COMPLAINT_TRACKER_STRICT",
        "COMPLAINT_TRACKER_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


class TestLoadConfig:
    def test_defaults(self):
        config = load_config()
        assert config == TrackerConfig()
        assert config.db_url == DEFAULT_DB_URL
        assert config.strict_transitions is False

    def test_from_file(self, tmp_path):
        path = tmp_path / "tracker.json"
        path.write_text(json.dumps({
            "db_url": "sqlite:///other.db",
            "strict_transitions": True,
            "log_level": "info",
        }))
        config = load_config(path)
        assert config.db_url == "sqlite:///other.db"
        assert config.strict_transitions is True
        assert config.log_level == "INFO"

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "tracker.json"
        path.write_text(json.dumps({"db_url": "sqlite:///file.db"}))
        monkeypatch.setenv("COMPLAINT_TRACKER_DB_URL", "sqlite:///env.db")
        monkeypatch.setenv("COMPLAINT_TRACKER_STRICT", "yes")
        monkeypatch.setenv("COMPLAINT_TRACKER_LOG_LEVEL", "debug")
        config = load_config(path)
        assert config.db_url == "sqlite:///env.db"
        assert config.strict_transitions is True
        assert config.log_level == "DEBUG"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.json")

    def test_malformed_file(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(json.JSONDecodeError):
            load_config(path)
