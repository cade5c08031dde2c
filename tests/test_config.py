"""
Tests for configuration loading.
"""

import pytest
from pydantic import ValidationError

from timeslotengine.config import AppConfig, load_config


def _write(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestAppConfig:
    """Tests for AppConfig."""

    def test_defaults(self):
        config = AppConfig()

        assert config.timezone == "Europe/Sofia"
        assert config.lookup_timeout_seconds == 5.0
        assert config.self_service is False
        assert config.cache.enabled is False

    def test_load_from_yaml(self, tmp_path):
        path = _write(
            tmp_path,
            "timezone: Europe/Berlin\n"
            "self_service: true\n"
            "log_level: debug\n"
            "data_file: data/bookings.json\n"
            "cache:\n"
            "  enabled: true\n"
            "  ttl_seconds: 60\n",
        )

        config = AppConfig.load_from_yaml(path)

        assert config.timezone == "Europe/Berlin"
        assert config.self_service is True
        assert config.log_level == "DEBUG"
        assert config.data_file == tmp_path / "data" / "bookings.json"
        assert config.cache.enabled is True
        assert config.cache.ttl_seconds == 60

    def test_empty_file_gives_defaults(self, tmp_path):
        assert AppConfig.load_from_yaml(_write(tmp_path, "")) == AppConfig()

    def test_unknown_timezone(self):
        with pytest.raises(ValidationError, match="Unknown timezone"):
            AppConfig(timezone="Mars/Olympus_Mons")

    def test_unknown_log_level(self):
        with pytest.raises(ValidationError, match="Unknown log level"):
            AppConfig(log_level="chatty")

    def test_non_positive_values(self):
        with pytest.raises(ValidationError):
            AppConfig(lookup_timeout_seconds=0)
        with pytest.raises(ValidationError):
            AppConfig(cache={"ttl_seconds": 0})

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ValueError, match="Invalid YAML"):
            AppConfig.load_from_yaml(_write(tmp_path, "timezone: [unclosed"))

    def test_root_must_be_a_mapping(self, tmp_path):
        with pytest.raises(ValueError, match="mapping"):
            AppConfig.load_from_yaml(_write(tmp_path, "- a\n- b\n"))


class TestLoadConfig:
    """Tests for load_config."""

    def test_explicit_path_must_exist(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            load_config(tmp_path / "missing.yaml")

    def test_falls_back_to_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("timeslotengine.config.get_default_config_path", lambda: tmp_path / "config.yaml")

        assert load_config() == AppConfig()
