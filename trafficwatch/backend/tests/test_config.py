"""
tests/test_config.py

Tests for config.py — Pydantic Settings validation and defaults.
"""

from __future__ import annotations

import pytest

from trafficwatch.backend.config import Settings, load_settings
from trafficwatch.backend.errors import ConfigError


class TestSettingsDefaults:

    def test_default_data_file(self):
        s = Settings()
        assert s.DATA_FILE == "TrafficDataFile.txt"

    def test_default_pipeline_shape(self):
        s = Settings()
        assert s.QUEUE_CAPACITY == 50
        assert s.WINDOW_SECONDS == 3600.0
        assert s.TOP_N == 3
        assert s.RUN_MODE == "threaded"

    def test_api_disabled_by_default(self):
        s = Settings()
        assert s.API_ENABLED is False
        assert s.API_PORT == 8000

    def test_default_log_level(self):
        s = Settings()
        assert s.LOG_LEVEL == "INFO"


class TestSettingsOverrides:

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("QUEUE_CAPACITY", "7")
        monkeypatch.setenv("WINDOW_SECONDS", "60")
        monkeypatch.setenv("top_n", "1")
        s = Settings()
        assert s.QUEUE_CAPACITY == 7
        assert s.WINDOW_SECONDS == 60.0
        assert s.TOP_N == 1

    def test_log_level_normalised(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", " debug ")
        assert Settings().LOG_LEVEL == "DEBUG"

    def test_load_settings_ignores_none_overrides(self, monkeypatch):
        monkeypatch.setenv("TOP_N", "5")
        s = load_settings(TOP_N=None, QUEUE_CAPACITY=9)
        assert s.TOP_N == 5
        assert s.QUEUE_CAPACITY == 9


class TestSettingsValidation:

    @pytest.mark.parametrize("field,value", [
        ("QUEUE_CAPACITY", 0),
        ("QUEUE_CAPACITY", -3),
        ("WINDOW_SECONDS", 0),
        ("WINDOW_SECONDS", -60),
        ("TOP_N", 0),
        ("RECENT_WINDOWS", 0),
        ("RUN_MODE", "parallel"),
        ("LOG_LEVEL", "LOUD"),
    ])
    def test_invalid_values_raise_config_error(self, field, value):
        with pytest.raises(ConfigError, match=field):
            load_settings(**{field: value})

    def test_invalid_env_value_raises_config_error(self, monkeypatch):
        monkeypatch.setenv("QUEUE_CAPACITY", "zero")
        with pytest.raises(ConfigError):
            load_settings()
