"""Tests for validated cache settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from tiercache.config.schema import CacheSettings, load_settings


class TestCacheSettings:
    def test_defaults(self):
        settings = CacheSettings()
        assert settings.default_ttl == 86400.0
        assert settings.use_memory is True
        assert settings.cache_dir.name == "tiercache"

    def test_expands_user(self):
        settings = CacheSettings(cache_dir="~/somewhere")
        assert settings.cache_dir == Path.home() / "somewhere"

    def test_negative_ttl_allowed(self):
        assert CacheSettings(default_ttl=-5).default_ttl == -5

    def test_memory_limits_validated(self):
        with pytest.raises(ValidationError):
            CacheSettings(memory_max_entries=0)
        with pytest.raises(ValidationError):
            CacheSettings(memory_max_mb=0)

    def test_log_level_normalized(self):
        assert CacheSettings(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level(self):
        with pytest.raises(ValidationError):
            CacheSettings(log_level="chatty")

    def test_extra_keys_ignored(self):
        settings = CacheSettings(something_else=1)
        assert not hasattr(settings, "something_else")


class TestLoadSettings:
    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TIERCACHE_DIR", str(tmp_path))
        monkeypatch.setenv("TIERCACHE_USE_MEMORY", "no")
        settings = load_settings()
        assert settings.cache_dir == tmp_path
        assert settings.use_memory is False

    def test_runtime_override(self, tmp_path):
        settings = load_settings(cache_dir=str(tmp_path), default_ttl=0)
        assert settings.cache_dir == tmp_path
        assert settings.default_ttl == 0

    def test_unconvertible_env_value_ignored(self, monkeypatch):
        monkeypatch.setenv("TIERCACHE_MEMORY_MAX_ENTRIES", "lots")
        assert load_settings().memory_max_entries == 1000

    def test_out_of_range_env_value_rejected(self, monkeypatch):
        monkeypatch.setenv("TIERCACHE_MEMORY_MAX_ENTRIES", "0")
        with pytest.raises(ValidationError):
            load_settings()
