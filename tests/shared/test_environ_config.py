"""Tests for EnvironConfig typed accessors."""

import pytest

from streampanel.shared.config import EnvironConfig, config


@pytest.fixture
def values(monkeypatch):
    patched = {}
    monkeypatch.setattr(config, "_config", patched)
    return patched


class TestEnvironConfig:
    def test_singleton(self):
        assert EnvironConfig() is config

    def test_get_int(self, values):
        values["PLAYBACK_WARMUP_MS"] = " 3000 "
        assert config.get_int("PLAYBACK_WARMUP_MS", 5000) == 3000

    def test_get_int_invalid_falls_back(self, values):
        values["PLAYBACK_WARMUP_MS"] = "soon"
        assert config.get_int("PLAYBACK_WARMUP_MS", 5000) == 5000

    def test_get_int_below_minimum_falls_back(self, values):
        values["MAX_PANELS"] = "0"
        assert config.get_int("MAX_PANELS", 4, minimum=1) == 4

    def test_get_int_missing(self, values):
        assert config.get_int("MAX_PANELS", 4) == 4

    @pytest.mark.parametrize("raw,expected", [("true", True), ("1", True), ("off", False), ("", False)])
    def test_get_bool(self, values, raw, expected):
        values["DEBUG"] = raw
        assert config.get_bool("DEBUG") is expected

    def test_missing_key_raises(self, values):
        with pytest.raises(KeyError):
            config["STREAM_BACKEND_BASE_URL"]
