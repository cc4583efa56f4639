"""Tests for environment-driven configuration."""

import logging

import pytest

from fluentmasker.core.config import MaskerConfig, get_masker_config, reset_masker_config

ENV_VARS = (
    "FLUENTMASKER_COVERAGE_MODE",
    "FLUENTMASKER_LOG_LEVEL",
    "FLUENTMASKER_LOG_FORMAT",
    "FLUENTMASKER_JSON_INDENT",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestMaskerConfig:
    def test_defaults(self):
        config = MaskerConfig()
        assert config.default_coverage_mode == "exclude"
        assert config.log_level == "WARNING"
        assert config.log_format == "text"
        assert config.json_indent is None

    def test_normalizes_case(self):
        config = MaskerConfig(default_coverage_mode="INCLUDE", log_level="debug", log_format="JSON")
        assert config.default_coverage_mode == "include"
        assert config.log_level == "DEBUG"
        assert config.log_format == "json"

    def test_invalid_values_fall_back_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="fluentmasker"):
            config = MaskerConfig(default_coverage_mode="partial", log_level="LOUD", json_indent=-2)
        assert config.default_coverage_mode == "exclude"
        assert config.log_level == "WARNING"
        assert config.json_indent is None
        assert "Invalid default_coverage_mode 'partial'" in caplog.text

    def test_to_dict(self):
        assert MaskerConfig(json_indent=2).to_dict() == {
            "default_coverage_mode": "exclude",
            "log_level": "WARNING",
            "log_format": "text",
            "json_indent": 2,
        }


class TestFromEnvironment:
    def test_reads_environment(self, clean_env):
        clean_env.setenv("FLUENTMASKER_COVERAGE_MODE", "include")
        clean_env.setenv("FLUENTMASKER_LOG_LEVEL", "info")
        clean_env.setenv("FLUENTMASKER_LOG_FORMAT", "json")
        clean_env.setenv("FLUENTMASKER_JSON_INDENT", "4")

        config = MaskerConfig.from_environment()
        assert config.default_coverage_mode == "include"
        assert config.log_level == "INFO"
        assert config.log_format == "json"
        assert config.json_indent == 4

    def test_blank_values_use_defaults(self, clean_env):
        clean_env.setenv("FLUENTMASKER_COVERAGE_MODE", "   ")
        assert MaskerConfig.from_environment().default_coverage_mode == "exclude"

    @pytest.mark.parametrize("raw", ["four", "-1"])
    def test_bad_indent_uses_default(self, clean_env, raw):
        clean_env.setenv("FLUENTMASKER_JSON_INDENT", raw)
        assert MaskerConfig.from_environment().json_indent is None


class TestGlobalConfig:
    def test_cached_until_reset(self, clean_env):
        first = get_masker_config()
        assert get_masker_config() is first

        clean_env.setenv("FLUENTMASKER_COVERAGE_MODE", "include")
        assert get_masker_config().default_coverage_mode == "exclude"

        reset_masker_config()
        assert get_masker_config().default_coverage_mode == "include"
