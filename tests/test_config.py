"""Tests for settings loading and validation."""

import os
import sys

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from gptstream.core.config import Settings, load_settings
from gptstream.domain.exceptions import ConfigError


@pytest.fixture
def clean_env(monkeypatch):
    for key in ("URL_PREFIX", "OPENAI_API_KEY", "HEADER_TIMEOUT_SECONDS", "SESSION_TIMEOUT_SECONDS"):
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestLoadSettings:
    """Test suite for load_settings."""

    def test_reads_environment(self, clean_env):
        clean_env.setenv("URL_PREFIX", "https://proxy.example/v1")
        clean_env.setenv("OPENAI_API_KEY", "sk-env")

        settings = load_settings(_env_file=None)

        assert isinstance(settings, Settings)
        assert settings.url_prefix == "https://proxy.example/v1"
        assert settings.openai_api_key == "sk-env"

    def test_defaults(self, clean_env):
        settings = load_settings(_env_file=None, url_prefix="https://x/v1", openai_api_key="k")
        assert settings.model == "gpt-3.5-turbo"
        assert settings.system_prompt == "You are a helpful assistant."
        assert settings.user_prompt == "Hello!"
        assert settings.header_timeout_seconds == 10.0
        assert settings.session_timeout_seconds == 120.0
        assert settings.terminal_sentinel_lines == 1

    def test_reads_env_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("URL_PREFIX=https://file.example/v1\nOPENAI_API_KEY=sk-file\n")

        settings = load_settings(_env_file=str(env_file))

        assert settings.url_prefix == "https://file.example/v1"
        assert settings.openai_api_key == "sk-file"

    def test_trailing_slash_removed(self, clean_env):
        settings = load_settings(_env_file=None, url_prefix="https://x/v1/", openai_api_key="k")
        assert settings.url_prefix == "https://x/v1"

    def test_missing_keys_raise_config_error(self, clean_env):
        with pytest.raises(ConfigError) as exc_info:
            load_settings(_env_file=None)
        assert "url_prefix" in exc_info.value.details["fields"]
        assert "openai_api_key" in exc_info.value.details["fields"]

    def test_empty_api_key_rejected(self, clean_env):
        with pytest.raises(ConfigError):
            load_settings(_env_file=None, url_prefix="https://x/v1", openai_api_key="  ")

    def test_header_timeout_must_be_shorter(self, clean_env):
        with pytest.raises(ConfigError) as exc_info:
            load_settings(
                _env_file=None,
                url_prefix="https://x/v1",
                openai_api_key="k",
                header_timeout_seconds=30.0,
                session_timeout_seconds=30.0,
            )
        assert any("shorter" in msg for msg in exc_info.value.details["errors"])

    @pytest.mark.parametrize("lines", [0, 3])
    def test_sentinel_lines_bounded(self, clean_env, lines):
        with pytest.raises(ConfigError):
            load_settings(
                _env_file=None,
                url_prefix="https://x/v1",
                openai_api_key="k",
                terminal_sentinel_lines=lines,
            )
