"""Tests for environment settings and their mapping onto ClientConfig."""

import pytest
from pydantic import ValidationError

from prowl_notify.constants import (
    DEFAULT_LOG_TIMEOUT_SECONDS,
    PROWL_BASE_URL,
)
from prowl_notify.core.config import Settings, client_config_from_settings
from tests.mocks import API_KEY, OTHER_API_KEY, PROVIDER_KEY


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run without PROWL_* variables and without a .env file."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "PROWL_API_KEYS", "PROWL_PROVIDER_KEY", "PROWL_TOKEN", "PROWL_APPLICATION",
        "PROWL_TO_PROWL_LABEL", "PROWL_BASE_URL", "PROWL_REQUEST_TIMEOUT",
        "PROWL_CONNECT_TIMEOUT", "PROWL_LOG_TIMEOUT", "LOG_LEVEL", "LOG_JSON",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    """Tests for Settings"""

    def test_defaults(self, clean_env):
        settings = Settings()

        assert settings.api_keys_list == []
        assert settings.credentials_ready is False
        assert settings.PROWL_BASE_URL == PROWL_BASE_URL
        assert settings.PROWL_LOG_TIMEOUT == DEFAULT_LOG_TIMEOUT_SECONDS
        assert settings.PROWL_TO_PROWL_LABEL is None
        assert settings.LOG_LEVEL == "INFO"

    def test_api_keys_from_comma_separated_env(self, clean_env):
        clean_env.setenv("PROWL_API_KEYS", f" {API_KEY}, {OTHER_API_KEY},")

        settings = Settings()

        assert settings.api_keys_list == [API_KEY, OTHER_API_KEY]
        assert settings.credentials_ready is True

    def test_env_file(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text(f"PROWL_APPLICATION=backup\nPROWL_API_KEYS={API_KEY}\n")

        settings = Settings()

        assert settings.PROWL_APPLICATION == "backup"
        assert settings.api_keys_list == [API_KEY]

    def test_base_url_gets_trailing_slash(self, clean_env):
        clean_env.setenv("PROWL_BASE_URL", "http://localhost:8080/publicapi")

        assert Settings().PROWL_BASE_URL == "http://localhost:8080/publicapi/"

    def test_base_url_must_be_http(self, clean_env):
        clean_env.setenv("PROWL_BASE_URL", "ftp://example.com/")

        with pytest.raises(ValidationError):
            Settings()

    @pytest.mark.parametrize("name", [
        "PROWL_REQUEST_TIMEOUT", "PROWL_CONNECT_TIMEOUT", "PROWL_LOG_TIMEOUT",
    ])
    def test_timeouts_must_be_positive(self, clean_env, name):
        clean_env.setenv(name, "0")

        with pytest.raises(ValidationError):
            Settings()


class TestClientConfigFromSettings:
    """Tests for client_config_from_settings"""

    def test_maps_all_fields(self, clean_env):
        clean_env.setenv("PROWL_API_KEYS", API_KEY)
        clean_env.setenv("PROWL_PROVIDER_KEY", PROVIDER_KEY)
        clean_env.setenv("PROWL_APPLICATION", "backup")
        clean_env.setenv("PROWL_TO_PROWL_LABEL", "[prowl]")

        config = client_config_from_settings(Settings())

        assert config.api_keys == [API_KEY]
        assert config.provider_key == PROVIDER_KEY
        assert config.token == ""
        assert config.application == "backup"
        assert config.to_prowl_label == "[prowl]"

    def test_invalid_key_rejected(self, clean_env):
        clean_env.setenv("PROWL_API_KEYS", "too-short")

        with pytest.raises(ValidationError):
            client_config_from_settings(Settings())
