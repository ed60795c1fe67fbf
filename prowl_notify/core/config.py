"""Library configuration using Pydantic Settings"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import List, Optional

from prowl_notify.constants import (
    DEFAULT_CONNECT_TIMEOUT_SECONDS,
    DEFAULT_LOG_TIMEOUT_SECONDS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    PROWL_BASE_URL,
)
from prowl_notify.models import ClientConfig


class Settings(BaseSettings):
    """Settings loaded from environment variables"""

    # Credentials
    # Stored as string to avoid pydantic-settings JSON parsing; use api_keys_list property
    PROWL_API_KEYS: str = ""
    PROWL_PROVIDER_KEY: str = ""
    PROWL_TOKEN: str = ""  # Only needed to resume an interrupted retrieve flow

    @property
    def api_keys_list(self) -> List[str]:
        """Parse PROWL_API_KEYS from comma-separated string"""
        return [key.strip() for key in self.PROWL_API_KEYS.split(",") if key.strip()]

    # Messages
    PROWL_APPLICATION: str = ""
    PROWL_TO_PROWL_LABEL: Optional[str] = None

    # HTTP
    PROWL_BASE_URL: str = PROWL_BASE_URL
    PROWL_REQUEST_TIMEOUT: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    PROWL_CONNECT_TIMEOUT: float = DEFAULT_CONNECT_TIMEOUT_SECONDS

    # Bound for log(); log_sync() always waits
    PROWL_LOG_TIMEOUT: float = DEFAULT_LOG_TIMEOUT_SECONDS

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    @field_validator('PROWL_BASE_URL', mode='after')
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Base URL must be http(s) and end with a slash so paths can be appended."""
        if not v.startswith(("https://", "http://")):
            raise ValueError("PROWL_BASE_URL must be an http(s) URL")
        if not v.endswith("/"):
            v += "/"
        return v

    @field_validator('PROWL_REQUEST_TIMEOUT', 'PROWL_CONNECT_TIMEOUT', 'PROWL_LOG_TIMEOUT', mode='after')
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Timeouts must be positive."""
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @property
    def credentials_ready(self) -> bool:
        """Check if at least one api key is configured for add requests."""
        return len(self.api_keys_list) > 0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


def client_config_from_settings(source: Optional[Settings] = None) -> ClientConfig:
    """
    Build a ClientConfig from environment settings.

    Args:
        source: Settings to read (defaults to the module-level settings)

    Returns:
        Validated ClientConfig

    Raises:
        pydantic.ValidationError: If a configured key has the wrong length
    """
    source = source or settings
    return ClientConfig(
        api_keys=source.api_keys_list,
        provider_key=source.PROWL_PROVIDER_KEY,
        token=source.PROWL_TOKEN,
        application=source.PROWL_APPLICATION,
        to_prowl_label=source.PROWL_TO_PROWL_LABEL,
    )


settings = Settings()
