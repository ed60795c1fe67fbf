"""
Fluent builder for ProwlClient.

An alternative to assembling a ClientConfig by hand:

    client = (
        ClientBuilder()
        .set_api_key(api_key)
        .set_application("backup")
        .build()
    )
"""

import logging
from typing import Any, Iterable, List, Optional

from prowl_notify.client import ProwlClient
from prowl_notify.models import ClientConfig


class ClientBuilder:
    """Collects client settings; build() validates them all at once."""

    def __init__(self):
        self._api_keys: List[str] = []
        self._provider_key = ""
        self._token = ""
        self._application = ""
        self._logger: Optional[logging.Logger] = None
        self._to_prowl_label: Optional[str] = None

    def set_api_key(self, api_key: str) -> "ClientBuilder":
        """Add an api key. Needed for add requests."""
        self._api_keys.append(api_key)
        return self

    def set_api_keys(self, api_keys: Iterable[str]) -> "ClientBuilder":
        """Replace the api keys collected so far."""
        self._api_keys = list(api_keys)
        return self

    def set_provider_key(self, provider_key: str) -> "ClientBuilder":
        """Provider key, required to retrieve new api keys and for higher api limits."""
        self._provider_key = provider_key
        return self

    def set_token(self, token: str) -> "ClientBuilder":
        """Token of a retrieve request approved while another process was running."""
        self._token = token
        return self

    def set_application(self, application: str) -> "ClientBuilder":
        self._application = application
        return self

    def set_logger(self, logger: logging.Logger) -> "ClientBuilder":
        """Logger used by log() and log_sync()."""
        self._logger = logger
        return self

    def set_to_prowl_label(self, label: str) -> "ClientBuilder":
        """Label appended to log lines of messages that are also sent to Prowl."""
        self._to_prowl_label = label
        return self

    def build_config(self) -> ClientConfig:
        """
        Validate the collected settings.

        Raises:
            pydantic.ValidationError: If any setting is invalid
        """
        return ClientConfig(
            api_keys=self._api_keys,
            provider_key=self._provider_key,
            token=self._token,
            application=self._application,
            logger=self._logger,
            to_prowl_label=self._to_prowl_label,
        )

    def build(self, **client_kwargs: Any) -> ProwlClient:
        """
        Create the client.

        Args:
            **client_kwargs: Passed to ProwlClient (base_url, http_client, ...)

        Raises:
            pydantic.ValidationError: If any setting is invalid
        """
        return ProwlClient(self.build_config(), **client_kwargs)
