"""
Prowl push notification client.

Sends notifications to iOS devices running the Prowl app and supports
the complete Prowl API: add, verify, retrieve/token and retrieve/apikey.
See: https://www.prowlapp.com/api.php
"""

from prowl_notify.builder import ClientBuilder
from prowl_notify.client import ProwlClient, compose_description
from prowl_notify.exceptions import (
    ClientUnauthorizedError,
    MissingCredentialsError,
    PairingNotApprovedError,
    ProwlAPIError,
    ProwlDecodeError,
    ProwlError,
    ProwlTransportError,
    ProwlValidationError,
    RateLimitExceededError,
    RateLimitExhaustedError,
    UnauthorizedError,
)
from prowl_notify.models import (
    ClientConfig,
    Priority,
    ProwlResponse,
    parse_response,
)

__version__ = "1.0.0"

__all__ = [
    # Client
    "ProwlClient",
    "ClientBuilder",
    "ClientConfig",
    "Priority",
    "compose_description",
    # Responses
    "ProwlResponse",
    "parse_response",
    # Errors
    "ProwlError",
    "ProwlValidationError",
    "MissingCredentialsError",
    "ClientUnauthorizedError",
    "ProwlTransportError",
    "ProwlDecodeError",
    "ProwlAPIError",
    "UnauthorizedError",
    "RateLimitExceededError",
    "PairingNotApprovedError",
    "RateLimitExhaustedError",
]
