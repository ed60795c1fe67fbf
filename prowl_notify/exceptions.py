"""
Exceptions raised by the Prowl client.

Local validation errors never reach the network. Transport, decode and
API errors describe what went wrong with a request to the Prowl server.
"""

from datetime import datetime
from typing import Optional


class ProwlError(Exception):
    """Base class for all Prowl client errors."""
    pass


class ProwlValidationError(ProwlError, ValueError):
    """Raised when an argument or the client state rules out a request."""
    pass


class MissingCredentialsError(ProwlValidationError):
    """Raised when the api key, provider key or token needed for a call is not configured."""
    pass


class ClientUnauthorizedError(ProwlValidationError):
    """Raised when the client's api keys were rejected by an earlier add request."""
    pass


class ProwlTransportError(ProwlError):
    """Raised when the HTTP request to the Prowl server fails."""
    pass


class ProwlDecodeError(ProwlError):
    """Raised when the Prowl server response is not a readable XML envelope."""
    pass


class ProwlAPIError(ProwlError):
    """Raised when the Prowl server answers with an <error> element."""

    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message
        super().__init__(f"prowl returned error code {code}: {message}")


class UnauthorizedError(ProwlAPIError):
    """Prowl rejected the api key or provider key (401)."""
    pass


class RateLimitExceededError(ProwlAPIError):
    """Prowl reports the api call limit is exceeded (406)."""
    pass


class PairingNotApprovedError(ProwlAPIError):
    """The user has not approved the retrieve request yet (409). Retry later."""
    pass


class RateLimitExhaustedError(ProwlError):
    """Raised locally when no api calls are left until the reset date."""

    def __init__(self, reset_at: Optional[datetime]):
        self.reset_at = reset_at
        super().__init__(f"api requests spent; come back after {reset_at}")
