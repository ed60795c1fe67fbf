"""
Constants for the Prowl push notification API.

Endpoint paths, field limits and the error codes the Prowl server
returns in its XML envelope.
See: https://www.prowlapp.com/api.php
"""

# Prowl API base URL and paths
PROWL_BASE_URL = "https://api.prowlapp.com/publicapi/"
ADD_PATH = "add"
VERIFY_PATH = "verify"
RETRIEVE_TOKEN_PATH = "retrieve/token"
RETRIEVE_API_KEY_PATH = "retrieve/apikey"

# Field limits enforced by the Prowl server
KEY_LENGTH = 40  # api key, provider key and token
MAX_APPLICATION_LENGTH = 256
MAX_EVENT_LENGTH = 1024
MAX_DESCRIPTION_LENGTH = 10000
MAX_URL_LENGTH = 256

# Separator and marker used when the url is appended to the description
URL_SEPARATOR = " "
ELLIPSIS = "..."

# Priority range
MIN_PRIORITY = -2
MAX_PRIORITY = 2

# Rate limit bookkeeping before the first authoritative response
DEFAULT_REMAINING = 1000

# HTTP timeouts (seconds)
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0

# Log helper
DEFAULT_LOG_TIMEOUT_SECONDS = 30.0
DEFAULT_TO_PROWL_LABEL = "(copied to prowl)"
LOG_EVENT_MAX_LENGTH = 10
LOG_DESCRIPTION_MAX_LENGTH = 20

# Prowl error codes (code attribute of the <error> element)
PROWL_ERROR_CODES = {
    400: "Bad request, the parameters you provided did not validate",
    401: "Not authorized, the API key given is not valid and does not correspond to a user",
    405: "Method not allowed, you attempted to use a non-SSL connection to Prowl",
    406: "Not acceptable, your IP address has exceeded the API limit",
    409: "Not approved, the user has yet to approve your retrieve request",
    500: "Internal server error, something failed to execute properly on the Prowl side",
}

PROWL_UNAUTHORIZED_CODE = 401
PROWL_RATE_LIMIT_CODE = 406
PROWL_NOT_APPROVED_CODE = 409
