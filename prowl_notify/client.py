"""
Prowl client.

Sends push notifications to iOS devices running the Prowl app and covers
the rest of the Prowl API: verify, retrieve/token and retrieve/apikey.
See: https://www.prowlapp.com/api.php

Features:
- Lazily created httpx AsyncClient (or an injected one)
- Local argument validation before any request goes out
- Rate limit bookkeeping from every <success> element
- Add requests disabled after the server rejects the api keys (401)
- log() / log_sync(): write to the log and notify the device in parallel
"""

import asyncio
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Optional, Set, Union
from urllib.parse import urljoin

import httpx

from prowl_notify.constants import (
    ADD_PATH,
    DEFAULT_REMAINING,
    DEFAULT_TO_PROWL_LABEL,
    ELLIPSIS,
    KEY_LENGTH,
    LOG_DESCRIPTION_MAX_LENGTH,
    LOG_EVENT_MAX_LENGTH,
    MAX_DESCRIPTION_LENGTH,
    MAX_EVENT_LENGTH,
    MAX_PRIORITY,
    MAX_URL_LENGTH,
    MIN_PRIORITY,
    PROWL_ERROR_CODES,
    PROWL_NOT_APPROVED_CODE,
    PROWL_RATE_LIMIT_CODE,
    PROWL_UNAUTHORIZED_CODE,
    RETRIEVE_API_KEY_PATH,
    RETRIEVE_TOKEN_PATH,
    URL_SEPARATOR,
    VERIFY_PATH,
)
from prowl_notify.core.config import settings
from prowl_notify.core.logging_config import get_default_log_sink, mask_key
from prowl_notify.core.retry import RETRY_PAIRING, RetryConfig, retry_async
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
    ErrorElement,
    ProwlResponse,
    SuccessElement,
    parse_response,
)

logger = logging.getLogger(__name__)

_API_ERRORS = {
    PROWL_UNAUTHORIZED_CODE: UnauthorizedError,
    PROWL_RATE_LIMIT_CODE: RateLimitExceededError,
    PROWL_NOT_APPROVED_CODE: PairingNotApprovedError,
}


def compose_description(description: str, url: str) -> str:
    """
    Append a url to a description without exceeding the description limit.

    If description, separator and url do not fit, the description is cut
    and marked with an ellipsis so the url always survives intact.

    Args:
        description: Trimmed message body
        url: Trimmed url (at most 256 chars)

    Returns:
        "<description> <url>", at most 10000 chars long
    """
    if len(description) + len(url) + 4 > MAX_DESCRIPTION_LENGTH:
        keep = MAX_DESCRIPTION_LENGTH - len(url) - 4
        description = description[:keep].strip() + ELLIPSIS
    return description + URL_SEPARATOR + url


def _shorten(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit - len(ELLIPSIS)].strip() + ELLIPSIS
    return text


def _validate_key(key: str, name: str = "api key") -> None:
    if len(key) != KEY_LENGTH:
        raise ProwlValidationError(f"{name} must be exactly {KEY_LENGTH} chars long")


def _api_error(error: ErrorElement) -> ProwlAPIError:
    # Fall back to the documented reason when the element carries no text
    message = error.message or PROWL_ERROR_CODES.get(error.code, "unknown error")
    return _API_ERRORS.get(error.code, ProwlAPIError)(error.code, message)


class ProwlClient:
    """
    Client for the Prowl push notification API.

    Usage:
        client = ProwlClient(ClientConfig(
            api_keys=["0123456789012345678901234567890123456789"],
            application="backup",
        ))
        async with client:
            remaining = await client.add(Priority.NORMAL, "Backup", "Backup finished")

    Retrieving a new api key for a user:
        approve_url = await client.retrieve_token()
        # present approve_url to the user, persist client.config() if needed
        api_key = await client.wait_for_api_key()

    Configuration, api keys and rate limit state are guarded by a lock, so
    they can be read and changed from any thread; requests run outside of
    it. An HTTP client created by ProwlClient belongs to one event loop:
    when the client is used from another loop (e.g. successive
    asyncio.run() calls) a new HTTP client is created for that loop. An
    injected http_client is always used as is.

    Attributes:
        remaining: Api calls left as last reported by Prowl
        reset_at: When Prowl resets the api call counter
        unauthorized: True once an add request was rejected with 401
    """

    def __init__(
        self,
        config: Optional[Union[ClientConfig, Dict[str, Any]]] = None,
        *,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[httpx.Timeout] = None,
        log_timeout: Optional[float] = None,
    ):
        """
        Initialize the Prowl client.

        Args:
            config: Client configuration; a dict is validated into a ClientConfig
            base_url: Prowl API base URL (default from settings.PROWL_BASE_URL)
            http_client: Optional shared httpx AsyncClient; not closed by close()
            timeout: HTTP timeout for a lazily created client
            log_timeout: Seconds log() waits for the add request

        Raises:
            pydantic.ValidationError: If the configuration is invalid
        """
        if config is None:
            config = ClientConfig()
        elif not isinstance(config, ClientConfig):
            config = ClientConfig.model_validate(config)

        api_keys = dict.fromkeys(config.api_keys)

        self._config = config.model_copy(update={
            "api_keys": list(config.api_keys),
            "logger": config.logger or get_default_log_sink(),
            "to_prowl_label": (
                DEFAULT_TO_PROWL_LABEL if config.to_prowl_label is None else config.to_prowl_label
            ),
        })
        self._api_keys: Dict[str, None] = api_keys
        self._api_keys_dirty = len(api_keys) != len(config.api_keys)
        self._lock = threading.Lock()

        self._unauthorized = False
        self._remaining = DEFAULT_REMAINING
        self._reset_at = datetime.now(timezone.utc)

        base = base_url or settings.PROWL_BASE_URL
        self._base_url = base if base.endswith("/") else base + "/"
        self._client = http_client
        self._client_loop: Optional[asyncio.AbstractEventLoop] = None
        self._owns_client = http_client is None
        self._timeout = timeout or httpx.Timeout(
            settings.PROWL_REQUEST_TIMEOUT, connect=settings.PROWL_CONNECT_TIMEOUT
        )
        self._log_timeout = log_timeout if log_timeout is not None else settings.PROWL_LOG_TIMEOUT

        # log() tasks that outlived their wait
        self._background_tasks: Set[asyncio.Task] = set()

        logger.debug(
            "Prowl client initialized",
            extra={
                "application": self._config.application,
                "api_keys": len(api_keys),
                "provider_key": mask_key(self._config.provider_key),
                "base_url": self._base_url,
            }
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def remaining(self) -> int:
        with self._lock:
            return self._remaining

    @property
    def reset_at(self) -> datetime:
        with self._lock:
            return self._reset_at

    @property
    def unauthorized(self) -> bool:
        with self._lock:
            return self._unauthorized

    @property
    def api_keys(self) -> FrozenSet[str]:
        """Snapshot of the api keys messages are sent to."""
        with self._lock:
            return frozenset(self._api_keys)

    def config(self) -> ClientConfig:
        """
        Return a snapshot of this client's configuration.

        Persist it (model_dump_json) to hand the provider key and a token
        from retrieve_token() to another process that continues with
        retrieve_api_key(). Rate limit state is not part of it.

        Returns:
            Copy of the current ClientConfig
        """
        with self._lock:
            if self._api_keys_dirty:
                self._config = self._config.model_copy(update={"api_keys": list(self._api_keys)})
                self._api_keys_dirty = False
            return self._config.model_copy(update={"api_keys": list(self._config.api_keys)})

    def add_api_key(self, api_key: str) -> None:
        """
        Add an api key messages are sent to. Adding a known key is a no-op.

        Raises:
            ProwlValidationError: If the key is not 40 chars long
        """
        _validate_key(api_key)
        with self._lock:
            if api_key in self._api_keys:
                return
            self._api_keys[api_key] = None
            self._api_keys_dirty = True

    def remove_api_key(self, api_key: str) -> None:
        """
        Remove an api key. Removing an unknown key is a no-op.

        Raises:
            ProwlValidationError: If the key is not 40 chars long
        """
        _validate_key(api_key)
        with self._lock:
            if api_key in self._api_keys:
                del self._api_keys[api_key]
                self._api_keys_dirty = True

    def _update_budget(self, success: SuccessElement) -> None:
        with self._lock:
            self._remaining = success.remaining
            self._reset_at = success.reset_at

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client for the running event loop."""
        loop = asyncio.get_running_loop()
        stale = self._owns_client and self._client_loop is not loop
        if self._client is None or self._client.is_closed or stale:
            self._client = httpx.AsyncClient(timeout=self._timeout)
            self._client_loop = loop
            self._owns_client = True
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        params: Optional[Dict[str, str]] = None,
        data: Optional[Dict[str, str]] = None,
    ) -> ProwlResponse:
        """
        Send a request to the Prowl server and interpret the XML response.

        Every <success> element refreshes the rate limit state, even when
        the envelope also carries an <error>.

        Raises:
            ProwlTransportError: Request could not be completed
            ProwlDecodeError: Response is not a Prowl XML document
            ProwlAPIError: Response carries an <error> element
        """
        client = await self._get_client()
        url = urljoin(self._base_url, path)

        try:
            if method == "POST":
                http_response = await client.post(url, data=data)
            else:
                http_response = await client.get(url, params=params)
        except httpx.HTTPError as e:
            logger.warning(
                f"Prowl {operation} request failed: {e}",
                extra={"operation": operation, "error_type": type(e).__name__},
            )
            raise ProwlTransportError(f"{operation} request to prowl server failed: {e}") from e
        except UnicodeEncodeError as e:
            # Lone surrogates, e.g. from file names decoded with surrogateescape
            raise ProwlValidationError(f"{operation} arguments can't be encoded as UTF-8: {e}") from e

        try:
            response = parse_response(http_response.content)
        except ProwlDecodeError as e:
            logger.warning(
                f"Unreadable Prowl {operation} response: {e}",
                extra={"operation": operation, "status_code": http_response.status_code},
            )
            raise

        if response.success is not None:
            self._update_budget(response.success)

        if response.error is not None:
            logger.warning(
                f"Prowl {operation} request returned error {response.error.code}",
                extra={
                    "operation": operation,
                    "code": response.error.code,
                    "reason": response.error.message,
                },
            )
            raise _api_error(response.error)

        logger.debug(
            f"Prowl {operation} request succeeded",
            extra={"operation": operation, "remaining": self.remaining},
        )
        return response

    # ------------------------------------------------------------------
    # API
    # ------------------------------------------------------------------

    async def add(
        self,
        priority: int,
        event: str,
        description: str,
        url: str = "",
        *,
        embed_url: bool = True,
    ) -> int:
        """
        Send a message to all configured api keys.

        Args:
            priority: -2 (very low) to 2 (emergency), see Priority
            event: Title of the message (at most 1024 chars)
            description: Message body (at most 10000 chars)
            url: Optional url the user can tap (at most 256 chars)
            embed_url: Also append the url to the description

        Returns:
            Number of api calls left

        Raises:
            ClientUnauthorizedError: Api keys were rejected by an earlier add
            MissingCredentialsError: No api key configured
            ProwlValidationError: Argument out of range
            RateLimitExhaustedError: No api calls left until reset_at
            ProwlTransportError, ProwlDecodeError, ProwlAPIError: Request failed
        """
        with self._lock:
            unauthorized = self._unauthorized
            has_keys = bool(self._api_keys)
            remaining = self._remaining
            reset_at = self._reset_at

        if unauthorized:
            raise ClientUnauthorizedError("the api key is known to be invalid")
        if not has_keys:
            raise MissingCredentialsError("a valid api key is required for add operation")
        if isinstance(priority, bool) or not isinstance(priority, int):
            raise ProwlValidationError(f"priority argument must be an int, not {type(priority).__name__}")
        if priority < MIN_PRIORITY or priority > MAX_PRIORITY:
            raise ProwlValidationError(
                f"priority argument must be in the range {MIN_PRIORITY}..{MAX_PRIORITY}"
            )
        if len(event) > MAX_EVENT_LENGTH:
            raise ProwlValidationError(f"event argument must not exceed {MAX_EVENT_LENGTH} chars")
        if len(description) > MAX_DESCRIPTION_LENGTH:
            raise ProwlValidationError(
                f"description argument must not exceed {MAX_DESCRIPTION_LENGTH} chars"
            )
        if len(url) > MAX_URL_LENGTH:
            raise ProwlValidationError(f"url argument must not exceed {MAX_URL_LENGTH} chars")
        if remaining <= 0 and reset_at > datetime.now(timezone.utc):
            raise RateLimitExhaustedError(reset_at)

        event = event.strip()
        description = description.strip()
        url = url.strip()

        if url and embed_url:
            description = compose_description(description, url)

        with self._lock:
            data = {
                "apikey": ",".join(self._api_keys),
                "providerkey": self._config.provider_key,
                "application": self._config.application,
            }
        data.update({
            "priority": str(int(priority)),
            "event": event,
            "description": description,
            "url": url,
        })

        try:
            await self._request("POST", ADD_PATH, "add", data=data)
        except UnauthorizedError:
            with self._lock:
                self._unauthorized = True
            logger.error(
                "Prowl rejected the api keys, add requests disabled for this client",
                extra={"api_keys": [mask_key(key) for key in data["apikey"].split(",")]},
            )
            raise

        remaining = self.remaining
        logger.info(
            "Prowl message sent",
            extra={"priority": int(priority), "remaining": remaining},
        )
        return remaining

    async def add_with_url(self, priority: int, event: str, description: str, url: str) -> int:
        """Same as add() with a url that is appended to the description."""
        return await self.add(priority, event, description, url)

    async def verify(self, api_key: str) -> int:
        """
        Verify an api key. Costs one api call.

        The key does not need to be configured on this client. A rejected
        key raises an error but does not disable add requests.

        Returns:
            Number of api calls left

        Raises:
            ProwlValidationError: Key is not 40 chars long
            ProwlTransportError, ProwlDecodeError, ProwlAPIError: Request failed
        """
        _validate_key(api_key)

        params = {"apikey": api_key}
        with self._lock:
            provider_key = self._config.provider_key
        if len(provider_key) == KEY_LENGTH:
            params["providerkey"] = provider_key

        await self._request("GET", VERIFY_PATH, "verify", params=params)
        return self.remaining

    async def retrieve_token(self) -> str:
        """
        Retrieve a token for a new api key.

        The user approves the request on the returned URL, after that
        retrieve_api_key() exchanges the token for the api key. The token
        is kept in config() so another client can finish the exchange.

        Returns:
            URL the user has to visit to approve the request

        Raises:
            MissingCredentialsError: No provider key configured
            ProwlDecodeError: Response carries no usable token
            ProwlTransportError, ProwlAPIError: Request failed
        """
        with self._lock:
            provider_key = self._config.provider_key
        if len(provider_key) != KEY_LENGTH:
            raise MissingCredentialsError("provider key is required for retrieve token operation")

        response = await self._request(
            "GET", RETRIEVE_TOKEN_PATH, "retrieve token", params={"providerkey": provider_key}
        )

        retrieve = response.retrieve
        if retrieve is None or len(retrieve.token) != KEY_LENGTH:
            raise ProwlDecodeError("retrieve token response carries no valid token")

        with self._lock:
            self._config = self._config.model_copy(update={"token": retrieve.token})

        logger.info("Prowl token retrieved", extra={"token": mask_key(retrieve.token)})
        return retrieve.url

    async def retrieve_api_key(self) -> str:
        """
        Exchange the approved token for a new api key and add it to this client.

        Returns:
            The new api key

        Raises:
            MissingCredentialsError: No provider key or token configured
            PairingNotApprovedError: User has not approved yet, retry later
            ProwlDecodeError: Response carries no usable api key
            ProwlTransportError, ProwlAPIError: Request failed
        """
        with self._lock:
            provider_key = self._config.provider_key
            token = self._config.token
        if len(token) != KEY_LENGTH:
            raise MissingCredentialsError("token is required for retrieve api key operation")
        if len(provider_key) != KEY_LENGTH:
            raise MissingCredentialsError("provider key is required for retrieve api key operation")

        response = await self._request(
            "GET",
            RETRIEVE_API_KEY_PATH,
            "retrieve api key",
            params={"providerkey": provider_key, "token": token},
        )

        retrieve = response.retrieve
        if retrieve is None or len(retrieve.api_key) != KEY_LENGTH:
            raise ProwlDecodeError("retrieve api key response carries no valid api key")

        self.add_api_key(retrieve.api_key)
        logger.info("Prowl api key retrieved", extra={"api_key": mask_key(retrieve.api_key)})
        return retrieve.api_key

    async def wait_for_api_key(self, retry_config: RetryConfig = RETRY_PAIRING) -> str:
        """Poll retrieve_api_key() until the user approves the request."""
        return await retry_async(
            self.retrieve_api_key,
            config=retry_config,
            operation_name="retrieve_api_key",
        )

    # ------------------------------------------------------------------
    # Log and notify
    # ------------------------------------------------------------------

    async def log(self, priority: int, event: str, description: str) -> None:
        """
        Write the message to the configured logger and send it to Prowl.

        Waits at most log_timeout seconds for the add request. A request
        that takes longer keeps running and logs its own failure. Errors
        are logged, never raised.
        """
        await self._log_and_notify(priority, event, description, self._log_timeout)

    async def log_sync(self, priority: int, event: str, description: str) -> None:
        """Same as log() but waits until the add request has finished."""
        await self._log_and_notify(priority, event, description, None)

    async def _log_and_notify(
        self,
        priority: int,
        event: str,
        description: str,
        wait: Optional[float],
    ) -> None:
        with self._lock:
            sink = self._config.logger
            label = self._config.to_prowl_label

        sink.info("%s: %s %s", event, description, label)

        if wait is None:
            await self._notify(sink, priority, event, description)
            return

        task = asyncio.create_task(self._notify(sink, priority, event, description))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

        done, _ = await asyncio.wait({task}, timeout=wait)
        if not done:
            sink.warning("Timeout while sending prowl message")

    async def _notify(
        self,
        sink: logging.Logger,
        priority: int,
        event: str,
        description: str,
    ) -> None:
        try:
            await self.add(priority, event, description)
        except Exception as e:
            # Unexpected errors get a traceback; dispatch errors never reach the caller
            sink.error(
                "can't send prowl message (\"%s: %s\") %s",
                _shorten(event, LOG_EVENT_MAX_LENGTH),
                _shorten(description, LOG_DESCRIPTION_MAX_LENGTH),
                e,
                exc_info=not isinstance(e, ProwlError),
            )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Wait for pending log() requests and close the HTTP client if owned."""
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
        if self._owns_client and self._client and not self._client.is_closed:
            # Connections of a finished event loop can only be dropped
            if self._client_loop is asyncio.get_running_loop():
                await self._client.aclose()
            self._client = None
            self._client_loop = None
            logger.debug("Prowl client closed")

    async def __aenter__(self) -> "ProwlClient":
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        await self.close()

    def __str__(self) -> str:
        with self._lock:
            return (
                f"prowl client for application {self._config.application}, "
                f"{self._remaining} api requests left, reset at {self._reset_at}"
            )
