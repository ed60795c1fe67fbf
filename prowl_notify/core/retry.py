"""
Backoff helpers for polling the Prowl server.

Only the retrieve api key poll uses them: the user approves the request
in a browser at some point, until then Prowl answers 409. Add and verify
requests are never retried automatically since each one costs an api call.
"""

import asyncio
import logging
import random
import time
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

from prowl_notify.exceptions import PairingNotApprovedError, ProwlTransportError

logger = logging.getLogger(__name__)

T = TypeVar('T')


class RetryConfig:
    """How often and how long to retry a Prowl call."""

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        exponential_base: float = 2.0,
        jitter: bool = True,
        retryable_exceptions: Sequence[type[Exception]] = (ProwlTransportError,),
        max_elapsed: Optional[float] = None,
    ):
        """
        Args:
            max_attempts: Attempts including the first one
            base_delay: Seconds to wait after the first failure
            max_delay: Upper bound for a single wait
            exponential_base: Growth factor of the wait per attempt
            jitter: Spread waits by up to 25% in either direction
            retryable_exceptions: Errors worth another attempt; anything else is raised at once
            max_elapsed: Give up once this many seconds have passed, regardless of attempts left
        """
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter
        self.retryable_exceptions = tuple(retryable_exceptions)
        self.max_elapsed = max_elapsed


# Transport hiccups only
RETRY_STANDARD = RetryConfig(
    max_attempts=3,
    base_delay=1.0,
    max_delay=10.0,
)

# User approval in the browser; gives up after five minutes
RETRY_PAIRING = RetryConfig(
    max_attempts=15,
    base_delay=5.0,
    max_delay=30.0,
    retryable_exceptions=(PairingNotApprovedError, ProwlTransportError),
    max_elapsed=300.0,
)


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """
    Seconds to wait after the given failed attempt.

    Args:
        attempt: Zero-based number of the attempt that failed
        config: Retry configuration

    Returns:
        Exponential delay capped at max_delay, with optional jitter
    """
    delay = min(config.base_delay * config.exponential_base ** attempt, config.max_delay)

    if config.jitter:
        spread = delay * 0.25
        delay += random.uniform(-spread, spread)

    return max(0.0, delay)


async def retry_async(
    func: Callable[..., Awaitable[T]],
    *args,
    config: RetryConfig = RETRY_STANDARD,
    operation_name: Optional[str] = None,
    **kwargs,
) -> T:
    """
    Await func until it succeeds or the retry budget is used up.

    Args:
        func: Coroutine function to call
        *args: Positional arguments for func
        config: Retry configuration
        operation_name: Name used in log lines (defaults to func.__name__)
        **kwargs: Keyword arguments for func

    Returns:
        Result of the first successful call

    Raises:
        The error of the last attempt once attempts or time run out, or
        any error not listed in config.retryable_exceptions right away

    Example:
        api_key = await retry_async(
            client.retrieve_api_key,
            config=RETRY_PAIRING,
            operation_name="retrieve_api_key",
        )
    """
    name = operation_name or getattr(func, '__name__', 'prowl call')
    started = time.monotonic()
    attempt = 0

    while True:
        try:
            return await func(*args, **kwargs)
        except config.retryable_exceptions as e:
            delay = calculate_delay(attempt, config)
            attempt += 1
            elapsed = time.monotonic() - started

            out_of_attempts = attempt >= config.max_attempts
            out_of_time = config.max_elapsed is not None and elapsed + delay > config.max_elapsed
            if out_of_attempts or out_of_time:
                logger.error(
                    f"{name} gave up after {attempt} attempts: {e}",
                    extra={
                        "event_type": "retry_exhausted",
                        "operation": name,
                        "attempts": attempt,
                        "elapsed_seconds": round(elapsed, 1),
                        "error_type": type(e).__name__,
                    }
                )
                raise

            logger.info(
                f"{name} attempt {attempt}/{config.max_attempts} failed, next try in {delay:.1f}s",
                extra={
                    "event_type": "retry_attempt",
                    "operation": name,
                    "attempt": attempt,
                    "delay_seconds": delay,
                    "error_type": type(e).__name__,
                    "code": getattr(e, "code", None),
                }
            )
            await asyncio.sleep(delay)
