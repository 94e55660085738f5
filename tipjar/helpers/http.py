"""HTTP client utilities and helpers."""

from asyncio import sleep
from functools import wraps

from typing import TYPE_CHECKING, Any, ParamSpec, TypeVar

import httpx

from tipjar.errors import RpcError, StoreError
from tipjar.helpers.constants import (
    DEFAULT_TIMEOUT,
    MAX_RETRIES,
    RETRY_BASE_DELAY,
    RETRY_MAX_DELAY,
)
from tipjar.helpers.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


logger = get_logger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

RETRYABLE_ERRORS: tuple[type[Exception], ...] = (httpx.HTTPError, RpcError, StoreError)


def is_transient(error: Exception) -> bool:
    """Whether another attempt could succeed.

    Store errors with a 4xx status (unknown creator, bad payload) are final.
    """
    if isinstance(error, StoreError) and error.status_code is not None:
        return error.status_code >= 500
    return True


def retry_with_backoff(
    max_retries: int = MAX_RETRIES,
    base_delay: float = RETRY_BASE_DELAY,
    max_delay: float = RETRY_MAX_DELAY,
    *,
    retry_on: tuple[type[Exception], ...] = RETRYABLE_ERRORS,
    log_errors: bool = True,
) -> "Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]":
    """Decorator to retry idempotent async reads with exponential backoff.

    Only for reads such as balances, gas price or store listings. Transaction
    submission must never be wrapped, resending a transfer can pay twice.

    Args:
        max_retries: Maximum number of attempts (default: 3)
        base_delay: Initial delay in seconds (default: 1.0)
        max_delay: Maximum delay between retries (default: 10.0)
        retry_on: Exception types that trigger another attempt
        log_errors: Whether to log retry attempts (default: True)

    Returns:
        Decorated function that retries on the given exception types

    Example:
        ```python
        from tipjar.helpers.http import retry_with_backoff

        @retry_with_backoff(max_retries=3, base_delay=2.0)
        async def read_balance(client: httpx.AsyncClient, address: str) -> int:
            return await rpc.get_balance(client, address)

        # Will try up to 3 times with delays of 2s, 4s
        ```
    """

    def decorator(func: "Callable[P, Awaitable[T]]") -> "Callable[P, Awaitable[T]]":
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            for attempt in range(max_retries):
                try:
                    return await func(*args, **kwargs)
                except retry_on as e:
                    if not is_transient(e):
                        raise
                    if attempt == max_retries - 1:
                        if log_errors:
                            logger.error(
                                "%s failed after %d attempts",
                                func.__name__,
                                max_retries,
                            )
                        raise
                    if log_errors:
                        logger.warning(
                            "%s error (attempt %d/%d): %s",
                            func.__name__,
                            attempt + 1,
                            max_retries,
                            e,
                        )

                # Exponential backoff with max_delay cap
                delay = min(base_delay * (2**attempt), max_delay)
                await sleep(delay)

            msg = f"{func.__name__} called with max_retries={max_retries}"
            raise ValueError(msg)

        return wrapper

    return decorator


def create_http_client(
    timeout: float = DEFAULT_TIMEOUT, **kwargs: Any
) -> httpx.AsyncClient:
    """Create a configured httpx AsyncClient.

    Args:
        timeout: Default timeout in seconds (default: DEFAULT_TIMEOUT)
        **kwargs: Additional httpx.AsyncClient kwargs

    Returns:
        Configured AsyncClient instance

    Example:
        ```python
        from tipjar.helpers.http import create_http_client

        async with create_http_client(timeout=60.0) as client:
            info = await rpc.get_network_info(client)
        ```
    """
    headers = {"Content-Type": "application/json", **kwargs.pop("headers", {})}
    return httpx.AsyncClient(timeout=timeout, headers=headers, **kwargs)


__all__ = [
    "RETRYABLE_ERRORS",
    "create_http_client",
    "is_transient",
    "retry_with_backoff",
]
