"""
Retry utilities for the OfferHub SDK.

Exponential backoff with optional full jitter, used by the JSON-RPC
transport for transient HTTP failures.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from functools import wraps
from typing import (
    Awaitable,
    Callable,
    Optional,
    Tuple,
    Type,
    TypeVar,
)

from offerhub.utils.logging import get_logger

T = TypeVar("T")

_logger = get_logger(__name__)


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior.

    Example:
        ```python
        config = RetryConfig(
            max_attempts=5,
            base_delay_ms=200,
            retryable_errors=(httpx.TransportError,),
        )
        ```
    """

    max_attempts: int = 3
    """Total number of attempts, the first call included."""

    base_delay_ms: int = 250
    """Delay before the first retry."""

    max_delay_ms: int = 5000
    """Cap on any single delay."""

    jitter: bool = True
    """Draw each delay uniformly from ``[0, computed delay]``."""

    exponential_base: float = 2.0

    retryable_errors: Tuple[Type[BaseException], ...] = field(
        default_factory=lambda: (Exception,)
    )
    """Exception types that trigger another attempt."""

    should_retry: Optional[Callable[[BaseException], bool]] = None
    """Extra filter on caught exceptions; returning False re-raises at once."""


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """
    Delay in seconds before retry number ``attempt`` (zero-based).

    Args:
        attempt: Zero-based retry number
        config: Retry configuration

    Returns:
        Delay in seconds
    """
    delay_ms = min(
        config.base_delay_ms * (config.exponential_base ** attempt),
        config.max_delay_ms,
    )
    if config.jitter:
        delay_ms = random.uniform(0, delay_ms)
    return delay_ms / 1000


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    config: Optional[RetryConfig] = None,
    *,
    operation: str = "operation",
) -> T:
    """
    Await ``fn()`` until it succeeds or attempts run out.

    Args:
        fn: Zero-argument coroutine factory
        config: Retry configuration (defaults if None)
        operation: Name used in log records

    Returns:
        Result of the first successful call

    Raises:
        The last retryable exception once every attempt has failed;
        non-retryable exceptions immediately.
    """
    config = config or RetryConfig()
    if config.max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(config.max_attempts):
        try:
            return await fn()
        except config.retryable_errors as e:
            if config.should_retry is not None and not config.should_retry(e):
                raise
            if attempt >= config.max_attempts - 1:
                raise
            delay = calculate_delay(attempt, config)
            _logger.warning(
                "Retrying after transient failure",
                extra={
                    "operation": operation,
                    "attempt": attempt + 1,
                    "delay_s": round(delay, 3),
                    "error": str(e),
                },
            )
            await asyncio.sleep(delay)

    raise RuntimeError("retry loop exited without a result")


def with_retry(
    config: Optional[RetryConfig] = None,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorator form of :func:`retry_async`.

    Example:
        ```python
        @with_retry(RetryConfig(max_attempts=5))
        async def latest_ledger() -> int:
            ...
        ```
    """

    def decorator(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(fn)
        async def wrapper(*args: object, **kwargs: object) -> T:
            return await retry_async(
                lambda: fn(*args, **kwargs),
                config,
                operation=fn.__name__,
            )

        return wrapper

    return decorator
