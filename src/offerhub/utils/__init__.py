"""
OfferHub SDK utilities.

Validation helpers live in :mod:`offerhub.utils.validation`; they depend
on the codec and are not re-exported here.
"""

from offerhub.utils.logging import (
    LogContext,
    configure_logging,
    disable_logging,
    enable_debug,
    get_logger,
    set_level,
)
from offerhub.utils.retry import RetryConfig, calculate_delay, retry_async, with_retry
from offerhub.utils.circuit_breaker import CircuitBreaker, CircuitBreakerState, CircuitState
from offerhub.utils.cancellation import CancellationToken, guarded, sleep_or_cancel

__all__ = [
    # Structured logging
    "get_logger",
    "configure_logging",
    "set_level",
    "disable_logging",
    "enable_debug",
    "LogContext",
    # Retry
    "RetryConfig",
    "calculate_delay",
    "retry_async",
    "with_retry",
    # Circuit breaker
    "CircuitBreaker",
    "CircuitBreakerState",
    "CircuitState",
    # Cancellation
    "CancellationToken",
    "sleep_or_cancel",
    "guarded",
]
