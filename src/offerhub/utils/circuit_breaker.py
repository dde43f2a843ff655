"""
Circuit breaker for the ledger RPC endpoint.

Stops hammering an RPC node that keeps failing: after
``failure_threshold`` failures inside ``failure_window_ms`` the breaker
opens and calls fail fast with :class:`CircuitBreakerOpenError` until
``reset_timeout_ms`` has passed. The next calls then test the endpoint
(half-open) and ``success_threshold`` consecutive successes close it
again.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional, TypeVar

from offerhub.config import CircuitBreakerConfig
from offerhub.errors import CircuitBreakerOpenError
from offerhub.utils.logging import get_logger

T = TypeVar("T")

_logger = get_logger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreakerState:
    """Mutable bookkeeping of a breaker."""

    state: CircuitState = CircuitState.CLOSED
    failures: int = 0
    successes: int = 0
    opened_at: float = 0.0
    failure_times: List[float] = field(default_factory=list)
    """Clock readings (seconds) of failures still inside the window."""


class CircuitBreaker:
    """
    Async circuit breaker.

    Args:
        config: Breaker thresholds (defaults if None)
        name: Label used in log records and errors, usually the endpoint URL
        clock: Monotonic clock in seconds; injectable for tests

    Example:
        ```python
        breaker = CircuitBreaker(CircuitBreakerConfig(failure_threshold=3))
        latest = await breaker.execute(lambda: rpc.call("getLatestLedger"))
        ```
    """

    def __init__(
        self,
        config: Optional[CircuitBreakerConfig] = None,
        *,
        name: str = "rpc",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or CircuitBreakerConfig()
        self.name = name
        self._clock = clock
        self._state = CircuitBreakerState()
        self._lock = asyncio.Lock()

    @property
    def state(self) -> CircuitState:
        return self._state.state

    @property
    def is_open(self) -> bool:
        return self._state.state is CircuitState.OPEN

    @property
    def is_closed(self) -> bool:
        return self._state.state is CircuitState.CLOSED

    @property
    def is_half_open(self) -> bool:
        return self._state.state is CircuitState.HALF_OPEN

    @property
    def failure_count(self) -> int:
        return self._state.failures

    @property
    def reset_at(self) -> float:
        """Clock reading at which an open breaker starts probing again."""
        return self._state.opened_at + self.config.reset_timeout_ms / 1000

    def _maybe_half_open(self) -> None:
        if self._state.state is CircuitState.OPEN and self._clock() >= self.reset_at:
            self._state.state = CircuitState.HALF_OPEN
            self._state.successes = 0
            _logger.info("Circuit half-open, probing endpoint", extra={"endpoint": self.name})

    def _prune_failures(self, now: float) -> None:
        window_start = now - self.config.failure_window_ms / 1000
        self._state.failure_times = [t for t in self._state.failure_times if t > window_start]
        self._state.failures = len(self._state.failure_times)

    def _open(self, now: float) -> None:
        self._state.state = CircuitState.OPEN
        self._state.opened_at = now
        _logger.warning(
            "Circuit opened",
            extra={"endpoint": self.name, "failures": self._state.failures},
        )

    async def record_success(self) -> None:
        async with self._lock:
            if self._state.state is not CircuitState.HALF_OPEN:
                return
            self._state.successes += 1
            if self._state.successes >= self.config.success_threshold:
                self._state = CircuitBreakerState()
                _logger.info("Circuit closed", extra={"endpoint": self.name})

    async def record_failure(self) -> None:
        async with self._lock:
            now = self._clock()
            self._state.failure_times.append(now)
            self._prune_failures(now)

            if self._state.state is CircuitState.HALF_OPEN:
                self._open(now)
            elif (
                self._state.state is CircuitState.CLOSED
                and self._state.failures >= self.config.failure_threshold
            ):
                self._open(now)

    async def execute(
        self,
        fn: Callable[[], Awaitable[T]],
        fallback: Optional[Callable[[], Awaitable[T]]] = None,
    ) -> T:
        """
        Run ``fn`` behind the breaker.

        Args:
            fn: Zero-argument coroutine factory
            fallback: Called instead of raising while the breaker is open

        Returns:
            Result of ``fn`` (or ``fallback``)

        Raises:
            CircuitBreakerOpenError: If the breaker is open and there is no fallback
        """
        if not self.config.enabled:
            return await fn()

        async with self._lock:
            self._maybe_half_open()

        if self.is_open:
            if fallback is not None:
                return await fallback()
            raise CircuitBreakerOpenError(
                f"Circuit breaker for {self.name} is open",
                reset_at=self.reset_at,
                endpoint=self.name,
            )

        try:
            result = await fn()
        except Exception:
            await self.record_failure()
            raise
        await self.record_success()
        return result

    def reset(self) -> None:
        """Force the breaker back to closed."""
        self._state = CircuitBreakerState()

    def get_stats(self) -> dict:
        return {
            "name": self.name,
            "state": self._state.state.value,
            "failures": self._state.failures,
            "successes": self._state.successes,
            "opened_at": self._state.opened_at,
            "config": self.config.model_dump(),
        }
