"""
Cooperative cancellation for facade calls.

A :class:`CancellationToken` is cancelled manually with :meth:`cancel`,
or automatically once its deadline passes. Every ledger round trip of a
facade call races against the token, as do the waits between status
queries, and raises :class:`OperationCancelledError` as soon as it fires.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from typing import Awaitable, Callable, Optional, TypeVar

from offerhub.errors import OperationCancelledError

T = TypeVar("T")


class CancellationToken:
    """
    Cancellation signal with an optional deadline.

    Args:
        timeout: Seconds from now after which the token counts as cancelled
        deadline: Absolute clock reading with the same effect
        clock: Monotonic clock in seconds

    Example:
        >>> token = CancellationToken(timeout=30)
        >>> await client.add_claim(receiver, "job_completed", proof, cancel=token)
    """

    def __init__(
        self,
        *,
        timeout: Optional[float] = None,
        deadline: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        if timeout is not None:
            timeout_deadline = clock() + timeout
            deadline = timeout_deadline if deadline is None else min(deadline, timeout_deadline)
        self.deadline = deadline
        self._event = asyncio.Event()
        self._reason: Optional[str] = None

    def cancel(self, reason: str = "operation cancelled") -> None:
        if self._reason is None:
            self._reason = reason
        self._event.set()

    @property
    def expired(self) -> bool:
        return self.deadline is not None and self._clock() >= self.deadline

    @property
    def cancelled(self) -> bool:
        return self._event.is_set() or self.expired

    @property
    def reason(self) -> str:
        if self._reason is not None:
            return self._reason
        return "deadline exceeded" if self.expired else "operation cancelled"

    def remaining(self) -> Optional[float]:
        """Seconds until the deadline, or None without one."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - self._clock())

    def raise_if_cancelled(self, stage: Optional[str] = None) -> None:
        if self.cancelled:
            raise OperationCancelledError(self.reason, stage=stage)

    async def sleep(self, seconds: float, *, stage: Optional[str] = None) -> None:
        """
        Suspend for ``seconds`` unless the token fires first.

        Raises:
            OperationCancelledError: If cancelled before or during the wait
        """
        self.raise_if_cancelled(stage)
        remaining = self.remaining()
        wait = seconds if remaining is None else min(seconds, remaining)
        try:
            await asyncio.wait_for(self._event.wait(), timeout=wait)
        except asyncio.TimeoutError:
            pass
        self.raise_if_cancelled(stage)

    async def guard(self, awaitable: Awaitable[T], *, stage: Optional[str] = None) -> T:
        """
        Await ``awaitable`` raced against the token.

        The awaitable is cancelled if the token fires first. A coroutine
        handed to an already-cancelled token is closed without running.

        Raises:
            OperationCancelledError: If the token fires before the awaitable finishes
        """
        if self.cancelled:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise OperationCancelledError(self.reason, stage=stage)
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter},
                timeout=self.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
            if task in done:
                return task.result()
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()
        raise OperationCancelledError(self.reason, stage=stage)


async def sleep_or_cancel(
    seconds: float,
    cancel: Optional[CancellationToken],
    *,
    stage: Optional[str] = None,
) -> None:
    """``asyncio.sleep`` that honours an optional token."""
    if cancel is None:
        await asyncio.sleep(seconds)
    else:
        await cancel.sleep(seconds, stage=stage)


async def guarded(
    awaitable: Awaitable[T],
    cancel: Optional[CancellationToken],
    *,
    stage: Optional[str] = None,
) -> T:
    """Await ``awaitable``, racing it against ``cancel`` when one is given."""
    if cancel is None:
        return await awaitable
    return await cancel.guard(awaitable, stage=stage)
