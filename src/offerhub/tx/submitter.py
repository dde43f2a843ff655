"""
Submission and finality polling.

A signed envelope is sent exactly once. The status is then queried at a
fixed interval, bounded by a number of attempts and an optional overall
timeout, until the ledger reports success or failure.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional

from offerhub.config import PollConfig
from offerhub.errors import FinalityTimeoutError, SubmissionError
from offerhub.transport.base import LedgerTransport
from offerhub.tx.envelope import Envelope, EnvelopeState
from offerhub.types import (
    REFUSED_SUBMISSION_STATUSES,
    StatusReport,
    SubmissionHandle,
    TransactionMeta,
    TransactionStatus,
)
from offerhub.utils.cancellation import CancellationToken, guarded, sleep_or_cancel
from offerhub.utils.logging import get_logger

_logger = get_logger(__name__)


@dataclass(frozen=True)
class FinalizedResult:
    """
    Terminal outcome of a submitted transaction.

    Attributes:
        tx_hash: Transaction hash
        success: True for ``FINALIZED_SUCCESS``
        meta: Transaction metadata (success only)
        diagnostic: Failure description (failure only)
        ledger: Ledger the transaction was included in
        attempts: Number of status queries performed
    """

    tx_hash: str
    success: bool
    meta: Optional[TransactionMeta] = None
    diagnostic: Optional[str] = None
    ledger: Optional[int] = None
    attempts: int = 0


async def submit(
    transport: LedgerTransport,
    envelope: Envelope,
    signed: bytes,
    cancel: Optional[CancellationToken] = None,
) -> SubmissionHandle:
    """
    Send ``signed`` once and move the envelope to ``SUBMITTED``.

    An immediate ``ERROR`` or ``TRY_AGAIN_LATER`` answer moves the envelope
    to ``REJECTED`` and raises without polling.

    Raises:
        SubmissionError: If the transport refused the transaction
        OperationCancelledError: If ``cancel`` fires before the answer arrives
    """
    envelope.check_transition(EnvelopeState.SUBMITTED)
    handle = await guarded(transport.submit(signed), cancel, stage="submit")
    envelope.tx_hash = handle.tx_hash
    envelope.advance(EnvelopeState.SUBMITTED)

    if handle.status in REFUSED_SUBMISSION_STATUSES:
        envelope.advance(EnvelopeState.REJECTED)
        _logger.warning(
            "Submission refused",
            extra={"method": envelope.method, "tx_hash": handle.tx_hash, "status": handle.status.value},
        )
        raise SubmissionError(
            handle.error or f"transaction refused with status {handle.status.value}",
            tx_hash=handle.tx_hash,
            status=handle.status.value,
        )

    _logger.info(
        "Transaction submitted",
        extra={"method": envelope.method, "tx_hash": handle.tx_hash, "status": handle.status.value},
    )
    return handle


async def poll_until_final(
    transport: LedgerTransport,
    handle: SubmissionHandle,
    envelope: Envelope,
    poll: Optional[PollConfig] = None,
    cancel: Optional[CancellationToken] = None,
    *,
    clock: Callable[[], float] = time.monotonic,
) -> FinalizedResult:
    """
    Query the transaction status until it is final.

    The envelope moves to ``PENDING`` and stays there while the ledger
    answers ``NOT_FOUND`` or ``PENDING``; it ends in
    ``FINALIZED_SUCCESS`` or ``FINALIZED_FAILED``. At most
    ``poll.max_attempts`` queries are made, ``poll.interval`` seconds
    apart, with no wait after the last one.

    Raises:
        FinalityTimeoutError: If the bound is reached first
        OperationCancelledError: If ``cancel`` fires during a query or a wait
    """
    poll = poll or PollConfig()
    started = clock()
    envelope.advance(EnvelopeState.PENDING)

    for attempt in range(1, poll.max_attempts + 1):
        report: StatusReport = await guarded(
            transport.get_transaction_status(handle.tx_hash),
            cancel,
            stage="poll",
        )
        _logger.debug(
            "Polled transaction status",
            extra={"tx_hash": handle.tx_hash, "attempt": attempt, "status": report.status.value},
        )

        if report.status is TransactionStatus.SUCCESS:
            envelope.advance(EnvelopeState.FINALIZED_SUCCESS)
            _logger.info(
                "Transaction finalized",
                extra={"method": envelope.method, "tx_hash": handle.tx_hash, "attempt": attempt},
            )
            return FinalizedResult(
                tx_hash=handle.tx_hash,
                success=True,
                meta=report.meta,
                ledger=report.ledger,
                attempts=attempt,
            )

        if report.status is TransactionStatus.FAILED:
            envelope.advance(EnvelopeState.FINALIZED_FAILED)
            _logger.info(
                "Transaction failed on-chain",
                extra={
                    "method": envelope.method,
                    "tx_hash": handle.tx_hash,
                    "attempt": attempt,
                    "error": report.diagnostic,
                },
            )
            return FinalizedResult(
                tx_hash=handle.tx_hash,
                success=False,
                diagnostic=report.diagnostic or "transaction failed",
                ledger=report.ledger,
                attempts=attempt,
            )

        envelope.advance(EnvelopeState.PENDING)

        if attempt == poll.max_attempts:
            break
        elapsed = clock() - started
        if poll.timeout is not None and elapsed + poll.interval > poll.timeout:
            raise FinalityTimeoutError(handle.tx_hash, attempt, elapsed=elapsed)
        await sleep_or_cancel(poll.interval, cancel, stage="poll")

    raise FinalityTimeoutError(handle.tx_hash, poll.max_attempts, elapsed=clock() - started)
