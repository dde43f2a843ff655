"""
Tests for submission and finality polling.

Tests cover:
- Single submission and refusal handling
- Polling until success or on-chain failure
- No wait after the final status query
- Attempt and time bounds
- Cancellation while submitting, querying or waiting
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from offerhub.config import NETWORKS, Network, PollConfig
from offerhub.errors import FinalityTimeoutError, OperationCancelledError, SubmissionError
from offerhub.tx import EnvelopeState, poll_until_final, submit
from offerhub.tx.envelope import Envelope, Invocation
from offerhub.types import (
    StatusReport,
    SubmissionHandle,
    SubmissionStatus,
    TransactionStatus,
)
from offerhub.utils.cancellation import CancellationToken
from offerhub.codec import WireValue

from conftest import CONTRACT_ID, ISSUER, TX_HASH, ScriptedTransport, success_report

TESTNET = NETWORKS[Network.TESTNET].passphrase
PENDING = StatusReport(TransactionStatus.PENDING)
NOT_FOUND = StatusReport(TransactionStatus.NOT_FOUND)
FAILED = StatusReport(TransactionStatus.FAILED, diagnostic="Error(Contract, #3)", ledger=600)


def signed_envelope() -> Envelope:
    envelope = Envelope(
        source=ISSUER,
        sequence=1,
        fee=100,
        valid_until_ledger=10,
        invocation=Invocation(CONTRACT_ID, "add_claim"),
        network_passphrase=TESTNET,
    )
    for state in (EnvelopeState.SIMULATED, EnvelopeState.PREPARED, EnvelopeState.SIGNED):
        envelope.advance(state)
    return envelope


async def submitted(transport: ScriptedTransport):
    envelope = signed_envelope()
    handle = await submit(transport, envelope, b"signed")
    return envelope, handle


class HangingStatus(ScriptedTransport):
    """Status queries that never answer."""

    async def get_transaction_status(self, tx_hash: str) -> StatusReport:
        self.calls.append("get_transaction_status")
        await asyncio.sleep(3600)
        raise AssertionError("status query was not abandoned")


class HangingSubmit(ScriptedTransport):
    """A submission that never answers."""

    async def submit(self, signed: bytes) -> SubmissionHandle:
        self.calls.append("submit")
        await asyncio.sleep(3600)
        raise AssertionError("submission was not abandoned")


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds, cancel=None, *, stage=None) -> None:
        self.now += seconds


# =============================================================================
# Submission
# =============================================================================


class TestSubmit:
    """Tests for submit()."""

    @pytest.mark.asyncio
    async def test_submits_once(self) -> None:
        transport = ScriptedTransport()
        envelope, handle = await submitted(transport)

        assert transport.submitted == [b"signed"]
        assert handle.tx_hash == TX_HASH
        assert envelope.tx_hash == TX_HASH
        assert envelope.state is EnvelopeState.SUBMITTED

    @pytest.mark.asyncio
    async def test_error_rejects_without_polling(self) -> None:
        transport = ScriptedTransport(
            submission=SubmissionHandle(TX_HASH, SubmissionStatus.ERROR, error="txBadSeq")
        )
        envelope = signed_envelope()

        with pytest.raises(SubmissionError) as exc_info:
            await submit(transport, envelope, b"signed")

        assert exc_info.value.status == "ERROR"
        assert exc_info.value.tx_hash == TX_HASH
        assert exc_info.value.retryable is False
        assert "txBadSeq" in str(exc_info.value)
        assert envelope.state is EnvelopeState.REJECTED
        assert transport.count("get_transaction_status") == 0

    @pytest.mark.asyncio
    async def test_try_again_later_is_retryable(self) -> None:
        transport = ScriptedTransport(
            submission=SubmissionHandle(TX_HASH, SubmissionStatus.TRY_AGAIN_LATER)
        )

        with pytest.raises(SubmissionError) as exc_info:
            await submit(transport, signed_envelope(), b"signed")

        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    async def test_duplicate_is_accepted(self) -> None:
        transport = ScriptedTransport(submission=SubmissionHandle(TX_HASH, SubmissionStatus.DUPLICATE))
        envelope, handle = await submitted(transport)
        assert handle.status is SubmissionStatus.DUPLICATE
        assert envelope.state is EnvelopeState.SUBMITTED

    @pytest.mark.asyncio
    async def test_hung_submission_is_abandoned(self) -> None:
        transport = HangingSubmit()
        envelope = signed_envelope()
        token = CancellationToken(timeout=0.05)

        with pytest.raises(OperationCancelledError) as exc_info:
            await asyncio.wait_for(submit(transport, envelope, b"signed", token), timeout=2.0)

        assert exc_info.value.stage == "submit"
        assert envelope.state is EnvelopeState.SIGNED

    @pytest.mark.asyncio
    async def test_cancelled_token_never_submits(self) -> None:
        transport = ScriptedTransport()
        token = CancellationToken()
        token.cancel()

        with pytest.raises(OperationCancelledError):
            await submit(transport, signed_envelope(), b"signed", token)

        assert transport.submitted == []


# =============================================================================
# Polling
# =============================================================================


class TestPollUntilFinal:
    """Tests for poll_until_final()."""

    @pytest.mark.asyncio
    async def test_success_after_pending(self) -> None:
        transport = ScriptedTransport(statuses=[PENDING, NOT_FOUND, success_report(WireValue.u64(7))])
        envelope, handle = await submitted(transport)

        result = await poll_until_final(transport, handle, envelope, PollConfig(interval=0))

        assert result.success is True
        assert result.attempts == 3
        assert result.ledger == 512
        assert transport.count("get_transaction_status") == 3
        assert envelope.state is EnvelopeState.FINALIZED_SUCCESS

    @pytest.mark.asyncio
    async def test_no_wait_after_final_query(self) -> None:
        transport = ScriptedTransport(statuses=[PENDING, PENDING, success_report(WireValue.void())])
        envelope, handle = await submitted(transport)
        sleeper = AsyncMock()

        with patch("offerhub.tx.submitter.sleep_or_cancel", sleeper):
            await poll_until_final(transport, handle, envelope, PollConfig(interval=1))

        assert sleeper.await_count == 2

    @pytest.mark.asyncio
    async def test_immediate_success_never_sleeps(self) -> None:
        transport = ScriptedTransport()
        envelope, handle = await submitted(transport)
        sleeper = AsyncMock()

        with patch("offerhub.tx.submitter.sleep_or_cancel", sleeper):
            result = await poll_until_final(transport, handle, envelope, PollConfig(interval=1))

        assert result.attempts == 1
        sleeper.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_on_chain(self) -> None:
        transport = ScriptedTransport(statuses=[PENDING, FAILED])
        envelope, handle = await submitted(transport)

        result = await poll_until_final(transport, handle, envelope, PollConfig(interval=0))

        assert result.success is False
        assert result.diagnostic == "Error(Contract, #3)"
        assert result.ledger == 600
        assert envelope.state is EnvelopeState.FINALIZED_FAILED

    @pytest.mark.asyncio
    async def test_attempt_bound(self) -> None:
        transport = ScriptedTransport(statuses=[PENDING])
        envelope, handle = await submitted(transport)
        sleeper = AsyncMock()

        with patch("offerhub.tx.submitter.sleep_or_cancel", sleeper):
            with pytest.raises(FinalityTimeoutError) as exc_info:
                await poll_until_final(transport, handle, envelope, PollConfig(interval=1, max_attempts=4))

        assert exc_info.value.attempts == 4
        assert exc_info.value.tx_hash == TX_HASH
        assert exc_info.value.retryable is True
        assert transport.count("get_transaction_status") == 4
        assert sleeper.await_count == 3
        assert envelope.state is EnvelopeState.PENDING

    @pytest.mark.asyncio
    async def test_time_bound(self) -> None:
        transport = ScriptedTransport(statuses=[PENDING])
        envelope, handle = await submitted(transport)
        clock = FakeClock()
        poll = PollConfig(interval=1, max_attempts=60, timeout=2.5)

        with patch("offerhub.tx.submitter.sleep_or_cancel", clock.sleep):
            with pytest.raises(FinalityTimeoutError) as exc_info:
                await poll_until_final(transport, handle, envelope, poll, clock=clock)

        assert exc_info.value.attempts == 3
        assert transport.count("get_transaction_status") == 3

    @pytest.mark.asyncio
    async def test_cancelled_before_polling(self) -> None:
        transport = ScriptedTransport(statuses=[PENDING])
        envelope, handle = await submitted(transport)
        token = CancellationToken()
        token.cancel()

        with pytest.raises(OperationCancelledError) as exc_info:
            await poll_until_final(transport, handle, envelope, PollConfig(interval=0), token)

        assert exc_info.value.stage == "poll"
        assert transport.count("get_transaction_status") == 0

    @pytest.mark.asyncio
    async def test_cancelled_while_waiting(self) -> None:
        transport = ScriptedTransport(statuses=[PENDING])
        envelope, handle = await submitted(transport)
        token = CancellationToken()

        async def cancel_soon() -> None:
            await asyncio.sleep(0.01)
            token.cancel()

        canceller = asyncio.ensure_future(cancel_soon())
        with pytest.raises(OperationCancelledError):
            await poll_until_final(transport, handle, envelope, PollConfig(interval=30), token)
        await canceller

        assert transport.count("get_transaction_status") == 1

    @pytest.mark.asyncio
    async def test_deadline_expires(self) -> None:
        transport = ScriptedTransport(statuses=[PENDING])
        envelope, handle = await submitted(transport)
        token = CancellationToken(timeout=0.02)

        with pytest.raises(OperationCancelledError) as exc_info:
            await poll_until_final(transport, handle, envelope, PollConfig(interval=30), token)

        assert exc_info.value.reason == "deadline exceeded"

    @pytest.mark.asyncio
    async def test_hung_status_query_is_abandoned(self) -> None:
        transport = HangingStatus()
        envelope, handle = await submitted(transport)
        token = CancellationToken(timeout=0.05)

        with pytest.raises(OperationCancelledError) as exc_info:
            await asyncio.wait_for(
                poll_until_final(transport, handle, envelope, PollConfig(interval=0), token),
                timeout=2.0,
            )

        assert exc_info.value.stage == "poll"
        assert exc_info.value.reason == "deadline exceeded"
        assert transport.count("get_transaction_status") == 1
