"""
Shared fixtures for OfferHub SDK tests.
"""

from typing import Any, List, Optional

import pytest

from offerhub.codec import Address, AddressKind, WireValue
from offerhub.config import OfferHubConfig, PollConfig
from offerhub.transport.base import LedgerTransport
from offerhub.transport.mock import MockLedgerTransport
from offerhub.types import (
    AccountInfo,
    OperationResult,
    SimulationOutcome,
    StatusReport,
    SubmissionHandle,
    SubmissionStatus,
    TransactionMeta,
    TransactionStatus,
)


# =============================================================================
# Test Constants
# =============================================================================

ISSUER = Address.from_payload(bytes([1]) * 32).value
RECEIVER = Address.from_payload(bytes([2]) * 32).value
OUTSIDER = Address.from_payload(bytes([3]) * 32).value
CONTRACT_ID = Address.from_payload(bytes([9]) * 32, AddressKind.CONTRACT).value

PROOF_HASH = bytes(range(32))
TX_HASH = "ab" * 32


# =============================================================================
# Scripted transport
# =============================================================================


class ScriptedTransport(LedgerTransport):
    """
    Transport returning canned answers and recording every call.

    ``statuses`` is consumed one entry per status query; the last entry
    repeats once the list runs out.
    """

    def __init__(
        self,
        *,
        account: Optional[AccountInfo] = None,
        account_error: Optional[Exception] = None,
        latest_ledger: int = 500,
        simulation: Optional[SimulationOutcome] = None,
        submission: Optional[SubmissionHandle] = None,
        statuses: Optional[List[StatusReport]] = None,
    ) -> None:
        self.account = account or AccountInfo(address=ISSUER, sequence=41, balance=10**9)
        self.account_error = account_error
        self.latest_ledger = latest_ledger
        self.simulation = simulation or SimulationOutcome(return_value=WireValue.void(), min_resource_fee=900)
        self.submission = submission or SubmissionHandle(tx_hash=TX_HASH)
        self.statuses = list(statuses or [StatusReport(TransactionStatus.SUCCESS, meta=TransactionMeta())])
        self.calls: List[str] = []
        self.simulated: List[Any] = []
        self.submitted: List[bytes] = []

    def count(self, name: str) -> int:
        return self.calls.count(name)

    async def get_account(self, address: str) -> AccountInfo:
        self.calls.append("get_account")
        if self.account_error is not None:
            raise self.account_error
        return self.account

    async def get_latest_ledger(self) -> int:
        self.calls.append("get_latest_ledger")
        return self.latest_ledger

    async def simulate(self, envelope) -> SimulationOutcome:
        self.calls.append("simulate")
        self.simulated.append(envelope)
        return self.simulation

    async def submit(self, signed: bytes) -> SubmissionHandle:
        self.calls.append("submit")
        self.submitted.append(signed)
        return self.submission

    async def get_transaction_status(self, tx_hash: str) -> StatusReport:
        self.calls.append("get_transaction_status")
        if len(self.statuses) > 1:
            return self.statuses.pop(0)
        return self.statuses[0]


def success_report(return_value: WireValue) -> StatusReport:
    return StatusReport(
        TransactionStatus.SUCCESS,
        meta=TransactionMeta(results=[OperationResult(return_value)], ledger=512),
        ledger=512,
    )


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def config() -> OfferHubConfig:
    """Client config polling without delay."""
    return OfferHubConfig(
        contract_id=CONTRACT_ID,
        network="testnet",
        poll=PollConfig(interval=0, max_attempts=10),
    )


@pytest.fixture
def mock_ledger(config: OfferHubConfig) -> MockLedgerTransport:
    """In-memory ledger with a fixed clock."""
    return MockLedgerTransport.from_config(config, now=lambda: 1_700_000_000)
