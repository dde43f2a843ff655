"""
Ledger transport interface.

A transport is everything the SDK needs from a ledger node: account
lookup, the latest ledger height, simulation, submission and status
queries. :class:`JsonRpcTransport` talks to a real RPC node;
:class:`MockLedgerTransport` keeps an in-memory ledger for tests and
offline use.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from offerhub.types import AccountInfo, SimulationOutcome, StatusReport, SubmissionHandle

if TYPE_CHECKING:
    from offerhub.tx.envelope import Envelope


class LedgerTransport(ABC):
    """
    Capability surface the transaction pipeline depends on.

    Implementations raise :class:`AccountError` from :meth:`get_account`
    when the account is missing or unfunded, and
    :class:`TransportError` when the node cannot be reached. A failed
    dry run is reported through :attr:`SimulationOutcome.error`, not
    raised.
    """

    @abstractmethod
    async def get_account(self, address: str) -> AccountInfo:
        ...

    @abstractmethod
    async def get_latest_ledger(self) -> int:
        ...

    @abstractmethod
    async def simulate(self, envelope: "Envelope") -> SimulationOutcome:
        ...

    @abstractmethod
    async def submit(self, signed: bytes) -> SubmissionHandle:
        ...

    @abstractmethod
    async def get_transaction_status(self, tx_hash: str) -> StatusReport:
        ...

    async def close(self) -> None:
        """Release network resources. No-op by default."""

    async def __aenter__(self) -> "LedgerTransport":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()
