"""Transaction builder."""

from __future__ import annotations

from typing import Sequence

from offerhub.constants import BASE_FEE, TIMEOUT_LEDGERS
from offerhub.codec import Address, WireValue
from offerhub.errors import AccountError, InvalidAddressError
from offerhub.transport.base import LedgerTransport
from offerhub.tx.envelope import Envelope, Invocation
from offerhub.utils.logging import get_logger

_logger = get_logger(__name__)


class TransactionBuilder:
    """
    Turns one contract invocation into an unsigned :class:`Envelope`.

    The source account is resolved first; when it cannot be, nothing is
    built and :class:`AccountError` propagates.

    Args:
        transport: Ledger transport
        contract_id: Contract to invoke
        network_passphrase: Network the envelope is bound to
        base_fee: Inclusion fee in stroops
        timeout_ledgers: Validity window past the latest ledger

    Example:
        >>> builder = TransactionBuilder(transport, contract_id, passphrase)
        >>> envelope = await builder.build(owner, "get_total_claims", [])
    """

    def __init__(
        self,
        transport: LedgerTransport,
        contract_id: str,
        network_passphrase: str,
        *,
        base_fee: int = BASE_FEE,
        timeout_ledgers: int = TIMEOUT_LEDGERS,
    ) -> None:
        self.transport = transport
        self.contract_id = Address.parse(contract_id, field="contract_id").value
        self.network_passphrase = network_passphrase
        self.base_fee = base_fee
        self.timeout_ledgers = timeout_ledgers

    async def build(self, source: str, method: str, args: Sequence[WireValue]) -> Envelope:
        """
        Build an unsigned envelope.

        Args:
            source: Source account address
            method: Contract function name
            args: Encoded arguments, in order

        Returns:
            Envelope in the ``BUILT`` state

        Raises:
            AccountError: If the source account is malformed, missing or unfunded
        """
        try:
            source = Address.parse(source, field="source").value
        except InvalidAddressError as e:
            raise AccountError(str(source), e.reason or "malformed address") from e

        account = await self.transport.get_account(source)
        latest = await self.transport.get_latest_ledger()

        envelope = Envelope(
            source=source,
            sequence=account.sequence + 1,
            fee=self.base_fee,
            valid_until_ledger=latest + self.timeout_ledgers,
            invocation=Invocation(self.contract_id, method, tuple(args)),
            network_passphrase=self.network_passphrase,
        )
        _logger.debug(
            "Envelope built",
            extra={
                "method": method,
                "source": source,
                "sequence": envelope.sequence,
                "valid_until_ledger": envelope.valid_until_ledger,
            },
        )
        return envelope
