"""OfferHub client.

This module provides :class:`OfferHubClient`, the typed async facade
over the OfferHub contract.

Writes run the whole transaction lifecycle (build, simulate, prepare,
sign, submit, poll, extract); reads stop after simulation and take the
simulated return value.

Example:
    >>> from offerhub import OfferHubClient, MockSigner
    >>> client = await OfferHubClient.create(mode="mock", signer=MockSigner(), account="G...")
    >>> await client.register_profile("ipfs://Qm...", "Ada")
    >>> claim_id = await client.add_claim(receiver, "job_completed", proof_hash)
    >>> await client.get_total_claims()
    1
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from offerhub.codec import Address, AddressKind, decode
from offerhub.config import OfferHubConfig
from offerhub.contract import get_method
from offerhub.errors import FinalizedFailureError, SignerUnavailableError, ValidationError
from offerhub.models import Claim, LinkedAccount, Profile
from offerhub.transport import JsonRpcTransport, LedgerTransport, MockLedgerTransport
from offerhub.tx import (
    EnvelopeState,
    Signer,
    TransactionBuilder,
    extract_return,
    poll_until_final,
    prepare,
    sign_envelope,
    simulate,
    submit,
)
from offerhub.utils.cancellation import CancellationToken, guarded
from offerhub.utils.logging import LogContext, get_logger
from offerhub.utils.validation import (
    validate_address,
    validate_claim_id,
    validate_claim_type,
    validate_country_code,
    validate_display_name,
    validate_identifier,
    validate_metadata_uri,
    validate_platform,
    validate_proof_hash,
)

_logger = get_logger(__name__)

# Contract id used by mock mode when none is configured.
MOCK_CONTRACT_ID = Address.from_payload(bytes(32), AddressKind.CONTRACT).value

LinkedAccountLike = Union[LinkedAccount, Mapping[str, str], Tuple[str, str]]


def _linked_accounts(items: Iterable[LinkedAccountLike]) -> List[dict]:
    result = []
    for i, item in enumerate(items):
        if isinstance(item, LinkedAccount):
            account = item
        elif isinstance(item, Mapping):
            try:
                account = LinkedAccount(platform=item["platform"], handle=item["handle"])
            except KeyError as e:
                raise ValidationError(
                    f"linked_accounts[{i}] is missing {e.args[0]!r}",
                    field="linked_accounts",
                ) from e
        else:
            platform, handle = item
            account = LinkedAccount(platform=platform, handle=handle)
        validate_platform(account.platform, field_name=f"linked_accounts[{i}].platform")
        result.append(account.to_native())
    return result


class OfferHubClient:
    """
    Typed facade over the OfferHub contract.

    The client is a plain value: configuration, transport and the
    optional signer are fixed at construction. Reads work without a
    signer (they simulate against ``config.read_only_source``); writes
    raise :class:`SignerUnavailableError` before touching the transport.

    Every method accepts an optional :class:`CancellationToken`; a
    cancelled call raises :class:`OperationCancelledError`.

    Args:
        config: Client configuration
        transport: Ledger transport
        signer: Signer for writes
        account: Address the signer signs for; writes use it as source

    Example:
        >>> config = OfferHubConfig.from_env()
        >>> client = OfferHubClient(config, JsonRpcTransport.from_config(config))
        >>> profile = await client.get_profile("GABC...")
    """

    def __init__(
        self,
        config: OfferHubConfig,
        transport: LedgerTransport,
        signer: Optional[Signer] = None,
        account: Optional[str] = None,
    ) -> None:
        if (signer is None) != (account is None):
            raise ValueError("signer and account must be given together")
        self._config = config
        self._transport = transport
        self._signer = signer
        self._account = validate_address(account, "account") if account is not None else None
        self._builder = TransactionBuilder(
            transport,
            config.contract_id,
            config.network_passphrase,
            base_fee=config.base_fee,
            timeout_ledgers=config.timeout_ledgers,
        )

    @classmethod
    async def create(
        cls,
        mode: str = "rpc",
        config: Optional[OfferHubConfig] = None,
        *,
        signer: Optional[Signer] = None,
        account: Optional[str] = None,
        **transport_options: Any,
    ) -> "OfferHubClient":
        """
        Build a client with a transport for ``mode``.

        Args:
            mode: ``"rpc"`` for a JSON-RPC node, ``"mock"`` for the in-memory ledger
            config: Client configuration; ``OfferHubConfig.from_env()`` in rpc
                mode, a default mock contract in mock mode
            signer: Signer for writes
            account: Address the signer signs for
            **transport_options: Passed to the transport (e.g. ``pending_polls``)

        Raises:
            ValueError: On an unknown mode or a missing RPC url
        """
        if mode == "rpc":
            config = config or OfferHubConfig.from_env()
            transport: LedgerTransport = JsonRpcTransport(
                config.effective_rpc_url or "",
                timeout_ms=config.request_timeout_ms,
                circuit_breaker=config.circuit_breaker,
                **transport_options,
            )
        elif mode == "mock":
            config = config or OfferHubConfig(contract_id=MOCK_CONTRACT_ID)
            transport = MockLedgerTransport.from_config(config, **transport_options)
        else:
            raise ValueError(f"unknown mode {mode!r}; expected 'rpc' or 'mock'")

        _logger.info(
            "OfferHub client created",
            extra={"mode": mode, "network": config.network.value, "contract_id": config.contract_id},
        )
        return cls(config, transport, signer, account)

    def with_signer(self, signer: Signer, account: str) -> "OfferHubClient":
        """Copy of this client that writes as ``account``."""
        return type(self)(self._config, self._transport, signer, account)

    @property
    def config(self) -> OfferHubConfig:
        return self._config

    @property
    def transport(self) -> LedgerTransport:
        return self._transport

    @property
    def account(self) -> Optional[str]:
        return self._account

    @property
    def is_connected(self) -> bool:
        return self._signer is not None

    async def close(self) -> None:
        await self._transport.close()

    async def __aenter__(self) -> "OfferHubClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # ========================================================================
    # Writes
    # ========================================================================

    async def register_profile(
        self,
        metadata_uri: str,
        display_name: str,
        *,
        country_code: Optional[str] = None,
        email_hash: Optional[bytes] = None,
        linked_accounts: Iterable[LinkedAccountLike] = (),
        cancel: Optional[CancellationToken] = None,
    ) -> str:
        """
        Register a profile for the connected account.

        Args:
            metadata_uri: URI of the profile document (1-256 characters)
            display_name: Public name
            country_code: Two-letter country code
            email_hash: 32-byte hash of the contact e-mail (see :func:`offerhub.proof.hash_email`)
            linked_accounts: External accounts, as :class:`LinkedAccount`,
                ``{"platform", "handle"}`` mappings or ``(platform, handle)`` pairs
            cancel: Cancellation token

        Returns:
            Transaction hash

        Raises:
            ValidationError: On a bad argument or a missing signer
            SimulationError: If the contract refuses (e.g. the profile exists)
        """
        owner = self._require_signer("register_profile")
        args = [
            owner,
            validate_metadata_uri(metadata_uri),
            validate_display_name(display_name),
            validate_country_code(country_code),
            validate_proof_hash(email_hash, "email_hash") if email_hash is not None else None,
            _linked_accounts(linked_accounts),
        ]
        _, tx_hash = await self._write("register_profile", args, cancel=cancel)
        return tx_hash

    async def update_profile(
        self,
        display_name: str,
        metadata_uri: str,
        *,
        country_code: Optional[str] = None,
        email_hash: Optional[bytes] = None,
        linked_accounts: Iterable[LinkedAccountLike] = (),
        cancel: Optional[CancellationToken] = None,
    ) -> str:
        """
        Replace the connected account's profile data.

        Every field is written; omitted optional fields are cleared.

        Returns:
            Transaction hash
        """
        owner = self._require_signer("update_profile")
        args = [
            owner,
            validate_display_name(display_name),
            validate_metadata_uri(metadata_uri),
            validate_country_code(country_code),
            validate_proof_hash(email_hash, "email_hash") if email_hash is not None else None,
            _linked_accounts(linked_accounts),
        ]
        _, tx_hash = await self._write("update_profile_data", args, cancel=cancel)
        return tx_hash

    async def add_claim(
        self,
        receiver: str,
        claim_type: str,
        proof_hash: bytes,
        *,
        cancel: Optional[CancellationToken] = None,
    ) -> int:
        """
        Issue a claim about ``receiver`` from the connected account.

        Args:
            receiver: Account the claim is about
            claim_type: Claim category, e.g. ``"job_completed"``
            proof_hash: 32-byte hash of the evidence
            cancel: Cancellation token

        Returns:
            Id of the new claim
        """
        issuer = self._require_signer("add_claim")
        args = [
            issuer,
            validate_address(receiver, "receiver"),
            validate_claim_type(claim_type),
            validate_proof_hash(proof_hash),
        ]
        claim_id, _ = await self._write("add_claim", args, cancel=cancel)
        return int(claim_id)

    async def link_identifier(
        self,
        identifier: str,
        *,
        cancel: Optional[CancellationToken] = None,
    ) -> str:
        """
        Link a decentralized identifier (e.g. ``did:kilt:4q...``) to the
        connected account's profile.

        Returns:
            Transaction hash
        """
        owner = self._require_signer("link_identifier")
        args = [owner, validate_identifier(identifier)]
        _, tx_hash = await self._write("link_identifier", args, cancel=cancel)
        return tx_hash

    # ========================================================================
    # Reads
    # ========================================================================

    async def get_profile(
        self, account: str, *, cancel: Optional[CancellationToken] = None
    ) -> Optional[Profile]:
        """Profile of ``account``, or None if it has none."""
        value = await self._read("get_profile", [validate_address(account, "account")], cancel=cancel)
        return Profile.from_native(value)

    async def get_claim(
        self, claim_id: int, *, cancel: Optional[CancellationToken] = None
    ) -> Optional[Claim]:
        value = await self._read("get_claim", [validate_claim_id(claim_id)], cancel=cancel)
        return Claim.from_native(value)

    async def get_claims_by_receiver(
        self, account: str, *, cancel: Optional[CancellationToken] = None
    ) -> List[Claim]:
        """Claims issued about ``account``, oldest first."""
        value = await self._read("get_user_claims", [validate_address(account, "account")], cancel=cancel)
        return self._claims(value)

    async def get_claims_by_issuer(
        self, account: str, *, cancel: Optional[CancellationToken] = None
    ) -> List[Claim]:
        """Claims ``account`` has issued, oldest first."""
        value = await self._read("get_issuer_claims", [validate_address(account, "account")], cancel=cancel)
        return self._claims(value)

    async def get_total_claims(self, *, cancel: Optional[CancellationToken] = None) -> int:
        value = await self._read("get_total_claims", [], cancel=cancel)
        return int(value or 0)

    async def get_identifier(
        self, account: str, *, cancel: Optional[CancellationToken] = None
    ) -> Optional[str]:
        return await self._read("get_identifier", [validate_address(account, "account")], cancel=cancel)

    async def get_reputation_score(
        self, account: str, *, cancel: Optional[CancellationToken] = None
    ) -> int:
        value = await self._read(
            "get_reputation_score", [validate_address(account, "account")], cancel=cancel
        )
        return int(value or 0)

    # ========================================================================
    # Pipeline
    # ========================================================================

    def _require_signer(self, operation: str) -> str:
        if self._signer is None or self._account is None:
            raise SignerUnavailableError(operation)
        return self._account

    @staticmethod
    def _claims(value: Optional[Sequence[Any]]) -> List[Claim]:
        return [claim for claim in (Claim.from_native(item) for item in value or []) if claim is not None]

    async def _write(
        self,
        method: str,
        args: Sequence[Any],
        *,
        cancel: Optional[CancellationToken],
    ) -> Tuple[Any, str]:
        entry = get_method(method)
        wire_args = entry.encode_args(args)
        if cancel is not None:
            cancel.raise_if_cancelled(stage="build")

        with LogContext(method=method):
            envelope = await guarded(
                self._builder.build(self._account, self._config.contract_function(method), wire_args),
                cancel,
                stage="build",
            )
            outcome = await simulate(self._transport, envelope, cancel=cancel)
            prepare(envelope, outcome)

            if cancel is not None:
                cancel.raise_if_cancelled(stage="sign")
            signed = await sign_envelope(self._signer, envelope)

            handle = await submit(self._transport, envelope, signed, cancel)
            result = await poll_until_final(
                self._transport, handle, envelope, self._config.poll, cancel
            )

            if not result.success:
                envelope.advance(EnvelopeState.REJECTED)
                raise FinalizedFailureError(
                    result.tx_hash, result.diagnostic or "transaction failed", ledger=result.ledger
                )

            value = extract_return(result.meta, entry.returns)
            envelope.advance(EnvelopeState.RESULT_EXTRACTED)
            return value, result.tx_hash

    async def _read(
        self,
        method: str,
        args: Sequence[Any],
        *,
        cancel: Optional[CancellationToken],
    ) -> Any:
        entry = get_method(method)
        wire_args = entry.encode_args(args)
        if cancel is not None:
            cancel.raise_if_cancelled(stage="build")

        source = self._account or self._config.read_only_source
        with LogContext(method=method):
            envelope = await guarded(
                self._builder.build(source, self._config.contract_function(method), wire_args),
                cancel,
                stage="build",
            )
            outcome = await simulate(self._transport, envelope, cancel=cancel)
            envelope.advance(EnvelopeState.RESULT_EXTRACTED)

            if outcome.return_value is None or outcome.return_value.is_void:
                return None
            return decode(outcome.return_value, entry.returns)
