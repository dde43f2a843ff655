"""
Tests for OfferHubClient.

Tests cover:
- Write lifecycle against a scripted transport (polling, refusal, failure)
- Reads without a signer and absent records
- Local validation never reaching the transport
- Signer cancellation and account failures
- Cancellation tokens
- Construction helpers (create, with_signer)
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from offerhub import OfferHubClient
from offerhub.codec import WireValue, encode
from offerhub.config import OfferHubConfig, PollConfig
from offerhub.constants import NULL_ACCOUNT
from offerhub.contract import CLAIM, PROFILE
from offerhub.errors import (
    AccountError,
    ContractErrorCode,
    DecodingError,
    FinalityTimeoutError,
    FinalizedFailureError,
    InvalidAddressError,
    OperationCancelledError,
    SignerUnavailableError,
    SigningError,
    SimulationError,
    SubmissionError,
    ValidationError,
)
from offerhub.models import ClaimStatus
from offerhub.transport import JsonRpcTransport, MockLedgerTransport
from offerhub.tx import CallbackSigner, Envelope, MockSigner, SignedEnvelope
from offerhub.types import (
    SimulationOutcome,
    StatusReport,
    SubmissionHandle,
    SubmissionStatus,
    TransactionStatus,
)
from offerhub.utils.cancellation import CancellationToken

from conftest import (
    CONTRACT_ID,
    ISSUER,
    PROOF_HASH,
    RECEIVER,
    TX_HASH,
    ScriptedTransport,
    success_report,
)

PENDING = StatusReport(TransactionStatus.PENDING)


def writer(config: OfferHubConfig, transport, signer=None) -> OfferHubClient:
    return OfferHubClient(config, transport, signer or MockSigner(), ISSUER)


# =============================================================================
# Write lifecycle
# =============================================================================


class TestClientWrites:
    """Tests for the write pipeline."""

    @pytest.mark.asyncio
    async def test_add_claim_after_pending_polls(self, config: OfferHubConfig) -> None:
        transport = ScriptedTransport(statuses=[PENDING, PENDING, success_report(WireValue.u64(7))])
        client = writer(config, transport)

        claim_id = await client.add_claim(RECEIVER, "job_completed", PROOF_HASH)

        assert claim_id == 7
        assert transport.count("get_transaction_status") == 3
        assert transport.count("submit") == 1

    @pytest.mark.asyncio
    async def test_call_order(self, config: OfferHubConfig) -> None:
        transport = ScriptedTransport(statuses=[success_report(WireValue.u64(0))])
        await writer(config, transport).add_claim(RECEIVER, "job_completed", PROOF_HASH)

        assert transport.calls == [
            "get_account",
            "get_latest_ledger",
            "simulate",
            "submit",
            "get_transaction_status",
        ]

    @pytest.mark.asyncio
    async def test_submitted_envelope(self, config: OfferHubConfig) -> None:
        transport = ScriptedTransport(
            simulation=SimulationOutcome(return_value=WireValue.u64(0), min_resource_fee=900),
            statuses=[success_report(WireValue.u64(0))],
        )
        await writer(config, transport).add_claim(RECEIVER, "job_completed", PROOF_HASH)

        signed = SignedEnvelope.from_bytes(transport.submitted[0])
        envelope = Envelope.from_bytes(signed.body, config.network_passphrase)
        assert envelope.source == ISSUER
        assert envelope.sequence == 42
        assert envelope.fee == 100 + 900
        assert envelope.valid_until_ledger == 530
        assert envelope.method == "add_claim"
        assert envelope.invocation.args[0] == WireValue.address(ISSUER)
        assert envelope.invocation.args[3] == WireValue.bytes_(PROOF_HASH)

    @pytest.mark.asyncio
    async def test_register_returns_tx_hash(self, config: OfferHubConfig) -> None:
        transport = ScriptedTransport()
        tx_hash = await writer(config, transport).register_profile("ipfs://QmProfile", "Ada")
        assert tx_hash == TX_HASH

    @pytest.mark.asyncio
    async def test_update_profile_calls_update_profile_data(self, config: OfferHubConfig) -> None:
        transport = ScriptedTransport()
        await writer(config, transport).update_profile("Ada", "ipfs://QmProfile", country_code="gb")

        envelope = transport.simulated[0]
        assert envelope.method == "update_profile_data"
        assert envelope.invocation.args[3] == WireValue.string("GB")

    @pytest.mark.asyncio
    async def test_method_name_override(self) -> None:
        config = OfferHubConfig(
            contract_id=CONTRACT_ID,
            poll=PollConfig(interval=0),
            method_names={"link_identifier": "link_did"},
        )
        transport = ScriptedTransport()

        await writer(config, transport).link_identifier("did:kilt:4abcdef")

        assert transport.simulated[0].method == "link_did"

    @pytest.mark.asyncio
    async def test_simulation_failure_stops_before_signing(self, config: OfferHubConfig) -> None:
        transport = ScriptedTransport(simulation=SimulationOutcome(error="HostError: Error(Contract, #1)"))
        signer = MockSigner()

        with pytest.raises(SimulationError) as exc_info:
            await writer(config, transport, signer).register_profile("ipfs://x", "Ada")

        assert exc_info.value.contract_error is ContractErrorCode.PROFILE_ALREADY_EXISTS
        assert signer.sign_count == 0
        assert transport.count("submit") == 0

    @pytest.mark.asyncio
    async def test_refused_submission(self, config: OfferHubConfig) -> None:
        transport = ScriptedTransport(
            submission=SubmissionHandle(TX_HASH, SubmissionStatus.ERROR, error="txInsufficientFee")
        )

        with pytest.raises(SubmissionError, match="txInsufficientFee"):
            await writer(config, transport).add_claim(RECEIVER, "job_completed", PROOF_HASH)

        assert transport.count("get_transaction_status") == 0

    @pytest.mark.asyncio
    async def test_failed_on_chain(self, config: OfferHubConfig) -> None:
        failed = StatusReport(TransactionStatus.FAILED, diagnostic="Error(Contract, #3)", ledger=600)
        transport = ScriptedTransport(statuses=[PENDING, failed])

        with pytest.raises(FinalizedFailureError) as exc_info:
            await writer(config, transport).add_claim(RECEIVER, "job_completed", PROOF_HASH)

        assert exc_info.value.tx_hash == TX_HASH
        assert exc_info.value.diagnostic == "Error(Contract, #3)"
        assert exc_info.value.ledger == 600

    @pytest.mark.asyncio
    async def test_finality_timeout(self) -> None:
        config = OfferHubConfig(contract_id=CONTRACT_ID, poll=PollConfig(interval=0, max_attempts=3))
        transport = ScriptedTransport(statuses=[PENDING])

        with pytest.raises(FinalityTimeoutError) as exc_info:
            await writer(config, transport).add_claim(RECEIVER, "job_completed", PROOF_HASH)

        assert exc_info.value.attempts == 3
        assert transport.count("get_transaction_status") == 3


# =============================================================================
# Failures before submission
# =============================================================================


class TestClientSignerAndAccount:
    """Tests for signer refusal and account resolution."""

    @pytest.mark.asyncio
    async def test_user_declines(self, config: OfferHubConfig) -> None:
        def provider(payload, **kwargs):
            return None

        transport = ScriptedTransport()
        client = writer(config, transport, CallbackSigner(provider))

        with pytest.raises(SigningError) as exc_info:
            await client.add_claim(RECEIVER, "job_completed", PROOF_HASH)

        assert exc_info.value.cancelled is True
        assert transport.count("submit") == 0

    @pytest.mark.asyncio
    async def test_provider_failure(self, config: OfferHubConfig) -> None:
        def provider(payload, **kwargs):
            raise OSError("device disconnected")

        transport = ScriptedTransport()
        with pytest.raises(SigningError) as exc_info:
            await writer(config, transport, CallbackSigner(provider)).link_identifier("did:kilt:4abcdef")

        assert exc_info.value.cancelled is False
        assert transport.count("submit") == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "call",
        [
            lambda c: c.register_profile("ipfs://QmProfile", "Ada"),
            lambda c: c.add_claim(RECEIVER, "job_completed", PROOF_HASH),
        ],
        ids=["register_profile", "add_claim"],
    )
    async def test_account_error(self, config: OfferHubConfig, call) -> None:
        transport = ScriptedTransport(account_error=AccountError(ISSUER, "account not found"))

        with pytest.raises(AccountError):
            await call(writer(config, transport))

        assert transport.count("simulate") == 0
        assert transport.count("get_latest_ledger") == 0

    @pytest.mark.asyncio
    async def test_write_without_signer(self, config: OfferHubConfig) -> None:
        transport = ScriptedTransport()
        client = OfferHubClient(config, transport)

        with pytest.raises(SignerUnavailableError) as exc_info:
            await client.add_claim(RECEIVER, "job_completed", PROOF_HASH)

        assert exc_info.value.operation == "add_claim"
        assert transport.calls == []


class TestClientValidation:
    """Invalid arguments fail locally, before any transport call."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "call,error",
        [
            (lambda c: c.add_claim("GABC", "job_completed", PROOF_HASH), InvalidAddressError),
            (lambda c: c.add_claim(RECEIVER, "job_completed", bytes(31)), ValidationError),
            (lambda c: c.add_claim(RECEIVER, "job_completed", "00" * 32), ValidationError),
            (lambda c: c.add_claim(RECEIVER, "  ", PROOF_HASH), ValidationError),
            (lambda c: c.register_profile("", "Ada"), ValidationError),
            (lambda c: c.register_profile("x" * 257, "Ada"), ValidationError),
            (lambda c: c.register_profile("ipfs://x", " "), ValidationError),
            (lambda c: c.register_profile("ipfs://x", "Ada", country_code="GBR"), ValidationError),
            (lambda c: c.register_profile("ipfs://x", "Ada", email_hash=b"short"), ValidationError),
            (
                lambda c: c.register_profile("ipfs://x", "Ada", linked_accounts=[("git hub", "ada")]),
                ValidationError,
            ),
            (
                lambda c: c.register_profile("ipfs://x", "Ada", linked_accounts=[{"platform": "github"}]),
                ValidationError,
            ),
            (lambda c: c.link_identifier("did:x"), ValidationError),
            (lambda c: c.get_profile("not-an-address"), InvalidAddressError),
            (lambda c: c.get_claim(-1), ValidationError),
            (lambda c: c.get_claim(True), ValidationError),
        ],
    )
    async def test_rejected_locally(self, config: OfferHubConfig, call, error) -> None:
        transport = ScriptedTransport()
        client = writer(config, transport)

        with pytest.raises(error):
            await call(client)

        assert transport.calls == []

    def test_invalid_account(self, config: OfferHubConfig) -> None:
        with pytest.raises(InvalidAddressError):
            OfferHubClient(config, ScriptedTransport(), MockSigner(), "GABC")

    def test_signer_without_account(self, config: OfferHubConfig) -> None:
        with pytest.raises(ValueError):
            OfferHubClient(config, ScriptedTransport(), MockSigner())


class TestClientCancellation:
    """Tests for cancellation tokens."""

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, config: OfferHubConfig) -> None:
        transport = ScriptedTransport()
        token = CancellationToken()
        token.cancel()

        with pytest.raises(OperationCancelledError) as exc_info:
            await writer(config, transport).add_claim(RECEIVER, "job_completed", PROOF_HASH, cancel=token)

        assert exc_info.value.stage == "build"
        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_cancelled_while_signing(self, config: OfferHubConfig) -> None:
        token = CancellationToken()

        def provider(payload, **kwargs):
            token.cancel("closed the wallet popup")
            return payload

        transport = ScriptedTransport()
        client = writer(config, transport, CallbackSigner(provider))

        with pytest.raises(OperationCancelledError) as exc_info:
            await client.add_claim(RECEIVER, "job_completed", PROOF_HASH, cancel=token)

        assert exc_info.value.stage == "submit"
        assert transport.count("submit") == 0

    @pytest.mark.asyncio
    async def test_hung_status_query_is_abandoned(self, config: OfferHubConfig) -> None:
        class HangingStatus(ScriptedTransport):
            async def get_transaction_status(self, tx_hash: str) -> StatusReport:
                self.calls.append("get_transaction_status")
                await asyncio.sleep(3600)
                raise AssertionError("status query was not abandoned")

        transport = HangingStatus()
        token = CancellationToken(timeout=0.2)

        with pytest.raises(OperationCancelledError) as exc_info:
            await asyncio.wait_for(
                writer(config, transport).add_claim(RECEIVER, "job_completed", PROOF_HASH, cancel=token),
                timeout=2.0,
            )

        assert exc_info.value.stage == "poll"
        assert transport.count("submit") == 1

    @pytest.mark.asyncio
    async def test_read_cancelled(self, config: OfferHubConfig) -> None:
        token = CancellationToken()
        token.cancel()
        transport = ScriptedTransport()

        with pytest.raises(OperationCancelledError):
            await OfferHubClient(config, transport).get_total_claims(cancel=token)

        assert transport.calls == []


# =============================================================================
# Reads
# =============================================================================


class TestClientReads:
    """Tests for read-only calls."""

    @pytest.mark.asyncio
    async def test_read_without_signer_uses_null_source(self, config: OfferHubConfig) -> None:
        transport = ScriptedTransport(simulation=SimulationOutcome(return_value=WireValue.u64(4)))

        total = await OfferHubClient(config, transport).get_total_claims()

        assert total == 4
        assert transport.simulated[0].source == NULL_ACCOUNT
        assert transport.count("submit") == 0
        assert transport.count("get_transaction_status") == 0

    @pytest.mark.asyncio
    async def test_read_with_signer_uses_account(self, config: OfferHubConfig) -> None:
        transport = ScriptedTransport(simulation=SimulationOutcome(return_value=WireValue.u64(4)))
        await writer(config, transport).get_total_claims()
        assert transport.simulated[0].source == ISSUER

    @pytest.mark.asyncio
    async def test_absent_profile_as_empty_map(self, config: OfferHubConfig) -> None:
        transport = ScriptedTransport(simulation=SimulationOutcome(return_value=WireValue.map([])))
        assert await OfferHubClient(config, transport).get_profile(RECEIVER) is None

    @pytest.mark.asyncio
    async def test_absent_profile_as_void(self, config: OfferHubConfig) -> None:
        transport = ScriptedTransport(simulation=SimulationOutcome(return_value=WireValue.void()))
        assert await OfferHubClient(config, transport).get_profile(RECEIVER) is None

    @pytest.mark.asyncio
    async def test_profile(self, config: OfferHubConfig) -> None:
        native = {
            "owner": RECEIVER,
            "metadata_uri": "ipfs://QmProfile",
            "did": "did:kilt:4abcdef",
            "display_name": "Grace",
            "country_code": "US",
            "email_hash": None,
            "linked_accounts": [{"platform": "github", "handle": "grace"}],
            "joined_at": 1_700_000_000,
        }
        transport = ScriptedTransport(simulation=SimulationOutcome(return_value=encode(native, PROFILE)))

        profile = await OfferHubClient(config, transport).get_profile(RECEIVER)

        assert profile.display_name == "Grace"
        assert profile.identifier == "did:kilt:4abcdef"
        assert profile.linked_accounts[0].handle == "grace"

    @pytest.mark.asyncio
    async def test_claims_by_receiver(self, config: OfferHubConfig) -> None:
        claim = {
            "id": 2,
            "issuer": ISSUER,
            "receiver": RECEIVER,
            "claim_type": "job_completed",
            "proof_hash": PROOF_HASH,
            "status": "Approved",
        }
        transport = ScriptedTransport(
            simulation=SimulationOutcome(return_value=WireValue.vec([encode(claim, CLAIM)]))
        )

        claims = await OfferHubClient(config, transport).get_claims_by_receiver(RECEIVER)

        assert [c.id for c in claims] == [2]
        assert claims[0].status is ClaimStatus.APPROVED
        assert transport.simulated[0].method == "get_user_claims"

    @pytest.mark.asyncio
    async def test_reputation_defaults_to_zero(self, config: OfferHubConfig) -> None:
        transport = ScriptedTransport(simulation=SimulationOutcome(return_value=WireValue.void()))
        assert await OfferHubClient(config, transport).get_reputation_score(RECEIVER) == 0

    @pytest.mark.asyncio
    async def test_read_simulation_failure(self, config: OfferHubConfig) -> None:
        transport = ScriptedTransport(simulation=SimulationOutcome(error="HostError: Error(Contract, #3)"))

        with pytest.raises(SimulationError) as exc_info:
            await OfferHubClient(config, transport).get_claim(5)

        assert exc_info.value.contract_error is ContractErrorCode.CLAIM_NOT_FOUND

    @pytest.mark.asyncio
    async def test_unexpected_return_shape(self, config: OfferHubConfig) -> None:
        transport = ScriptedTransport(simulation=SimulationOutcome(return_value=WireValue.string("7")))
        with pytest.raises(DecodingError):
            await OfferHubClient(config, transport).get_total_claims()


# =============================================================================
# Construction
# =============================================================================


class TestClientConstruction:
    """Tests for create(), with_signer() and lifecycle helpers."""

    @pytest.mark.asyncio
    async def test_create_mock(self) -> None:
        client = await OfferHubClient.create(mode="mock", signer=MockSigner(), account=ISSUER, pending_polls=1)

        assert isinstance(client.transport, MockLedgerTransport)
        assert client.transport.pending_polls == 1
        assert client.is_connected
        assert client.account == ISSUER

    @pytest.mark.asyncio
    async def test_create_rpc_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OFFERHUB_CONTRACT_ID", CONTRACT_ID)
        monkeypatch.setenv("OFFERHUB_NETWORK", "testnet")
        monkeypatch.delenv("OFFERHUB_RPC_URL", raising=False)

        client = await OfferHubClient.create(mode="rpc")

        assert isinstance(client.transport, JsonRpcTransport)
        assert client.transport.url == "https://soroban-testnet.stellar.org"
        assert not client.is_connected

    @pytest.mark.asyncio
    async def test_create_unknown_mode(self) -> None:
        with pytest.raises(ValueError, match="unknown mode"):
            await OfferHubClient.create(mode="ledger")

    def test_with_signer(self, config: OfferHubConfig) -> None:
        reader = OfferHubClient(config, ScriptedTransport())
        connected = reader.with_signer(MockSigner(), ISSUER)

        assert not reader.is_connected
        assert connected.is_connected
        assert connected.transport is reader.transport

    @pytest.mark.asyncio
    async def test_context_manager_closes_transport(self, config: OfferHubConfig) -> None:
        transport = ScriptedTransport()
        transport.close = AsyncMock()

        async with OfferHubClient(config, transport) as client:
            assert client.config is config

        transport.close.assert_awaited_once()
