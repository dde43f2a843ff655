"""
Tests for signers.

Tests cover:
- CallbackSigner with sync and async providers
- Cancellation versus provider failure classification
- Return value handling (bytes, base64, None)
- MockSigner signatures
- sign_envelope lifecycle handling
"""

import base64
import hashlib
import hmac

import pytest

from offerhub.config import NETWORKS, Network
from offerhub.errors import InvalidStateTransitionError, SigningError
from offerhub.tx import CallbackSigner, EnvelopeState, MockSigner, SignedEnvelope, sign_envelope
from offerhub.tx.envelope import Envelope, Invocation

from conftest import CONTRACT_ID, ISSUER, RECEIVER

TESTNET = NETWORKS[Network.TESTNET].passphrase
PAYLOAD = b'{"tx":"body"}'


def prepared_envelope() -> Envelope:
    envelope = Envelope(
        source=ISSUER,
        sequence=1,
        fee=100,
        valid_until_ledger=10,
        invocation=Invocation(CONTRACT_ID, "add_claim"),
        network_passphrase=TESTNET,
    )
    envelope.advance(EnvelopeState.SIMULATED)
    envelope.advance(EnvelopeState.PREPARED)
    return envelope


# =============================================================================
# CallbackSigner
# =============================================================================


class TestCallbackSigner:
    """Tests for CallbackSigner."""

    @pytest.mark.asyncio
    async def test_sync_provider(self) -> None:
        seen = {}

        def provider(payload, *, network_passphrase, account):
            seen.update(payload=payload, network_passphrase=network_passphrase, account=account)
            return b"signed"

        signed = await CallbackSigner(provider).sign(PAYLOAD, network_passphrase=TESTNET, account=ISSUER)

        assert signed == b"signed"
        assert seen == {"payload": PAYLOAD, "network_passphrase": TESTNET, "account": ISSUER}

    @pytest.mark.asyncio
    async def test_async_provider(self) -> None:
        async def provider(payload, **kwargs):
            return payload[::-1]

        signed = await CallbackSigner(provider).sign(PAYLOAD, network_passphrase=TESTNET, account=ISSUER)
        assert signed == PAYLOAD[::-1]

    @pytest.mark.asyncio
    async def test_base64_result_decoded(self) -> None:
        signer = CallbackSigner(lambda payload, **kw: base64.b64encode(b"xdr").decode())
        assert await signer.sign(PAYLOAD, network_passphrase=TESTNET, account=ISSUER) == b"xdr"

    @pytest.mark.asyncio
    async def test_non_base64_string(self) -> None:
        signer = CallbackSigner(lambda payload, **kw: "not base64!")
        with pytest.raises(SigningError) as exc_info:
            await signer.sign(PAYLOAD, network_passphrase=TESTNET, account=ISSUER)
        assert exc_info.value.cancelled is False

    @pytest.mark.asyncio
    async def test_none_is_cancellation(self) -> None:
        signer = CallbackSigner(lambda payload, **kw: None)
        with pytest.raises(SigningError) as exc_info:
            await signer.sign(PAYLOAD, network_passphrase=TESTNET, account=ISSUER)
        assert exc_info.value.cancelled is True
        assert exc_info.value.code == "SIGNING_CANCELLED"

    @pytest.mark.asyncio
    async def test_cancelled_signing_error_is_cancellation(self) -> None:
        def provider(payload, **kwargs):
            raise SigningError("User declined", cancelled=True)

        with pytest.raises(SigningError) as exc_info:
            await CallbackSigner(provider).sign(PAYLOAD, network_passphrase=TESTNET, account=ISSUER)
        assert exc_info.value.cancelled is True
        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            ConnectionError("Horizon rejected the request: HTTP 503 Service Unavailable"),
            PermissionError("access denied to keystore"),
            RuntimeError("User declined"),
        ],
    )
    async def test_message_alone_is_provider_failure(self, error: Exception) -> None:
        def provider(payload, **kwargs):
            raise error

        with pytest.raises(SigningError) as exc_info:
            await CallbackSigner(provider).sign(PAYLOAD, network_passphrase=TESTNET, account=ISSUER)
        assert exc_info.value.cancelled is False
        assert exc_info.value.code == "SIGNING_FAILED"
        assert exc_info.value.retryable is False

    @pytest.mark.asyncio
    async def test_opted_in_error_type_is_cancellation(self) -> None:
        class WalletRejected(Exception):
            pass

        def provider(payload, **kwargs):
            raise WalletRejected("popup closed")

        signer = CallbackSigner(provider, cancellation_errors=(WalletRejected,))
        with pytest.raises(SigningError) as exc_info:
            await signer.sign(PAYLOAD, network_passphrase=TESTNET, account=ISSUER)
        assert exc_info.value.cancelled is True
        assert exc_info.value.code == "SIGNING_CANCELLED"

    @pytest.mark.asyncio
    async def test_provider_failure(self) -> None:
        async def provider(payload, **kwargs):
            raise ConnectionError("wallet extension not found")

        with pytest.raises(SigningError) as exc_info:
            await CallbackSigner(provider).sign(PAYLOAD, network_passphrase=TESTNET, account=ISSUER)
        assert exc_info.value.cancelled is False
        assert exc_info.value.code == "SIGNING_FAILED"
        assert exc_info.value.details["provider_error"] == "ConnectionError"

    @pytest.mark.asyncio
    async def test_custom_markers(self) -> None:
        def provider(payload, **kwargs):
            raise RuntimeError("E_ABORTED")

        signer = CallbackSigner(provider, cancellation_markers=("aborted",))
        with pytest.raises(SigningError) as exc_info:
            await signer.sign(PAYLOAD, network_passphrase=TESTNET, account=ISSUER)
        assert exc_info.value.cancelled is True

    @pytest.mark.asyncio
    async def test_signing_error_passes_through(self) -> None:
        def provider(payload, **kwargs):
            raise SigningError("hardware wallet locked", cancelled=False)

        with pytest.raises(SigningError, match="hardware wallet locked"):
            await CallbackSigner(provider).sign(PAYLOAD, network_passphrase=TESTNET, account=ISSUER)

    @pytest.mark.asyncio
    async def test_unsupported_return_type(self) -> None:
        signer = CallbackSigner(lambda payload, **kw: 42)
        with pytest.raises(SigningError, match="unsupported type"):
            await signer.sign(PAYLOAD, network_passphrase=TESTNET, account=ISSUER)


# =============================================================================
# MockSigner
# =============================================================================


class TestMockSigner:
    """Tests for MockSigner."""

    @pytest.mark.asyncio
    async def test_signature_is_hmac(self) -> None:
        signer = MockSigner(secret=b"k")
        signed = SignedEnvelope.from_bytes(
            await signer.sign(PAYLOAD, network_passphrase=TESTNET, account=ISSUER)
        )

        expected = hmac.new(b"k", TESTNET.encode() + signed.body, hashlib.sha256).hexdigest()
        assert signed.signatures == ((ISSUER, expected),)
        assert signer.sign_count == 1

    @pytest.mark.asyncio
    async def test_bound_account(self) -> None:
        signer = MockSigner(ISSUER)
        with pytest.raises(SigningError) as exc_info:
            await signer.sign(PAYLOAD, network_passphrase=TESTNET, account=RECEIVER)
        assert exc_info.value.cancelled is False
        assert signer.sign_count == 0


# =============================================================================
# sign_envelope
# =============================================================================


class TestSignEnvelope:
    """Tests for sign_envelope()."""

    @pytest.mark.asyncio
    async def test_advances_to_signed(self) -> None:
        envelope = prepared_envelope()
        signed = await sign_envelope(MockSigner(), envelope)

        assert envelope.state is EnvelopeState.SIGNED
        assert SignedEnvelope.from_bytes(signed).body == envelope.to_bytes()

    @pytest.mark.asyncio
    async def test_declined_leaves_state(self) -> None:
        envelope = prepared_envelope()
        signer = CallbackSigner(lambda payload, **kw: None)

        with pytest.raises(SigningError):
            await sign_envelope(signer, envelope)
        assert envelope.state is EnvelopeState.PREPARED

    @pytest.mark.asyncio
    async def test_unprepared_envelope_not_signed(self) -> None:
        envelope = prepared_envelope()
        envelope.advance(EnvelopeState.SIGNED)
        signer = MockSigner()

        with pytest.raises(InvalidStateTransitionError):
            await sign_envelope(signer, envelope)
        assert signer.sign_count == 0
