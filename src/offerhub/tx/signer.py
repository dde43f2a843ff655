"""
Signer capability.

The SDK never holds keys. A :class:`Signer` receives the prepared
transaction bytes and returns signed bytes, or raises
:class:`SigningError` telling the caller whether the user declined
(``cancelled=True``) or the provider failed (``cancelled=False``).
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import inspect
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Tuple, Type

from offerhub.errors import SigningError
from offerhub.tx.envelope import Envelope, EnvelopeState, SignedEnvelope
from offerhub.utils.logging import get_logger

_logger = get_logger(__name__)


class Signer(ABC):
    """Signs prepared transaction bytes on behalf of one or more accounts."""

    @abstractmethod
    async def sign(self, payload: bytes, *, network_passphrase: str, account: str) -> bytes:
        """
        Sign ``payload``.

        Args:
            payload: Prepared transaction bytes
            network_passphrase: Network the transaction is bound to
            account: Account whose signature is requested

        Returns:
            Signed transaction bytes, ready for submission

        Raises:
            SigningError: If the user declined or the provider failed
        """


class CallbackSigner(Signer):
    """
    Adapts a wallet-style provider function into a :class:`Signer`.

    The provider is called as ``provider(payload, network_passphrase=...,
    account=...)`` and may be sync or async. It returns signed bytes, or
    a base64 string of them. Returning ``None`` counts as the user
    declining, and so does raising ``SigningError(cancelled=True)``.
    Any other exception is a provider failure unless its type is listed in
    ``cancellation_errors`` or its message contains one of the opt-in
    ``cancellation_markers``.

    Example:
        >>> async def freighter(payload, *, network_passphrase, account):
        ...     return await wallet.sign_transaction(payload, network_passphrase, account)
        >>> signer = CallbackSigner(freighter, cancellation_errors=(WalletRejected,))
    """

    def __init__(
        self,
        provider: Callable[..., Any],
        *,
        cancellation_errors: Tuple[Type[BaseException], ...] = (),
        cancellation_markers: Tuple[str, ...] = (),
    ) -> None:
        self._provider = provider
        self._cancellation_errors = tuple(cancellation_errors)
        self._markers = tuple(m.lower() for m in cancellation_markers)

    def _is_cancellation(self, error: BaseException) -> bool:
        if isinstance(error, self._cancellation_errors):
            return True
        text = f"{type(error).__name__} {error}".lower()
        return any(marker in text for marker in self._markers)

    async def sign(self, payload: bytes, *, network_passphrase: str, account: str) -> bytes:
        try:
            result = self._provider(payload, network_passphrase=network_passphrase, account=account)
            if inspect.isawaitable(result):
                result = await result
        except SigningError:
            raise
        except Exception as e:
            cancelled = self._is_cancellation(e)
            raise SigningError(
                f"Signer {'declined' if cancelled else 'failed'}: {e}",
                cancelled=cancelled,
                details={"provider_error": type(e).__name__},
            ) from e

        if result is None:
            raise SigningError("Signer returned no signature", cancelled=True)
        if isinstance(result, (bytes, bytearray)):
            return bytes(result)
        if isinstance(result, str):
            try:
                return base64.b64decode(result, validate=True)
            except (binascii.Error, ValueError) as e:
                raise SigningError("Signer returned a string that is not base64", cancelled=False) from e
        raise SigningError(
            f"Signer returned unsupported type {type(result).__name__}",
            cancelled=False,
        )


class MockSigner(Signer):
    """
    Deterministic signer for mock mode and tests.

    Produces a :class:`SignedEnvelope` whose signature is an HMAC of the
    payload, which :class:`MockLedgerTransport` accepts.
    """

    def __init__(self, account: Optional[str] = None, *, secret: bytes = b"offerhub-mock") -> None:
        self.account = account
        self._secret = secret
        self.sign_count = 0

    async def sign(self, payload: bytes, *, network_passphrase: str, account: str) -> bytes:
        if self.account is not None and account != self.account:
            raise SigningError(
                f"MockSigner holds no key for {account}",
                cancelled=False,
                details={"account": account},
            )
        self.sign_count += 1
        digest = hmac.new(
            self._secret,
            network_passphrase.encode("utf-8") + payload,
            hashlib.sha256,
        ).hexdigest()
        return SignedEnvelope(body=payload, signatures=((account, digest),)).to_bytes()


async def sign_envelope(signer: Signer, envelope: Envelope) -> bytes:
    """
    Ask ``signer`` to sign a prepared envelope and move it to ``SIGNED``.

    Raises:
        SigningError: Propagated unchanged from the signer
    """
    envelope.check_transition(EnvelopeState.SIGNED)
    try:
        signed = await signer.sign(
            envelope.to_bytes(),
            network_passphrase=envelope.network_passphrase,
            account=envelope.source,
        )
    except SigningError as e:
        _logger.info(
            "Signing did not complete",
            extra={"method": envelope.method, "cancelled": e.cancelled},
        )
        raise

    envelope.advance(EnvelopeState.SIGNED)
    return signed
