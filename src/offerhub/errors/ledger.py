"""
Ledger interaction exceptions.

One class per failure point of a contract invocation: encoding the
arguments, resolving the source account, simulating, signing,
submitting, waiting for finality and decoding the result.
"""

from __future__ import annotations

import re
from enum import IntEnum
from typing import Any, Dict, Optional

from offerhub.errors.base import OfferHubError

_CONTRACT_ERROR_PATTERN = re.compile(r"Error\(Contract, #(\d+)\)")


class ContractErrorCode(IntEnum):
    """Error codes returned by the OfferHub contract."""

    PROFILE_ALREADY_EXISTS = 1
    PROFILE_NOT_FOUND = 2
    CLAIM_NOT_FOUND = 3
    INVALID_IDENTIFIER = 6
    INVALID_METADATA_URI = 7


class EncodingError(OfferHubError):
    """
    Raised when a native value cannot be encoded into the requested
    wire shape.

    Example:
        >>> raise EncodingError("proof_hash must be exactly 32 bytes", path="proof_hash")
    """

    def __init__(
        self,
        message: str,
        *,
        path: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if path:
            details["path"] = path
            message = f"{path}: {message}"

        super().__init__(message, code="ENCODING_ERROR", details=details)
        self.path = path


class DecodingError(OfferHubError):
    """Raised when a wire value in a ledger response cannot be decoded."""

    def __init__(
        self,
        message: str,
        *,
        tag: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if tag is not None:
            details["tag"] = tag

        super().__init__(message, code="DECODING_ERROR", details=details)
        self.tag = tag


class AccountError(OfferHubError):
    """
    Raised when the source account cannot be resolved on the ledger
    (not found or unfunded).
    """

    def __init__(
        self,
        address: str,
        reason: str = "account not found",
        *,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["address"] = address

        super().__init__(
            f"Source account {address} cannot be used: {reason}",
            code="ACCOUNT_ERROR",
            details=details,
        )
        self.address = address
        self.reason = reason


class SimulationError(OfferHubError):
    """
    Raised when the ledger rejects a dry run.

    The transport diagnostic is kept verbatim in ``diagnostic``. When it
    carries a contract error (``Error(Contract, #N)``) the decoded code is
    available as ``contract_error``.
    """

    def __init__(
        self,
        diagnostic: str,
        *,
        method: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if method:
            details["method"] = method

        self.contract_error = _parse_contract_error(diagnostic)
        if self.contract_error is not None:
            details["contract_error"] = self.contract_error.name

        super().__init__(
            f"Simulation failed: {diagnostic}",
            code="SIMULATION_FAILED",
            details=details,
        )
        self.diagnostic = diagnostic
        self.method = method


class SigningError(OfferHubError):
    """
    Raised when the signer does not return a signed envelope.

    ``cancelled`` is True when the user declined the request and False
    when the provider itself failed.
    """

    def __init__(
        self,
        message: str,
        *,
        cancelled: bool,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["cancelled"] = cancelled

        super().__init__(
            message,
            code="SIGNING_CANCELLED" if cancelled else "SIGNING_FAILED",
            details=details,
        )
        self.cancelled = cancelled
        self.retryable = cancelled


class SubmissionError(OfferHubError):
    """Raised when the transport refuses or fails to accept a signed envelope."""

    def __init__(
        self,
        message: str,
        *,
        tx_hash: Optional[str] = None,
        status: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if status:
            details["status"] = status

        super().__init__(message, code="SUBMISSION_FAILED", tx_hash=tx_hash, details=details)
        self.status = status
        self.retryable = status == "TRY_AGAIN_LATER"


class FinalityTimeoutError(OfferHubError):
    """Raised when a submitted transaction does not finalize within the poll bound."""

    retryable = True

    def __init__(
        self,
        tx_hash: str,
        attempts: int,
        *,
        elapsed: Optional[float] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["attempts"] = attempts
        if elapsed is not None:
            details["elapsed_seconds"] = round(elapsed, 3)

        super().__init__(
            f"Transaction not finalized after {attempts} status queries",
            code="FINALITY_TIMEOUT",
            tx_hash=tx_hash,
            details=details,
        )
        self.attempts = attempts
        self.elapsed = elapsed


class FinalizedFailureError(OfferHubError):
    """Raised when a transaction was included in a ledger but failed on-chain."""

    def __init__(
        self,
        tx_hash: str,
        diagnostic: str,
        *,
        ledger: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if ledger is not None:
            details["ledger"] = ledger

        super().__init__(
            f"Transaction failed on-chain: {diagnostic}",
            code="TX_FAILED",
            tx_hash=tx_hash,
            details=details,
        )
        self.diagnostic = diagnostic
        self.ledger = ledger


class OperationCancelledError(OfferHubError):
    """Raised when a call is abandoned through its cancellation token or deadline."""

    def __init__(self, reason: str = "operation cancelled", *, stage: Optional[str] = None) -> None:
        details = {"stage": stage} if stage else {}
        super().__init__(reason, code="CANCELLED", details=details)
        self.reason = reason
        self.stage = stage


class TransportError(OfferHubError):
    """Raised when the ledger RPC endpoint cannot be reached or answers garbage."""

    retryable = True

    def __init__(
        self,
        message: str,
        *,
        endpoint: Optional[str] = None,
        rpc_method: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        retryable: bool = True,
    ) -> None:
        details = details or {}
        if endpoint:
            details["endpoint"] = endpoint
        if rpc_method:
            details["rpc_method"] = rpc_method

        super().__init__(message, code="TRANSPORT_ERROR", details=details)
        self.endpoint = endpoint
        self.rpc_method = rpc_method
        self.retryable = retryable


class CircuitBreakerOpenError(TransportError):
    """Raised when the RPC endpoint is short-circuited after repeated failures."""

    def __init__(
        self,
        message: str = "Circuit breaker is open",
        *,
        reset_at: Optional[float] = None,
        endpoint: Optional[str] = None,
    ) -> None:
        details = {"reset_at": reset_at} if reset_at is not None else {}
        super().__init__(message, endpoint=endpoint, details=details)
        self.code = "CIRCUIT_OPEN"
        self.reset_at = reset_at


def _parse_contract_error(diagnostic: str) -> Optional[ContractErrorCode]:
    match = _CONTRACT_ERROR_PATTERN.search(diagnostic or "")
    if match is None:
        return None
    try:
        return ContractErrorCode(int(match.group(1)))
    except ValueError:
        return None
