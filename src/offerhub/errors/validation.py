"""
Local validation exceptions.

These are raised before any ledger I/O happens: a call that fails
validation never reaches the transport.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from offerhub.errors.base import OfferHubError


class ValidationError(OfferHubError):
    """
    Raised when an input fails a local precondition.

    Example:
        >>> raise ValidationError("metadata_uri is required", field="metadata_uri")
    """

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if field:
            details["field"] = field

        super().__init__(message, code="VALIDATION_ERROR", details=details)
        self.field = field


class InvalidAddressError(ValidationError):
    """
    Raised when an account or contract address is malformed.

    Example:
        >>> raise InvalidAddressError("GABC", field="receiver", reason="must be 56 characters")
    """

    def __init__(
        self,
        address: str,
        *,
        field: str = "address",
        reason: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["address"] = address
        if reason:
            details["reason"] = reason

        message = f"Invalid {field}: {address!r}"
        if reason:
            message += f" ({reason})"

        super().__init__(message, field=field, details=details)
        self.code = "INVALID_ADDRESS"
        self.address = address
        self.reason = reason


class SignerUnavailableError(ValidationError):
    """Raised when a write is attempted without a connected signer."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            f"{operation} requires a connected signer",
            details={"operation": operation},
        )
        self.code = "SIGNER_UNAVAILABLE"
        self.operation = operation


class InvalidStateTransitionError(OfferHubError):
    """
    Raised when an envelope is moved to a lifecycle state that is not
    reachable from its current state.
    """

    def __init__(self, current: str, requested: str, allowed: Optional[list] = None) -> None:
        allowed = allowed or []
        super().__init__(
            f"invalid transition {current} -> {requested}; allowed: {allowed}",
            code="INVALID_STATE_TRANSITION",
            details={"current": current, "requested": requested, "allowed": allowed},
        )
        self.current = current
        self.requested = requested
