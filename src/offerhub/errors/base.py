"""
Base exception class for the OfferHub SDK.

All SDK exceptions inherit from OfferHubError, which carries a
machine-readable error code, the related ledger transaction hash
(when one exists) and a dictionary of additional context.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class OfferHubError(Exception):
    """
    Base exception for all OfferHub SDK errors.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code (e.g., "SIMULATION_FAILED").
        tx_hash: Optional ledger transaction hash related to the error.
        details: Optional dictionary with additional error context.
        retryable: Whether repeating the same call may succeed.

    Example:
        >>> raise OfferHubError(
        ...     "Transaction failed",
        ...     code="TX_FAILED",
        ...     tx_hash="9f1c...",
        ...     details={"ledger": 1200, "result": "txFailed"}
        ... )
    """

    retryable = False

    def __init__(
        self,
        message: str,
        *,
        code: str = "OFFERHUB_ERROR",
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.tx_hash = tx_hash
        self.details = details or {}

    def __str__(self) -> str:
        text = f"[{self.code}] {self.message}"
        if self.tx_hash:
            return f"{text} (tx: {self.tx_hash[:10]}...)"
        return text

    def __repr__(self) -> str:
        fields = ", ".join(
            f"{name}={getattr(self, name)!r}"
            for name in ("message", "code", "tx_hash", "details", "retryable")
        )
        return f"{self.__class__.__name__}({fields})"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for JSON logs and API responses."""
        return {
            "error": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "tx_hash": self.tx_hash,
            "details": self.details,
            "retryable": self.retryable,
        }
