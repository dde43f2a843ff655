"""
Exception hierarchy for the OfferHub SDK.

    OfferHubError
    ├── ValidationError
    │   ├── InvalidAddressError
    │   └── SignerUnavailableError
    ├── InvalidStateTransitionError
    ├── EncodingError
    ├── DecodingError
    ├── AccountError
    ├── SimulationError
    ├── SigningError
    ├── SubmissionError
    ├── FinalityTimeoutError
    ├── FinalizedFailureError
    ├── OperationCancelledError
    └── TransportError
        └── CircuitBreakerOpenError
"""

from offerhub.errors.base import OfferHubError
from offerhub.errors.ledger import (
    AccountError,
    CircuitBreakerOpenError,
    ContractErrorCode,
    DecodingError,
    EncodingError,
    FinalityTimeoutError,
    FinalizedFailureError,
    OperationCancelledError,
    SigningError,
    SimulationError,
    SubmissionError,
    TransportError,
)
from offerhub.errors.validation import (
    InvalidAddressError,
    InvalidStateTransitionError,
    SignerUnavailableError,
    ValidationError,
)

__all__ = [
    "OfferHubError",
    # Local validation
    "ValidationError",
    "InvalidAddressError",
    "SignerUnavailableError",
    "InvalidStateTransitionError",
    # Codec
    "EncodingError",
    "DecodingError",
    # Lifecycle
    "AccountError",
    "SimulationError",
    "ContractErrorCode",
    "SigningError",
    "SubmissionError",
    "FinalityTimeoutError",
    "FinalizedFailureError",
    "OperationCancelledError",
    "TransportError",
    "CircuitBreakerOpenError",
]
