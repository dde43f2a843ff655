"""
OfferHub Python SDK.

Typed async client for the OfferHub reputation contract: profiles,
claims, linked identifiers and reputation scores on a Soroban-style
ledger.

Quick Start:
    >>> from offerhub import OfferHubClient, MockSigner
    >>> import asyncio
    >>>
    >>> async def main():
    ...     client = await OfferHubClient.create(
    ...         mode="mock",
    ...         signer=MockSigner(),
    ...         account="GAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAWHF",
    ...     )
    ...     await client.register_profile("ipfs://QmProfile", "Ada")
    ...     print(await client.get_profile(client.account))
    ...
    >>> asyncio.run(main())

Modules:
- `client`: OfferHubClient facade
- `config`: networks and client configuration
- `codec`: native values <-> tagged wire values
- `tx`: transaction lifecycle (build, simulate, sign, submit, poll, extract)
- `transport`: JSON-RPC and in-memory ledger transports
- `proof`: proof-hash helpers
- `errors`: exception hierarchy
- `utils`: logging, retry, circuit breaker and cancellation
"""

from offerhub.version import __version__, __version_info__

# Configuration
from offerhub.config import (
    NETWORKS,
    CircuitBreakerConfig,
    Network,
    NetworkConfig,
    OfferHubConfig,
    PollConfig,
    get_network_config,
)

# Errors
from offerhub.errors import (
    AccountError,
    CircuitBreakerOpenError,
    ContractErrorCode,
    DecodingError,
    EncodingError,
    FinalityTimeoutError,
    FinalizedFailureError,
    InvalidAddressError,
    InvalidStateTransitionError,
    OfferHubError,
    OperationCancelledError,
    SignerUnavailableError,
    SigningError,
    SimulationError,
    SubmissionError,
    TransportError,
    ValidationError,
)

# Domain records
from offerhub.models import Claim, ClaimStatus, LinkedAccount, Profile

# Transaction pipeline
from offerhub.tx import CallbackSigner, Envelope, EnvelopeState, MockSigner, Signer

# Transports
from offerhub.transport import JsonRpcTransport, LedgerTransport, MockLedgerTransport

# Client
from offerhub.client import OfferHubClient

# Proof helpers
from offerhub.proof import (
    generate_claim_type,
    generate_work_proof_hash,
    hash_content,
    hash_email,
    hex_to_proof_hash,
    proof_hash_to_hex,
)

# Utilities
from offerhub.utils import CancellationToken, configure_logging, get_logger

__all__ = [
    "__version__",
    "__version_info__",
    # Client
    "OfferHubClient",
    # Configuration
    "OfferHubConfig",
    "PollConfig",
    "CircuitBreakerConfig",
    "Network",
    "NetworkConfig",
    "NETWORKS",
    "get_network_config",
    # Models
    "Profile",
    "Claim",
    "ClaimStatus",
    "LinkedAccount",
    # Signers
    "Signer",
    "CallbackSigner",
    "MockSigner",
    "Envelope",
    "EnvelopeState",
    # Transports
    "LedgerTransport",
    "JsonRpcTransport",
    "MockLedgerTransport",
    # Proof helpers
    "hash_content",
    "hash_email",
    "generate_work_proof_hash",
    "generate_claim_type",
    "hex_to_proof_hash",
    "proof_hash_to_hex",
    # Utilities
    "CancellationToken",
    "configure_logging",
    "get_logger",
    # Errors
    "OfferHubError",
    "ValidationError",
    "InvalidAddressError",
    "SignerUnavailableError",
    "InvalidStateTransitionError",
    "EncodingError",
    "DecodingError",
    "AccountError",
    "SimulationError",
    "SigningError",
    "SubmissionError",
    "FinalityTimeoutError",
    "FinalizedFailureError",
    "OperationCancelledError",
    "TransportError",
    "CircuitBreakerOpenError",
    "ContractErrorCode",
]
