"""
Ledger transports.

    LedgerTransport
    ├── JsonRpcTransport      (httpx, JSON-RPC 2.0)
    └── MockLedgerTransport   (in-memory contract)
"""

from offerhub.transport.base import LedgerTransport
from offerhub.transport.mock import ContractFailure, LedgerState, MockLedgerTransport
from offerhub.transport.rpc import JsonRpcTransport

__all__ = [
    "LedgerTransport",
    "JsonRpcTransport",
    "MockLedgerTransport",
    "LedgerState",
    "ContractFailure",
]
