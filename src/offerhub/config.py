"""
Configuration for the OfferHub SDK.

Networks are fixed dataclass records; client settings are frozen
pydantic models so a configured client can be shared between tasks.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from offerhub.constants import (
    BASE_FEE,
    DEFAULT_MAX_POLL_ATTEMPTS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    NULL_ACCOUNT,
    REQUEST_TIMEOUT_MS,
    TIMEOUT_LEDGERS,
)

__all__ = [
    "Network",
    "NetworkConfig",
    "NETWORKS",
    "get_network_config",
    "PollConfig",
    "CircuitBreakerConfig",
    "OfferHubConfig",
]

ENV_CONTRACT_ID = "OFFERHUB_CONTRACT_ID"
ENV_NETWORK = "OFFERHUB_NETWORK"
ENV_RPC_URL = "OFFERHUB_RPC_URL"


class Network(str, Enum):
    FUTURENET = "futurenet"
    TESTNET = "testnet"
    MAINNET = "mainnet"


@dataclass(frozen=True)
class NetworkConfig:
    name: Network
    passphrase: str
    rpc_url: Optional[str]


NETWORKS: Dict[Network, NetworkConfig] = {
    Network.FUTURENET: NetworkConfig(
        name=Network.FUTURENET,
        passphrase="Test SDF Future Network ; October 2022",
        rpc_url="https://rpc-futurenet.stellar.org",
    ),
    Network.TESTNET: NetworkConfig(
        name=Network.TESTNET,
        passphrase="Test SDF Network ; September 2015",
        rpc_url="https://soroban-testnet.stellar.org",
    ),
    # No public default; mainnet users bring their own RPC provider.
    Network.MAINNET: NetworkConfig(
        name=Network.MAINNET,
        passphrase="Public Global Stellar Network ; September 2015",
        rpc_url=None,
    ),
}


def get_network_config(network: Network, rpc_url: Optional[str] = None) -> NetworkConfig:
    cfg = NETWORKS[Network(network)]
    if rpc_url:
        return replace(cfg, rpc_url=rpc_url)
    return cfg


class PollConfig(BaseModel):
    """How long to wait for a submitted transaction to finalize."""

    model_config = ConfigDict(frozen=True)

    interval: float = Field(
        default=DEFAULT_POLL_INTERVAL_SECONDS,
        ge=0,
        description="Seconds between status queries",
    )
    max_attempts: int = Field(
        default=DEFAULT_MAX_POLL_ATTEMPTS,
        ge=1,
        description="Maximum number of status queries",
    )
    timeout: Optional[float] = Field(
        default=None,
        gt=0,
        description="Overall bound in seconds across all queries",
    )


class CircuitBreakerConfig(BaseModel):
    """
    Circuit breaker configuration for the RPC endpoint.

    When enabled, repeated RPC failures temporarily block further
    requests instead of piling retries onto an unhealthy node.
    """

    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(
        default=True,
        description="Enable circuit breaker",
    )
    failure_threshold: int = Field(
        default=5,
        ge=1,
        description="Number of failures before opening circuit",
    )
    reset_timeout_ms: int = Field(
        default=30000,
        ge=0,
        description="Cooldown period in ms before attempting reset",
    )
    failure_window_ms: int = Field(
        default=60000,
        ge=1,
        description="Time window in ms for counting failures",
    )
    success_threshold: int = Field(
        default=1,
        ge=1,
        description="Number of successes in half-open to close circuit",
    )


class OfferHubConfig(BaseModel):
    """
    Client configuration.

    Example:
        >>> config = OfferHubConfig(contract_id="CA...", network="testnet")
        >>> config.effective_rpc_url
        'https://soroban-testnet.stellar.org'
    """

    model_config = ConfigDict(frozen=True)

    contract_id: str = Field(
        ...,
        description="Address of the deployed OfferHub contract",
    )
    network: Network = Field(
        default=Network.TESTNET,
        description="Ledger network the contract is deployed on",
    )
    rpc_url: Optional[str] = Field(
        default=None,
        description="RPC endpoint; defaults to the network's public endpoint",
    )
    base_fee: int = Field(
        default=BASE_FEE,
        ge=0,
        description="Inclusion fee in stroops before resource fees",
    )
    timeout_ledgers: int = Field(
        default=TIMEOUT_LEDGERS,
        ge=1,
        description="Validity window, in ledgers past the latest one",
    )
    read_only_source: str = Field(
        default=NULL_ACCOUNT,
        description="Source account for read simulations when no signer is connected",
    )
    request_timeout_ms: int = Field(
        default=REQUEST_TIMEOUT_MS,
        ge=1,
        description="HTTP timeout for each RPC request",
    )
    method_names: Dict[str, str] = Field(
        default_factory=dict,
        description="Contract function name overrides, e.g. {'link_identifier': 'link_did'}",
    )
    poll: PollConfig = Field(default_factory=PollConfig)
    circuit_breaker: CircuitBreakerConfig = Field(default_factory=CircuitBreakerConfig)

    def contract_function(self, method: str) -> str:
        """Name the deployed contract exports for ``method``."""
        return self.method_names.get(method, method)

    @field_validator("contract_id", "read_only_source")
    @classmethod
    def _check_address(cls, value: str) -> str:
        # Imported here; the codec package imports this module's constants.
        from offerhub.codec.address import Address

        return Address.parse(value).value

    @property
    def network_config(self) -> NetworkConfig:
        return get_network_config(self.network, self.rpc_url)

    @property
    def network_passphrase(self) -> str:
        return self.network_config.passphrase

    @property
    def effective_rpc_url(self) -> Optional[str]:
        return self.network_config.rpc_url

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None, **overrides) -> "OfferHubConfig":
        """
        Build a configuration from ``OFFERHUB_*`` environment variables.

        A ``.env`` file is loaded first when present; variables already set
        in the process environment win.

        Raises:
            ValueError: If ``OFFERHUB_CONTRACT_ID`` is missing
        """
        load_dotenv(dotenv_path)

        values = {}
        contract_id = os.getenv(ENV_CONTRACT_ID)
        if contract_id:
            values["contract_id"] = contract_id
        network = os.getenv(ENV_NETWORK)
        if network:
            values["network"] = network.strip().lower()
        rpc_url = os.getenv(ENV_RPC_URL)
        if rpc_url:
            values["rpc_url"] = rpc_url

        values.update(overrides)
        if "contract_id" not in values:
            raise ValueError(f"{ENV_CONTRACT_ID} is not set")
        return cls(**values)
