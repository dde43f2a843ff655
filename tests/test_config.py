"""
Tests for SDK configuration.

Tests cover:
- Network records and RPC overrides
- OfferHubConfig defaults and validation
- Contract function name overrides
- Loading from environment variables and .env files
"""

import os

import pytest
from pydantic import ValidationError as PydanticValidationError

from offerhub.config import NETWORKS, Network, OfferHubConfig, PollConfig, get_network_config
from offerhub.constants import NULL_ACCOUNT
from offerhub.errors import InvalidAddressError

from conftest import CONTRACT_ID

ENV_VARS = ("OFFERHUB_CONTRACT_ID", "OFFERHUB_NETWORK", "OFFERHUB_RPC_URL")


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield monkeypatch
    # load_dotenv writes to os.environ directly
    for name in ENV_VARS:
        os.environ.pop(name, None)


# =============================================================================
# Networks
# =============================================================================


class TestNetworks:
    """Tests for network records."""

    def test_passphrases(self) -> None:
        assert NETWORKS[Network.TESTNET].passphrase == "Test SDF Network ; September 2015"
        assert NETWORKS[Network.MAINNET].passphrase == "Public Global Stellar Network ; September 2015"
        assert NETWORKS[Network.FUTURENET].passphrase == "Test SDF Future Network ; October 2022"

    def test_mainnet_has_no_public_rpc(self) -> None:
        assert get_network_config(Network.MAINNET).rpc_url is None

    def test_rpc_override(self) -> None:
        cfg = get_network_config("testnet", "https://rpc.example.com")

        assert cfg.rpc_url == "https://rpc.example.com"
        assert NETWORKS[Network.TESTNET].rpc_url == "https://soroban-testnet.stellar.org"


# =============================================================================
# OfferHubConfig
# =============================================================================


class TestOfferHubConfig:
    """Tests for OfferHubConfig."""

    def test_defaults(self) -> None:
        config = OfferHubConfig(contract_id=CONTRACT_ID)

        assert config.network is Network.TESTNET
        assert config.base_fee == 100
        assert config.timeout_ledgers == 30
        assert config.read_only_source == NULL_ACCOUNT
        assert config.poll.interval == 1.0
        assert config.poll.max_attempts == 60
        assert config.poll.timeout is None
        assert config.circuit_breaker.enabled is True
        assert config.effective_rpc_url == "https://soroban-testnet.stellar.org"
        assert config.network_passphrase == "Test SDF Network ; September 2015"

    def test_custom_rpc(self) -> None:
        config = OfferHubConfig(contract_id=CONTRACT_ID, network="mainnet", rpc_url="https://rpc.example.com")

        assert config.effective_rpc_url == "https://rpc.example.com"
        assert config.network_passphrase.startswith("Public Global")

    def test_contract_id_stripped(self) -> None:
        assert OfferHubConfig(contract_id=f" {CONTRACT_ID} ").contract_id == CONTRACT_ID

    def test_invalid_contract_id(self) -> None:
        with pytest.raises(InvalidAddressError):
            OfferHubConfig(contract_id="CNOTANADDRESS")

    def test_unknown_network(self) -> None:
        with pytest.raises(PydanticValidationError):
            OfferHubConfig(contract_id=CONTRACT_ID, network="devnet")

    def test_frozen(self) -> None:
        config = OfferHubConfig(contract_id=CONTRACT_ID)

        with pytest.raises(PydanticValidationError):
            config.base_fee = 5

    @pytest.mark.parametrize("poll", [{"interval": -1}, {"max_attempts": 0}, {"timeout": 0}])
    def test_poll_bounds(self, poll) -> None:
        with pytest.raises(PydanticValidationError):
            PollConfig(**poll)

    def test_contract_function_overrides(self) -> None:
        config = OfferHubConfig(
            contract_id=CONTRACT_ID,
            method_names={"link_identifier": "link_did"},
        )

        assert config.contract_function("link_identifier") == "link_did"
        assert config.contract_function("add_claim") == "add_claim"


class TestFromEnv:
    """Tests for OfferHubConfig.from_env()."""

    def test_reads_environment(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("OFFERHUB_CONTRACT_ID", CONTRACT_ID)
        clean_env.setenv("OFFERHUB_NETWORK", " FUTURENET ")
        clean_env.setenv("OFFERHUB_RPC_URL", "https://rpc.example.com")

        config = OfferHubConfig.from_env()

        assert config.contract_id == CONTRACT_ID
        assert config.network is Network.FUTURENET
        assert config.effective_rpc_url == "https://rpc.example.com"

    def test_overrides_win(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("OFFERHUB_CONTRACT_ID", CONTRACT_ID)

        config = OfferHubConfig.from_env(network="mainnet", base_fee=250)

        assert config.network is Network.MAINNET
        assert config.base_fee == 250

    def test_missing_contract_id(self, clean_env: pytest.MonkeyPatch) -> None:
        with pytest.raises(ValueError, match="OFFERHUB_CONTRACT_ID"):
            OfferHubConfig.from_env()

    def test_dotenv_file(self, clean_env: pytest.MonkeyPatch, tmp_path) -> None:
        env_file = tmp_path / "offerhub.env"
        env_file.write_text(f"OFFERHUB_CONTRACT_ID={CONTRACT_ID}\nOFFERHUB_NETWORK=mainnet\n")
        clean_env.setenv("OFFERHUB_NETWORK", "testnet")

        config = OfferHubConfig.from_env(str(env_file))

        assert config.contract_id == CONTRACT_ID
        assert config.network is Network.TESTNET
