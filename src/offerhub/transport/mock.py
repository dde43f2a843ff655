"""
In-memory ledger for tests and offline use.

:class:`MockLedgerTransport` runs the OfferHub contract's observable
behaviour against plain dictionaries: profile registry, claim counter,
receiver and issuer indexes, identifier linking and the reputation
score. Contract failures are reported the way a node reports them,
as ``Error(Contract, #N)`` diagnostics.
"""

from __future__ import annotations

import hashlib
import hmac
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

from offerhub.codec import VOID, Address, WireValue, decode, encode
from offerhub.constants import (
    JOB_COMPLETED_CLAIM_TYPE,
    JOB_COMPLETED_POINTS,
    MAX_METADATA_URI_LENGTH,
    MIN_IDENTIFIER_LENGTH,
    OTHER_CLAIM_POINTS,
    SECONDS_PER_WEEK,
)
from offerhub.config import NETWORKS, Network
from offerhub.contract import METHODS
from offerhub.errors import (
    AccountError,
    ContractErrorCode,
    DecodingError,
    EncodingError,
    InvalidAddressError,
)
from offerhub.models import Claim, ClaimStatus, LinkedAccount, Profile
from offerhub.transport.base import LedgerTransport
from offerhub.tx.envelope import Envelope, SignedEnvelope
from offerhub.types import (
    AccountInfo,
    OperationResult,
    ResourceFootprint,
    SimulationOutcome,
    StatusReport,
    SubmissionHandle,
    SubmissionStatus,
    TransactionMeta,
    TransactionStatus,
)
from offerhub.utils.logging import get_logger

if TYPE_CHECKING:
    from offerhub.config import OfferHubConfig

_logger = get_logger(__name__)

DEFAULT_BALANCE = 10_000 * 10**7  # stroops
DEFAULT_MIN_RESOURCE_FEE = 5_000
DEFAULT_START_LEDGER = 1_000

# Names used by the deployed contract build.
FUNCTION_ALIASES = {"link_did": "link_identifier", "get_did": "get_identifier"}


class ContractFailure(Exception):
    """A contract call aborted with an error code."""

    def __init__(self, code: ContractErrorCode) -> None:
        super().__init__(f"HostError: Error(Contract, #{int(code)})")
        self.code = code


@dataclass
class _PendingTransaction:
    report: StatusReport
    pending_polls: int


@dataclass
class LedgerState:
    """Contract storage of the mock ledger."""

    profiles: Dict[str, Profile] = field(default_factory=dict)
    claims: Dict[int, Claim] = field(default_factory=dict)
    user_claims: Dict[str, List[int]] = field(default_factory=dict)
    issuer_claims: Dict[str, List[int]] = field(default_factory=dict)
    next_claim_id: int = 0


class MockLedgerTransport(LedgerTransport):
    """
    Ledger transport backed by an in-memory contract.

    Every account is funded on first use unless ``auto_fund`` is False,
    in which case only accounts added with :meth:`fund` exist. Accepted
    transactions report ``PENDING`` for ``pending_polls`` status queries
    before their final status.

    Attributes:
        state: Contract storage
        account_lookups: Number of ``get_account`` calls
        simulations: Number of ``simulate`` calls
        submissions: Number of ``submit`` calls
        status_queries: Number of ``get_transaction_status`` calls

    Example:
        ```python
        transport = MockLedgerTransport(contract_id, pending_polls=2)
        client = OfferHubClient(config, transport, MockSigner(), account)
        claim_id = await client.add_claim(receiver, "job_completed", proof)
        ```
    """

    def __init__(
        self,
        contract_id: Optional[str] = None,
        *,
        network_passphrase: Optional[str] = None,
        pending_polls: int = 0,
        auto_fund: bool = True,
        min_resource_fee: int = DEFAULT_MIN_RESOURCE_FEE,
        start_ledger: int = DEFAULT_START_LEDGER,
        verify_secret: Optional[bytes] = b"offerhub-mock",
        now: Callable[[], float] = time.time,
    ) -> None:
        if pending_polls < 0:
            raise ValueError("pending_polls must be >= 0")
        self.contract_id = contract_id
        self.network_passphrase = network_passphrase or NETWORKS[Network.TESTNET].passphrase
        self.pending_polls = pending_polls
        self.auto_fund = auto_fund
        self.min_resource_fee = min_resource_fee
        self.verify_secret = verify_secret
        self._now = now
        self._time_offset = 0

        self.state = LedgerState()
        self._accounts: Dict[str, AccountInfo] = {}
        self._transactions: Dict[str, _PendingTransaction] = {}
        self._latest_ledger = start_ledger

        self.account_lookups = 0
        self.simulations = 0
        self.submissions = 0
        self.status_queries = 0

    @classmethod
    def from_config(cls, config: "OfferHubConfig", **kwargs: Any) -> "MockLedgerTransport":
        return cls(config.contract_id, network_passphrase=config.network_passphrase, **kwargs)

    # ------------------------------------------------------------------
    # Test controls
    # ------------------------------------------------------------------

    def fund(self, address: str, balance: int = DEFAULT_BALANCE, sequence: int = 0) -> AccountInfo:
        """Create or replace a funded account."""
        address = Address.parse(address).value
        account = AccountInfo(address=address, sequence=sequence, balance=balance)
        self._accounts[address] = account
        return account

    def timestamp(self) -> int:
        """Ledger close time in seconds."""
        return int(self._now()) + self._time_offset

    def advance_time(self, seconds: int) -> None:
        self._time_offset += seconds

    # ------------------------------------------------------------------
    # LedgerTransport
    # ------------------------------------------------------------------

    async def get_account(self, address: str) -> AccountInfo:
        self.account_lookups += 1
        try:
            address = Address.parse(address).value
        except InvalidAddressError as e:
            raise AccountError(address, e.reason or "invalid address") from e

        account = self._accounts.get(address)
        if account is None:
            if not self.auto_fund:
                raise AccountError(address, "account not found")
            account = self.fund(address)
        if not account.balance:
            raise AccountError(address, "account is not funded")
        return account

    async def get_latest_ledger(self) -> int:
        return self._latest_ledger

    async def simulate(self, envelope: Envelope) -> SimulationOutcome:
        self.simulations += 1
        try:
            function, args = self._resolve(envelope)
            return_value = self._execute(function, args, apply=False)
        except ContractFailure as e:
            return SimulationOutcome(error=str(e), latest_ledger=self._latest_ledger)
        except (DecodingError, EncodingError, KeyError) as e:
            return SimulationOutcome(
                error=f"HostError: Error(WasmVm, InvalidAction): {e}",
                latest_ledger=self._latest_ledger,
            )

        return SimulationOutcome(
            return_value=return_value,
            footprint=self._footprint(envelope, function, args),
            min_resource_fee=self.min_resource_fee,
            latest_ledger=self._latest_ledger,
        )

    async def submit(self, signed: bytes) -> SubmissionHandle:
        self.submissions += 1
        try:
            signed_envelope = SignedEnvelope.from_bytes(signed)
            envelope = Envelope.from_bytes(signed_envelope.body, self.network_passphrase)
        except DecodingError as e:
            return SubmissionHandle(
                tx_hash="", status=SubmissionStatus.ERROR, error=f"txMalformed: {e.message}"
            )

        tx_hash = envelope.hash()
        if tx_hash in self._transactions:
            return SubmissionHandle(
                tx_hash=tx_hash, status=SubmissionStatus.DUPLICATE, latest_ledger=self._latest_ledger
            )

        refusal = self._check_submission(envelope, signed_envelope)
        if refusal is not None:
            _logger.debug("Mock ledger refused transaction", extra={"tx_hash": tx_hash, "error": refusal})
            return SubmissionHandle(
                tx_hash=tx_hash,
                status=SubmissionStatus.ERROR,
                latest_ledger=self._latest_ledger,
                error=refusal,
            )

        account = self._accounts[envelope.source]
        self._accounts[envelope.source] = AccountInfo(
            address=account.address,
            sequence=envelope.sequence,
            balance=(account.balance or 0) - envelope.fee,
        )
        self._latest_ledger += 1

        try:
            function, args = self._resolve(envelope)
            return_value = self._execute(function, args, apply=True)
        except ContractFailure as e:
            report = StatusReport(TransactionStatus.FAILED, diagnostic=str(e), ledger=self._latest_ledger)
        except (DecodingError, EncodingError, KeyError) as e:
            report = StatusReport(
                TransactionStatus.FAILED,
                diagnostic=f"HostError: Error(WasmVm, InvalidAction): {e}",
                ledger=self._latest_ledger,
            )
        else:
            report = StatusReport(
                TransactionStatus.SUCCESS,
                meta=TransactionMeta(
                    results=[OperationResult(return_value)],
                    ledger=self._latest_ledger,
                    fee_charged=envelope.fee,
                ),
                ledger=self._latest_ledger,
            )

        self._transactions[tx_hash] = _PendingTransaction(report, self.pending_polls)
        return SubmissionHandle(tx_hash=tx_hash, status=SubmissionStatus.PENDING, latest_ledger=self._latest_ledger)

    async def get_transaction_status(self, tx_hash: str) -> StatusReport:
        self.status_queries += 1
        pending = self._transactions.get(tx_hash)
        if pending is None:
            return StatusReport(TransactionStatus.NOT_FOUND)
        if pending.pending_polls > 0:
            pending.pending_polls -= 1
            return StatusReport(TransactionStatus.PENDING)
        return pending.report

    # ------------------------------------------------------------------
    # Submission checks
    # ------------------------------------------------------------------

    def _check_submission(self, envelope: Envelope, signed: SignedEnvelope) -> Optional[str]:
        account = self._accounts.get(envelope.source)
        if account is None:
            return "txNoAccount"
        if envelope.sequence != account.sequence + 1:
            return "txBadSeq"
        if envelope.valid_until_ledger < self._latest_ledger:
            return "txTooLate"
        if not any(signer == envelope.source for signer, _ in signed.signatures):
            return "txBadAuth"
        if self.verify_secret is not None:
            expected = hmac.new(
                self.verify_secret,
                self.network_passphrase.encode("utf-8") + signed.body,
                hashlib.sha256,
            ).hexdigest()
            if not any(hmac.compare_digest(sig, expected) for _, sig in signed.signatures):
                return "txBadAuth"
        return None

    def _resolve(self, envelope: Envelope) -> Tuple[str, Dict[str, Any]]:
        invocation = envelope.invocation
        if self.contract_id is not None and invocation.contract_id != self.contract_id:
            raise KeyError(f"contract {invocation.contract_id} is not deployed")
        function = FUNCTION_ALIASES.get(invocation.method, invocation.method)
        entry = METHODS.get(function)
        if entry is None:
            raise KeyError(f"unknown function {invocation.method}")
        if len(invocation.args) != len(entry.params):
            raise KeyError(f"{invocation.method} expects {len(entry.params)} argument(s)")
        args = {
            name: decode(wire, shape)
            for (name, shape), wire in zip(entry.params, invocation.args)
        }
        return function, args

    def _footprint(self, envelope: Envelope, function: str, args: Dict[str, Any]) -> ResourceFootprint:
        entry = METHODS[function]
        keys = [f"{k}:{v}" for k, v in sorted(args.items()) if isinstance(v, (str, int))]
        instance = [f"instance:{envelope.invocation.contract_id}"]
        if entry.read_only:
            return ResourceFootprint(read_only=tuple(instance + keys), instructions=100_000, read_bytes=512)
        return ResourceFootprint(
            read_only=tuple(instance),
            read_write=tuple(keys),
            instructions=500_000,
            read_bytes=1024,
            write_bytes=512,
        )

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    def _execute(self, function: str, args: Dict[str, Any], *, apply: bool) -> WireValue:
        handler = getattr(self, f"_fn_{function}")
        result, returns = handler(apply=apply, **args)
        return encode(result, returns)

    def _fn_register_profile(
        self,
        *,
        apply: bool,
        owner: str,
        metadata_uri: str,
        display_name: str,
        country_code: Optional[str],
        email_hash: Optional[bytes],
        linked_accounts: List[Dict[str, Any]],
    ):
        _check_metadata_uri(metadata_uri)
        if owner in self.state.profiles:
            raise ContractFailure(ContractErrorCode.PROFILE_ALREADY_EXISTS)
        if apply:
            self.state.profiles[owner] = Profile(
                owner=owner,
                metadata_uri=metadata_uri,
                display_name=display_name,
                country_code=country_code,
                email_hash=email_hash,
                linked_accounts=[LinkedAccount.from_native(item) for item in linked_accounts],
                joined_at=self.timestamp(),
            )
            _logger.debug("Mock ledger registered profile", extra={"owner": owner})
        return None, VOID

    def _fn_update_profile_data(
        self,
        *,
        apply: bool,
        owner: str,
        display_name: str,
        metadata_uri: str,
        country_code: Optional[str],
        email_hash: Optional[bytes],
        linked_accounts: List[Dict[str, Any]],
    ):
        profile = self.state.profiles.get(owner)
        if profile is None:
            raise ContractFailure(ContractErrorCode.PROFILE_NOT_FOUND)
        _check_metadata_uri(metadata_uri)
        if apply:
            profile.display_name = display_name
            profile.metadata_uri = metadata_uri
            profile.country_code = country_code
            profile.email_hash = email_hash
            profile.linked_accounts = [LinkedAccount.from_native(item) for item in linked_accounts]
        return None, VOID

    def _fn_add_claim(self, *, apply: bool, issuer: str, receiver: str, claim_type: str, proof_hash: bytes):
        claim_id = self.state.next_claim_id
        if apply:
            self.state.next_claim_id += 1
            self.state.claims[claim_id] = Claim(
                id=claim_id,
                issuer=issuer,
                receiver=receiver,
                claim_type=claim_type,
                proof_hash=proof_hash,
                status=ClaimStatus.APPROVED,
            )
            self.state.user_claims.setdefault(receiver, []).append(claim_id)
            self.state.issuer_claims.setdefault(issuer, []).append(claim_id)
            _logger.debug("Mock ledger added claim", extra={"claim_id": claim_id, "claim_type": claim_type})
        return claim_id, METHODS["add_claim"].returns

    def _fn_link_identifier(self, *, apply: bool, owner: str, identifier: str):
        if len(identifier.strip()) < MIN_IDENTIFIER_LENGTH:
            raise ContractFailure(ContractErrorCode.INVALID_IDENTIFIER)
        profile = self.state.profiles.get(owner)
        if profile is None:
            raise ContractFailure(ContractErrorCode.PROFILE_NOT_FOUND)
        if apply:
            profile.identifier = identifier
        return None, VOID

    def _fn_get_profile(self, *, apply: bool, account: str):
        profile = self.state.profiles.get(account)
        return (profile.to_native() if profile else None), METHODS["get_profile"].returns

    def _fn_get_claim(self, *, apply: bool, claim_id: int):
        claim = self.state.claims.get(claim_id)
        return (claim.to_native() if claim else None), METHODS["get_claim"].returns

    def _fn_get_user_claims(self, *, apply: bool, account: str):
        return self._claims_for(self.state.user_claims, account), METHODS["get_user_claims"].returns

    def _fn_get_issuer_claims(self, *, apply: bool, account: str):
        return self._claims_for(self.state.issuer_claims, account), METHODS["get_issuer_claims"].returns

    def _fn_get_total_claims(self, *, apply: bool):
        return self.state.next_claim_id, METHODS["get_total_claims"].returns

    def _fn_get_identifier(self, *, apply: bool, account: str):
        profile = self.state.profiles.get(account)
        return (profile.identifier if profile else None), METHODS["get_identifier"].returns

    def _fn_get_reputation_score(self, *, apply: bool, account: str):
        return self.reputation_score(account), METHODS["get_reputation_score"].returns

    def _claims_for(self, index: Dict[str, List[int]], account: str) -> List[Dict[str, Any]]:
        return [
            self.state.claims[claim_id].to_native()
            for claim_id in index.get(account, [])
            if claim_id in self.state.claims
        ]

    def reputation_score(self, account: str) -> int:
        """
        Score of ``account``: 10 per approved ``job_completed`` claim, 5 per
        other approved claim, plus one per full week since the profile was
        registered. Accounts without a profile score 0.
        """
        profile = self.state.profiles.get(account)
        if profile is None:
            return 0

        score = 0
        for claim_id in self.state.user_claims.get(account, []):
            claim = self.state.claims.get(claim_id)
            if claim is None or claim.status is not ClaimStatus.APPROVED:
                continue
            if claim.claim_type == JOB_COMPLETED_CLAIM_TYPE:
                score += JOB_COMPLETED_POINTS
            else:
                score += OTHER_CLAIM_POINTS

        now = self.timestamp()
        if now > profile.joined_at:
            score += (now - profile.joined_at) // SECONDS_PER_WEEK
        return score


def _check_metadata_uri(uri: str) -> None:
    if not uri or len(uri) > MAX_METADATA_URI_LENGTH:
        raise ContractFailure(ContractErrorCode.INVALID_METADATA_URI)
