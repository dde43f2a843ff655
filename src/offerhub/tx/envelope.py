"""
Transaction envelopes and their lifecycle.

An envelope carries exactly one contract invocation plus the source
account, sequence number, fee and validity window. It moves through a
strict lifecycle; every move is checked against ``ALLOWED_TRANSITIONS``.

    BUILT -> SIMULATED -> PREPARED -> SIGNED -> SUBMITTED -> PENDING
          -> FINALIZED_SUCCESS -> RESULT_EXTRACTED
          -> FINALIZED_FAILED  -> REJECTED

Reads stop at ``SIMULATED -> RESULT_EXTRACTED``; a submission refused
outright goes ``SUBMITTED -> REJECTED``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from offerhub.codec import WireValue
from offerhub.errors import DecodingError, InvalidStateTransitionError
from offerhub.types import ResourceFootprint
from offerhub.utils.logging import get_logger

_logger = get_logger(__name__)


class EnvelopeState(str, Enum):
    BUILT = "built"
    SIMULATED = "simulated"
    PREPARED = "prepared"
    SIGNED = "signed"
    SUBMITTED = "submitted"
    PENDING = "pending"
    FINALIZED_SUCCESS = "finalized_success"
    FINALIZED_FAILED = "finalized_failed"
    RESULT_EXTRACTED = "result_extracted"
    REJECTED = "rejected"


ALLOWED_TRANSITIONS = {
    EnvelopeState.BUILT: {EnvelopeState.SIMULATED},
    EnvelopeState.SIMULATED: {EnvelopeState.PREPARED, EnvelopeState.RESULT_EXTRACTED},
    EnvelopeState.PREPARED: {EnvelopeState.SIGNED},
    EnvelopeState.SIGNED: {EnvelopeState.SUBMITTED},
    EnvelopeState.SUBMITTED: {EnvelopeState.PENDING, EnvelopeState.REJECTED},
    EnvelopeState.PENDING: {
        EnvelopeState.PENDING,
        EnvelopeState.FINALIZED_SUCCESS,
        EnvelopeState.FINALIZED_FAILED,
    },
    EnvelopeState.FINALIZED_SUCCESS: {EnvelopeState.RESULT_EXTRACTED},
    EnvelopeState.FINALIZED_FAILED: {EnvelopeState.REJECTED},
    EnvelopeState.RESULT_EXTRACTED: set(),
    EnvelopeState.REJECTED: set(),
}

TERMINAL_STATES = frozenset(
    state for state, targets in ALLOWED_TRANSITIONS.items() if not targets
)


@dataclass(frozen=True)
class Invocation:
    """A single contract function call with encoded arguments."""

    contract_id: str
    method: str
    args: Tuple[WireValue, ...] = ()

    def to_json(self) -> Dict[str, Any]:
        return {
            "contract_id": self.contract_id,
            "method": self.method,
            "args": [arg.to_json() for arg in self.args],
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Invocation":
        return cls(
            contract_id=data["contract_id"],
            method=data["method"],
            args=tuple(WireValue.from_json(arg) for arg in data.get("args") or ()),
        )


@dataclass
class Envelope:
    """
    Unsigned transaction plus its lifecycle state.

    Attributes:
        source: Source account address
        sequence: Sequence number this transaction consumes
        fee: Total fee in stroops (base fee until prepared)
        valid_until_ledger: Last ledger the transaction may be included in
        invocation: The contract call
        network_passphrase: Network the transaction is bound to
        footprint: Resources merged in from simulation
        resource_fee: Resource fee merged in from simulation
        tx_hash: Hash assigned once submitted
    """

    source: str
    sequence: int
    fee: int
    valid_until_ledger: int
    invocation: Invocation
    network_passphrase: str
    footprint: ResourceFootprint = field(default_factory=ResourceFootprint)
    resource_fee: int = 0
    tx_hash: Optional[str] = None
    state: EnvelopeState = EnvelopeState.BUILT
    history: List[EnvelopeState] = field(default_factory=lambda: [EnvelopeState.BUILT])

    @property
    def method(self) -> str:
        return self.invocation.method

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def check_transition(self, new_state: EnvelopeState) -> None:
        """Raise InvalidStateTransitionError unless ``new_state`` is reachable now."""
        allowed = ALLOWED_TRANSITIONS.get(self.state, set())
        if new_state not in allowed:
            raise InvalidStateTransitionError(
                self.state.value,
                new_state.value,
                sorted(s.value for s in allowed),
            )

    def advance(self, new_state: EnvelopeState) -> None:
        """
        Move to ``new_state``.

        Raises:
            InvalidStateTransitionError: If the move is not allowed from the current state
        """
        self.check_transition(new_state)
        _logger.debug(
            "Envelope transition",
            extra={
                "method": self.method,
                "from_state": self.state.value,
                "state": new_state.value,
                "tx_hash": self.tx_hash,
            },
        )
        self.state = new_state
        self.history.append(new_state)

    def to_json(self) -> Dict[str, Any]:
        """Transaction body; excludes lifecycle bookkeeping."""
        return {
            "source": self.source,
            "sequence": str(self.sequence),
            "fee": self.fee,
            "valid_until_ledger": self.valid_until_ledger,
            "invocation": self.invocation.to_json(),
            "footprint": self.footprint.to_json(),
            "resource_fee": self.resource_fee,
        }

    def to_bytes(self) -> bytes:
        return json.dumps(
            self.to_json(), sort_keys=True, separators=(",", ":"), ensure_ascii=False
        ).encode("utf-8")

    def hash(self) -> str:
        """Network-bound transaction hash (hex)."""
        network_id = hashlib.sha256(self.network_passphrase.encode("utf-8")).digest()
        return hashlib.sha256(network_id + self.to_bytes()).hexdigest()

    @classmethod
    def from_bytes(cls, data: bytes, network_passphrase: str) -> "Envelope":
        """
        Parse a transaction body produced by :meth:`to_bytes`.

        Raises:
            DecodingError: If ``data`` is not a transaction body
        """
        try:
            body = json.loads(data)
            return cls(
                source=body["source"],
                sequence=int(body["sequence"]),
                fee=int(body["fee"]),
                valid_until_ledger=int(body["valid_until_ledger"]),
                invocation=Invocation.from_json(body["invocation"]),
                network_passphrase=network_passphrase,
                footprint=ResourceFootprint.from_json(body.get("footprint")),
                resource_fee=int(body.get("resource_fee") or 0),
            )
        except (ValueError, KeyError, TypeError) as e:
            raise DecodingError(f"malformed transaction envelope: {e}") from e


@dataclass(frozen=True)
class SignedEnvelope:
    """
    Transaction body plus signatures, as produced by :class:`MockSigner`.

    External signers may return any byte format their transport accepts.
    """

    body: bytes
    signatures: Tuple[Tuple[str, str], ...] = ()

    def to_bytes(self) -> bytes:
        return json.dumps(
            {
                "tx": json.loads(self.body),
                "signatures": [{"signer": s, "signature": sig} for s, sig in self.signatures],
            },
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
        ).encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> "SignedEnvelope":
        try:
            parsed = json.loads(data)
            body = json.dumps(
                parsed["tx"], sort_keys=True, separators=(",", ":"), ensure_ascii=False
            ).encode("utf-8")
            signatures = tuple((s["signer"], s["signature"]) for s in parsed.get("signatures") or ())
        except (ValueError, KeyError, TypeError) as e:
            raise DecodingError(f"malformed signed envelope: {e}") from e
        return cls(body=body, signatures=signatures)
