"""
Ledger record types exchanged between the transaction pipeline and a
transport.

Example:
    >>> handle = SubmissionHandle(tx_hash="ab12...", status=SubmissionStatus.PENDING)
    >>> report = StatusReport(TransactionStatus.NOT_FOUND)
    >>> report.is_final
    False
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from offerhub.codec import WireValue


@dataclass(frozen=True)
class ResourceFootprint:
    """Ledger entries and budgets a simulation says the invocation needs."""

    read_only: Tuple[str, ...] = ()
    read_write: Tuple[str, ...] = ()
    instructions: int = 0
    read_bytes: int = 0
    write_bytes: int = 0

    def merge(self, other: "ResourceFootprint") -> "ResourceFootprint":
        read_write = tuple(sorted(set(self.read_write) | set(other.read_write)))
        read_only = tuple(sorted((set(self.read_only) | set(other.read_only)) - set(read_write)))
        return ResourceFootprint(
            read_only=read_only,
            read_write=read_write,
            instructions=max(self.instructions, other.instructions),
            read_bytes=max(self.read_bytes, other.read_bytes),
            write_bytes=max(self.write_bytes, other.write_bytes),
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "read_only": list(self.read_only),
            "read_write": list(self.read_write),
            "instructions": self.instructions,
            "read_bytes": self.read_bytes,
            "write_bytes": self.write_bytes,
        }

    @classmethod
    def from_json(cls, data: Optional[Dict[str, Any]]) -> "ResourceFootprint":
        if not data:
            return cls()
        return cls(
            read_only=tuple(data.get("read_only") or ()),
            read_write=tuple(data.get("read_write") or ()),
            instructions=int(data.get("instructions") or 0),
            read_bytes=int(data.get("read_bytes") or 0),
            write_bytes=int(data.get("write_bytes") or 0),
        )


@dataclass(frozen=True)
class AccountInfo:
    address: str
    sequence: int
    balance: Optional[int] = None


@dataclass(frozen=True)
class SimulationOutcome:
    """
    Result of a dry run.

    ``error`` holds the node's diagnostic when the dry run failed; the
    other fields are then meaningless.
    """

    return_value: Optional[WireValue] = None
    footprint: ResourceFootprint = field(default_factory=ResourceFootprint)
    min_resource_fee: int = 0
    latest_ledger: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SubmissionStatus(str, Enum):
    PENDING = "PENDING"
    DUPLICATE = "DUPLICATE"
    TRY_AGAIN_LATER = "TRY_AGAIN_LATER"
    ERROR = "ERROR"


REFUSED_SUBMISSION_STATUSES = frozenset({SubmissionStatus.ERROR, SubmissionStatus.TRY_AGAIN_LATER})


@dataclass(frozen=True)
class SubmissionHandle:
    tx_hash: str
    status: SubmissionStatus = SubmissionStatus.PENDING
    latest_ledger: Optional[int] = None
    error: Optional[str] = None


class TransactionStatus(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


FINAL_STATUSES = frozenset({TransactionStatus.SUCCESS, TransactionStatus.FAILED})


@dataclass(frozen=True)
class OperationResult:
    """Outcome of one operation; ``return_value`` is the invoked function's result."""

    return_value: Optional[WireValue] = None


@dataclass(frozen=True)
class TransactionMeta:
    """Metadata of a finalized transaction."""

    results: List[OperationResult] = field(default_factory=list)
    ledger: Optional[int] = None
    fee_charged: Optional[int] = None


@dataclass(frozen=True)
class StatusReport:
    status: TransactionStatus
    meta: Optional[TransactionMeta] = None
    diagnostic: Optional[str] = None
    ledger: Optional[int] = None

    @property
    def is_final(self) -> bool:
        return self.status in FINAL_STATUSES
