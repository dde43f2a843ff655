"""Record types shared by the transaction pipeline and the transports."""

from offerhub.types.ledger import (
    FINAL_STATUSES,
    REFUSED_SUBMISSION_STATUSES,
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

__all__ = [
    "AccountInfo",
    "ResourceFootprint",
    "SimulationOutcome",
    "SubmissionStatus",
    "SubmissionHandle",
    "REFUSED_SUBMISSION_STATUSES",
    "TransactionStatus",
    "FINAL_STATUSES",
    "OperationResult",
    "TransactionMeta",
    "StatusReport",
]
