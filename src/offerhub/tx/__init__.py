"""
Transaction pipeline.

    TransactionBuilder.build -> simulate -> prepare -> sign_envelope
        -> submit -> poll_until_final -> extract_return
"""

from offerhub.tx.builder import TransactionBuilder
from offerhub.tx.envelope import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATES,
    Envelope,
    EnvelopeState,
    Invocation,
    SignedEnvelope,
)
from offerhub.tx.extractor import extract_return
from offerhub.tx.signer import CallbackSigner, MockSigner, Signer, sign_envelope
from offerhub.tx.simulator import prepare, simulate
from offerhub.tx.submitter import FinalizedResult, poll_until_final, submit

__all__ = [
    "ALLOWED_TRANSITIONS",
    "TERMINAL_STATES",
    "Envelope",
    "EnvelopeState",
    "Invocation",
    "SignedEnvelope",
    "TransactionBuilder",
    "simulate",
    "prepare",
    "Signer",
    "CallbackSigner",
    "MockSigner",
    "sign_envelope",
    "submit",
    "poll_until_final",
    "FinalizedResult",
    "extract_return",
]
