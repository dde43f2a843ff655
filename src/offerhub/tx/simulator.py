"""
Simulation and resource estimation.

A dry run tells us the footprint and resource fee a write needs; for a
read it is the whole call, and its return value is the result.
"""

from __future__ import annotations

from typing import Optional

from offerhub.errors import SimulationError
from offerhub.transport.base import LedgerTransport
from offerhub.tx.envelope import Envelope, EnvelopeState
from offerhub.types import SimulationOutcome
from offerhub.utils.cancellation import CancellationToken, guarded
from offerhub.utils.logging import get_logger

_logger = get_logger(__name__)


async def simulate(
    transport: LedgerTransport,
    envelope: Envelope,
    *,
    cancel: Optional[CancellationToken] = None,
) -> SimulationOutcome:
    """
    Dry-run ``envelope`` and move it to ``SIMULATED``.

    Raises:
        SimulationError: If the node rejects the dry run; the diagnostic is kept verbatim
        OperationCancelledError: If ``cancel`` fires first
    """
    outcome = await guarded(transport.simulate(envelope), cancel, stage="simulate")
    if not outcome.ok:
        _logger.info(
            "Simulation rejected",
            extra={"method": envelope.method, "error": outcome.error},
        )
        raise SimulationError(outcome.error, method=envelope.method)

    envelope.advance(EnvelopeState.SIMULATED)
    return outcome


def prepare(envelope: Envelope, outcome: SimulationOutcome) -> Envelope:
    """
    Merge footprint and resource fee into ``envelope`` (``PREPARED``).

    The total fee becomes the base fee plus the minimum resource fee.
    """
    envelope.footprint = envelope.footprint.merge(outcome.footprint)
    envelope.resource_fee = outcome.min_resource_fee
    envelope.fee = envelope.fee + outcome.min_resource_fee
    envelope.advance(EnvelopeState.PREPARED)
    _logger.debug(
        "Envelope prepared",
        extra={"method": envelope.method, "fee": envelope.fee, "resource_fee": envelope.resource_fee},
    )
    return envelope
