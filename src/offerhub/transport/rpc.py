"""
JSON-RPC ledger transport.

Talks JSON-RPC 2.0 over HTTP to a ledger gateway. Transactions travel
as base64 of their canonical bytes and wire values in their canonical
JSON form.

Methods used:
- ``getAccount {address}`` -> ``{id, sequence, balance}`` or null
- ``getLatestLedger`` -> ``{sequence}``
- ``simulateTransaction {transaction}`` -> ``{results: [{retval}], footprint,
  minResourceFee, latestLedger}`` or ``{error}``
- ``sendTransaction {transaction}`` -> ``{hash, status, latestLedger, errorResult}``
- ``getTransaction {hash}`` -> ``{status, ledger, returnValue, feeCharged, resultError}``
"""

from __future__ import annotations

import base64
import itertools
from typing import TYPE_CHECKING, Any, Dict, Optional

import httpx

from offerhub.codec import WireValue
from offerhub.config import CircuitBreakerConfig
from offerhub.constants import REQUEST_TIMEOUT_MS
from offerhub.errors import AccountError, DecodingError, TransportError
from offerhub.transport.base import LedgerTransport
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
from offerhub.utils.circuit_breaker import CircuitBreaker
from offerhub.utils.logging import get_logger
from offerhub.utils.retry import RetryConfig, retry_async

if TYPE_CHECKING:
    from offerhub.config import OfferHubConfig
    from offerhub.tx.envelope import Envelope

_logger = get_logger(__name__)


def _is_retryable(error: BaseException) -> bool:
    return getattr(error, "retryable", False)


class JsonRpcTransport(LedgerTransport):
    """
    Ledger transport backed by a JSON-RPC endpoint.

    Each request opens a short-lived ``httpx.AsyncClient``. Connection
    failures, timeouts, HTTP 429 and 5xx answers are retried with
    exponential backoff, except ``sendTransaction``, which is sent once.
    Every call runs behind a circuit breaker so a dead node fails fast.

    Example:
        ```python
        transport = JsonRpcTransport("https://soroban-testnet.stellar.org")
        latest = await transport.get_latest_ledger()
        ```
    """

    def __init__(
        self,
        url: str,
        *,
        timeout_ms: int = REQUEST_TIMEOUT_MS,
        retry_config: Optional[RetryConfig] = None,
        circuit_breaker: Optional[CircuitBreakerConfig] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        if not url:
            raise ValueError("RPC url is required")
        self.url = url
        self._timeout = httpx.Timeout(timeout_ms / 1000)
        self._headers = dict(headers or {})
        self._retry_config = retry_config or RetryConfig(
            max_attempts=3,
            base_delay_ms=250,
            retryable_errors=(TransportError,),
            should_retry=_is_retryable,
        )
        self._circuit_breaker = CircuitBreaker(circuit_breaker, name=url)
        self._ids = itertools.count(1)

    @classmethod
    def from_config(cls, config: "OfferHubConfig") -> "JsonRpcTransport":
        url = config.effective_rpc_url
        if not url:
            raise ValueError(f"no RPC url configured for network {config.network.value}")
        return cls(
            url,
            timeout_ms=config.request_timeout_ms,
            circuit_breaker=config.circuit_breaker,
        )

    @property
    def circuit_breaker_state(self) -> str:
        return self._circuit_breaker.state.value

    # ------------------------------------------------------------------
    # JSON-RPC plumbing
    # ------------------------------------------------------------------

    async def _call(
        self,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        *,
        retry: bool = True,
    ) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method}
        if params is not None:
            payload["params"] = params

        async def do_call() -> Any:
            try:
                async with httpx.AsyncClient(timeout=self._timeout, headers=self._headers) as client:
                    response = await client.post(self.url, json=payload)
            except httpx.TransportError as e:
                raise TransportError(
                    f"{method} request failed: {e}",
                    endpoint=self.url,
                    rpc_method=method,
                ) from e

            if response.status_code == 429 or response.status_code >= 500:
                raise TransportError(
                    f"{method} failed: HTTP {response.status_code}",
                    endpoint=self.url,
                    rpc_method=method,
                    details={"status_code": response.status_code},
                )
            if response.status_code != 200:
                raise TransportError(
                    f"{method} failed: HTTP {response.status_code}",
                    endpoint=self.url,
                    rpc_method=method,
                    details={"status_code": response.status_code},
                    retryable=False,
                )

            try:
                body = response.json()
            except ValueError as e:
                raise TransportError(
                    f"{method} returned invalid JSON",
                    endpoint=self.url,
                    rpc_method=method,
                    retryable=False,
                ) from e

            error = body.get("error") if isinstance(body, dict) else None
            if error:
                raise TransportError(
                    f"{method} error {error.get('code')}: {error.get('message')}",
                    endpoint=self.url,
                    rpc_method=method,
                    details={"rpc_code": error.get("code"), "rpc_data": error.get("data")},
                    retryable=False,
                )
            return body.get("result") if isinstance(body, dict) else None

        if not retry:
            return await self._circuit_breaker.execute(do_call)
        return await self._circuit_breaker.execute(
            lambda: retry_async(do_call, self._retry_config, operation=method)
        )

    @staticmethod
    def _wire(data: Any, field: str) -> Optional[WireValue]:
        if data is None:
            return None
        try:
            return WireValue.from_json(data)
        except DecodingError as e:
            raise DecodingError(f"{field}: {e.message}", tag=e.tag) from e

    # ------------------------------------------------------------------
    # LedgerTransport
    # ------------------------------------------------------------------

    async def get_account(self, address: str) -> AccountInfo:
        try:
            result = await self._call("getAccount", {"address": address})
        except TransportError as e:
            if e.retryable:
                raise
            raise AccountError(address, e.message) from e
        if not result:
            raise AccountError(address, "account not found")
        return AccountInfo(
            address=result.get("id", address),
            sequence=int(result["sequence"]),
            balance=int(result["balance"]) if result.get("balance") is not None else None,
        )

    async def get_latest_ledger(self) -> int:
        result = await self._call("getLatestLedger")
        return int(result["sequence"])

    async def simulate(self, envelope: "Envelope") -> SimulationOutcome:
        result = await self._call(
            "simulateTransaction",
            {"transaction": base64.b64encode(envelope.to_bytes()).decode("ascii")},
        )
        latest = result.get("latestLedger")
        if result.get("error"):
            return SimulationOutcome(error=str(result["error"]), latest_ledger=latest)

        results = result.get("results") or []
        return_value = self._wire(results[0].get("retval"), "retval") if results else None
        return SimulationOutcome(
            return_value=return_value,
            footprint=ResourceFootprint.from_json(result.get("footprint")),
            min_resource_fee=int(result.get("minResourceFee") or 0),
            latest_ledger=latest,
        )

    async def submit(self, signed: bytes) -> SubmissionHandle:
        result = await self._call(
            "sendTransaction",
            {"transaction": base64.b64encode(signed).decode("ascii")},
            retry=False,
        )
        try:
            status = SubmissionStatus(result.get("status", "ERROR"))
        except ValueError:
            status = SubmissionStatus.ERROR
        return SubmissionHandle(
            tx_hash=result.get("hash", ""),
            status=status,
            latest_ledger=result.get("latestLedger"),
            error=result.get("errorResult"),
        )

    async def get_transaction_status(self, tx_hash: str) -> StatusReport:
        result = await self._call("getTransaction", {"hash": tx_hash})
        try:
            status = TransactionStatus(result.get("status"))
        except ValueError as e:
            raise TransportError(
                f"getTransaction returned unknown status {result.get('status')!r}",
                endpoint=self.url,
                rpc_method="getTransaction",
                retryable=False,
            ) from e

        if status is TransactionStatus.SUCCESS:
            meta = TransactionMeta(
                results=[OperationResult(self._wire(result.get("returnValue"), "returnValue"))],
                ledger=result.get("ledger"),
                fee_charged=int(result["feeCharged"]) if result.get("feeCharged") else None,
            )
            return StatusReport(status, meta=meta, ledger=result.get("ledger"))
        if status is TransactionStatus.FAILED:
            return StatusReport(
                status,
                diagnostic=result.get("resultError") or "transaction failed",
                ledger=result.get("ledger"),
            )
        return StatusReport(status)
