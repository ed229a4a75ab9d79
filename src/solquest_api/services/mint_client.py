"""Clients for the external mint service.

The mint is an opaque, slow and occasionally failing ledger write. It is not
idempotent: calling it twice may create two tokens, so callers must reserve a
slot before calling it and never retry it on their own.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import time
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Protocol

import httpx

from solquest_api.core.errors import MintClientError
from solquest_api.core.settings import settings

logger = logging.getLogger(__name__)

HTTP_OK = 200
HTTP_CREATED = 201


@dataclass(frozen=True)
class MintReceipt:
    """Confirmation returned by the mint service."""

    signature: str
    mint_address: str | None = None
    metadata_uri: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class MintClient(Protocol):
    """Narrow interface to the external ledger."""

    async def mint(
        self, token_id: int, recipient: str, metadata: Mapping[str, Any]
    ) -> MintReceipt: ...


class CircuitState(Enum):
    """Circuit breaker states for fault tolerance."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreaker:
    """Stops calling the mint service for a while after repeated failures."""

    failure_threshold: int = 5
    recovery_timeout: float = 60.0
    success_threshold: int = 1

    _state: CircuitState = CircuitState.CLOSED
    _failure_count: int = 0
    _success_count: int = 0
    _last_failure_time: float = 0.0

    def is_open(self) -> bool:
        """Check if circuit is open."""
        if self._state == CircuitState.OPEN:
            if time.monotonic() - self._last_failure_time > self.recovery_timeout:
                self._state = CircuitState.HALF_OPEN
                self._success_count = 0
            return self._state == CircuitState.OPEN
        return False

    def record_success(self) -> None:
        """Record a successful operation."""
        if self._state == CircuitState.HALF_OPEN:
            self._success_count += 1
            if self._success_count >= self.success_threshold:
                self._state = CircuitState.CLOSED
                self._failure_count = 0
        elif self._state == CircuitState.CLOSED:
            self._failure_count = 0

    def record_failure(self) -> None:
        """Record a failed operation."""
        self._failure_count += 1
        self._last_failure_time = time.monotonic()
        if self._state == CircuitState.HALF_OPEN or self._failure_count >= self.failure_threshold:
            self._state = CircuitState.OPEN

    def get_state(self) -> CircuitState:
        return self._state


class HttpMintClient:
    """Mint client talking JSON over HTTP to the minting service."""

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = float(timeout_seconds or settings.mint_timeout_seconds)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()
        self._circuit_breaker = CircuitBreaker(
            failure_threshold=settings.mint_circuit_failure_threshold,
            recovery_timeout=settings.mint_circuit_recovery_seconds,
        )

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self.base_url,
                    timeout=httpx.Timeout(self._timeout),
                    transport=self._transport,
                )
        return self._client

    def _headers(self, token_id: int) -> dict[str, str]:
        headers = {"Idempotency-Key": f"og-{token_id}"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def mint(
        self, token_id: int, recipient: str, metadata: Mapping[str, Any]
    ) -> MintReceipt:
        """Ask the mint service to create OG token `token_id` for `recipient`."""
        if self._circuit_breaker.is_open():
            raise MintClientError("Mint service circuit breaker is open")

        client = await self._ensure_client()
        try:
            response = await client.post(
                "/mint",
                json={"tokenId": token_id, "recipient": recipient, "metadata": dict(metadata)},
                headers=self._headers(token_id),
            )
        except httpx.HTTPError as exc:
            self._circuit_breaker.record_failure()
            raise MintClientError(f"Mint request failed: {exc}") from exc

        if response.status_code not in (HTTP_OK, HTTP_CREATED):
            self._circuit_breaker.record_failure()
            raise MintClientError(f"Mint service responded with {response.status_code}")

        try:
            payload = response.json()
            signature = payload["signature"]
        except (ValueError, KeyError, TypeError) as exc:
            self._circuit_breaker.record_failure()
            raise MintClientError("Mint service returned an unreadable receipt") from exc

        self._circuit_breaker.record_success()
        return MintReceipt(
            signature=str(signature),
            mint_address=payload.get("mintAddress"),
            metadata_uri=payload.get("metadataUri"),
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class SimulatedMintClient:
    """Development stand-in that pretends every mint succeeds."""

    async def mint(
        self, token_id: int, recipient: str, metadata: Mapping[str, Any]
    ) -> MintReceipt:
        logger.info("Simulating mint of OG #%d to %s", token_id, recipient)
        signature = f"simulated_{int(time.time() * 1000)}_{secrets.token_hex(6)}"
        return MintReceipt(signature=signature, mint_address=None, metadata_uri=None)

    async def close(self) -> None:
        return None


_mint_client: HttpMintClient | SimulatedMintClient | None = None


def get_mint_client() -> HttpMintClient | SimulatedMintClient:
    """Return the process-wide mint client selected by settings."""
    global _mint_client
    if _mint_client is None:
        if settings.mint_service_url:
            _mint_client = HttpMintClient(
                settings.mint_service_url,
                api_key=settings.mint_service_api_key,
            )
        else:
            logger.warning("MINT_SERVICE_URL not set; OG mints will be simulated")
            _mint_client = SimulatedMintClient()
    return _mint_client
