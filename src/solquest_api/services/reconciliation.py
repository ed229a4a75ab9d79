"""Background release of reservations abandoned by crashed requests.

A process that dies between reserving a slot and recording the mint outcome
leaves the claim RESERVED forever, which blocks the wallet. The reconciler
periodically moves such claims to FAILED once they are older than
`CLAIM_RESERVATION_TIMEOUT_SECONDS`, so the wallet can retry with the same
token id.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

from solquest_api.core.errors import StoreUnavailableError
from solquest_api.core.settings import settings
from solquest_api.services.claim_ledger import ClaimLedger, get_claim_ledger

logger = logging.getLogger(__name__)


class ClaimReconciler:
    """Periodically releases stale OG reservations."""

    def __init__(
        self,
        ledger: ClaimLedger | None = None,
        *,
        reservation_timeout: timedelta | None = None,
        interval_seconds: float | None = None,
    ) -> None:
        self.ledger = ledger or get_claim_ledger()
        self.reservation_timeout = reservation_timeout or timedelta(
            seconds=settings.claim_reservation_timeout_seconds
        )
        self.interval_seconds = interval_seconds or settings.reconcile_interval_seconds
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    async def run_once(self) -> list[str]:
        """Release stale reservations once and return the affected wallets."""
        return await asyncio.to_thread(
            self.ledger.release_stale_reservations, self.reservation_timeout
        )

    async def start(self) -> None:
        """Start the background reconciliation loop."""
        if self._task is None or self._task.done():
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background reconciliation loop."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    async def _run(self) -> None:
        interval = max(0.1, float(self.interval_seconds))

        while not self._stopping.is_set():
            try:
                released = await self.run_once()
            except StoreUnavailableError as e:
                logger.warning("ClaimReconciler could not reach the claim store: %s", e)
                released = []
            if released:
                logger.info("ClaimReconciler released %d stale reservations", len(released))

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=interval)
            except asyncio.TimeoutError:
                continue
