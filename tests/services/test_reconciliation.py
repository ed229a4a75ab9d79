# tests/services/test_reconciliation.py
"""Tests for the stale reservation reconciler."""

import asyncio
from datetime import timedelta

import pytest

from solquest_api.core.errors import StoreUnavailableError
from solquest_api.models import ClaimStatus
from solquest_api.services.reconciliation import ClaimReconciler


@pytest.mark.asyncio
async def test_run_once_releases_stale_reservations(ledger, wallet):
    ledger.reserve_slot(wallet.address)
    reconciler = ClaimReconciler(ledger, reservation_timeout=timedelta(seconds=-1))

    released = await reconciler.run_once()

    assert released == [wallet.address]
    assert ledger.get_claim(wallet.address).status is ClaimStatus.FAILED


@pytest.mark.asyncio
async def test_run_once_keeps_fresh_reservations(ledger, wallet):
    ledger.reserve_slot(wallet.address)
    reconciler = ClaimReconciler(ledger, reservation_timeout=timedelta(minutes=15))

    assert await reconciler.run_once() == []
    assert ledger.get_claim(wallet.address).status is ClaimStatus.RESERVED


@pytest.mark.asyncio
async def test_worker_loop_starts_and_stops(ledger, mocker):
    sweep = mocker.patch.object(ledger, "release_stale_reservations", return_value=[])
    reconciler = ClaimReconciler(ledger, interval_seconds=0.1)

    await reconciler.start()
    await asyncio.sleep(0.05)
    await reconciler.stop()

    assert sweep.call_count >= 1


@pytest.mark.asyncio
async def test_worker_survives_store_outage(ledger, mocker):
    outcomes = iter([StoreUnavailableError("down")])

    def flaky_sweep(older_than):
        error = next(outcomes, None)
        if error is not None:
            raise error
        return []

    sweep = mocker.patch.object(ledger, "release_stale_reservations", side_effect=flaky_sweep)
    reconciler = ClaimReconciler(ledger, interval_seconds=0.1)

    await reconciler.start()
    await asyncio.sleep(0.25)
    await reconciler.stop()

    assert sweep.call_count >= 2
