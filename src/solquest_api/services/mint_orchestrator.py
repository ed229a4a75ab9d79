"""Reserve-then-mint flow for OG claims."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from solquest_api.core.errors import (
    ClaimStateError,
    ExternalMintFailedError,
    StoreUnavailableError,
)
from solquest_api.core.settings import settings
from solquest_api.models import ClaimStatus
from solquest_api.services.claim_ledger import ClaimLedger, get_claim_ledger
from solquest_api.services.mint_client import MintClient, get_mint_client
from solquest_api.services.og_metadata import build_og_metadata

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MintResult:
    """Outcome of a successful claim."""

    wallet_address: str
    token_id: int
    receipt: dict[str, Any]
    metadata: dict[str, Any] = field(default_factory=dict)
    status: ClaimStatus = ClaimStatus.MINTED


class MintOrchestrator:
    """Runs one claim end to end: reserve a slot, mint it, record the outcome.

    The reservation commits before the external mint is called, so a wallet
    can never have two mints in flight and the supply cap holds no matter how
    many mints are slow or fail. A failed mint keeps its token id; the next
    claim for that wallet retries it.
    """

    def __init__(
        self,
        ledger: ClaimLedger | None = None,
        mint_client: MintClient | None = None,
        *,
        timeout_seconds: float | None = None,
    ) -> None:
        self.ledger = ledger or get_claim_ledger()
        self.mint_client = mint_client or get_mint_client()
        self.timeout_seconds = timeout_seconds or settings.mint_timeout_seconds

    async def claim(
        self,
        wallet_address: str,
        attributes: Iterable[Mapping[str, Any]] | None = None,
    ) -> MintResult:
        """Claim the OG NFT for `wallet_address`.

        Raises:
            InvalidAddressError: If the wallet address is malformed.
            AlreadyClaimedError: If the wallet is RESERVED or MINTED.
            SupplyExhaustedError: If no token ids are left.
            ExternalMintFailedError: If the mint failed; the claim is FAILED.
            StoreUnavailableError: If the ledger cannot be read or written,
                including when a failed mint could not be recorded as FAILED.
        """
        reservation = await asyncio.to_thread(self.ledger.reserve_slot, wallet_address)
        token_id = reservation.token_id

        try:
            metadata = build_og_metadata(token_id, attributes)
            receipt = await asyncio.wait_for(
                self.mint_client.mint(token_id, wallet_address, metadata),
                timeout=self.timeout_seconds,
            )
        except Exception as exc:
            reason = (
                f"mint timed out after {self.timeout_seconds:g}s"
                if isinstance(exc, asyncio.TimeoutError)
                else str(exc) or exc.__class__.__name__
            )
            logger.warning("Mint of OG #%d for %s failed: %s", token_id, wallet_address, reason)
            if not await self._record_failure(wallet_address, token_id):
                raise StoreUnavailableError(
                    f"Mint of OG #{token_id} failed and the claim could not be released"
                ) from exc
            raise ExternalMintFailedError(wallet_address, token_id, reason) from exc
        except BaseException:
            # Cancelled mid-mint: release the slot so the wallet can retry.
            logger.warning("Mint of OG #%d for %s was interrupted", token_id, wallet_address)
            await self._record_failure(wallet_address, token_id)
            raise

        receipt_data = receipt.to_dict()
        try:
            await asyncio.to_thread(
                self.ledger.finalize, wallet_address, ClaimStatus.MINTED, receipt_data
            )
        except (StoreUnavailableError, ClaimStateError):
            # The token exists on chain; keep the receipt in the log for manual repair.
            logger.error(
                "OG #%d minted for %s but could not be recorded; receipt=%s",
                token_id,
                wallet_address,
                receipt_data,
            )
            raise

        logger.info("Minted OG #%d for %s", token_id, wallet_address)
        return MintResult(
            wallet_address=wallet_address,
            token_id=token_id,
            receipt=receipt_data,
            metadata=metadata,
        )

    async def _record_failure(self, wallet_address: str, token_id: int) -> bool:
        """Mark the claim FAILED; return False if the store refused the write.

        The write is shielded so a second cancellation cannot abandon it.
        Claims this leaves RESERVED are released by `ClaimReconciler`.
        """
        try:
            await asyncio.shield(
                asyncio.to_thread(self.ledger.finalize, wallet_address, ClaimStatus.FAILED)
            )
        except (StoreUnavailableError, ClaimStateError) as err:
            logger.error(
                "Could not mark OG #%d for %s as FAILED: %s", token_id, wallet_address, err
            )
            return False
        return True
