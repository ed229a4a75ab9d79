# src/solquest_api/api/v1/endpoints/og_nft.py
"""OG NFT eligibility, stats and claim endpoints."""

from __future__ import annotations

import asyncio
from typing import Annotated, Any

from fastapi import APIRouter, Body, HTTPException, status

from solquest_api.api.v1.dependencies import (
    ClaimLedgerDep,
    CurrentIdentityDep,
    MintOrchestratorDep,
    structured_error,
)
from solquest_api.core.errors import (
    AlreadyClaimedError,
    ClaimStateError,
    ExternalMintFailedError,
    InvalidAddressError,
    StoreUnavailableError,
    SupplyExhaustedError,
)
from solquest_api.schemas import (
    EligibilityResponse,
    ErrorResponse,
    MintRequest,
    MintResponse,
    StatsResponse,
)
from solquest_api.services.claim_ledger import ClaimLedger

router = APIRouter(prefix="/og-nft", tags=["og-nft"])


def _error_responses(*codes: int) -> dict[int | str, dict[str, Any]]:
    return {code: {"model": ErrorResponse} for code in codes}


def _invalid_address(err: InvalidAddressError) -> HTTPException:
    return structured_error(
        status.HTTP_400_BAD_REQUEST, "InvalidAddress", str(err) or "Invalid wallet address"
    )


def _store_unavailable(err: Exception) -> HTTPException:
    return structured_error(status.HTTP_503_SERVICE_UNAVAILABLE, "StoreUnavailable", str(err))


async def _eligibility(ledger: ClaimLedger, wallet_address: str) -> EligibilityResponse:
    try:
        result = await asyncio.to_thread(ledger.eligibility, wallet_address)
    except InvalidAddressError as err:
        raise _invalid_address(err) from err
    except StoreUnavailableError as err:
        raise _store_unavailable(err) from err

    return EligibilityResponse(
        wallet_address=wallet_address,
        eligible=result.eligible,
        reason=result.reason,
        claim_status=result.claim_status.value,
        remaining=result.remaining,
        next_token_id=result.next_token_id,
        max_supply=result.max_supply,
        total_issued=result.total_issued,
    )


@router.get(
    "/eligibility",
    response_model=EligibilityResponse,
    responses=_error_responses(400, 503),
)
async def read_own_eligibility(
    identity: CurrentIdentityDep,
    ledger: ClaimLedgerDep,
) -> EligibilityResponse:
    """Report whether the signed-in wallet can claim."""
    return await _eligibility(ledger, identity.wallet_address)


@router.get(
    "/eligibility/{wallet_address}",
    response_model=EligibilityResponse,
    responses=_error_responses(400, 503),
)
async def read_eligibility(wallet_address: str, ledger: ClaimLedgerDep) -> EligibilityResponse:
    """Report whether `wallet_address` can claim."""
    return await _eligibility(ledger, wallet_address)


@router.get("/stats", response_model=StatsResponse, responses=_error_responses(503))
async def read_stats(ledger: ClaimLedgerDep) -> StatsResponse:
    """Return collection-wide issuance figures."""
    try:
        stats = await asyncio.to_thread(ledger.stats)
    except StoreUnavailableError as err:
        raise _store_unavailable(err) from err

    return StatsResponse(
        total_issued=stats.total_issued,
        total_minted=stats.total_minted,
        max_supply=stats.max_supply,
        remaining=stats.remaining,
        next_token_id=stats.next_token_id,
    )


@router.post(
    "/mint",
    response_model=MintResponse,
    responses=_error_responses(400, 403, 409, 410, 502, 503),
)
async def mint_og_nft(
    identity: CurrentIdentityDep,
    orchestrator: MintOrchestratorDep,
    payload: Annotated[MintRequest | None, Body()] = None,
) -> MintResponse:
    """Claim the OG NFT for the signed-in wallet.

    A wallet whose previous mint failed retries with the token id it
    already holds.
    """
    wallet = identity.wallet_address
    if payload is not None and payload.wallet_address and payload.wallet_address != wallet:
        raise structured_error(
            status.HTTP_403_FORBIDDEN,
            "WalletMismatch",
            "Wallet address does not match the authenticated wallet",
        )
    attributes = (
        [attribute.model_dump() for attribute in payload.attributes]
        if payload is not None and payload.attributes
        else None
    )

    try:
        result = await orchestrator.claim(wallet, attributes)
    except InvalidAddressError as err:
        raise _invalid_address(err) from err
    except AlreadyClaimedError as err:
        raise structured_error(
            status.HTTP_409_CONFLICT, "AlreadyClaimed", "Wallet has already claimed an OG NFT"
        ) from err
    except SupplyExhaustedError as err:
        raise structured_error(
            status.HTTP_410_GONE, "SupplyExhausted", "All OG NFTs have been claimed"
        ) from err
    except ExternalMintFailedError as err:
        raise structured_error(
            status.HTTP_502_BAD_GATEWAY,
            "MintFailed",
            "Minting failed; the claim can be retried",
            tokenId=err.token_id,
        ) from err
    except (StoreUnavailableError, ClaimStateError) as err:
        raise _store_unavailable(err) from err

    return MintResponse(
        success=True,
        wallet_address=wallet,
        token_id=result.token_id,
        receipt=result.receipt,
        metadata=result.metadata,
    )
