# src/solquest_api/api/v1/endpoints/auth.py
"""Wallet authentication endpoints for the SolQuest API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from solquest_api.api.v1.dependencies import (
    ChallengeServiceDep,
    ReplayServiceDep,
    SessionDep,
    TokenServiceDep,
    structured_error,
)
from solquest_api.core.errors import (
    AuthenticationFailedError,
    InvalidAddressError,
    StoreUnavailableError,
)
from solquest_api.core.security import verify_signature
from solquest_api.core.settings import settings
from solquest_api.schemas import (
    ChallengeRequest,
    ChallengeResponse,
    UserResponse,
    VerifyRequest,
    VerifyResponse,
)
from solquest_api.services.challenge import format_timestamp
from solquest_api.services.user_service import upsert_user_by_wallet

router = APIRouter(prefix="/auth", tags=["authentication"])

logger = logging.getLogger(__name__)


def _authentication_failed() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Authentication failed",
    )


@router.post(
    "/challenge",
    summary="Issue a wallet sign-in challenge",
    response_model=ChallengeResponse,
)
async def issue_challenge(
    payload: ChallengeRequest,
    challenges: ChallengeServiceDep,
) -> ChallengeResponse:
    """Return the exact message the wallet must sign to authenticate."""
    try:
        challenge = challenges.issue(payload.wallet_address)
    except InvalidAddressError as err:
        raise structured_error(
            status.HTTP_400_BAD_REQUEST, "InvalidAddress", str(err) or "Invalid wallet address"
        ) from err

    return ChallengeResponse(
        message=challenge.message,
        wallet_address=challenge.wallet_address,
        issued_at=challenge.issued_at,
        expires_at=challenge.expires_at,
    )


@router.post(
    "/verify",
    summary="Exchange a signed challenge for a session token",
    status_code=status.HTTP_200_OK,
    response_model=VerifyResponse,
)
async def verify_wallet(
    payload: VerifyRequest,
    db: SessionDep,
    challenges: ChallengeServiceDep,
    replay_service: ReplayServiceDep,
    tokens: TokenServiceDep,
) -> VerifyResponse:
    """Verify the wallet's signature and open a session.

    The first successful verification for a wallet creates its account.
    """
    wallet = payload.wallet_address
    try:
        issued_at = challenges.validate(wallet, payload.message)
    except AuthenticationFailedError as err:
        logger.info("Rejected challenge for %s: %s", wallet, err)
        raise _authentication_failed() from err

    if not verify_signature(wallet, payload.message, payload.signature):
        logger.info("Rejected signature for %s", wallet)
        raise _authentication_failed()

    if settings.challenge_single_use:
        ttl = challenges.ttl + challenges.clock_skew
        try:
            first_use = replay_service.consume(
                wallet, format_timestamp(issued_at), int(ttl.total_seconds())
            )
        except StoreUnavailableError as err:
            raise structured_error(
                status.HTTP_503_SERVICE_UNAVAILABLE, "StoreUnavailable", str(err)
            ) from err
        if not first_use:
            logger.info("Rejected replayed challenge for %s", wallet)
            raise _authentication_failed()

    user, created = upsert_user_by_wallet(db, wallet)
    token = tokens.issue(user.id, wallet)
    logger.info("Wallet %s signed in%s", wallet, " (new account)" if created else "")

    return VerifyResponse(
        token=token,
        token_type="bearer",
        expires_at=tokens.expires_at(token),
        user=UserResponse.model_validate(user),
    )
