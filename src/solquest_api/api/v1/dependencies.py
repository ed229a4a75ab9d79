"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from solquest_api.core.errors import TokenInvalidError
from solquest_api.db.session import get_db
from solquest_api.models import UserAccount
from solquest_api.services.challenge import ChallengeService, get_challenge_service
from solquest_api.services.claim_ledger import ClaimLedger, get_claim_ledger
from solquest_api.services.mint_client import MintClient, get_mint_client
from solquest_api.services.mint_orchestrator import MintOrchestrator
from solquest_api.services.replay import ReplayProtectionService, get_replay_service
from solquest_api.services.session_tokens import (
    SessionIdentity,
    SessionTokenService,
    get_session_token_service,
)
from solquest_api.services.user_service import get_user

# HTTP Bearer scheme; missing credentials are reported by get_current_identity
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def structured_error(status_code: int, code: str, message: str, **extra: Any) -> HTTPException:
    """Build an HTTPException whose detail carries a machine readable code."""
    detail: dict[str, Any] = {"error": code, "message": message}
    detail.update(extra)
    return HTTPException(status_code=status_code, detail=detail)


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_challenge_service_dep() -> ChallengeService:
    return get_challenge_service()


def get_replay_service_dep() -> ReplayProtectionService:
    return get_replay_service()


def get_session_token_service_dep() -> SessionTokenService:
    return get_session_token_service()


def get_claim_ledger_dep() -> ClaimLedger:
    return get_claim_ledger()


def get_mint_client_dep() -> MintClient:
    return get_mint_client()


ChallengeServiceDep = Annotated[ChallengeService, Depends(get_challenge_service_dep)]
ReplayServiceDep = Annotated[ReplayProtectionService, Depends(get_replay_service_dep)]
TokenServiceDep = Annotated[SessionTokenService, Depends(get_session_token_service_dep)]
ClaimLedgerDep = Annotated[ClaimLedger, Depends(get_claim_ledger_dep)]
MintClientDep = Annotated[MintClient, Depends(get_mint_client_dep)]


def get_mint_orchestrator_dep(ledger: ClaimLedgerDep, mint_client: MintClientDep) -> MintOrchestrator:
    return MintOrchestrator(ledger, mint_client)


MintOrchestratorDep = Annotated[MintOrchestrator, Depends(get_mint_orchestrator_dep)]


def get_current_identity(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    tokens: TokenServiceDep,
) -> SessionIdentity:
    """Resolve the caller's identity from the bearer token.

    The identity is also attached to ``request.state.identity``. Every token
    failure yields the same 401 so that callers cannot tell why it failed.
    """
    if credentials is None or not credentials.credentials:
        raise _credentials_exception()
    try:
        identity = tokens.validate(credentials.credentials)
    except TokenInvalidError as err:
        raise _credentials_exception() from err
    request.state.identity = identity
    return identity


# Type alias for current identity dependency
CurrentIdentityDep = Annotated[SessionIdentity, Depends(get_current_identity)]


def get_current_user(identity: CurrentIdentityDep, db: SessionDep) -> UserAccount:
    """Get the account behind the current session token.

    Raises:
        HTTPException: If the account no longer exists or holds another wallet.
    """
    user = get_user(db, identity.user_id)
    if user is None or user.wallet_address != identity.wallet_address:
        raise _credentials_exception()
    return user


# Type alias for current user dependency
CurrentUserDep = Annotated[UserAccount, Depends(get_current_user)]
