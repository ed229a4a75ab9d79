"""Endpoints exposing the authenticated user's account."""

from __future__ import annotations

from fastapi import APIRouter

from solquest_api.api.v1.dependencies import CurrentUserDep
from solquest_api.schemas import UserResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def read_current_user(user: CurrentUserDep) -> UserResponse:
    """Return the account bound to the session token."""
    return UserResponse.model_validate(user)
