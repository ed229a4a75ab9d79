"""Wallet authentication schemas."""

from datetime import datetime
from typing import Literal

from pydantic import Field, field_validator

from .common import CamelModel, check_wallet_address
from .user import UserResponse


class ChallengeRequest(CamelModel):
    """Request for a sign-in challenge."""

    wallet_address: str = Field(..., description="Base58 Solana wallet address")

    @field_validator("wallet_address")
    @classmethod
    def validate_wallet_address(cls, v: str) -> str:
        return check_wallet_address(v)


class ChallengeResponse(CamelModel):
    """Challenge message the wallet must sign."""

    message: str = Field(..., description="Exact text to sign")
    wallet_address: str
    issued_at: datetime
    expires_at: datetime


class VerifyRequest(CamelModel):
    """Signed challenge submitted to obtain a session token."""

    wallet_address: str = Field(..., description="Base58 Solana wallet address")
    signature: str = Field(..., min_length=1, description="Base58 Ed25519 signature")
    message: str = Field(..., min_length=1, description="Challenge message that was signed")

    @field_validator("wallet_address")
    @classmethod
    def validate_wallet_address(cls, v: str) -> str:
        return check_wallet_address(v)


class VerifyResponse(CamelModel):
    """Session token issued after a successful wallet verification."""

    token: str = Field(..., description="Bearer session token")
    token_type: Literal["bearer"] = "bearer"
    expires_at: datetime
    user: UserResponse
