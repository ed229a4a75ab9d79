"""Schemas for OG NFT eligibility, stats and minting."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .common import CamelModel, check_wallet_address


class NftAttribute(BaseModel):
    """Extra metadata trait supplied by the client."""

    trait_type: str = Field(..., min_length=1, max_length=64)
    value: str | int | float

    model_config = ConfigDict(extra="forbid")


class MintRequest(CamelModel):
    """Request to claim the caller's OG NFT."""

    wallet_address: str | None = Field(
        None, description="Must match the authenticated wallet when given"
    )
    attributes: list[NftAttribute] | None = Field(None, max_length=16)

    @field_validator("wallet_address")
    @classmethod
    def validate_wallet_address(cls, v: str | None) -> str | None:
        return None if v is None else check_wallet_address(v)


class MintResponse(CamelModel):
    """Successful claim."""

    success: bool = True
    wallet_address: str
    token_id: int
    receipt: dict[str, Any]
    metadata: dict[str, Any] | None = None


class EligibilityResponse(CamelModel):
    """Whether a wallet can claim right now."""

    wallet_address: str
    eligible: bool
    reason: str
    claim_status: str
    remaining: int
    next_token_id: int = Field(
        ...,
        description=(
            "Token id this wallet holds, or the id the next new claim would get; "
            "maxSupply + 1 once the supply is exhausted"
        ),
    )
    max_supply: int
    total_issued: int


class StatsResponse(CamelModel):
    """Collection-wide issuance figures."""

    total_issued: int
    total_minted: int
    max_supply: int
    remaining: int
    next_token_id: int = Field(
        ..., description="Id the next new claim would get; maxSupply + 1 once sold out"
    )
