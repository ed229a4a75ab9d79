"""Shared Pydantic building blocks for API payloads."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from solquest_api.core.security import is_valid_wallet_address


class CamelModel(BaseModel):
    """Base schema exchanging camelCase JSON and rejecting unknown fields."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


def check_wallet_address(value: str) -> str:
    """Validate a base58 Ed25519 wallet address for use in field validators."""
    if not is_valid_wallet_address(value):
        raise ValueError("Invalid wallet address")
    return value


class ErrorDetail(CamelModel):
    """Body of a structured error response."""

    error: str = Field(..., description="Machine readable error code")
    message: str = Field(..., description="Human readable explanation")
    token_id: int | None = Field(None, description="Reserved token id, for mint failures")


class ErrorResponse(BaseModel):
    """Envelope FastAPI puts around a structured error."""

    detail: ErrorDetail
