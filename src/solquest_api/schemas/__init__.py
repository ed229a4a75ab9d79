"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .auth import ChallengeRequest, ChallengeResponse, VerifyRequest, VerifyResponse
from .common import CamelModel, ErrorDetail, ErrorResponse
from .og_nft import (
    EligibilityResponse,
    MintRequest,
    MintResponse,
    NftAttribute,
    StatsResponse,
)
from .user import UserResponse

__all__ = [
    "CamelModel", "ErrorDetail", "ErrorResponse",
    "ChallengeRequest", "ChallengeResponse", "VerifyRequest", "VerifyResponse",
    "EligibilityResponse", "MintRequest", "MintResponse", "NftAttribute", "StatsResponse",
    "UserResponse",
]
