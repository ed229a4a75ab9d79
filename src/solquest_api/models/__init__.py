# src/solquest_api/models/__init__.py
"""SQLAlchemy models for the SolQuest application."""

from .claim import ClaimRecord, ClaimStatus, SupplyCounter
from .user import UserAccount

__all__ = [
    "ClaimRecord", "ClaimStatus", "SupplyCounter",
    "UserAccount",
]
