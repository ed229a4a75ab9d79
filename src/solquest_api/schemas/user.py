"""User-related Pydantic schemas."""

import uuid
from datetime import datetime

from pydantic import ConfigDict

from .common import CamelModel


class UserResponse(CamelModel):
    """Public view of a wallet-backed account."""

    id: uuid.UUID
    wallet_address: str
    username: str | None = None
    xp: int = 0
    completed_quest_ids: list[str] = []
    claim_state: str
    owns_og_nft: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
