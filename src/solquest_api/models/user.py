# src/solquest_api/models/user.py
"""SQLAlchemy model for wallet-backed user accounts."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from solquest_api.db.session import Base
from solquest_api.db.time import utcnow
from solquest_api.models.claim import ClaimStatus


class UserAccount(Base):
    """A learner identified by the Solana wallet that signed in."""

    __tablename__ = "user_account"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    wallet_address: Mapped[str] = mapped_column(String(44), unique=True, nullable=False)
    username: Mapped[str | None] = mapped_column(Text, unique=True, nullable=True)
    xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_quest_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    # Mirrors the wallet's og_claim row; written only by the claim ledger.
    claim_state: Mapped[str] = mapped_column(
        String(16), nullable=False, default=ClaimStatus.NONE.value
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    @property
    def owns_og_nft(self) -> bool:
        """Return True once the wallet's OG claim has been minted."""
        return self.claim_state == ClaimStatus.MINTED.value
