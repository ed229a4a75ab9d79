# src/solquest_api/models/claim.py
"""Models backing single-claim, supply-capped OG issuance."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, BigInteger, CheckConstraint, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from solquest_api.db.session import Base
from solquest_api.db.time import utcnow

SUPPLY_COUNTER_ID = 1


class ClaimStatus(str, Enum):
    """Per-wallet claim state. NONE is the absence of an og_claim row."""

    NONE = "NONE"
    RESERVED = "RESERVED"
    MINTED = "MINTED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (ClaimStatus.MINTED, ClaimStatus.FAILED)


class ClaimRecord(Base):
    """The one claim a wallet may hold, keyed by wallet address."""

    __tablename__ = "og_claim"
    __table_args__ = (Index("ix_og_claim_status_reserved_at", "status", "reserved_at"),)

    wallet_address: Mapped[str] = mapped_column(String(44), primary_key=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    # Unique so two wallets can never hold the same counter value.
    token_id: Mapped[int] = mapped_column(BigInteger, unique=True, nullable=False)
    mint_receipt: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    reserved_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    finalized_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class SupplyCounter(Base):
    """Single-row sequence of issued OG token ids.

    `issued` is both the total handed out and the last token id assigned.
    """

    __tablename__ = "og_supply_counter"
    __table_args__ = (CheckConstraint("issued >= 0", name="ck_og_supply_counter_issued"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=SUPPLY_COUNTER_ID)
    issued: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
