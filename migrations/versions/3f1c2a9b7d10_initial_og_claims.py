"""user accounts and OG claims

Revision ID: 3f1c2a9b7d10
Revises:
Create Date: 2026-10-18 09:12:44.318204

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3f1c2a9b7d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create user, claim and supply counter tables."""
    op.create_table(
        "user_account",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("wallet_address", sa.String(length=44), nullable=False),
        sa.Column("username", sa.Text(), nullable=True),
        sa.Column("xp", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("completed_quest_ids", sa.JSON(), nullable=False),
        sa.Column("claim_state", sa.String(length=16), nullable=False, server_default="NONE"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("wallet_address"),
        sa.UniqueConstraint("username"),
    )
    op.create_table(
        "og_claim",
        sa.Column("wallet_address", sa.String(length=44), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("token_id", sa.BigInteger(), nullable=False),
        sa.Column("mint_receipt", sa.JSON(), nullable=True),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("reserved_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("finalized_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("wallet_address"),
        sa.UniqueConstraint("token_id"),
    )
    op.create_index("ix_og_claim_status_reserved_at", "og_claim", ["status", "reserved_at"])
    op.create_table(
        "og_supply_counter",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("issued", sa.BigInteger(), nullable=False, server_default="0"),
        sa.CheckConstraint("issued >= 0", name="ck_og_supply_counter_issued"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.bulk_insert(
        sa.table("og_supply_counter", sa.column("id", sa.Integer), sa.column("issued", sa.BigInteger)),
        [{"id": 1, "issued": 0}],
    )


def downgrade() -> None:
    """Drop the claim tables and user accounts."""
    op.drop_table("og_supply_counter")
    op.drop_index("ix_og_claim_status_reserved_at", table_name="og_claim")
    op.drop_table("og_claim")
    op.drop_table("user_account")
