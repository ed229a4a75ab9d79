"""CRUD-style helpers for wallet-backed user accounts."""
from __future__ import annotations

import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from solquest_api.models.user import UserAccount

__all__ = [
    "get_user",
    "get_user_by_wallet",
    "upsert_user_by_wallet",
]

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: uuid.UUID) -> UserAccount | None:
    """Return a single user by primary key."""
    return db.get(UserAccount, user_id)


def get_user_by_wallet(db: Session, wallet_address: str) -> UserAccount | None:
    """Return the user owning `wallet_address`, if any."""
    return db.query(UserAccount).filter(UserAccount.wallet_address == wallet_address).first()


def upsert_user_by_wallet(db: Session, wallet_address: str) -> tuple[UserAccount, bool]:
    """Return the account for `wallet_address`, creating it on first sign-in.

    Returns:
        The account and True if it was created by this call.
    """
    user = get_user_by_wallet(db, wallet_address)
    if user is not None:
        return user, False

    user = UserAccount(wallet_address=wallet_address)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent sign-in for the same wallet created it first.
        db.rollback()
        existing = get_user_by_wallet(db, wallet_address)
        if existing is None:
            raise
        return existing, False
    db.refresh(user)
    logger.info("Created user %s for wallet %s", user.id, wallet_address)
    return user, True
