"""Authoritative store of OG claims and of the supply counter.

Every write to `og_claim` and `og_supply_counter` goes through this module.
Atomicity is delegated to the database so that any number of API instances
can run side by side:

* the counter only moves through a conditional
  ``UPDATE ... SET issued = issued + 1 WHERE issued < :max_supply``, which
  takes the row (or database) write lock, and
* the claim row is keyed by wallet address, so a concurrent insert for the
  same wallet fails on the primary key and rolls back its own counter
  increment with it.

The counter therefore never exceeds the supply cap and token ids are handed
out gap free: a reservation that loses the race leaves no trace.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from solquest_api.core.errors import (
    AlreadyClaimedError,
    ClaimStateError,
    StoreUnavailableError,
    SupplyExhaustedError,
)
from solquest_api.core.security import decode_wallet_address
from solquest_api.core.settings import settings
from solquest_api.db.session import SessionLocal
from solquest_api.db.time import utcnow
from solquest_api.models import ClaimRecord, ClaimStatus, SupplyCounter, UserAccount
from solquest_api.models.claim import SUPPLY_COUNTER_ID

logger = logging.getLogger(__name__)

_MAX_CONFLICT_RETRIES = 3


@dataclass(frozen=True)
class Reservation:
    """A token id committed to a wallet ahead of the external mint."""

    wallet_address: str
    token_id: int
    retried: bool = False


@dataclass(frozen=True)
class ClaimView:
    """Read-only snapshot of a wallet's claim."""

    wallet_address: str
    status: ClaimStatus
    token_id: int
    mint_receipt: dict[str, Any] | None
    attempts: int
    reserved_at: datetime
    finalized_at: datetime | None

    @classmethod
    def from_record(cls, record: ClaimRecord) -> ClaimView:
        return cls(
            wallet_address=record.wallet_address,
            status=ClaimStatus(record.status),
            token_id=record.token_id,
            mint_receipt=record.mint_receipt,
            attempts=record.attempts,
            reserved_at=record.reserved_at,
            finalized_at=record.finalized_at,
        )


@dataclass(frozen=True)
class Eligibility:
    """Whether a wallet may claim right now, and why."""

    eligible: bool
    reason: str
    claim_status: ClaimStatus
    remaining: int
    # The wallet's own token id, else issued + 1 (max_supply + 1 when sold out).
    next_token_id: int
    max_supply: int
    total_issued: int


@dataclass(frozen=True)
class SupplyStats:
    """Collection-wide issuance figures."""

    total_issued: int
    total_minted: int
    max_supply: int
    remaining: int
    # issued + 1; max_supply + 1 once sold out.
    next_token_id: int


class _CounterMissing(Exception):
    """Internal signal that the supply counter row has not been created."""


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    """Translate database failures into StoreUnavailableError."""
    try:
        yield
    except SQLAlchemyError as err:
        logger.error("Claim store failure while %s: %s", action, err)
        raise StoreUnavailableError(f"Claim store unavailable while {action}") from err


class ClaimLedger:
    """Per-wallet claim records plus the global supply counter."""

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        *,
        max_supply: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory or SessionLocal
        self.max_supply = settings.og_max_supply if max_supply is None else max_supply
        self._clock = clock

    # --- Writes ---------------------------------------------------------------------

    def ensure_counter(self) -> None:
        """Create the supply counter row if it does not exist yet."""
        with _store_errors("initialising the supply counter"):
            with self._session_factory() as session:
                self._create_counter(session)

    def reserve_slot(self, wallet_address: str) -> Reservation:
        """Commit a token id to `wallet_address`.

        A wallet without a claim takes the next counter value; a wallet whose
        previous mint FAILED takes back the token id it already holds.

        Raises:
            InvalidAddressError: If the wallet address is malformed.
            AlreadyClaimedError: If the wallet is RESERVED or MINTED.
            SupplyExhaustedError: If the counter has reached the supply cap.
            StoreUnavailableError: If the database cannot be written.
        """
        decode_wallet_address(wallet_address)
        with _store_errors("reserving a slot"):
            for _ in range(_MAX_CONFLICT_RETRIES):
                with self._session_factory() as session:
                    try:
                        reservation = self._reserve(session, wallet_address)
                        session.commit()
                    except IntegrityError:
                        session.rollback()
                        existing = session.get(ClaimRecord, wallet_address)
                        if existing is not None:
                            raise AlreadyClaimedError(wallet_address, existing.status) from None
                        logger.info("Reservation conflict for %s; retrying", wallet_address)
                        continue
                    except _CounterMissing:
                        session.rollback()
                        self._create_counter(session)
                        continue
                logger.info(
                    "Reserved OG #%d for %s%s",
                    reservation.token_id,
                    wallet_address,
                    " (retry)" if reservation.retried else "",
                )
                return reservation
        raise StoreUnavailableError("Could not reserve a slot after repeated conflicts")

    def finalize(
        self,
        wallet_address: str,
        status: ClaimStatus,
        receipt: Mapping[str, Any] | None = None,
    ) -> ClaimView:
        """Move a RESERVED claim to MINTED or FAILED.

        Finalizing again with the status the claim already has is a no-op.
        A FAILED claim may still be finalized as MINTED when a late receipt
        shows the mint went through after all.

        Raises:
            ClaimStateError: On any other transition.
            StoreUnavailableError: If the database cannot be written.
        """
        status = ClaimStatus(status)
        if not status.is_terminal:
            raise ClaimStateError(f"Cannot finalize a claim as {status.value}")
        if status is ClaimStatus.MINTED and receipt is None:
            raise ClaimStateError("A minted claim requires a receipt")

        allowed_from = [ClaimStatus.RESERVED.value]
        if status is ClaimStatus.MINTED:
            allowed_from.append(ClaimStatus.FAILED.value)

        values: dict[str, Any] = {"status": status.value, "finalized_at": self._clock()}
        if receipt is not None:
            values["mint_receipt"] = dict(receipt)

        with _store_errors("finalizing a claim"):
            with self._session_factory() as session:
                result = session.execute(
                    update(ClaimRecord)
                    .where(
                        ClaimRecord.wallet_address == wallet_address,
                        ClaimRecord.status.in_(allowed_from),
                    )
                    .values(**values)
                )
                if result.rowcount == 1:
                    self._mirror_user_state(session, wallet_address, status)
                    session.commit()
                    record = session.get(ClaimRecord, wallet_address, populate_existing=True)
                    if record is None:
                        raise ClaimStateError(
                            f"Claim for {wallet_address} vanished while finalizing"
                        )
                    logger.info(
                        "Finalized OG #%d for %s as %s",
                        record.token_id,
                        wallet_address,
                        status.value,
                    )
                    return ClaimView.from_record(record)

                record = session.get(ClaimRecord, wallet_address)
                if record is None:
                    raise ClaimStateError(f"Wallet {wallet_address} has no reservation")
                if record.status == status.value:
                    return ClaimView.from_record(record)
                raise ClaimStateError(
                    f"Cannot finalize a {record.status} claim as {status.value}"
                )

    def release_stale_reservations(self, older_than: timedelta) -> list[str]:
        """Mark RESERVED claims older than `older_than` as FAILED.

        Returns:
            Wallet addresses whose reservations were released.
        """
        now = self._clock()
        cutoff = now - older_than
        released: list[str] = []
        with _store_errors("releasing stale reservations"):
            with self._session_factory() as session:
                stale = session.scalars(
                    select(ClaimRecord.wallet_address).where(
                        ClaimRecord.status == ClaimStatus.RESERVED.value,
                        ClaimRecord.reserved_at < cutoff,
                    )
                ).all()
                for wallet_address in stale:
                    result = session.execute(
                        update(ClaimRecord)
                        .where(
                            ClaimRecord.wallet_address == wallet_address,
                            ClaimRecord.status == ClaimStatus.RESERVED.value,
                        )
                        .values(status=ClaimStatus.FAILED.value, finalized_at=now)
                    )
                    if result.rowcount == 1:
                        self._mirror_user_state(session, wallet_address, ClaimStatus.FAILED)
                        released.append(wallet_address)
                session.commit()
        for wallet_address in released:
            logger.warning("Released stale OG reservation for %s", wallet_address)
        return released

    # --- Reads ----------------------------------------------------------------------

    def get_claim(self, wallet_address: str) -> ClaimView | None:
        """Return the wallet's claim, or None if it never reserved one."""
        with _store_errors("reading a claim"):
            with self._session_factory() as session:
                record = session.get(ClaimRecord, wallet_address)
                return ClaimView.from_record(record) if record is not None else None

    def eligibility(self, wallet_address: str) -> Eligibility:
        """Describe whether `wallet_address` could claim now, without side effects."""
        decode_wallet_address(wallet_address)
        with _store_errors("checking eligibility"):
            with self._session_factory() as session:
                issued = self._issued(session)
                record = session.get(ClaimRecord, wallet_address)

        remaining = max(0, self.max_supply - issued)
        status = ClaimStatus(record.status) if record is not None else ClaimStatus.NONE
        next_token_id = record.token_id if record is not None else issued + 1

        if status is ClaimStatus.MINTED:
            eligible, reason = False, "Wallet already owns an OG NFT"
        elif status is ClaimStatus.RESERVED:
            eligible, reason = False, "Claim already in progress"
        elif status is ClaimStatus.FAILED:
            eligible, reason = True, "Previous mint failed; retry available"
        elif remaining == 0:
            eligible, reason = False, "All OG NFTs have been claimed"
        else:
            eligible, reason = True, "Eligible for OG NFT"

        return Eligibility(
            eligible=eligible,
            reason=reason,
            claim_status=status,
            remaining=remaining,
            next_token_id=next_token_id,
            max_supply=self.max_supply,
            total_issued=issued,
        )

    def stats(self) -> SupplyStats:
        """Return collection-wide issuance figures."""
        with _store_errors("reading supply stats"):
            with self._session_factory() as session:
                issued = self._issued(session)
                minted = session.scalar(
                    select(func.count())
                    .select_from(ClaimRecord)
                    .where(ClaimRecord.status == ClaimStatus.MINTED.value)
                )
        return SupplyStats(
            total_issued=issued,
            total_minted=int(minted or 0),
            max_supply=self.max_supply,
            remaining=max(0, self.max_supply - issued),
            next_token_id=issued + 1,
        )

    # --- Internals ------------------------------------------------------------------

    def _reserve(self, session: Session, wallet_address: str) -> Reservation:
        now = self._clock()
        record = session.get(ClaimRecord, wallet_address)
        if record is not None:
            if record.status != ClaimStatus.FAILED.value:
                raise AlreadyClaimedError(wallet_address, record.status)
            result = session.execute(
                update(ClaimRecord)
                .where(
                    ClaimRecord.wallet_address == wallet_address,
                    ClaimRecord.status == ClaimStatus.FAILED.value,
                )
                .values(
                    status=ClaimStatus.RESERVED.value,
                    reserved_at=now,
                    finalized_at=None,
                    mint_receipt=None,
                    attempts=ClaimRecord.attempts + 1,
                )
            )
            if result.rowcount != 1:
                # Another request re-reserved it between our read and write.
                raise AlreadyClaimedError(wallet_address, ClaimStatus.RESERVED.value)
            self._mirror_user_state(session, wallet_address, ClaimStatus.RESERVED)
            return Reservation(wallet_address, record.token_id, retried=True)

        result = session.execute(
            update(SupplyCounter)
            .where(
                SupplyCounter.id == SUPPLY_COUNTER_ID,
                SupplyCounter.issued < self.max_supply,
            )
            .values(issued=SupplyCounter.issued + 1)
        )
        if result.rowcount != 1:
            if session.get(SupplyCounter, SUPPLY_COUNTER_ID) is None:
                raise _CounterMissing()
            raise SupplyExhaustedError(self.max_supply)

        token_id = session.scalar(
            select(SupplyCounter.issued).where(SupplyCounter.id == SUPPLY_COUNTER_ID)
        )
        if token_id is None:
            raise StoreUnavailableError("Supply counter could not be read back after increment")
        session.add(
            ClaimRecord(
                wallet_address=wallet_address,
                status=ClaimStatus.RESERVED.value,
                token_id=int(token_id),
                attempts=1,
                reserved_at=now,
            )
        )
        session.flush()
        self._mirror_user_state(session, wallet_address, ClaimStatus.RESERVED)
        return Reservation(wallet_address, int(token_id))

    @staticmethod
    def _issued(session: Session) -> int:
        issued = session.scalar(
            select(SupplyCounter.issued).where(SupplyCounter.id == SUPPLY_COUNTER_ID)
        )
        return int(issued or 0)

    @staticmethod
    def _create_counter(session: Session) -> None:
        if session.get(SupplyCounter, SUPPLY_COUNTER_ID) is not None:
            return
        session.add(SupplyCounter(id=SUPPLY_COUNTER_ID, issued=0))
        try:
            session.commit()
        except IntegrityError:
            # Created concurrently by another instance.
            session.rollback()

    @staticmethod
    def _mirror_user_state(session: Session, wallet_address: str, status: ClaimStatus) -> None:
        session.execute(
            update(UserAccount)
            .where(UserAccount.wallet_address == wallet_address)
            .values(claim_state=status.value, updated_at=utcnow())
        )


def get_claim_ledger() -> ClaimLedger:
    """Return a claim ledger bound to the application database."""
    return ClaimLedger()
