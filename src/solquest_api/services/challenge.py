"""Wallet sign-in challenges.

A challenge is a human-readable message embedding the wallet address and the
moment it was issued. Nothing is stored when it is issued: the verifier
re-derives the exact text from the address and the embedded timestamp and
bound-checks the timestamp, so a signed challenge is only good for
`CHALLENGE_TTL_SECONDS`.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from solquest_api.core.errors import AuthenticationFailedError
from solquest_api.core.security import decode_wallet_address
from solquest_api.core.settings import settings
from solquest_api.db.time import utcnow

TIMESTAMP_MARKER = ". Timestamp: "


@dataclass(frozen=True)
class Challenge:
    """A message the wallet owner must sign to prove key possession."""

    wallet_address: str
    message: str
    issued_at: datetime
    expires_at: datetime


def format_timestamp(moment: datetime) -> str:
    """Render `moment` as UTC ISO 8601 with milliseconds and a Z suffix."""
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ChallengeService:
    """Issues and checks time-scoped sign-in challenges."""

    def __init__(
        self,
        *,
        product_name: str | None = None,
        ttl_seconds: int | None = None,
        clock_skew_seconds: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.product_name = product_name or settings.product_name
        self.ttl = timedelta(seconds=ttl_seconds or settings.challenge_ttl_seconds)
        self.clock_skew = timedelta(
            seconds=(
                settings.challenge_clock_skew_seconds
                if clock_skew_seconds is None
                else clock_skew_seconds
            )
        )
        self._clock = clock

    def build_message(self, wallet_address: str, timestamp: str) -> str:
        return (
            f"Sign this message to authenticate with {self.product_name}. "
            f"Wallet: {wallet_address}{TIMESTAMP_MARKER}{timestamp}"
        )

    def issue(self, wallet_address: str) -> Challenge:
        """Produce a challenge for `wallet_address`.

        Raises:
            InvalidAddressError: If the address is not a valid wallet address.
        """
        decode_wallet_address(wallet_address)
        # Truncate to the precision that survives the round trip through text.
        now = self._clock().astimezone(UTC)
        issued_at = now.replace(microsecond=(now.microsecond // 1000) * 1000)
        return Challenge(
            wallet_address=wallet_address,
            message=self.build_message(wallet_address, format_timestamp(issued_at)),
            issued_at=issued_at,
            expires_at=issued_at + self.ttl,
        )

    def validate(self, wallet_address: str, message: str, now: datetime | None = None) -> datetime:
        """Check that `message` is a current challenge for `wallet_address`.

        Returns:
            The issue time embedded in the message.

        Raises:
            AuthenticationFailedError: If the message was not produced by
                `issue` for this wallet, or its timestamp is stale or in the
                future.
        """
        _, marker, timestamp = message.rpartition(TIMESTAMP_MARKER)
        if not marker:
            raise AuthenticationFailedError("Challenge message is missing a timestamp")
        if message != self.build_message(wallet_address, timestamp):
            raise AuthenticationFailedError("Challenge message does not match wallet")

        try:
            issued_at = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
        except ValueError as err:
            raise AuthenticationFailedError("Challenge timestamp is malformed") from err
        if issued_at.tzinfo is None:
            raise AuthenticationFailedError("Challenge timestamp must carry a timezone")

        current = (now or self._clock()).astimezone(UTC)
        if issued_at - current > self.clock_skew:
            raise AuthenticationFailedError("Challenge timestamp is in the future")
        if current - issued_at > self.ttl:
            raise AuthenticationFailedError("Challenge has expired")
        return issued_at


def get_challenge_service() -> ChallengeService:
    """Return a challenge service configured from settings."""
    return ChallengeService()
