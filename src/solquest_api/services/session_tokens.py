"""Stateless session tokens binding a verified wallet to a user account."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from solquest_api.core.errors import (
    TokenExpiredError,
    TokenMalformedError,
    TokenSignatureInvalidError,
)
from solquest_api.core.settings import settings
from solquest_api.db.time import utcnow

TOKEN_TYPE = "access"


@dataclass(frozen=True)
class SessionIdentity:
    """Identity resolved from a valid session token."""

    user_id: uuid.UUID
    wallet_address: str
    issued_at: datetime
    expires_at: datetime


class SessionTokenService:
    """Issue and validate signed, time-limited bearer tokens.

    Validity depends only on the signature and the expiry claim; there is no
    server-side lookup or revocation list.
    """

    def __init__(
        self,
        *,
        secret_key: str | None = None,
        algorithm: str | None = None,
        ttl: timedelta | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._secret_key = secret_key or settings.secret_key
        self._algorithm = algorithm or settings.jwt_algorithm
        self.ttl = ttl or timedelta(minutes=settings.access_token_expire_minutes)
        self._clock = clock

    def issue(self, user_id: uuid.UUID | str, wallet_address: str) -> str:
        """Create a signed token for `user_id` and `wallet_address`."""
        now = self._clock()
        claims = {
            "sub": str(user_id),
            "wallet": wallet_address,
            "iat": int(now.timestamp()),
            "exp": int((now + self.ttl).timestamp()),
            "type": TOKEN_TYPE,
        }
        encoded: str = jwt.encode(claims, self._secret_key, algorithm=self._algorithm)
        return encoded

    def expires_at(self, token: str) -> datetime:
        """Return the expiry of a token without verifying it."""
        return datetime.fromtimestamp(int(jwt.get_unverified_claims(token)["exp"]), UTC)

    def validate(self, token: str) -> SessionIdentity:
        """Validate `token` and return the identity it carries.

        Raises:
            TokenMalformedError: If the token cannot be parsed or lacks claims.
            TokenSignatureInvalidError: If the signature does not verify.
            TokenExpiredError: If the token is past its expiry.
        """
        try:
            jwt.get_unverified_header(token)
            jwt.get_unverified_claims(token)
        except JWTError as err:
            raise TokenMalformedError("Token could not be parsed") from err

        try:
            # Expiry is checked below against the injectable clock.
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTError as err:
            raise TokenSignatureInvalidError("Token signature is invalid") from err

        subject = payload.get("sub")
        wallet = payload.get("wallet")
        issued = payload.get("iat")
        expiry = payload.get("exp")
        if not subject or not wallet or expiry is None or payload.get("type") != TOKEN_TYPE:
            raise TokenMalformedError("Token is missing required claims")
        try:
            user_id = uuid.UUID(str(subject))
            expires_at = datetime.fromtimestamp(int(expiry), UTC)
            issued_at = datetime.fromtimestamp(int(issued), UTC) if issued is not None else None
        except (TypeError, ValueError, OverflowError) as err:
            raise TokenMalformedError("Token claims are malformed") from err

        if self._clock() >= expires_at:
            raise TokenExpiredError("Token has expired")

        return SessionIdentity(
            user_id=user_id,
            wallet_address=str(wallet),
            issued_at=issued_at or expires_at - self.ttl,
            expires_at=expires_at,
        )


def get_session_token_service() -> SessionTokenService:
    """Return a token service configured from settings."""
    return SessionTokenService()
