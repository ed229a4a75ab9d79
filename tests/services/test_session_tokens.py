# tests/services/test_session_tokens.py
"""Tests for stateless session token issuance and validation."""

import uuid
from datetime import UTC, datetime, timedelta

import pytest
from jose import jwt

from solquest_api.core.errors import (
    TokenExpiredError,
    TokenInvalidError,
    TokenMalformedError,
    TokenSignatureInvalidError,
)
from solquest_api.services.session_tokens import SessionTokenService

SECRET = "unit-test-secret"
WALLET = "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin"


class SimulatedClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def clock() -> SimulatedClock:
    return SimulatedClock(datetime(2026, 1, 1, 12, 0, tzinfo=UTC))


@pytest.fixture
def tokens(clock) -> SessionTokenService:
    return SessionTokenService(secret_key=SECRET, ttl=timedelta(days=7), clock=clock)


def test_round_trip_returns_identity(tokens, clock):
    user_id = uuid.uuid4()
    token = tokens.issue(user_id, WALLET)

    identity = tokens.validate(token)

    assert identity.user_id == user_id
    assert identity.wallet_address == WALLET
    assert identity.issued_at == clock.now
    assert identity.expires_at == clock.now + timedelta(days=7)
    assert tokens.expires_at(token) == identity.expires_at


def test_token_valid_until_expiry(tokens, clock):
    token = tokens.issue(uuid.uuid4(), WALLET)

    clock.advance(timedelta(days=7) - timedelta(seconds=1))
    tokens.validate(token)

    clock.advance(timedelta(seconds=1))
    with pytest.raises(TokenExpiredError):
        tokens.validate(token)


def test_wrong_secret_is_rejected(tokens, clock):
    other = SessionTokenService(secret_key="another-secret", clock=clock)
    token = other.issue(uuid.uuid4(), WALLET)

    with pytest.raises(TokenSignatureInvalidError):
        tokens.validate(token)


def test_wrong_algorithm_is_rejected(tokens, clock):
    token = jwt.encode(
        {
            "sub": str(uuid.uuid4()),
            "wallet": WALLET,
            "iat": int(clock.now.timestamp()),
            "exp": int((clock.now + timedelta(hours=1)).timestamp()),
            "type": "access",
        },
        SECRET,
        algorithm="HS512",
    )
    with pytest.raises(TokenSignatureInvalidError):
        tokens.validate(token)


def test_tampered_payload_is_rejected(tokens):
    header, payload, signature = tokens.issue(uuid.uuid4(), WALLET).split(".")
    forged = tokens.issue(uuid.uuid4(), WALLET).split(".")[1]
    assert forged != payload
    with pytest.raises(TokenSignatureInvalidError):
        tokens.validate(f"{header}.{forged}.{signature[::-1]}")


@pytest.mark.parametrize("token", ["", "garbage", "not.a.jwt", "a.b"])
def test_malformed_tokens_are_rejected(tokens, token):
    with pytest.raises(TokenMalformedError):
        tokens.validate(token)


def test_missing_claims_are_malformed(tokens, clock):
    token = jwt.encode(
        {"sub": str(uuid.uuid4()), "exp": int((clock.now + timedelta(hours=1)).timestamp())},
        SECRET,
        algorithm="HS256",
    )
    with pytest.raises(TokenMalformedError):
        tokens.validate(token)


def test_non_uuid_subject_is_malformed(tokens, clock):
    token = jwt.encode(
        {
            "sub": "user-1",
            "wallet": WALLET,
            "exp": int((clock.now + timedelta(hours=1)).timestamp()),
            "type": "access",
        },
        SECRET,
        algorithm="HS256",
    )
    with pytest.raises(TokenMalformedError):
        tokens.validate(token)


def test_all_failures_share_a_base_class():
    for error in (TokenMalformedError, TokenSignatureInvalidError, TokenExpiredError):
        assert issubclass(error, TokenInvalidError)
