# tests/conftest.py
from __future__ import annotations

import asyncio
import os
import shutil
import tempfile
from collections.abc import Callable, Generator, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

import base58
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from nacl.signing import SigningKey
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

# Configure the application before any solquest_api module reads settings.
_TEST_DB_DIR = tempfile.mkdtemp(prefix="solquest-tests-")
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DB_DIR}/solquest-test.db"
os.environ["RECONCILE_ENABLED"] = "false"
os.environ["CHALLENGE_SINGLE_USE"] = "true"
os.environ.pop("REDIS_URL", None)
os.environ.pop("MINT_SERVICE_URL", None)

from solquest_api.api.v1.dependencies import (  # noqa: E402
    get_claim_ledger_dep,
    get_mint_client_dep,
    get_replay_service_dep,
)
from solquest_api.core.errors import MintClientError  # noqa: E402
from solquest_api.db.session import Base, SessionLocal, create_tables, drop_tables  # noqa: E402
from solquest_api.db.session import engine as app_engine  # noqa: E402
from solquest_api.db.session import get_db as app_get_session  # noqa: E402
from solquest_api.main import app as fastapi_app  # noqa: E402
from solquest_api.services.claim_ledger import ClaimLedger  # noqa: E402
from solquest_api.services.mint_client import MintReceipt  # noqa: E402
from solquest_api.services.replay import ReplayProtectionService  # noqa: E402

TEST_MAX_SUPPLY = 10


@dataclass
class Wallet:
    """A locally generated Solana-style keypair."""

    signing_key: SigningKey

    @property
    def address(self) -> str:
        return base58.b58encode(self.signing_key.verify_key.encode()).decode()

    def sign(self, message: str) -> str:
        signature = self.signing_key.sign(message.encode("utf-8")).signature
        return base58.b58encode(signature).decode()


class FakeMintClient:
    """In-memory mint client recording every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[int, str, dict[str, Any]]] = []
        self.failures = 0
        self.delay = 0.0

    async def mint(
        self, token_id: int, recipient: str, metadata: Mapping[str, Any]
    ) -> MintReceipt:
        self.calls.append((token_id, recipient, dict(metadata)))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.failures:
            self.failures -= 1
            raise MintClientError("ledger write rejected")
        return MintReceipt(
            signature=f"sig-{token_id}",
            mint_address=f"mint-{token_id}",
            metadata_uri=f"https://meta.example/{token_id}.json",
        )

    async def close(self) -> None:
        return None


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    create_tables(app_engine)
    try:
        yield app_engine
    finally:
        drop_tables(app_engine)
        app_engine.dispose()
        shutil.rmtree(_TEST_DB_DIR, ignore_errors=True)


@pytest.fixture()
def session_factory(engine: Engine) -> Iterator[sessionmaker[Session]]:
    yield SessionLocal

    # Ensure each test sees a clean database even if commits occurred.
    with engine.begin() as cleanup_conn:
        for table in reversed(Base.metadata.sorted_tables):
            cleanup_conn.execute(table.delete())


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def ledger(session_factory: sessionmaker[Session]) -> ClaimLedger:
    claim_ledger = ClaimLedger(session_factory, max_supply=TEST_MAX_SUPPLY)
    claim_ledger.ensure_counter()
    return claim_ledger


@pytest.fixture()
def mint_client() -> FakeMintClient:
    return FakeMintClient()


@pytest.fixture()
def replay_service() -> ReplayProtectionService:
    return ReplayProtectionService()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    session_factory: sessionmaker[Session],
    ledger: ClaimLedger,
    mint_client: FakeMintClient,
    replay_service: ReplayProtectionService,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_claim_ledger_dep] = lambda: ledger
    app.dependency_overrides[get_mint_client_dep] = lambda: mint_client
    app.dependency_overrides[get_replay_service_dep] = lambda: replay_service
    try:
        yield
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_wallet() -> Callable[[], Wallet]:
    """Return a factory producing fresh wallets."""
    return lambda: Wallet(SigningKey.generate())


@pytest.fixture()
def wallet(make_wallet: Callable[[], Wallet]) -> Wallet:
    return make_wallet()


def sign_in(client: TestClient, wallet: Wallet) -> dict[str, Any]:
    """Run the challenge/verify handshake and return the verify response body."""
    challenge = client.post("/api/v1/auth/challenge", json={"walletAddress": wallet.address})
    assert challenge.status_code == 200, challenge.text
    message = challenge.json()["message"]
    verify = client.post(
        "/api/v1/auth/verify",
        json={
            "walletAddress": wallet.address,
            "signature": wallet.sign(message),
            "message": message,
        },
    )
    assert verify.status_code == 200, verify.text
    return verify.json()


@pytest.fixture()
def login(client: TestClient) -> Callable[[Wallet], dict[str, Any]]:
    """Return a helper that signs `wallet` in through the API."""
    return lambda wallet: sign_in(client, wallet)
