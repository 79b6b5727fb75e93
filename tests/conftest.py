import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("ENCODE_KEY", "test-access-secret-0123456789abcdef")
os.environ.setdefault("REFRESH_ENCODE_KEY", "test-refresh-secret-0123456789abcdef")
os.environ.setdefault("SIWE_DOMAIN", "localhost:3000")

import pytest
from eth_account import Account as EthAccount
from eth_account.messages import encode_defunct
from eth_utils import to_hex
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from typing import Generator

from main import app
from app.core.config import Settings, get_settings
from app.core.siwe_auth import render_message
from app.db.base import Base
from app.db.session import get_db
from app.models.users import Role, Status
from app.services.account_store import AccountStore
from app.services.auth_service import AuthService


# Create in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DOMAIN = "localhost:3000"
URI = "http://localhost:3000"


def override_get_db() -> Generator:
    """Override database dependency for testing"""
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def _schema():
    """Fresh tables for every test"""
    import app.models.users  # noqa: F401

    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        ENCODE_KEY="test-access-secret-0123456789abcdef",
        REFRESH_ENCODE_KEY="test-refresh-secret-0123456789abcdef",
        SIWE_DOMAIN=DOMAIN,
        NONCE_EXPIRY_SECONDS=300,
    )


@pytest.fixture
def client(settings) -> TestClient:
    """Create a test client for the FastAPI application"""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def store(db_session) -> AccountStore:
    return AccountStore(db_session)


@pytest.fixture
def service(store, settings) -> AuthService:
    return AuthService(store, settings)


class Wallet:
    """A real secp256k1 keypair that signs SIWE messages"""

    def __init__(self):
        self._account = EthAccount.create()
        self.address = self._account.address

    def message(self, nonce: str, **kwargs) -> str:
        kwargs.setdefault("domain", DOMAIN)
        kwargs.setdefault("uri", URI)
        kwargs.setdefault("address", self.address)
        return render_message(nonce=nonce, **kwargs)

    def sign(self, message: str) -> str:
        signed = EthAccount.sign_message(encode_defunct(text=message), private_key=self._account.key)
        return to_hex(signed.signature)


@pytest.fixture
def wallet() -> Wallet:
    return Wallet()


@pytest.fixture
def other_wallet() -> Wallet:
    return Wallet()


@pytest.fixture
def make_account(store):
    """Factory creating an account bound to a wallet"""
    counter = {"n": 0}

    def _make(wallet, status: Status = Status.ACTIVE, role: Role = Role.DONOR, email: str | None = None):
        counter["n"] += 1
        return store.create({
            "name": f"User {counter['n']}",
            "email": email or f"user{counter['n']}@example.com",
            "password_hash": None,
            "wallet_address": wallet.address,
            "role": role,
            "status": status,
        })

    return _make
