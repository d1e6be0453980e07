"""
Test configuration and fixtures for the Commission Pro API.

Every test runs against a throwaway SQLite file; tables are created once
and emptied after each test.
"""

import os
import tempfile
from typing import Generator

from dotenv import load_dotenv

load_dotenv()

_test_db_path = tempfile.mktemp(suffix=".db")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_test_db_path}"
os.environ["WEBHOOK_SECRET"] = "test-webhook-secret"
os.environ["WEBHOOK_SECRETS"] = "{}"
os.environ["MIN_WITHDRAWAL"] = "0"
os.environ["ENVIRONMENT"] = "local"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import delete

from app.features.auth.models.user import User, UserRole
from app.features.auth.routes.auth import get_current_user
from app.features.auth.utils.security import hash_password
from app.features.clicks.models.click import Click
from app.features.commissions.models.transaction import Transaction
from app.features.commissions.utils.signature import compute_signature
from app.features.links.models.affiliate_link import AffiliateLink
from app.features.wallet.models.withdrawal import Withdrawal
from app.platform.db.session import SessionLocal, init_models

WEBHOOK_SECRET = "test-webhook-secret"


@pytest.fixture
def sign_payload():
    """Signs a raw body the way a platform would."""

    def _sign(raw_payload: bytes, secret: str = WEBHOOK_SECRET) -> str:
        return compute_signature(raw_payload, secret)

    return _sign


@pytest.fixture(scope="session")
def test_app():
    """Create FastAPI test application."""
    from app.main import app

    return app


@pytest.fixture
async def db_session():
    """Session on the test database; all rows are removed afterwards."""
    await init_models()
    async with SessionLocal() as session:
        yield session

    async with SessionLocal() as cleanup:
        for model in (Withdrawal, Transaction, AffiliateLink, Click, User):
            await cleanup.execute(delete(model))
        await cleanup.commit()


@pytest.fixture
def session_factory(db_session):
    """Fresh sessions for tests that simulate concurrent requests."""
    return SessionLocal


@pytest.fixture
async def make_user(db_session):
    counter = {"n": 0}

    async def _make_user(role: UserRole = UserRole.USER) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            email=f"affiliate{n}@example.com",
            username=f"affiliate{n}",
            password_hash=hash_password("TestPass123"),
            role=role,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
async def user(make_user) -> User:
    return await make_user()


@pytest.fixture
async def owner(make_user) -> User:
    return await make_user(UserRole.OWNER)


@pytest.fixture
def client(test_app, db_session) -> Generator[TestClient, None, None]:
    """
    Create a test client for making HTTP requests.
    Depends on db_session so tables exist and are cleaned up per test.
    """
    with TestClient(test_app) as test_client:
        yield test_client


@pytest.fixture
def as_user(test_app, client):
    """Authenticate the client as the given user via a dependency override."""

    def _as_user(account: User) -> TestClient:
        test_app.dependency_overrides[get_current_user] = lambda: account
        return client

    yield _as_user

    test_app.dependency_overrides.pop(get_current_user, None)
