"""Shared fixtures: an in-memory database and an authenticated API client."""
import os

# Must be set before the app modules build their engine
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from app.core.database import Base, SessionLocal, engine
from main import app

from app.core.auth import hash_password
from app.models.account import Account
from app.models.user import User


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def register(client, email="trader@example.com", password="secret123", name="Trader"):
    """Register a user and return the auth response body.

    The client's cookie jar is cleared so only explicit bearer headers
    authenticate later requests.
    """
    r = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert r.status_code == 201, r.text
    client.cookies.clear()
    return r.json()


def bearer(body: dict) -> dict:
    return {"Authorization": f"Bearer {body['access_token']}"}


@pytest.fixture
def auth_headers(client):
    return bearer(register(client))


@pytest.fixture
def account(client, auth_headers):
    """The default account created at registration."""
    r = client.get("/api/accounts", headers=auth_headers)
    return r.json()[0]


@pytest.fixture
def owner(db):
    """A user with one account, created directly in the database."""
    user = User(name="Owner", email="owner@example.com", password_hash=hash_password("secret123"))
    db.add(user)
    db.flush()
    acct = Account(user_id=user.id, name="Main", is_default=True)
    db.add(acct)
    db.commit()
    db.refresh(user)
    db.refresh(acct)
    return user, acct


@pytest.fixture
def other_headers(client):
    """Bearer headers for a second, unrelated user."""
    return bearer(register(client, email="other@example.com", name="Other"))


@pytest.fixture
def create_trade(client, auth_headers, account):
    """Factory posting a trade for the default user; returns the response body."""
    def _create(**overrides):
        payload = {
            "account_id": account["id"],
            "symbol": "AAPL",
            "direction": "LONG",
            "quantity": 10,
            "entry_price": 100,
            "entry_date": "2024-01-02T10:00:00",
        }
        payload.update(overrides)
        r = client.post("/api/trades", json=payload, headers=auth_headers)
        assert r.status_code == 201, r.text
        return r.json()
    return _create
