"""
Shared fixtures: an in-memory SQLite database per test and a TestClient
whose requests run against it.
"""

import json
import os

# Settings are read at import time, so these go first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["MAIL_SUPPRESS_SEND"] = "true"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.core.database import get_db
from app.core.storage import Storage
from app.schemas.snippet import SnippetCreate


@pytest.fixture
def engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        json_serializer=lambda obj: json.dumps(obj, ensure_ascii=False),
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    """Create a database session for testing."""
    with Session(engine) as session:
        yield session


@pytest.fixture
def storage(db_session):
    return Storage(db_session)


@pytest.fixture
def sent_emails(monkeypatch):
    """Capture outgoing emails instead of sending them."""
    outbox = []

    async def fake_reset(user_email, name, reset_token):
        outbox.append({"kind": "reset", "to": user_email, "token": reset_token})
        return True

    async def fake_verification(user_email, name, verification_token):
        outbox.append({"kind": "verification", "to": user_email, "token": verification_token})
        return True

    monkeypatch.setattr("app.api.auth.send_password_reset_email", fake_reset)
    monkeypatch.setattr("app.api.auth.send_verification_email", fake_verification)
    monkeypatch.setattr("app.api.profile.send_verification_email", fake_verification)
    return outbox


@pytest.fixture
def client(engine, sent_emails):
    """TestClient wired to the test database."""
    from main import app

    def override_get_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def register_user(client):
    """Register through the API and return (response json, auth headers)."""

    def _register(email="alice@example.com", username="alice", password="secret123", **extra):
        payload = {"email": email, "username": username, "password": password}
        payload.update(extra)
        response = client.post("/api/auth/register", json=payload)
        assert response.status_code == 201, response.text
        data = response.json()
        return data, {"Authorization": f"Bearer {data['token']}"}

    return _register


@pytest.fixture
def make_snippet():
    def _make(**overrides):
        fields = {
            "title": "Binary search",
            "code": "def bsearch(xs, x):\n    pass\n",
            "language": "python",
            "category": "Algorithms",
            "tags": ["search", "arrays"],
        }
        fields.update(overrides)
        return SnippetCreate(**fields)

    return _make
