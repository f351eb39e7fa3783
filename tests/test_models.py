"""
Unit tests for SQLModel database models.
"""

import pytest
from datetime import datetime, timedelta
from sqlalchemy.exc import IntegrityError

from app.models import User, UserSession, CodeSnippet


def test_user_creation(db_session):
    """Test creating a user."""
    user = User(
        email="test@example.com",
        username="testuser",
        first_name="Test",
        last_name="User",
        hashed_password="hashed_password_here",
    )

    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)

    assert user.id is not None
    assert user.username == "testuser"
    assert user.is_verified is False
    assert user.reset_token is None
    assert user.created_at is not None


def test_user_email_unique(db_session):
    db_session.add(User(email="dup@example.com", username="one", hashed_password="x"))
    db_session.commit()

    db_session.add(User(email="dup@example.com", username="two", hashed_password="x"))
    with pytest.raises(IntegrityError):
        db_session.commit()


def test_user_username_unique(db_session):
    db_session.add(User(email="a@example.com", username="same", hashed_password="x"))
    db_session.commit()

    db_session.add(User(email="b@example.com", username="same", hashed_password="x"))
    with pytest.raises(IntegrityError):
        db_session.commit()


def test_session_token_unique(db_session):
    user = User(email="s@example.com", username="sess", hashed_password="x")
    db_session.add(user)
    db_session.commit()

    expires = datetime.utcnow() + timedelta(days=1)
    db_session.add(UserSession(user_id=user.id, token="tok", expires_at=expires))
    db_session.commit()

    db_session.add(UserSession(user_id=user.id, token="tok", expires_at=expires))
    with pytest.raises(IntegrityError):
        db_session.commit()


def test_snippet_defaults_and_tag_order(db_session):
    """Tags keep their order through a database round trip."""
    snippet = CodeSnippet(
        title="Hello",
        code="print('hi')",
        language="python",
        category="Utilities",
        tags=["zeta", "alpha", "mid"],
    )
    db_session.add(snippet)
    db_session.commit()
    db_session.expire_all()

    loaded = db_session.get(CodeSnippet, snippet.id)
    assert loaded.tags == ["zeta", "alpha", "mid"]
    assert loaded.owner_id is None
    assert loaded.is_public is True
    assert loaded.allow_comments is True
    assert loaded.views == 0
    assert loaded.likes == 0
