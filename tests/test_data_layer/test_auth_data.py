"""
Tests for user-loading and token helpers (ORM).

Uses db_session fixture: in-memory SQLite, rolled back after each test.
"""
from __future__ import annotations

from datetime import timedelta

import pytest

from app.authz.errors import AuthenticationError
from app.models.security import User
from app.security.auth import decode_user_id, issue_token, load_user

SECRET = "test-secret"


def test_load_user_returns_active_user(db_session):
    # Arrange
    user = User(name="Test User", email="test@example.com", role="grid_manager", is_active=True)
    db_session.add(user)
    db_session.commit()

    # Act
    loaded = load_user(db_session, user.id)

    # Assert
    assert loaded.id == user.id
    assert loaded.name == "Test User"
    assert loaded.role == "grid_manager"
    assert len(loaded.id) == 36


def test_load_user_raises_when_not_found(db_session):
    with pytest.raises(AuthenticationError):
        load_user(db_session, "no-such-user")


def test_load_user_raises_when_inactive(db_session):
    user = User(name="Inactive", email="inactive@example.com", is_active=False)
    db_session.add(user)
    db_session.commit()

    with pytest.raises(AuthenticationError):
        load_user(db_session, user.id)


def test_new_users_default_to_user_role(db_session):
    user = User(name="Plain")
    db_session.add(user)
    db_session.commit()

    assert user.role == "user"
    assert user.is_active is True


def test_token_round_trip_returns_subject():
    token = issue_token("user-123", SECRET)
    assert decode_user_id(token, SECRET) == "user-123"


def test_token_with_wrong_secret_rejected():
    token = issue_token("user-123", SECRET)
    with pytest.raises(AuthenticationError):
        decode_user_id(token, "another-secret")


def test_expired_token_rejected():
    token = issue_token("user-123", SECRET, expires_in=timedelta(seconds=-5))
    with pytest.raises(AuthenticationError, match="expired"):
        decode_user_id(token, SECRET)


def test_garbage_token_rejected():
    with pytest.raises(AuthenticationError):
        decode_user_id("not-a-jwt", SECRET)
