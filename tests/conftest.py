"""
Pytest fixtures for the test suite.

Data-layer tests use an in-memory SQLite engine and a session that rolls back
after each test, so tests do not affect each other.

API tests get their own in-memory database (StaticPool, so every session
sees the same connection), the permission seed from config/, a handful of
users (one per role) and a TestClient wired to that database. The client is
not used as a context manager, so the app lifespan (which targets the real
database) never runs; the fixture installs the permission cache itself.
"""
from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


TEST_DB_URL = "sqlite:///:memory:"
SEED_PATH = Path(__file__).resolve().parents[1] / "config" / "role_permissions.yaml"


@pytest.fixture
def engine():
    """Create a fresh in-memory SQLite engine for each test."""
    return create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        echo=False,
    )


@pytest.fixture
def tables(engine):
    """Create all ORM tables on the test engine."""
    from app.db.base import Base
    import app.models.relief  # noqa: F401  (register relief tables)

    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def db_session(tables):
    """
    Provide a Session bound to the test DB; roll back after each test.

    Use this in tests that need a database (e.g. data layer tests). The
    transaction is rolled back so the next test gets a clean state.
    """
    connection = tables.connect()
    transaction = connection.begin()
    TestSession = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        class_=Session,
    )
    session = TestSession()
    yield session
    session.close()
    transaction.rollback()
    connection.close()


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def api_session_factory():
    from app.db.base import Base
    import app.models.relief  # noqa: F401

    api_engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=api_engine)
    factory = sessionmaker(bind=api_engine, autocommit=False, autoflush=False, class_=Session)
    yield factory
    api_engine.dispose()


@pytest.fixture
def users(api_session_factory) -> dict[str, str]:
    """Seed permission rules and one user per role. Returns role name -> user id."""
    from app.db.init_db import seed_role_permissions
    from app.models.security import User
    from app.security.config import load_permission_seed

    with api_session_factory() as db:
        seed_role_permissions(db, load_permission_seed(SEED_PATH))
        people = {
            "super_admin": User(name="Sam Super", email="sam@example.com", role="super_admin"),
            "admin": User(name="Ada Admin", email="ada@example.com", role="admin"),
            "grid_manager": User(name="Gus Grid", email="gus@example.com", role="grid_manager"),
            "creator": User(name="Cara Creator", email="cara@example.com", role="user"),
            "volunteer": User(name="王小明", email="xiaoming@example.com", role="user"),
            "other": User(name="Olly Other", email="olly@example.com", role="user"),
        }
        db.add_all(people.values())
        db.commit()
        return {key: user.id for key, user in people.items()}


@pytest.fixture
def client(api_session_factory, users):
    from app.db.session import get_db
    from app.main import app
    from app.security.permissions import build_permission_cache

    def override_get_db():
        db = api_session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.state.permission_cache = build_permission_cache(api_session_factory)
    app.state.permission_cache.snapshot()
    yield TestClient(app)
    app.dependency_overrides.clear()
    del app.state.permission_cache


@pytest.fixture
def auth_headers() -> Callable[..., dict[str, str]]:
    """auth_headers(user_id, acting_role=None) -> request headers for that user."""
    from app.security.auth import issue_token
    from app.settings import get_settings

    def build(user_id: str, acting_role: str | None = None) -> dict[str, str]:
        settings = get_settings()
        headers = {"Authorization": f"Bearer {issue_token(user_id, settings.jwt_secret, settings.jwt_algorithm)}"}
        if acting_role is not None:
            headers[settings.acting_role_header] = acting_role
        return headers

    return build


@pytest.fixture
def grid(client, users, auth_headers) -> dict:
    """A grid created by the `creator` user with contact info set."""
    resp = client.post(
        "/grids",
        json={
            "code": "A-3",
            "grid_type": "mud_disposal",
            "volunteer_needed": 5,
            "contact_info": "0912-345-678",
            "center_lat": 23.66,
            "center_lng": 121.42,
        },
        headers=auth_headers(users["creator"]),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()
