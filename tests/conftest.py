"""
Pytest fixtures for the test suite.

Data-layer tests use an in-memory SQLite engine and a session that rolls back
after each test, so tests do not affect each other.

API tests get a FastAPI TestClient backed by its own in-memory database
(StaticPool, so the request threads share one connection) with `get_db`
overridden and the demo seed loaded.
"""
from __future__ import annotations

import pytest
from fastapi import Request
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from obstacle_registry.db.base import Base
from obstacle_registry.db.init_db import seed
from obstacle_registry.db.session import get_db
from obstacle_registry.models import reports as _reports  # noqa: F401  (register tables)
from obstacle_registry.models.identity import User
from obstacle_registry.security.auth import create_access_token
from obstacle_registry.security.config import load_security_config
from obstacle_registry.security.context import Caller
from obstacle_registry.settings import get_settings


TEST_DB_URL = "sqlite:///:memory:"


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
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def db_session(tables):
    """
    Provide a Session bound to the test DB; roll back after each test.

    Services commit freely: the session joins the outer transaction, which is
    rolled back so the next test gets a clean state.
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


@pytest.fixture
def seeded(db_session) -> dict[str, User]:
    """Demo roles, organizations and users; keyed by username."""
    seed(db_session)
    return {u.username: u for u in db_session.scalars(select(User)).all()}


def caller_of(user: User, **overrides) -> Caller:
    values = {
        "user_id": user.id,
        "roles": user.role_names,
        "organization_id": user.organization_id,
    }
    values.update(overrides)
    return Caller(**values)


@pytest.fixture
def as_caller():
    return caller_of


# -- API -------------------------------------------------------------------


def _seeded_sessionmaker(engine) -> sessionmaker:
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False, class_=Session)
    with factory() as db:
        seed(db)
    return factory


@pytest.fixture
def api_sessionmaker():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    return _seeded_sessionmaker(engine)


@pytest.fixture
def file_sessionmaker(tmp_path):
    """
    Seeded database in a temporary file.

    Every session gets its own connection, so two sessions see each other's
    commits the way two concurrent requests do.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'registry.db'}",
        connect_args={"check_same_thread": False},
    )
    yield _seeded_sessionmaker(engine)
    engine.dispose()


@pytest.fixture
def api_db(api_sessionmaker):
    """Session on the API database, for arranging rows and checking results."""
    with api_sessionmaker() as db:
        yield db


@pytest.fixture
def client(api_sessionmaker):
    from obstacle_registry.main import create_app

    app = create_app()
    # The lifespan (and its init_db against the real database) does not run
    # without `with TestClient(...)`, so load the rules here.
    app.state.security_config = load_security_config(get_settings().resolved_security_config_path())

    def override_get_db(request: Request):
        db = api_sessionmaker()
        try:
            caller = getattr(request.state, "caller", None)
            if caller is not None:
                db.info["caller"] = caller
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user_ids(api_sessionmaker) -> dict[str, str]:
    with api_sessionmaker() as db:
        return {u.username: u.id for u in db.scalars(select(User)).all()}


@pytest.fixture
def auth_headers(user_ids):
    """`auth_headers("pilot")` -> Authorization header for a seeded user."""

    def _headers(username: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_ids[username])}"}

    return _headers
