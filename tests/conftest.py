"""Shared test fixtures: in-memory token store, API client and token factory."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SENDGRID_API_KEY", "")

from datetime import UTC, datetime, timedelta  # noqa: E402
from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from custozero.database import Base, get_db  # noqa: E402
from custozero.main import app  # noqa: E402
from custozero.models import AccessToken  # noqa: E402
from custozero.rate_limiter import limiter  # noqa: E402
from custozero.services.repositories import AccessTokenRepository  # noqa: E402

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def session_maker():
    """Session factory bound to a fresh in-memory SQLite database."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def db(session_maker):
    session = session_maker()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def repository(db):
    return AccessTokenRepository(db)


@pytest.fixture
def make_token(db):
    """Insert a token row directly, bypassing the services."""

    def _make(
        email: str = "cliente@example.com",
        *,
        created_at: datetime = NOW,
        expires_at: datetime | None = None,
        used: bool = False,
        is_lifetime: bool = False,
        order_id: str | None = None,
        customer_name: str = "Maria Silva",
    ) -> AccessToken:
        access_token = AccessToken(
            token=str(uuid4()),
            email=email,
            created_at=created_at,
            expires_at=expires_at,
            used=used,
            is_lifetime=is_lifetime,
            order_id=order_id,
            customer_name=customer_name,
        )
        db.add(access_token)
        db.commit()
        return access_token

    return _make


@pytest.fixture
def client(session_maker):
    """Create test client with in-memory database.

    Yields a tuple of (TestClient, SessionMaker) for use in tests.
    """
    limiter.reset()

    def override_get_db():
        session = session_maker()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.state.session_factory = session_maker

    with TestClient(app) as test_client:
        yield test_client, session_maker

    app.dependency_overrides.clear()
    app.state.session_factory = None


def hours(n: float) -> timedelta:
    return timedelta(hours=n)
