"""
Pytest configuration and fixtures for backend tests.
"""

import os
import re
import sys
from pathlib import Path
from typing import Callable

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Set test environment variables before importing config
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ.pop("SENTRY_DSN", None)

from repositories.database import Base, get_db  # noqa: E402
import repositories.db_models as db_models  # noqa: E402

# Test database engine (in-memory SQLite)
TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh in-memory database session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with overridden database dependency."""
    from main import app
    from helpers.rate_limiter import limiter

    # Reset rate limiter storage before each test to prevent rate limit errors
    limiter.reset()

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session: Session) -> Callable[..., db_models.User]:
    """Factory creating users with unique emails."""
    counter = {"n": 0}

    def _make(
        email: str | None = None,
        username: str | None = None,
        is_global_admin: bool = False,
    ) -> db_models.User:
        counter["n"] += 1
        n = counter["n"]
        user = db_models.User(
            email=email or f"user{n}@example.com",
            username=username or f"user{n}",
            is_active=True,
            is_global_admin=is_global_admin,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_client_app(db_session: Session) -> Callable[..., db_models.ClientApplication]:
    """Factory creating client applications."""

    def _make(
        client_id: str,
        is_default: bool = False,
        user_id: int | None = None,
    ) -> db_models.ClientApplication:
        app = db_models.ClientApplication(
            client_id=client_id,
            label=client_id.title(),
            is_default=is_default,
            user_id=user_id,
        )
        db_session.add(app)
        db_session.commit()
        db_session.refresh(app)
        return app

    return _make


@pytest.fixture
def test_user(make_user) -> db_models.User:
    """Create a test user."""
    return make_user(email="test@example.com", username="testuser")


@pytest.fixture
def other_user(make_user) -> db_models.User:
    """Create a second user."""
    return make_user(email="other@example.com", username="otheruser")


@pytest.fixture
def client_app(make_client_app) -> db_models.ClientApplication:
    """Create the default client application."""
    return make_client_app("test", is_default=True)


@pytest.fixture
def admin_user(make_user) -> db_models.User:
    """Create a global admin."""
    return make_user(email="admin@example.com", username="admin", is_global_admin=True)


@pytest.fixture
def admin_headers(admin_user: db_models.User) -> dict[str, str]:
    """Bearer authorization headers for the global admin."""
    from authentication.auth import create_access_token

    token = create_access_token({"sub": admin_user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def code_pattern() -> Callable[..., re.Pattern[str]]:
    """Build a regex matching well-formed codes over an alphabet."""
    from models.config import DEFAULT_CODE_ALPHABET

    def _pattern(alphabet: str = DEFAULT_CODE_ALPHABET) -> re.Pattern[str]:
        symbol = "[" + re.escape(alphabet) + "]"
        return re.compile(rf"^{symbol}{{3}}-{symbol}{{3}}$")

    return _pattern
