"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from infographic_api.config import Settings
from infographic_api.database import Base, get_db
from infographic_api.models.infographic import Infographic  # noqa: F401
from infographic_api.models.user import User
from main import create_app

TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"


def make_settings(**overrides) -> Settings:
    """Isolated settings: fast hashing, no rate limit, in-memory database."""
    values = {
        "APP_ENV": "development",
        "DATABASE_URL": "sqlite:///:memory:",
        "JWT_SECRET_KEY": TEST_SECRET,
        "BCRYPT_ROUNDS": 4,
        "RATE_LIMIT_ENABLED": False,
        "SENDGRID_API_KEY": None,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(name="db_session")
def db_session_fixture():
    """Create an in-memory SQLite database for tests."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="settings_factory")
def settings_factory_fixture():
    return make_settings


@pytest.fixture(name="make_client")
def make_client_fixture(db_session: Session):
    """Build a TestClient for an app created with the given setting overrides."""
    clients = []

    def factory(**overrides) -> TestClient:
        app = create_app(make_settings(**overrides))

        def override_get_db():
            yield db_session

        app.dependency_overrides[get_db] = override_get_db
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture(name="client")
def client_fixture(make_client) -> TestClient:
    """Development-mode client with rate limiting disabled."""
    return make_client()


@pytest.fixture(name="token_service")
def token_service_fixture(client: TestClient):
    return client.app.state.token_service


def _create_user(db_session: Session, email: str, name: str, role: str = "user") -> User:
    user = User(name=name, email=email, role=role)
    user.set_password("password123", rounds=4)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture(name="test_user")
def test_user_fixture(db_session: Session, token_service):
    """Create a regular user and return {"user", "token"}."""
    user = _create_user(db_session, "test@example.com", "Test User")
    return {"user": user, "token": token_service.issue(user.id)}


@pytest.fixture(name="other_user")
def other_user_fixture(db_session: Session, token_service):
    user = _create_user(db_session, "other@example.com", "Other User")
    return {"user": user, "token": token_service.issue(user.id)}


@pytest.fixture(name="admin_user")
def admin_user_fixture(db_session: Session, token_service):
    """Create an admin and return {"user", "token"}."""
    user = _create_user(db_session, "admin@example.com", "Admin User", role="admin")
    return {"user": user, "token": token_service.issue(user.id)}


@pytest.fixture(name="production_client")
def production_client_fixture(make_client) -> TestClient:
    """Production-mode client with the settings production refuses to start without."""
    return make_client(APP_ENV="production", SENDGRID_API_KEY="SG.test-key")
