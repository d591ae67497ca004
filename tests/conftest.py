"""Pytest configuration and shared fixtures."""

import os
import tempfile
from pathlib import Path
from typing import Generator

# Configure the application before any driver_tracker module is imported;
# config, database engine and rate limiter are built at import time.
_TEST_DIR = Path(tempfile.mkdtemp(prefix="driver_tracker_tests_"))

TEST_USERNAME = "dispatcher"
TEST_PASSWORD = "correct-horse-battery-staple"
TEST_SESSION_SECRET = "t3st-S3ssion-Secret-9f8e7d6c5b4a39281706f5e4d3c2b1a0"

for _name in (
    "DATABASE_URL",
    "DRIVER_TRACKER_CONFIG_FILE",
    "DRIVER_TRACKER_PUBLIC_BASE_URL",
    "DRIVER_TRACKER_USE_FALLBACK_DRIVERS",
    "DRIVER_TRACKER_MAX_EXPIRATION_HOURS",
    "DRIVER_TRACKER_SECURE_COOKIES",
    "DRIVER_TRACKER_DEBUG",
):
    os.environ.pop(_name, None)

os.environ.update({
    "DRIVER_TRACKER_DATABASE_URL": f"sqlite:///{_TEST_DIR / 'app.db'}",
    "LOGIN_USERNAME": TEST_USERNAME,
    "LOGIN_PASSWORD": TEST_PASSWORD,
    "SESSION_SECRET": TEST_SESSION_SECRET,
    "DRIVER_API_URL": "http://drivers.test/drivers",
    "DRIVER_TRACKER_SWEEP_ENABLED": "0",
    "DRIVER_TRACKER_LOG_TO_FILE": "0",
    "DRIVER_TRACKER_LOG_LEVEL": "INFO",
})

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tests.helpers.fakes import FakeDriverClient, MutableClock, make_driver


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock()


@pytest.fixture
def drivers() -> FakeDriverClient:
    return FakeDriverClient([make_driver("Jane Smith"), make_driver("Bob Lee", status="Off Duty")])


@pytest.fixture
def engine():
    """In-memory SQLite database with the application schema."""
    from driver_tracker.db.database import Base, init_database

    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_database(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Give every test a clean login rate limiter."""
    from driver_tracker.auth.rate_limiter import rate_limiter

    rate_limiter.reset()
    yield
    rate_limiter.reset()


@pytest.fixture
def client(session_factory, drivers, clock) -> Generator[TestClient, None, None]:
    """Create a test client with database, driver API and clock overrides."""
    from driver_tracker.core.dependencies import get_clock
    from driver_tracker.db.database import get_db
    from driver_tracker.main import app
    from driver_tracker.upstream.driver_api import get_driver_client

    def override_get_db():
        # Use a fresh session per request in tests
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_driver_client] = lambda: drivers
    app.dependency_overrides[get_clock] = lambda: clock

    with TestClient(app) as test_client:
        yield test_client

    # Clear overrides to avoid affecting other tests
    app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    """Submit the login form; defaults to the configured operator credentials."""

    def _login(username: str = TEST_USERNAME, password: str = TEST_PASSWORD):
        return client.post(
            "/login",
            data={"username": username, "password": password},
            follow_redirects=False,
        )

    return _login


@pytest.fixture
def operator_client(client, login) -> TestClient:
    """A test client with a logged-in operator session."""
    response = login()
    assert response.status_code == 303
    return client
