"""
Pytest configuration and fixtures for storefront backend tests.

Provides test database isolation, a controllable clock, a fake upstream for
the demo proxy, and a TestClient wired to all of them.
"""
import os
from datetime import datetime

# Settings are read at import time; pin them before anything imports storefront
os.environ.setdefault("ENV", "test")
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("DEMO_CLEANUP_INTERVAL_SECONDS", "3600")

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from storefront.db import Base  # noqa: E402
from storefront import models  # noqa: E402,F401
from storefront.services.demo_proxy import DemoProxy  # noqa: E402
from storefront.services.demo_sessions import DemoSessionService  # noqa: E402
from storefront.storage.database import DatabaseStorage  # noqa: E402
from storefront.storage.memory import MemoryStorage  # noqa: E402
from storefront.utils.rate_limit import get_rate_limiter  # noqa: E402
from tests.helpers.demo_helpers import CLIENT_IP, CLIENT_UA, FakeUpstream, FrozenClock, make_app  # noqa: E402


@pytest.fixture(autouse=True)
def reset_rate_limits():
    get_rate_limiter().reset()
    yield
    get_rate_limiter().reset()


@pytest.fixture
def clock():
    return FrozenClock(datetime(2024, 5, 1, 12, 0, 0))


@pytest.fixture
def db():
    """
    Provide a clean database session for each test.

    Every test gets its own in-memory SQLite database, so nothing leaks
    between tests and services are free to commit.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def sql_storage(db):
    return DatabaseStorage(db)


@pytest.fixture
def memory_storage(clock):
    return MemoryStorage(clock=clock)


@pytest.fixture(params=["memory", "sql"])
def storage(request, clock):
    """Run a test against both storage backends."""
    if request.param == "memory":
        return MemoryStorage(clock=clock)
    return DatabaseStorage(request.getfixturevalue("db"))


@pytest.fixture
def demo_app(storage):
    return make_app(storage)


@pytest.fixture
def service(storage, clock):
    return DemoSessionService(storage, clock=clock)


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def client(storage, clock, upstream):
    """
    Provide a FastAPI TestClient whose storage, clock and upstream are the
    test's own.
    """
    from fastapi.testclient import TestClient
    from storefront.main import app
    from storefront.routers.demo import get_demo_proxy, get_demo_session_service
    from storefront.storage import get_storage

    proxy = DemoProxy(httpx.AsyncClient(transport=httpx.MockTransport(upstream)))

    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_demo_session_service] = lambda: DemoSessionService(storage, clock=clock)
    app.dependency_overrides[get_demo_proxy] = lambda: proxy

    try:
        with TestClient(app, raise_server_exceptions=False) as test_client:
            test_client.headers.update({"X-Forwarded-For": CLIENT_IP, "User-Agent": CLIENT_UA})
            yield test_client
    finally:
        app.dependency_overrides.clear()
