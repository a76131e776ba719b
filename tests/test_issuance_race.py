"""
Concurrent issuance must never push an (ip, app) pair past its caps.

The SQL variant uses a file-backed SQLite database with one session per
thread, the way separate requests would see it.
"""
import threading
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from storefront.db import Base
from storefront.services.demo_sessions import DemoSessionService
from storefront.services.errors import DemoAccessError
from storefront.storage.database import DatabaseStorage
from storefront.storage.memory import MemoryStorage
from tests.helpers.demo_helpers import CLIENT_IP, CLIENT_UA, FrozenClock, make_app

THREADS = 12


def hammer(make_service, app_id):
    """Issue from THREADS threads at once; return (successes, refusals)."""
    barrier = threading.Barrier(THREADS)
    successes, refusals, errors = [], [], []

    def worker():
        service = make_service()
        barrier.wait()
        try:
            successes.append(service.issue_session(app_id, CLIENT_IP, CLIENT_UA))
        except DemoAccessError as e:
            refusals.append(e)
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(THREADS)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert errors == []
    return successes, refusals


def test_memory_storage_respects_daily_cap():
    clock = FrozenClock(datetime(2024, 5, 1, 12, 0, 0))
    storage = MemoryStorage(clock=clock)
    app = make_app(storage)

    successes, refusals = hammer(lambda: DemoSessionService(storage, clock=clock), app.id)

    assert len(successes) == 2
    assert len(refusals) == THREADS - 2
    assert {e.error_code for e in refusals} == {"DEMO_QUOTA_EXCEEDED"}


@pytest.fixture
def file_engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


def test_sql_storage_respects_daily_cap(file_engine):
    clock = FrozenClock(datetime(2024, 5, 1, 12, 0, 0))
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
    setup_db = session_factory()
    app_id = make_app(DatabaseStorage(setup_db)).id
    setup_db.close()

    sessions = []
    lock = threading.Lock()

    def make_service():
        db = session_factory()
        with lock:
            sessions.append(db)
        return DemoSessionService(DatabaseStorage(db), clock=clock)

    try:
        successes, refusals = hammer(make_service, app_id)
    finally:
        for db in sessions:
            db.close()

    assert len(successes) == 2
    assert len(refusals) == THREADS - 2

    check_db = session_factory()
    try:
        stored = DatabaseStorage(check_db).count_demo_sessions_created_between(
            CLIENT_IP, app_id, datetime(2024, 5, 1), datetime(2024, 5, 2)
        )
    finally:
        check_db.close()
    assert stored == 2
