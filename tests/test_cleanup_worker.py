"""
Tests for periodic demo session cleanup.
"""
import asyncio
from datetime import timedelta

import pytest

from storefront.jobs.demo_cleanup import DemoSessionCleanupWorker, run_demo_cleanup
from tests.helpers.demo_helpers import CLIENT_IP, CLIENT_UA


def test_cleanup_deactivates_without_deleting(service, demo_app, storage, clock):
    issued = service.issue_session(demo_app.id, CLIENT_IP, CLIENT_UA)
    clock.advance(minutes=11)

    touched = run_demo_cleanup(storage, clock)

    assert touched == 1
    session, _ = storage.get_demo_session_with_app(issued.session_token)
    assert session.is_active is False
    assert storage.count_demo_sessions_created_between(
        CLIENT_IP, demo_app.id, clock.now - timedelta(days=1), clock.now
    ) == 1


def test_cleanup_leaves_live_sessions(service, demo_app, storage, clock):
    issued = service.issue_session(demo_app.id, CLIENT_IP, CLIENT_UA)
    clock.advance(minutes=5)

    assert run_demo_cleanup(storage, clock) == 0
    assert service.validate(issued.session_token, CLIENT_IP, CLIENT_UA).valid


def test_service_cleanup_swallows_storage_errors(service, storage, monkeypatch):
    def boom(now):
        raise RuntimeError("database is locked")

    monkeypatch.setattr(storage, "cleanup_expired_demo_sessions", boom)

    assert service.cleanup_expired() == 0


@pytest.mark.asyncio
async def test_worker_runs_cleanup_until_stopped():
    calls = []

    def cleanup():
        calls.append(1)
        return 0

    worker = DemoSessionCleanupWorker(interval_seconds=0.01, cleanup=cleanup)
    await worker.start()
    await asyncio.sleep(0.1)
    await worker.stop()

    assert worker.running is False
    assert len(calls) >= 2
    settled = len(calls)
    await asyncio.sleep(0.05)
    assert len(calls) == settled


@pytest.mark.asyncio
async def test_worker_survives_failing_cleanup():
    calls = []

    def cleanup():
        calls.append(1)
        raise RuntimeError("database unavailable")

    worker = DemoSessionCleanupWorker(interval_seconds=0.01, cleanup=cleanup)
    await worker.start()
    await asyncio.sleep(0.1)
    await worker.stop()

    assert len(calls) >= 2


@pytest.mark.asyncio
async def test_worker_start_is_idempotent():
    worker = DemoSessionCleanupWorker(interval_seconds=60, cleanup=lambda: 0)
    await worker.start()
    first_task = worker.task
    await worker.start()

    assert worker.task is first_task
    await worker.stop()
