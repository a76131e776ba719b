"""
Tests for the per-IP, per-app quota gate and its calendar-day bounds.
"""
from datetime import datetime, timedelta

import pytest

from storefront.services.demo_quota import QuotaGate, day_bounds_utc
from storefront.services.errors import ConcurrencyExceeded, QuotaExceeded
from tests.helpers.demo_helpers import CLIENT_IP, make_app


def add_session(storage, app, start, minutes=10, ip=CLIENT_IP, token=None):
    return storage.create_demo_session(
        app_id=app.id,
        session_token=token or f"tok-{start.isoformat()}-{ip}",
        ip_address=ip,
        user_agent=None,
        start_time=start,
        end_time=start + timedelta(minutes=minutes),
    )


class TestDayBounds:

    def test_utc_day(self):
        start, end = day_bounds_utc(datetime(2024, 5, 1, 23, 59, 59), "UTC")
        assert start == datetime(2024, 5, 1)
        assert end == datetime(2024, 5, 2)

    def test_midnight_belongs_to_new_day(self):
        start, end = day_bounds_utc(datetime(2024, 5, 2, 0, 0, 0), "UTC")
        assert start == datetime(2024, 5, 2)

    def test_named_timezone_is_converted_to_utc(self):
        # 02:00 UTC on May 2 is still May 1 in New York (UTC-4)
        start, end = day_bounds_utc(datetime(2024, 5, 2, 2, 0, 0), "America/New_York")
        assert start == datetime(2024, 5, 1, 4, 0, 0)
        assert end == datetime(2024, 5, 2, 4, 0, 0)

    def test_dst_change_day_is_23_hours(self):
        start, end = day_bounds_utc(datetime(2024, 3, 10, 12, 0, 0), "America/New_York")
        assert end - start == timedelta(hours=23)


class TestQuotaGate:

    def test_allows_under_caps(self, storage, demo_app, clock):
        gate = QuotaGate(storage, daily_cap=2, concurrent_cap=2)
        add_session(storage, demo_app, clock.now)

        gate.check(CLIENT_IP, demo_app, clock.now)

    def test_daily_window_excludes_yesterday(self, storage, demo_app, clock):
        gate = QuotaGate(storage, daily_cap=1, concurrent_cap=5)
        add_session(storage, demo_app, clock.now - timedelta(days=1))

        assert gate.daily_count(CLIENT_IP, demo_app.id, clock.now) == 0
        gate.check(CLIENT_IP, demo_app, clock.now)

    def test_daily_cap_checked_before_concurrency(self, storage, demo_app, clock):
        gate = QuotaGate(storage, daily_cap=2, concurrent_cap=2)
        add_session(storage, demo_app, clock.now, token="a")
        add_session(storage, demo_app, clock.now, token="b")

        with pytest.raises(QuotaExceeded):
            gate.check(CLIENT_IP, demo_app, clock.now)

    def test_concurrency_counts_only_unexpired_active(self, storage, demo_app, clock):
        gate = QuotaGate(storage, daily_cap=10, concurrent_cap=2)
        add_session(storage, demo_app, clock.now - timedelta(minutes=30), token="old")
        add_session(storage, demo_app, clock.now, token="live")
        revoked = add_session(storage, demo_app, clock.now, token="revoked")
        storage.deactivate_demo_session(revoked.id)

        assert gate.active_count(CLIENT_IP, demo_app.id, clock.now) == 1
        gate.check(CLIENT_IP, demo_app, clock.now)

        add_session(storage, demo_app, clock.now, token="second")
        with pytest.raises(ConcurrencyExceeded):
            gate.check(CLIENT_IP, demo_app, clock.now)

    def test_other_ips_do_not_count(self, storage, demo_app, clock):
        gate = QuotaGate(storage, daily_cap=1, concurrent_cap=1)
        add_session(storage, demo_app, clock.now, ip="198.51.100.1")

        gate.check(CLIENT_IP, demo_app, clock.now)

    def test_other_apps_do_not_count(self, storage, demo_app, clock):
        gate = QuotaGate(storage, daily_cap=1, concurrent_cap=1)
        other = make_app(storage, name="Stockmentor")
        add_session(storage, other, clock.now)

        gate.check(CLIENT_IP, demo_app, clock.now)
