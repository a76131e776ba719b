"""
Per-IP, per-app demo quota.

Two independent ceilings, both counted over stored demo sessions:
- daily cap: sessions created during the current calendar day
- concurrent cap: sessions still active and unexpired

The calendar day is taken in DEMO_QUOTA_TIMEZONE (UTC by default) and
converted to naive-UTC bounds before querying. Consulted at issuance only.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Tuple
from zoneinfo import ZoneInfo

from ..core.config import settings
from ..storage.base import Storage
from .errors import QuotaExceeded, ConcurrencyExceeded

logger = logging.getLogger(__name__)


def day_bounds_utc(now: datetime, tz_name: str = "UTC") -> Tuple[datetime, datetime]:
    """
    Start (inclusive) and end (exclusive) of the calendar day containing
    `now` in `tz_name`, both as naive UTC.
    """
    tz = ZoneInfo(tz_name)
    local_now = now.replace(tzinfo=timezone.utc).astimezone(tz)
    local_start = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    # Re-resolve the next midnight through the zone so DST days keep their real length
    next_day = (local_start + timedelta(days=1)).date()
    local_end = datetime(next_day.year, next_day.month, next_day.day, tzinfo=tz)
    start = local_start.astimezone(timezone.utc).replace(tzinfo=None)
    end = local_end.astimezone(timezone.utc).replace(tzinfo=None)
    return start, end


class QuotaGate:

    def __init__(
        self,
        storage: Storage,
        daily_cap: int = None,
        concurrent_cap: int = None,
        tz_name: str = None,
    ):
        self.storage = storage
        self.daily_cap = daily_cap if daily_cap is not None else settings.DEMO_DAILY_CAP
        self.concurrent_cap = concurrent_cap if concurrent_cap is not None else settings.DEMO_CONCURRENT_CAP
        self.tz_name = tz_name or settings.DEMO_QUOTA_TIMEZONE

    def daily_count(self, ip_address: str, app_id: str, now: datetime) -> int:
        start, end = day_bounds_utc(now, self.tz_name)
        return self.storage.count_demo_sessions_created_between(ip_address, app_id, start, end)

    def active_count(self, ip_address: str, app_id: str, now: datetime) -> int:
        return self.storage.count_active_demo_sessions(ip_address, app_id, now)

    def check(self, ip_address: str, app, now: datetime) -> None:
        """Raise QuotaExceeded or ConcurrencyExceeded when a new session is not allowed."""
        daily = self.daily_count(ip_address, app.id, now)
        if daily >= self.daily_cap:
            logger.info(f"Demo daily cap reached for app {app.id} ({daily}/{self.daily_cap})")
            raise QuotaExceeded(app)

        active = self.active_count(ip_address, app.id, now)
        if active >= self.concurrent_cap:
            logger.info(f"Demo concurrency cap reached for app {app.id} ({active}/{self.concurrent_cap})")
            raise ConcurrencyExceeded(app)
