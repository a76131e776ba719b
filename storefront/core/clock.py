"""
Wall-clock helpers.

All persisted timestamps are naive UTC. Services take a `clock` callable
so tests can pin "now" without patching the datetime module.
"""
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat_z(value: datetime) -> str:
    """Render a naive UTC datetime as ISO-8601 with a trailing Z."""
    return value.isoformat(timespec="milliseconds") + "Z"
