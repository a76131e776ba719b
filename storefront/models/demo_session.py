"""
Demo Session Model
Time-boxed, IP/UA-bound credential granting proxied access to an app's demo
"""
from datetime import datetime

from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from ..db import Base
from ..core.clock import utcnow
from .app import generate_id


class DemoSession(Base):
    """
    One demo window for one (ip, app) pair.

    Rows are deactivated, never deleted: they double as the audit trail and
    as the source for the daily/concurrent quota counts.
    """
    __tablename__ = "demo_sessions"

    id = Column(String(36), primary_key=True, default=generate_id)
    app_id = Column(String(36), ForeignKey("apps.id"), nullable=False)
    session_token = Column(String(128), nullable=False, unique=True)
    ip_address = Column(String(64), nullable=False)
    user_agent = Column(Text, nullable=True)

    # Fixed window; end_time is immutable once created
    start_time = Column(DateTime, nullable=False, default=utcnow)
    end_time = Column(DateTime, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    app = relationship("App", foreign_keys=[app_id], lazy="joined")

    __table_args__ = (
        Index("ix_demo_sessions_ip_app_created", "ip_address", "app_id", "created_at"),
        Index("ix_demo_sessions_ip_app_active_end", "ip_address", "app_id", "is_active", "end_time"),
    )

    def is_expired(self, now: datetime) -> bool:
        return now > self.end_time

    def is_usable(self, now: datetime) -> bool:
        return bool(self.is_active) and not self.is_expired(now)

    def remaining_seconds(self, now: datetime) -> int:
        return max(0, int((self.end_time - now).total_seconds()))

    def __repr__(self) -> str:
        # Never render the bearer token
        return f"<DemoSession id={self.id} app_id={self.app_id} active={self.is_active}>"
