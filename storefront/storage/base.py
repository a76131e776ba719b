"""
Storage interface shared by the in-memory and SQLAlchemy backends.

Services depend on this interface only; which backend serves a request is
decided by STORAGE_BACKEND (see storage/__init__.py).
"""
import threading
import zlib
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Iterator, List, Optional, Tuple

from ..models import App, Testimonial, ContactSubmission, Purchase, DemoSession

# Striped process locks guarding the demo-session count-then-insert sequence.
# Keys hash onto a fixed pool so unrelated (ip, app) pairs rarely contend.
_ISSUANCE_LOCK_STRIPES = 64
_issuance_locks = [threading.Lock() for _ in range(_ISSUANCE_LOCK_STRIPES)]


def issuance_key(ip_address: str, app_id: str) -> str:
    return f"demo-issue:{ip_address}:{app_id}"


@contextmanager
def process_issuance_lock(ip_address: str, app_id: str) -> Iterator[None]:
    key = issuance_key(ip_address, app_id)
    lock = _issuance_locks[zlib.crc32(key.encode()) % _ISSUANCE_LOCK_STRIPES]
    with lock:
        yield


class Storage(ABC):
    """Repository for catalog, storefront and demo-session data."""

    # Apps
    @abstractmethod
    def get_apps(self, category: Optional[str] = None) -> List[App]:
        """Active apps, newest first, optionally filtered by category."""

    @abstractmethod
    def get_app(self, app_id: str) -> Optional[App]:
        pass

    @abstractmethod
    def create_app(self, **fields) -> App:
        pass

    # Testimonials
    @abstractmethod
    def get_testimonials(self) -> List[Testimonial]:
        pass

    @abstractmethod
    def create_testimonial(self, **fields) -> Testimonial:
        pass

    # Contact
    @abstractmethod
    def create_contact_submission(self, **fields) -> ContactSubmission:
        pass

    # Purchases
    @abstractmethod
    def create_purchase(
        self,
        app_id: str,
        customer_email: str,
        customer_name: Optional[str],
        amount: Decimal,
        stripe_payment_intent_id: str,
        status: str,
    ) -> Purchase:
        pass

    @abstractmethod
    def get_purchase_by_payment_intent(self, payment_intent_id: str) -> Optional[Purchase]:
        pass

    @abstractmethod
    def update_purchase_status(self, purchase_id: str, status: str) -> Optional[Purchase]:
        pass

    # Demo sessions
    @abstractmethod
    def create_demo_session(
        self,
        app_id: str,
        session_token: str,
        ip_address: str,
        user_agent: Optional[str],
        start_time: datetime,
        end_time: datetime,
    ) -> DemoSession:
        pass

    @abstractmethod
    def get_demo_session_with_app(self, session_token: str) -> Optional[Tuple[DemoSession, App]]:
        """Session joined with its app; None when either is missing."""

    @abstractmethod
    def count_demo_sessions_created_between(
        self, ip_address: str, app_id: str, start: datetime, end: datetime
    ) -> int:
        """Sessions for (ip, app) with start <= created_at < end."""

    @abstractmethod
    def count_active_demo_sessions(self, ip_address: str, app_id: str, now: datetime) -> int:
        """Sessions for (ip, app) with is_active and end_time >= now."""

    @abstractmethod
    def deactivate_demo_session(self, session_id: str) -> None:
        pass

    @abstractmethod
    def cleanup_expired_demo_sessions(self, now: datetime) -> int:
        """Deactivate active sessions whose end_time has passed. Returns rows touched."""

    def release(self) -> None:
        """
        Give back any connection held for reads made so far. Objects already
        returned stay readable. No-op for backends without connections.
        """

    @contextmanager
    def issuance_guard(self, ip_address: str, app_id: str) -> Iterator[None]:
        """
        Serialize quota counting and insertion for one (ip, app) pair.

        Backends with cross-process concurrency extend this with a
        database-level lock.
        """
        with process_issuance_lock(ip_address, app_id):
            yield
