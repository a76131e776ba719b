"""
Process-local storage backend.

Used by tests and for running the storefront without a database. All
state lives in lists guarded by one RLock; model instances are plain
transient SQLAlchemy objects so callers see the same types as with the
SQL backend.
"""
import logging
import threading
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from ..core.clock import utcnow
from ..models import App, Testimonial, ContactSubmission, Purchase, PurchaseStatus, DemoSession
from ..models.app import generate_id
from .base import Storage

logger = logging.getLogger(__name__)


class MemoryStorage(Storage):

    def __init__(self, clock=utcnow):
        self._clock = clock
        self._lock = threading.RLock()
        self._apps: List[App] = []
        self._testimonials: List[Testimonial] = []
        self._contacts: List[ContactSubmission] = []
        self._purchases: List[Purchase] = []
        self._demo_sessions: List[DemoSession] = []

    # Apps
    def get_apps(self, category: Optional[str] = None) -> List[App]:
        with self._lock:
            apps = [a for a in self._apps if a.is_active and (category is None or a.category == category)]
        return sorted(apps, key=lambda a: a.created_at, reverse=True)

    def get_app(self, app_id: str) -> Optional[App]:
        with self._lock:
            return next((a for a in self._apps if a.id == app_id), None)

    def create_app(self, **fields) -> App:
        now = self._clock()
        fields.setdefault("id", generate_id())
        fields.setdefault("technologies", [])
        fields.setdefault("features", [])
        fields.setdefault("is_premium", False)
        fields.setdefault("is_active", True)
        fields.setdefault("created_at", now)
        fields.setdefault("updated_at", now)
        app = App(**fields)
        with self._lock:
            self._apps.append(app)
        return app

    # Testimonials
    def get_testimonials(self) -> List[Testimonial]:
        with self._lock:
            items = [t for t in self._testimonials if t.is_active]
        return sorted(items, key=lambda t: t.created_at, reverse=True)

    def create_testimonial(self, **fields) -> Testimonial:
        fields.setdefault("id", generate_id())
        fields.setdefault("is_active", True)
        fields.setdefault("created_at", self._clock())
        testimonial = Testimonial(**fields)
        with self._lock:
            self._testimonials.append(testimonial)
        return testimonial

    # Contact
    def create_contact_submission(self, **fields) -> ContactSubmission:
        fields.setdefault("id", generate_id())
        fields.setdefault("is_read", False)
        fields.setdefault("created_at", self._clock())
        contact = ContactSubmission(**fields)
        with self._lock:
            self._contacts.append(contact)
        return contact

    # Purchases
    def create_purchase(
        self,
        app_id: str,
        customer_email: str,
        customer_name: Optional[str],
        amount: Decimal,
        stripe_payment_intent_id: str,
        status: str = PurchaseStatus.PENDING,
    ) -> Purchase:
        purchase = Purchase(
            id=generate_id(),
            app_id=app_id,
            customer_email=customer_email,
            customer_name=customer_name,
            amount=amount,
            stripe_payment_intent_id=stripe_payment_intent_id,
            status=status,
            created_at=self._clock(),
        )
        with self._lock:
            self._purchases.append(purchase)
        return purchase

    def get_purchase_by_payment_intent(self, payment_intent_id: str) -> Optional[Purchase]:
        with self._lock:
            return next(
                (p for p in self._purchases if p.stripe_payment_intent_id == payment_intent_id),
                None,
            )

    def update_purchase_status(self, purchase_id: str, status: str) -> Optional[Purchase]:
        with self._lock:
            purchase = next((p for p in self._purchases if p.id == purchase_id), None)
            if purchase is not None:
                purchase.status = status
            return purchase

    # Demo sessions
    def create_demo_session(
        self,
        app_id: str,
        session_token: str,
        ip_address: str,
        user_agent: Optional[str],
        start_time: datetime,
        end_time: datetime,
    ) -> DemoSession:
        session = DemoSession(
            id=generate_id(),
            app_id=app_id,
            session_token=session_token,
            ip_address=ip_address,
            user_agent=user_agent,
            start_time=start_time,
            end_time=end_time,
            is_active=True,
            created_at=start_time,
        )
        with self._lock:
            if any(s.session_token == session_token for s in self._demo_sessions):
                raise ValueError("Duplicate demo session token")
            self._demo_sessions.append(session)
        return session

    def get_demo_session_with_app(self, session_token: str) -> Optional[Tuple[DemoSession, App]]:
        with self._lock:
            session = next((s for s in self._demo_sessions if s.session_token == session_token), None)
            if session is None:
                return None
            app = next((a for a in self._apps if a.id == session.app_id), None)
        if app is None:
            return None
        return session, app

    def count_demo_sessions_created_between(
        self, ip_address: str, app_id: str, start: datetime, end: datetime
    ) -> int:
        with self._lock:
            return sum(
                1 for s in self._demo_sessions
                if s.ip_address == ip_address
                and s.app_id == app_id
                and start <= s.created_at < end
            )

    def count_active_demo_sessions(self, ip_address: str, app_id: str, now: datetime) -> int:
        with self._lock:
            return sum(
                1 for s in self._demo_sessions
                if s.ip_address == ip_address
                and s.app_id == app_id
                and s.is_active
                and s.end_time >= now
            )

    def deactivate_demo_session(self, session_id: str) -> None:
        with self._lock:
            for s in self._demo_sessions:
                if s.id == session_id:
                    s.is_active = False

    def cleanup_expired_demo_sessions(self, now: datetime) -> int:
        touched = 0
        with self._lock:
            for s in self._demo_sessions:
                if s.is_active and s.end_time < now:
                    s.is_active = False
                    touched += 1
        return touched
