"""
SQLAlchemy storage backend.

Wraps one request-scoped Session. Writes commit immediately, matching the
rest of the service layer.
"""
import logging
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Iterator, List, Optional, Tuple

from sqlalchemy import and_, desc, func, text, update
from sqlalchemy.orm import Session, joinedload

from ..models import App, Testimonial, ContactSubmission, Purchase, PurchaseStatus, DemoSession
from .base import Storage, process_issuance_lock, issuance_key

logger = logging.getLogger(__name__)


class DatabaseStorage(Storage):

    def __init__(self, db: Session):
        self.db = db

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    # Apps
    def get_apps(self, category: Optional[str] = None) -> List[App]:
        query = self.db.query(App).filter(App.is_active == True)  # noqa: E712
        if category:
            query = query.filter(App.category == category)
        return query.order_by(desc(App.created_at)).all()

    def get_app(self, app_id: str) -> Optional[App]:
        return self.db.query(App).filter(App.id == app_id).first()

    def create_app(self, **fields) -> App:
        return self._save(App(**fields))

    # Testimonials
    def get_testimonials(self) -> List[Testimonial]:
        return (
            self.db.query(Testimonial)
            .filter(Testimonial.is_active == True)  # noqa: E712
            .order_by(desc(Testimonial.created_at))
            .all()
        )

    def create_testimonial(self, **fields) -> Testimonial:
        return self._save(Testimonial(**fields))

    # Contact
    def create_contact_submission(self, **fields) -> ContactSubmission:
        return self._save(ContactSubmission(**fields))

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
        return self._save(Purchase(
            app_id=app_id,
            customer_email=customer_email,
            customer_name=customer_name,
            amount=amount,
            stripe_payment_intent_id=stripe_payment_intent_id,
            status=status,
        ))

    def get_purchase_by_payment_intent(self, payment_intent_id: str) -> Optional[Purchase]:
        return self.db.query(Purchase).filter(
            Purchase.stripe_payment_intent_id == payment_intent_id
        ).first()

    def update_purchase_status(self, purchase_id: str, status: str) -> Optional[Purchase]:
        purchase = self.db.query(Purchase).filter(Purchase.id == purchase_id).first()
        if purchase is None:
            return None
        purchase.status = status
        self.db.commit()
        self.db.refresh(purchase)
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
        return self._save(DemoSession(
            app_id=app_id,
            session_token=session_token,
            ip_address=ip_address,
            user_agent=user_agent,
            start_time=start_time,
            end_time=end_time,
            is_active=True,
            created_at=start_time,
        ))

    def get_demo_session_with_app(self, session_token: str) -> Optional[Tuple[DemoSession, App]]:
        session = (
            self.db.query(DemoSession)
            .options(joinedload(DemoSession.app))
            .filter(DemoSession.session_token == session_token)
            .first()
        )
        if session is None or session.app is None:
            return None
        return session, session.app

    def count_demo_sessions_created_between(
        self, ip_address: str, app_id: str, start: datetime, end: datetime
    ) -> int:
        return self.db.query(func.count(DemoSession.id)).filter(
            and_(
                DemoSession.ip_address == ip_address,
                DemoSession.app_id == app_id,
                DemoSession.created_at >= start,
                DemoSession.created_at < end,
            )
        ).scalar() or 0

    def count_active_demo_sessions(self, ip_address: str, app_id: str, now: datetime) -> int:
        return self.db.query(func.count(DemoSession.id)).filter(
            and_(
                DemoSession.ip_address == ip_address,
                DemoSession.app_id == app_id,
                DemoSession.is_active == True,  # noqa: E712
                DemoSession.end_time >= now,
            )
        ).scalar() or 0

    def deactivate_demo_session(self, session_id: str) -> None:
        self.db.execute(
            update(DemoSession)
            .where(DemoSession.id == session_id)
            .values(is_active=False)
        )
        self.db.commit()

    def cleanup_expired_demo_sessions(self, now: datetime) -> int:
        result = self.db.execute(
            update(DemoSession)
            .where(and_(DemoSession.is_active == True, DemoSession.end_time < now))  # noqa: E712
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        # Objects already loaded in this session must not report stale flags
        self.db.expire_all()
        return result.rowcount or 0

    def release(self) -> None:
        # Detach first: rollback would expire loaded objects and force a reload
        self.db.expunge_all()
        self.db.rollback()

    @contextmanager
    def issuance_guard(self, ip_address: str, app_id: str) -> Iterator[None]:
        """
        Process lock plus, on PostgreSQL, a transaction-scoped advisory lock
        so issuance from several workers cannot race past the caps. The
        advisory lock is released by the commit that persists the session,
        or by the commit below when issuance was refused.
        """
        with process_issuance_lock(ip_address, app_id):
            is_postgres = self.db.get_bind().dialect.name == "postgresql"
            if is_postgres:
                self.db.execute(
                    text("SELECT pg_advisory_xact_lock(hashtext(:key))"),
                    {"key": issuance_key(ip_address, app_id)},
                )
            try:
                yield
            finally:
                if is_postgres and self.db.in_transaction():
                    self.db.commit()
