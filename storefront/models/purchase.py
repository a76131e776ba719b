from sqlalchemy import Column, String, Text, Numeric, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from ..db import Base
from ..core.clock import utcnow
from .app import generate_id


class PurchaseStatus:
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Purchase(Base):
    """Card purchase of a premium app, keyed by its Stripe PaymentIntent."""
    __tablename__ = "purchases"

    id = Column(String(36), primary_key=True, default=generate_id)
    app_id = Column(String(36), ForeignKey("apps.id"), nullable=False, index=True)
    customer_email = Column(Text, nullable=False)
    customer_name = Column(Text, nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)
    stripe_payment_intent_id = Column(String(255), nullable=False, unique=True)
    status = Column(String(20), nullable=False, default=PurchaseStatus.PENDING)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    app = relationship("App", foreign_keys=[app_id])


class ContactSubmission(Base):
    __tablename__ = "contact_submissions"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    project_type = Column(Text, nullable=True)
    budget = Column(Text, nullable=True)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
