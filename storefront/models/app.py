"""
Catalog models: apps shown in the store and the testimonials beside them.
"""
import uuid

from sqlalchemy import Column, String, Text, Numeric, Boolean, DateTime, JSON, Index

from ..db import Base
from ..core.clock import utcnow


def generate_id() -> str:
    return str(uuid.uuid4())


class App(Base):
    """An app in the storefront catalog. `demo_url` is None when demos are unsupported."""
    __tablename__ = "apps"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    long_description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=True)
    category = Column(String(20), nullable=False)  # mobile, web, desktop
    image_url = Column(Text, nullable=True)
    demo_url = Column(Text, nullable=True)
    github_url = Column(Text, nullable=True)
    technologies = Column(JSON, nullable=False, default=list)
    features = Column(JSON, nullable=False, default=list)
    is_premium = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_apps_category_active", "category", "is_active"),
    )

    @property
    def has_demo(self) -> bool:
        return bool(self.demo_url)


class Testimonial(Base):
    __tablename__ = "testimonials"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(Text, nullable=False)
    company = Column(Text, nullable=True)
    position = Column(Text, nullable=True)
    content = Column(Text, nullable=False)
    rating = Column(Numeric(2, 1), nullable=False, default=5.0)
    avatar_url = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
