"""
Schemas for the catalog API

Field names are camelCase on the wire to match the storefront client.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class AppOut(BaseModel):
    id: str
    name: str
    description: str
    long_description: Optional[str] = None
    price: Optional[Decimal] = None  # serialized as a string, e.g. "49.99"
    category: str
    image_url: Optional[str] = None
    demo_url: Optional[str] = None
    github_url: Optional[str] = None
    technologies: List[str] = []
    features: List[str] = []
    is_premium: bool
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class TestimonialOut(BaseModel):
    id: str
    name: str
    company: Optional[str] = None
    position: Optional[str] = None
    content: str
    rating: Optional[Decimal] = None
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True
