"""
Schemas for the contact form
"""
from typing import Optional

from pydantic import BaseModel, EmailStr, Field
from pydantic.alias_generators import to_camel


class ContactRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    project_type: Optional[str] = Field(None, max_length=100)
    budget: Optional[str] = Field(None, max_length=100)
    message: str = Field(..., min_length=10, max_length=2000)
    # Honeypot fields: hidden in the form, only bots fill them in
    website: Optional[str] = None
    url: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        str_strip_whitespace = True

    @property
    def is_spam(self) -> bool:
        return bool(self.website or self.url)


class ContactResponse(BaseModel):
    success: bool = True
    message: str = "Thank you for your message! I'll get back to you soon."
