"""
Schemas for checkout and Stripe webhooks
"""
from typing import Optional

from pydantic import BaseModel, EmailStr


class PaymentIntentRequest(BaseModel):
    appId: Optional[str] = None
    customerEmail: Optional[EmailStr] = None
    customerName: Optional[str] = None


class PaymentIntentResponse(BaseModel):
    clientSecret: str
    purchaseId: str


class WebhookResponse(BaseModel):
    received: bool = True
