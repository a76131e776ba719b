# Schemas package
from .catalog import AppOut, TestimonialOut
from .demo import DemoAccessResponse, DemoSessionStatus
from .contact import ContactRequest, ContactResponse
from .checkout import PaymentIntentRequest, PaymentIntentResponse, WebhookResponse

__all__ = [
    "AppOut", "TestimonialOut",
    "DemoAccessResponse", "DemoSessionStatus",
    "ContactRequest", "ContactResponse",
    "PaymentIntentRequest", "PaymentIntentResponse", "WebhookResponse",
]
