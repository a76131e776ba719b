"""
Stripe Service - app purchases via PaymentIntents

The client confirms the PaymentIntent with Stripe Elements; the webhook
moves the matching Purchase row to completed or failed.
"""
from decimal import Decimal
from typing import Any, Dict, Optional
import logging

import stripe

from ..core.config import settings
from ..models import PurchaseStatus
from ..storage.base import Storage

logger = logging.getLogger(__name__)

# Stripe event type -> Purchase status
WEBHOOK_STATUS_MAP = {
    "payment_intent.succeeded": PurchaseStatus.COMPLETED,
    "payment_intent.payment_failed": PurchaseStatus.FAILED,
}


class CheckoutError(ValueError):
    """Checkout request refused; carries the HTTP status the router should use."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def to_cents(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1")))


class StripeService:
    """Service for PaymentIntent creation and webhook handling"""

    def __init__(self, secret_key: Optional[str] = None, webhook_secret: Optional[str] = None):
        self.secret_key = secret_key if secret_key is not None else settings.STRIPE_SECRET_KEY
        self.webhook_secret = webhook_secret if webhook_secret is not None else settings.STRIPE_WEBHOOK_SECRET

    @property
    def configured(self) -> bool:
        return bool(self.secret_key)

    def create_payment_intent(
        self,
        storage: Storage,
        app_id: str,
        customer_email: str,
        customer_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create a PaymentIntent for a premium app and record a pending Purchase.

        Returns:
            Dict with clientSecret and purchaseId

        Raises:
            CheckoutError: not configured (500), unknown app (404), app not for sale (400)
        """
        if not self.configured:
            raise CheckoutError("Payment processing not configured", status_code=500)

        app = storage.get_app(app_id)
        if app is None:
            raise CheckoutError("App not found", status_code=404)
        if not app.is_premium or app.price is None:
            raise CheckoutError("This app is not available for purchase")

        try:
            intent = stripe.PaymentIntent.create(
                amount=to_cents(app.price),
                currency="usd",
                receipt_email=customer_email,
                metadata={
                    "app_id": app.id,
                    "app_name": app.name,
                    "customer_email": customer_email,
                    "customer_name": customer_name or "",
                },
                api_key=self.secret_key,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe PaymentIntent creation failed for app {app.id}: {e}")
            raise CheckoutError("Payment provider error", status_code=502)

        purchase = storage.create_purchase(
            app_id=app.id,
            customer_email=customer_email,
            customer_name=customer_name,
            amount=app.price,
            stripe_payment_intent_id=intent["id"],
            status=PurchaseStatus.PENDING,
        )
        logger.info(f"Created PaymentIntent {intent['id']} for app {app.id} (purchase {purchase.id})")

        return {"clientSecret": intent["client_secret"], "purchaseId": purchase.id}

    def construct_event(self, payload: bytes, signature: Optional[str]):
        """
        Verify and parse a webhook payload.

        Raises:
            ValueError: missing secret, malformed payload or bad signature
        """
        if not self.webhook_secret:
            raise ValueError("Stripe webhook secret not configured")
        if not signature:
            raise ValueError("Missing Stripe-Signature header")

        try:
            return stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except ValueError as e:
            logger.error(f"Invalid payload in Stripe webhook: {e}")
            raise ValueError(f"Invalid payload: {e}")
        except stripe.SignatureVerificationError as e:
            logger.error(f"Invalid signature in Stripe webhook: {e}")
            raise ValueError(f"Invalid signature: {e}")

    def handle_webhook(self, storage: Storage, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """Verify the event and apply it to the matching Purchase."""
        event = self.construct_event(payload, signature)
        event_type = event["type"]

        new_status = WEBHOOK_STATUS_MAP.get(event_type)
        if new_status is None:
            logger.info(f"Unhandled Stripe event type: {event_type}")
            return {"status": "ignored", "event_type": event_type}

        intent_id = event["data"]["object"]["id"]
        purchase = storage.get_purchase_by_payment_intent(intent_id)
        if purchase is None:
            logger.warning(f"No purchase found for PaymentIntent {intent_id} ({event_type})")
            return {"status": "unmatched", "event_type": event_type}

        storage.update_purchase_status(purchase.id, new_status)
        logger.info(f"Purchase {purchase.id} marked {new_status} ({event_type})")
        return {"status": new_status, "event_type": event_type, "purchase_id": purchase.id}

