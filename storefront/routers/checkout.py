"""
Checkout Router - Stripe PaymentIntents for premium apps and the Stripe webhook
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from starlette.concurrency import run_in_threadpool

from ..schemas.checkout import PaymentIntentRequest, PaymentIntentResponse, WebhookResponse
from ..services.stripe_service import CheckoutError, StripeService
from ..storage import get_storage
from ..storage.base import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["checkout"])


def get_stripe_service(request: Request) -> StripeService:
    service = getattr(request.app.state, "stripe_service", None)
    if service is None:
        raise RuntimeError("Stripe service not initialized; is the application lifespan running?")
    return service


@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
def create_payment_intent(
    payload: PaymentIntentRequest,
    storage: Storage = Depends(get_storage),
    stripe_service: StripeService = Depends(get_stripe_service),
):
    if not stripe_service.configured:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Payment processing not configured",
        )
    if not payload.appId or not payload.customerEmail:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="App ID and customer email are required",
        )

    try:
        return stripe_service.create_payment_intent(
            storage, payload.appId, payload.customerEmail, payload.customerName
        )
    except CheckoutError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/webhook/stripe", response_model=WebhookResponse)
async def stripe_webhook(
    request: Request,
    storage: Storage = Depends(get_storage),
    stripe_service: StripeService = Depends(get_stripe_service),
):
    """
    Stripe webhook endpoint. The raw body is needed for signature
    verification, so it is read before any parsing.
    """
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    try:
        result = await run_in_threadpool(stripe_service.handle_webhook, storage, payload, signature)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Webhook Error: {e}")

    logger.info(f"Stripe webhook processed: {result}")
    return WebhookResponse()
