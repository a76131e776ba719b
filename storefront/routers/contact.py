"""
Contact Router - project enquiries from the storefront

Submissions are persisted first; the notification email goes out in the
background and its failure never fails the request.
"""
import html
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status

from ..core.config import settings
from ..core.email_sender import EmailSender
from ..schemas.contact import ContactRequest, ContactResponse
from ..storage import get_storage
from ..storage.base import Storage
from ..utils.client_ip import get_client_ip
from ..utils.rate_limit import get_rate_limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["contact"])


def get_email_sender(request: Request) -> EmailSender:
    sender = getattr(request.app.state, "email_sender", None)
    if sender is None:
        raise RuntimeError("Email sender not initialized; is the application lifespan running?")
    return sender


def notify_contact_submission(
    sender: EmailSender,
    submission_id: str,
    name: str,
    email: str,
    project_type,
    budget,
    message: str,
) -> None:
    """Send the owner a notification for a stored submission. Never raises."""
    recipient = settings.CONTACT_NOTIFY_EMAIL
    if not recipient:
        logger.info(f"No CONTACT_NOTIFY_EMAIL configured, skipping notification for {submission_id}")
        return

    body = (
        f"New contact form submission\n\n"
        f"Name: {name}\n"
        f"Email: {email}\n"
        f"Project type: {project_type or 'Not specified'}\n"
        f"Budget: {budget or 'Not specified'}\n\n"
        f"{message}\n"
    )
    try:
        sent = sender.send_email(
            to_email=recipient,
            subject=f"New project enquiry from {name}",
            body_text=body,
            reply_to=email,
        )
    except Exception as e:
        logger.error(f"Contact notification for {submission_id} failed: {e}", exc_info=True)
        return
    if not sent:
        logger.warning(f"Contact notification for {submission_id} was not delivered")


@router.post("/contact", response_model=ContactResponse)
def submit_contact(
    payload: ContactRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    storage: Storage = Depends(get_storage),
    sender: EmailSender = Depends(get_email_sender),
):
    ip = get_client_ip(request)
    if payload.is_spam:
        logger.warning(f"Contact honeypot triggered from {ip}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid submission")

    allowed, _ = get_rate_limiter().check_contact_limit(ip)
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many contact form submissions, please try again later.",
        )

    fields = {
        "name": html.escape(payload.name),
        "email": payload.email,
        "project_type": html.escape(payload.project_type) if payload.project_type else None,
        "budget": html.escape(payload.budget) if payload.budget else None,
        "message": html.escape(payload.message),
    }
    submission = storage.create_contact_submission(**fields)
    logger.info(f"Stored contact submission {submission.id}")

    background_tasks.add_task(notify_contact_submission, sender, submission.id, **fields)
    return ContactResponse()
