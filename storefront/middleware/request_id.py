"""
Request ID middleware for correlation tracking

Generates a unique request_id UUID per request and injects it into:
- Response headers (X-Request-ID)
- Request state (for use in route handlers)
- Logs

Also accepts inbound X-Request-ID from the storefront client and forwards it if present.
"""

import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
import logging

from .logging import mask_proxy_path

logger = logging.getLogger(__name__)

MAX_REQUEST_ID_LENGTH = 128


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Middleware to generate and propagate request IDs"""

    async def dispatch(self, request: Request, call_next):
        incoming_request_id = request.headers.get("X-Request-ID")
        if incoming_request_id and len(incoming_request_id) > MAX_REQUEST_ID_LENGTH:
            incoming_request_id = None

        request_id = incoming_request_id or str(uuid.uuid4())
        request.state.request_id = request_id

        logger.debug(f"Request {request_id}: {request.method} {mask_proxy_path(request.url.path)}")

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        return response
