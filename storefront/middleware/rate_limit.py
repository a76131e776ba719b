"""
General API rate limit middleware.

Applies the per-IP /api/ limit. Endpoint-specific limits (demo issuance,
contact form) are checked in their routers on top of this one.
"""
import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.config import settings
from ..services.errors import RateLimited
from ..utils.client_ip import get_client_ip
from ..utils.rate_limit import get_rate_limiter

logger = logging.getLogger(__name__)


class ApiRateLimitMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        # Webhooks come from Stripe, not from browsers
        if not request.url.path.startswith("/api/") or request.url.path.startswith("/api/webhook/"):
            return await call_next(request)

        ip = get_client_ip(request)
        allowed, remaining = get_rate_limiter().check_api_limit(ip)
        if not allowed:
            logger.warning(f"API rate limit exceeded for {ip} on {request.method} {request.url.path}")
            error = RateLimited()
            return JSONResponse(
                status_code=error.status_code,
                content=error.to_dict(),
                headers={"Retry-After": str(settings.API_RATE_WINDOW_SECONDS)},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(settings.API_RATE_LIMIT)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response
