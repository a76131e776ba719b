"""
Demo-access error taxonomy.

Every failure the demo subsystem can report is a DemoAccessError carrying
its HTTP status, a machine-readable error code and any extra payload the
client needs (e.g. the app summary for a purchase upsell). The handler in
exception_handlers.py renders them as `{"error", "message", **extra}`.
"""
from typing import Any, Dict, Optional

from fastapi import status


def app_summary(app) -> Optional[Dict[str, Any]]:
    """Minimal app payload for purchase upsells."""
    if app is None:
        return None
    return {
        "id": app.id,
        "name": app.name,
        "price": str(app.price) if app.price is not None else None,
    }


class DemoAccessError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    error_code: str = "DEMO_ACCESS_ERROR"
    default_message: str = "Demo access failed"

    def __init__(self, message: Optional[str] = None, **extra: Any):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body = {"error": self.error_code, "message": self.message}
        body.update(self.extra)
        return body


class AppNotFound(DemoAccessError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "APP_NOT_FOUND"
    default_message = "App not found"


class DemoUnavailable(DemoAccessError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "DEMO_UNAVAILABLE"
    default_message = "Demo not available for this app"


class _UpsellError(DemoAccessError):
    """Business-rule refusal that offers the purchase path instead."""
    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, app, message: Optional[str] = None):
        super().__init__(message, requiresPurchase=True, app=app_summary(app))


class QuotaExceeded(_UpsellError):
    error_code = "DEMO_QUOTA_EXCEEDED"
    default_message = "Daily demo limit reached for this app. Purchase to get full access."


class ConcurrencyExceeded(_UpsellError):
    error_code = "DEMO_CONCURRENCY_EXCEEDED"
    default_message = "Too many active demos for this app. Purchase to get full access."


class SessionNotFound(DemoAccessError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "SESSION_NOT_FOUND"
    default_message = "Demo session not found"


class SessionExpired(DemoAccessError):
    status_code = status.HTTP_410_GONE
    error_code = "SESSION_EXPIRED"
    default_message = "Demo session expired"

    def __init__(self, app, message: Optional[str] = None):
        super().__init__(message, expired=True, requiresPurchase=True, app=app_summary(app))


class SecurityViolation(DemoAccessError):
    """IP or User-Agent binding mismatch. Not a soft expiry: clients must not silently retry."""
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "SECURITY_VIOLATION"
    default_message = "Session security violation - please request a new demo"

    def __init__(self, reason: str, app=None, message: Optional[str] = None):
        extra = {"securityViolation": True, "reason": reason}
        if app is not None and app.is_premium:
            extra["requiresPurchase"] = True
            extra["app"] = app_summary(app)
        super().__init__(message, **extra)


class UpstreamProxyFailure(DemoAccessError):
    status_code = status.HTTP_502_BAD_GATEWAY
    error_code = "UPSTREAM_UNAVAILABLE"
    default_message = "Demo temporarily unavailable, please try again shortly"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, retryable=True)


class RateLimited(DemoAccessError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    error_code = "RATE_LIMITED"
    default_message = "Too many requests, please try again later."
