from fastapi import Request

from ..core.config import settings


def get_client_ip(request: Request) -> str:
    """
    Get client IP from request, handling proxies.

    Only the entries appended by our own TRUSTED_PROXY_HOPS reverse proxies
    are believed; anything further left in X-Forwarded-For is client-supplied.
    """
    hops = settings.TRUSTED_PROXY_HOPS
    forwarded = request.headers.get("X-Forwarded-For")
    if hops > 0 and forwarded:
        chain = [part.strip() for part in forwarded.split(",") if part.strip()]
        if chain:
            return chain[-hops] if len(chain) >= hops else chain[0]
    # Fall back to direct connection
    return request.client.host if request.client else "unknown"
