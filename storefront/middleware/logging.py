import time
import uuid
import json
import logging
import re
from fastapi import Request, HTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.config import settings

logger = logging.getLogger(__name__)

_PROXY_TOKEN_RE = re.compile(r"^(" + re.escape(settings.DEMO_PROXY_PREFIX) + r"/|/api/demo-session/)([^/]+)")


def mask_proxy_path(path: str) -> str:
    """Hide demo session tokens: /demo-proxy/abcdef0123.../x -> /demo-proxy/abcdef.../x"""
    return _PROXY_TOKEN_RE.sub(lambda m: f"{m.group(1)}{m.group(2)[:6]}...", path, count=1)


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        # Use existing request_id from RequestIDMiddleware if present, otherwise generate one
        request_id = getattr(request.state, "request_id", None) or str(uuid.uuid4())
        request.state.request_id = request_id
        path = mask_proxy_path(request.url.path)

        start_time = time.time()

        try:
            response = await call_next(request)

            duration_ms = (time.time() - start_time) * 1000
            log_data = {
                "request_id": request_id,
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "user_agent": request.headers.get("user-agent", ""),
                "remote_addr": request.client.host if request.client else None
            }

            logger.info(json.dumps(log_data))

            response.headers["X-Request-ID"] = request_id

            return response
        except HTTPException as exc:
            # HTTPException is expected - log as warning, let FastAPI handle the response
            duration_ms = (time.time() - start_time) * 1000
            logger.warning(
                "HTTPException on %s %s: %s (status=%s) after %sms",
                request.method,
                path,
                exc.detail,
                exc.status_code,
                round(duration_ms, 2)
            )
            raise
        except Exception as e:
            # Log unhandled exceptions with full traceback
            duration_ms = (time.time() - start_time) * 1000
            logger.exception(
                "Unhandled error on %s %s after %sms: %s",
                request.method,
                path,
                round(duration_ms, 2),
                str(e)
            )
            raise
