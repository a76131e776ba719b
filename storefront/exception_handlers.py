"""
Exception handlers.

Register these on a FastAPI app instance via `register_exception_handlers(app)`.
"""
import logging
import traceback

from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.env import is_local_env
from .middleware.logging import mask_proxy_path
from .services.errors import DemoAccessError, SecurityViolation, UpstreamProxyFailure

logger = logging.getLogger("storefront")


async def demo_access_error_handler(request: Request, exc: DemoAccessError):
    """Render demo-access failures as {"error", "message", **extra}."""
    if isinstance(exc, (SecurityViolation, UpstreamProxyFailure)):
        logger.warning(f"{exc.error_code} on {request.method} {_loggable_path(request)}")
    else:
        logger.info(f"{exc.error_code} on {request.method} {_loggable_path(request)}")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers={"Cache-Control": "no-store"},
    )


async def http_error_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors"""
    if isinstance(exc, (HTTPException, StarletteHTTPException)):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail if hasattr(exc, "detail") else str(exc)},
        )

    # Log unhandled exceptions (full traceback in logs)
    error_detail = str(exc)
    error_traceback = traceback.format_exc()
    logger.error(f"Unhandled exception: {error_detail}\n{error_traceback}", exc_info=True)

    # In production, don't leak internal error details to clients
    if is_local_env():
        error_response = {
            "error": "INTERNAL_ERROR",
            "message": f"Internal server error: {error_detail or type(exc).__name__}",
        }
    else:
        error_response = {"error": "INTERNAL_ERROR", "message": "Internal server error"}

    return JSONResponse(
        status_code=500,
        content=error_response,
    )


def _loggable_path(request: Request) -> str:
    return mask_proxy_path(request.url.path)


def register_exception_handlers(app):
    """Register all exception handlers on the given FastAPI app."""
    app.add_exception_handler(DemoAccessError, demo_access_error_handler)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
