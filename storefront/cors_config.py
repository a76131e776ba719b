"""
CORS configuration.

Call `configure_cors(app, settings, is_local)` to set up CORS middleware.
"""
import logging
from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

logger = logging.getLogger("storefront")

# Default dev origins (when ALLOWED_ORIGINS is not set)
DEFAULT_DEV_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5000",
    "http://localhost:5173",   # Vite default
    "http://127.0.0.1:5173",
]

CORS_METHODS = ["GET", "POST", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "X-Requested-With", "X-Request-ID", "Stripe-Signature"]


def build_origins(settings, is_local: bool) -> List[str]:
    """Build the final list of allowed CORS origins."""
    origins = list(settings.allowed_origins)
    if "*" in origins and not is_local:
        logger.error(
            "CORS wildcard (*) is not allowed in non-local environment; "
            "set ALLOWED_ORIGINS to explicit origins"
        )
        origins = [o for o in origins if o != "*"]
    if is_local:
        origins += [o for o in DEFAULT_DEV_ORIGINS if o not in origins]
    return origins


def configure_cors(app: FastAPI, settings, is_local: bool):
    """Build the origins list, log it, and attach CORSMiddleware to the app."""
    final_origins = build_origins(settings, is_local)
    logger.info("CORS allowed origins: %s", final_origins)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=final_origins,
        allow_credentials="*" not in final_origins,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
        max_age=3600,
    )
