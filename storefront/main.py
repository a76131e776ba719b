"""
Storefront backend application.

Run command:
    uvicorn storefront.main:app --host 0.0.0.0 --port 8000
"""
import logging
import sys

from dotenv import load_dotenv

# Load environment variables from .env file before settings are read
load_dotenv()

from fastapi import FastAPI  # noqa: E402

from .core.config import settings  # noqa: E402
from .core.env import is_local_env  # noqa: E402
from .cors_config import configure_cors  # noqa: E402
from .exception_handlers import register_exception_handlers  # noqa: E402
from .lifespan import lifespan  # noqa: E402
from .middleware.logging import LoggingMiddleware  # noqa: E402
from .middleware.rate_limit import ApiRateLimitMiddleware  # noqa: E402
from .middleware.request_id import RequestIDMiddleware  # noqa: E402
from .middleware.request_size import RequestSizeLimitMiddleware  # noqa: E402
from .middleware.security_headers import SecurityHeadersMiddleware  # noqa: E402
from .routers import apps, checkout, contact, demo, health  # noqa: E402

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger("storefront")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Storefront Backend",
        version="1.0.0",
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    # Innermost first: the last middleware added runs first
    app.add_middleware(ApiRateLimitMiddleware)
    app.add_middleware(RequestSizeLimitMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    configure_cors(app, settings, is_local_env())

    app.include_router(health.router)
    app.include_router(apps.router)
    app.include_router(contact.router)
    app.include_router(checkout.router)
    app.include_router(demo.router)

    logger.info(f"Storefront app created (ENV={settings.ENV}, storage={settings.STORAGE_BACKEND})")
    return app


app = create_app()
