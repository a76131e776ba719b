"""
Application lifespan management for startup and shutdown events
"""
import logging
from contextlib import asynccontextmanager

import httpx
from sqlalchemy import text

from .core.config import settings, validate_config
from .core.email_sender import create_email_sender
from .core.env import is_local_env
from .jobs.demo_cleanup import DemoSessionCleanupWorker
from .services.demo_proxy import DemoProxy
from .services.stripe_service import StripeService

logger = logging.getLogger(__name__)


def _prepare_database(is_local: bool) -> None:
    from .db import Base, get_engine, get_session_local
    from . import models  # noqa: F401  (register tables on Base.metadata)

    engine = get_engine()
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection verified")
    except Exception as e:
        if is_local:
            logger.warning(f"Database connection failed in local/dev environment: {e}")
            return
        logger.error(f"Database connection failed in production: {e}")
        raise

    # Local databases are created on the fly; deployed ones go through alembic
    if is_local or settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)

    if settings.SEED_CATALOG:
        from .seed import seed_catalog
        from .storage.database import DatabaseStorage
        db = get_session_local()()
        try:
            seed_catalog(DatabaseStorage(db))
        finally:
            db.close()


def create_http_client() -> httpx.AsyncClient:
    """Shared client for all proxied demo traffic."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.DEMO_PROXY_TIMEOUT_SECONDS),
        follow_redirects=False,
        limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
    )


@asynccontextmanager
async def lifespan(app):
    """Manage application lifespan events"""
    # Startup
    logger.info("Starting storefront backend...")
    is_local = is_local_env()

    try:
        validate_config()

        if settings.STORAGE_BACKEND == "sql":
            _prepare_database(is_local)

        app.state.http_client = create_http_client()
        app.state.demo_proxy = DemoProxy(app.state.http_client)

        app.state.email_sender = create_email_sender()
        app.state.stripe_service = StripeService()
        logger.info(
            f"Email sender: {type(app.state.email_sender).__name__}, "
            f"Stripe configured: {app.state.stripe_service.configured}"
        )

        app.state.cleanup_worker = DemoSessionCleanupWorker()
        await app.state.cleanup_worker.start()

        logger.info("Application startup completed successfully")
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise

    yield

    # Shutdown
    logger.info("Shutting down storefront backend...")

    try:
        await app.state.cleanup_worker.stop()

        await app.state.http_client.aclose()
        logger.info("Demo proxy HTTP client closed")

        if settings.STORAGE_BACKEND == "sql":
            from .db import dispose_engine
            dispose_engine()
            logger.info("Database connections closed")

        logger.info("Application shutdown completed successfully")
    except Exception as e:
        logger.error(f"Shutdown error: {e}")


__all__ = ['lifespan']
