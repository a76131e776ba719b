"""
Database configuration with lazy initialization.

The engine is created on first access so the app can start (and serve
/healthz) even when the database is not reachable yet, and so the memory
storage backend never opens a connection at all.
"""
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import QueuePool

from .core.config import settings

logger = logging.getLogger(__name__)

# Global engine instance (lazily initialized)
_engine = None
_SessionLocal = None

Base = declarative_base()


def get_engine():
    """
    Get or create the database engine (lazy initialization).
    """
    global _engine
    if _engine is None:
        database_url = settings.DATABASE_URL
        if settings.is_production and database_url.startswith("sqlite"):
            raise ValueError(
                "CRITICAL: SQLite database is not supported in production. "
                "Please use PostgreSQL."
            )

        # Log database URL safely (scheme only, never credentials)
        scheme = database_url.split("://")[0] if "://" in database_url else "unknown"
        logger.info(f"Creating database engine ({scheme})")

        if database_url.startswith("sqlite"):
            # SQLite: minimal pooling for dev
            _engine = create_engine(
                database_url,
                poolclass=QueuePool,
                pool_size=5,
                max_overflow=0,
                connect_args={"check_same_thread": False},
            )
        else:
            # PostgreSQL: production pooling
            _engine = create_engine(
                database_url,
                poolclass=QueuePool,
                pool_size=20,
                max_overflow=10,
                pool_pre_ping=True,
                pool_recycle=3600,
            )
    return _engine


def get_session_local():
    """Get or create the SessionLocal class."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _SessionLocal


def dispose_engine():
    """Close pooled connections if an engine was ever created."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
        _engine = None
        _SessionLocal = None
