"""
Storage backends and the FastAPI dependency that selects one.

STORAGE_BACKEND=memory serves every request from one process-wide
MemoryStorage (seeded with the sample catalog); STORAGE_BACKEND=sql wraps
the request-scoped SQLAlchemy session.
"""
import logging
from typing import Iterator, Optional

from ..core.config import settings
from .base import Storage
from .memory import MemoryStorage
from .database import DatabaseStorage

logger = logging.getLogger(__name__)

_memory_storage: Optional[MemoryStorage] = None


def get_memory_storage() -> MemoryStorage:
    """Process-wide memory store, seeded on first use."""
    global _memory_storage
    if _memory_storage is None:
        from ..seed import seed_catalog
        _memory_storage = MemoryStorage()
        seed_catalog(_memory_storage)
        logger.info("Memory storage initialized with sample catalog")
    return _memory_storage


def get_storage() -> Iterator[Storage]:
    """Dependency that provides the configured storage backend."""
    if settings.STORAGE_BACKEND == "memory":
        yield get_memory_storage()
        return

    from ..db import get_session_local
    db = get_session_local()()
    try:
        yield DatabaseStorage(db)
    finally:
        db.close()


__all__ = [
    "Storage",
    "MemoryStorage",
    "DatabaseStorage",
    "get_storage",
    "get_memory_storage",
]
