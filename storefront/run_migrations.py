"""
Run Alembic migrations programmatically.

Meant to run before uvicorn starts in deployed environments, where the
schema is not created on the fly. Safe to call repeatedly; Alembic is a
no-op when already at head. Seeds the catalog afterwards if SEED_CATALOG
is set.
"""
from pathlib import Path
import logging
import sys

from alembic import command
from alembic.config import Config

from .core.config import settings

logger = logging.getLogger(__name__)


def run_migrations() -> None:
    """Run Alembic migrations up to head using the current DATABASE_URL."""
    # alembic.ini sits at the project root, one level above this package
    project_root = Path(__file__).resolve().parents[1]
    alembic_ini = project_root / "alembic.ini"

    if not alembic_ini.exists():
        logger.error(f"Alembic config not found at {alembic_ini}")
        raise FileNotFoundError(f"Alembic config not found at {alembic_ini}")

    cfg = Config(str(alembic_ini))
    cfg.set_main_option("script_location", str(project_root / "alembic"))
    cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

    database_url = settings.DATABASE_URL
    logger.info(f"Running Alembic migrations to head on {database_url.split('@')[-1]}")
    command.upgrade(cfg, "head")
    logger.info("Alembic migrations complete.")

    if settings.SEED_CATALOG:
        _seed_catalog()


def _seed_catalog() -> None:
    from .db import get_session_local
    from .seed import seed_catalog
    from .storage.database import DatabaseStorage

    db = get_session_local()()
    try:
        seed_catalog(DatabaseStorage(db))
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(levelname)s: %(message)s"
    )
    try:
        run_migrations()
        sys.exit(0)
    except Exception as e:
        logger.error(f"Failed to run migrations: {e}", exc_info=True)
        sys.exit(1)
